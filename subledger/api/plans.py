"""
Plan API routes.

- POST /v1/plans: create a plan (signer is the creator)
- GET  /v1/plans: list plans, optionally for one creator
- GET  /v1/plans/top: most-subscribed plans (recomputed on read)
- GET  /v1/plans/{address}: fetch one plan
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from subledger.core.auth import get_signer
from subledger.core.clock import Clock, get_clock
from subledger.features.plans.service import create_plan, get_plan, list_plans
from subledger.features.stats.service import DEFAULT_TOP_LIMIT, top_plans
from subledger.models.plan import CreatePlanRequest

router = APIRouter(prefix="/v1/plans", tags=["plans"])


@router.post("", status_code=201)
def create_plan_endpoint(
    request: CreatePlanRequest,
    signer: str = Depends(get_signer),
    clock: Clock = Depends(get_clock),
):
    """Create a plan owned by the signer."""
    plan = create_plan(
        signer,
        request.plan_id,
        request.name,
        request.price,
        request.duration_days,
        clock=clock,
    )
    return {"data": plan.model_dump()}


@router.get("")
def list_plans_endpoint(creator: Optional[str] = Query(None)):
    items = list_plans(creator=creator)
    return {"data": [p.model_dump() for p in items], "count": len(items)}


@router.get("/top")
def top_plans_endpoint(limit: int = Query(DEFAULT_TOP_LIMIT)):
    ranked = top_plans(limit=limit)
    return {"data": [entry.model_dump() for entry in ranked], "count": len(ranked)}


@router.get("/{address}")
def get_plan_endpoint(address: str):
    return {"data": get_plan(address).model_dump()}
