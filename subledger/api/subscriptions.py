"""
Subscription API routes.

- POST /v1/subscriptions: subscribe (signer is the subscriber)
- GET  /v1/subscriptions: list subscriptions
- GET  /v1/subscriptions/{address}: fetch one subscription
- GET  /v1/subscriptions/{address}/check: access check (404 missing, 410 expired)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from subledger.core.auth import get_signer
from subledger.core.clock import Clock, get_clock
from subledger.features.access.service import check_subscription
from subledger.features.subscriptions.service import (
    get_subscription,
    list_subscriptions,
    subscribe,
)
from subledger.models.subscription import CheckResult, SubscribeRequest

router = APIRouter(prefix="/v1/subscriptions", tags=["subscriptions"])


@router.post("", status_code=201)
def subscribe_endpoint(
    request: SubscribeRequest,
    signer: str = Depends(get_signer),
    clock: Clock = Depends(get_clock),
):
    """Pay for and activate a subscription to a creator's plan."""
    record = subscribe(signer, request.creator, request.plan_id, clock=clock)
    return {"data": record.model_dump()}


@router.get("")
def list_subscriptions_endpoint(
    subscriber: Optional[str] = Query(None),
    creator: Optional[str] = Query(None),
):
    items = list_subscriptions(subscriber=subscriber, creator=creator)
    return {"data": [s.model_dump() for s in items], "count": len(items)}


@router.get("/{address}")
def get_subscription_endpoint(address: str, clock: Clock = Depends(get_clock)):
    record = get_subscription(address)
    payload = record.model_dump()
    payload["status"] = record.status_at(clock.now()).value
    return {"data": payload}


@router.get("/{address}/check")
def check_subscription_endpoint(address: str, clock: Clock = Depends(get_clock)):
    """Gate access on the ledger clock; callers cannot supply the time."""
    ts = clock.now()
    active = check_subscription(address, now=ts)
    record = get_subscription(address)
    result = CheckResult(address=address, active=active, expires_at=record.expires_at, checked_at=ts)
    return {"data": result.model_dump()}
