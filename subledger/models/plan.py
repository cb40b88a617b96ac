"""
subledger/models/plan.py

Plan record and request schemas.

A plan is a creator-defined offer (name, price, duration). One record per
(creator, plan_id); it never changes after creation.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PlanRecord(BaseModel):
    """
    Stored plan.

    Monetary fields are lamports (smallest currency unit); convert to SOL
    only for display.
    """
    model_config = ConfigDict(frozen=True)

    address: str
    creator: str
    plan_id: int
    name: str
    price: int
    duration_days: int
    created_at: int = Field(description="Unix seconds")
    rent_lamports: int = 0


class CreatePlanRequest(BaseModel):
    # Range checks live in the service so every violation gets its own error code
    plan_id: int
    name: str
    price: int
    duration_days: int


class PlanStats(BaseModel):
    """Recomputed-on-read ranking entry (never persisted)."""
    model_config = ConfigDict(frozen=True)

    plan: PlanRecord
    subscriber_count: int
    total_earned_lamports: int
    total_earned_sol: float
    rank: Optional[int] = None
