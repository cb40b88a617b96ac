"""
subledger/models/subscription.py

Subscription record: a subscriber's paid, time-bounded relationship to one
creator. Lifecycle is active -> expired, driven only by time.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class SubscriptionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    subscriber: str
    creator: str
    plan_id: int
    created_at: int = Field(description="Unix seconds")
    expires_at: int = Field(description="Unix seconds, exclusive")
    rent_lamports: int = 0

    def status_at(self, now: int) -> SubscriptionStatus:
        if now < self.expires_at:
            return SubscriptionStatus.ACTIVE
        return SubscriptionStatus.EXPIRED


class SubscribeRequest(BaseModel):
    creator: str
    plan_id: int


class CheckResult(BaseModel):
    address: str
    active: bool
    expires_at: int
    checked_at: int
