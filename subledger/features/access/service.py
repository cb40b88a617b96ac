"""
Access checks over stored subscriptions.

A check never writes. It distinguishes three outcomes:
- no record at the address: NotFoundError
- record past its expiry (now >= expires_at): ExpiredError
- record still active: True
"""

from typing import Optional

from subledger.core.addressing import subscription_address
from subledger.core.clock import Clock, resolve_now
from subledger.core.errors import ExpiredError
from subledger.core.logging import log_event
from subledger.features.subscriptions.service import get_subscription
from subledger.models.subscription import SubscriptionRecord, SubscriptionStatus


def is_active(record: SubscriptionRecord, now: int) -> bool:
    return record.status_at(now) == SubscriptionStatus.ACTIVE


def assert_active(record: SubscriptionRecord, now: int) -> bool:
    if not is_active(record, now):
        raise ExpiredError(
            f"Subscription has expired (expired at {record.expires_at}, now {now})",
        )
    return True


def check_subscription(
    address: str,
    *,
    clock: Optional[Clock] = None,
    now: Optional[int] = None,
) -> bool:
    """
    Return True if the subscription at `address` is active.

    Raises:
        NotFoundError: no subscription at `address`
        ExpiredError: subscription exists but has expired
    """
    record = get_subscription(address)
    ts = resolve_now(clock, now)
    try:
        return assert_active(record, ts)
    finally:
        log_event(
            "info",
            "subscription.check",
            address=address,
            event_type="check_subscription",
            extra={"active": is_active(record, ts), "expires_at": record.expires_at},
        )


def check_subscription_for(
    subscriber: str,
    creator: str,
    *,
    clock: Optional[Clock] = None,
    now: Optional[int] = None,
) -> bool:
    return check_subscription(subscription_address(subscriber, creator), clock=clock, now=now)
