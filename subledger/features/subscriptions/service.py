"""
subledger/features/subscriptions/service.py

Subscription ledger.

subscribe() is the only operation that moves funds between two parties. It
runs as one transaction: the price transfer, the rent debit and the new
record either all commit or none do.
"""

from typing import Optional, List
from sqlalchemy import select, insert
from sqlalchemy.exc import IntegrityError

from subledger.core.addressing import I64_MAX, normalize_identity, plan_address, subscription_address
from subledger.core.clock import Clock, resolve_now
from subledger.core.config import settings
from subledger.core.database import get_db_session, plans, subscriptions
from subledger.core.errors import (
    AlreadyExistsError,
    InsufficientFundsError,
    InvalidArgumentError,
    NotFoundError,
)
from subledger.core.logging import log_event
from subledger.features.accounts.balance import credit, debit, get_balance_in
from subledger.features.accounts.rent import subscription_rent
from subledger.models.subscription import SubscriptionRecord

SECONDS_PER_DAY = 86400


def _row_to_subscription(row) -> SubscriptionRecord:
    return SubscriptionRecord(
        address=row.address,
        subscriber=row.subscriber,
        creator=row.creator,
        plan_id=int(row.plan_id),
        created_at=int(row.created_at),
        expires_at=int(row.expires_at),
        rent_lamports=int(row.rent_lamports),
    )


def compute_expiry(created_at: int, duration_days: int) -> int:
    """
    created_at + duration_days days.

    Raises:
        InvalidArgumentError: non-positive duration or i64 overflow
    """
    if duration_days <= 0:
        raise InvalidArgumentError("Duration must be at least 1 day", code="invalid_duration")
    expires_at = created_at + duration_days * SECONDS_PER_DAY
    if expires_at > I64_MAX:
        raise InvalidArgumentError("Expiry timestamp overflows", code="math_overflow")
    return expires_at


def _already_subscribed(subscriber: str, creator: str, address: str) -> AlreadyExistsError:
    return AlreadyExistsError(
        f"{subscriber} already holds a subscription to {creator} at {address}",
        code="subscription_already_exists",
    )


def subscribe(
    subscriber: str,
    creator: str,
    plan_id: int,
    *,
    clock: Optional[Clock] = None,
) -> SubscriptionRecord:
    """
    Pay for and activate a subscription to (creator, plan_id).

    Subscriber is debited price + rent; creator is credited price.

    Raises:
        NotFoundError: no such plan
        InvalidArgumentError: subscriber is the creator, or the plan's duration is unusable
        AlreadyExistsError: subscriber already has a subscription record for this creator
        InsufficientFundsError: subscriber cannot cover price + rent (+ fee buffer)
    """
    subscriber = normalize_identity(subscriber, "subscriber")
    creator = normalize_identity(creator, "creator")
    p_address = plan_address(creator, plan_id)
    s_address = subscription_address(subscriber, creator)
    now = resolve_now(clock)
    rent = subscription_rent()

    with get_db_session() as session:
        plan = session.execute(
            select(plans).where(plans.c.address == p_address)
        ).fetchone()
        if not plan:
            raise NotFoundError(
                f"No plan {plan_id} for creator {creator}",
                code="plan_not_found",
            )

        if subscriber == plan.creator:
            raise InvalidArgumentError(
                "Cannot subscribe to your own plan",
                code="cannot_subscribe_to_own_plan",
            )

        price = int(plan.price)
        expires_at = compute_expiry(now, int(plan.duration_days))

        existing = session.execute(
            select(subscriptions.c.address).where(subscriptions.c.address == s_address)
        ).fetchone()
        if existing:
            raise _already_subscribed(subscriber, creator, s_address)

        total_required = price + rent + settings.FEE_BUFFER_LAMPORTS
        balance = get_balance_in(session, subscriber)
        if balance < total_required:
            raise InsufficientFundsError(
                f"Insufficient funds to subscribe: need {total_required} lamports (price + rent), have {balance}",
                code="insufficient_funds",
            )

        debit(session, subscriber, price + rent, now)
        credit(session, plan.creator, price, now)

        try:
            session.execute(
                insert(subscriptions).values(
                    address=s_address,
                    subscriber=subscriber,
                    creator=plan.creator,
                    plan_id=str(plan_id),
                    created_at=now,
                    expires_at=expires_at,
                    rent_lamports=rent,
                )
            )
            session.flush()
        except IntegrityError:
            raise _already_subscribed(subscriber, creator, s_address)

    record = SubscriptionRecord(
        address=s_address,
        subscriber=subscriber,
        creator=creator,
        plan_id=plan_id,
        created_at=now,
        expires_at=expires_at,
        rent_lamports=rent,
    )
    log_event(
        "info",
        "subscription.created",
        signer=subscriber,
        address=s_address,
        event_type="subscribe",
        extra={"creator": creator, "plan_id": plan_id, "price": price, "expires_at": expires_at},
    )
    return record


def get_subscription(address: str) -> SubscriptionRecord:
    """
    Raises:
        NotFoundError: no subscription at this address
    """
    with get_db_session() as session:
        row = session.execute(
            select(subscriptions).where(subscriptions.c.address == address)
        ).fetchone()
    if not row:
        raise NotFoundError(f"No subscription at address {address}", code="subscription_not_found")
    return _row_to_subscription(row)


def get_subscription_by_pair(subscriber: str, creator: str) -> SubscriptionRecord:
    return get_subscription(subscription_address(subscriber, creator))


def list_subscriptions(
    subscriber: Optional[str] = None,
    creator: Optional[str] = None,
) -> List[SubscriptionRecord]:
    query = select(subscriptions).order_by(subscriptions.c.created_at, subscriptions.c.address)
    if subscriber:
        query = query.where(subscriptions.c.subscriber == normalize_identity(subscriber, "subscriber"))
    if creator:
        query = query.where(subscriptions.c.creator == normalize_identity(creator, "creator"))
    with get_db_session() as session:
        rows = session.execute(query).fetchall()
    return [_row_to_subscription(row) for row in rows]
