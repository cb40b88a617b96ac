"""
subledger/features/plans/service.py

Plan registry.

Handles:
- Plan creation (one record per (creator, plan_id), creator pays rent)
- Plan lookup by address or key
- Plan listing for read-only aggregation
"""

from typing import Optional, List
from sqlalchemy import select, insert
from sqlalchemy.exc import IntegrityError

from subledger.core.addressing import U64_MAX, U32_MAX, normalize_identity, plan_address
from subledger.core.clock import Clock, resolve_now
from subledger.core.config import settings
from subledger.core.database import get_db_session, plans
from subledger.core.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from subledger.core.logging import log_event
from subledger.features.accounts.balance import debit
from subledger.features.accounts.rent import plan_rent
from subledger.models.plan import PlanRecord


def _row_to_plan(row) -> PlanRecord:
    return PlanRecord(
        address=row.address,
        creator=row.creator,
        plan_id=int(row.plan_id),
        name=row.name,
        price=int(row.price),
        duration_days=int(row.duration_days),
        created_at=int(row.created_at),
        rent_lamports=int(row.rent_lamports),
    )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_plan_terms(plan_id: int, name: str, price: int, duration_days: int) -> str:
    """
    Check plan inputs and return the trimmed name.

    Raises:
        InvalidArgumentError: with a code naming the violated rule
    """
    if not _is_int(plan_id) or plan_id < 0 or plan_id > U64_MAX:
        raise InvalidArgumentError("plan_id must fit in an unsigned 64-bit integer", code="out_of_range")

    if not _is_int(price) or price <= 0:
        raise InvalidArgumentError("Price must be greater than 0", code="invalid_price")
    if price > settings.MAX_PLAN_PRICE:
        raise InvalidArgumentError(
            f"Price exceeds maximum allowed ({settings.MAX_PLAN_PRICE} lamports)",
            code="price_too_high",
        )

    if not _is_int(duration_days) or duration_days <= 0:
        raise InvalidArgumentError("Duration must be at least 1 day", code="invalid_duration")
    if duration_days > min(settings.MAX_DURATION_DAYS, U32_MAX):
        raise InvalidArgumentError(
            f"Duration exceeds maximum allowed ({settings.MAX_DURATION_DAYS} days)",
            code="duration_too_long",
        )

    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidArgumentError("Plan name cannot be empty", code="empty_plan_name")
    # The record reserves MAX_PLAN_NAME_LENGTH bytes for the name as submitted
    if len((name or "").encode("utf-8")) > settings.MAX_PLAN_NAME_LENGTH:
        raise InvalidArgumentError(
            f"Plan name exceeds maximum length ({settings.MAX_PLAN_NAME_LENGTH} bytes)",
            code="plan_name_too_long",
        )
    return trimmed


def create_plan(
    creator: str,
    plan_id: int,
    name: str,
    price: int,
    duration_days: int,
    *,
    clock: Optional[Clock] = None,
) -> PlanRecord:
    """
    Register a plan for `creator`.

    The creator is debited the record's rent; no other funds move.

    Returns:
        The stored PlanRecord (its `address` identifies it from now on)

    Raises:
        InvalidArgumentError: bad name/price/duration/plan_id
        AlreadyExistsError: (creator, plan_id) already registered
        InsufficientFundsError: creator cannot fund the record's rent
    """
    creator = normalize_identity(creator, "creator")
    trimmed_name = validate_plan_terms(plan_id, name, price, duration_days)
    address = plan_address(creator, plan_id)
    now = resolve_now(clock)
    rent = plan_rent()

    with get_db_session() as session:
        existing = session.execute(
            select(plans.c.address).where(plans.c.address == address)
        ).fetchone()
        if existing:
            raise AlreadyExistsError(
                f"Plan {plan_id} for creator {creator} already exists at {address}",
                code="plan_already_exists",
            )

        debit(session, creator, rent, now, error_code="insufficient_funds_to_create_plan")

        try:
            session.execute(
                insert(plans).values(
                    address=address,
                    creator=creator,
                    plan_id=str(plan_id),
                    name=trimmed_name,
                    price=price,
                    duration_days=duration_days,
                    created_at=now,
                    rent_lamports=rent,
                )
            )
            session.flush()
        except IntegrityError:
            # Lost a race against a concurrent creation of the same address
            raise AlreadyExistsError(
                f"Plan {plan_id} for creator {creator} already exists at {address}",
                code="plan_already_exists",
            )

    record = PlanRecord(
        address=address,
        creator=creator,
        plan_id=plan_id,
        name=trimmed_name,
        price=price,
        duration_days=duration_days,
        created_at=now,
        rent_lamports=rent,
    )
    log_event(
        "info",
        "plan.created",
        signer=creator,
        address=address,
        event_type="create_plan",
        extra={"plan_id": plan_id, "price": price, "duration_days": duration_days},
    )
    return record


def get_plan(address: str) -> PlanRecord:
    """
    Raises:
        NotFoundError: no plan at this address
    """
    with get_db_session() as session:
        row = session.execute(
            select(plans).where(plans.c.address == address)
        ).fetchone()
    if not row:
        raise NotFoundError(f"No plan at address {address}", code="plan_not_found")
    return _row_to_plan(row)


def get_plan_by_key(creator: str, plan_id: int) -> PlanRecord:
    return get_plan(plan_address(creator, plan_id))


def list_plans(creator: Optional[str] = None) -> List[PlanRecord]:
    """All plans, oldest first; optionally only one creator's."""
    query = select(plans).order_by(plans.c.created_at, plans.c.address)
    if creator:
        query = query.where(plans.c.creator == normalize_identity(creator, "creator"))
    with get_db_session() as session:
        rows = session.execute(query).fetchall()
    return [_row_to_plan(row) for row in rows]
