"""
Lamport balances.

Session-level helpers (`debit`, `credit`, `get_balance_in`) run inside the
caller's transaction so a payment and the record it pays for commit together.
`airdrop` and `get_balance` are the standalone entry points.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select, insert, update
from sqlalchemy.orm import Session

from subledger.core.addressing import I64_MAX, normalize_identity
from subledger.core.clock import Clock, resolve_now
from subledger.core.config import settings
from subledger.core.database import get_db_session, accounts
from subledger.core.errors import InvalidArgumentError, InsufficientFundsError, AppError
from subledger.core.logging import log_event
from subledger.features.accounts.rent import lamports_to_sol
from subledger.models.account import AccountBalance


def get_balance_in(session: Session, identity: str) -> int:
    row = session.execute(
        select(accounts.c.lamports).where(accounts.c.identity == identity)
    ).fetchone()
    return int(row[0]) if row else 0


def _ensure_account(session: Session, identity: str, now: int) -> None:
    exists = session.execute(
        select(accounts.c.identity).where(accounts.c.identity == identity)
    ).fetchone()
    if not exists:
        session.execute(insert(accounts).values(identity=identity, lamports=0, updated_at=now))


def credit(session: Session, identity: str, lamports: int, now: int) -> None:
    if lamports < 0:
        raise InvalidArgumentError("credit amount must not be negative", code="invalid_amount")
    _ensure_account(session, identity, now)
    if get_balance_in(session, identity) + lamports > I64_MAX:
        raise InvalidArgumentError("balance would overflow", code="math_overflow")
    session.execute(
        update(accounts)
        .where(accounts.c.identity == identity)
        .values(lamports=accounts.c.lamports + lamports, updated_at=now)
    )


def debit(
    session: Session,
    identity: str,
    lamports: int,
    now: int,
    *,
    error_code: str = "insufficient_funds",
) -> None:
    """
    Remove lamports from an account.

    The guard sits in the UPDATE itself, so two racing debits can never both
    pass a stale balance check.
    """
    if lamports < 0:
        raise InvalidArgumentError("debit amount must not be negative", code="invalid_amount")
    result = session.execute(
        update(accounts)
        .where(accounts.c.identity == identity)
        .where(accounts.c.lamports >= lamports)
        .values(lamports=accounts.c.lamports - lamports, updated_at=now)
    )
    if result.rowcount != 1:
        raise InsufficientFundsError(
            f"{identity} cannot cover {lamports} lamports",
            code=error_code,
        )


def get_balance(identity: str) -> AccountBalance:
    """Current balance; unknown identities hold 0."""
    identity = normalize_identity(identity)
    with get_db_session() as session:
        lamports = get_balance_in(session, identity)
    return AccountBalance(identity=identity, lamports=lamports, sol=lamports_to_sol(lamports))


def airdrop(
    identity: str,
    lamports: int,
    *,
    clock: Optional[Clock] = None,
) -> AccountBalance:
    """
    Credit dev funds to an identity.

    Raises:
        AppError: airdrops disabled by configuration
        InvalidArgumentError: lamports not positive
    """
    if not settings.AIRDROP_ENABLED:
        raise AppError("Airdrops are disabled", code="airdrop_disabled", status_code=403)
    identity = normalize_identity(identity)
    if isinstance(lamports, bool) or not isinstance(lamports, int) or lamports <= 0:
        raise InvalidArgumentError("Airdrop amount must be greater than 0", code="invalid_amount")

    now = resolve_now(clock)
    with get_db_session() as session:
        credit(session, identity, lamports, now)
        balance = get_balance_in(session, identity)

    log_event(
        "info",
        "account.airdrop",
        address=identity,
        event_type="airdrop",
        extra={"lamports": lamports, "balance": balance},
    )
    return AccountBalance(identity=identity, lamports=balance, sol=lamports_to_sol(balance))
