# subledger/conftest.py
import os
import pytest

# Every test runs against a private in-memory SQLite ledger
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")

from subledger.core.clock import FixedClock, set_clock
from subledger.core.database import init_engine, dispose_engine, create_all_tables

LAMPORTS_PER_SOL = 1_000_000_000
T0 = 1_700_000_000


@pytest.fixture(scope="function", autouse=True)
def ledger_db():
    """
    Fresh, empty ledger for each test.

    A new StaticPool engine over "sqlite://" is a brand new database.
    """
    init_engine("sqlite://")
    create_all_tables()
    yield
    dispose_engine()


@pytest.fixture(scope="function", autouse=True)
def faucet(monkeypatch):
    """Tests fund accounts through the airdrop faucet, which ships disabled."""
    from subledger.core.config import settings

    monkeypatch.setattr(settings, "AIRDROP_ENABLED", True)


@pytest.fixture(scope="function", autouse=True)
def clock():
    """Freeze ledger time at T0; tests move it with clock.advance()."""
    fixed = FixedClock(T0)
    previous = set_clock(fixed)
    yield fixed
    set_clock(previous)


@pytest.fixture
def fund():
    """Airdrop helper: fund("alice", 10 * LAMPORTS_PER_SOL)."""
    from subledger.features.accounts.balance import airdrop

    def _fund(identity: str, lamports: int = 10 * LAMPORTS_PER_SOL):
        return airdrop(identity, lamports)

    return _fund
