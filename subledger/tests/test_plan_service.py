"""
Tests for the plan registry.

Covers:
- Plan creation and stored fields
- Duplicate (creator, plan_id) rejection
- Input validation codes
- Rent paid by the creator
"""
import pytest

from subledger.core.addressing import plan_address
from subledger.core.errors import (
    AlreadyExistsError,
    ErrorKind,
    InsufficientFundsError,
    InvalidArgumentError,
    NotFoundError,
)
from subledger.features.accounts.balance import get_balance
from subledger.features.accounts.rent import LAMPORTS_PER_SOL, plan_rent
from subledger.features.plans.service import create_plan, get_plan, get_plan_by_key, list_plans

PREMIUM_PRICE = 500_000_000


class TestCreatePlan:
    def test_create_plan_stores_record(self, fund, clock):
        """Scenario: creator A registers plan 1 'Premium'."""
        fund("creator-a")

        plan = create_plan("creator-a", 1, "Premium", PREMIUM_PRICE, 30)

        assert plan.address == plan_address("creator-a", 1)
        assert plan.creator == "creator-a"
        assert plan.plan_id == 1
        assert plan.name == "Premium"
        assert plan.price == PREMIUM_PRICE
        assert plan.duration_days == 30
        assert plan.created_at == clock.now()

        stored = get_plan(plan.address)
        assert stored == plan

    def test_duplicate_plan_rejected_and_first_unchanged(self, fund, clock):
        fund("creator-a")
        first = create_plan("creator-a", 1, "Premium", PREMIUM_PRICE, 30)
        balance_after_first = get_balance("creator-a").lamports

        clock.advance(60)
        with pytest.raises(AlreadyExistsError) as exc:
            create_plan("creator-a", 1, "Other name", 1, 7)

        assert exc.value.kind == ErrorKind.ALREADY_EXISTS
        assert get_plan(first.address) == first
        # No second rent charge
        assert get_balance("creator-a").lamports == balance_after_first

    def test_same_plan_id_different_creators_are_independent(self, fund):
        fund("creator-a")
        fund("creator-b")

        a = create_plan("creator-a", 1, "A plan", PREMIUM_PRICE, 30)
        b = create_plan("creator-b", 1, "B plan", PREMIUM_PRICE, 30)

        assert a.address != b.address

    def test_one_creator_can_publish_many_plans(self, fund):
        fund("creator-a")
        create_plan("creator-a", 1, "Basic", 100, 7)
        create_plan("creator-a", 2, "Pro", 200, 30)

        assert [p.plan_id for p in list_plans(creator="creator-a")] == [1, 2]

    def test_creator_pays_rent(self, fund):
        fund("creator-a", LAMPORTS_PER_SOL)

        plan = create_plan("creator-a", 1, "Premium", PREMIUM_PRICE, 30)

        assert plan.rent_lamports == plan_rent()
        assert get_balance("creator-a").lamports == LAMPORTS_PER_SOL - plan_rent()

    def test_unfunded_creator_cannot_create_plan(self):
        with pytest.raises(InsufficientFundsError) as exc:
            create_plan("creator-broke", 1, "Premium", PREMIUM_PRICE, 30)

        assert exc.value.code == "insufficient_funds_to_create_plan"
        assert list_plans() == []

    def test_name_is_trimmed(self, fund):
        fund("creator-a")
        plan = create_plan("creator-a", 1, "  Premium  ", PREMIUM_PRICE, 30)
        assert plan.name == "Premium"


@pytest.mark.parametrize(
    "plan_id,name,price,duration_days,code",
    [
        (1, "", PREMIUM_PRICE, 30, "empty_plan_name"),
        (1, "   ", PREMIUM_PRICE, 30, "empty_plan_name"),
        (1, "x" * 201, PREMIUM_PRICE, 30, "plan_name_too_long"),
        (1, "\u00e9" * 101, PREMIUM_PRICE, 30, "plan_name_too_long"),
        (1, " " + "x" * 200, PREMIUM_PRICE, 30, "plan_name_too_long"),
        (1, "Premium", 0, 30, "invalid_price"),
        (1, "Premium", -5, 30, "invalid_price"),
        (1, "Premium", 1_000_000_000_001, 30, "price_too_high"),
        (1, "Premium", PREMIUM_PRICE, 0, "invalid_duration"),
        (1, "Premium", PREMIUM_PRICE, 366, "duration_too_long"),
        (-1, "Premium", PREMIUM_PRICE, 30, "out_of_range"),
        (2 ** 64, "Premium", PREMIUM_PRICE, 30, "out_of_range"),
    ],
)
def test_invalid_plan_inputs(fund, plan_id, name, price, duration_days, code):
    fund("creator-a")
    before = get_balance("creator-a").lamports

    with pytest.raises(InvalidArgumentError) as exc:
        create_plan("creator-a", plan_id, name, price, duration_days)

    assert exc.value.code == code
    assert exc.value.kind == ErrorKind.INVALID_ARGUMENT
    assert get_balance("creator-a").lamports == before
    assert list_plans() == []


def test_boundary_values_accepted(fund):
    fund("creator-a")
    plan = create_plan("creator-a", 2 ** 64 - 1, "x" * 200, 1_000_000_000_000, 365)
    assert get_plan_by_key("creator-a", 2 ** 64 - 1) == plan


def test_get_missing_plan_is_not_found():
    with pytest.raises(NotFoundError):
        get_plan(plan_address("nobody", 9))
