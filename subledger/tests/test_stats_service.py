"""Tests for recomputed-on-read plan rankings."""
import pytest

from subledger.core.errors import InvalidArgumentError
from subledger.features.plans.service import create_plan
from subledger.features.stats.service import plan_stats, top_plans
from subledger.features.subscriptions.service import subscribe


@pytest.fixture
def marketplace(fund, clock):
    """Three creators, four plans, subscribers spread unevenly."""
    for who in ("c1", "c2", "c3", "s1", "s2", "s3"):
        fund(who)

    create_plan("c1", 1, "Alpha", 500_000_000, 30)
    clock.advance(1)
    create_plan("c2", 1, "Beta", 100_000_000, 7)
    clock.advance(1)
    create_plan("c3", 1, "Gamma", 200_000_000, 30)
    clock.advance(1)
    create_plan("c3", 2, "Gamma Plus", 900_000_000, 30)

    # Beta: 3 subscribers, Alpha: 1, Gamma Plus: 1, Gamma: 0
    subscribe("s1", "c2", 1)
    subscribe("s2", "c2", 1)
    subscribe("s3", "c2", 1)
    subscribe("s1", "c1", 1)
    subscribe("s2", "c3", 2)


def test_plan_stats_counts_subscribers_per_plan(marketplace):
    by_name = {entry.plan.name: entry for entry in plan_stats()}

    assert by_name["Beta"].subscriber_count == 3
    assert by_name["Beta"].total_earned_lamports == 300_000_000
    assert by_name["Beta"].total_earned_sol == pytest.approx(0.3)
    assert by_name["Alpha"].subscriber_count == 1
    assert by_name["Gamma"].subscriber_count == 0
    assert by_name["Gamma"].total_earned_lamports == 0
    assert by_name["Gamma Plus"].subscriber_count == 1


def test_top_plans_ranked_by_subscribers_then_age(marketplace):
    ranked = top_plans(limit=5)

    assert [e.plan.name for e in ranked] == ["Beta", "Alpha", "Gamma Plus", "Gamma"]
    assert [e.rank for e in ranked] == [1, 2, 3, 4]


def test_top_plans_respects_limit(marketplace):
    assert [e.plan.name for e in top_plans(limit=2)] == ["Beta", "Alpha"]


def test_top_plans_empty_ledger():
    assert top_plans() == []


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_top_plans_rejects_bad_limit(limit):
    with pytest.raises(InvalidArgumentError):
        top_plans(limit=limit)
