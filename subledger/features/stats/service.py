"""
Plan rankings, recomputed on every read.

Nothing here is stored: counts come straight from the plans and
subscriptions tables each time.
"""

from collections import Counter
from typing import List, Tuple

from subledger.core.errors import InvalidArgumentError
from subledger.features.accounts.rent import lamports_to_sol
from subledger.features.plans.service import list_plans
from subledger.features.subscriptions.service import list_subscriptions
from subledger.models.plan import PlanStats

DEFAULT_TOP_LIMIT = 5
MAX_TOP_LIMIT = 100


def plan_stats() -> List[PlanStats]:
    """One entry per plan, in plan creation order."""
    counts: Counter = Counter()
    for sub in list_subscriptions():
        counts[(sub.creator, sub.plan_id)] += 1

    stats = []
    for plan in list_plans():
        count = counts.get((plan.creator, plan.plan_id), 0)
        earned = count * plan.price
        stats.append(
            PlanStats(
                plan=plan,
                subscriber_count=count,
                total_earned_lamports=earned,
                total_earned_sol=lamports_to_sol(earned),
            )
        )
    return stats


def _rank_key(entry: PlanStats) -> Tuple[int, int, str]:
    # Most subscribers first; ties go to the older plan
    return (-entry.subscriber_count, entry.plan.created_at, entry.plan.address)


def top_plans(limit: int = DEFAULT_TOP_LIMIT) -> List[PlanStats]:
    if limit <= 0 or limit > MAX_TOP_LIMIT:
        raise InvalidArgumentError(f"limit must be between 1 and {MAX_TOP_LIMIT}", code="invalid_limit")
    ranked = sorted(plan_stats(), key=_rank_key)[:limit]
    return [entry.model_copy(update={"rank": i + 1}) for i, entry in enumerate(ranked)]
