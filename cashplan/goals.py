"""Goal fund projection and planning helpers."""

from __future__ import annotations

from dataclasses import dataclass

from .money import Money, round_half_up
from .months import add_months, current_month, horizon_months, months_between, start_offset
from .schema import GoalFund


@dataclass(frozen=True, slots=True)
class GoalProjectionPoint:
    month_index: int
    balance: Money
    contributed_principal: Money
    is_target_reached: bool


@dataclass(frozen=True, slots=True)
class GoalProjection:
    points: list[GoalProjectionPoint]
    target_reached_month_index: int | None


def is_target_reached(balance_cents: int, target_cents: int) -> bool:
    return target_cents > 0 and balance_cents >= target_cents


def grow_goal_balance(balance_cents: int, target_cents: int, monthly_rate: float) -> int:
    """One month of growth; a goal that already hit its target is done and stays flat."""
    if is_target_reached(balance_cents, target_cents):
        return balance_cents
    return round_half_up(balance_cents * (1.0 + monthly_rate))


def cap_goal_contribution(grown_balance_cents: int, target_cents: int, planned_cents: int) -> int:
    """Largest part of ``planned_cents`` the goal can take without overshooting its target."""
    planned = max(0, planned_cents)
    if target_cents <= 0:
        return planned
    return min(planned, max(0, target_cents - grown_balance_cents))


def goal_start_offset(goal: GoalFund, timeline_start: str) -> int:
    try:
        return start_offset(timeline_start, goal.start_date)
    except ValueError:
        return 0


def project_goal(goal: GoalFund, horizon_years: float, timeline_start: str | None = None) -> GoalProjection:
    """Project a goal balance month by month with its own planned contribution.

    Point ``m`` is the balance at the start of month ``m``; growth is applied
    before that month's contribution.
    """
    timeline_start = timeline_start or current_month()
    months = horizon_months(horizon_years)
    target = max(0, goal.target_amount.cents)
    monthly_rate = goal.expected_annual_return.monthly_rate()
    planned = max(0, goal.monthly_contribution.cents)
    offset = goal_start_offset(goal, timeline_start)

    balance = max(0, goal.current_balance.cents)
    contributed = 0
    reached_at: int | None = None
    points: list[GoalProjectionPoint] = []

    for m in range(months + 1):
        reached = is_target_reached(balance, target)
        if reached and reached_at is None:
            reached_at = m
        points.append(
            GoalProjectionPoint(
                month_index=m,
                balance=Money(balance),
                contributed_principal=Money(contributed),
                is_target_reached=reached,
            )
        )
        if m == months or m < offset:
            continue

        balance = grow_goal_balance(balance, target, monthly_rate)
        contribution = cap_goal_contribution(balance, target, planned)
        balance += contribution
        contributed += contribution

    return GoalProjection(points=points, target_reached_month_index=reached_at)


def compute_monthly_contribution(
    current_balance: Money,
    target_amount: Money,
    start_date: str,
    target_date: str,
) -> Money:
    """Monthly contribution needed to close the gap to target by ``target_date``."""
    remaining = max(0, max(0, target_amount.cents) - max(0, current_balance.cents))
    if remaining <= 0:
        return Money.zero()
    months = max(1, months_between(start_date, target_date))
    return Money(-(-remaining // months))


def compute_target_date(
    current_balance: Money,
    target_amount: Money,
    start_date: str,
    monthly_contribution: Money,
) -> str | None:
    """Month the goal is reached at ``monthly_contribution``; None if it never is."""
    remaining = max(0, max(0, target_amount.cents) - max(0, current_balance.cents))
    if remaining <= 0:
        return add_months(start_date, 0)
    monthly = max(0, monthly_contribution.cents)
    if monthly <= 0:
        return None
    return add_months(start_date, -(-remaining // monthly))
