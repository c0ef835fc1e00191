"""Investment growth projection with principal / simple / compound decomposition."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .money import Money, RateBps, round_half_up
from .months import horizon_months
from .schema import InvestmentBucket, TemplateAllocation


@dataclass(frozen=True, slots=True)
class ProjectionInput:
    name: str
    starting_balance: Money
    expected_annual_return: RateBps
    monthly_contribution: Money
    is_recurring_monthly: bool = True

    @classmethod
    def from_bucket(cls, bucket: InvestmentBucket) -> "ProjectionInput":
        return cls(
            name=bucket.name,
            starting_balance=bucket.starting_balance,
            expected_annual_return=bucket.expected_annual_return,
            monthly_contribution=bucket.monthly_contribution,
            is_recurring_monthly=bucket.is_recurring_monthly,
        )


@dataclass(frozen=True, slots=True)
class ProjectionPoint:
    month_index: int
    total_value: Money
    principal_contributed: Money
    simple_interest_value: Money

    @property
    def compound_earnings_delta(self) -> Money:
        return self.total_value - self.simple_interest_value


@dataclass(frozen=True, slots=True)
class ProjectionSeries:
    name: str
    points: list[ProjectionPoint]

    @property
    def ending_value(self) -> Money:
        return self.points[-1].total_value

    @property
    def ending_principal(self) -> Money:
        return self.points[-1].principal_contributed

    @property
    def ending_simple_interest_value(self) -> Money:
        return self.points[-1].simple_interest_value

    @property
    def ending_compound_earnings_delta(self) -> Money:
        return self.points[-1].compound_earnings_delta


@dataclass(frozen=True, slots=True)
class InflationAdjustedPoint:
    month_index: int
    nominal: Money
    real: Money


@dataclass(slots=True)
class _GrowthState:
    compound_cents: int
    principal_cents: int
    simple_interest_cents: int = 0

    def advance(self, monthly_rate: float, contribution_cents: int) -> None:
        # Compounding applies to the whole balance, the simple baseline to principal only.
        self.compound_cents = round_half_up(self.compound_cents * (1.0 + monthly_rate))
        self.simple_interest_cents += round_half_up(self.principal_cents * monthly_rate)
        self.compound_cents += contribution_cents
        self.principal_cents += contribution_cents

    def point(self, month_index: int) -> ProjectionPoint:
        return ProjectionPoint(
            month_index=month_index,
            total_value=Money(self.compound_cents),
            principal_contributed=Money(self.principal_cents),
            simple_interest_value=Money(self.principal_cents + self.simple_interest_cents),
        )


def project_fixed(projection_input: ProjectionInput, horizon_years: float) -> ProjectionSeries:
    """Project a bucket with a flat monthly contribution (zero if not recurring)."""
    months = horizon_months(horizon_years)
    monthly_rate = projection_input.expected_annual_return.monthly_rate()
    contribution = projection_input.monthly_contribution.cents if projection_input.is_recurring_monthly else 0
    start = projection_input.starting_balance.cents
    state = _GrowthState(compound_cents=start, principal_cents=start)

    points = [state.point(0)]
    for m in range(1, months + 1):
        state.advance(monthly_rate, contribution)
        points.append(state.point(m))
    return ProjectionSeries(name=projection_input.name, points=points)


def project_variable(
    name: str,
    starting_balance: Money,
    expected_annual_return: RateBps,
    monthly_contributions_cents: Sequence[int],
) -> ProjectionSeries:
    """Project a balance fed by a per-month contribution stream.

    Point ``m + 1`` is point ``m`` grown one month plus contribution
    ``m + 1``. Contribution 0 is never applied.
    """
    monthly_rate = expected_annual_return.monthly_rate()
    months = max(0, len(monthly_contributions_cents) - 1)
    start = max(0, starting_balance.cents)
    state = _GrowthState(compound_cents=start, principal_cents=start)

    points: list[ProjectionPoint] = []
    for m in range(months + 1):
        points.append(state.point(m))
        if m == months:
            break
        contribution = monthly_contributions_cents[m + 1] if m + 1 < len(monthly_contributions_cents) else 0
        state.advance(monthly_rate, max(0, contribution))
    return ProjectionSeries(name=name, points=points)


def project_template(template: TemplateAllocation, monthly_contributions_cents: Sequence[int]) -> ProjectionSeries:
    return project_variable(template.name, Money.zero(), template.expected_annual_return, monthly_contributions_cents)


def adjust_to_real(
    points: Sequence[tuple[int, Money]],
    assumed_annual_inflation: RateBps,
) -> list[InflationAdjustedPoint]:
    """Discount ``(month_index, nominal)`` pairs to today's money."""
    monthly_inflation = assumed_annual_inflation.monthly_rate()
    out: list[InflationAdjustedPoint] = []
    for month_index, nominal in points:
        factor = (1.0 + monthly_inflation) ** month_index
        real = round_half_up(nominal.cents / factor) if factor > 0 else nominal.cents
        out.append(InflationAdjustedPoint(month_index=month_index, nominal=nominal, real=Money(real)))
    return out
