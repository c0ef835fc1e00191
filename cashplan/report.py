"""Dashboard summary, redirect impact comparison and timeline export."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
from pathlib import Path

from .debts import compute_monthly_payment_from_debt, origination_offset
from .engine import Timeline, TimelineSeries, build_timeline
from .investments import InflationAdjustedPoint, ProjectionSeries, adjust_to_real, project_template, project_variable
from .money import Money
from .months import add_months, current_month, parse_ym
from .redirects import IndexedRuleTable, RedirectApplication
from .registered import RoomSummary, build_room_summaries
from .schema import (
    DEST_DEBT_LOAN,
    DEST_GOAL_FUND,
    DEST_INVESTMENT_BUCKET,
    DEST_UNALLOCATED,
    SOURCE_DEBT_LOAN,
    SOURCE_GOAL_FUND,
    SOURCE_REGISTERED_ROOM,
    Session,
    TargetDatePlan,
)

NOT_WITHIN_HORIZON = "Not within horizon"


@dataclass(frozen=True, slots=True)
class AllocationSegment:
    key: str
    label: str
    cents: int
    is_locked: bool = False


@dataclass(frozen=True, slots=True)
class UpcomingDebt:
    debt_id: str
    name: str
    start_date: str
    planned_payment_cents: int


@dataclass(frozen=True, slots=True)
class EarningsDecomposition:
    principal_cents: int
    simple_interest_total_cents: int
    compound_total_cents: int
    compound_delta_cents: int


@dataclass(slots=True)
class Dashboard:
    net_income_monthly: Money
    allocated_cents: int
    is_over_allocated: bool
    shortfall_cents: int
    segments: list[AllocationSegment]
    upcoming_debts: list[UpcomingDebt]
    tax_year: int
    room_summaries: list[RoomSummary]
    nominal_vs_real: list[InflationAdjustedPoint]
    earnings: EarningsDecomposition


@dataclass(frozen=True, slots=True)
class MonthComparison:
    entity_id: str
    name: str
    was_month_index: int | None
    now_month_index: int | None
    was_label: str
    now_label: str

    @property
    def months_saved(self) -> int | None:
        if self.was_month_index is None or self.now_month_index is None:
            return None
        return self.was_month_index - self.now_month_index


@dataclass(slots=True)
class RedirectImpact:
    debts: list[MonthComparison] = field(default_factory=list)
    goals: list[MonthComparison] = field(default_factory=list)


def month_label(start_month: str, month_index: int | None) -> str:
    if month_index is None:
        return NOT_WITHIN_HORIZON
    return add_months(start_month, month_index)


def _build_segments(session: Session, net_income_monthly: Money, timeline_start: str) -> tuple[list[AllocationSegment], list[UpcomingDebt]]:
    segments = [AllocationSegment("household", "Household", max(0, session.household_allocated_monthly.cents))]
    upcoming: list[UpcomingDebt] = []

    for bucket in session.investments:
        cents = bucket.monthly_contribution.cents if bucket.is_recurring_monthly else 0
        segments.append(AllocationSegment(f"investment:{bucket.id}", bucket.name, max(0, cents)))
    for template in session.templates:
        segments.append(AllocationSegment(f"template:{template.id}", template.name, max(0, template.monthly_allocation.cents)))
    for goal in session.goal_funds:
        segments.append(AllocationSegment(f"goal_fund:{goal.id}", goal.name, max(0, goal.monthly_contribution.cents)))
    for debt in session.debts:
        payment = compute_monthly_payment_from_debt(debt, timeline_start).cents
        if origination_offset(debt, timeline_start) > 0:
            upcoming.append(UpcomingDebt(debt.id, debt.name, debt.start_date or timeline_start, payment))
            continue
        # Target-date payments are derived, not chosen.
        segments.append(
            AllocationSegment(f"debt:{debt.id}", debt.name, max(0, payment), is_locked=isinstance(debt.payoff_plan, TargetDatePlan))
        )

    allocated = sum(s.cents for s in segments)
    segments.append(AllocationSegment("unallocated", "Unallocated", max(0, net_income_monthly.cents - allocated)))
    return segments, upcoming


def _investment_projections(session: Session, timeline: Timeline) -> list[ProjectionSeries]:
    by_id = {series.id: series for series in timeline.investment_series}
    templates_by_id = {series.id: series for series in timeline.template_series}
    empty = [0] * (timeline.months + 1)
    projections = [
        project_variable(
            bucket.name,
            bucket.starting_balance,
            bucket.expected_annual_return,
            by_id[bucket.id].monthly_cents if bucket.id in by_id else empty,
        )
        for bucket in session.investments
    ]
    projections.extend(
        project_template(template, templates_by_id[template.id].monthly_cents if template.id in templates_by_id else empty)
        for template in session.templates
    )
    return projections


def _earnings(projections: list[ProjectionSeries]) -> EarningsDecomposition:
    principal = sum(p.ending_principal.cents for p in projections)
    simple_total = sum(p.ending_simple_interest_value.cents for p in projections)
    compound_total = sum(p.ending_value.cents for p in projections)
    return EarningsDecomposition(
        principal_cents=principal,
        simple_interest_total_cents=simple_total,
        compound_total_cents=compound_total,
        compound_delta_cents=compound_total - simple_total,
    )


def build_dashboard(
    session: Session,
    net_income_monthly: Money = Money(0),
    start_month: str | None = None,
    timeline: Timeline | None = None,
) -> Dashboard:
    timeline_start = start_month or (timeline.start_month if timeline else current_month())
    timeline = timeline or build_timeline(session, timeline_start)
    tax_year = session.tax_year if session.tax_year is not None else parse_ym(timeline_start)[0]

    segments, upcoming = _build_segments(session, net_income_monthly, timeline_start)
    allocated = sum(s.cents for s in segments if s.key != "unallocated")

    projections = _investment_projections(session, timeline)
    nominal = [
        (m, Money(sum(p.points[m].total_value.cents for p in projections)))
        for m in range(timeline.months + 1)
    ]

    return Dashboard(
        net_income_monthly=net_income_monthly,
        allocated_cents=allocated,
        is_over_allocated=allocated > net_income_monthly.cents,
        shortfall_cents=max(0, allocated - net_income_monthly.cents),
        segments=segments,
        upcoming_debts=upcoming,
        tax_year=tax_year,
        room_summaries=build_room_summaries(session, tax_year),
        nominal_vs_real=adjust_to_real(nominal, session.assumed_annual_inflation),
        earnings=_earnings(projections),
    )


def build_impact(session: Session, start_month: str | None = None) -> RedirectImpact:
    """Compare payoff and target-reached months without ("was") and with ("now") redirect rules."""
    timeline_start = start_month or current_month()
    was = build_timeline(session, timeline_start, rules=IndexedRuleTable(()))
    now = build_timeline(session, timeline_start)

    def _compare(entity_id: str, name: str, was_idx: int | None, now_idx: int | None) -> MonthComparison:
        return MonthComparison(
            entity_id=entity_id,
            name=name,
            was_month_index=was_idx,
            now_month_index=now_idx,
            was_label=month_label(timeline_start, was_idx),
            now_label=month_label(timeline_start, now_idx),
        )

    return RedirectImpact(
        debts=[
            _compare(d.id, d.name, was.debt_payoff_month_index.get(d.id), now.debt_payoff_month_index.get(d.id))
            for d in session.debts
        ],
        goals=[
            _compare(
                g.id,
                g.name,
                was.goal_target_reached_month_index.get(g.id),
                now.goal_target_reached_month_index.get(g.id),
            )
            for g in session.goal_funds
        ],
    )


def _entity_names(session: Session) -> dict[tuple[str, str], str]:
    names: dict[tuple[str, str], str] = {}
    for goal in session.goal_funds:
        names.setdefault((DEST_GOAL_FUND, goal.id), goal.name)
    for bucket in session.investments:
        names.setdefault((DEST_INVESTMENT_BUCKET, bucket.id), bucket.name)
    for debt in session.debts:
        names.setdefault((DEST_DEBT_LOAN, debt.id), debt.name)
    return names


def _source_label(names: dict[tuple[str, str], str], application: RedirectApplication) -> str:
    if application.source_kind == SOURCE_GOAL_FUND:
        return f"{names.get((DEST_GOAL_FUND, application.source_id), application.source_id)} (goal reached)"
    if application.source_kind == SOURCE_DEBT_LOAN:
        return f"{names.get((DEST_DEBT_LOAN, application.source_id), application.source_id)} (debt paid down)"
    if application.source_kind == SOURCE_REGISTERED_ROOM:
        return f"{names.get((DEST_INVESTMENT_BUCKET, application.source_id), application.source_id)} (room exhausted)"
    return application.source_id


def _destination_label(names: dict[tuple[str, str], str], application: RedirectApplication) -> str:
    if application.destination_kind == DEST_UNALLOCATED or application.destination_id is None:
        return "Unallocated"
    return names.get((application.destination_kind, application.destination_id), application.destination_id)


def redirect_trace_lines(session: Session, timeline: Timeline) -> list[str]:
    """Render the audit trail grouped per destination, in first-seen order."""
    names = _entity_names(session)
    grouped: dict[str, list[RedirectApplication]] = {}
    for application in timeline.redirects_applied:
        grouped.setdefault(_destination_label(names, application), []).append(application)

    lines: list[str] = []
    for destination, applications in grouped.items():
        total = sum(a.applied_cents for a in applications)
        lines.append(f"{destination}: {Money(total).format()} redirected")
        for a in applications:
            lines.append(
                f"  {month_label(timeline.start_month, a.month_index)}: "
                f"{Money(a.applied_cents).format()} from {_source_label(names, a)}"
            )
    return lines


def _series_total(series: list[TimelineSeries]) -> int:
    return sum(sum(s.monthly_cents) for s in series)


def summary_lines(session: Session, timeline: Timeline) -> list[str]:
    last = timeline.months
    lines = [
        f"Start month: {timeline.start_month}",
        f"Horizon: {last} months (through {month_label(timeline.start_month, last)})",
        f"Investments contributed: {Money(_series_total(timeline.investment_series)).format()}",
        f"Templates contributed: {Money(_series_total(timeline.template_series)).format()}",
        f"Goal funds contributed: {Money(_series_total(timeline.goal_fund_series)).format()}",
        f"Debt payments: {Money(_series_total(timeline.debt_series)).format()}",
        f"Unallocated: {Money(sum(timeline.unallocated_monthly_cents)).format()}",
        f"Redirects applied: {len(timeline.redirects_applied)}",
    ]
    for debt in session.debts:
        idx = timeline.debt_payoff_month_index.get(debt.id)
        lines.append(f"Debt {debt.name}: paid off {month_label(timeline.start_month, idx)}")
    for goal in session.goal_funds:
        idx = timeline.goal_target_reached_month_index.get(goal.id)
        lines.append(f"Goal {goal.name}: target reached {month_label(timeline.start_month, idx)}")
    return lines


def impact_lines(impact: RedirectImpact) -> list[str]:
    lines: list[str] = []
    for row in impact.debts:
        lines.append(f"Debt {row.name}: payoff was {row.was_label}, now {row.now_label}")
    for row in impact.goals:
        lines.append(f"Goal {row.name}: target reached was {row.was_label}, now {row.now_label}")
    return lines


def timeline_to_dict(timeline: Timeline) -> dict[str, object]:
    return asdict(timeline)


def write_timeline(path: str | Path, timeline: Timeline) -> None:
    Path(path).write_text(json.dumps(timeline_to_dict(timeline), indent=2), encoding="utf-8")
