"""Month-by-month cashflow timeline with ceiling redirect resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from .debts import amortize_month, compute_monthly_payment, origination_offset
from .goals import cap_goal_contribution, goal_start_offset, grow_goal_balance, is_target_reached
from .months import current_month, horizon_months, parse_ym, start_offset
from .redirects import (
    CeilingEvent,
    DestinationIndex,
    IndexedRuleTable,
    RedirectApplication,
    RuleTable,
    resolve_redirect,
    unallocated_application,
)
from .registered import build_room_pools
from .schema import (
    DEST_DEBT_LOAN,
    DEST_GOAL_FUND,
    DEST_INVESTMENT_BUCKET,
    DEST_UNALLOCATED,
    SOURCE_DEBT_LOAN,
    SOURCE_GOAL_FUND,
    SOURCE_REGISTERED_ROOM,
    DebtLoan,
    GoalFund,
    InvestmentBucket,
    Session,
)

MAX_CEILING_ITERATIONS = 10


@dataclass(slots=True)
class TimelineSeries:
    id: str
    name: str
    monthly_cents: list[int]


@dataclass(slots=True)
class Timeline:
    months: int
    start_month: str
    investment_series: list[TimelineSeries]
    template_series: list[TimelineSeries]
    goal_fund_series: list[TimelineSeries]
    debt_series: list[TimelineSeries]
    unallocated_monthly_cents: list[int]
    redirects_applied: list[RedirectApplication]
    debt_payoff_month_index: dict[str, int | None] = field(default_factory=dict)
    debt_ending_balance_cents: dict[str, list[int]] = field(default_factory=dict)
    goal_target_reached_month_index: dict[str, int | None] = field(default_factory=dict)
    goal_ending_balance_cents: dict[str, list[int]] = field(default_factory=dict)


@dataclass(slots=True)
class _GoalState:
    goal: GoalFund
    series: TimelineSeries
    offset: int
    target_cents: int
    monthly_rate: float
    balance_cents: int
    grown_cents: int = 0
    reached_month_index: int | None = None

    def capacity(self, month_index: int, planned_cents: int) -> int:
        if month_index < self.offset:
            return 0
        return cap_goal_contribution(self.grown_cents, self.target_cents, planned_cents)


@dataclass(slots=True)
class _DebtState:
    debt: DebtLoan
    series: TimelineSeries
    offset: int
    monthly_rate: float
    originated: bool = False
    balance_cents: int = 0
    interest_cents: int = 0
    amount_due_cents: int = 0
    scheduled_cents: int = 0
    redirected_in_cents: int = 0
    payoff_month_index: int | None = None


def _flat_series(entity_id: str, name: str, months: int, planned_cents: int, offset: int = 0) -> TimelineSeries:
    planned = max(0, planned_cents)
    return TimelineSeries(
        id=entity_id,
        name=name,
        monthly_cents=[0 if idx < offset else planned for idx in range(months + 1)],
    )


def _safe_offset(timeline_start: str, start_date: str | None) -> int:
    try:
        return start_offset(timeline_start, start_date)
    except ValueError:
        return 0


def _investment_base_series(bucket: InvestmentBucket, months: int, timeline_start: str) -> TimelineSeries:
    planned = bucket.monthly_contribution.cents if bucket.is_recurring_monthly else 0
    return _flat_series(bucket.id, bucket.name, months, planned, _safe_offset(timeline_start, bucket.start_date))


def _debt_base_series(debt: DebtLoan, months: int, timeline_start: str) -> TimelineSeries:
    payment = compute_monthly_payment(debt, debt.annual_apr.monthly_rate(), timeline_start)
    return _flat_series(debt.id, debt.name, months, payment.cents, origination_offset(debt, timeline_start))


def build_timeline(
    session: Session,
    start_month: str | None = None,
    rules: RuleTable | None = None,
) -> Timeline:
    """Build the full cashflow timeline for ``session``.

    ``start_month`` anchors month index 0 (defaults to the current month).
    ``rules`` overrides the session's redirect rules, e.g. an empty table for
    a "without redirects" comparison run.
    """
    timeline_start = start_month or current_month()
    months = horizon_months(session.projection_horizon_years)
    tax_year = session.tax_year if session.tax_year is not None else parse_ym(timeline_start)[0]
    rule_table = rules if rules is not None else IndexedRuleTable(session.redirect_rules)
    destinations = DestinationIndex.from_session(session)

    investment_series = [_investment_base_series(b, months, timeline_start) for b in session.investments]
    template_series = [
        _flat_series(t.id, t.name, months, t.monthly_allocation.cents) for t in session.templates
    ]
    goal_states = [
        _GoalState(
            goal=g,
            series=_flat_series(g.id, g.name, months, g.monthly_contribution.cents, goal_start_offset(g, timeline_start)),
            offset=goal_start_offset(g, timeline_start),
            target_cents=max(0, g.target_amount.cents),
            monthly_rate=g.expected_annual_return.monthly_rate(),
            balance_cents=max(0, g.current_balance.cents),
        )
        for g in session.goal_funds
    ]
    debt_states = [
        _DebtState(
            debt=d,
            series=_debt_base_series(d, months, timeline_start),
            offset=origination_offset(d, timeline_start),
            monthly_rate=d.annual_apr.monthly_rate(),
        )
        for d in session.debts
    ]

    investments_by_id: dict[str, TimelineSeries] = {}
    for series in investment_series:
        investments_by_id.setdefault(series.id, series)
    goals_by_id: dict[str, _GoalState] = {}
    for goal_state in goal_states:
        goals_by_id.setdefault(goal_state.goal.id, goal_state)
    debts_by_id: dict[str, _DebtState] = {}
    for debt_state in debt_states:
        debts_by_id.setdefault(debt_state.debt.id, debt_state)

    restricted = [
        (bucket, series)
        for bucket, series in zip(session.investments, investment_series)
        if bucket.is_restricted and bucket.owner_member_id
    ]
    room_pools = build_room_pools(session, tax_year)

    unallocated = [0] * (months + 1)
    redirects_applied: list[RedirectApplication] = []
    goal_balances: dict[str, list[int]] = {g.goal.id: [0] * (months + 1) for g in goal_states}
    debt_balances: dict[str, list[int]] = {d.debt.id: [0] * (months + 1) for d in debt_states}

    def _record(application: RedirectApplication) -> None:
        redirects_applied.append(application)
        month = application.month_index
        cents = application.applied_cents
        if application.destination_kind == DEST_GOAL_FUND and application.destination_id in goals_by_id:
            goals_by_id[application.destination_id].series.monthly_cents[month] += cents
        elif application.destination_kind == DEST_INVESTMENT_BUCKET and application.destination_id in investments_by_id:
            investments_by_id[application.destination_id].monthly_cents[month] += cents
        elif application.destination_kind == DEST_DEBT_LOAN and application.destination_id in debts_by_id:
            debts_by_id[application.destination_id].redirected_in_cents += cents
        else:
            unallocated[month] += cents

    def _route(event: CeilingEvent) -> None:
        if event.freed_cents <= 0:
            return
        _record(resolve_redirect(event, rule_table, destinations))

    def _cap_goals(month: int, route: Callable[[CeilingEvent], None]) -> bool:
        changed = False
        for state in goal_states:
            planned = state.series.monthly_cents[month]
            actual = state.capacity(month, planned)
            if actual == planned:
                continue
            state.series.monthly_cents[month] = actual
            changed = True
            route(CeilingEvent(month, SOURCE_GOAL_FUND, state.goal.id, planned - actual))
        return changed

    def _cap_registered(
        month: int,
        room_start: dict[tuple[str, str], int],
        route: Callable[[CeilingEvent], None],
    ) -> tuple[bool, dict[tuple[str, str], int]]:
        # Every pass starts from the month-opening pool so repeated passes never double-deduct.
        room_view = dict(room_start)
        changed = False
        for bucket, series in restricted:
            key = (bucket.owner_member_id, bucket.kind)
            planned = series.monthly_cents[month]
            remaining = max(0, room_view.get(key, 0))
            actual = min(planned, remaining)
            room_view[key] = remaining - actual
            if actual == planned:
                continue
            series.monthly_cents[month] = actual
            changed = True
            route(CeilingEvent(month, SOURCE_REGISTERED_ROOM, bucket.id, planned - actual))
        return changed, room_view

    def _settle(event: CeilingEvent) -> None:
        _record(unallocated_application(event))

    for m in range(months + 1):
        # Step 1: Debt origination, interest and amount due.
        scheduled_freed: list[CeilingEvent] = []
        for state in debt_states:
            if not state.originated and m == state.offset:
                state.originated = True
                state.balance_cents = max(0, state.debt.current_balance.cents)
            state.redirected_in_cents = 0
            planned = state.series.monthly_cents[m]
            if state.originated:
                if state.balance_cents <= 0 and state.payoff_month_index is None:
                    state.payoff_month_index = m
                step = amortize_month(state.balance_cents, state.monthly_rate, planned)
                state.interest_cents = step.interest_cents
                state.amount_due_cents = step.amount_due_cents
                state.scheduled_cents = step.applied_cents
            else:
                state.interest_cents = 0
                state.amount_due_cents = 0
                state.scheduled_cents = 0
            state.series.monthly_cents[m] = state.scheduled_cents
            freed = planned - state.scheduled_cents
            if freed > 0:
                scheduled_freed.append(CeilingEvent(m, SOURCE_DEBT_LOAN, state.debt.id, freed))

        for state in goal_states:
            if is_target_reached(state.balance_cents, state.target_cents) and state.reached_month_index is None:
                state.reached_month_index = m
            if m >= state.offset:
                state.grown_cents = grow_goal_balance(state.balance_cents, state.target_cents, state.monthly_rate)
            else:
                state.grown_cents = state.balance_cents

        # Step 2: Redirect cash freed by scheduled debt payments.
        for event in scheduled_freed:
            _route(event)

        # Step 3: Goal and registered-room ceilings until a full pass changes nothing.
        room_start = room_pools
        room_view = dict(room_start)
        converged = False
        for _ in range(MAX_CEILING_ITERATIONS):
            goals_changed = _cap_goals(m, _route)
            room_changed, room_view = _cap_registered(m, room_start, _route)
            if not goals_changed and not room_changed:
                converged = True
                break
        if not converged:
            _cap_goals(m, _settle)
            _, room_view = _cap_registered(m, room_start, _settle)
        room_pools = room_view

        for state in goal_states:
            if m >= state.offset:
                state.balance_cents = state.grown_cents + state.series.monthly_cents[m]
            goal_balances[state.goal.id][m] = state.balance_cents

        # Step 4: Debt finalization with accepted redirects.
        for state in debt_states:
            incoming = state.redirected_in_cents
            accepted = 0
            if state.originated:
                accepted = min(incoming, max(0, state.amount_due_cents - state.scheduled_cents))
            overflow = incoming - accepted
            if overflow > 0:
                unallocated[m] += overflow
                redirects_applied.append(
                    RedirectApplication(
                        month_index=m,
                        source_kind=SOURCE_DEBT_LOAN,
                        source_id=state.debt.id,
                        destination_kind=DEST_UNALLOCATED,
                        destination_id=None,
                        applied_cents=overflow,
                    )
                )
            payment = state.scheduled_cents + accepted
            state.series.monthly_cents[m] = payment
            if state.originated:
                state.balance_cents = amortize_month(state.balance_cents, state.monthly_rate, payment).ending_balance_cents
            debt_balances[state.debt.id][m] = state.balance_cents

    return Timeline(
        months=months,
        start_month=timeline_start,
        investment_series=investment_series,
        template_series=template_series,
        goal_fund_series=[state.series for state in goal_states],
        debt_series=[state.series for state in debt_states],
        unallocated_monthly_cents=unallocated,
        redirects_applied=redirects_applied,
        debt_payoff_month_index={state.debt.id: state.payoff_month_index for state in debt_states},
        debt_ending_balance_cents=debt_balances,
        goal_target_reached_month_index={state.goal.id: state.reached_month_index for state in goal_states},
        goal_ending_balance_cents=goal_balances,
    )
