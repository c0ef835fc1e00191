"""Debt amortization: derived payments, fixed schedules and payment-driven schedules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .money import Money, round_half_up
from .months import current_month, horizon_months, months_between, start_offset
from .schema import DebtLoan, MonthlyPaymentPlan, TargetDatePlan


@dataclass(frozen=True, slots=True)
class DebtSchedulePoint:
    month_index: int
    payment: Money
    interest_portion: Money
    principal_portion: Money
    ending_balance: Money


@dataclass(frozen=True, slots=True)
class DebtSchedule:
    points: list[DebtSchedulePoint]
    payoff_month_index: int | None
    computed_monthly_payment: Money


@dataclass(frozen=True, slots=True)
class PaymentDrivenSchedule:
    points: list[DebtSchedulePoint]
    payoff_month_index: int | None
    unallocated_monthly_cents: list[int]


@dataclass(frozen=True, slots=True)
class MonthAmortization:
    interest_cents: int
    amount_due_cents: int
    applied_cents: int
    ending_balance_cents: int

    @property
    def interest_paid_cents(self) -> int:
        return max(0, min(self.applied_cents, self.interest_cents))

    @property
    def principal_paid_cents(self) -> int:
        return max(0, self.applied_cents - self.interest_paid_cents)


def accrue_interest(balance_cents: int, monthly_rate: float) -> int:
    return round_half_up(balance_cents * monthly_rate)


def amortize_month(balance_cents: int, monthly_rate: float, offered_cents: int) -> MonthAmortization:
    """Accrue one month of interest, then apply at most the amount due.

    Paying less than the interest is allowed and grows the balance.
    """
    interest = accrue_interest(balance_cents, monthly_rate)
    amount_due = max(0, balance_cents + interest)
    applied = min(max(0, offered_cents), amount_due)
    return MonthAmortization(
        interest_cents=interest,
        amount_due_cents=amount_due,
        applied_cents=applied,
        ending_balance_cents=max(0, balance_cents + interest - applied),
    )


def _payment_for_present_value(present_value: float, monthly_rate: float, months: int) -> float:
    if present_value <= 0:
        return 0.0
    if abs(monthly_rate) < 1e-12:
        return present_value / months
    # P = r * PV / (1 - (1 + r)^-n)
    denom = 1.0 - (1.0 + monthly_rate) ** (-months)
    if denom <= 0:
        return present_value / months
    return (monthly_rate * present_value) / denom


def compute_monthly_payment(debt: DebtLoan, monthly_rate: float, timeline_start: str | None = None) -> Money:
    """Return the planned monthly payment for either payoff plan variant.

    A target-date plan derives the payment from the months between the debt's
    start (or the timeline start) and the target date. Missing or unparseable
    target dates and non-positive balances yield zero.
    """
    plan = debt.payoff_plan
    if isinstance(plan, MonthlyPaymentPlan):
        return plan.monthly_payment
    if not isinstance(plan, TargetDatePlan):
        raise TypeError(f"unsupported payoff plan: {plan!r}")

    present_value_cents = max(0, debt.current_balance.cents)
    if present_value_cents <= 0 or not plan.target_payoff_date:
        return Money.zero()
    start = debt.start_date or timeline_start or current_month()
    try:
        months = months_between(start, plan.target_payoff_date)
    except ValueError:
        return Money.zero()
    payment = _payment_for_present_value(present_value_cents / 100.0, monthly_rate, max(1, months))
    return Money.from_dollars(payment)


def compute_monthly_payment_from_debt(debt: DebtLoan, timeline_start: str | None = None) -> Money:
    """Preview helper for possibly half-edited debts; any failure is zero."""
    try:
        return compute_monthly_payment(debt, debt.annual_apr.monthly_rate(), timeline_start)
    except (TypeError, ValueError, OverflowError, ZeroDivisionError):
        return Money.zero()


def origination_offset(debt: DebtLoan, timeline_start: str) -> int:
    try:
        return start_offset(timeline_start, debt.start_date)
    except ValueError:
        return 0


def _empty_point(month_index: int) -> DebtSchedulePoint:
    zero = Money.zero()
    return DebtSchedulePoint(
        month_index=month_index,
        payment=zero,
        interest_portion=zero,
        principal_portion=zero,
        ending_balance=zero,
    )


def build_schedule(debt: DebtLoan, horizon_years: float, timeline_start: str | None = None) -> DebtSchedule:
    """Amortize a debt with its own planned payment over the horizon.

    Months before origination are empty and never count as paid off. The
    payoff month index is the first originated month that opens at a zero
    balance, i.e. the number of months the payoff took counted from month 0.
    """
    timeline_start = timeline_start or current_month()
    months = horizon_months(horizon_years)
    monthly_rate = debt.annual_apr.monthly_rate()
    computed = compute_monthly_payment(debt, monthly_rate, timeline_start)
    payment_cents = max(0, computed.cents)
    offset = origination_offset(debt, timeline_start)

    originated = False
    balance = 0
    payoff_month_index: int | None = None
    points: list[DebtSchedulePoint] = []

    for m in range(months + 1):
        if not originated and m == offset:
            originated = True
            balance = max(0, debt.current_balance.cents)
        if not originated:
            points.append(_empty_point(m))
            continue
        if balance <= 0 and payoff_month_index is None:
            payoff_month_index = m

        step = amortize_month(balance, monthly_rate, payment_cents)
        points.append(
            DebtSchedulePoint(
                month_index=m,
                payment=Money(step.applied_cents),
                interest_portion=Money(max(0, step.interest_cents)),
                principal_portion=Money(max(0, step.applied_cents - step.interest_cents)),
                ending_balance=Money(step.ending_balance_cents),
            )
        )
        balance = step.ending_balance_cents

    return DebtSchedule(points=points, payoff_month_index=payoff_month_index, computed_monthly_payment=computed)


def build_payment_driven_schedule(
    debt: DebtLoan,
    horizon_years: float,
    monthly_payment_cents: Sequence[int],
    timeline_start: str | None = None,
) -> PaymentDrivenSchedule:
    """Amortize a debt against an externally supplied payment stream.

    Cents offered before origination, or beyond the amount due, come back as
    unallocated for that month.
    """
    timeline_start = timeline_start or current_month()
    months = horizon_months(horizon_years)
    monthly_rate = debt.annual_apr.monthly_rate()
    offset = origination_offset(debt, timeline_start)

    originated = False
    balance = 0
    payoff_month_index: int | None = None
    points: list[DebtSchedulePoint] = []
    unallocated = [0] * (months + 1)

    for m in range(months + 1):
        if not originated and m == offset:
            originated = True
            balance = max(0, debt.current_balance.cents)

        offered = max(0, monthly_payment_cents[m]) if m < len(monthly_payment_cents) else 0
        if not originated:
            unallocated[m] = offered
            points.append(_empty_point(m))
            continue
        if balance <= 0 and payoff_month_index is None:
            payoff_month_index = m

        step = amortize_month(balance, monthly_rate, offered)
        unallocated[m] = offered - step.applied_cents
        points.append(
            DebtSchedulePoint(
                month_index=m,
                payment=Money(step.applied_cents),
                interest_portion=Money(step.interest_paid_cents),
                principal_portion=Money(step.principal_paid_cents),
                ending_balance=Money(step.ending_balance_cents),
            )
        )
        balance = step.ending_balance_cents

    return PaymentDrivenSchedule(points=points, payoff_month_index=payoff_month_index, unallocated_monthly_cents=unallocated)
