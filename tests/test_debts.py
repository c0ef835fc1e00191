from cashplan.debts import (
    amortize_month,
    build_payment_driven_schedule,
    build_schedule,
    compute_monthly_payment,
    compute_monthly_payment_from_debt,
)
from cashplan.money import Money, RateBps
from cashplan.schema import DebtLoan, MonthlyPaymentPlan, TargetDatePlan


def _debt(balance_cents, apr_bps=0, plan=None, start_date=None):
    return DebtLoan(
        id="d1",
        name="Loan",
        current_balance=Money(balance_cents),
        annual_apr=RateBps(apr_bps),
        payoff_plan=plan or MonthlyPaymentPlan(Money(10000)),
        start_date=start_date,
    )


def test_zero_interest_fixed_payment_pays_off_in_twelve_months():
    schedule = build_schedule(_debt(120000), 1, timeline_start="2026-01")

    assert len(schedule.points) == 13
    assert [p.payment.cents for p in schedule.points[:12]] == [10000] * 12
    assert schedule.points[11].ending_balance.cents == 0
    assert schedule.points[12].payment.cents == 0
    assert schedule.payoff_month_index == 12


def test_final_payment_is_capped_at_amount_due():
    schedule = build_schedule(_debt(25000, plan=MonthlyPaymentPlan(Money(10000))), 1, timeline_start="2026-01")

    assert [p.payment.cents for p in schedule.points[:4]] == [10000, 10000, 5000, 0]
    assert schedule.payoff_month_index == 3


def test_target_date_derives_straight_line_payment_at_zero_rate():
    debt = _debt(120000, plan=TargetDatePlan("2027-01"), start_date="2026-01")

    assert compute_monthly_payment(debt, 0.0).cents == 10000


def test_target_date_uses_annuity_formula_with_interest():
    debt = _debt(1000000, apr_bps=1200, plan=TargetDatePlan("2027-01"), start_date="2026-01")

    assert compute_monthly_payment(debt, debt.annual_apr.monthly_rate()).cents == 88849


def test_target_date_falls_back_to_timeline_start():
    debt = _debt(120000, plan=TargetDatePlan("2026-07"))

    assert compute_monthly_payment(debt, 0.0, timeline_start="2026-01").cents == 20000


def test_target_date_in_the_past_is_due_in_one_month():
    debt = _debt(120000, plan=TargetDatePlan("2025-01"), start_date="2026-01")

    assert compute_monthly_payment(debt, 0.0).cents == 120000


def test_missing_or_bad_target_date_yields_zero():
    assert compute_monthly_payment(_debt(120000, plan=TargetDatePlan(None)), 0.0, "2026-01").cents == 0
    assert compute_monthly_payment(_debt(120000, plan=TargetDatePlan("soon")), 0.0, "2026-01").cents == 0
    assert compute_monthly_payment(_debt(0, plan=TargetDatePlan("2027-01")), 0.0, "2026-01").cents == 0


def test_payment_from_debt_uses_apr_over_twelve():
    debt = _debt(1000000, apr_bps=1200, plan=TargetDatePlan("2027-01"), start_date="2026-01")

    assert compute_monthly_payment_from_debt(debt).cents == 88849


def test_schedule_is_empty_before_origination():
    schedule = build_schedule(_debt(30000, start_date="2026-04"), 1, timeline_start="2026-01")

    assert [p.payment.cents for p in schedule.points[:3]] == [0, 0, 0]
    assert [p.ending_balance.cents for p in schedule.points[:3]] == [0, 0, 0]
    assert schedule.points[3].payment.cents == 10000
    assert schedule.payoff_month_index == 6


def test_debt_starting_after_horizon_is_never_paid_off():
    schedule = build_schedule(_debt(30000, start_date="2030-01"), 1, timeline_start="2026-01")

    assert all(p.payment.cents == 0 for p in schedule.points)
    assert schedule.payoff_month_index is None


def test_interest_is_paid_before_principal():
    schedule = build_schedule(_debt(100000, apr_bps=1200, plan=MonthlyPaymentPlan(Money(5000))), 1, "2026-01")
    first = schedule.points[0]

    assert first.interest_portion.cents == 1000
    assert first.principal_portion.cents == 4000
    assert first.ending_balance.cents == 96000


def test_negative_amortization_grows_the_balance():
    step = amortize_month(100000, 0.01, 500)

    assert step.interest_cents == 1000
    assert step.applied_cents == 500
    assert step.interest_paid_cents == 500
    assert step.principal_paid_cents == 0
    assert step.ending_balance_cents == 100500


def test_payment_driven_schedule_reports_cents_before_origination_as_unallocated():
    debt = _debt(30000, start_date="2026-03")
    result = build_payment_driven_schedule(debt, 1, [10000] * 13, timeline_start="2026-01")

    assert result.unallocated_monthly_cents[:2] == [10000, 10000]
    assert result.points[0].payment.cents == 0
    assert result.points[2].payment.cents == 10000


def test_payment_driven_schedule_caps_overpayment_at_amount_due():
    result = build_payment_driven_schedule(_debt(15000), 1, [10000] * 13, timeline_start="2026-01")

    assert [p.payment.cents for p in result.points[:3]] == [10000, 5000, 0]
    assert result.unallocated_monthly_cents[:3] == [0, 5000, 10000]
    assert result.payoff_month_index == 2


def test_payment_driven_schedule_tolerates_short_payment_stream():
    result = build_payment_driven_schedule(_debt(15000), 1, [10000], timeline_start="2026-01")

    assert result.points[1].payment.cents == 0
    assert result.points[1].ending_balance.cents == 5000
