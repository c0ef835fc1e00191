from cashplan.investments import (
    ProjectionInput,
    adjust_to_real,
    project_fixed,
    project_template,
    project_variable,
)
from cashplan.money import Money, RateBps
from cashplan.schema import InvestmentBucket, TemplateAllocation


def _input(**overrides):
    values = {
        "name": "Brokerage",
        "starting_balance": Money(100000),
        "expected_annual_return": RateBps(1200),
        "monthly_contribution": Money(10000),
    }
    values.update(overrides)
    return ProjectionInput(**values)


def test_fixed_projection_decomposes_compound_and_simple_growth():
    series = project_fixed(_input(), 1)

    assert len(series.points) == 13
    first, second = series.points[1], series.points[2]
    assert first.total_value.cents == 111000
    assert first.simple_interest_value.cents == 111000
    assert second.total_value.cents == 122110
    assert second.principal_contributed.cents == 120000
    assert second.simple_interest_value.cents == 122100
    assert second.compound_earnings_delta.cents == 10


def test_zero_rate_projection_is_all_principal():
    series = project_fixed(_input(expected_annual_return=RateBps(0)), 2)

    assert series.ending_value == series.ending_principal
    assert series.ending_simple_interest_value == series.ending_principal
    assert series.ending_compound_earnings_delta.cents == 0
    assert series.ending_principal.cents == 100000 + 24 * 10000


def test_non_recurring_contribution_is_excluded():
    bucket = InvestmentBucket(
        id="b",
        name="One-off",
        kind="unrestricted",
        starting_balance=Money(5000),
        monthly_contribution=Money(99900),
        is_recurring_monthly=False,
    )
    series = project_fixed(ProjectionInput.from_bucket(bucket), 1)

    assert series.ending_principal.cents == 5000


def test_variable_projection_applies_next_month_contribution_after_growth():
    series = project_variable("Bucket", Money(0), RateBps(0), [500, 0, 700])

    assert [p.total_value.cents for p in series.points] == [0, 0, 700]
    assert series.ending_principal.cents == 700


def test_variable_projection_grows_before_adding_contribution():
    series = project_variable("Bucket", Money(100000), RateBps(1200), [99999, 10000])

    assert series.points[1].total_value.cents == 111000
    assert series.points[1].principal_contributed.cents == 110000


def test_variable_projection_ignores_negative_contributions():
    series = project_variable("Bucket", Money(1000), RateBps(0), [200, -500])

    assert [p.total_value.cents for p in series.points] == [1000, 1000]


def test_template_projection_starts_from_zero():
    template = TemplateAllocation(id="t", name="Travel", monthly_allocation=Money(1500))
    series = project_template(template, [1500] * 13)

    assert series.name == "Travel"
    assert series.points[0].total_value.cents == 0
    assert series.ending_value.cents == 18000


def test_adjust_to_real_discounts_by_monthly_inflation():
    points = adjust_to_real([(0, Money(100000)), (12, Money(112683))], RateBps(1200))

    assert points[0].real.cents == 100000
    assert points[1].nominal.cents == 112683
    assert points[1].real.cents == 100000


def test_adjust_to_real_without_inflation_is_identity():
    points = adjust_to_real([(5, Money(4321))], RateBps(0))

    assert points[0].real == points[0].nominal
