import pytest

from cashplan.money import Money, RateBps, round_half_up


@pytest.mark.parametrize(("value", "expected"), [(2.5, 3), (-2.5, -2), (1.4999, 1), (0.5, 1), (-0.5, 0)])
def test_round_half_up_matches_half_up_semantics(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("bad", [1.5, float("nan"), True, "100"])
def test_money_rejects_non_integer_cents(bad):
    with pytest.raises(ValueError):
        Money(bad)


def test_money_from_dollars_rounds_to_cents():
    assert Money.from_dollars(19.99).cents == 1999
    assert Money.from_dollars(0.125).cents == 13
    assert Money.from_dollars(0.1 + 0.2).cents == 30


def test_parse_dollars_strips_formatting():
    assert Money.parse_dollars(" $1,234.50 ").cents == 123450
    assert Money.parse_dollars("").cents == 0


def test_parse_dollars_rejects_garbage():
    with pytest.raises(ValueError, match="invalid money amount"):
        Money.parse_dollars("twelve")


def test_money_arithmetic_and_bounds():
    a = Money(500)
    b = Money(200)
    assert (a + b).cents == 700
    assert (b - a).is_negative()
    assert a.min(b) == b
    assert a.max(b) == a
    assert Money(-5).clamp(Money(0), Money(100)) == Money(0)
    assert Money(150).clamp(Money(0), Money(100)) == Money(100)
    assert b < a


def test_money_format():
    assert Money(123456).format() == "$1,234.56"
    assert Money(-5).format() == "-$0.05"


def test_rate_conversions():
    rate = RateBps.from_percent(4.99)
    assert rate.basis_points == 499
    assert RateBps.from_decimal(0.06).basis_points == 600
    assert rate.to_percent() == pytest.approx(4.99)
    assert RateBps(1200).monthly_rate() == pytest.approx(0.01)
    assert RateBps.zero().monthly_rate() == 0.0


def test_rate_rejects_non_integer_basis_points():
    with pytest.raises(ValueError):
        RateBps(4.5)
