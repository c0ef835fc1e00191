"""Integer-cents money and basis-point rate value types."""

from __future__ import annotations

from dataclasses import dataclass
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (-2.5 -> -2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def _is_integral(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True, order=True)
class Money:
    cents: int

    def __post_init__(self) -> None:
        if not _is_integral(self.cents):
            raise ValueError(f"Money.cents must be an integer cents value, got {self.cents!r}")

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        return cls(cents)

    @classmethod
    def from_dollars(cls, dollars: float) -> "Money":
        if not math.isfinite(dollars):
            raise ValueError(f"Money.from_dollars: invalid amount {dollars!r}")
        return cls(round_half_up(dollars * 100))

    @classmethod
    def parse_dollars(cls, text: str) -> "Money":
        normalized = text.strip().replace(",", "").lstrip("$")
        if not normalized:
            return cls.zero()
        try:
            value = float(normalized)
        except ValueError as exc:
            raise ValueError(f"invalid money amount: {text!r}") from exc
        return cls.from_dollars(value)

    def is_negative(self) -> bool:
        return self.cents < 0

    def __add__(self, other: "Money") -> "Money":
        return Money(self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        return Money(self.cents - other.cents)

    def min(self, other: "Money") -> "Money":
        return self if self.cents <= other.cents else other

    def max(self, other: "Money") -> "Money":
        return self if self.cents >= other.cents else other

    def clamp(self, low: "Money", high: "Money") -> "Money":
        return self.max(low).min(high)

    def format(self) -> str:
        sign = "-" if self.cents < 0 else ""
        whole, frac = divmod(abs(self.cents), 100)
        return f"{sign}${whole:,}.{frac:02d}"


@dataclass(frozen=True, slots=True, order=True)
class RateBps:
    basis_points: int

    def __post_init__(self) -> None:
        if not _is_integral(self.basis_points):
            raise ValueError(f"RateBps must be integer basis points, got {self.basis_points!r}")

    @classmethod
    def zero(cls) -> "RateBps":
        return cls(0)

    @classmethod
    def from_basis_points(cls, basis_points: int) -> "RateBps":
        return cls(basis_points)

    @classmethod
    def from_percent(cls, percent: float) -> "RateBps":
        if not math.isfinite(percent):
            raise ValueError(f"invalid percent rate: {percent!r}")
        return cls(round_half_up(percent * 100))

    @classmethod
    def from_decimal(cls, decimal: float) -> "RateBps":
        if not math.isfinite(decimal):
            raise ValueError(f"invalid decimal rate: {decimal!r}")
        return cls(round_half_up(decimal * 10_000))

    def to_decimal(self) -> float:
        return self.basis_points / 10_000

    def to_percent(self) -> float:
        return self.basis_points / 100

    def monthly_rate(self) -> float:
        """Nominal annual rate spread evenly over twelve months."""
        annual = self.to_decimal()
        if not math.isfinite(annual):
            return 0.0
        return annual / 12.0
