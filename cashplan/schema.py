"""Household session dataclasses and JSON loading."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

from .money import Money, RateBps

TAX_FREE = "tax_free"
TAX_DEFERRED = "tax_deferred"
UNRESTRICTED = "unrestricted"
RESTRICTED_KINDS = (TAX_FREE, TAX_DEFERRED)

SOURCE_GOAL_FUND = "goal_fund"
SOURCE_DEBT_LOAN = "debt_loan"
SOURCE_REGISTERED_ROOM = "registered_room_ceiling"

DEST_GOAL_FUND = "goal_fund"
DEST_INVESTMENT_BUCKET = "investment_bucket"
DEST_DEBT_LOAN = "debt_loan"
DEST_UNALLOCATED = "unallocated"

PLAN_MONTHLY_PAYMENT = "monthly_payment"
PLAN_TARGET_DATE = "target_date"


class SchemaError(ValueError):
    """Raised when raw JSON cannot be parsed into session objects."""


def _expect_dict(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{path}: expected object")
    return value


def _expect_list(value: Any, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise SchemaError(f"{path}: expected array")
    return value


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise SchemaError(f"{path}.{key}: missing required field")
    return data[key]


def _optional(data: dict[str, Any], key: str, default: Any = None) -> Any:
    return data.get(key, default)


def _int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{path}: expected integer")
    return value


def _money(data: dict[str, Any], key: str, path: str, default: int | None = None) -> Money:
    raw = _require(data, key, path) if default is None else _optional(data, key, default)
    return Money(_int(raw, f"{path}.{key}"))


def _rate(data: dict[str, Any], key: str, path: str, default: int | None = None) -> RateBps:
    raw = _require(data, key, path) if default is None else _optional(data, key, default)
    return RateBps(_int(raw, f"{path}.{key}"))


def _items(data: dict[str, Any], key: str, path: str) -> list[tuple[str, dict[str, Any]]]:
    return [
        (f"{path}[{idx}]", _expect_dict(item, f"{path}[{idx}]"))
        for idx, item in enumerate(_expect_list(_optional(data, key, []), path))
    ]


@dataclass(frozen=True, slots=True)
class TaxFreeRoomEntry:
    year: int
    room: Money

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TaxFreeRoomEntry":
        return cls(year=_int(_require(data, "year", path), f"{path}.year"), room=_money(data, "room_cents", path))


@dataclass(frozen=True, slots=True)
class BackfillContribution:
    year: int
    amount: Money

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "BackfillContribution":
        return cls(year=_int(_require(data, "year", path), f"{path}.year"), amount=_money(data, "amount_cents", path))


@dataclass(frozen=True, slots=True)
class HouseholdMember:
    id: str
    display_name: str
    employment_income_annual: Money = Money(0)
    tax_free_room_entries: tuple[TaxFreeRoomEntry, ...] = ()
    tax_deferred_room_annual: Money = Money(0)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "HouseholdMember":
        return cls(
            id=_require(data, "id", path),
            display_name=_require(data, "display_name", path),
            employment_income_annual=_money(data, "employment_income_annual_cents", path, default=0),
            tax_free_room_entries=tuple(
                TaxFreeRoomEntry.from_dict(item, item_path)
                for item_path, item in _items(data, "tax_free_room_entries", f"{path}.tax_free_room_entries")
            ),
            tax_deferred_room_annual=_money(data, "tax_deferred_room_annual_cents", path, default=0),
        )


@dataclass(frozen=True, slots=True)
class InvestmentBucket:
    id: str
    name: str
    kind: str
    owner_member_id: str | None = None
    starting_balance: Money = Money(0)
    monthly_contribution: Money = Money(0)
    is_recurring_monthly: bool = True
    expected_annual_return: RateBps = RateBps(0)
    backfill_contributions: tuple[BackfillContribution, ...] = ()
    start_date: str | None = None

    @property
    def is_restricted(self) -> bool:
        return self.kind in RESTRICTED_KINDS

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "InvestmentBucket":
        return cls(
            id=_require(data, "id", path),
            name=_require(data, "name", path),
            kind=_require(data, "kind", path),
            owner_member_id=_optional(data, "owner_member_id"),
            starting_balance=_money(data, "starting_balance_cents", path, default=0),
            monthly_contribution=_money(data, "monthly_contribution_cents", path, default=0),
            is_recurring_monthly=bool(_optional(data, "is_recurring_monthly", True)),
            expected_annual_return=_rate(data, "expected_annual_return_bps", path, default=0),
            backfill_contributions=tuple(
                BackfillContribution.from_dict(item, item_path)
                for item_path, item in _items(data, "backfill_contributions", f"{path}.backfill_contributions")
            ),
            start_date=_optional(data, "start_date"),
        )


@dataclass(frozen=True, slots=True)
class TemplateAllocation:
    id: str
    name: str
    monthly_allocation: Money = Money(0)
    expected_annual_return: RateBps = RateBps(0)

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "TemplateAllocation":
        return cls(
            id=_require(data, "id", path),
            name=_require(data, "name", path),
            monthly_allocation=_money(data, "monthly_allocation_cents", path, default=0),
            expected_annual_return=_rate(data, "expected_annual_return_bps", path, default=0),
        )


@dataclass(frozen=True, slots=True)
class GoalFund:
    id: str
    name: str
    target_amount: Money = Money(0)
    current_balance: Money = Money(0)
    expected_annual_return: RateBps = RateBps(0)
    monthly_contribution: Money = Money(0)
    start_date: str | None = None
    target_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "GoalFund":
        return cls(
            id=_require(data, "id", path),
            name=_require(data, "name", path),
            target_amount=_money(data, "target_amount_cents", path, default=0),
            current_balance=_money(data, "current_balance_cents", path, default=0),
            expected_annual_return=_rate(data, "expected_annual_return_bps", path, default=0),
            monthly_contribution=_money(data, "monthly_contribution_cents", path, default=0),
            start_date=_optional(data, "start_date"),
            target_date=_optional(data, "target_date"),
        )


@dataclass(frozen=True, slots=True)
class MonthlyPaymentPlan:
    monthly_payment: Money
    kind: str = field(default=PLAN_MONTHLY_PAYMENT, init=False)


@dataclass(frozen=True, slots=True)
class TargetDatePlan:
    target_payoff_date: str | None
    kind: str = field(default=PLAN_TARGET_DATE, init=False)


PayoffPlan = MonthlyPaymentPlan | TargetDatePlan


def _payoff_plan_from_dict(data: dict[str, Any], path: str) -> PayoffPlan:
    kind = _require(data, "kind", path)
    if kind == PLAN_MONTHLY_PAYMENT:
        return MonthlyPaymentPlan(monthly_payment=_money(data, "monthly_payment_cents", path))
    if kind == PLAN_TARGET_DATE:
        return TargetDatePlan(target_payoff_date=_optional(data, "target_payoff_date"))
    raise SchemaError(
        f"{path}.kind: '{kind}' is not valid; expected one of [{PLAN_MONTHLY_PAYMENT}, {PLAN_TARGET_DATE}]"
    )


@dataclass(frozen=True, slots=True)
class DebtLoan:
    id: str
    name: str
    current_balance: Money
    annual_apr: RateBps
    payoff_plan: PayoffPlan
    start_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "DebtLoan":
        plan_path = f"{path}.payoff_plan"
        return cls(
            id=_require(data, "id", path),
            name=_require(data, "name", path),
            current_balance=_money(data, "current_balance_cents", path),
            annual_apr=_rate(data, "annual_apr_bps", path, default=0),
            payoff_plan=_payoff_plan_from_dict(_expect_dict(_require(data, "payoff_plan", path), plan_path), plan_path),
            start_date=_optional(data, "start_date"),
        )


@dataclass(frozen=True, slots=True)
class RedirectRule:
    id: str
    source_kind: str
    source_id: str
    destination_kind: str
    destination_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "RedirectRule":
        return cls(
            id=_require(data, "id", path),
            source_kind=_require(data, "source_kind", path),
            source_id=_require(data, "source_id", path),
            destination_kind=_require(data, "destination_kind", path),
            destination_id=_optional(data, "destination_id"),
        )


@dataclass(frozen=True, slots=True)
class Session:
    projection_horizon_years: float
    members: tuple[HouseholdMember, ...] = ()
    investments: tuple[InvestmentBucket, ...] = ()
    templates: tuple[TemplateAllocation, ...] = ()
    goal_funds: tuple[GoalFund, ...] = ()
    debts: tuple[DebtLoan, ...] = ()
    redirect_rules: tuple[RedirectRule, ...] = ()
    tax_year: int | None = None
    assumed_annual_inflation: RateBps = RateBps(0)
    household_allocated_monthly: Money = Money(0)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        horizon = _require(data, "projection_horizon_years", "session")
        if isinstance(horizon, bool) or not isinstance(horizon, (int, float)):
            raise SchemaError("session.projection_horizon_years: expected number")
        tax_year = _optional(data, "tax_year")
        return cls(
            projection_horizon_years=horizon,
            members=tuple(HouseholdMember.from_dict(item, p) for p, item in _items(data, "members", "members")),
            investments=tuple(InvestmentBucket.from_dict(item, p) for p, item in _items(data, "investments", "investments")),
            templates=tuple(TemplateAllocation.from_dict(item, p) for p, item in _items(data, "templates", "templates")),
            goal_funds=tuple(GoalFund.from_dict(item, p) for p, item in _items(data, "goal_funds", "goal_funds")),
            debts=tuple(DebtLoan.from_dict(item, p) for p, item in _items(data, "debts", "debts")),
            redirect_rules=tuple(
                RedirectRule.from_dict(item, p) for p, item in _items(data, "redirect_rules", "redirect_rules")
            ),
            tax_year=_int(tax_year, "session.tax_year") if tax_year is not None else None,
            assumed_annual_inflation=_rate(data, "assumed_annual_inflation_bps", "session", default=0),
            household_allocated_monthly=_money(data, "household_allocated_monthly_cents", "session", default=0),
        )


def load_session(path: str | Path) -> Session:
    """Load session JSON into immutable dataclasses."""
    source = Path(path)
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaError("session: root must be a JSON object")
    return Session.from_dict(raw)
