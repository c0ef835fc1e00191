"""Semantic and cross-reference validation for sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .money import Money
from .months import is_month_date, month_ordinal
from .schema import (
    DEST_DEBT_LOAN,
    DEST_GOAL_FUND,
    DEST_INVESTMENT_BUCKET,
    DEST_UNALLOCATED,
    RESTRICTED_KINDS,
    SOURCE_DEBT_LOAN,
    SOURCE_GOAL_FUND,
    SOURCE_REGISTERED_ROOM,
    TAX_DEFERRED,
    TAX_FREE,
    UNRESTRICTED,
    MonthlyPaymentPlan,
    Session,
    TargetDatePlan,
)

BUCKET_KINDS = {TAX_FREE, TAX_DEFERRED, UNRESTRICTED}
SOURCE_KINDS = {SOURCE_GOAL_FUND, SOURCE_DEBT_LOAN, SOURCE_REGISTERED_ROOM}
DESTINATION_KINDS = {DEST_GOAL_FUND, DEST_INVESTMENT_BUCKET, DEST_DEBT_LOAN, DEST_UNALLOCATED}


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_enum(result: ValidationResult, path: str, value: str, allowed: Iterable[str]) -> None:
    allowed_set = set(allowed)
    if value not in allowed_set:
        expected = ", ".join(sorted(allowed_set))
        result.errors.append(f"{path}: '{value}' is not valid; expected one of [{expected}]")


def _check_date(result: ValidationResult, path: str, value: str | None, allow_null: bool = True) -> None:
    if value is None:
        if not allow_null:
            result.errors.append(f"{path}: date is required")
        return
    if not is_month_date(value):
        result.errors.append(f"{path}: '{value}' is not valid; expected YYYY-MM or YYYY-MM-DD")


def _check_non_negative(result: ValidationResult, path: str, amount: Money) -> None:
    if amount.is_negative():
        result.errors.append(f"{path}: must be >= 0")


def _check_unique_ids(result: ValidationResult, section: str, ids: Iterable[str]) -> set[str]:
    seen: set[str] = set()
    for idx, entity_id in enumerate(ids):
        if not entity_id:
            result.errors.append(f"{section}[{idx}].id: must not be empty")
        elif entity_id in seen:
            result.errors.append(f"{section}[{idx}].id: duplicate id '{entity_id}'")
        seen.add(entity_id)
    return seen


def validate_session(session: Session) -> ValidationResult:
    result = ValidationResult()

    if session.projection_horizon_years <= 0:
        result.errors.append("projection_horizon_years: must be > 0")
    if session.tax_year is not None and session.tax_year < 1:
        result.errors.append(f"tax_year: '{session.tax_year}' is not a valid year")
    _check_non_negative(result, "household_allocated_monthly_cents", session.household_allocated_monthly)

    member_ids = _check_unique_ids(result, "members", (m.id for m in session.members))
    bucket_ids = _check_unique_ids(result, "investments", (b.id for b in session.investments))
    _check_unique_ids(result, "templates", (t.id for t in session.templates))
    goal_ids = _check_unique_ids(result, "goal_funds", (g.id for g in session.goal_funds))
    debt_ids = _check_unique_ids(result, "debts", (d.id for d in session.debts))
    restricted_ids = {b.id for b in session.investments if b.is_restricted}

    for idx, member in enumerate(session.members):
        base = f"members[{idx}]"
        _check_non_negative(result, f"{base}.employment_income_annual_cents", member.employment_income_annual)
        _check_non_negative(result, f"{base}.tax_deferred_room_annual_cents", member.tax_deferred_room_annual)
        years: set[int] = set()
        for eidx, entry in enumerate(member.tax_free_room_entries):
            epath = f"{base}.tax_free_room_entries[{eidx}]"
            _check_non_negative(result, f"{epath}.room_cents", entry.room)
            if entry.year in years:
                result.warnings.append(f"{epath}.year: room for {entry.year} is listed more than once")
            years.add(entry.year)

    for idx, bucket in enumerate(session.investments):
        base = f"investments[{idx}]"
        _check_enum(result, f"{base}.kind", bucket.kind, BUCKET_KINDS)
        if bucket.kind in RESTRICTED_KINDS:
            if not bucket.owner_member_id:
                result.errors.append(f"{base}.owner_member_id: required for {bucket.kind} buckets")
            elif bucket.owner_member_id not in member_ids:
                result.errors.append(
                    f"{base}.owner_member_id: '{bucket.owner_member_id}' does not match any member id"
                )
        elif bucket.backfill_contributions:
            result.warnings.append(f"{base}.backfill_contributions: ignored for {bucket.kind} buckets")
        _check_non_negative(result, f"{base}.starting_balance_cents", bucket.starting_balance)
        _check_non_negative(result, f"{base}.monthly_contribution_cents", bucket.monthly_contribution)
        for bidx, backfill in enumerate(bucket.backfill_contributions):
            _check_non_negative(result, f"{base}.backfill_contributions[{bidx}].amount_cents", backfill.amount)
        _check_date(result, f"{base}.start_date", bucket.start_date)

    for idx, template in enumerate(session.templates):
        _check_non_negative(result, f"templates[{idx}].monthly_allocation_cents", template.monthly_allocation)

    for idx, goal in enumerate(session.goal_funds):
        base = f"goal_funds[{idx}]"
        _check_non_negative(result, f"{base}.target_amount_cents", goal.target_amount)
        _check_non_negative(result, f"{base}.current_balance_cents", goal.current_balance)
        _check_non_negative(result, f"{base}.monthly_contribution_cents", goal.monthly_contribution)
        _check_date(result, f"{base}.start_date", goal.start_date)
        _check_date(result, f"{base}.target_date", goal.target_date)
        if is_month_date(goal.start_date) and is_month_date(goal.target_date):
            if month_ordinal(goal.start_date) > month_ordinal(goal.target_date):
                result.errors.append(f"{base}.start_date/{base}.target_date: start_date must be <= target_date")

    for idx, debt in enumerate(session.debts):
        base = f"debts[{idx}]"
        _check_non_negative(result, f"{base}.current_balance_cents", debt.current_balance)
        if debt.annual_apr.basis_points < 0:
            result.errors.append(f"{base}.annual_apr_bps: must be >= 0")
        _check_date(result, f"{base}.start_date", debt.start_date)
        plan = debt.payoff_plan
        if isinstance(plan, MonthlyPaymentPlan):
            _check_non_negative(result, f"{base}.payoff_plan.monthly_payment_cents", plan.monthly_payment)
        elif isinstance(plan, TargetDatePlan):
            _check_date(result, f"{base}.payoff_plan.target_payoff_date", plan.target_payoff_date, allow_null=False)
            if is_month_date(debt.start_date) and is_month_date(plan.target_payoff_date):
                if month_ordinal(debt.start_date) >= month_ordinal(plan.target_payoff_date):
                    result.warnings.append(
                        f"{base}.payoff_plan.target_payoff_date: not after start_date; the whole balance is due in one month"
                    )

    sources_seen: dict[tuple[str, str], int] = {}
    for idx, rule in enumerate(session.redirect_rules):
        base = f"redirect_rules[{idx}]"
        _check_enum(result, f"{base}.source_kind", rule.source_kind, SOURCE_KINDS)
        _check_enum(result, f"{base}.destination_kind", rule.destination_kind, DESTINATION_KINDS)

        if rule.source_kind == SOURCE_GOAL_FUND and rule.source_id not in goal_ids:
            result.errors.append(f"{base}.source_id: '{rule.source_id}' does not match any goal fund id")
        elif rule.source_kind == SOURCE_DEBT_LOAN and rule.source_id not in debt_ids:
            result.errors.append(f"{base}.source_id: '{rule.source_id}' does not match any debt id")
        elif rule.source_kind == SOURCE_REGISTERED_ROOM and rule.source_id not in restricted_ids:
            result.errors.append(
                f"{base}.source_id: '{rule.source_id}' does not match any tax_free or tax_deferred bucket id"
            )

        if rule.destination_kind == DEST_UNALLOCATED:
            if rule.destination_id:
                result.warnings.append(f"{base}.destination_id: ignored for unallocated destinations")
        elif rule.destination_kind in DESTINATION_KINDS:
            known = {
                DEST_GOAL_FUND: goal_ids,
                DEST_INVESTMENT_BUCKET: bucket_ids,
                DEST_DEBT_LOAN: debt_ids,
            }[rule.destination_kind]
            if not rule.destination_id:
                result.errors.append(f"{base}.destination_id: required for {rule.destination_kind} destinations")
            elif rule.destination_id not in known:
                # Resolves to unallocated at run time.
                result.warnings.append(
                    f"{base}.destination_id: '{rule.destination_id}' does not match any {rule.destination_kind} id"
                )

        source_entity = DEST_INVESTMENT_BUCKET if rule.source_kind == SOURCE_REGISTERED_ROOM else rule.source_kind
        if rule.destination_kind == source_entity and rule.destination_id == rule.source_id:
            result.warnings.append(f"{base}: redirects '{rule.source_id}' back to itself; freed cents go unallocated")

        key = (rule.source_kind, rule.source_id)
        if key in sources_seen:
            result.warnings.append(
                f"{base}: duplicate rule for {rule.source_kind} '{rule.source_id}'; "
                f"redirect_rules[{sources_seen[key]}] takes precedence"
            )
        else:
            sources_seen[key] = idx

    return result
