"""Registered (tax-free / tax-deferred) contribution room per household member."""

from __future__ import annotations

from dataclasses import dataclass

from .months import format_ym, month_ordinal, months_between
from .schema import TAX_DEFERRED, TAX_FREE, HouseholdMember, InvestmentBucket, Session


@dataclass(frozen=True, slots=True)
class RoomUsage:
    accrued_cents: int
    backfill_cents: int
    recurring_current_year_cents: int

    @property
    def used_cents(self) -> int:
        return self.backfill_cents + self.recurring_current_year_cents

    @property
    def remaining_cents(self) -> int:
        return max(0, self.accrued_cents - self.used_cents)

    @property
    def pool_capacity_cents(self) -> int:
        """Room the timeline may consume month by month.

        Recurring contributions are left in, because the timeline deducts
        them itself as each month's contribution lands.
        """
        return max(0, self.accrued_cents - self.backfill_cents)


@dataclass(frozen=True, slots=True)
class RoomSummary:
    member_id: str
    display_name: str
    tax_free: RoomUsage
    tax_deferred: RoomUsage


def contributing_months_in_tax_year(tax_year: int, start_date: str | None) -> int:
    """Months from ``max(tax year start, start_date)`` to the next tax year boundary."""
    year_start = format_ym(tax_year, 1)
    year_end = format_ym(tax_year + 1, 1)
    effective_start = year_start
    if start_date:
        try:
            if month_ordinal(start_date) > month_ordinal(year_start):
                effective_start = start_date
        except ValueError:
            effective_start = year_start
    return months_between(effective_start, year_end)


def _owned_buckets(session: Session, member_id: str, kind: str) -> list[InvestmentBucket]:
    return [b for b in session.investments if b.kind == kind and b.owner_member_id == member_id]


def _accrued_cents(member: HouseholdMember, kind: str) -> int:
    if kind == TAX_FREE:
        return sum(entry.room.cents for entry in member.tax_free_room_entries)
    return member.tax_deferred_room_annual.cents


def room_usage(session: Session, member: HouseholdMember, kind: str, tax_year: int) -> RoomUsage:
    buckets = _owned_buckets(session, member.id, kind)
    backfill = sum(entry.amount.cents for b in buckets for entry in b.backfill_contributions)
    recurring = sum(
        b.monthly_contribution.cents * contributing_months_in_tax_year(tax_year, b.start_date)
        for b in buckets
        if b.is_recurring_monthly
    )
    return RoomUsage(
        accrued_cents=_accrued_cents(member, kind),
        backfill_cents=backfill,
        recurring_current_year_cents=recurring,
    )


def build_room_summary(session: Session, member: HouseholdMember, tax_year: int) -> RoomSummary:
    return RoomSummary(
        member_id=member.id,
        display_name=member.display_name,
        tax_free=room_usage(session, member, TAX_FREE, tax_year),
        tax_deferred=room_usage(session, member, TAX_DEFERRED, tax_year),
    )


def build_room_summaries(session: Session, tax_year: int) -> list[RoomSummary]:
    return [build_room_summary(session, member, tax_year) for member in session.members]


def build_room_pools(session: Session, tax_year: int) -> dict[tuple[str, str], int]:
    """Starting pool capacity keyed by ``(member id, kind)``."""
    pools: dict[tuple[str, str], int] = {}
    for summary in build_room_summaries(session, tax_year):
        pools[(summary.member_id, TAX_FREE)] = summary.tax_free.pool_capacity_cents
        pools[(summary.member_id, TAX_DEFERRED)] = summary.tax_deferred.pool_capacity_cents
    return pools
