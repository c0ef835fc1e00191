from cashplan.money import Money
from cashplan.registered import build_room_pools, build_room_summaries, contributing_months_in_tax_year
from cashplan.schema import (
    BackfillContribution,
    HouseholdMember,
    InvestmentBucket,
    Session,
    TaxFreeRoomEntry,
)


def _session(**bucket_overrides):
    bucket = {
        "id": "tfsa",
        "name": "TFSA",
        "kind": "tax_free",
        "owner_member_id": "m1",
        "monthly_contribution": Money(10000),
        "backfill_contributions": (BackfillContribution(2024, Money(500000)),),
    }
    bucket.update(bucket_overrides)
    member = HouseholdMember(
        id="m1",
        display_name="Alex",
        tax_free_room_entries=(TaxFreeRoomEntry(2025, Money(350000)), TaxFreeRoomEntry(2026, Money(350000))),
        tax_deferred_room_annual=Money(1000000),
    )
    return Session(projection_horizon_years=1, members=(member,), investments=(InvestmentBucket(**bucket),))


def test_room_usage_counts_backfill_and_current_year_recurring():
    summary = build_room_summaries(_session(), 2026)[0]

    assert summary.member_id == "m1"
    assert summary.tax_free.accrued_cents == 700000
    assert summary.tax_free.used_cents == 620000
    assert summary.tax_free.remaining_cents == 80000


def test_tax_deferred_room_is_untouched_by_tax_free_buckets():
    summary = build_room_summaries(_session(), 2026)[0]

    assert summary.tax_deferred.accrued_cents == 1000000
    assert summary.tax_deferred.used_cents == 0
    assert summary.tax_deferred.remaining_cents == 1000000


def test_remaining_room_never_goes_negative():
    summary = build_room_summaries(_session(monthly_contribution=Money(100000)), 2026)[0]

    assert summary.tax_free.used_cents == 1700000
    assert summary.tax_free.remaining_cents == 0


def test_non_recurring_contributions_do_not_use_room():
    summary = build_room_summaries(_session(is_recurring_monthly=False), 2026)[0]

    assert summary.tax_free.used_cents == 500000


def test_bucket_start_limits_contributing_months():
    assert contributing_months_in_tax_year(2026, None) == 12
    assert contributing_months_in_tax_year(2026, "2026-04") == 9
    assert contributing_months_in_tax_year(2026, "2024-06") == 12
    assert contributing_months_in_tax_year(2026, "2027-03") == 0
    assert contributing_months_in_tax_year(2026, "garbage") == 12


def test_room_pool_subtracts_backfill_only():
    pools = build_room_pools(_session(), 2026)

    assert pools[("m1", "tax_free")] == 200000
    assert pools[("m1", "tax_deferred")] == 1000000
