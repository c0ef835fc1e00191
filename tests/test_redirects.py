from cashplan.redirects import CeilingEvent, DestinationIndex, IndexedRuleTable, resolve_redirect
from cashplan.schema import RedirectRule

DESTINATIONS = DestinationIndex(
    goal_fund_ids=frozenset({"house"}),
    investment_bucket_ids=frozenset({"brokerage"}),
    debt_ids=frozenset({"car"}),
)

EVENT = CeilingEvent(month_index=4, source_kind="goal_fund", source_id="emergency", freed_cents=50000)


def _rule(destination_kind, destination_id=None, rule_id="r1", source_id="emergency"):
    return RedirectRule(
        id=rule_id,
        source_kind="goal_fund",
        source_id=source_id,
        destination_kind=destination_kind,
        destination_id=destination_id,
    )


def test_no_rule_routes_to_unallocated():
    application = resolve_redirect(EVENT, IndexedRuleTable(()), DESTINATIONS)

    assert application.destination_kind == "unallocated"
    assert application.destination_id is None
    assert application.applied_cents == 50000
    assert application.month_index == 4


def test_rule_routes_whole_amount_to_destination():
    application = resolve_redirect(EVENT, IndexedRuleTable([_rule("goal_fund", "house")]), DESTINATIONS)

    assert (application.destination_kind, application.destination_id) == ("goal_fund", "house")
    assert application.source_id == "emergency"
    assert application.applied_cents == 50000


def test_deleted_destination_falls_back_to_unallocated():
    application = resolve_redirect(EVENT, IndexedRuleTable([_rule("debt_loan", "boat")]), DESTINATIONS)

    assert application.destination_kind == "unallocated"


def test_destination_kind_must_match_id():
    application = resolve_redirect(EVENT, IndexedRuleTable([_rule("investment_bucket", "house")]), DESTINATIONS)

    assert application.destination_kind == "unallocated"


def test_first_matching_rule_wins():
    rules = IndexedRuleTable(
        [
            _rule("investment_bucket", "brokerage", rule_id="first"),
            _rule("debt_loan", "car", rule_id="second"),
        ]
    )

    assert len(rules) == 1
    assert rules.lookup("goal_fund", "emergency").id == "first"
    assert resolve_redirect(EVENT, rules, DESTINATIONS).destination_id == "brokerage"


def test_lookup_is_keyed_by_kind_and_id():
    rules = IndexedRuleTable([_rule("goal_fund", "house")])

    assert rules.lookup("debt_loan", "emergency") is None
    assert rules.lookup("goal_fund", "other") is None
