"""Ceiling redirect rules: lookup and single-event resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

from .schema import (
    DEST_DEBT_LOAN,
    DEST_GOAL_FUND,
    DEST_INVESTMENT_BUCKET,
    DEST_UNALLOCATED,
    RedirectRule,
    Session,
)


@dataclass(frozen=True, slots=True)
class CeilingEvent:
    month_index: int
    source_kind: str
    source_id: str
    freed_cents: int


@dataclass(frozen=True, slots=True)
class RedirectApplication:
    month_index: int
    source_kind: str
    source_id: str
    destination_kind: str
    destination_id: str | None
    applied_cents: int


class RuleTable(Protocol):
    def lookup(self, source_kind: str, source_id: str) -> RedirectRule | None: ...


class IndexedRuleTable:
    """Rules keyed by ``(source_kind, source_id)``; the first rule for a source wins."""

    def __init__(self, rules: Iterable[RedirectRule]) -> None:
        self._by_source: dict[tuple[str, str], RedirectRule] = {}
        for rule in rules:
            self._by_source.setdefault((rule.source_kind, rule.source_id), rule)

    def lookup(self, source_kind: str, source_id: str) -> RedirectRule | None:
        return self._by_source.get((source_kind, source_id))

    def __len__(self) -> int:
        return len(self._by_source)


@dataclass(frozen=True, slots=True)
class DestinationIndex:
    goal_fund_ids: frozenset[str] = field(default_factory=frozenset)
    investment_bucket_ids: frozenset[str] = field(default_factory=frozenset)
    debt_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_session(cls, session: Session) -> "DestinationIndex":
        return cls(
            goal_fund_ids=frozenset(g.id for g in session.goal_funds),
            investment_bucket_ids=frozenset(b.id for b in session.investments),
            debt_ids=frozenset(d.id for d in session.debts),
        )

    def resolves(self, destination_kind: str, destination_id: str | None) -> bool:
        if not destination_id:
            return False
        if destination_kind == DEST_GOAL_FUND:
            return destination_id in self.goal_fund_ids
        if destination_kind == DEST_INVESTMENT_BUCKET:
            return destination_id in self.investment_bucket_ids
        if destination_kind == DEST_DEBT_LOAN:
            return destination_id in self.debt_ids
        return False


def unallocated_application(event: CeilingEvent) -> RedirectApplication:
    return RedirectApplication(
        month_index=event.month_index,
        source_kind=event.source_kind,
        source_id=event.source_id,
        destination_kind=DEST_UNALLOCATED,
        destination_id=None,
        applied_cents=event.freed_cents,
    )


def resolve_redirect(event: CeilingEvent, rules: RuleTable, destinations: DestinationIndex) -> RedirectApplication:
    """Pick the single destination for an event's freed cents.

    Anything without a usable rule, including rules whose destination was
    deleted after the rule was written, lands in unallocated.
    """
    rule = rules.lookup(event.source_kind, event.source_id)
    if rule is None or rule.destination_kind == DEST_UNALLOCATED:
        return unallocated_application(event)
    if not destinations.resolves(rule.destination_kind, rule.destination_id):
        return unallocated_application(event)
    return RedirectApplication(
        month_index=event.month_index,
        source_kind=event.source_kind,
        source_id=event.source_id,
        destination_kind=rule.destination_kind,
        destination_id=rule.destination_id,
        applied_cents=event.freed_cents,
    )
