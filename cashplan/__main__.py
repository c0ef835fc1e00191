"""CLI entry point for cashplan."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from .engine import Timeline, build_timeline
from .money import Money
from .months import current_month, format_ym, is_month_date, parse_ym
from .report import build_dashboard, build_impact, impact_lines, redirect_trace_lines, summary_lines, write_timeline
from .schema import SchemaError, Session, load_session
from .validate import validate_session


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Household cashflow planner")
    parser.add_argument("session", help="Path to session JSON file")
    parser.add_argument("-o", "--output", help="Write the timeline as JSON to this path")
    parser.add_argument("--start-month", help="Month zero of the timeline, YYYY-MM (default: current month)")
    parser.add_argument("--net-income", help="Net monthly income in dollars, for the allocation summary")
    parser.add_argument("--validate", action="store_true", help="Validate JSON only")
    parser.add_argument("--summary", action="store_true", help="Print text summary to stdout")
    parser.add_argument("--trace", action="store_true", help="Print the redirect audit trail grouped by destination")
    parser.add_argument("--impact", action="store_true", help="Print payoff and goal dates with and without redirects")
    return parser


def _print_validation(errors: list[str], warnings: list[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def _print_dashboard(session: Session, net_income: Money, timeline: Timeline) -> None:
    dashboard = build_dashboard(session, net_income, timeline=timeline)
    print(f"Net income: {dashboard.net_income_monthly.format()}/mo")
    for segment in dashboard.segments:
        locked = " (fixed)" if segment.is_locked else ""
        print(f"  {segment.label}: {Money(segment.cents).format()}{locked}")
    if dashboard.is_over_allocated:
        print(f"Over-allocated by {Money(dashboard.shortfall_cents).format()}")
    for debt in dashboard.upcoming_debts:
        print(f"Upcoming: {debt.name} from {debt.start_date} at {Money(debt.planned_payment_cents).format()}/mo")
    if dashboard.nominal_vs_real:
        last = dashboard.nominal_vs_real[-1]
        print(f"Investments at horizon: {last.nominal.format()} nominal, {last.real.format()} real")
    earnings = dashboard.earnings
    print(
        f"Principal {Money(earnings.principal_cents).format()}, "
        f"compound gain over simple interest {Money(earnings.compound_delta_cents).format()}"
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    start_month = current_month()
    if args.start_month:
        if not is_month_date(args.start_month):
            print(f"--start-month: '{args.start_month}' is not valid; expected YYYY-MM", file=sys.stderr)
            return 2
        start_month = format_ym(*parse_ym(args.start_month))

    net_income = Money.zero()
    if args.net_income:
        try:
            net_income = Money.parse_dollars(args.net_income)
        except ValueError as exc:
            print(f"--net-income: {exc}", file=sys.stderr)
            return 2

    try:
        session = load_session(args.session)
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load session: {exc}", file=sys.stderr)
        return 2

    validation = validate_session(session)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1

    if args.validate:
        print("Session is valid.")
        return 0

    timeline = build_timeline(session, start_month)

    if args.summary:
        for line in summary_lines(session, timeline):
            print(line)
        _print_dashboard(session, net_income, timeline)
    if args.trace:
        lines = redirect_trace_lines(session, timeline)
        if not lines:
            print("No redirects applied.")
        for line in lines:
            print(line)
    if args.impact:
        for line in impact_lines(build_impact(session, start_month)):
            print(line)

    if args.output:
        write_timeline(args.output, timeline)
        print(f"Wrote timeline to {Path(args.output)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
