"""Command-line entrypoint for browsing payment and evaluation exports."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from school_views.application.use_cases import (
    evaluation_session,
    evaluation_view_use_case,
    payment_session,
    payment_view_use_case,
)
from school_views.config import SETTINGS
from school_views.domain.criteria import DateRange, FilterCriteria, NumericRange, ViewRequest
from school_views.domain.models import Mention
from school_views.domain.results import EvaluationStats, PaymentStats, RecordView
from school_views.errors import ConfigurationError
from school_views.infrastructure.repositories.file_sources import source_for_path
from school_views.presentation.table_report import (
    evaluations_to_rows,
    format_amount,
    payments_to_rows,
    render_csv,
    render_html,
    render_xlsx,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Filter, sort and page exported school records")
    parser.add_argument("kind", choices=("payments", "evaluations"), help="Record type in the export")
    parser.add_argument("source", type=str, help="Path to a JSON, CSV or Excel export")
    parser.add_argument("--search", default="", help="Case-insensitive text search")
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Exact-match selector, e.g. status=paid (repeatable)",
    )
    parser.add_argument("--min", type=float, dest="minimum", help="Inclusive lower bound of the numeric range")
    parser.add_argument("--max", type=float, dest="maximum", help="Inclusive upper bound of the numeric range")
    parser.add_argument("--range-field", help="Field the numeric range applies to")
    parser.add_argument("--from", dest="date_from", type=date.fromisoformat, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=date.fromisoformat, help="End date (YYYY-MM-DD)")
    parser.add_argument("--sort", help="Sort key")
    parser.add_argument("--order", choices=("asc", "desc"), default="desc")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, choices=SETTINGS.page_size_options)
    parser.add_argument("--export", type=Path, help="Write the filtered rows to .csv, .html or .xlsx")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def parse_selectors(pairs: list[str]) -> dict[str, str]:
    selectors: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"Expected KEY=VALUE, got {pair!r}")
        selectors[key.strip()] = value.strip()
    return selectors


def build_request(args: argparse.Namespace, default_page_size: int) -> ViewRequest:
    value_range = None
    if args.minimum is not None or args.maximum is not None:
        value_range = NumericRange(minimum=args.minimum, maximum=args.maximum, field=args.range_field)
    date_range = None
    if args.date_from or args.date_to:
        date_range = DateRange(start=args.date_from, end=args.date_to)
    criteria = FilterCriteria(
        search=args.search,
        selectors=parse_selectors(args.filter),
        value_range=value_range,
        date_range=date_range,
    )
    return ViewRequest(
        criteria=criteria,
        sort_key=args.sort,
        direction=args.order,
        page=args.page,
        page_size=args.page_size or default_page_size,
    )


def print_payment_stats(label: str, stats: PaymentStats) -> None:
    print(f"{label}:")
    print(f"  Transactions: {stats.total_transactions}")
    print(f"  Total revenue: {format_amount(stats.total_revenue)}")
    print(f"  This month: {format_amount(stats.monthly_revenue)}")
    print(f"  Pending: {format_amount(stats.pending_amount)} ({stats.pending_count})")
    print(f"  Overdue: {format_amount(stats.overdue_amount)} ({stats.overdue_count})")


def print_evaluation_stats(label: str, stats: EvaluationStats) -> None:
    average = "N/A" if stats.global_average is None else f"{stats.global_average:.2f}/20"
    print(f"{label}:")
    print(f"  Evaluations: {stats.total_evaluations}")
    print(f"  Students evaluated: {stats.students_evaluated}")
    print(f"  Global average: {average}")
    print(f"  Average attendance: {stats.average_attendance:.1f}%")
    for mention in (Mention.EXCELLENT, Mention.GOOD, Mention.AVERAGE, Mention.BELOW_AVERAGE):
        share = stats.mentions[mention]
        print(f"  {mention.label}: {share.count} ({share.percentage}%)")


def export_rows(path: Path, rows: list[dict[str, str]]) -> None:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        path.write_bytes(render_csv(rows))
    elif suffix in {".html", ".htm"}:
        path.write_text(render_html(rows), encoding="utf-8")
    elif suffix == ".xlsx":
        path.write_bytes(render_xlsx(rows))
    else:
        raise ConfigurationError(f"Unsupported export format: {path.suffix}")
    logger.info("Exported %d rows to %s", len(rows), path)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.kind == "payments":
        session = payment_session()
        use_case = payment_view_use_case(session)
        default_page_size = SETTINGS.default_payment_page_size
        to_rows = payments_to_rows
        print_stats = print_payment_stats
    else:
        session = evaluation_session()
        use_case = evaluation_view_use_case(session)
        default_page_size = SETTINGS.default_evaluation_page_size
        to_rows = evaluations_to_rows
        print_stats = print_evaluation_stats

    snapshot = session.refresh(source_for_path(args.source))
    if snapshot.is_failed:
        print(f"Load failed: {snapshot.error}", file=sys.stderr)
        return 1

    try:
        request = build_request(args, default_page_size)
        view: RecordView = use_case.execute(request)
    except ConfigurationError as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2

    print("View Summary")
    print("============")
    print(f"Loaded records: {len(snapshot.records)}")
    print(f"Matching records: {view.total_items}")
    print(f"Page {view.page_number} of {view.total_pages}")
    print_stats("All records", view.stats.overall)
    print_stats("Matching records", view.stats.filtered)

    rows = to_rows(view.page)
    if rows:
        print()
        for row in rows:
            print(" | ".join(row.values()))
    else:
        print("\nNo records on this page.")

    if args.export:
        try:
            export_rows(args.export, to_rows(use_case.pipeline.ordered(session.records, request)))
        except ConfigurationError as exc:
            print(f"Invalid request: {exc}", file=sys.stderr)
            return 2

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
