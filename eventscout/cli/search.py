# =============================================================================
# eventscout/cli/search.py -- CLI Search Command
# =============================================================================
#
# Typical usage:
#   python -m eventscout.cli.search "legal compliance conference" --country DE
#   python -m eventscout.cli.search "privacy summit" -c GB --days 30 --json
#   python -m eventscout.cli.search "regtech" -c DE --bypass-ai --no-demo -o out.json
#
# Exit codes:
#   0  search ran (even when results came from a fallback)
#   1  no items at all (every tier and both fallbacks came back empty)
#   2  the request was rejected (bad country, inverted window, blank query)
# =============================================================================

"""Run one event search from the command line.

Usage::

    python -m eventscout.cli.search "legal compliance conference" --country DE --days 60
    python -m eventscout.cli.search "privacy summit" --country GB --json

``--json`` prints the orchestrator envelope
``{items, trace, telemetry, fallbackUsed, issues}``; the default is a short
text report.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from eventscout.utils.confidence import confidence_to_level

if TYPE_CHECKING:
    from eventscout.models.result import OrchestratorResult

_EXIT_OK = 0
_EXIT_EMPTY = 1
_EXIT_INVALID = 2


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_text(result: OrchestratorResult) -> str:
    """Human-readable report: items first, then fallbacks and issues."""
    sep = "=" * 60
    telemetry = result.telemetry
    lines = [
        sep,
        f"  eventScout: {telemetry.query!r} in {telemetry.country}",
        f"  {telemetry.date_range.date_from} .. {telemetry.date_range.date_to}"
        f"  |  quality {telemetry.quality_score}/100",
        sep,
        "",
    ]

    if not result.items:
        lines.append("No events found.")
    for item in result.items:
        when = item.starts_at.date().isoformat() if item.starts_at else "undated"
        place = ", ".join(part for part in (item.venue, item.city, item.country) if part)
        lines.append(f"- {item.title or item.url}")
        lines.append(f"    {when}{'  |  ' + place if place else ''}")
        lines.append(f"    {item.url}")
        if item.speakers:
            names = [s.name for s in item.speakers if s.name]
            lines.append(f"    Speakers: {', '.join(names[:5])}")
        level = confidence_to_level(item.confidence).value
        lines.append(f"    [{item.origin.value}] confidence {item.confidence:.0%} ({level})")
    lines.append("")

    if result.trace.filters.relaxation_applied:
        lines.append(f"Relaxed filters: {', '.join(result.trace.filters.relaxation_applied)}")
    if result.fallback_used:
        source = result.trace.fallbacks.source or "rescue path"
        lines.append(f"Fallback used: {source}")
    if result.issues:
        lines.append("Issues:")
        lines.extend(f"  - {issue}" for issue in result.issues)

    return "\n".join(lines)


def format_json(result: OrchestratorResult) -> str:
    return json.dumps(result.to_envelope(), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _configure_logs(quiet: bool) -> None:
    """Send logs to stderr; WARNING+ only when *quiet*."""
    from eventscout.config.settings import Settings
    from eventscout.utils.logging import configure_logging

    level = "WARNING" if quiet else Settings().log_level
    configure_logging(log_level=level, stream=sys.stderr)


async def _run(args: argparse.Namespace) -> int:
    # Deferred: importing the provider stack is slow.
    from eventscout.config.loader import load_config, relaxation_order
    from eventscout.config.settings import Settings
    from eventscout.factory import build_orchestrator
    from eventscout.providers.article.web_scraper_provider import build_http_client
    from eventscout.services.request_builder import build_search_request
    from eventscout.utils.errors import InvalidSearchRequestError

    app_settings = Settings()
    app_config = load_config(settings=app_settings)

    overrides: dict[str, bool] = {}
    if args.bypass_ai:
        overrides["bypass_ai_ranking"] = True
    if args.no_demo:
        overrides["enable_demo_fallback"] = False
    if args.allow_undated:
        overrides["allow_undated"] = True

    try:
        request = build_search_request(
            query=args.query,
            country=args.country,
            date_from=args.date_from,
            date_to=args.date_to,
            days=args.days,
            settings=app_settings,
            flag_overrides=overrides,
            relaxation_order=relaxation_order(app_config),
        )
    except InvalidSearchRequestError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return _EXIT_INVALID

    async with build_http_client() as http_client:
        orchestrator = build_orchestrator(app_settings, http_client, app_config)
        result = await orchestrator.run(request)

    text = format_json(result) if args.json_output else format_text(result)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Results written to: {args.output}", file=sys.stderr)
    else:
        print(text)

    return _EXIT_OK if result.items else _EXIT_EMPTY


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m eventscout.cli.search",
        description="Search for events matching a query in one country and date window.",
    )
    parser.add_argument("query", type=str, help="Free-text search query.")
    parser.add_argument(
        "--country", "-c",
        type=str,
        required=True,
        help="Country as ISO-3166 alpha-2 code or name (DE, Germany).",
    )
    parser.add_argument(
        "--days", "-d",
        type=int,
        default=None,
        help="Window length in days from --from (default: settings).",
    )
    parser.add_argument(
        "--from",
        dest="date_from",
        type=date.fromisoformat,
        default=None,
        help="Window start, YYYY-MM-DD (default: today).",
    )
    parser.add_argument(
        "--to",
        dest="date_to",
        type=date.fromisoformat,
        default=None,
        help="Window end, YYYY-MM-DD (overrides --days).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print the full result envelope as JSON.",
    )
    parser.add_argument("--bypass-ai", action="store_true", help="Skip AI ranking.")
    parser.add_argument("--no-demo", action="store_true", help="Disable the demo fallback.")
    parser.add_argument(
        "--allow-undated",
        action="store_true",
        help="Keep events without a start date in the strict date filter.",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write results to a file instead of stdout.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings (implied by --json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    _configure_logs(quiet=args.quiet or args.json_output)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
