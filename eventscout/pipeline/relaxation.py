"""Business filters with progressive relaxation.

Three filters run in ``request.relaxation_order`` (default
quality → date-window → country).  Each has an ordered list of variants,
strictest first.  A weaker variant is tried only when the stricter one
would leave *nothing* and the filter's relax flag is on, so relaxation
trades precision for recall exactly when the user would otherwise see an
empty page.  Filters only drop events; they never change or invent them.

    quality      strict         success and confidence >= parse_quality
                 quality-half   confidence >= parse_quality / 2
                 quality-titled any event with a title and a url
    date-window  strict         overlaps [date_from, date_to]
                 widened        overlaps the window widened by date_grace_days
                 undated        widened, plus events without a date
    country      strict         event country == request country
                 adjacent       neighbour country, country TLD or known city
                 unknown        adjacent, plus events with no country signal

With ``flags.allow_undated`` the strict and widened date variants already
keep undated events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable

import structlog

from eventscout.config.domain_knowledge import (
    COUNTRY_NEIGHBOURS,
    country_for_city,
    country_tld,
)
from eventscout.models.event import ExtractedEvent
from eventscout.models.result import ErrorKind, FilterStat, StageError
from eventscout.models.search import SearchRequest
from eventscout.utils.text_normalizer import host_of

logger = structlog.get_logger(logger_name=__name__)

Predicate = Callable[[ExtractedEvent], bool]


@dataclass(frozen=True)
class FilterVariant:
    name: str
    keep: Predicate


@dataclass
class FilterOutcome:
    """Result of :func:`apply_relaxed_filters`.

    Attributes
    ----------
    kept:
        Surviving events, in input order.
    relaxation_applied:
        Names of filters that had to fall back to a weaker variant.
    stats:
        One :class:`FilterStat` per filter, in the order the filters ran.
    exhausted:
        Filters for which every variant came back empty.
    errors:
        One ``FilterExhausted`` error per exhausted filter.
    """

    kept: list[ExtractedEvent] = field(default_factory=list)
    relaxation_applied: list[str] = field(default_factory=list)
    stats: list[FilterStat] = field(default_factory=list)
    exhausted: list[str] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

def quality_variants(request: SearchRequest) -> list[FilterVariant]:
    cutoff = request.thresholds.parse_quality
    return [
        FilterVariant("strict", lambda e: e.success and e.confidence >= cutoff),
        FilterVariant("quality-half", lambda e: e.confidence >= cutoff / 2),
        FilterVariant("quality-titled", lambda e: bool(e.title and e.url)),
    ]


def _overlaps(event: ExtractedEvent, start: date, end: date) -> bool:
    if event.starts_at is None:
        return False
    first = event.starts_at.date()
    last = event.ends_at.date() if event.ends_at and event.ends_at >= event.starts_at else first
    return first <= end and last >= start


def date_window_variants(request: SearchRequest) -> list[FilterVariant]:
    grace = timedelta(days=request.date_grace_days)
    start, end = request.date_from, request.date_to
    wide_start, wide_end = start - grace, end + grace
    undated_ok = request.flags.allow_undated

    return [
        FilterVariant(
            "strict", lambda e: _overlaps(e, start, end) or (undated_ok and e.undated)
        ),
        FilterVariant(
            "widened",
            lambda e: _overlaps(e, wide_start, wide_end) or (undated_ok and e.undated),
        ),
        FilterVariant("undated", lambda e: _overlaps(e, wide_start, wide_end) or e.undated),
    ]


def country_variants(request: SearchRequest) -> list[FilterVariant]:
    home = request.country
    neighbours = COUNTRY_NEIGHBOURS.get(home, frozenset())
    tld = country_tld(home)

    def adjacent(event: ExtractedEvent) -> bool:
        if event.country == home or event.country in neighbours:
            return True
        if host_of(event.url).endswith(tld):
            return True
        return country_for_city(event.city) == home

    def unknown(event: ExtractedEvent) -> bool:
        no_signal = event.country is None and country_for_city(event.city) is None
        return adjacent(event) or no_signal

    return [
        FilterVariant("strict", lambda e: e.country == home),
        FilterVariant("adjacent", adjacent),
        FilterVariant("unknown", unknown),
    ]


_VARIANT_BUILDERS: dict[str, Callable[[SearchRequest], list[FilterVariant]]] = {
    "quality": quality_variants,
    "date-window": date_window_variants,
    "country": country_variants,
}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def apply_relaxed_filters(events: list[ExtractedEvent], request: SearchRequest) -> FilterOutcome:
    """Run every filter in ``request.relaxation_order`` over *events*."""
    outcome = FilterOutcome()
    current = list(events)

    for filter_name in request.relaxation_order:
        items_in = len(current)
        if not current:
            outcome.stats.append(FilterStat(filter=filter_name, notes=["no input"]))
            continue

        variants = _VARIANT_BUILDERS[filter_name](request)
        chosen = variants[0]
        kept = [event for event in current if chosen.keep(event)]
        notes: list[str] = []

        if not kept and request.flags.relaxation_enabled(filter_name):
            for variant in variants[1:]:
                kept = [event for event in current if variant.keep(event)]
                if kept:
                    chosen = variant
                    outcome.relaxation_applied.append(filter_name)
                    notes.append(f"strict variant empty; relaxed to {variant.name}")
                    break
        elif not kept:
            notes.append("relaxation disabled")

        variant_name = chosen.name
        if not kept:
            variant_name = "exhausted"
            outcome.exhausted.append(filter_name)
            outcome.errors.append(
                StageError(
                    kind=ErrorKind.FILTER_EXHAUSTED,
                    message=f"filter '{filter_name}' removed all {items_in} events",
                    source=filter_name,
                )
            )
            logger.info("filter_exhausted", filter=filter_name, items_in=items_in)

        outcome.stats.append(
            FilterStat(
                filter=filter_name,
                items_in=items_in,
                items_out=len(kept),
                variant=variant_name,
                notes=notes,
            )
        )
        current = kept

    outcome.kept = current
    logger.debug(
        "filters_applied",
        items_in=len(events),
        kept=len(current),
        relaxed=outcome.relaxation_applied,
    )
    return outcome
