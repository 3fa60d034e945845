"""Search-query shaping for the discovery tiers.

Web engines and crawl APIs respond much better to "legal tech konferenz
Germany 2026" than to a bare "legal tech", and they fail outright on very
long boolean queries.  The helpers here bias a user query towards the
request's country and year, optionally prefer the country TLD, and keep the
result under the engine's length limit.

All functions are pure; the tier executor calls :func:`shape_query` once
per tier so the exact string sent is what ends up in the trace.
"""

from __future__ import annotations

import re
from datetime import date

from eventscout.config.domain_knowledge import COUNTRY_NAMES, country_tld
from eventscout.interfaces.discovery_provider import SearchConstraints

MAX_QUERY_LENGTH = 256

_BOOLEAN_SPLIT_RE = re.compile(r"\s+(?:AND|OR)\s+", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b20\d{2}\b")

# DuckDuckGo region codes; anything else searches worldwide.
_DDG_REGIONS: dict[str, str] = {
    "DE": "de-de", "AT": "at-de", "CH": "ch-de", "FR": "fr-fr", "NL": "nl-nl",
    "BE": "be-nl", "IT": "it-it", "ES": "es-es", "PL": "pl-pl", "GB": "uk-en",
    "IE": "ie-en", "US": "us-en", "CA": "ca-en", "SE": "se-sv", "DK": "dk-da",
}


def prefer_tld(query: str, country: str) -> str:
    """Wrap *query* with a soft site-preference for the country TLD.

    ``.org`` and ``.com`` stay allowed so international organisers are not
    filtered out.  Queries that already carry ``site:`` are left alone.

    >>> prefer_tld("legal tech", "DE")
    '(site:de OR site:org OR site:com) (legal tech)'
    """
    if "site:" in query:
        return query
    tld = country_tld(country).lstrip(".")
    return f"(site:{tld} OR site:org OR site:com) ({query})"


def split_long_query(query: str, max_length: int = MAX_QUERY_LENGTH) -> list[str]:
    """Split *query* into chunks of at most *max_length* characters.

    Boolean ``AND``/``OR`` clauses are regrouped with ``OR`` first; a query
    without operators is split on whitespace.  A single word longer than
    *max_length* is hard-cut.
    """
    if len(query) <= max_length:
        return [query]

    parts = _BOOLEAN_SPLIT_RE.split(query)
    joiner = " OR "
    if len(parts) == 1:
        parts = query.split()
        joiner = " "

    chunks: list[str] = []
    current = ""
    for part in parts:
        part = part[:max_length]
        candidate = f"{current}{joiner}{part}" if current else part
        if len(candidate) <= max_length:
            current = candidate
            continue
        if current:
            chunks.append(current)
        current = part
    if current:
        chunks.append(current)
    return chunks


def shape_query(query: str, constraints: SearchConstraints) -> str:
    """Bias *query* towards the request country and year, capped in length.

    The country name is added unless the query already mentions it, the
    year of the window start is added unless the query already carries a
    year.  With ``constraints.prefer_tld`` the TLD preference is applied,
    but dropped again when it would push the query over the limit.
    """
    shaped = query.strip()
    name = COUNTRY_NAMES.get(constraints.country)
    if name and name.lower() not in shaped.lower():
        shaped = f"{shaped} {name}"
    if not _YEAR_RE.search(shaped):
        shaped = f"{shaped} {constraints.date_from.year}"

    if constraints.prefer_tld:
        with_tld = prefer_tld(shaped, constraints.country)
        if len(with_tld) <= MAX_QUERY_LENGTH:
            return with_tld
    return split_long_query(shaped)[0]


def ddg_region(country: str) -> str:
    """DuckDuckGo region code for *country* (``"wt-wt"`` when unknown)."""
    return _DDG_REGIONS.get(country.upper(), "wt-wt")


def ddg_timelimit(date_from: date, date_to: date, today: date | None = None) -> str | None:
    """Recency filter for windows that lie entirely in the past.

    Upcoming events are announced well before they happen, so a window that
    reaches into the future gets no recency filter at all.
    """
    today = today or date.today()
    if date_to > today:
        return None
    age = (today - date_from).days
    if age <= 31:
        return "m"
    if age <= 366:
        return "y"
    return None


def firecrawl_tbs(date_from: date, date_to: date) -> str:
    """Custom-date-range ``tbs`` parameter understood by the crawl API."""
    return (
        f"cdr:1,cd_min:{date_from.strftime('%m/%d/%Y')},"
        f"cd_max:{date_to.strftime('%m/%d/%Y')}"
    )
