"""Candidate and speaker de-duplication.

Discovery tiers overlap heavily: the same conference page shows up in the
curated list, in search results with a ``utm_source`` tail and in the crawl
tier with a trailing slash.  Deduplication keys every item by a *canonical
URL*; person-like items without a link fall back to a name/organisation
key.  The first occurrence wins, so tier priority order is preserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode, urlsplit

import structlog

from eventscout.models.candidate import CandidateItem
from eventscout.models.event import Speaker
from eventscout.utils.text_normalizer import normalize_organization, normalize_person_name

logger = structlog.get_logger(logger_name=__name__)

_TRACKING_PARAMS: frozenset[str] = frozenset({
    "gclid", "fbclid", "mc_cid", "mc_eid", "igshid", "yclid", "_ga", "ref",
})
_DEFAULT_PORTS: frozenset[int] = frozenset({80, 443})


@dataclass
class DedupeResult:
    """Outcome of :func:`dedupe`.

    Attributes
    ----------
    unique:
        Survivors in first-seen order.
    removed_count:
        Items dropped because their key was already seen.
    unidentifiable:
        Items dropped because they had neither a usable URL nor a name.
    """

    unique: list[CandidateItem] = field(default_factory=list)
    removed_count: int = 0
    unidentifiable: int = 0


def canonical_url(url: str | None) -> str | None:
    """Return the dedup key for *url*, or ``None`` if it has no host.

    >>> canonical_url("https://www.Example.com:443/events/?utm_source=x&id=4#top")
    'example.com/events?id=4'
    """
    if not url or not url.strip():
        return None
    raw = url.strip()
    parts = urlsplit(raw if "//" in raw else f"//{raw}")
    try:
        host = (parts.hostname or "").lower()
        port = parts.port
    except ValueError:
        return None
    if not host:
        return None
    if host.startswith("www."):
        host = host[4:]

    netloc = host
    if port is not None and port not in _DEFAULT_PORTS:
        netloc = f"{host}:{port}"

    path = parts.path.rstrip("/")
    query_pairs = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not key.lower().startswith("utm_") and key.lower() not in _TRACKING_PARAMS
    ]
    query = urlencode(query_pairs)
    return f"{netloc}{path}?{query}" if query else f"{netloc}{path}"


def entity_key(name: str | None, organization: str | None) -> str | None:
    """``"<name>__<organization>"`` for link-less items, ``None`` without a name."""
    normalized = normalize_person_name(name)
    if not normalized:
        return None
    return f"{normalized}__{normalize_organization(organization)}"


def candidate_key(item: CandidateItem) -> str | None:
    return canonical_url(item.url) or entity_key(item.name, item.organization)


def dedupe(items: list[CandidateItem]) -> DedupeResult:
    """Drop duplicate and unidentifiable candidates, keeping first-seen order.

    Idempotent: ``dedupe(dedupe(x).unique).unique == dedupe(x).unique``.
    """
    result = DedupeResult()
    seen: set[str] = set()
    for item in items:
        key = candidate_key(item)
        if key is None:
            result.unidentifiable += 1
            continue
        if key in seen:
            result.removed_count += 1
            continue
        seen.add(key)
        result.unique.append(item)

    if result.removed_count or result.unidentifiable:
        logger.debug(
            "candidates_deduplicated",
            total=len(items),
            unique=len(result.unique),
            removed=result.removed_count,
            unidentifiable=result.unidentifiable,
        )
    return result


def dedupe_speakers(speakers: list[Speaker]) -> list[Speaker]:
    """Collapse speakers listed twice ("Dr. Anna Schmidt, Acme GmbH" / "Anna Schmidt, ACME").

    Speakers with neither a name nor a profile link are dropped.
    """
    seen: set[str] = set()
    unique: list[Speaker] = []
    for speaker in speakers:
        key = entity_key(speaker.name, speaker.organization) or canonical_url(speaker.profile_url)
        if key is None or key in seen:
            continue
        seen.add(key)
        unique.append(speaker)
    return unique
