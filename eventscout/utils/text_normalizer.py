"""Text normalization helpers for candidates and extracted events.

Three concerns live here:

1. **Tokens and similarity** -- query/title tokenization with a small
   English/German stop-word list, token overlap, and rapidfuzz
   ``token_set_ratio`` similarity for the heuristic ranker.
2. **Names** -- speaker names and organisations normalized for dedup keys
   ("Prof. Dr. Anna Schmidt" / "Anna Schmidt", "Acme GmbH" / "ACME").
3. **Dates and URLs** -- tolerant datetime parsing for the many shapes
   pages and models emit, and host extraction for URLs.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from urllib.parse import urlsplit

from rapidfuzz import fuzz

_TOKEN_RE = re.compile(r"[^\W_]+", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")

_STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "and", "or", "the", "of", "in", "on", "at", "for", "to", "with",
    "by", "from", "is", "are", "be", "this", "that", "site", "not",
    "der", "die", "das", "und", "oder", "in", "im", "am", "für", "mit", "von",
    "zu", "zum", "zur", "ein", "eine", "auf", "bei",
})

_HONORIFICS_RE = re.compile(
    r"\b(dr|prof|mr|mrs|ms|miss|sir|dame|ra|rae|mag|dipl|ing|llm|phd|mba)\b\.?",
    re.IGNORECASE,
)
_ORG_SUFFIXES_RE = re.compile(
    r"\b(gmbh|mbh|ag|kg|ohg|ug|se|ltd|llc|llp|inc|corp|co|plc|sarl|sas|bv|nv)\b\.?",
    re.IGNORECASE,
)

# dd.mm.yyyy (German listings) and dd/mm/yyyy.
_DMY_RE = re.compile(r"^(\d{1,2})[./](\d{1,2})[./](\d{4})$")


def normalize_whitespace(text: str | None) -> str:
    """Collapse runs of whitespace and strip; ``None`` becomes ``""``."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str | None) -> set[str]:
    """Lower-cased content tokens of *text* (stop words and 1-char tokens dropped)."""
    if not text:
        return set()
    return {
        token
        for token in (t.lower() for t in _TOKEN_RE.findall(text))
        if len(token) > 1 and token not in _STOP_WORDS
    }


def token_overlap(query: str, text: str) -> float:
    """Share of the query's tokens that appear in *text*, in [0.0, 1.0]."""
    query_tokens = tokenize(query)
    if not query_tokens:
        return 0.0
    return len(query_tokens & tokenize(text)) / len(query_tokens)


def similarity(a: str, b: str) -> float:
    """rapidfuzz token-set similarity of *a* and *b*, scaled to [0.0, 1.0]."""
    if not a or not b:
        return 0.0
    return fuzz.token_set_ratio(a.lower(), b.lower()) / 100.0


def normalize_person_name(name: str | None) -> str:
    """Lower-case a person's name with honorifics and punctuation removed."""
    if not name:
        return ""
    cleaned = _HONORIFICS_RE.sub(" ", name)
    cleaned = re.sub(r"[^\w\s-]", " ", cleaned)
    return normalize_whitespace(cleaned).lower()


def normalize_organization(org: str | None) -> str:
    """Lower-case an organisation name with legal-form suffixes removed."""
    if not org:
        return ""
    cleaned = _ORG_SUFFIXES_RE.sub(" ", org)
    cleaned = re.sub(r"[^\w\s&-]", " ", cleaned)
    return normalize_whitespace(cleaned).lower()


def host_of(url: str | None) -> str:
    """Lower-cased host of *url* without a leading ``www.``; ``""`` if none."""
    if not url:
        return ""
    candidate = url if "//" in url else f"//{url}"
    host = (urlsplit(candidate).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def parse_datetime(value: object) -> datetime | None:
    """Parse the date/datetime shapes found on event pages.

    Accepts ``datetime``/``date`` objects, ISO-8601 strings (with ``Z`` or an
    offset, date-only, or with a time), and ``dd.mm.yyyy`` / ``dd/mm/yyyy``.
    Naive values are assumed to be UTC.  Returns ``None`` for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parsed = _parse_datetime_text(text)
        if parsed is None:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_datetime_text(text: str) -> datetime | None:
    match = _DMY_RE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            return None
    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(candidate[:10])
    except ValueError:
        return None


def parse_date(value: object) -> date | None:
    """Calendar date of :func:`parse_datetime`, or ``None``."""
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None
