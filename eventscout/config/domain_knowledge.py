"""Static domain knowledge for event discovery.

# ─── PURPOSE ──────────────────────────────────────────────────────────
#
# Hand-maintained knowledge the pipeline uses wherever a model is not
# available or not trusted:
#
#   - the heuristic ranker scores pages by event keywords, trusted
#     event platforms, URL hints and spam markers,
#   - the relaxation filter widens "country == DE" to neighbouring
#     countries, the .de TLD and German cities,
#   - the curated tier and the demo fallback read their seed data here,
#   - the widened re-run picks its fallback queries here.
#
# All helpers are pure (no I/O).  Data structures are built once at
# module-load time and accessed via dict/set lookups.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re


# ═════════════════════════════════════════════════════════════════════════
# 1. KEYWORDS
# ═════════════════════════════════════════════════════════════════════════

EVENT_KEYWORDS: frozenset[str] = frozenset({
    # English
    "conference", "event", "meeting", "training", "certification",
    "seminar", "workshop", "forum", "summit", "symposium", "congress",
    "meetup", "webinar", "expo", "convention", "roundtable",
    # German
    "veranstaltung", "konferenz", "kongress", "tagung", "fortbildung",
    "messe", "schulung",
})

# Domain vocabulary that marks a page as on-topic for the compliance / legal
# audience the product was built for.  Used as a soft signal only.
LEGAL_KEYWORDS: frozenset[str] = frozenset({
    "legal", "law", "compliance", "regulatory", "regulation", "privacy",
    "gdpr", "dsgvo", "datenschutz", "recht", "rechtsberatung", "anwalt",
    "kanzlei", "juristisch", "audit", "governance", "risk", "legaltech",
    "regtech", "cybersecurity", "whistleblowing",
})

SPAM_INDICATORS: frozenset[str] = frozenset({
    "free", "download", "pdf", "ebook", "guide", "tips", "coupon", "casino",
})

# Path fragments that usually mean "this page is an event listing".
EVENT_URL_HINTS: tuple[str, ...] = (
    "/event", "/events", "/veranstaltung", "/termine", "/conference",
    "/seminar", "/workshop", "/kongress", "/tagung", "/forum", "/summit",
)

_DATE_SEGMENT_RE = re.compile(
    r"/(20\d{2}|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE
)


# ═════════════════════════════════════════════════════════════════════════
# 2. SOURCES
# ═════════════════════════════════════════════════════════════════════════

# Curated event/industry sites.  The curated tier turns these into
# site-restricted candidates and the heuristic ranker trusts them.
CURATED_SOURCES: dict[str, dict[str, object]] = {
    "legaltech.de": {"country": "DE", "title": "Legal Tech Veranstaltungen", "path": "/events"},
    "compliance-magazin.de": {"country": "DE", "title": "Compliance Termine", "path": "/termine"},
    "datenschutz-praxis.de": {"country": "DE", "title": "Datenschutz Seminare", "path": "/seminare"},
    "legal-tribune.de": {"country": "DE", "title": "LTO Veranstaltungskalender", "path": "/veranstaltungen"},
    "anwalt.de": {"country": "DE", "title": "Fortbildungen für Anwälte", "path": "/fortbildung"},
    "bundesanzeiger.de": {"country": "DE", "title": "Bundesanzeiger Termine", "path": "/termine"},
    "iapp.org": {"country": None, "title": "IAPP Conferences", "path": "/conference"},
    "legalgeek.co": {"country": "GB", "title": "Legal Geek Events", "path": "/events"},
    "lawsociety.org.uk": {"country": "GB", "title": "Law Society Events", "path": "/events"},
    "americanbar.org": {"country": "US", "title": "ABA Events & CLE", "path": "/events-cle"},
    "village-justice.com": {"country": "FR", "title": "Agenda juridique", "path": "/agenda"},
}

TRUSTED_EVENT_DOMAINS: frozenset[str] = frozenset({
    *CURATED_SOURCES,
    "eventbrite.com", "eventbrite.de", "meetup.com", "xing.com",
    "linkedin.com", "lanyrd.com", "conferenceindex.org",
})


# ═════════════════════════════════════════════════════════════════════════
# 3. GEOGRAPHY
# ═════════════════════════════════════════════════════════════════════════

COUNTRY_NAMES: dict[str, str] = {
    "DE": "Germany", "AT": "Austria", "CH": "Switzerland", "FR": "France",
    "NL": "Netherlands", "BE": "Belgium", "LU": "Luxembourg", "IT": "Italy",
    "ES": "Spain", "PL": "Poland", "CZ": "Czechia", "DK": "Denmark",
    "GB": "United Kingdom", "IE": "Ireland", "US": "United States",
    "CA": "Canada", "SE": "Sweden", "NO": "Norway", "PT": "Portugal",
}

# Lower-case aliases (native names, common spellings) -> ISO-3166 alpha-2.
COUNTRY_ALIASES: dict[str, str] = {
    **{name.lower(): code for code, name in COUNTRY_NAMES.items()},
    "deutschland": "DE", "german": "DE", "österreich": "AT", "oesterreich": "AT",
    "schweiz": "CH", "suisse": "CH", "svizzera": "CH", "uk": "GB",
    "england": "GB", "great britain": "GB", "usa": "US", "united states of america": "US",
    "nederland": "NL", "belgië": "BE", "belgique": "BE", "italia": "IT",
    "españa": "ES", "polska": "PL", "česko": "CZ", "czech republic": "CZ",
    "danmark": "DK", "sverige": "SE", "norge": "NO",
}

COUNTRY_NEIGHBOURS: dict[str, frozenset[str]] = {
    "DE": frozenset({"AT", "CH", "NL", "BE", "LU", "FR", "PL", "CZ", "DK"}),
    "AT": frozenset({"DE", "CH", "IT", "CZ"}),
    "CH": frozenset({"DE", "AT", "FR", "IT"}),
    "FR": frozenset({"BE", "LU", "DE", "CH", "IT", "ES"}),
    "NL": frozenset({"BE", "DE", "LU"}),
    "BE": frozenset({"NL", "LU", "FR", "DE"}),
    "GB": frozenset({"IE"}),
    "IE": frozenset({"GB"}),
    "US": frozenset({"CA"}),
    "CA": frozenset({"US"}),
}

# Country-code TLDs that differ from the lower-cased ISO code.
_TLD_OVERRIDES: dict[str, str] = {"GB": ".uk"}

COUNTRY_CITIES: dict[str, frozenset[str]] = {
    "DE": frozenset({
        "berlin", "münchen", "munich", "hamburg", "frankfurt", "köln", "cologne",
        "düsseldorf", "stuttgart", "leipzig", "dresden", "hannover", "nürnberg",
        "bremen", "essen", "dortmund", "bonn", "mannheim", "karlsruhe",
    }),
    "AT": frozenset({"wien", "vienna", "graz", "linz", "salzburg", "innsbruck"}),
    "CH": frozenset({"zürich", "zurich", "genf", "geneva", "basel", "bern", "lausanne"}),
    "FR": frozenset({"paris", "lyon", "marseille", "toulouse", "lille", "strasbourg"}),
    "GB": frozenset({"london", "manchester", "birmingham", "edinburgh", "leeds", "bristol"}),
    "US": frozenset({"new york", "washington", "chicago", "san francisco", "boston", "austin"}),
    "NL": frozenset({"amsterdam", "rotterdam", "den haag", "the hague", "utrecht"}),
}

# Filters the relaxation stage knows, in the default strictness order.
RELAXABLE_FILTERS: tuple[str, ...] = ("quality", "date-window", "country")

# Countries whose users get German-language queries and locale.
GERMAN_SPEAKING: frozenset[str] = frozenset({"DE", "AT", "CH"})


def normalize_country(value: str | None) -> str | None:
    """Map a country code, name or alias to ISO-3166 alpha-2, or ``None``.

    >>> normalize_country("Deutschland")
    'DE'
    >>> normalize_country("de")
    'DE'
    """
    if not value:
        return None
    cleaned = value.strip()
    if len(cleaned) == 2 and cleaned.isalpha():
        code = cleaned.upper()
        return "GB" if code == "UK" else code
    return COUNTRY_ALIASES.get(cleaned.lower())


def country_tld(code: str) -> str:
    """Return the country-code TLD for *code*, e.g. ``".de"`` / ``".uk"``."""
    return _TLD_OVERRIDES.get(code.upper(), f".{code.lower()}")


def country_for_city(city: str | None) -> str | None:
    """Return the country whose known-city list contains *city*."""
    if not city:
        return None
    lowered = city.strip().lower()
    for code, cities in COUNTRY_CITIES.items():
        if lowered in cities:
            return code
    return None


def has_date_segment(url: str) -> bool:
    """``True`` when *url* contains a year or month path segment."""
    return bool(_DATE_SEGMENT_RE.search(url))


# ═════════════════════════════════════════════════════════════════════════
# 4. FALLBACK DATA
# ═════════════════════════════════════════════════════════════════════════

_GENERIC_FALLBACK_QUERIES: tuple[str, ...] = (
    "legal conference OR compliance summit OR regulatory forum",
    "data protection conference OR privacy summit",
    "cybersecurity event OR information security conference",
    "audit training OR risk management seminar",
    "site:eventbrite.com legal OR compliance",
)

_GERMAN_FALLBACK_QUERIES: tuple[str, ...] = (
    "recht konferenz OR compliance tagung OR datenschutz veranstaltung",
    "legal tech OR regtech OR compliance technology",
)


def fallback_queries(country: str) -> list[str]:
    """Broad queries for the widened re-run when the user's query found nothing."""
    queries = list(_GENERIC_FALLBACK_QUERIES)
    if country.upper() in GERMAN_SPEAKING:
        queries = [*_GERMAN_FALLBACK_QUERIES, *queries]
    name = COUNTRY_NAMES.get(country.upper())
    if name:
        queries = [f"{q} {name}" if "site:" not in q else q for q in queries]
    return queries


# Demo events used as the very last fallback.  City/venue are picked per
# country so the demo set still passes a country filter.
DEMO_EVENT_TEMPLATES: tuple[dict[str, str], ...] = (
    {
        "slug": "legal-tech-conference",
        "title": "Legal Tech Conference",
        "description": "Annual conference on legal technology, automation and compliance tooling.",
        "venue": "Convention Center",
    },
    {
        "slug": "compliance-summit",
        "title": "Compliance Summit",
        "description": "Regulatory compliance, data protection and governance practitioners' summit.",
        "venue": "Congress Hall",
    },
)

DEMO_CITIES: dict[str, tuple[str, str]] = {
    "DE": ("Berlin", "München"),
    "AT": ("Wien", "Graz"),
    "CH": ("Zürich", "Basel"),
    "FR": ("Paris", "Lyon"),
    "GB": ("London", "Manchester"),
    "US": ("New York", "Chicago"),
    "NL": ("Amsterdam", "Rotterdam"),
}
