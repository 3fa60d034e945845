"""Unit tests for eventscout/config/domain_knowledge.py.

Tests cover the geography helpers and the fallback seed data:
  1. Country normalization + normalize_country()
  2. TLDs, cities and neighbours
  3. URL date segments
  4. Fallback queries + demo templates
"""

from __future__ import annotations

import pytest

from eventscout.config.domain_knowledge import (
    COUNTRY_NEIGHBOURS,
    CURATED_SOURCES,
    DEMO_CITIES,
    DEMO_EVENT_TEMPLATES,
    TRUSTED_EVENT_DOMAINS,
    country_for_city,
    country_tld,
    fallback_queries,
    has_date_segment,
    normalize_country,
)


# ═══════════════════════════════════════════════════════════════════════════
# 1. Country normalization
# ═══════════════════════════════════════════════════════════════════════════


class TestNormalizeCountry:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("DE", "DE"),
            ("de", "DE"),
            (" at ", "AT"),
            ("Germany", "DE"),
            ("Deutschland", "DE"),
            ("Österreich", "AT"),
            ("UK", "GB"),
            ("united states of america", "US"),
        ],
    )
    def test_known_values(self, value: str, expected: str) -> None:
        assert normalize_country(value) == expected

    def test_unknown_name(self) -> None:
        assert normalize_country("Atlantis") is None

    def test_empty(self) -> None:
        assert normalize_country("") is None
        assert normalize_country(None) is None

    def test_any_two_letters_pass_through(self) -> None:
        # Codes are not checked against a registry; the filter just compares them.
        assert normalize_country("zz") == "ZZ"


# ═══════════════════════════════════════════════════════════════════════════
# 2. TLDs, cities and neighbours
# ═══════════════════════════════════════════════════════════════════════════


class TestGeography:
    def test_tld_default_and_override(self) -> None:
        assert country_tld("DE") == ".de"
        assert country_tld("gb") == ".uk"

    def test_country_for_city(self) -> None:
        assert country_for_city("Berlin") == "DE"
        assert country_for_city("  MÜNCHEN ") == "DE"
        assert country_for_city("Wien") == "AT"
        assert country_for_city("Atlantis") is None
        assert country_for_city(None) is None

    def test_neighbours_are_symmetric_within_dach(self) -> None:
        for a, b in (("DE", "AT"), ("DE", "CH"), ("AT", "CH")):
            assert b in COUNTRY_NEIGHBOURS[a]
            assert a in COUNTRY_NEIGHBOURS[b]

    def test_curated_sources_are_trusted(self) -> None:
        assert set(CURATED_SOURCES) <= TRUSTED_EVENT_DOMAINS


# ═══════════════════════════════════════════════════════════════════════════
# 3. URL date segments
# ═══════════════════════════════════════════════════════════════════════════


class TestDateSegment:
    def test_year_segment(self) -> None:
        assert has_date_segment("https://a.de/2025/compliance-tag")

    def test_month_segment(self) -> None:
        assert has_date_segment("https://a.de/events/Mar/forum")

    def test_no_segment(self) -> None:
        assert not has_date_segment("https://a.de/events/compliance-tag")


# ═══════════════════════════════════════════════════════════════════════════
# 4. Fallback seed data
# ═══════════════════════════════════════════════════════════════════════════


class TestFallbackQueries:
    def test_german_queries_first_for_dach(self) -> None:
        queries = fallback_queries("AT")
        assert queries[0].startswith("recht konferenz")
        assert queries[0].endswith(" Austria")

    def test_generic_only_outside_dach(self) -> None:
        queries = fallback_queries("fr")
        assert not any("recht" in q for q in queries)
        assert all(q.endswith(" France") for q in queries if "site:" not in q)

    def test_site_query_not_suffixed(self) -> None:
        site_queries = [q for q in fallback_queries("DE") if "site:" in q]
        assert site_queries == ["site:eventbrite.com legal OR compliance"]

    def test_unknown_country_unsuffixed(self) -> None:
        assert fallback_queries("ZZ")[0] == "legal conference OR compliance summit OR regulatory forum"


class TestDemoData:
    def test_templates_have_required_keys(self) -> None:
        for template in DEMO_EVENT_TEMPLATES:
            assert {"slug", "title", "description", "venue"} <= set(template)

    def test_demo_cities_belong_to_their_country(self) -> None:
        for code, cities in DEMO_CITIES.items():
            for city in cities:
                assert country_for_city(city) == code
