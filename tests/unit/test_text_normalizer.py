"""Unit tests for text normalization utilities."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from eventscout.utils.text_normalizer import (
    host_of,
    normalize_organization,
    normalize_person_name,
    normalize_whitespace,
    parse_date,
    parse_datetime,
    similarity,
    token_overlap,
    tokenize,
)


# ======================================================================
# tokenize / token_overlap / similarity
# ======================================================================


class TestTokenize:
    def test_drops_stop_words_in_both_languages(self) -> None:
        assert tokenize("The conference for Recht und Compliance") == {
            "conference", "recht", "compliance",
        }

    def test_drops_single_characters(self) -> None:
        assert tokenize("a b legal") == {"legal"}

    def test_none_is_empty(self) -> None:
        assert tokenize(None) == set()


class TestTokenOverlap:
    def test_full_overlap(self) -> None:
        assert token_overlap("legal tech", "Legal Tech Summit Berlin") == 1.0

    def test_half_overlap(self) -> None:
        assert token_overlap("legal compliance", "Compliance Forum") == 0.5

    def test_empty_query_is_zero(self) -> None:
        assert token_overlap("the and", "anything") == 0.0


class TestSimilarity:
    def test_identical_is_one(self) -> None:
        assert similarity("Legal Tech", "legal tech") == 1.0

    def test_empty_side_is_zero(self) -> None:
        assert similarity("", "legal") == 0.0

    def test_unrelated_is_low(self) -> None:
        assert similarity("compliance", "xyz") == 0.0


# ======================================================================
# Names
# ======================================================================


class TestNormalizePersonName:
    def test_strips_honorifics(self) -> None:
        assert normalize_person_name("Prof. Dr. Anna Schmidt") == "anna schmidt"

    def test_collapses_whitespace(self) -> None:
        assert normalize_person_name("  Anna   Schmidt ") == "anna schmidt"

    def test_none_is_empty(self) -> None:
        assert normalize_person_name(None) == ""


class TestNormalizeOrganization:
    def test_strips_legal_form(self) -> None:
        assert normalize_organization("Acme GmbH") == "acme"

    def test_case_insensitive(self) -> None:
        assert normalize_organization("ACME") == normalize_organization("Acme Ltd.")

    def test_empty(self) -> None:
        assert normalize_organization("") == ""


class TestNormalizeWhitespace:
    def test_collapses(self) -> None:
        assert normalize_whitespace(" a \n\t b ") == "a b"

    def test_none(self) -> None:
        assert normalize_whitespace(None) == ""


# ======================================================================
# URLs and dates
# ======================================================================


class TestHostOf:
    def test_strips_www(self) -> None:
        assert host_of("https://www.LegalTech.de/events") == "legaltech.de"

    def test_schemeless(self) -> None:
        assert host_of("legaltech.de/events") == "legaltech.de"

    def test_empty(self) -> None:
        assert host_of(None) == ""


class TestParseDatetime:
    def test_iso_with_z(self) -> None:
        assert parse_datetime("2025-03-20T09:00:00Z") == datetime(
            2025, 3, 20, 9, 0, tzinfo=timezone.utc  # noqa: UP017
        )

    def test_date_only_is_utc_midnight(self) -> None:
        parsed = parse_datetime("2025-03-20")
        assert parsed is not None
        assert parsed.tzinfo is not None
        assert (parsed.hour, parsed.minute) == (0, 0)

    def test_german_day_month_year(self) -> None:
        assert parse_date("20.03.2025") == date(2025, 3, 20)

    def test_invalid_day_month_year(self) -> None:
        assert parse_date("31.02.2025") is None

    def test_date_object(self) -> None:
        assert parse_date(date(2025, 3, 20)) == date(2025, 3, 20)

    @pytest.mark.parametrize("value", [None, "", "next Tuesday", 42])
    def test_unparseable(self, value: object) -> None:
        assert parse_datetime(value) is None
