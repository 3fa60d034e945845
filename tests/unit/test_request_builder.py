"""Unit tests for building validated search requests from caller input."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from eventscout.config.settings import Settings
from eventscout.services.request_builder import build_search_request, default_flags
from eventscout.utils.errors import InvalidSearchRequestError


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        default_window_days=30,
        default_run_timeout=20.0,
        relax_country=False,
    )


class TestDefaults:
    def test_window_defaults_to_today_plus_setting(self, settings: Settings) -> None:
        request = build_search_request("legal tech", "DE", settings=settings)
        assert request.date_from == date.today()
        assert request.date_to == date.today() + timedelta(days=30)

    def test_days_overrides_window_length(self, settings: Settings) -> None:
        request = build_search_request(
            "legal tech", "DE", date_from=date(2025, 3, 1), days=7, settings=settings
        )
        assert request.date_to == date(2025, 3, 8)

    def test_explicit_window_wins(self, settings: Settings) -> None:
        request = build_search_request(
            "legal tech",
            "DE",
            date_from=date(2025, 3, 1),
            date_to=date(2025, 3, 2),
            days=90,
            settings=settings,
        )
        assert request.date_to == date(2025, 3, 2)

    def test_snapshots_settings(self, settings: Settings) -> None:
        request = build_search_request("legal tech", "Germany", settings=settings)
        assert request.country == "DE"
        assert request.timeouts.run == 20.0
        assert request.flags.relax_country is False

    def test_relaxation_order_passed_through(self, settings: Settings) -> None:
        request = build_search_request(
            "legal tech", "DE", settings=settings, relaxation_order=["country", "quality"]
        )
        assert request.relaxation_order == ("country", "quality")


class TestFlagOverrides:
    def test_overrides_apply(self, settings: Settings) -> None:
        flags = default_flags(settings, {"bypass_ai_ranking": True})
        assert flags.bypass_ai_ranking is True
        assert flags.relax_country is False

    def test_none_overrides_are_ignored(self, settings: Settings) -> None:
        flags = default_flags(settings, {"relax_country": None})
        assert flags.relax_country is False


class TestInvalidInput:
    def test_missing_country(self, settings: Settings) -> None:
        with pytest.raises(InvalidSearchRequestError) as exc_info:
            build_search_request("legal tech", None, settings=settings)
        assert exc_info.value.message == "country (ISO2) required"

    def test_empty_query(self, settings: Settings) -> None:
        with pytest.raises(InvalidSearchRequestError) as exc_info:
            build_search_request("", "DE", settings=settings)
        assert exc_info.value.message.startswith("query")

    def test_negative_days(self, settings: Settings) -> None:
        with pytest.raises(InvalidSearchRequestError, match="days must not be negative"):
            build_search_request("legal tech", "DE", days=-1, settings=settings)

    def test_inverted_window(self, settings: Settings) -> None:
        with pytest.raises(InvalidSearchRequestError) as exc_info:
            build_search_request(
                "legal tech",
                "DE",
                date_from=date(2025, 5, 1),
                date_to=date(2025, 4, 1),
                settings=settings,
            )
        assert exc_info.value.message == "date_from must not be after date_to"

    def test_unknown_relaxation_filter(self, settings: Settings) -> None:
        with pytest.raises(InvalidSearchRequestError, match="unknown relaxation filter"):
            build_search_request("legal tech", "DE", settings=settings, relaxation_order=["price"])
