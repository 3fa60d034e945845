"""Unit tests for the search CLI: argument parsing, formatting and exit codes."""

from __future__ import annotations

import json
from argparse import Namespace
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from eventscout.cli.search import _run, build_parser, format_json, format_text
from eventscout.models.result import (
    DateRange,
    FallbackTrace,
    FiltersTrace,
    OrchestratorResult,
    SearchTelemetry,
    SearchTrace,
)
from eventscout.models.search import FeatureFlags


# ======================================================================
# Shared helpers
# ======================================================================


def _result(items=None, fallback_used=False, issues=None, **trace_sections) -> OrchestratorResult:
    window = DateRange(date_from=date(2025, 3, 1), date_to=date(2025, 4, 30))
    return OrchestratorResult(
        items=items or [],
        trace=SearchTrace(marker="abc123", date_range=window, user_country="DE", **trace_sections),
        telemetry=SearchTelemetry(
            search_id="abc123",
            query="legal compliance conference",
            country="DE",
            date_range=window,
            flags=FeatureFlags(),
            quality_score=72,
        ),
        fallback_used=fallback_used,
        issues=issues or [],
    )


def _args(**overrides) -> Namespace:
    defaults = {
        "query": "legal compliance conference",
        "country": "DE",
        "days": None,
        "date_from": date(2025, 3, 1),
        "date_to": date(2025, 4, 30),
        "json_output": False,
        "bypass_ai": False,
        "no_demo": False,
        "allow_undated": False,
        "output": None,
        "quiet": True,
    }
    defaults.update(overrides)
    return Namespace(**defaults)


def _orchestrator(result: OrchestratorResult) -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.run = AsyncMock(return_value=result)
    return orchestrator


# ======================================================================
# build_parser
# ======================================================================


class TestBuildParser:
    def test_minimal_arguments(self) -> None:
        args = build_parser().parse_args(["regtech", "--country", "DE"])
        assert args.query == "regtech"
        assert args.country == "DE"
        assert args.days is None
        assert args.json_output is False

    def test_dates_are_parsed(self) -> None:
        args = build_parser().parse_args(
            ["regtech", "-c", "GB", "--from", "2025-03-01", "--to", "2025-03-31"]
        )
        assert args.date_from == date(2025, 3, 1)
        assert args.date_to == date(2025, 3, 31)

    def test_flags(self) -> None:
        args = build_parser().parse_args(
            ["regtech", "-c", "DE", "--json", "--bypass-ai", "--no-demo", "--allow-undated"]
        )
        assert args.json_output is True
        assert args.bypass_ai is True
        assert args.no_demo is True
        assert args.allow_undated is True

    def test_country_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["regtech"])


# ======================================================================
# Formatting
# ======================================================================


class TestFormatText:
    def test_lists_items(self, make_event) -> None:
        text = format_text(_result(items=[make_event()]))

        assert "'legal compliance conference' in DE" in text
        assert "quality 72/100" in text
        assert "- Compliance Tag 2025" in text
        assert "2025-03-20  |  Congress Center, Berlin, DE" in text
        assert "Speakers: Anna Schmidt" in text
        assert "[extracted]" in text

    def test_empty_result(self) -> None:
        assert "No events found." in format_text(_result())

    def test_undated_item(self, make_event) -> None:
        text = format_text(_result(items=[make_event(starts_on=None)]))
        assert "undated" in text

    def test_fallback_relaxation_and_issues(self) -> None:
        text = format_text(
            _result(
                fallback_used=True,
                issues=["Tier 'search' timed out"],
                filters=FiltersTrace(relaxation_applied=["date"]),
                fallbacks=FallbackTrace(used=True, source="demo"),
            )
        )
        assert "Relaxed filters: date" in text
        assert "Fallback used: demo" in text
        assert "  - Tier 'search' timed out" in text

    def test_fallback_without_source_is_rescue(self) -> None:
        assert "Fallback used: rescue path" in format_text(_result(fallback_used=True))


class TestFormatJson:
    def test_envelope_keys(self, make_event) -> None:
        payload = json.loads(format_json(_result(items=[make_event()])))
        assert set(payload) == {"items", "trace", "telemetry", "fallbackUsed", "issues"}
        assert payload["telemetry"]["searchId"] == "abc123"


# ======================================================================
# Runner exit codes
# ======================================================================


class TestRun:
    @pytest.mark.asyncio
    async def test_items_exit_zero(self, make_event, capsys) -> None:
        orchestrator = _orchestrator(_result(items=[make_event()]))
        with patch("eventscout.factory.build_orchestrator", return_value=orchestrator):
            code = await _run(_args())

        assert code == 0
        assert "Compliance Tag 2025" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_no_items_exit_one(self) -> None:
        with patch("eventscout.factory.build_orchestrator", return_value=_orchestrator(_result())):
            assert await _run(_args()) == 1

    @pytest.mark.asyncio
    async def test_invalid_request_exit_two(self, capsys) -> None:
        with patch("eventscout.factory.build_orchestrator") as build:
            code = await _run(_args(country=""))

        assert code == 2
        build.assert_not_called()
        assert "country (ISO2) required" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_flag_overrides_reach_request(self) -> None:
        orchestrator = _orchestrator(_result())
        with patch("eventscout.factory.build_orchestrator", return_value=orchestrator):
            await _run(_args(bypass_ai=True, no_demo=True, allow_undated=True))

        request = orchestrator.run.await_args.args[0]
        assert request.flags.bypass_ai_ranking is True
        assert request.flags.enable_demo_fallback is False
        assert request.flags.allow_undated is True

    @pytest.mark.asyncio
    async def test_writes_output_file(self, make_event, tmp_path) -> None:
        target = tmp_path / "out.json"
        orchestrator = _orchestrator(_result(items=[make_event()]))
        with patch("eventscout.factory.build_orchestrator", return_value=orchestrator):
            await _run(_args(json_output=True, output=str(target)))

        assert json.loads(target.read_text(encoding="utf-8"))["items"][0]["title"] == (
            "Compliance Tag 2025"
        )
