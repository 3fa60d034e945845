"""Unit tests for the scoring utilities."""

from __future__ import annotations

import math

import pytest

from eventscout.utils.confidence import (
    ConfidenceLevel,
    calculate_confidence,
    clamp_score,
    confidence_to_level,
    populated_confidence,
)


class TestClampScore:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.5, 0.5), (87, 1.0), (-3, 0.0), ("0.4", 0.4), (1, 1.0)],
    )
    def test_clamps_numbers(self, value: object, expected: float) -> None:
        assert clamp_score(value) == expected

    @pytest.mark.parametrize("value", [None, True, "high", math.nan, math.inf, [0.5]])
    def test_rejects_non_numbers(self, value: object) -> None:
        assert clamp_score(value) is None


class TestCalculateConfidence:
    def test_equal_weights(self) -> None:
        assert calculate_confidence([0.2, 0.4]) == pytest.approx(0.3)

    def test_weighted(self) -> None:
        assert calculate_confidence([1.0, 0.0], [3.0, 1.0]) == pytest.approx(0.75)

    def test_zero_weights(self) -> None:
        assert calculate_confidence([1.0], [0.0]) == 0.0

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            calculate_confidence([])

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError):
            calculate_confidence([0.5], [1.0, 2.0])


class TestPopulatedConfidence:
    def test_share_of_populated_fields(self) -> None:
        score = populated_confidence({"title": True, "venue": False}, {"title": 3.0})
        assert score == pytest.approx(0.75)

    def test_no_fields(self) -> None:
        assert populated_confidence({}, {}) == 0.0


class TestConfidenceToLevel:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (0.0, ConfidenceLevel.VERY_LOW),
            (0.2, ConfidenceLevel.LOW),
            (0.45, ConfidenceLevel.MEDIUM),
            (0.79, ConfidenceLevel.HIGH),
            (0.8, ConfidenceLevel.VERY_HIGH),
        ],
    )
    def test_boundaries(self, score: float, level: ConfidenceLevel) -> None:
        assert confidence_to_level(score) is level
