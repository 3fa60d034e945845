"""Stage bookkeeping and run diagnostics.

:class:`StageLedger` collects one :class:`StageRecord` per pipeline stage
as the orchestrator moves through the state machine, and fills in any stage
that never ran as ``skipped`` so the trace always has all six.

The remaining helpers turn a finished run into telemetry: result counts
and a 0-100 quality score.
"""

from __future__ import annotations

import time

from eventscout.models.event import ExtractedEvent
from eventscout.models.result import (
    PipelineStage,
    ResultCounts,
    StageError,
    StageRecord,
    StageStatus,
)


def elapsed_ms(started: float) -> float:
    """Milliseconds since *started* (a ``time.perf_counter()`` value)."""
    return round((time.perf_counter() - started) * 1000, 2)


class StageLedger:
    """Ordered, per-run collection of stage records."""

    def __init__(self) -> None:
        self._records: dict[PipelineStage, StageRecord] = {}

    def record(
        self,
        stage: PipelineStage,
        started: float,
        items_in: int,
        items_out: int,
        errors: list[StageError] | None = None,
        notes: list[str] | None = None,
    ) -> StageRecord:
        errors = list(errors or [])
        record = StageRecord(
            stage=stage,
            status=StageStatus.DEGRADED if errors else StageStatus.OK,
            items_in=items_in,
            items_out=items_out,
            duration_ms=elapsed_ms(started),
            errors=errors,
            notes=list(notes or []),
        )
        self._records[stage] = record
        return record

    def skip(self, stage: PipelineStage, reason: str, items_in: int = 0) -> StageRecord:
        record = StageRecord(
            stage=stage, status=StageStatus.SKIPPED, items_in=items_in, notes=[reason]
        )
        self._records[stage] = record
        return record

    def get(self, stage: PipelineStage) -> StageRecord | None:
        return self._records.get(stage)

    def duration_ms(self, stage: PipelineStage) -> float:
        record = self._records.get(stage)
        return record.duration_ms if record else 0.0

    def records(self) -> list[StageRecord]:
        """All six stages in pipeline order; missing ones as skipped."""
        return [
            self._records.get(stage)
            or StageRecord(stage=stage, status=StageStatus.SKIPPED, notes=["not reached"])
            for stage in PipelineStage
        ]

    def durations(self) -> dict[str, float]:
        return {record.stage.value: record.duration_ms for record in self.records()}


def result_counts(items: list[ExtractedEvent]) -> ResultCounts:
    successful = sum(1 for item in items if item.success)
    return ResultCounts(
        total=len(items),
        successful=successful,
        failed=len(items) - successful,
        undated=sum(1 for item in items if item.undated),
    )


def quality_score(counts: ResultCounts, issue_count: int, fallback_used: bool) -> int:
    """Heuristic 0-100 health score of one run.

    Starts at 100 and loses 10 per issue, up to 20 for a low extraction
    success rate, up to 10 for undated results and 10 when a fallback was
    needed.  An empty result scores 0.
    """
    if counts.total == 0:
        return 0
    score = 100 - 10 * issue_count
    score -= round(20 * (1 - counts.successful / counts.total))
    score -= round(10 * counts.undated / counts.total)
    if fallback_used:
        score -= 10
    return max(0, min(100, score))
