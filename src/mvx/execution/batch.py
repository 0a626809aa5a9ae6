"""Sequential batch execution with per-entry failure isolation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from mvx.planning.exceptions import PlanValidationError
from mvx.planning.models import ConversionOptions, Plan
from mvx.planning.planner import ConversionPlanner

from .errors import ExecutionError
from .executor import PlanExecutor

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchRequest:
    """One source/destination pair to plan and execute.

    ``plan`` may carry an already-built plan, in which case planning is skipped.
    """

    source: Path
    destination: Path
    plan: Optional[Plan] = None


@dataclass(slots=True)
class BatchEntryResult:
    """Outcome for a single batch entry.

    Attributes:
        source: Source path of the entry.
        destination: Requested destination.
        ok: Whether the entry completed.
        plan: Plan built for the entry, when planning succeeded.
        error: Failure message, when the entry failed.
        step: Failing step name (``plan`` for planning failures).
    """

    source: Path
    destination: Path
    ok: bool
    plan: Optional[Plan] = None
    error: Optional[str] = None
    step: Optional[str] = None


@dataclass(slots=True)
class BatchReport:
    """Aggregate outcome of a batch run."""

    results: List[BatchEntryResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def ok(self) -> bool:
        return self.failed == 0

    @property
    def failures(self) -> List[BatchEntryResult]:
        return [result for result in self.results if not result.ok]

    def to_dict(self) -> dict:
        """Return a JSON-serialisable summary."""
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [
                {
                    "source": str(result.source),
                    "destination": str(result.destination),
                    "ok": result.ok,
                    "error": result.error,
                    "step": result.step,
                }
                for result in self.results
            ],
        }


class BatchRunner:
    """Plan and execute requests one after another.

    A failing entry is recorded and never stops the remaining entries.
    """

    def __init__(
        self,
        planner: ConversionPlanner,
        executor: PlanExecutor,
        *,
        options: Optional[ConversionOptions] = None,
        overwrite: bool = False,
        backup: bool = False,
        move_source: bool = False,
        dry_run: bool = False,
    ) -> None:
        self.planner = planner
        self.executor = executor
        self.options = options or ConversionOptions()
        self.overwrite = overwrite
        self.backup = backup
        self.move_source = move_source
        self.dry_run = dry_run

    def run(self, requests: Iterable[BatchRequest]) -> BatchReport:
        """Process every request in order and return the aggregate report."""
        report = BatchReport()
        for request in requests:
            report.results.append(self.run_one(request))
        LOGGER.info(
            "Batch finished: total=%d succeeded=%d failed=%d",
            report.total,
            report.succeeded,
            report.failed,
        )
        return report

    def run_one(self, request: BatchRequest) -> BatchEntryResult:
        """Plan and execute a single request, capturing its failure."""
        try:
            plan = request.plan or self.planner.build_plan(
                request.source,
                request.destination,
                move_source=self.move_source,
                backup=self.backup,
                options=self.options,
            )
        except PlanValidationError as exc:
            label = str(request.source)
            self.executor.sink.started(label)
            self.executor.sink.finished(label, False, str(exc))
            return BatchEntryResult(
                source=request.source,
                destination=request.destination,
                ok=False,
                error=str(exc),
                step="plan",
            )

        if self.dry_run:
            return BatchEntryResult(
                source=request.source, destination=request.destination, ok=True, plan=plan
            )

        try:
            self.executor.execute(plan, overwrite=self.overwrite)
        except ExecutionError as exc:
            LOGGER.warning("Failed %s: %s", request.source, exc)
            return BatchEntryResult(
                source=request.source,
                destination=request.destination,
                ok=False,
                plan=plan,
                error=str(exc),
                step=exc.step,
            )
        return BatchEntryResult(
            source=request.source, destination=request.destination, ok=True, plan=plan
        )


__all__ = ["BatchEntryResult", "BatchReport", "BatchRequest", "BatchRunner"]
