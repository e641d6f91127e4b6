"""Progress and result channel for analysis runs."""

from __future__ import annotations

from typing import Any

from wealth_tracker.models import ProgressPhase, WealthRecord


class ProgressState:
    """Pull-based progress owned by one orchestrator.

    Written only by the orchestrator, enumerator and batch scheduler at
    sequence points between awaits; observers read it through ``snapshot()``.
    ``processed`` never decreases within a run and never exceeds ``total``;
    ``results`` is only populated once the run is completed.

    While ``phase`` is enumerating, ``total`` is still zero and the running
    member count is reported in ``discovered``; ``processed`` only counts
    valuation submissions.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._phase = ProgressPhase.IDLE
        self._discovered = 0
        self._processed = 0
        self._total = 0
        self._completed = False
        self._results: list[WealthRecord] = []
        self._error: str | None = None

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def begin_enumeration(self) -> None:
        self.reset()
        self._phase = ProgressPhase.ENUMERATING

    def record_discovered(self, count: int) -> None:
        """Members found so far; total is still unknown while enumerating."""
        self._discovered = max(self._discovered, count)

    def begin_valuation(self, total: int) -> None:
        self._phase = ProgressPhase.VALUATING
        self._total = total
        self._discovered = max(self._discovered, total)

    def record_processed(self, count: int) -> None:
        if self._phase is ProgressPhase.VALUATING:
            count = min(count, self._total)
        self._processed = max(self._processed, count)

    def complete(self, results: list[WealthRecord]) -> None:
        if self._completed:
            raise RuntimeError("progress already marked completed")
        self._processed = self._total
        self._results = list(results)
        self._completed = True
        self._phase = ProgressPhase.COMPLETED

    def fail(self, message: str) -> None:
        self._phase = ProgressPhase.FAILED
        self._error = message
        self._completed = False
        self._results = []

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @property
    def phase(self) -> ProgressPhase:
        return self._phase

    @property
    def discovered(self) -> int:
        return self._discovered

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def total(self) -> int:
        return self._total

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def results(self) -> list[WealthRecord]:
        return list(self._results)

    @property
    def error(self) -> str | None:
        return self._error

    def snapshot(self) -> dict[str, Any]:
        percent = round(self._processed / self._total * 100) if self._total else 0
        return {
            "phase": self._phase.value,
            "discovered": self._discovered,
            "processed": self._processed,
            "total": self._total,
            "percent": percent,
            "completed": self._completed,
            "results": [r.to_dict() for r in self._results],
            "error": self._error,
        }
