"""Test lifecycle bookkeeping and streaming of results to reporters."""

from __future__ import annotations

import itertools
import logging
import time
from typing import Protocol

from contractfuzz.core.errors import FuzzerExecutionError
from contractfuzz.core.types import (
    ErrorKind,
    ExpectationRecord,
    HttpMethod,
    ResponseCodeFamily,
    RunSummary,
    Verdict,
)
from contractfuzz.reporting.statistics import RunStatistics

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """Receives one record at a time as tests start and finish."""

    def test_started(self, record: ExpectationRecord) -> None: ...

    def test_finished(self, record: ExpectationRecord) -> None: ...


class LoggingReporter:
    """Writes every finished test to the log; failures at WARNING or above."""

    _LEVELS = {
        Verdict.PASS: logging.INFO,
        Verdict.FUNCTIONAL_FAILURE: logging.WARNING,
        Verdict.EXECUTION_ERROR: logging.ERROR,
    }

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def test_started(self, record: ExpectationRecord) -> None:
        logger.debug(
            "%s: %s", record.fuzzer, record.scenario,
            extra=self._context(record),
        )

    def test_finished(self, record: ExpectationRecord) -> None:
        level = self._LEVELS.get(record.verdict, logging.INFO)
        if self.quiet and level < logging.WARNING:
            return
        expected = record.expected.value if record.expected else "-"
        actual = record.actual_code if record.actual_code is not None else "-"
        message = f"{record.method.value} {record.path} {record.fuzzer}: expected {expected}, got {actual}"
        if record.verdict is not None:
            message += f" [{record.verdict.value}]"
        if record.detail:
            message += f" {record.detail}"
        logger.log(level, message, extra=self._context(record))

    @staticmethod
    def _context(record: ExpectationRecord) -> dict:
        context = {
            "test_id": record.test_id,
            "path": record.path,
            "method": record.method.value,
            "fuzzer": record.fuzzer,
        }
        if record.actual_code is not None:
            context["status_code"] = record.actual_code
        if record.verdict is not None:
            context["verdict"] = record.verdict.value
        return context


class TestCaseListener:
    """Owns test ids, per-path progress and the run statistics."""

    __test__ = False  # not a pytest class

    def __init__(self, statistics: RunStatistics, reporters: list[Reporter] | None = None) -> None:
        self.statistics = statistics
        self.reporters: list[Reporter] = list(reporters) if reporters is not None else [LoggingReporter()]
        self.total_runs: dict[str, int] = {}
        self.completed_runs: dict[str, int] = {}
        self._ids = itertools.count(1)
        self._current: tuple[str, str, HttpMethod | None] | None = None
        self._started_at: float | None = None

    # ── Session ──────────────────────────────────────────────────────────

    def start_session(self) -> None:
        self._started_at = time.monotonic()
        logger.info("Fuzzing session started")

    def end_session(self) -> RunSummary:
        summary = self.statistics.summary()
        elapsed = time.monotonic() - self._started_at if self._started_at is not None else 0.0
        logger.info(
            "Fuzzing session finished in %.1fs: %d tests, %d passed, %d functional failures, "
            "%d execution errors (%d auth, %d io)",
            elapsed, summary.total_executed, summary.passed, summary.functional_failures,
            summary.execution_errors, summary.auth_errors, summary.io_errors,
        )
        self._suggest(summary)
        return summary

    @staticmethod
    def _suggest(summary: RunSummary) -> None:
        if summary.auth_errors:
            logger.warning(
                "%d tests were rejected with 401/403; check the credentials passed with --headers or -H",
                summary.auth_errors,
            )
        if summary.io_errors:
            logger.warning(
                "%d tests could not reach the service; check --server and --timeout",
                summary.io_errors,
            )

    # ── Scheduling hooks ─────────────────────────────────────────────────

    def set_total_runs_per_path(self, path: str, total: int) -> None:
        self.total_runs[path] = total
        self.completed_runs[path] = 0
        logger.info("Path %s: %d fuzzer runs scheduled", path, total, extra={"path": path})

    def before_fuzz(self, fuzzer: str, path: str, method: HttpMethod | None) -> None:
        self._current = (fuzzer, path, method)

    def after_fuzz(self, path: str, method: HttpMethod | None) -> None:
        self._current = None
        done = self.completed_runs.get(path, 0) + 1
        self.completed_runs[path] = done
        total = self.total_runs.get(path)
        if total:
            logger.debug("Path %s: %d/%d fuzzer runs done", path, done, total, extra={"path": path})

    @property
    def current(self) -> tuple[str, str, HttpMethod | None] | None:
        return self._current

    # ── Tests ────────────────────────────────────────────────────────────

    def new_record(
        self,
        fuzzer: str,
        path: str,
        method: HttpMethod,
        scenario: str,
        expected: ResponseCodeFamily | None = None,
        target: str | None = None,
    ) -> ExpectationRecord:
        return ExpectationRecord(
            test_id=next(self._ids),
            path=path,
            method=method,
            fuzzer=fuzzer,
            scenario=scenario,
            target=target,
            expected=expected,
        )

    def test_started(self, record: ExpectationRecord) -> None:
        for reporter in self.reporters:
            reporter.test_started(record)

    def test_finished(self, record: ExpectationRecord) -> None:
        self.statistics.record(record)
        for reporter in self.reporters:
            reporter.test_finished(record)

    def record_execution_error(self, error: FuzzerExecutionError) -> ExpectationRecord:
        """Record a fuzzer that blew up as one finished, errored test."""
        record = self.new_record(
            fuzzer=error.fuzzer,
            path=error.path,
            method=HttpMethod.parse(error.method),
            scenario="Fuzzer execution",
        ).model_copy(
            update={
                "verdict": Verdict.EXECUTION_ERROR,
                "error_kind": ErrorKind.FUZZER,
                "detail": error.message,
            }
        )
        self.test_finished(record)
        return record
