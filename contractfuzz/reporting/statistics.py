"""Run-wide outcome counters.

One ``RunStatistics`` instance is created per run and passed by reference
to everything that classifies outcomes. Increments take a lock because the
background update check runs on the same loop as a second writer and may
be joined from another thread at exit.
"""

from __future__ import annotations

import enum
import threading
from collections import Counter

from contractfuzz.core.types import ErrorKind, ExpectationRecord, RunSummary, Verdict


class StatCategory(str, enum.Enum):
    TOTAL = "total_executed"
    PASSED = "passed"
    FUNCTIONAL_FAILURES = "functional_failures"
    EXECUTION_ERRORS = "execution_errors"
    AUTH_ERRORS = "auth_errors"
    IO_ERRORS = "io_errors"


class RunStatistics:
    """Monotonic counters; read once at the end of the run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[StatCategory] = Counter()

    def increment(self, category: StatCategory, amount: int = 1) -> None:
        if amount < 0:
            raise ValueError("Counters are monotonic")
        with self._lock:
            self._counts[category] += amount

    def record(self, record: ExpectationRecord) -> None:
        """Count one finished test by its verdict."""
        categories = [StatCategory.TOTAL]
        if record.verdict == Verdict.PASS:
            categories.append(StatCategory.PASSED)
        elif record.verdict == Verdict.FUNCTIONAL_FAILURE:
            categories.append(StatCategory.FUNCTIONAL_FAILURES)
        elif record.verdict == Verdict.EXECUTION_ERROR:
            categories.append(StatCategory.EXECUTION_ERRORS)
            if record.error_kind == ErrorKind.AUTH:
                categories.append(StatCategory.AUTH_ERRORS)
            elif record.error_kind == ErrorKind.IO:
                categories.append(StatCategory.IO_ERRORS)
        with self._lock:
            for category in categories:
                self._counts[category] += 1

    def get(self, category: StatCategory) -> int:
        with self._lock:
            return self._counts[category]

    def summary(self) -> RunSummary:
        with self._lock:
            return RunSummary(**{category.value: self._counts[category] for category in StatCategory})
