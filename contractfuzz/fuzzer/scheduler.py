"""Two-phase scheduling of fuzzers over the cases of each path.

Phase one runs every eligible per-case fuzzer once per assembled case.
Phase two runs the cross-cutting fuzzers, in registration order, once the
whole path is done with phase one. Pairs execute strictly one after the
other; a failing pair is recorded and the schedule moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from contractfuzz.contract.assembler import TestDataAssembler
from contractfuzz.contract.catalog import OperationCatalog
from contractfuzz.core.errors import FuzzerExecutionError, OperationAssemblyError
from contractfuzz.core.types import ContractOperation, FuzzCase, HttpMethod
from contractfuzz.fuzzer.fuzzers import CaseFuzzer, PathFuzzer
from contractfuzz.reporting.listener import TestCaseListener

logger = logging.getLogger(__name__)


@dataclass
class PathPlan:
    path: str
    cases: list[FuzzCase] = field(default_factory=list)
    first_phase: list[CaseFuzzer] = field(default_factory=list)
    second_phase: list[PathFuzzer] = field(default_factory=list)

    @property
    def total_runs(self) -> int:
        return len(self.first_phase) * len(self.cases) + len(self.second_phase)


def eligible_fuzzers(fuzzers: list[CaseFuzzer], methods: set[HttpMethod]) -> list[CaseFuzzer]:
    """Fuzzers whose skip set does not touch any method in the batch."""
    return [fuzzer for fuzzer in fuzzers if not (fuzzer.skip_methods & methods)]


class FuzzingScheduler:
    def __init__(
        self,
        assembler: TestDataAssembler,
        first_phase: list[CaseFuzzer],
        second_phase: list[PathFuzzer],
        listener: TestCaseListener,
    ) -> None:
        self.assembler = assembler
        self.first_phase = first_phase
        self.second_phase = second_phase
        self.listener = listener

    def assemble(self, operations: list[ContractOperation]) -> list[FuzzCase]:
        cases: list[FuzzCase] = []
        for operation in operations:
            context = {"path": operation.path, "method": operation.method.value}
            try:
                assembled = self.assembler.assemble(operation)
            except OperationAssemblyError as exc:
                logger.warning("Skipping %s %s: %s", operation.method.value, operation.path, exc, extra=context)
                continue
            if not assembled:
                logger.warning(
                    "Skipping %s %s: no fuzz case could be assembled",
                    operation.method.value, operation.path, extra=context,
                )
                continue
            cases.extend(assembled)
        return cases

    def plan(self, path: str, operations: list[ContractOperation]) -> PathPlan:
        cases = self.assemble(operations)
        methods = {case.method for case in cases}
        first_phase = eligible_fuzzers(self.first_phase, methods)
        for fuzzer in self.first_phase:
            if fuzzer not in first_phase:
                logger.debug(
                    "Fuzzer %s skipped for %s: never runs against %s",
                    fuzzer.name, path, ", ".join(sorted(m.value for m in fuzzer.skip_methods & methods)),
                    extra={"fuzzer": fuzzer.name, "path": path},
                )
        return PathPlan(path=path, cases=cases, first_phase=first_phase, second_phase=list(self.second_phase))

    async def run(self, catalog: OperationCatalog) -> None:
        for path, operations in catalog.by_path():
            await self.run_path(path, operations)

    async def run_path(self, path: str, operations: list[ContractOperation]) -> PathPlan:
        plan = self.plan(path, operations)
        if not plan.cases:
            logger.warning("No fuzz case could be assembled for %s; path skipped", path, extra={"path": path})
            return plan

        self.listener.set_total_runs_per_path(path, plan.total_runs)

        for fuzzer in plan.first_phase:
            for case in plan.cases:
                await self._run_case(fuzzer, case)

        for fuzzer in plan.second_phase:
            batch = [case for case in plan.cases if case.method not in fuzzer.skip_methods]
            await self._run_batch(fuzzer, path, batch, plan.cases[0].method)
        return plan

    async def _run_case(self, fuzzer: CaseFuzzer, case: FuzzCase) -> None:
        self.listener.before_fuzz(fuzzer.name, case.path, case.method)
        try:
            await fuzzer.fuzz(case)
        except Exception as exc:
            self._record_failure(FuzzerExecutionError(fuzzer.name, case.path, case.method.value, exc))
        finally:
            self.listener.after_fuzz(case.path, case.method)

    async def _run_batch(self, fuzzer: PathFuzzer, path: str, cases: list[FuzzCase], method: HttpMethod) -> None:
        self.listener.before_fuzz(fuzzer.name, path, None)
        try:
            await fuzzer.fuzz_all(cases)
        except Exception as exc:
            self._record_failure(FuzzerExecutionError(fuzzer.name, path, method.value, exc))
        finally:
            self.listener.after_fuzz(path, None)

    def _record_failure(self, error: FuzzerExecutionError) -> None:
        logger.error(
            "%s", error.message, exc_info=error.cause,
            extra={"fuzzer": error.fuzzer, "path": error.path, "method": error.method},
        )
        self.listener.record_execution_error(error)
