"""Run orchestrator: coordinates one fuzzing run end to end.

Pipeline:
  1. Start the optional update check in the background
  2. Select and order the contract operations
  3. Build the active fuzzers for the resolved options
  4. Schedule every path (phase one, then phase two)
  5. Summarise, print hints, join the update check
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from contractfuzz import __version__
from contractfuzz.contract.assembler import TestDataAssembler
from contractfuzz.contract.catalog import OperationCatalog
from contractfuzz.core.config import RunOptions
from contractfuzz.core.errors import ExitCode
from contractfuzz.core.resolver import ConfigResolver
from contractfuzz.core.types import Contract, RunSummary
from contractfuzz.core.version_check import CheckResult, VersionChecker, join_version_check
from contractfuzz.fuzzer.executor import TestExecutor
from contractfuzz.fuzzer.expectation import ExpectationEngine
from contractfuzz.fuzzer.registry import FuzzerRegistry
from contractfuzz.fuzzer.scheduler import FuzzingScheduler
from contractfuzz.reporting.listener import Reporter, TestCaseListener
from contractfuzz.reporting.statistics import RunStatistics
from contractfuzz.service.caller import ServiceCaller

logger = logging.getLogger(__name__)


def exit_code_for(summary: RunSummary) -> ExitCode:
    return ExitCode.ISSUES_FOUND if summary.has_issues else ExitCode.OK


class FuzzingOrchestrator:
    """Wires catalog, registry, scheduler, caller and listener for one run."""

    def __init__(
        self,
        options: RunOptions,
        resolver: ConfigResolver | None = None,
        reporters: list[Reporter] | None = None,
        registry: FuzzerRegistry | None = None,
        caller: Any = None,
        version_checker: VersionChecker | None = None,
    ) -> None:
        self.options = options
        self.resolver = resolver or ConfigResolver()
        self.reporters = reporters
        self.registry = registry or FuzzerRegistry()
        self.caller = caller
        self.version_checker = version_checker
        self.statistics = RunStatistics()
        self.update: CheckResult | None = None

    def _caller(self) -> Any:
        if self.caller is not None:
            return self.caller
        return ServiceCaller(
            self.options.server_url,
            resolver=self.resolver,
            timeout=self.options.timeout,
            user_agent=self.options.user_agent,
        )

    def _start_update_check(self) -> asyncio.Task[CheckResult] | None:
        if not self.options.check_update or self.version_checker is None:
            return None
        return self.version_checker.start(__version__)

    async def run(self, contract: Contract) -> RunSummary:
        update_task = self._start_update_check()

        catalog = OperationCatalog(contract, self.options)
        listener = TestCaseListener(self.statistics, self.reporters)
        logger.info(
            "Fuzzing %s %s: %d paths, %d operations against %s",
            contract.title or "contract", contract.version, len(contract.paths),
            contract.operation_count, self.options.server_url,
        )

        try:
            async with self._caller() as caller:
                executor = TestExecutor(caller, listener, ExpectationEngine(self.options))
                active = self.registry.build(self.options, executor)
                scheduler = FuzzingScheduler(
                    TestDataAssembler(self.resolver),
                    active.first_phase,
                    active.second_phase,
                    listener,
                )
                listener.start_session()
                await scheduler.run(catalog)
            summary = listener.end_session()
        finally:
            self.update = await join_version_check(update_task)

        if self.update is not None and self.update.is_new_version:
            logger.info(
                "contractfuzz %s is available (running %s) %s",
                self.update.latest, __version__, self.update.release_url,
            )
        return summary
