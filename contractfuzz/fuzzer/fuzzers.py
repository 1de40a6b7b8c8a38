"""Fuzzer implementations.

``ParametrizedFuzzer`` runs any descriptor from the built-in table against
one fuzz case. ``HappyPathReplayFuzzer`` is the phase-two fuzzer: it sees
every case of a path once phase one is done.
"""

from __future__ import annotations

import logging
from typing import Iterator, Protocol, runtime_checkable

from contractfuzz.core.payload import get_field, has_field
from contractfuzz.core.types import (
    FuzzCase,
    FuzzerPhase,
    HttpMethod,
    MutationTarget,
    ParameterLocation,
    ResponseCodeFamily,
    TargetKind,
)
from contractfuzz.fuzzer.descriptors import FuzzerDescriptor
from contractfuzz.fuzzer.executor import TestExecutor

logger = logging.getLogger(__name__)


@runtime_checkable
class CaseFuzzer(Protocol):
    """Phase one: runs once per assembled case."""

    name: str
    description: str
    phase: FuzzerPhase
    skip_methods: frozenset[HttpMethod]

    async def fuzz(self, case: FuzzCase) -> None: ...


@runtime_checkable
class PathFuzzer(Protocol):
    """Phase two: runs once per path over the whole case batch."""

    name: str
    description: str
    phase: FuzzerPhase
    skip_methods: frozenset[HttpMethod]

    async def fuzz_all(self, cases: list[FuzzCase]) -> None: ...


def field_targets(case: FuzzCase) -> Iterator[MutationTarget]:
    """Declared query params present in the case, then body fields present in the body."""
    operation = case.operation
    for param in operation.parameters_in(ParameterLocation.QUERY):
        if param.name in case.query:
            yield MutationTarget(
                kind=TargetKind.FIELD,
                name=param.name,
                location=ParameterLocation.QUERY,
                value=case.query[param.name],
                required=param.required,
                constraints=param.constraints,
            )
    if not isinstance(case.body, dict):
        return
    for field in operation.body_fields:
        if has_field(case.body, field.name):
            yield MutationTarget(
                kind=TargetKind.FIELD,
                name=field.name,
                location=ParameterLocation.BODY,
                value=get_field(case.body, field.name),
                required=field.required,
                constraints=field.constraints,
            )


def header_targets(case: FuzzCase) -> Iterator[MutationTarget]:
    # Headers that only come from configuration are not part of the contract
    for param in case.operation.parameters_in(ParameterLocation.HEADER):
        if param.name in case.headers:
            yield MutationTarget(
                kind=TargetKind.HEADER,
                name=param.name,
                location=ParameterLocation.HEADER,
                value=case.headers[param.name],
                required=param.required,
                constraints=param.constraints,
            )


def body_targets(case: FuzzCase) -> Iterator[MutationTarget]:
    if case.content_type is None:
        return
    yield MutationTarget(
        kind=TargetKind.BODY,
        name="body",
        location=ParameterLocation.BODY,
        value=case.body,
        required=case.operation.body_required,
    )


_TARGETS = {
    TargetKind.FIELD: field_targets,
    TargetKind.HEADER: header_targets,
    TargetKind.BODY: body_targets,
}


class ParametrizedFuzzer:
    """Table-driven phase-one fuzzer: one test per (target, candidate)."""

    def __init__(self, descriptor: FuzzerDescriptor, executor: TestExecutor) -> None:
        self.descriptor = descriptor
        self.executor = executor
        self.strategy = descriptor.build_strategy()

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> str:
        return self.descriptor.scenario

    @property
    def phase(self) -> FuzzerPhase:
        return self.descriptor.phase

    @property
    def skip_methods(self) -> frozenset[HttpMethod]:
        return self.descriptor.skip_methods

    def targets(self, case: FuzzCase) -> Iterator[MutationTarget]:
        return _TARGETS[self.descriptor.target](case)

    async def fuzz(self, case: FuzzCase) -> None:
        expectations = self.executor.expectations
        tests = 0
        for target in self.targets(case):
            for candidate in self.strategy.candidates(target):
                expected = expectations.expected_family(
                    candidate,
                    required=target.required,
                    when_required=self.descriptor.when_required,
                    when_optional=self.descriptor.when_optional,
                )
                scenario = f"{self.descriptor.scenario}: {target.name}"
                if candidate.description:
                    scenario += f" ({candidate.description})"
                await self.executor.execute(self.name, case, scenario, expected, candidate)
                tests += 1
        if not tests:
            logger.debug(
                "%s has nothing to fuzz in %s %s", self.name, case.method.value, case.path,
                extra={"fuzzer": self.name, "path": case.path, "method": case.method.value},
            )


class HappyPathReplayFuzzer:
    """Replays every unmodified case of a path after the negative tests."""

    name = "HappyPathReplay"
    description = "Replay the unmodified request after all negative tests on the path"
    phase = FuzzerPhase.SECOND
    skip_methods: frozenset[HttpMethod] = frozenset()

    def __init__(self, executor: TestExecutor) -> None:
        self.executor = executor

    @staticmethod
    def expected_family(case: FuzzCase) -> ResponseCodeFamily:
        declared = case.operation.response_families
        if not declared or ResponseCodeFamily.TWOXX in declared:
            return ResponseCodeFamily.TWOXX
        return min(declared, key=lambda family: family.value)

    async def fuzz_all(self, cases: list[FuzzCase]) -> None:
        for case in cases:
            await self.executor.execute(self.name, case, self.description, self.expected_family(case))
