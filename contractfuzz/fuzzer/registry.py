"""Explicit startup registration of fuzzers.

Each entry pairs a name and phase with a factory and a typed activation
predicate. The predicate and the ``--fuzzers``/``--skip-fuzzers`` selection
are evaluated once, when the registry is built for a run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Sequence

from contractfuzz.core.config import RunOptions
from contractfuzz.core.types import FuzzerPhase
from contractfuzz.fuzzer.descriptors import BUILTIN_DESCRIPTORS, always
from contractfuzz.fuzzer.executor import TestExecutor
from contractfuzz.fuzzer.fuzzers import (
    CaseFuzzer,
    HappyPathReplayFuzzer,
    ParametrizedFuzzer,
    PathFuzzer,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    name: str
    phase: FuzzerPhase
    description: str
    factory: Callable[[TestExecutor], Any]
    enabled_when: Callable[[RunOptions], bool] = always


def builtin_entries() -> list[RegistryEntry]:
    entries = [
        RegistryEntry(
            name=descriptor.name,
            phase=descriptor.phase,
            description=descriptor.scenario,
            factory=partial(ParametrizedFuzzer, descriptor),
            enabled_when=descriptor.enabled_when,
        )
        for descriptor in BUILTIN_DESCRIPTORS
    ]
    entries.append(
        RegistryEntry(
            name=HappyPathReplayFuzzer.name,
            phase=HappyPathReplayFuzzer.phase,
            description=HappyPathReplayFuzzer.description,
            factory=HappyPathReplayFuzzer,
        )
    )
    return entries


@dataclass
class ActiveFuzzers:
    first_phase: list[CaseFuzzer]
    second_phase: list[PathFuzzer]

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.first_phase] + [f.name for f in self.second_phase]


class FuzzerRegistry:
    """Ordered fuzzer table; registration order is execution order."""

    def __init__(self, entries: Sequence[RegistryEntry] | None = None) -> None:
        self.entries = list(entries) if entries is not None else builtin_entries()
        names = [entry.name for entry in self.entries]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate fuzzer names: {', '.join(sorted(duplicates))}")

    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def unknown(self, names: Sequence[str]) -> list[str]:
        known = set(self.names())
        return [name for name in names if name not in known]

    def active_entries(self, options: RunOptions) -> list[RegistryEntry]:
        active = []
        for entry in self.entries:
            if not entry.enabled_when(options):
                logger.debug("Fuzzer %s disabled by configuration", entry.name, extra={"fuzzer": entry.name})
            elif not options.is_fuzzer_selected(entry.name):
                logger.debug("Fuzzer %s not selected", entry.name, extra={"fuzzer": entry.name})
            else:
                active.append(entry)
        return active

    def build(self, options: RunOptions, executor: TestExecutor) -> ActiveFuzzers:
        for name in self.unknown(list(options.fuzzers) + list(options.skip_fuzzers)):
            logger.warning("Unknown fuzzer %r ignored", name)

        active = ActiveFuzzers(first_phase=[], second_phase=[])
        for entry in self.active_entries(options):
            fuzzer = entry.factory(executor)
            if entry.phase == FuzzerPhase.FIRST:
                active.first_phase.append(fuzzer)
            else:
                active.second_phase.append(fuzzer)
        logger.info("%d of %d registered fuzzers active", len(active.names), len(self.entries))
        return active
