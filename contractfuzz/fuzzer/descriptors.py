"""Declarative table of the built-in fuzzers.

Fuzzers that only differ by scenario text, target and probe source are
described here as data and instantiated by one parametrized fuzzer type.
The table order is the registration order and therefore the execution
order within a path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from contractfuzz.core.config import RunOptions
from contractfuzz.core.types import (
    FuzzerPhase,
    HttpMethod,
    MutationKind,
    ResponseCodeFamily,
    TargetKind,
)
from contractfuzz.fuzzer.probes import ProbeCategory, probe_characters, probes
from contractfuzz.fuzzer.strategy import (
    BoundaryStrategy,
    MutationStrategy,
    ReplaceStrategy,
    TrailStrategy,
    TrimThenValidateStrategy,
)

BODYLESS_METHODS = frozenset({HttpMethod.GET, HttpMethod.DELETE, HttpMethod.HEAD})


def always(options: RunOptions) -> bool:
    return True


def trims_before_validation(options: RunOptions) -> bool:
    return options.trims_before_validation


def emojis_enabled(options: RunOptions) -> bool:
    return options.include_emoji_fuzzers


@dataclass(frozen=True)
class FuzzerDescriptor:
    """Everything that distinguishes one table-driven fuzzer from another."""

    name: str
    scenario: str
    target: TargetKind
    kind: MutationKind
    probe_category: ProbeCategory | None = None
    values: tuple = ()
    trail: bool = False
    constraint: str | None = None
    when_required: ResponseCodeFamily = ResponseCodeFamily.FOURXX
    when_optional: ResponseCodeFamily = ResponseCodeFamily.TWOXX
    skip_methods: frozenset[HttpMethod] = field(default_factory=frozenset)
    phase: FuzzerPhase = FuzzerPhase.FIRST
    enabled_when: Callable[[RunOptions], bool] = always

    def probe_values(self) -> tuple:
        if self.probe_category is not None:
            return probes(self.probe_category)
        return self.values

    def build_strategy(self) -> MutationStrategy:
        if self.kind == MutationKind.BOUNDARY:
            if self.constraint is None:
                raise ValueError(f"{self.name}: boundary fuzzers need a constraint")
            return BoundaryStrategy(self.constraint)

        base_type = TrailStrategy if self.trail or self.kind == MutationKind.TRAIL else ReplaceStrategy
        base = base_type(self.probe_values())
        if self.kind == MutationKind.TRIM_VALIDATE:
            if self.probe_category is None:
                raise ValueError(f"{self.name}: trim-then-validate fuzzers need a probe category")
            return TrimThenValidateStrategy(base, probe_characters(self.probe_category))
        return base


BUILTIN_DESCRIPTORS: tuple[FuzzerDescriptor, ...] = (
    # ── Headers ──────────────────────────────────────────────────────────
    FuzzerDescriptor(
        name="OnlySpacesInHeaders",
        scenario="Replace header value with spaces only",
        target=TargetKind.HEADER,
        kind=MutationKind.REPLACE,
        probe_category=ProbeCategory.HEADER_SPACES,
    ),
    FuzzerDescriptor(
        name="ControlCharsOnlyInHeadersTrimValidate",
        scenario="Replace header value with control characters only",
        target=TargetKind.HEADER,
        kind=MutationKind.TRIM_VALIDATE,
        probe_category=ProbeCategory.HEADER_CONTROL_CHARS,
        enabled_when=trims_before_validation,
    ),
    FuzzerDescriptor(
        name="InvisibleCharsOnlyInHeadersTrimValidate",
        scenario="Replace header value with invisible characters only",
        target=TargetKind.HEADER,
        kind=MutationKind.TRIM_VALIDATE,
        probe_category=ProbeCategory.INVISIBLE_CHARS,
    ),
    # ── Fields ───────────────────────────────────────────────────────────
    FuzzerDescriptor(
        name="OnlyWhitespacesInFields",
        scenario="Replace field value with whitespaces only",
        target=TargetKind.FIELD,
        kind=MutationKind.REPLACE,
        probe_category=ProbeCategory.WHITESPACES,
    ),
    FuzzerDescriptor(
        name="ControlCharsOnlyInFieldsTrimValidate",
        scenario="Replace field value with control characters only",
        target=TargetKind.FIELD,
        kind=MutationKind.TRIM_VALIDATE,
        probe_category=ProbeCategory.CONTROL_CHARS,
    ),
    FuzzerDescriptor(
        name="TrailingWhitespacesInFieldsTrimValidate",
        scenario="Append trailing whitespaces to field value",
        target=TargetKind.FIELD,
        kind=MutationKind.TRIM_VALIDATE,
        probe_category=ProbeCategory.WHITESPACES,
        trail=True,
    ),
    FuzzerDescriptor(
        name="TrailingMultiCodePointEmojisInFieldsTrimValidate",
        scenario="Append multi code point emojis to field value",
        target=TargetKind.FIELD,
        kind=MutationKind.TRIM_VALIDATE,
        probe_category=ProbeCategory.MULTI_CODE_POINT_EMOJIS,
        trail=True,
        enabled_when=emojis_enabled,
    ),
    FuzzerDescriptor(
        name="MinLengthExactValuesInStringFields",
        scenario="Send string values around the declared minLength",
        target=TargetKind.FIELD,
        kind=MutationKind.BOUNDARY,
        constraint="min_length",
    ),
    FuzzerDescriptor(
        name="MaxLengthExactValuesInStringFields",
        scenario="Send string values around the declared maxLength",
        target=TargetKind.FIELD,
        kind=MutationKind.BOUNDARY,
        constraint="max_length",
    ),
    FuzzerDescriptor(
        name="MinimumExactValuesInNumericFields",
        scenario="Send numbers around the declared minimum",
        target=TargetKind.FIELD,
        kind=MutationKind.BOUNDARY,
        constraint="minimum",
    ),
    FuzzerDescriptor(
        name="MaximumExactValuesInNumericFields",
        scenario="Send numbers around the declared maximum",
        target=TargetKind.FIELD,
        kind=MutationKind.BOUNDARY,
        constraint="maximum",
    ),
    # ── Body ─────────────────────────────────────────────────────────────
    FuzzerDescriptor(
        name="EmptyBody",
        scenario="Send an empty request body",
        target=TargetKind.BODY,
        kind=MutationKind.REPLACE,
        values=("",),
        when_optional=ResponseCodeFamily.FOURXX,
        skip_methods=BODYLESS_METHODS,
    ),
    FuzzerDescriptor(
        name="EmptyJsonBody",
        scenario="Send an empty JSON object as request body",
        target=TargetKind.BODY,
        kind=MutationKind.REPLACE,
        values=({},),
        when_optional=ResponseCodeFamily.FOURXX,
        skip_methods=BODYLESS_METHODS,
    ),
)
