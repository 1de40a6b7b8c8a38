"""Mutation strategies: lazy generators of substitute values.

A strategy takes one ``MutationTarget`` (a field, header or body with its
current value and constraints) and yields ``MutationCandidate``s one at a
time. Each candidate drives exactly one test, so strategies must never
materialise their whole sequence up front.

Built-in kinds:
  1. replace: the probe replaces the current value
  2. trail: the probe is appended to the current value
  3. trim-then-validate: replace or trail, then strip the probe characters
     and decide whether what remains still satisfies the field; reported as
     a single candidate
  4. boundary: values exactly at, one below and one above a declared
     length or numeric bound
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Iterator

from contractfuzz.core.types import MutationCandidate, MutationKind, MutationTarget

ValueSource = Iterable[Any] | Callable[[], Iterable[Any]]

LENGTH_CONSTRAINTS = ("min_length", "max_length")
NUMERIC_CONSTRAINTS = ("minimum", "maximum")


class MutationStrategy(ABC):
    """Produces candidate substitute values for a single target."""

    kind: MutationKind

    @abstractmethod
    def candidates(self, target: MutationTarget) -> Iterator[MutationCandidate]:
        ...


class ReplaceStrategy(MutationStrategy):
    kind = MutationKind.REPLACE

    def __init__(self, values: ValueSource) -> None:
        self._values = values

    def values(self) -> Iterable[Any]:
        return self._values() if callable(self._values) else self._values

    def apply(self, current: Any, probe: Any) -> Any:
        return probe

    def candidates(self, target: MutationTarget) -> Iterator[MutationCandidate]:
        for probe in self.values():
            yield MutationCandidate(
                target_kind=target.kind,
                target=target.name,
                location=target.location,
                value=self.apply(target.value, probe),
                kind=self.kind,
                probe=probe if isinstance(probe, str) else None,
            )


class TrailStrategy(ReplaceStrategy):
    kind = MutationKind.TRAIL

    def apply(self, current: Any, probe: Any) -> Any:
        if current is None or current == "":
            return probe
        return f"{current}{probe}"


class TrimThenValidateStrategy(MutationStrategy):
    """Wraps replace/trail and evaluates the value a trimming service would see."""

    kind = MutationKind.TRIM_VALIDATE

    def __init__(self, inner: ReplaceStrategy, trim_chars: str) -> None:
        self.inner = inner
        self.trim_chars = trim_chars

    def trim(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return value.strip(self.trim_chars)

    @staticmethod
    def validate(intermediate: Any, target: MutationTarget) -> bool:
        if intermediate is None or intermediate == "":
            return not target.required
        return target.constraints.accepts(intermediate)

    def candidates(self, target: MutationTarget) -> Iterator[MutationCandidate]:
        for candidate in self.inner.candidates(target):
            intermediate = self.trim(candidate.value)
            yield candidate.model_copy(
                update={
                    "kind": self.kind,
                    "intermediate": intermediate,
                    "valid": self.validate(intermediate, target),
                }
            )


class BoundaryStrategy(MutationStrategy):
    """Values at, one below and one above a declared constraint.

    Validity is judged on the bound under test only, so a length probe is
    expected to pass or fail on its length even when the filler does not
    match a declared pattern.
    """

    kind = MutationKind.BOUNDARY
    _OFFSETS = ((0, "exactly at"), (-1, "one below"), (1, "one above"))

    def __init__(self, constraint: str) -> None:
        if constraint not in LENGTH_CONSTRAINTS + NUMERIC_CONSTRAINTS:
            raise ValueError(f"Unsupported boundary constraint: {constraint}")
        self.constraint = constraint

    def candidates(self, target: MutationTarget) -> Iterator[MutationCandidate]:
        constraints = target.constraints
        bound = getattr(constraints, self.constraint)
        if bound is None:
            return
        is_length = self.constraint in LENGTH_CONSTRAINTS
        if is_length == constraints.is_numeric:
            return

        for offset, label in self._OFFSETS:
            if is_length:
                length = int(bound) + offset
                if length < 0:
                    continue
                value: Any = self._filler(target.value, length)
                valid = self._length_ok(length, target)
            else:
                value = bound + offset
                if constraints.type == "integer":
                    value = int(value)
                valid = constraints.within_bounds(value)
            yield MutationCandidate(
                target_kind=target.kind,
                target=target.name,
                location=target.location,
                value=value,
                kind=self.kind,
                valid=valid,
                description=f"{label} {self.constraint} {bound}",
            )

    @staticmethod
    def _filler(current: Any, length: int) -> str:
        seed = current if isinstance(current, str) and current else "a"
        return (seed * (length // len(seed) + 1))[:length]

    @staticmethod
    def _length_ok(length: int, target: MutationTarget) -> bool:
        constraints = target.constraints
        if constraints.min_length is not None and length < constraints.min_length:
            return False
        if constraints.max_length is not None and length > constraints.max_length:
            return False
        return True
