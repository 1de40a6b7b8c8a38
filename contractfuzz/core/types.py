"""Shared enums and types used across the engine."""

from __future__ import annotations

import enum
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ────────────────────────────────────────────────────────────────────


class HttpMethod(str, enum.Enum):
    """HTTP methods an operation can be declared with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, value: str) -> HttpMethod:
        return cls(value.strip().upper())


class ResponseCodeFamily(str, enum.Enum):
    """Leading-digit class of an HTTP status code."""

    TWOXX = "2XX"
    FOURXX = "4XX"
    FIVEXX = "5XX"

    @property
    def leading_digit(self) -> str:
        return self.value[0]

    def matches(self, status_code: int) -> bool:
        return str(status_code)[:1] == self.leading_digit

    @classmethod
    def from_code(cls, code: str | int) -> ResponseCodeFamily | None:
        """Family of a concrete or wildcard code ("201", "4XX"); None for "default"."""
        text = str(code).strip()
        for family in cls:
            if text[:1] == family.leading_digit:
                return family
        return None

    @classmethod
    def parse(cls, value: str) -> ResponseCodeFamily:
        family = cls.from_code(value)
        if family is None:
            raise ValueError(f"Unsupported response code family: {value!r}")
        return family


class EdgeSpacesStrategy(str, enum.Enum):
    """How the target service is expected to treat leading/trailing junk."""

    TRIM_AND_VALIDATE = "trim_and_validate"
    VALIDATE_AND_TRIM = "validate_and_trim"


class Verdict(str, enum.Enum):
    """Outcome of a single test."""

    PASS = "pass"
    FUNCTIONAL_FAILURE = "functional_failure"
    EXECUTION_ERROR = "execution_error"


class ErrorKind(str, enum.Enum):
    """Sub-category of an execution error."""

    AUTH = "auth"
    IO = "io"
    FUZZER = "fuzzer"


class ParameterLocation(str, enum.Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


class TargetKind(str, enum.Enum):
    """What part of a request a mutation touches."""

    FIELD = "field"
    HEADER = "header"
    BODY = "body"


class MutationKind(str, enum.Enum):
    """Built-in mutation strategy kinds."""

    REPLACE = "replace"
    TRAIL = "trail"
    TRIM_VALIDATE = "trim_validate"
    BOUNDARY = "boundary"


class FuzzerPhase(str, enum.Enum):
    FIRST = "first"
    SECOND = "second"


# ── Contract model ───────────────────────────────────────────────────────────


class FieldConstraints(BaseModel):
    """Declared schema constraints of a single field."""

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    format: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: float | None = None
    maximum: float | None = None
    enum: tuple[Any, ...] = ()
    pattern: str | None = None

    @property
    def is_numeric(self) -> bool:
        return self.type in ("integer", "number")

    def accepts(self, value: Any) -> bool:
        """Return True if *value* satisfies every declared constraint."""
        if self.enum and value not in self.enum:
            return False
        if isinstance(value, bool):
            return self.type in (None, "boolean")
        if isinstance(value, str):
            if self.is_numeric:
                try:
                    return self.within_bounds(float(value))
                except ValueError:
                    return False
            if self.min_length is not None and len(value) < self.min_length:
                return False
            if self.max_length is not None and len(value) > self.max_length:
                return False
            if self.pattern:
                try:
                    if re.search(self.pattern, value) is None:
                        return False
                except re.error:
                    # ECMA-only syntax cannot be judged here
                    return True
            return True
        if isinstance(value, (int, float)):
            if self.type == "integer" and isinstance(value, float) and not value.is_integer():
                return False
            return self.within_bounds(value)
        return True

    def within_bounds(self, number: float) -> bool:
        if self.minimum is not None and number < self.minimum:
            return False
        if self.maximum is not None and number > self.maximum:
            return False
        return True


class ParameterSpec(BaseModel):
    """A declared parameter, header, or (dotted) body field."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParameterLocation
    required: bool = False
    constraints: FieldConstraints = Field(default_factory=FieldConstraints)
    example: Any = None
    default: Any = None


class ContractOperation(BaseModel):
    """One (path, method) pair of the contract."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: HttpMethod
    operation_id: str = ""
    content_types: tuple[str, ...] = ()
    parameters: tuple[ParameterSpec, ...] = ()
    body_fields: tuple[ParameterSpec, ...] = ()
    body_required: bool = False
    body_schema: dict[str, Any] | None = None
    response_codes: tuple[str, ...] = ()

    def parameters_in(self, location: ParameterLocation) -> list[ParameterSpec]:
        return [p for p in self.parameters if p.location == location]

    @property
    def response_families(self) -> set[ResponseCodeFamily]:
        families = {ResponseCodeFamily.from_code(code) for code in self.response_codes}
        families.discard(None)
        return families  # type: ignore[return-value]


class Contract(BaseModel):
    """Ordered mapping of path -> operations, as declared."""

    title: str = ""
    version: str = ""
    paths: dict[str, list[ContractOperation]] = Field(default_factory=dict)

    @property
    def operation_count(self) -> int:
        return sum(len(ops) for ops in self.paths.values())


# ── Fuzzing model ────────────────────────────────────────────────────────────


class FuzzCase(BaseModel):
    """Request skeleton for one operation and content type.

    Built once by the assembler. Fuzzers never edit a case; every mutation
    is applied to a fresh copy of the request parts.
    """

    model_config = ConfigDict(frozen=True)

    operation: ContractOperation
    content_type: str | None = None
    headers: dict[str, Any] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)
    path_params: dict[str, Any] = Field(default_factory=dict)
    reference_data: dict[str, Any] = Field(default_factory=dict)
    body: Any = None

    @property
    def path(self) -> str:
        return self.operation.path

    @property
    def method(self) -> HttpMethod:
        return self.operation.method


class MutationTarget(BaseModel):
    """A single value space a strategy can mutate."""

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    name: str
    location: ParameterLocation | None = None
    value: Any = None
    required: bool = False
    constraints: FieldConstraints = Field(default_factory=FieldConstraints)


class MutationCandidate(BaseModel):
    """One substitute value for one target; drives exactly one test."""

    model_config = ConfigDict(frozen=True)

    target_kind: TargetKind
    target: str
    location: ParameterLocation | None = None
    value: Any
    kind: MutationKind
    probe: str | None = None
    intermediate: Any = None
    valid: bool | None = None
    description: str = ""


class ExpectationRecord(BaseModel):
    """What a test expected, what it got, and the verdict."""

    test_id: int
    path: str
    method: HttpMethod
    fuzzer: str
    scenario: str
    target: str | None = None
    expected: ResponseCodeFamily | None = None
    actual_code: int | None = None
    verdict: Verdict | None = None
    error_kind: ErrorKind | None = None
    detail: str = ""


class RunSummary(BaseModel):
    """Consolidated end-of-run counters."""

    total_executed: int = 0
    passed: int = 0
    functional_failures: int = 0
    execution_errors: int = 0
    auth_errors: int = 0
    io_errors: int = 0

    @property
    def has_issues(self) -> bool:
        return any(
            count > 0
            for count in (self.functional_failures, self.execution_errors, self.auth_errors, self.io_errors)
        )
