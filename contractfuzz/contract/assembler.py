"""Builds the request skeletons (fuzz cases) the fuzzers start from.

One case is produced per (operation, declared content type); operations
without a request body produce a single body-less case. Values are taken
from reference data first, then the contract's example, default and enum
declarations, and finally synthesised from the field type and bounds.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from contractfuzz.contract.loader import constraints_from
from contractfuzz.core.errors import OperationAssemblyError
from contractfuzz.core.payload import has_field, with_field
from contractfuzz.core.resolver import ConfigResolver
from contractfuzz.core.types import (
    ContractOperation,
    FieldConstraints,
    FuzzCase,
    ParameterLocation,
    ParameterSpec,
)

logger = logging.getLogger(__name__)

_FORMAT_SAMPLES = {
    "date": "2024-01-31",
    "date-time": "2024-01-31T10:15:30Z",
    "email": "john.doe@example.com",
    "uuid": "6f1c2f0e-4a9b-4b7e-9a53-1f0f8d1c2b3a",
    "uri": "https://example.com/resource",
    "hostname": "example.com",
    "ipv4": "192.168.0.1",
    "ipv6": "2001:db8::1",
}
_MAX_DEPTH = 8


def sample_from_constraints(constraints: FieldConstraints) -> Any:
    """A value that satisfies the declared type, length and numeric bounds."""
    if constraints.enum:
        return constraints.enum[0]
    if constraints.type == "boolean":
        return True
    if constraints.is_numeric:
        value: float = 1
        if constraints.minimum is not None:
            value = constraints.minimum
        elif constraints.maximum is not None and constraints.maximum < value:
            value = constraints.maximum
        return int(value) if constraints.type == "integer" else float(value)
    if constraints.format in _FORMAT_SAMPLES:
        return _FORMAT_SAMPLES[constraints.format]
    length = constraints.min_length if constraints.min_length is not None else 5
    if constraints.max_length is not None:
        length = min(length, constraints.max_length)
    return "a" * max(length, 0)


def sample_from_schema(schema: dict[str, Any], depth: int = 0) -> Any:
    if "example" in schema:
        return copy.deepcopy(schema["example"])
    if "default" in schema:
        return copy.deepcopy(schema["default"])
    schema_type = schema.get("type")
    if schema_type == "object" or schema.get("properties"):
        if depth >= _MAX_DEPTH:
            return {}
        return {
            name: sample_from_schema(sub or {}, depth + 1)
            for name, sub in (schema.get("properties") or {}).items()
        }
    if schema_type == "array":
        if depth >= _MAX_DEPTH:
            return []
        return [sample_from_schema(schema.get("items") or {}, depth + 1)]
    return sample_from_constraints(constraints_from(schema))


def parameter_value(param: ParameterSpec, reference_data: dict[str, Any]) -> Any:
    if param.name in reference_data:
        return reference_data[param.name]
    if param.example is not None:
        return param.example
    if param.default is not None:
        return param.default
    return sample_from_constraints(param.constraints)


class TestDataAssembler:
    """Produces immutable fuzz cases from an operation plus resolved config."""

    __test__ = False  # not a pytest class

    def __init__(self, resolver: ConfigResolver) -> None:
        self.resolver = resolver

    def assemble(self, operation: ContractOperation) -> list[FuzzCase]:
        try:
            return self._assemble(operation)
        except OperationAssemblyError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            raise OperationAssemblyError(
                f"Cannot assemble {operation.method.value} {operation.path}: {exc}"
            ) from exc

    def _assemble(self, operation: ContractOperation) -> list[FuzzCase]:
        path = operation.path
        reference_data = self.resolver.get_reference_data(path)

        headers = {
            p.name: parameter_value(p, reference_data)
            for p in operation.parameters_in(ParameterLocation.HEADER)
        }
        headers.update(self.resolver.get_headers(path))

        query = {
            p.name: parameter_value(p, reference_data)
            for p in operation.parameters_in(ParameterLocation.QUERY)
            if p.required or p.name in reference_data
        }
        query.update(self.resolver.get_query_params(path))

        path_params = {
            p.name: parameter_value(p, reference_data)
            for p in operation.parameters_in(ParameterLocation.PATH)
        }

        common = dict(
            operation=operation,
            headers=headers,
            query=query,
            path_params=path_params,
            reference_data=reference_data,
        )
        if not operation.content_types:
            return [FuzzCase(**common)]

        body = self.build_body(operation, reference_data)
        return [
            FuzzCase(content_type=content_type, body=copy.deepcopy(body), **common)
            for content_type in operation.content_types
        ]

    @staticmethod
    def build_body(operation: ContractOperation, reference_data: dict[str, Any]) -> Any:
        if operation.body_schema is None:
            return None
        body = sample_from_schema(operation.body_schema)
        if not isinstance(body, dict):
            return body
        for name, value in reference_data.items():
            parent = name.rpartition(".")[0]
            if has_field(body, name) or (parent and has_field(body, parent)):
                body = with_field(body, name, value)
        return body
