"""Thin OpenAPI 3 adapter producing the ordered contract model.

Only the parts the fuzzing core needs are read: paths and methods in
declaration order, parameters, request body content types and schema,
declared response codes. No semantic validation is performed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from contractfuzz.core.errors import ContractParseError
from contractfuzz.core.payload import plain_scalars
from contractfuzz.core.types import (
    Contract,
    ContractOperation,
    FieldConstraints,
    HttpMethod,
    ParameterLocation,
    ParameterSpec,
)

logger = logging.getLogger(__name__)

_METHOD_KEYS = {m.value.lower(): m for m in HttpMethod}
_LOCATIONS = {
    "path": ParameterLocation.PATH,
    "query": ParameterLocation.QUERY,
    "header": ParameterLocation.HEADER,
}
_MAX_REF_DEPTH = 64


def load_contract(file_path: str | Path) -> Contract:
    """Read an OpenAPI document from disk."""
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContractParseError(f"Cannot read contract {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ContractParseError(f"Contract {path} is not UTF-8 text: {exc}") from exc

    try:
        document = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ContractParseError(f"Contract {path} is not valid JSON/YAML: {exc}") from exc

    return parse_contract(document)


def parse_contract(document: Any) -> Contract:
    if not isinstance(document, dict) or not isinstance(document.get("paths"), dict):
        raise ContractParseError("Contract has no 'paths' mapping")

    for path, item in document["paths"].items():
        if item is not None and not isinstance(item, dict):
            raise ContractParseError(f"Path item {path!r} must be a mapping, got {type(item).__name__}")

    # YAML reads unquoted dates as date objects; requests need their ISO text
    document = plain_scalars(document)
    reader = _ContractReader(document)
    info = document.get("info") or {}
    contract = Contract(
        title=str(info.get("title", "")),
        version=str(info.get("version", "")),
        paths={path: reader.read_path(path, item or {}) for path, item in document["paths"].items()},
    )
    logger.debug("Contract parsed: %d paths, %d operations", len(contract.paths), contract.operation_count)
    return contract


def constraints_from(schema: dict[str, Any]) -> FieldConstraints:
    return FieldConstraints(
        type=schema.get("type"),
        format=schema.get("format"),
        min_length=schema.get("minLength"),
        max_length=schema.get("maxLength"),
        minimum=schema.get("minimum"),
        maximum=schema.get("maximum"),
        enum=tuple(schema.get("enum") or ()),
        pattern=schema.get("pattern"),
    )


def flatten_schema(
    schema: dict[str, Any],
    prefix: str = "",
    parent_required: bool = True,
) -> list[ParameterSpec]:
    """Flatten an object schema into dotted leaf field specs."""
    fields: list[ParameterSpec] = []
    required_names = set(schema.get("required") or ())
    for name, sub in (schema.get("properties") or {}).items():
        dotted = f"{prefix}{name}"
        required = parent_required and name in required_names
        sub = sub or {}
        if sub.get("properties"):
            fields.extend(flatten_schema(sub, prefix=f"{dotted}.", parent_required=required))
            continue
        fields.append(
            ParameterSpec(
                name=dotted,
                location=ParameterLocation.BODY,
                required=required,
                constraints=constraints_from(sub),
                example=sub.get("example"),
                default=sub.get("default"),
            )
        )
    return fields


class _ContractReader:
    def __init__(self, document: dict[str, Any]) -> None:
        self._document = document

    def read_path(self, path: str, item: dict[str, Any]) -> list[ContractOperation]:
        shared = item.get("parameters") or []
        operations = []
        for key, operation in item.items():
            method = _METHOD_KEYS.get(str(key).lower())
            if method is None or not isinstance(operation, dict):
                continue
            operations.append(self._read_operation(path, method, operation, shared))
        return operations

    def _read_operation(
        self,
        path: str,
        method: HttpMethod,
        operation: dict[str, Any],
        shared_params: list[dict[str, Any]],
    ) -> ContractOperation:
        params: dict[tuple[str, str], ParameterSpec] = {}
        for raw in [*shared_params, *(operation.get("parameters") or [])]:
            raw = self.resolve(raw)
            location = _LOCATIONS.get(raw.get("in", ""))
            if location is None or "name" not in raw:
                continue
            schema = self.resolve(raw.get("schema") or {})
            params[(raw["name"], raw["in"])] = ParameterSpec(
                name=raw["name"],
                location=location,
                required=bool(raw.get("required")) or location == ParameterLocation.PATH,
                constraints=constraints_from(schema),
                example=raw.get("example", schema.get("example")),
                default=schema.get("default"),
            )

        body = self.resolve(operation.get("requestBody") or {})
        content = body.get("content") or {}
        body_schema = None
        body_fields: list[ParameterSpec] = []
        if content:
            media = content.get("application/json") or next(iter(content.values())) or {}
            body_schema = self.resolve(media.get("schema") or {})
            if "example" in media and "example" not in body_schema:
                body_schema = {**body_schema, "example": media["example"]}
            body_fields = flatten_schema(body_schema)

        return ContractOperation(
            path=path,
            method=method,
            operation_id=str(operation.get("operationId", "")),
            content_types=tuple(content),
            parameters=tuple(params.values()),
            body_fields=tuple(body_fields),
            body_required=bool(body.get("required")),
            body_schema=body_schema,
            response_codes=tuple(str(code) for code in (operation.get("responses") or {})),
        )

    def resolve(self, node: Any, depth: int = 0, seen: frozenset[str] = frozenset()) -> Any:
        """Inline local ``#/...`` references, guarding against cycles."""
        if isinstance(node, list):
            return [self.resolve(item, depth + 1, seen) for item in node]
        if not isinstance(node, dict):
            return node
        ref = node.get("$ref")
        if isinstance(ref, str):
            target = self._lookup(ref)
            if target is None:
                logger.debug("Unresolvable reference %s", ref)
                return {"type": "object"}
            if ref in seen or depth > _MAX_REF_DEPTH:
                return {"type": "object"}
            return self.resolve(target, depth + 1, seen | {ref})

        resolved = {key: self.resolve(value, depth + 1, seen) for key, value in node.items()}
        if "allOf" in resolved:
            resolved = _merge_all_of(resolved)
        return resolved

    def _lookup(self, ref: str) -> Any:
        if not ref.startswith("#/"):
            return None
        node: Any = self._document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node


def _merge_all_of(schema: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {k: v for k, v in schema.items() if k != "allOf"}
    properties = dict(merged.get("properties") or {})
    required = list(merged.get("required") or [])
    for part in schema["allOf"]:
        if not isinstance(part, dict):
            continue
        properties.update(part.get("properties") or {})
        required.extend(part.get("required") or [])
        merged.setdefault("type", part.get("type"))
    if properties:
        merged["properties"] = properties
    if required:
        merged["required"] = required
    return merged
