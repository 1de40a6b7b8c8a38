"""Dotted-path access to JSON-like request bodies.

Writers always return a new structure; the input is never modified.
"""

from __future__ import annotations

import copy
import datetime
from typing import Any

_MISSING = object()


def get_field(body: Any, dotted: str, default: Any = None) -> Any:
    node = body
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def has_field(body: Any, dotted: str) -> bool:
    return get_field(body, dotted, _MISSING) is not _MISSING


def plain_scalars(node: Any) -> Any:
    """Copy of *node* with YAML date, time and datetime scalars as ISO strings."""
    if isinstance(node, (datetime.date, datetime.time)):
        return node.isoformat()
    if isinstance(node, dict):
        return {key: plain_scalars(value) for key, value in node.items()}
    if isinstance(node, list):
        return [plain_scalars(item) for item in node]
    return node


def with_field(body: Any, dotted: str, value: Any) -> Any:
    """Copy of *body* with the dotted field set; intermediate objects are created."""
    result = copy.deepcopy(body) if isinstance(body, dict) else {}
    node = result
    parts = dotted.split(".")
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value
    return result
