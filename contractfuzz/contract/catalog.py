"""Deterministic selection and ordering of contract operations.

Paths are visited in lexicographic order regardless of how the contract
declares them; the operations of one path keep their declaration order.
Every operation a filter rejects is logged and kept in ``skipped``.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from itertools import groupby

from contractfuzz.core.config import RunOptions
from contractfuzz.core.types import Contract, ContractOperation, HttpMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedOperation:
    path: str
    method: HttpMethod
    reason: str


class OperationCatalog:
    """Flattens a contract into the ordered sequence of operations to fuzz."""

    def __init__(self, contract: Contract, options: RunOptions) -> None:
        self.contract = contract
        self.options = options
        self.skipped: list[SkippedOperation] = []

    def is_path_selected(self, path: str) -> bool:
        if any(fnmatch.fnmatchcase(path, pattern) for pattern in self.options.skip_paths):
            return False
        if not self.options.paths:
            return True
        return any(fnmatch.fnmatchcase(path, pattern) for pattern in self.options.paths)

    def paths_to_run(self) -> list[str]:
        return [path for path in sorted(self.contract.paths) if self.is_path_selected(path)]

    def operations(self) -> list[ContractOperation]:
        """All selected operations, ordered by path then declaration order."""
        self.skipped = []
        selected: list[ContractOperation] = []
        for path in sorted(self.contract.paths):
            if not self.is_path_selected(path):
                for operation in self.contract.paths[path]:
                    self._skip(path, operation.method, "path not selected")
                continue
            for operation in self.contract.paths[path]:
                reason = self._rejection_reason(operation)
                if reason:
                    self._skip(path, operation.method, reason)
                else:
                    selected.append(operation)
        return selected

    def by_path(self) -> list[tuple[str, list[ContractOperation]]]:
        """Selected operations grouped per path, preserving order."""
        return [(path, list(ops)) for path, ops in groupby(self.operations(), key=lambda op: op.path)]

    def _rejection_reason(self, operation: ContractOperation) -> str:
        if not self.options.is_method_selected(operation.method):
            return f"HTTP method {operation.method.value} not selected"
        families = self.options.response_code_families
        if families and not (operation.response_families & families):
            wanted = ", ".join(sorted(f.value for f in families))
            return f"no declared response in {wanted}"
        return ""

    def _skip(self, path: str, method: HttpMethod, reason: str) -> None:
        self.skipped.append(SkippedOperation(path=path, method=method, reason=reason))
        logger.info(
            "Skipping %s %s: %s", method.value, path, reason,
            extra={"path": path, "method": method.value},
        )
