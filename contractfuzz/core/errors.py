"""Error types and process exit statuses.

Fatal errors (bad config files, unreadable contract) abort the run before
any request is sent. Everything else is isolated to one operation or one
fuzzer/case pair and recorded while the run continues.
"""

from __future__ import annotations

import enum


class ExitCode(enum.IntEnum):
    OK = 0
    ISSUES_FOUND = 1
    FATAL = 192


class ErrorCode(str, enum.Enum):
    """Stable codes attached to every engine error."""

    CONFIG_LOAD = "CONFIG_LOAD"
    CONTRACT_PARSE = "CONTRACT_PARSE"
    OPERATION_ASSEMBLY = "OPERATION_ASSEMBLY"
    FUZZER_EXECUTION = "FUZZER_EXECUTION"
    TRANSPORT = "TRANSPORT"


class ContractFuzzError(Exception):
    """Base engine error with structured code + message."""

    code: ErrorCode = ErrorCode.FUZZER_EXECUTION
    fatal: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigLoadError(ContractFuzzError):
    code = ErrorCode.CONFIG_LOAD
    fatal = True


class ContractParseError(ContractFuzzError):
    code = ErrorCode.CONTRACT_PARSE
    fatal = True


class OperationAssemblyError(ContractFuzzError):
    code = ErrorCode.OPERATION_ASSEMBLY


class FuzzerExecutionError(ContractFuzzError):
    """Unexpected failure of one fuzzer against one case."""

    code = ErrorCode.FUZZER_EXECUTION

    def __init__(self, fuzzer: str, path: str, method: str, cause: BaseException) -> None:
        self.fuzzer = fuzzer
        self.path = path
        self.method = method
        self.cause = cause
        super().__init__(f"{fuzzer} failed on {method} {path}: {cause!r}")


class TransportError(ContractFuzzError):
    code = ErrorCode.TRANSPORT

    def __init__(self, message: str, timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(message)
