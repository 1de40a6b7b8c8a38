"""Expected response-code families and response classification."""

from __future__ import annotations

from contractfuzz.core.config import RunOptions
from contractfuzz.core.types import (
    ErrorKind,
    MutationCandidate,
    MutationKind,
    ResponseCodeFamily,
    Verdict,
)
from contractfuzz.service.caller import ServiceResponse

AUTH_STATUS_CODES = frozenset({401, 403})


class ExpectationEngine:
    """Decides what a mutated request should produce and judges the answer.

    Functional failures (wrong family) and execution errors (transport,
    timeout, authentication rejection) are kept strictly apart.
    """

    def __init__(self, options: RunOptions) -> None:
        self.options = options

    def expected_family(
        self,
        candidate: MutationCandidate,
        required: bool,
        when_required: ResponseCodeFamily = ResponseCodeFamily.FOURXX,
        when_optional: ResponseCodeFamily = ResponseCodeFamily.TWOXX,
    ) -> ResponseCodeFamily:
        if candidate.kind == MutationKind.TRIM_VALIDATE and not self.options.trims_before_validation:
            # The raw value, probes included, is what gets validated
            return ResponseCodeFamily.FOURXX
        if candidate.valid is True:
            return ResponseCodeFamily.TWOXX
        if candidate.valid is False:
            return ResponseCodeFamily.FOURXX
        return when_required if required else when_optional

    @staticmethod
    def classify(expected: ResponseCodeFamily, response: ServiceResponse) -> tuple[Verdict, ErrorKind | None]:
        if response.error is not None or response.status_code is None:
            return Verdict.EXECUTION_ERROR, ErrorKind.IO
        if response.status_code in AUTH_STATUS_CODES:
            return Verdict.EXECUTION_ERROR, ErrorKind.AUTH
        if expected.matches(response.status_code):
            return Verdict.PASS, None
        return Verdict.FUNCTIONAL_FAILURE, None
