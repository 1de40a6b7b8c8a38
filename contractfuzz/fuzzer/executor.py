"""Runs a single test: mutate a fresh request copy, send it, judge the answer."""

from __future__ import annotations

import copy
from typing import Protocol

from contractfuzz.core.payload import with_field
from contractfuzz.core.types import (
    ExpectationRecord,
    FuzzCase,
    MutationCandidate,
    ParameterLocation,
    ResponseCodeFamily,
    TargetKind,
)
from contractfuzz.fuzzer.expectation import ExpectationEngine
from contractfuzz.reporting.listener import TestCaseListener
from contractfuzz.service.caller import ServiceRequest, ServiceResponse


class Caller(Protocol):
    async def call(self, request: ServiceRequest) -> ServiceResponse: ...


def build_request(case: FuzzCase, candidate: MutationCandidate | None = None) -> ServiceRequest:
    """Request for *case*, with *candidate* applied to copies of its parts."""
    headers = dict(case.headers)
    query = dict(case.query)
    body = copy.deepcopy(case.body)
    has_body = case.content_type is not None

    if candidate is not None:
        if candidate.target_kind == TargetKind.HEADER:
            headers[candidate.target] = candidate.value
        elif candidate.target_kind == TargetKind.BODY:
            body = candidate.value
            has_body = True
        elif candidate.location == ParameterLocation.QUERY:
            query[candidate.target] = candidate.value
        else:
            body = with_field(body, candidate.target, candidate.value)
            has_body = True

    return ServiceRequest(
        method=case.method,
        path=case.path,
        headers=headers,
        query=query,
        path_params=dict(case.path_params),
        content_type=case.content_type,
        body=body,
        has_body=has_body,
    )


class TestExecutor:
    """Shared by every fuzzer of a run; one ``execute`` call is one test."""

    __test__ = False  # not a pytest class

    def __init__(self, caller: Caller, listener: TestCaseListener, expectations: ExpectationEngine) -> None:
        self.caller = caller
        self.listener = listener
        self.expectations = expectations

    async def execute(
        self,
        fuzzer: str,
        case: FuzzCase,
        scenario: str,
        expected: ResponseCodeFamily,
        candidate: MutationCandidate | None = None,
    ) -> ExpectationRecord:
        record = self.listener.new_record(
            fuzzer=fuzzer,
            path=case.path,
            method=case.method,
            scenario=scenario,
            expected=expected,
            target=candidate.target if candidate is not None else None,
        )
        self.listener.test_started(record)

        response = await self.caller.call(build_request(case, candidate))
        verdict, error_kind = self.expectations.classify(expected, response)
        record = record.model_copy(
            update={
                "actual_code": response.status_code,
                "verdict": verdict,
                "error_kind": error_kind,
                "detail": response.error.message if response.error is not None else "",
            }
        )
        self.listener.test_finished(record)
        return record
