"""Shared fixtures for the contractfuzz test suite."""

from __future__ import annotations

import copy
from typing import Any, Callable

import pytest

from contractfuzz.contract.loader import parse_contract
from contractfuzz.core.config import RunOptions
from contractfuzz.core.resolver import ConfigResolver
from contractfuzz.core.types import Contract
from contractfuzz.fuzzer.executor import TestExecutor
from contractfuzz.fuzzer.expectation import ExpectationEngine
from contractfuzz.reporting.listener import TestCaseListener
from contractfuzz.reporting.statistics import RunStatistics
from contractfuzz.service.caller import ServiceRequest, ServiceResponse


# ── Contract Fixtures ────────────────────────────────────────────────────────

PETSTORE: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "post": {
                "operationId": "createPet",
                "parameters": [
                    {"name": "X-Request-Id", "in": "header", "required": True, "schema": {"type": "string"}},
                    {"name": "dryRun", "in": "query", "schema": {"type": "boolean"}},
                ],
                "requestBody": {
                    "required": True,
                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                },
                "responses": {"201": {"description": "created"}, "400": {"description": "bad"}},
            },
            "get": {
                "operationId": "listPets",
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "required": True,
                        "schema": {"type": "integer", "minimum": 1, "maximum": 100},
                    },
                ],
                "responses": {"200": {"description": "ok"}},
            },
        },
        "/pets/{petId}": {
            "parameters": [{"name": "petId", "in": "path", "schema": {"type": "string", "example": "p-1"}}],
            "get": {"operationId": "getPet", "responses": {"200": {"description": "ok"}}},
            "delete": {"operationId": "deletePet", "responses": {"204": {"description": "gone"}}},
        },
        "/health": {
            "get": {"operationId": "health", "responses": {"default": {"description": "any"}}},
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["name", "owner"],
                "properties": {
                    "name": {"type": "string", "minLength": 2, "maxLength": 10, "example": "Rex"},
                    "tag": {"type": "string"},
                    "age": {"type": "integer", "minimum": 0, "maximum": 30},
                    "owner": {"$ref": "#/components/schemas/Owner"},
                },
            },
            "Owner": {
                "type": "object",
                "required": ["email"],
                "properties": {
                    "email": {"type": "string", "format": "email"},
                    "nickname": {"type": "string"},
                },
            },
        }
    },
}


@pytest.fixture
def petstore_document() -> dict[str, Any]:
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def petstore(petstore_document) -> Contract:
    return parse_contract(petstore_document)


@pytest.fixture
def options() -> RunOptions:
    return RunOptions(server_url="http://api.test")


@pytest.fixture
def resolver() -> ConfigResolver:
    return ConfigResolver()


# ── Service Fixtures ─────────────────────────────────────────────────────────


class FakeCaller:
    """Records every request and answers with a fixed or computed response."""

    def __init__(self, respond: Callable[[ServiceRequest], ServiceResponse] | int = 400) -> None:
        self.respond = respond
        self.requests: list[ServiceRequest] = []

    async def __aenter__(self) -> FakeCaller:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def call(self, request: ServiceRequest) -> ServiceResponse:
        self.requests.append(request)
        if callable(self.respond):
            return self.respond(request)
        return ServiceResponse(status_code=self.respond)


class CollectingReporter:
    def __init__(self) -> None:
        self.started: list = []
        self.finished: list = []

    def test_started(self, record) -> None:
        self.started.append(record)

    def test_finished(self, record) -> None:
        self.finished.append(record)


@pytest.fixture
def fake_caller() -> FakeCaller:
    return FakeCaller()


@pytest.fixture
def reporter() -> CollectingReporter:
    return CollectingReporter()


@pytest.fixture
def statistics() -> RunStatistics:
    return RunStatistics()


@pytest.fixture
def listener(statistics, reporter) -> TestCaseListener:
    return TestCaseListener(statistics, [reporter])


@pytest.fixture
def executor(fake_caller, listener, options) -> TestExecutor:
    return TestExecutor(fake_caller, listener, ExpectationEngine(options))
