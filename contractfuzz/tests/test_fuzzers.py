"""Tests for the table-driven fuzzers and request mutation."""

from __future__ import annotations

import pytest

from contractfuzz.contract.assembler import TestDataAssembler
from contractfuzz.core.config import RunOptions
from contractfuzz.core.types import (
    EdgeSpacesStrategy,
    HttpMethod,
    MutationCandidate,
    MutationKind,
    ParameterLocation,
    ResponseCodeFamily,
    TargetKind,
    Verdict,
)
from contractfuzz.fuzzer.descriptors import BODYLESS_METHODS, BUILTIN_DESCRIPTORS
from contractfuzz.fuzzer.executor import build_request
from contractfuzz.fuzzer.fuzzers import (
    HappyPathReplayFuzzer,
    ParametrizedFuzzer,
    field_targets,
    header_targets,
)
from contractfuzz.fuzzer.probes import ProbeCategory, probes
from contractfuzz.fuzzer.strategy import BoundaryStrategy, TrimThenValidateStrategy

DESCRIPTORS = {d.name: d for d in BUILTIN_DESCRIPTORS}


@pytest.fixture
def create_case(petstore, resolver):
    op = next(op for op in petstore.paths["/pets"] if op.method == HttpMethod.POST)
    [case] = TestDataAssembler(resolver).assemble(op)
    return case


@pytest.fixture
def list_case(petstore, resolver):
    op = next(op for op in petstore.paths["/pets"] if op.method == HttpMethod.GET)
    [case] = TestDataAssembler(resolver).assemble(op)
    return case


# ── Descriptor table ─────────────────────────────────────────────────────────


class TestDescriptors:
    def test_names_are_unique(self):
        assert len(DESCRIPTORS) == len(BUILTIN_DESCRIPTORS) == 13

    def test_conditional_activation(self):
        trim = RunOptions()
        no_trim = RunOptions(edge_spaces_strategy=EdgeSpacesStrategy.VALIDATE_AND_TRIM)
        no_emoji = RunOptions(include_emoji_fuzzers=False)
        header_ctrl = DESCRIPTORS["ControlCharsOnlyInHeadersTrimValidate"]
        emoji = DESCRIPTORS["TrailingMultiCodePointEmojisInFieldsTrimValidate"]
        assert header_ctrl.enabled_when(trim) and not header_ctrl.enabled_when(no_trim)
        assert emoji.enabled_when(trim) and not emoji.enabled_when(no_emoji)

    def test_body_fuzzers_skip_bodyless_methods(self):
        assert DESCRIPTORS["EmptyBody"].skip_methods == BODYLESS_METHODS
        assert DESCRIPTORS["EmptyJsonBody"].skip_methods == BODYLESS_METHODS

    def test_strategies_built_from_descriptors(self):
        assert isinstance(DESCRIPTORS["ControlCharsOnlyInFieldsTrimValidate"].build_strategy(), TrimThenValidateStrategy)
        assert isinstance(DESCRIPTORS["MaxLengthExactValuesInStringFields"].build_strategy(), BoundaryStrategy)


# ── Targets and request building ─────────────────────────────────────────────


class TestTargets:
    def test_header_targets_are_contract_declared_only(self, create_case):
        case = create_case.model_copy(update={"headers": {**create_case.headers, "Authorization": "Bearer t"}})
        assert [t.name for t in header_targets(case)] == ["X-Request-Id"]

    def test_field_targets_cover_query_and_body(self, create_case, list_case):
        assert [t.name for t in field_targets(list_case)] == ["limit"]
        names = [t.name for t in field_targets(create_case)]
        assert names == ["name", "tag", "age", "owner.email", "owner.nickname"]


class TestBuildRequest:
    def test_field_mutation_leaves_case_untouched(self, create_case):
        candidate = MutationCandidate(
            target_kind=TargetKind.FIELD, target="owner.email", location=ParameterLocation.BODY,
            value=" ", kind=MutationKind.REPLACE,
        )
        request = build_request(create_case, candidate)
        assert request.body["owner"]["email"] == " "
        assert create_case.body["owner"]["email"] == "john.doe@example.com"

    def test_query_mutation(self, list_case):
        candidate = MutationCandidate(
            target_kind=TargetKind.FIELD, target="limit", location=ParameterLocation.QUERY,
            value=101, kind=MutationKind.BOUNDARY,
        )
        request = build_request(list_case, candidate)
        assert request.query == {"limit": 101}
        assert request.has_body is False

    def test_header_mutation(self, create_case):
        candidate = MutationCandidate(
            target_kind=TargetKind.HEADER, target="X-Request-Id", value="\u00A0", kind=MutationKind.REPLACE,
        )
        assert build_request(create_case, candidate).headers["X-Request-Id"] == "\u00A0"
        assert create_case.headers["X-Request-Id"] != "\u00A0"


# ── Parametrized fuzzer ──────────────────────────────────────────────────────


class TestParametrizedFuzzer:
    @pytest.mark.asyncio
    async def test_one_test_per_candidate(self, create_case, executor, fake_caller, reporter):
        fuzzer = ParametrizedFuzzer(DESCRIPTORS["OnlySpacesInHeaders"], executor)
        await fuzzer.fuzz(create_case)
        header_probes = probes(ProbeCategory.HEADER_SPACES)
        assert [r.headers["X-Request-Id"] for r in fake_caller.requests] == list(header_probes)
        assert len(reporter.finished) == len(header_probes)
        assert all(r.expected == ResponseCodeFamily.FOURXX for r in reporter.finished)
        assert all(r.verdict == Verdict.PASS for r in reporter.finished)

    @pytest.mark.asyncio
    async def test_required_and_optional_fields(self, create_case, executor, reporter):
        fuzzer = ParametrizedFuzzer(DESCRIPTORS["OnlyWhitespacesInFields"], executor)
        await fuzzer.fuzz(create_case)
        expected = {r.target: r.expected for r in reporter.finished}
        assert expected["name"] == ResponseCodeFamily.FOURXX
        assert expected["tag"] == ResponseCodeFamily.TWOXX
        assert expected["owner.nickname"] == ResponseCodeFamily.TWOXX
        # The service answered 400 everywhere: optional fields fail functionally
        failures = {r.target for r in reporter.finished if r.verdict == Verdict.FUNCTIONAL_FAILURE}
        assert failures == {"tag", "age", "owner.nickname"}

    @pytest.mark.asyncio
    async def test_boundary_fuzzer(self, create_case, executor, fake_caller, reporter):
        fuzzer = ParametrizedFuzzer(DESCRIPTORS["MaximumExactValuesInNumericFields"], executor)
        await fuzzer.fuzz(create_case)
        assert [r.body["age"] for r in fake_caller.requests] == [30, 29, 31]
        assert [r.expected for r in reporter.finished] == [
            ResponseCodeFamily.TWOXX, ResponseCodeFamily.TWOXX, ResponseCodeFamily.FOURXX,
        ]

    @pytest.mark.asyncio
    async def test_empty_body(self, create_case, executor, fake_caller, reporter):
        await ParametrizedFuzzer(DESCRIPTORS["EmptyBody"], executor).fuzz(create_case)
        [request] = fake_caller.requests
        assert request.body == ""
        assert request.has_body is True
        assert reporter.finished[0].expected == ResponseCodeFamily.FOURXX

    @pytest.mark.asyncio
    async def test_nothing_to_fuzz_sends_nothing(self, list_case, executor, fake_caller):
        await ParametrizedFuzzer(DESCRIPTORS["OnlySpacesInHeaders"], executor).fuzz(list_case)
        assert fake_caller.requests == []


class TestHappyPathReplay:
    @pytest.mark.asyncio
    async def test_replays_unmodified_cases(self, create_case, list_case, executor, fake_caller, reporter):
        await HappyPathReplayFuzzer(executor).fuzz_all([create_case, list_case])
        assert [r.body for r in fake_caller.requests] == [create_case.body, None]
        assert all(r.expected == ResponseCodeFamily.TWOXX for r in reporter.finished)
        assert all(r.verdict == Verdict.FUNCTIONAL_FAILURE for r in reporter.finished)
