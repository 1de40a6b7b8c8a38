"""Tests for contractfuzz.contract.assembler: fuzz case construction."""

from __future__ import annotations

import pytest

from contractfuzz.contract.assembler import TestDataAssembler, sample_from_constraints
from contractfuzz.core.errors import OperationAssemblyError
from contractfuzz.core.resolver import ConfigResolver
from contractfuzz.core.types import ContractOperation, FieldConstraints, HttpMethod


def _operation(contract, path, method):
    return next(op for op in contract.paths[path] if op.method == method)


class TestSampleFromConstraints:
    def test_enum_first_value(self):
        assert sample_from_constraints(FieldConstraints(type="string", enum=("b", "a"))) == "b"

    def test_integer_minimum(self):
        assert sample_from_constraints(FieldConstraints(type="integer", minimum=5)) == 5

    def test_string_min_length(self):
        assert sample_from_constraints(FieldConstraints(type="string", min_length=7)) == "a" * 7

    def test_string_capped_by_max_length(self):
        assert sample_from_constraints(FieldConstraints(type="string", max_length=3)) == "aaa"

    def test_format(self):
        assert "@" in sample_from_constraints(FieldConstraints(type="string", format="email"))

    def test_satisfies_own_constraints(self):
        c = FieldConstraints(type="string", min_length=2, max_length=10)
        assert c.accepts(sample_from_constraints(c))


class TestTestDataAssembler:
    def test_one_case_per_content_type(self, petstore, resolver):
        op = _operation(petstore, "/pets", HttpMethod.POST)
        multi = op.model_copy(update={"content_types": ("application/json", "application/merge-patch+json")})
        cases = TestDataAssembler(resolver).assemble(multi)
        assert [c.content_type for c in cases] == ["application/json", "application/merge-patch+json"]
        assert cases[0].body == cases[1].body
        assert cases[0].body is not cases[1].body

    def test_body_uses_examples_and_synthesised_values(self, petstore, resolver):
        [case] = TestDataAssembler(resolver).assemble(_operation(petstore, "/pets", HttpMethod.POST))
        assert case.body["name"] == "Rex"
        assert case.body["age"] == 0
        assert case.body["owner"]["email"] == "john.doe@example.com"

    def test_bodyless_operation_gives_single_case(self, petstore, resolver):
        cases = TestDataAssembler(resolver).assemble(_operation(petstore, "/pets/{petId}", HttpMethod.GET))
        assert len(cases) == 1
        assert cases[0].content_type is None
        assert cases[0].body is None
        assert cases[0].path_params == {"petId": "p-1"}

    def test_required_query_params_only(self, petstore, resolver):
        [post] = TestDataAssembler(resolver).assemble(_operation(petstore, "/pets", HttpMethod.POST))
        [get] = TestDataAssembler(resolver).assemble(_operation(petstore, "/pets", HttpMethod.GET))
        assert "dryRun" not in post.query
        assert get.query == {"limit": 1}

    def test_config_headers_and_query(self, petstore):
        resolver = ConfigResolver(
            headers={"all": {"Authorization": "Bearer t"}, "/pets": {"X-Request-Id": "req-1"}},
            query_params={"/pets": {"trace": "on"}},
        )
        [case] = TestDataAssembler(resolver).assemble(_operation(petstore, "/pets", HttpMethod.POST))
        assert case.headers == {"X-Request-Id": "req-1", "Authorization": "Bearer t"}
        assert case.query == {"trace": "on"}

    def test_reference_data_wins(self, petstore):
        resolver = ConfigResolver(
            reference_data={"all": {"petId": "p-42", "owner.email": "ref@example.com", "dryRun": True}}
        )
        assembler = TestDataAssembler(resolver)
        [get] = assembler.assemble(_operation(petstore, "/pets/{petId}", HttpMethod.GET))
        [post] = assembler.assemble(_operation(petstore, "/pets", HttpMethod.POST))
        assert get.path_params == {"petId": "p-42"}
        assert post.body["owner"]["email"] == "ref@example.com"
        assert post.query["dryRun"] is True
        assert "petId" not in post.body

    def test_unexpected_failure_becomes_assembly_error(self):
        op = ContractOperation(
            path="/broken",
            method=HttpMethod.POST,
            content_types=("application/json",),
            body_schema={"type": "object", "properties": {"n": {"type": "integer", "minimum": "not-a-number"}}},
        )
        with pytest.raises(OperationAssemblyError):
            TestDataAssembler(ConfigResolver()).assemble(op)
