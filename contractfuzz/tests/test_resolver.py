"""Tests for contractfuzz.core.resolver: per-path config merging and loading."""

from __future__ import annotations

import itertools

import pytest

from contractfuzz.core.errors import ConfigLoadError
from contractfuzz.core.resolver import ALL, ConfigResolver, merge, merge_path_and_all, parse_yaml


class TestMerge:
    def test_path_entries_win_over_wildcard(self):
        assert merge({"a": "path"}, {"a": "all", "b": "all"}) == {"a": "path", "b": "all"}

    def test_missing_sides(self):
        assert merge(None, {"a": 1}) == {"a": 1}
        assert merge({"a": 1}, None) == {"a": 1}
        assert merge(None, None) == {}

    def test_merge_does_not_mutate_inputs(self):
        wildcard = {"a": 1}
        merge({"a": 2}, wildcard)
        assert wildcard == {"a": 1}


class TestMergePathAndAll:
    COLLECTION = {
        "all": {"Authorization": "Bearer all", "X-Tenant": "default"},
        "/pets": {"X-Tenant": "pets"},
        "/users": {"X-Tenant": "users"},
    }

    def test_path_override_and_inheritance(self):
        merged = merge_path_and_all(self.COLLECTION, "/pets")
        assert merged == {"Authorization": "Bearer all", "X-Tenant": "pets"}

    def test_unknown_path_gets_wildcard_only(self):
        merged = merge_path_and_all(self.COLLECTION, "/orders")
        assert merged == {"Authorization": "Bearer all", "X-Tenant": "default"}

    def test_independent_of_declaration_order(self):
        items = list(self.COLLECTION.items())
        results = {
            tuple(sorted(merge_path_and_all(dict(perm), "/pets").items()))
            for perm in itertools.permutations(items)
        }
        assert len(results) == 1

    def test_keys_match_case_insensitively(self):
        collection = {"ALL": {"a": 1}, "/Pets": {"b": 2}}
        assert merge_path_and_all(collection, "/pets") == {"a": 1, "b": 2}


class TestParseYaml:
    def test_valid_file(self, tmp_path):
        f = tmp_path / "headers.yml"
        f.write_text("all:\n  Authorization: Bearer x\n/pets:\n  X-Tenant: acme\n")
        assert parse_yaml(f) == {"all": {"Authorization": "Bearer x"}, "/pets": {"X-Tenant": "acme"}}

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.yml"
        f.write_text("")
        assert parse_yaml(f) == {}

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(ConfigLoadError) as info:
            parse_yaml(tmp_path / "missing.yml")
        assert info.value.fatal is True

    def test_malformed_yaml(self, tmp_path):
        f = tmp_path / "bad.yml"
        f.write_text("all: [unclosed\n")
        with pytest.raises(ConfigLoadError):
            parse_yaml(f)

    def test_top_level_must_be_mapping(self, tmp_path):
        f = tmp_path / "list.yml"
        f.write_text("- a\n- b\n")
        with pytest.raises(ConfigLoadError):
            parse_yaml(f)

    def test_entries_must_be_mappings(self, tmp_path):
        f = tmp_path / "scalar.yml"
        f.write_text("all: just-a-string\n")
        with pytest.raises(ConfigLoadError):
            parse_yaml(f)

    def test_non_utf8_file_is_fatal(self, tmp_path):
        f = tmp_path / "headers.yml"
        f.write_bytes(b"all:\n  X-A: \xff\xfe\n")
        with pytest.raises(ConfigLoadError) as info:
            parse_yaml(f)
        assert info.value.fatal is True

    def test_dates_are_read_as_iso_strings(self, tmp_path):
        f = tmp_path / "refs.yml"
        f.write_text("all:\n  day: 2024-01-31\n")
        assert parse_yaml(f) == {"all": {"day": "2024-01-31"}}


class TestConfigResolver:
    def test_same_precedence_for_every_config_kind(self):
        collection = {ALL: {"k": "all", "w": "all"}, "/pets": {"k": "path"}}
        resolver = ConfigResolver(headers=collection, query_params=collection, reference_data=collection)
        expected = {"k": "path", "w": "all"}
        assert resolver.get_headers("/pets") == expected
        assert resolver.get_query_params("/pets") == expected
        assert resolver.get_reference_data("/pets") == expected

    def test_cli_headers_override_file_wildcard(self, tmp_path):
        f = tmp_path / "headers.yml"
        f.write_text("all:\n  Authorization: from-file\n  X-Keep: keep\n/pets:\n  Authorization: per-path\n")
        resolver = ConfigResolver.load(headers_file=f, cli_headers={"Authorization": "from-cli"})
        assert resolver.get_headers("/users") == {"Authorization": "from-cli", "X-Keep": "keep"}
        assert resolver.get_headers("/pets")["Authorization"] == "per-path"

    def test_url_params(self):
        resolver = ConfigResolver(url_params=["version:v2", "tenant:acme"])
        assert resolver.url_params == {"version": "v2", "tenant": "acme"}
        assert resolver.replace_url_params("/{version}/{tenant}/pets/{petId}") == "/v2/acme/pets/{petId}"

    def test_invalid_url_param(self):
        with pytest.raises(ConfigLoadError):
            ConfigResolver(url_params=["no-separator"])

    def test_load_without_files(self):
        resolver = ConfigResolver.load()
        assert resolver.get_headers("/pets") == {}
