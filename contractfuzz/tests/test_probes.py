"""Tests for contractfuzz.fuzzer.probes: static probe catalogs."""

from __future__ import annotations

import pytest

from contractfuzz.fuzzer.probes import ProbeCategory, probe_characters, probes


class TestProbeCatalog:
    @pytest.mark.parametrize("category", list(ProbeCategory))
    def test_every_category_is_non_empty(self, category):
        values = probes(category)
        assert isinstance(values, tuple)
        assert len(values) > 0
        assert all(isinstance(v, str) and v for v in values)

    @pytest.mark.parametrize("category", list(ProbeCategory))
    def test_lookup_is_stable(self, category):
        assert probes(category) == probes(category)

    def test_probe_characters_are_distinct(self):
        chars = probe_characters(ProbeCategory.CONTROL_CHARS)
        assert len(chars) == len(set(chars))
        assert "\r" in chars and "\n" in chars

    def test_multi_code_point_emojis_are_multi_code_point(self):
        assert all(len(v) > 1 for v in probes(ProbeCategory.MULTI_CODE_POINT_EMOJIS))

    def test_header_probes_survive_strict_clients(self):
        for category in (ProbeCategory.HEADER_SPACES, ProbeCategory.HEADER_CONTROL_CHARS):
            for value in probes(category):
                assert all(ord(ch) >= 0x80 for ch in value)

    def test_whitespaces_are_whitespace(self):
        assert all(v.isspace() for v in probes(ProbeCategory.WHITESPACES))
