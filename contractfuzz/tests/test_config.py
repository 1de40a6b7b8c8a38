"""Tests for contractfuzz.core.config: settings loading and run options."""

from __future__ import annotations

import os
from unittest.mock import patch

from contractfuzz.core.config import RunOptions, Settings, get_settings
from contractfuzz.core.types import EdgeSpacesStrategy, HttpMethod


class TestSettings:
    """Verify settings defaults and environment overrides."""

    def test_default_app_env(self):
        s = Settings()
        assert s.app_env == "development"

    def test_fuzzing_defaults(self):
        s = Settings()
        assert s.edge_spaces_strategy == EdgeSpacesStrategy.TRIM_AND_VALIDATE
        assert s.include_emoji_fuzzers is True
        assert s.request_timeout_seconds == 10.0

    def test_update_check_off_by_default(self):
        s = Settings()
        assert s.check_update is False
        assert s.update_check_url.startswith("https://")

    @patch.dict(
        os.environ,
        {"CONTRACTFUZZ_SERVER_URL": "http://svc:9000", "CONTRACTFUZZ_EDGE_SPACES_STRATEGY": "validate_and_trim"},
    )
    def test_env_override(self):
        s = Settings()
        assert s.server_url == "http://svc:9000"
        assert s.edge_spaces_strategy == EdgeSpacesStrategy.VALIDATE_AND_TRIM

    def test_get_settings_returns_same_instance(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()


class TestRunOptions:
    def test_from_settings_uses_settings_defaults(self):
        s = Settings(server_url="http://a", request_timeout_seconds=3.0)
        opts = RunOptions.from_settings(s)
        assert opts.server_url == "http://a"
        assert opts.timeout == 3.0

    def test_none_overrides_are_ignored(self):
        s = Settings(server_url="http://a")
        opts = RunOptions.from_settings(s, server_url=None, timeout=7.5)
        assert opts.server_url == "http://a"
        assert opts.timeout == 7.5

    def test_trims_before_validation(self):
        assert RunOptions().trims_before_validation is True
        opts = RunOptions(edge_spaces_strategy=EdgeSpacesStrategy.VALIDATE_AND_TRIM)
        assert opts.trims_before_validation is False

    def test_empty_method_selection_means_all(self):
        assert RunOptions().is_method_selected(HttpMethod.PATCH)
        opts = RunOptions(http_methods=frozenset({HttpMethod.GET}))
        assert opts.is_method_selected(HttpMethod.GET)
        assert not opts.is_method_selected(HttpMethod.POST)

    def test_fuzzer_selection(self):
        opts = RunOptions(fuzzers=("EmptyBody", "EmptyJsonBody"), skip_fuzzers=("EmptyJsonBody",))
        assert opts.is_fuzzer_selected("EmptyBody")
        assert not opts.is_fuzzer_selected("EmptyJsonBody")
        assert not opts.is_fuzzer_selected("OnlySpacesInHeaders")
        assert RunOptions().is_fuzzer_selected("anything")
