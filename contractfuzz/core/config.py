"""Core configuration for the contractfuzz engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from contractfuzz import __version__
from contractfuzz.core.types import EdgeSpacesStrategy, HttpMethod, ResponseCodeFamily


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONTRACTFUZZ_",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "contractfuzz"
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # ── Target service ───────────────────────────────────────────────────
    server_url: str = "http://localhost:8080"
    request_timeout_seconds: float = 10.0
    user_agent: str = f"contractfuzz/{__version__}"
    default_content_type: str = "application/json"

    # ── Fuzzing behaviour ────────────────────────────────────────────────
    edge_spaces_strategy: EdgeSpacesStrategy = EdgeSpacesStrategy.TRIM_AND_VALIDATE
    include_emoji_fuzzers: bool = True

    # ── Update check ─────────────────────────────────────────────────────
    check_update: bool = False
    update_check_url: str = "https://pypi.org/pypi/contractfuzz/json"
    update_check_timeout_seconds: float = 3.0


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()


@dataclass(frozen=True)
class RunOptions:
    """Resolved options for a single fuzzing run.

    Settings supply the defaults, command line flags override them. Catalog
    filters and fuzzer activation predicates are evaluated against this
    object, never against raw flags.
    """

    server_url: str = "http://localhost:8080"
    timeout: float = 10.0
    user_agent: str = f"contractfuzz/{__version__}"
    default_content_type: str = "application/json"
    paths: tuple[str, ...] = ()
    skip_paths: tuple[str, ...] = ()
    http_methods: frozenset[HttpMethod] = field(default_factory=frozenset)
    response_code_families: frozenset[ResponseCodeFamily] = field(default_factory=frozenset)
    fuzzers: tuple[str, ...] = ()
    skip_fuzzers: tuple[str, ...] = ()
    edge_spaces_strategy: EdgeSpacesStrategy = EdgeSpacesStrategy.TRIM_AND_VALIDATE
    include_emoji_fuzzers: bool = True
    check_update: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> RunOptions:
        """Build options from settings, applying non-None overrides."""
        base = cls(
            server_url=settings.server_url,
            timeout=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
            default_content_type=settings.default_content_type,
            edge_spaces_strategy=settings.edge_spaces_strategy,
            include_emoji_fuzzers=settings.include_emoji_fuzzers,
            check_update=settings.check_update,
        )
        return replace(base, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def trims_before_validation(self) -> bool:
        return self.edge_spaces_strategy == EdgeSpacesStrategy.TRIM_AND_VALIDATE

    def is_method_selected(self, method: HttpMethod) -> bool:
        return not self.http_methods or method in self.http_methods

    def is_fuzzer_selected(self, name: str) -> bool:
        if name in self.skip_fuzzers:
            return False
        return not self.fuzzers or name in self.fuzzers
