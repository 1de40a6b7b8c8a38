"""Per-path configuration resolution for headers, query params and reference data.

Each config file is YAML whose top-level keys are contract paths or the
wildcard key ``all``; each value is a flat mapping::

    all:
      Authorization: Bearer abc
    /pets/{petId}:
      X-Tenant: acme

For a given path the wildcard mapping is taken first and the path-specific
mapping is laid over it key by key, so a path can override a single
wildcard entry and still inherit the rest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from contractfuzz.core.errors import ConfigLoadError
from contractfuzz.core.payload import plain_scalars

logger = logging.getLogger(__name__)

ALL = "all"

PathConfig = dict[str, dict[str, Any]]


def merge(path_specific: Mapping[str, Any] | None, wildcard: Mapping[str, Any] | None) -> dict[str, Any]:
    """Wildcard entries overwritten by per-path entries for the same key."""
    merged: dict[str, Any] = dict(wildcard or {})
    merged.update(path_specific or {})
    return merged


def merge_path_and_all(collection: Mapping[str, Mapping[str, Any]], path: str) -> dict[str, Any]:
    """Resolve the effective mapping for *path* from a whole config collection.

    Keys match case-insensitively. The result does not depend on the order
    in which entries were declared: wildcard entries are applied first, then
    path entries in sorted key order.
    """
    wildcard: dict[str, Any] = {}
    specific: dict[str, Any] = {}
    for key in sorted(collection):
        if key.lower() == ALL:
            wildcard.update(collection[key] or {})
        elif key.lower() == path.lower():
            specific.update(collection[key] or {})
    return merge(specific, wildcard)


def parse_yaml(file_path: str | Path) -> PathConfig:
    """Load a path-keyed config file. Raises ConfigLoadError on any problem."""
    path = Path(file_path)
    try:
        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigLoadError(f"Cannot read config file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigLoadError(f"Config file {path} is not UTF-8 text: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{path}: top level must be a mapping of paths, got {type(raw).__name__}")

    result: PathConfig = {}
    for key, value in raw.items():
        if value is None:
            value = {}
        if not isinstance(value, dict):
            raise ConfigLoadError(f"{path}: entry {key!r} must be a mapping, got {type(value).__name__}")
        result[str(key)] = {str(k): plain_scalars(v) for k, v in value.items()}
    return result


class ConfigResolver:
    """Holds loaded config files and answers per-path lookups.

    Usage::

        resolver = ConfigResolver.load(headers_file="headers.yml", cli_headers={"X-Trace": "1"})
        resolver.get_headers("/pets")
    """

    def __init__(
        self,
        headers: PathConfig | None = None,
        query_params: PathConfig | None = None,
        reference_data: PathConfig | None = None,
        url_params: list[str] | None = None,
    ) -> None:
        self._headers = headers or {}
        self._query_params = query_params or {}
        self._reference_data = reference_data or {}
        self._url_params = self._parse_url_params(url_params or [])

    @classmethod
    def load(
        cls,
        headers_file: str | Path | None = None,
        query_file: str | Path | None = None,
        ref_data_file: str | Path | None = None,
        cli_headers: Mapping[str, Any] | None = None,
        url_params: list[str] | None = None,
    ) -> ConfigResolver:
        """Load every supplied file; missing arguments mean empty config."""
        headers = cls._load_file(headers_file, "Headers")
        query = cls._load_file(query_file, "Query params")
        ref_data = cls._load_file(ref_data_file, "Reference data")

        # -H headers apply to every path and win over file-declared wildcards
        if cli_headers:
            headers[ALL] = merge(cli_headers, headers.get(ALL))

        if url_params:
            logger.info("URL parameters: %s", url_params)
        return cls(headers=headers, query_params=query, reference_data=ref_data, url_params=url_params)

    @staticmethod
    def _load_file(file_path: str | Path | None, kind: str) -> PathConfig:
        if file_path is None:
            logger.debug("No %s file provided", kind)
            return {}
        loaded = parse_yaml(file_path)
        logger.info("%s file: %s", kind, Path(file_path).resolve())
        logger.debug("%s file loaded: %s", kind, loaded)
        return loaded

    @staticmethod
    def _parse_url_params(params: list[str]) -> dict[str, str]:
        parsed: dict[str, str] = {}
        for item in params:
            name, sep, value = item.partition(":")
            if not sep or not name:
                raise ConfigLoadError(f"Invalid URL param {item!r}, expected name:value")
            parsed[name.strip()] = value
        return parsed

    # ── Lookups ──────────────────────────────────────────────────────────────

    def get_headers(self, path: str) -> dict[str, Any]:
        return merge_path_and_all(self._headers, path)

    def get_query_params(self, path: str) -> dict[str, Any]:
        return merge_path_and_all(self._query_params, path)

    def get_reference_data(self, path: str) -> dict[str, Any]:
        return merge_path_and_all(self._reference_data, path)

    @property
    def url_params(self) -> dict[str, str]:
        return dict(self._url_params)

    def replace_url_params(self, url: str) -> str:
        """Substitute ``{name}`` placeholders with supplied URL params."""
        for name, value in self._url_params.items():
            url = url.replace("{" + name + "}", value)
        return url
