"""Sends fuzzed requests to the service under test over httpx.

The caller never raises for transport problems: timeouts, refused
connections and values the HTTP client refuses to put on the wire come back
as a ``ServiceResponse`` carrying a ``TransportError``, which the
expectation engine classifies as an io error.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from contractfuzz.core.errors import TransportError
from contractfuzz.core.resolver import ConfigResolver
from contractfuzz.core.types import HttpMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceRequest:
    """One fully mutated request, ready to send."""

    method: HttpMethod
    path: str
    headers: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    path_params: dict[str, Any] = field(default_factory=dict)
    content_type: str | None = None
    body: Any = None
    has_body: bool = False


@dataclass(frozen=True)
class ServiceResponse:
    status_code: int | None = None
    duration_ms: float = 0.0
    error: TransportError | None = None
    body_preview: str = ""

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(cls, error: TransportError, duration_ms: float = 0.0) -> ServiceResponse:
        return cls(error=error, duration_ms=duration_ms)


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def _is_json(content_type: str | None) -> bool:
    if not content_type:
        return True
    media = _media_type(content_type)
    return media == "application/json" or media.endswith("+json")


def encode_body(body: Any, content_type: str | None) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, dict) and _media_type(content_type) == FORM_CONTENT_TYPE:
        return _encode_form(body)
    if isinstance(body, str) and not _is_json(content_type):
        return body.encode("utf-8")
    if isinstance(body, str) and body == "":
        return b""
    return json.dumps(body, ensure_ascii=False).encode("utf-8")


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return ""
    return value


def _encode_form(body: dict[str, Any]) -> bytes:
    """Top-level fields as form pairs; lists repeat the key, nested objects go as JSON."""
    pairs = {
        name: [_query_value(item) for item in value] if isinstance(value, list) else _query_value(value)
        for name, value in body.items()
    }
    return urlencode(pairs, doseq=True).encode("ascii")


class ServiceCaller:
    """Async HTTP client wrapper bound to one server URL."""

    def __init__(
        self,
        server_url: str,
        resolver: ConfigResolver | None = None,
        timeout: float = 10.0,
        user_agent: str = "contractfuzz",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.resolver = resolver
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ServiceCaller:
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=False,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_url(self, path: str, path_params: dict[str, Any]) -> str:
        if self.resolver is not None:
            path = self.resolver.replace_url_params(path)
        for name, value in path_params.items():
            path = path.replace("{" + name + "}", quote(str(value), safe=""))
        return f"{self.server_url}{path}"

    def build_headers(self, request: ServiceRequest) -> dict[str, bytes]:
        # Encoded up front so non-latin-1 probes reach the wire as UTF-8
        headers = {"User-Agent": self.user_agent.encode("utf-8")}
        if request.has_body and request.content_type:
            headers["Content-Type"] = request.content_type.encode("utf-8")
        for name, value in request.headers.items():
            headers[name] = ("" if value is None else str(value)).encode("utf-8")
        return headers

    async def call(self, request: ServiceRequest) -> ServiceResponse:
        if self._client is None:
            raise RuntimeError("ServiceCaller must be used as an async context manager")

        url = self.build_url(request.path, request.path_params)
        params = {name: _query_value(value) for name, value in request.query.items()}
        content = encode_body(request.body, request.content_type) if request.has_body else None

        started = time.perf_counter()
        try:
            response = await self._client.request(
                request.method.value,
                url,
                headers=self.build_headers(request),
                params=params,
                content=content,
            )
        except httpx.TimeoutException as exc:
            return self._failed(request, url, started, TransportError(f"Request timed out: {exc}", timed_out=True))
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            return self._failed(request, url, started, TransportError(f"{type(exc).__name__}: {exc}"))

        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "%s %s -> %d", request.method.value, url, response.status_code,
            extra={"status_code": response.status_code, "duration_ms": round(duration_ms, 1)},
        )
        return ServiceResponse(
            status_code=response.status_code,
            duration_ms=duration_ms,
            body_preview=response.text[:200],
        )

    @staticmethod
    def _failed(request: ServiceRequest, url: str, started: float, error: TransportError) -> ServiceResponse:
        duration_ms = (time.perf_counter() - started) * 1000
        logger.warning(
            "%s %s failed: %s", request.method.value, url, error.message,
            extra={"path": request.path, "method": request.method.value},
        )
        return ServiceResponse.failure(error, duration_ms=duration_ms)
