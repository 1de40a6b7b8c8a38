"""Background check for a newer release.

The check is started as a task before fuzzing begins and only joined when
the run is over. It never fails the run: every problem ends up as "no new
version".
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


def parse_version(value: str) -> tuple[int, ...]:
    """Numeric release components; "1.10.0rc1" -> (1, 10, 0)."""
    parts = []
    for piece in value.strip().lstrip("v").split("."):
        match = re.match(r"\d+", piece)
        if match is None:
            break
        parts.append(int(match.group()))
    return tuple(parts)


@dataclass(frozen=True)
class CheckResult:
    current: str
    latest: str | None = None
    release_url: str = ""

    @property
    def is_new_version(self) -> bool:
        if not self.latest:
            return False
        return parse_version(self.latest) > parse_version(self.current)


class VersionChecker:
    def __init__(
        self,
        url: str,
        timeout: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def check(self, current: str) -> CheckResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                info = response.json()["info"]
            return CheckResult(
                current=current,
                latest=str(info["version"]),
                release_url=str(info.get("release_url") or info.get("package_url") or ""),
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.debug("Update check failed: %s", exc)
            return CheckResult(current=current)

    def start(self, current: str) -> asyncio.Task[CheckResult]:
        """Schedule the check on the running loop without waiting for it."""
        return asyncio.create_task(self.check(current), name="contractfuzz-update-check")


async def join_version_check(task: asyncio.Task[CheckResult] | None) -> CheckResult | None:
    if task is None:
        return None
    try:
        return await task
    except Exception as exc:
        logger.debug("Update check failed: %s", exc)
        return None
