"""
Version comparison and the self-update check.
"""

import asyncio
import logging
import re
from typing import Optional

import httpx

from .config import EngineConfig
from .models import ErrorKind, UpdateCheckResult


logger = logging.getLogger(__name__)

_COMPONENT = re.compile(r"\+?[0-9]+")

_MAX_COMPONENT = 2 ** 64 - 1

VersionTuple = tuple[int, ...]


def parse_version(text: str) -> VersionTuple:
    """
    Parse a dotted version such as ``v1.2.3`` into ``(1, 2, 3)``.

    Leading ``v`` characters are stripped. A component that is not an
    unsigned 64-bit integer (an optional ``+`` then ASCII digits) counts
    as 0, so ``1.2.x`` and ``1.2.0-beta`` both parse as ``(1, 2, 0)``.
    """
    return tuple(_parse_component(part) for part in text.lstrip("v").split("."))


def _parse_component(part: str) -> int:
    if not _COMPONENT.fullmatch(part):
        return 0
    value = int(part)
    return value if value <= _MAX_COMPONENT else 0


def is_newer(candidate: str, current: str) -> bool:
    """
    True if ``candidate`` is a later version than ``current``.

    Components are compared left to right up to the longer tuple, with a
    missing trailing component taken as 0. Equal versions are not newer.
    """
    left, right = parse_version(candidate), parse_version(current)
    for index in range(max(len(left), len(right))):
        a = left[index] if index < len(left) else 0
        b = right[index] if index < len(right) else 0
        if a > b:
            return True
        if a < b:
            return False
    return False


def _pick_release(data, include_prerelease: bool) -> dict:
    if include_prerelease:
        if not isinstance(data, list):
            return {}
        for item in data:
            if isinstance(item, dict) and not item.get("draft", False):
                return item
        return {}
    return data if isinstance(data, dict) else {}


class UpdateChecker:
    """Queries the release listing and compares it with the running version."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or EngineConfig()
        self._client = client

    async def _fetch(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers={"User-Agent": self.config.user_agent})
        async with httpx.AsyncClient(follow_redirects=True) as client:
            return await client.get(url, headers={"User-Agent": self.config.user_agent})

    async def check(self, include_prerelease: bool = False) -> UpdateCheckResult:
        """
        Check for a newer release.

        Args:
            include_prerelease: Consider the first non-draft entry of the
                release list instead of the single latest release

        Returns:
            UpdateCheckResult; ``error`` is "update-check-failed" when the
            request fails and "invalid-response" when the body is not JSON
        """
        config = self.config
        result = UpdateCheckResult(
            current_version=config.current_version,
            url=config.releases_page_url,
        )
        url = config.releases_list_url if include_prerelease else config.releases_latest_url

        try:
            response = await asyncio.wait_for(self._fetch(url), timeout=config.update_timeout_s)
        except (asyncio.TimeoutError, httpx.HTTPError, OSError) as e:
            logger.warning("Update check against %s failed: %s", url, str(e) or type(e).__name__)
            result.error = ErrorKind.UPDATE_CHECK_FAILED.value
            return result

        try:
            data = response.json()
        except ValueError:
            logger.warning("Update check returned a non-JSON body (HTTP %s)", response.status_code)
            result.error = ErrorKind.INVALID_RESPONSE.value
            return result

        release = _pick_release(data, include_prerelease)
        tag = release.get("tag_name")
        latest = tag.lstrip("v") if isinstance(tag, str) else ""
        html_url = release.get("html_url")

        result.latest_version = latest
        result.update_available = bool(latest) and is_newer(latest, config.current_version)
        result.is_prerelease = release.get("prerelease") is True
        if isinstance(html_url, str):
            result.url = html_url

        if result.update_available:
            logger.info("Update available: %s -> %s", config.current_version, latest)
        return result
