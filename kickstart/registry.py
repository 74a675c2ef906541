"""Async npm registry client used to pin versions in generated package.json files.

Only the ``/<package>/latest`` endpoint is used.  Every failure (network
error, timeout, non-200 status, malformed body) degrades to the ``"latest"``
dist-tag so that project generation never depends on the registry being
reachable.

Typical usage::

    resolver = VersionResolver()
    versions = await resolver.resolve_many(["react", "react-dom"])
    # {"react": "^19.1.0", "react-dom": "^19.1.0"}
"""

from __future__ import annotations

import asyncio

import httpx

from kickstart.config import Settings

FALLBACK_VERSION = "latest"


class VersionResolver:
    """Resolves npm package names to caret version ranges.

    When *enabled* is false no request is made and every package resolves to
    ``"latest"``.
    """

    def __init__(
        self,
        registry_url: str = "https://registry.npmjs.org",
        timeout: float = 10.0,
        enabled: bool = True,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "VersionResolver":
        return cls(
            registry_url=settings.registry_url,
            timeout=settings.registry_timeout,
            enabled=settings.resolve_versions,
        )

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with the registry URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.registry_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def latest_version(self, package: str, client: httpx.AsyncClient | None = None) -> str:
        """Return the bare latest version of *package* (e.g. ``"19.1.0"``).

        Returns ``"latest"`` when the lookup fails for any reason.
        """
        if not self.enabled:
            return FALLBACK_VERSION
        if client is None:
            async with self._client() as own_client:
                return await self._fetch(own_client, package)
        return await self._fetch(client, package)

    async def resolve(self, package: str) -> str:
        """Return a dependency specifier for *package*: ``"^x.y.z"`` or ``"latest"``."""
        return _as_range(await self.latest_version(package))

    async def resolve_many(self, packages: list[str]) -> dict[str, str]:
        """Resolve several packages concurrently over a single connection pool."""
        unique = list(dict.fromkeys(packages))
        if not self.enabled or not unique:
            return {name: FALLBACK_VERSION for name in unique}

        async with self._client() as client:
            versions = await asyncio.gather(
                *(self._fetch(client, name) for name in unique)
            )
        return {name: _as_range(version) for name, version in zip(unique, versions)}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch(self, client: httpx.AsyncClient, package: str) -> str:
        try:
            response = await client.get(f"/{package}/latest")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError):
            return FALLBACK_VERSION

        version = data.get("version") if isinstance(data, dict) else None
        if not isinstance(version, str) or not version:
            return FALLBACK_VERSION
        return version


def _as_range(version: str) -> str:
    if version == FALLBACK_VERSION:
        return version
    return f"^{version}"
