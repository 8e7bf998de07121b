"""npm registry client for latest published versions."""

from __future__ import annotations

from typing import Dict, Iterable, Optional
from urllib.parse import quote

import httpx

from ..concurrency import ConcurrentFetchCoordinator
from ..errors import RegistryError
from ..logging import get_logger

NPM_REGISTRY_URL = "https://registry.npmjs.org"
ABBREVIATED_METADATA_ACCEPT = "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
REQUEST_TIMEOUT = 5.0
MAX_CONCURRENCY = 5


class RegistryClient:
    """Looks up ``dist-tags.latest`` using abbreviated package metadata.

    The client owns an :class:`httpx.AsyncClient`; close it with
    :meth:`aclose` or use the client as an async context manager.
    """

    def __init__(
        self,
        *,
        base_url: str = NPM_REGISTRY_URL,
        timeout: float = REQUEST_TIMEOUT,
        concurrency: int = MAX_CONCURRENCY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.logger = get_logger("sources.registry")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": ABBREVIATED_METADATA_ACCEPT},
            transport=transport,
        )
        self._coordinator: ConcurrentFetchCoordinator[str, Optional[str]] = ConcurrentFetchCoordinator(
            limit=concurrency, timeout=timeout
        )

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_latest_version(self, package: str) -> Optional[str]:
        """Return the latest version of ``package`` or ``None`` when it does not exist."""
        path = "/" + quote(package, safe="")
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            raise RegistryError(f"npm registry request for {package!r} failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.is_error:
            raise RegistryError(
                f"npm registry error for {package!r}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RegistryError(
                f"npm registry returned invalid JSON for {package!r}",
                status_code=response.status_code,
            ) from exc

        tags = payload.get("dist-tags") if isinstance(payload, dict) else None
        latest = tags.get("latest") if isinstance(tags, dict) else None
        return latest if isinstance(latest, str) else None

    async def fetch_latest_versions(self, packages: Iterable[str]) -> Dict[str, Optional[str]]:
        """Look up many packages; failures are logged and reported as ``None``."""
        return await self._coordinator.run(packages, self.fetch_latest_version)


__all__ = [
    "ABBREVIATED_METADATA_ACCEPT",
    "MAX_CONCURRENCY",
    "NPM_REGISTRY_URL",
    "REQUEST_TIMEOUT",
    "RegistryClient",
]
