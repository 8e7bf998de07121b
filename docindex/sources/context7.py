"""HTTP client for the Context7 documentation API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..credentials import API_KEY_ENV, resolve_api_key
from ..logging import get_logger

CONTEXT7_BASE_URL = "https://context7.com/api/v1"
DEFAULT_TOKENS = 10000
REQUEST_TIMEOUT = 30.0

_REDIRECT_STATUSES = {301, 302, 303, 307, 308}
_REDIRECT_MARKER = "redirected"


@dataclass
class DocsResult:
    """Outcome of a docs query; failures carry an error message and category."""

    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    category: Optional[str] = None


@dataclass
class LibraryMatch:
    id: str
    name: str


class Context7Client:
    """Fetches plain-text documentation snippets for a library id.

    Queries never raise for HTTP or transport failures; they return a failed
    :class:`DocsResult` with one of the categories ``auth``, ``network``,
    ``rate_limit``, ``redirect``, ``not_found`` or ``unknown``. Library ids that
    the service reports as moved are resolved once through :meth:`search_library`
    and remembered in ``redirect_cache``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: str = CONTEXT7_BASE_URL,
        tokens: int = DEFAULT_TOKENS,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        redirect_cache: Optional[Dict[str, str]] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else resolve_api_key()
        self.tokens = tokens
        self.logger = get_logger("sources.context7")
        self.redirect_cache: Dict[str, str] = redirect_cache if redirect_cache is not None else {}
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
            follow_redirects=False,
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def __aenter__(self) -> "Context7Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def reset(self) -> None:
        """Forget every resolved redirect."""
        self.redirect_cache.clear()

    async def query_docs(self, library_id: str, query: str) -> DocsResult:
        if not self.available:
            return DocsResult(
                success=False,
                error=f"{API_KEY_ENV} not set and no stored key (run `docindex auth`)",
                category="auth",
            )

        target = self.redirect_cache.get(library_id, library_id)
        result = await self._fetch(target, query)
        if result.category != "redirect":
            return result

        resolved = await self._resolve_redirect(library_id)
        if resolved is None or resolved == target:
            slug = library_id.rstrip("/").split("/")[-1]
            return DocsResult(
                success=False,
                error=f"Library ID changed. Try: docindex add {slug} --force",
                category="redirect",
            )
        self.logger.debug("Library %s moved to %s", library_id, resolved)
        retried = await self._fetch(resolved, query)
        if not retried.success:
            retried.error = f"Redirect resolved to {resolved} but query failed: {retried.error}"
        return retried

    async def search_library(self, name: str) -> Optional[LibraryMatch]:
        """Return the best search hit for ``name``, or ``None``."""
        matches = await self._search(name)
        return matches[0] if matches else None

    async def _search(self, name: str) -> List[LibraryMatch]:
        if not self.available:
            return []
        try:
            response = await self._client.get("/search", params={"query": name})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.warning("Library search for %s failed: %s", name, exc)
            return []
        results = payload.get("results") if isinstance(payload, dict) else payload
        matches: List[LibraryMatch] = []
        for item in results or []:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str):
                continue
            label = item.get("title") or item.get("name") or item["id"]
            matches.append(LibraryMatch(id=item["id"], name=str(label)))
        return matches

    async def _resolve_redirect(self, library_id: str) -> Optional[str]:
        if library_id in self.redirect_cache:
            return self.redirect_cache[library_id]
        parts = [part for part in library_id.split("/") if part]
        name = parts[-1] if parts else library_id
        matches = await self._search(name)
        if not matches:
            return None
        exact = next((match for match in matches if match.id.lower() == library_id.lower()), None)
        chosen = (exact or matches[0]).id
        self.redirect_cache[library_id] = chosen
        return chosen

    async def _fetch(self, library_id: str, query: str) -> DocsResult:
        params: Dict[str, Any] = {"type": "txt", "topic": query, "tokens": self.tokens}
        try:
            response = await self._client.get("/" + library_id.lstrip("/"), params=params)
        except httpx.TimeoutException as exc:
            return DocsResult(success=False, error=f"Request timed out: {exc}", category="network")
        except httpx.HTTPError as exc:
            return DocsResult(success=False, error=f"Request failed: {exc}", category="network")

        if response.status_code in _REDIRECT_STATUSES or _REDIRECT_MARKER in _error_text(response):
            return DocsResult(success=False, error="library_redirected", category="redirect")
        if response.status_code in (401, 403):
            return DocsResult(success=False, error="Invalid or unauthorized API key", category="auth")
        if response.status_code == 404:
            return DocsResult(success=False, error="No documentation found", category="not_found")
        if response.status_code == 429:
            return DocsResult(success=False, error="Rate limit exceeded", category="rate_limit")
        if response.is_error:
            category = "network" if response.status_code >= 500 else "unknown"
            return DocsResult(success=False, error=f"HTTP {response.status_code}", category=category)

        content = response.text
        if not content.strip():
            return DocsResult(success=False, error="No documentation found", category="not_found")
        return DocsResult(success=True, content=content)


def _error_text(response: httpx.Response) -> str:
    if response.is_success:
        return ""
    return response.text.lower()


__all__ = [
    "API_KEY_ENV",
    "CONTEXT7_BASE_URL",
    "Context7Client",
    "DocsResult",
    "LibraryMatch",
]
