"""Shared aiohttp plumbing for the network adapters."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from stxer.config import HTTP_TIMEOUT_SEC
from stxer.errors import NetworkError
from stxer.logger import log_error


class HTTPAdapter:
    """Base class holding the API root, timeout and an optional shared session."""

    module = "http_adapter"

    def __init__(
        self,
        api_url: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = HTTP_TIMEOUT_SEC,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self.session is not None:
            yield self.session
        else:
            async with aiohttp.ClientSession() as session:
                yield session

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.api_url}{path}"
        try:
            async with self._session_scope() as session:
                async with session.get(url, params=params, timeout=self.timeout) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        raise NetworkError(f"GET {url} returned {resp.status}: {text}")
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            log_error(self.module, str(exc) or type(exc).__name__, event="http_get", url=url)
            raise NetworkError(f"GET {url} failed: {exc!r}") from exc
