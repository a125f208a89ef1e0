from __future__ import annotations

import asyncio
import json
from typing import Any

import aiohttp

from realtime_news.errors import TransportError


class HttpClient:
    """Single-attempt GETs bounded by a semaphore and a per-request timeout."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        semaphore: asyncio.Semaphore,
        user_agent: str,
        timeout_seconds: float,
    ) -> None:
        self._session = session
        self._sem = semaphore
        self._ua = user_agent
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def get_bytes(self, url: str, accept: str = "*/*") -> bytes:
        headers = {
            "User-Agent": self._ua,
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.9",
        }
        async with self._sem:
            try:
                async with self._session.get(url, headers=headers, timeout=self._timeout) as r:
                    if not 200 <= r.status < 300:
                        raise TransportError(f"HTTP {r.status}", url=url, status=r.status)
                    return await r.read()
            except asyncio.TimeoutError:
                raise TransportError("timed out", url=url) from None
            except aiohttp.ClientError as exc:
                raise TransportError(f"{type(exc).__name__}: {exc}", url=url) from exc

    async def get_json(self, url: str) -> Any:
        body = await self.get_bytes(url, accept="application/json")
        try:
            return json.loads(body)
        except ValueError as exc:
            raise TransportError(f"invalid JSON: {exc}", url=url) from exc
