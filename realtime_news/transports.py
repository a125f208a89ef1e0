"""Feed transports and the two-tier fetch strategy.

The primary transport asks a JSON-converting proxy (rss2json style) for the
feed; the secondary one pulls the raw XML through a relay and parses it with
feedparser. ``FetchStrategy.fetch`` never raises for network or payload
problems: it reports them in the returned ``FetchResult``.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Any, Protocol
from urllib.parse import quote

import feedparser

from realtime_news.errors import ParseError, TransportError
from realtime_news.types import FetchResult, JsonItem, RawItem, XmlItem

logger = logging.getLogger(__name__)


class FeedHttp(Protocol):
    async def get_bytes(self, url: str, accept: str = "*/*") -> bytes: ...

    async def get_json(self, url: str) -> Any: ...


class Transport(Protocol):
    name: str

    async def fetch(self, source_url: str) -> tuple[RawItem, ...]: ...


class JsonProxyTransport:
    name = "json-proxy"

    def __init__(self, http: FeedHttp, base_url: str) -> None:
        self._http = http
        self._base = base_url

    def request_url(self, source_url: str) -> str:
        return f"{self._base}?rss_url={quote(source_url, safe='')}"

    async def fetch(self, source_url: str) -> tuple[RawItem, ...]:
        url = self.request_url(source_url)
        payload = await self._http.get_json(url)
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise TransportError("payload has no items array", url=url)
        return tuple(JsonItem(it) for it in items if isinstance(it, dict))


class XmlRelayTransport:
    name = "xml-relay"

    def __init__(self, http: FeedHttp, base_url: str) -> None:
        self._http = http
        self._base = base_url

    def request_url(self, source_url: str) -> str:
        return f"{self._base}?url={quote(source_url, safe='')}"

    async def fetch(self, source_url: str) -> tuple[RawItem, ...]:
        url = self.request_url(source_url)
        body = await self._http.get_bytes(url, accept="application/rss+xml, application/xml;q=0.9, */*;q=0.8")
        try:
            entries = parse_feed_entries(body)
        except ParseError as exc:
            raise TransportError(str(exc), url=url) from exc
        return tuple(XmlItem(e) for e in entries)


def parse_feed_entries(body: bytes) -> list[Any]:
    """Parse raw RSS/Atom bytes into feedparser entries.

    Raises ParseError when the body is not recognisable as a feed at all.
    A feed with recoverable problems is accepted and logged.
    """

    feed = feedparser.parse(io.BytesIO(body))
    entries = list(feed.get("entries") or [])
    if not entries and not feed.get("version"):
        raise ParseError(f"not a feed: {feed.get('bozo_exception') or 'unrecognised document'}")
    if feed.get("bozo"):
        logger.warning("Feed parsing warning: %s", feed.get("bozo_exception"))
    return entries


class FetchStrategy:
    """Try each transport in order, stop at the first that succeeds."""

    def __init__(self, primary: Transport, secondary: Transport) -> None:
        self._transports = (primary, secondary)

    async def fetch(self, source_url: str) -> FetchResult:
        errors: list[str] = []
        for transport in self._transports:
            try:
                items = await transport.fetch(source_url)
            except asyncio.CancelledError:
                raise
            except TransportError as exc:
                errors.append(f"{transport.name}: {exc}")
                logger.warning("%s failed for %s: %s", transport.name, source_url, exc)
                continue
            except Exception as exc:
                errors.append(f"{transport.name}: {type(exc).__name__}: {exc}")
                logger.exception("%s raised unexpectedly for %s", transport.name, source_url)
                continue

            logger.debug("%s returned %d items for %s", transport.name, len(items), source_url)
            return FetchResult(source_url=source_url, items=items, transport=transport.name, errors=tuple(errors))

        return FetchResult(source_url=source_url, errors=tuple(errors))
