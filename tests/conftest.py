from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Union

import pytest

from realtime_news.errors import TransportError
from realtime_news.sources import SourceResolver
from realtime_news.types import Article, Category, FetchResult, JsonItem


SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Search results</title>
    <link>https://news.example.com/</link>
    <item>
      <title>Budget session opens</title>
      <link>https://www.example.com/budget</link>
      <description>&lt;p&gt;Finance &lt;b&gt;minister&lt;/b&gt; speaks &lt;img src="https://img.example.com/b.jpg"&gt;&lt;/p&gt;</description>
      <pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>
    </item>
    <item>
      <title>New housing scheme</title>
      <link>https://news.example.org/scheme</link>
      <media:content url="https://img.example.org/s.jpg" medium="image" />
      <pubDate>Tue, 02 Jan 2024 08:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

Response = Union[Any, Exception, Callable[[str], Any]]


class FakeHttp:
    """Stands in for HttpClient. Unknown URLs answer like a 404."""

    def __init__(
        self,
        json_responses: Optional[dict[str, Response]] = None,
        bytes_responses: Optional[dict[str, Response]] = None,
        json_default: Optional[Response] = None,
        bytes_default: Optional[Response] = None,
    ) -> None:
        self.json_responses = json_responses or {}
        self.bytes_responses = bytes_responses or {}
        self.json_default = json_default
        self.bytes_default = bytes_default
        self.json_calls: list[str] = []
        self.bytes_calls: list[str] = []

    @staticmethod
    def _answer(url: str, response: Response) -> Any:
        if response is None:
            raise TransportError("HTTP 404", url=url, status=404)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(url)
        return response

    async def get_json(self, url: str) -> Any:
        self.json_calls.append(url)
        return self._answer(url, self.json_responses.get(url, self.json_default))

    async def get_bytes(self, url: str, accept: str = "*/*") -> bytes:
        self.bytes_calls.append(url)
        return self._answer(url, self.bytes_responses.get(url, self.bytes_default))


def server_error(url: str) -> Any:
    raise TransportError("HTTP 500", url=url, status=500)


class FakeFetcher:
    """Fetcher keyed by source URL; unknown URLs yield an empty failed result."""

    def __init__(self, results: Optional[dict[str, list[dict[str, Any]]]] = None) -> None:
        self.results = results or {}
        self.calls: list[str] = []

    async def fetch(self, source_url: str) -> FetchResult:
        self.calls.append(source_url)
        await asyncio.sleep(0)
        items = self.results.get(source_url)
        if items is None:
            return FetchResult(source_url=source_url, errors=("json-proxy: HTTP 500", "xml-relay: HTTP 500"))
        return FetchResult(source_url=source_url, items=tuple(JsonItem(i) for i in items), transport="json-proxy")


def json_item(title: str, link: str, pub_date: str = "2024-01-01T00:00:00Z", **extra: Any) -> dict[str, Any]:
    return {"title": title, "link": link, "pubDate": pub_date, **extra}


def make_article(title: str = "", link: str = "", pub_date: str = "", **kw: Any) -> Article:
    fields: dict[str, Any] = {
        "content": "",
        "description": "",
        "source": "",
        "image": "",
    }
    fields.update(kw)
    return Article(title=title, link=link, pub_date=pub_date, **fields)


@pytest.fixture
def resolver() -> SourceResolver:
    return SourceResolver()


@pytest.fixture
def categories() -> list[Category]:
    return [
        Category(id="editorial", label="Editorials", queries=("editorial OR opinion",)),
        Category(id="pib", label="PIB", queries=("PIB", "Press Information Bureau")),
    ]
