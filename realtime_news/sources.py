from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlencode


GOOGLE_NEWS_SEARCH = "https://news.google.com/rss/search"


def google_news_rss(
    query: str,
    *,
    base: str = GOOGLE_NEWS_SEARCH,
    hl: str = "en-IN",
    gl: str = "IN",
    ceid: str = "IN:en",
) -> str:
    """Build a search feed URL for a free-text query."""

    params = urlencode({"q": query, "hl": hl, "gl": gl, "ceid": ceid}, quote_via=quote)
    return f"{base}?{params}"


@dataclass(frozen=True)
class SourceResolver:
    base: str = GOOGLE_NEWS_SEARCH
    hl: str = "en-IN"
    gl: str = "IN"
    ceid: str = "IN:en"

    @classmethod
    def from_config(cls, feed_cfg: dict[str, str]) -> "SourceResolver":
        return cls(
            base=feed_cfg.get("search_base", GOOGLE_NEWS_SEARCH),
            hl=feed_cfg.get("hl", "en-IN"),
            gl=feed_cfg.get("gl", "IN"),
            ceid=feed_cfg.get("ceid", "IN:en"),
        )

    def resolve(self, query: str) -> str:
        return google_news_rss(query, base=self.base, hl=self.hl, gl=self.gl, ceid=self.ceid)
