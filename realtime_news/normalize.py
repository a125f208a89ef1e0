from __future__ import annotations

import re
import warnings
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from dateutil import parser as dateparser
from dateutil import tz

from realtime_news.types import Article, JsonItem, RawItem, XmlItem

DEFAULT_DESCRIPTION_MAX_CHARS = 1000

_WS_RE = re.compile(r"\s+")

_TZINFOS = {
    "EST": tz.tzoffset("EST", -5 * 3600),
    "EDT": tz.tzoffset("EDT", -4 * 3600),
    "CST": tz.tzoffset("CST", -6 * 3600),
    "CDT": tz.tzoffset("CDT", -5 * 3600),
    "MST": tz.tzoffset("MST", -7 * 3600),
    "MDT": tz.tzoffset("MDT", -6 * 3600),
    "PST": tz.tzoffset("PST", -8 * 3600),
    "PDT": tz.tzoffset("PDT", -7 * 3600),
    "IST": tz.tzoffset("IST", 5 * 3600 + 1800),
}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _first(*values: Any) -> str:
    for v in values:
        s = _text(v)
        if s.strip():
            return s
    return ""


def _now_iso(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _soup(html: str) -> BeautifulSoup:
    # descriptions are often a bare URL or a short sentence; bs4 warns about those
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        return BeautifulSoup(html, "lxml")


def strip_html(html: str) -> str:
    """Drop tags and entities, collapse whitespace runs, trim."""

    if not html:
        return ""
    text = _soup(html).get_text(" ")
    return _WS_RE.sub(" ", text).strip()


def extract_image(html: str) -> str:
    """First ``src`` of an ``<img>`` tag in an HTML fragment, or ``""``."""

    if not html or "<img" not in html.lower():
        return ""
    img = _soup(html).find("img", src=True)
    if img is None:
        return ""
    return str(img.get("src") or "").strip()


def extract_domain(link: str) -> str:
    try:
        host = urlparse(link or "").hostname
    except ValueError:
        return ""
    if not host:
        return ""
    return host.removeprefix("www.")


def parse_pub_date(value: str | None) -> Optional[datetime]:
    """Parse an RFC-822 or ISO-8601 date to an aware UTC datetime, None if unparsable."""

    if not value or not value.strip():
        return None
    try:
        dt = dateparser.parse(value, tzinfos=_TZINFOS)
        if dt is None:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        # offsets next to year 1 or 9999 push the UTC value out of range
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _describe(text: str, max_chars: int) -> str:
    return strip_html(text)[:max_chars]


def normalize_json_item(
    data: Mapping[str, Any],
    *,
    description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
    now: Optional[datetime] = None,
) -> Article:
    link = _text(data.get("link")).strip()
    content = _first(data.get("content"), data.get("content_encoded"), data.get("description"))
    description = _first(data.get("description"), data.get("contentSnippet"), content)

    enclosure = data.get("enclosure")
    enclosure_link = enclosure.get("link") if isinstance(enclosure, dict) else None
    image = _first(data.get("thumbnail"), enclosure_link, extract_image(content))

    source_meta = data.get("source")
    source_title = source_meta.get("title") if isinstance(source_meta, dict) else None
    source = _first(source_title, data.get("author")) or extract_domain(link)

    return Article(
        title=strip_html(_text(data.get("title"))),
        link=link,
        content=content,
        description=_describe(description, description_max_chars),
        pub_date=_first(data.get("pubDate"), data.get("isoDate")) or _now_iso(now),
        source=source.strip(),
        image=image.strip(),
    )


def _media_url(entry: Mapping[str, Any]) -> str:
    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            url = _first(media.get("url"), media.get("src")) if isinstance(media, Mapping) else ""
            if url:
                return url
    for enc in entry.get("enclosures") or []:
        url = _first(enc.get("href"), enc.get("url")) if isinstance(enc, Mapping) else ""
        if url:
            return url
    return ""


def normalize_xml_item(
    entry: Mapping[str, Any],
    *,
    description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
    now: Optional[datetime] = None,
) -> Article:
    link = _text(entry.get("link")).strip()
    description = _first(entry.get("summary"), entry.get("description"))
    image = _media_url(entry) or extract_image(description)

    return Article(
        title=strip_html(_text(entry.get("title"))),
        link=link,
        content=description,
        description=_describe(description, description_max_chars),
        pub_date=_first(entry.get("published"), entry.get("updated")) or _now_iso(now),
        source=extract_domain(link),
        image=image.strip(),
    )


def normalize(
    raw: RawItem,
    *,
    description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
    now: Optional[datetime] = None,
) -> Article:
    if isinstance(raw, JsonItem):
        return normalize_json_item(raw.data, description_max_chars=description_max_chars, now=now)
    if isinstance(raw, XmlItem):
        return normalize_xml_item(raw.entry, description_max_chars=description_max_chars, now=now)
    raise TypeError(f"unsupported raw item {type(raw).__name__}")
