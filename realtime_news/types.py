from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class Article:
    title: str
    link: str
    content: str
    description: str
    pub_date: str
    source: str
    image: str

    # assigned by the aggregator
    section: str = ""


@dataclass(frozen=True)
class Category:
    id: str
    label: str
    queries: tuple[str, ...]


@dataclass(frozen=True)
class JsonItem:
    """One element of the ``items`` array returned by the JSON proxy."""

    data: Mapping[str, Any]


@dataclass(frozen=True)
class XmlItem:
    """One ``<item>``/``<entry>`` of a raw feed, as parsed by feedparser."""

    entry: Mapping[str, Any]


RawItem = Union[JsonItem, XmlItem]


@dataclass(frozen=True)
class FetchResult:
    source_url: str
    items: tuple[RawItem, ...] = ()
    transport: Optional[str] = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.transport is not None
