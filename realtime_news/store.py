from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from realtime_news.types import Article

logger = logging.getLogger(__name__)


class SectionStore:
    """Latest articles per category.

    Each slice carries the logical timestamp of the refresh that produced it.
    Writes build the replacement mapping first and then swap it in with a
    single assignment, so readers see either the old or the new mapping.
    A write older than what is already stored is discarded.
    """

    def __init__(self) -> None:
        self._sections: Mapping[str, tuple[Article, ...]] = MappingProxyType({})
        self._versions: Mapping[str, int] = MappingProxyType({})

    def get(self, category_id: str) -> tuple[Article, ...]:
        return self._sections.get(category_id, ())

    def snapshot(self) -> Mapping[str, tuple[Article, ...]]:
        return self._sections

    def version(self, category_id: str) -> int:
        return self._versions.get(category_id, 0)

    def category_ids(self) -> list[str]:
        return list(self._sections.keys())

    def replace_section(self, category_id: str, articles: Iterable[Article], version: int) -> bool:
        if version <= self.version(category_id):
            logger.debug(
                "Discarding stale slice for %s (version %d <= %d)", category_id, version, self.version(category_id)
            )
            return False

        sections = dict(self._sections)
        versions = dict(self._versions)
        sections[category_id] = tuple(articles)
        versions[category_id] = version
        self._sections, self._versions = MappingProxyType(sections), MappingProxyType(versions)
        return True

    def replace_all(
        self, slices: Mapping[str, Iterable[Article]], version: int, keep: Iterable[str] = ()
    ) -> set[str]:
        """Replace the whole mapping; returns the category ids actually written.

        Categories missing from ``slices`` are dropped unless they are listed
        in ``keep`` or a newer write already holds them.
        """

        sections: dict[str, tuple[Article, ...]] = {}
        versions: dict[str, int] = {}
        written: set[str] = set()
        keep = set(keep)

        for cid, articles in slices.items():
            if version > self.version(cid):
                sections[cid] = tuple(articles)
                versions[cid] = version
                written.add(cid)
            else:
                logger.debug("Keeping newer slice for %s over full refresh %d", cid, version)
                sections[cid] = self.get(cid)
                versions[cid] = self.version(cid)

        for cid in self._sections:
            if cid not in sections and (cid in keep or self.version(cid) >= version):
                sections[cid] = self.get(cid)
                versions[cid] = self.version(cid)

        self._sections, self._versions = MappingProxyType(sections), MappingProxyType(versions)
        return written
