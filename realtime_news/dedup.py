from __future__ import annotations

from typing import Iterable

from realtime_news.types import Article


def dedup_key(article: Article) -> str:
    """Identity of an article within a section: its link, else its title.

    Surrounding whitespace is ignored; comparison is case-sensitive.
    """

    return article.link.strip() or article.title.strip()


def dedupe_by_link_or_title(articles: Iterable[Article]) -> list[Article]:
    seen: set[str] = set()
    out: list[Article] = []
    for a in articles:
        key = dedup_key(a)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(a)
    return out
