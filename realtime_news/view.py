from __future__ import annotations

from typing import Iterable, Optional

from realtime_news.pipeline import rank_newest_first
from realtime_news.store import SectionStore
from realtime_news.types import Article


def matches(article: Article, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return True
    hay = f"{article.title} {article.description} {article.source}".lower()
    return q in hay


def filter_articles(articles: Iterable[Article], query: str) -> list[Article]:
    return [a for a in articles if matches(a, query)]


def select_articles(
    store: SectionStore,
    section_id: Optional[str] = None,
    query: str = "",
    *,
    all_section_id: str = "latest",
) -> list[Article]:
    """Articles a renderer should show for a section tab and a search box.

    The "all" section (or no section) lists every category, newest first.
    """

    if not section_id or section_id == all_section_id:
        pool: list[Article] = [a for cid in store.category_ids() for a in store.get(cid)]
        return filter_articles(rank_newest_first(pool), query)
    return filter_articles(store.get(section_id), query)
