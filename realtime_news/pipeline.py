from __future__ import annotations

import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Iterable, Optional, Protocol, Sequence

import aiohttp

from realtime_news.config import Config
from realtime_news.dedup import dedupe_by_link_or_title
from realtime_news.http import HttpClient
from realtime_news.normalize import DEFAULT_DESCRIPTION_MAX_CHARS, normalize, parse_pub_date
from realtime_news.sources import SourceResolver
from realtime_news.store import SectionStore
from realtime_news.transports import FetchStrategy, JsonProxyTransport, XmlRelayTransport
from realtime_news.types import Article, Category, FetchResult

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class Fetcher(Protocol):
    async def fetch(self, source_url: str) -> FetchResult: ...


def rank_newest_first(articles: Iterable[Article]) -> list[Article]:
    """Sort by publication date, newest first.

    Articles whose date cannot be parsed go after every dated article.
    The sort is stable, so ties keep their input order.
    """

    def key(a: Article) -> tuple[bool, datetime]:
        dt = parse_pub_date(a.pub_date)
        return (dt is not None, dt or _OLDEST)

    return sorted(articles, key=key, reverse=True)


def aggregate_section(
    category: Category,
    results: Sequence[FetchResult],
    *,
    max_items: int,
    description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
) -> tuple[Article, ...]:
    articles: list[Article] = []
    for r in results:
        for raw in r.items:
            try:
                a = normalize(raw, description_max_chars=description_max_chars)
            except Exception:
                logger.exception("Skipping item from %s that could not be normalized", r.source_url)
                continue
            articles.append(replace(a, section=category.id))

    unique = dedupe_by_link_or_title(articles)
    return tuple(rank_newest_first(unique)[:max_items])


class Aggregator:
    def __init__(
        self,
        fetcher: Fetcher,
        resolver: SourceResolver,
        categories: Sequence[Category],
        store: SectionStore,
        *,
        max_items: int = 20,
        description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
    ) -> None:
        self._fetcher = fetcher
        self._resolver = resolver
        self._categories = {c.id: c for c in categories}
        self._store = store
        self._max_items = max_items
        self._description_max_chars = description_max_chars
        self._clock = itertools.count(1)
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def store(self) -> SectionStore:
        return self._store

    @property
    def categories(self) -> list[Category]:
        return list(self._categories.values())

    async def _fetch_query(self, query: str) -> FetchResult:
        url = self._resolver.resolve(query)
        try:
            return await self._fetcher.fetch(url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Fetch for query %r raised", query)
            return FetchResult(source_url=url, errors=(f"{type(exc).__name__}: {exc}",))

    async def _collect(self, category: Category) -> tuple[Article, ...]:
        results = await asyncio.gather(*(self._fetch_query(q) for q in category.queries))

        failed = [r for r in results if not r.ok]
        for r in failed:
            logger.warning("No items for %s from %s: %s", category.id, r.source_url, "; ".join(r.errors))

        articles = aggregate_section(
            category,
            results,
            max_items=self._max_items,
            description_max_chars=self._description_max_chars,
        )
        logger.info(
            "Section %s: %d articles from %d/%d queries",
            category.id,
            len(articles),
            len(results) - len(failed),
            len(results),
        )
        return articles

    def _start(self, category: Category) -> asyncio.Task:
        # a newer refresh of a category cancels the older in-flight one
        previous = self._inflight.get(category.id)
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(self._collect(category))
        self._inflight[category.id] = task
        return task

    async def refresh_one(self, category_id: str) -> tuple[Article, ...]:
        """Refresh a single category and commit its slice.

        A newer refresh of the same category (targeted or full) cancels this
        one; the superseded call returns whatever the store holds for the
        category at that point.
        """

        category = self._categories[category_id]
        ticket = next(self._clock)
        task = self._start(category)
        try:
            articles = await task
        except asyncio.CancelledError:
            if self._inflight.get(category_id) is task:
                raise
            logger.debug("Refresh %d of %s superseded", ticket, category_id)
            return self._store.get(category_id)
        finally:
            if self._inflight.get(category_id) is task:
                del self._inflight[category_id]

        if not self._store.replace_section(category_id, articles, ticket):
            return self._store.get(category_id)
        return articles

    async def refresh_all(self) -> dict[str, tuple[Article, ...]]:
        """Refresh every category concurrently and commit them in one swap.

        A category whose fetch is superseded by a newer targeted refresh
        keeps its stored slice.
        """

        ticket = next(self._clock)
        tasks = {c.id: self._start(c) for c in self._categories.values()}
        try:
            await asyncio.wait(tasks.values())
        except asyncio.CancelledError:
            for cid, task in tasks.items():
                if self._inflight.get(cid) is task:
                    task.cancel()
            raise
        finally:
            for cid, task in tasks.items():
                if self._inflight.get(cid) is task:
                    del self._inflight[cid]

        fresh: dict[str, tuple[Article, ...]] = {}
        kept: set[str] = set()
        for cid, task in tasks.items():
            if task.cancelled():
                logger.debug("Full refresh %d: %s superseded", ticket, cid)
                kept.add(cid)
            elif task.exception() is not None:
                logger.error("Full refresh %d: %s failed", ticket, cid, exc_info=task.exception())
                kept.add(cid)
            else:
                fresh[cid] = task.result()

        written = self._store.replace_all(fresh, ticket, keep=kept)
        logger.info(
            "Full refresh %d: %d articles across %d sections",
            ticket,
            sum(len(s) for s in fresh.values()),
            len(written),
        )
        return dict(self._store.snapshot())


async def run_forever(
    aggregator: Aggregator,
    interval_seconds: float,
    *,
    iterations: Optional[int] = None,
    on_refresh: Optional[Callable[[dict[str, tuple[Article, ...]]], Awaitable[None] | None]] = None,
) -> None:
    done = 0
    while iterations is None or done < iterations:
        try:
            sections = await aggregator.refresh_all()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Refresh failed")
        else:
            if on_refresh is not None:
                res = on_refresh(sections)
                if asyncio.iscoroutine(res):
                    await res
        done += 1
        if iterations is not None and done >= iterations:
            break
        await asyncio.sleep(interval_seconds)


def build_aggregator(cfg: Config, session: aiohttp.ClientSession, store: SectionStore | None = None) -> Aggregator:
    client = HttpClient(
        session=session,
        semaphore=asyncio.Semaphore(cfg.max_in_flight_requests),
        user_agent=cfg.user_agent,
        timeout_seconds=cfg.timeout_seconds,
    )
    strategy = FetchStrategy(
        primary=JsonProxyTransport(client, cfg.json_proxy_base),
        secondary=XmlRelayTransport(client, cfg.relay_base),
    )
    return Aggregator(
        fetcher=strategy,
        resolver=SourceResolver.from_config(cfg.feed),
        categories=cfg.categories,
        store=store or SectionStore(),
        max_items=cfg.max_items_per_section,
        description_max_chars=cfg.description_max_chars,
    )


@asynccontextmanager
async def open_aggregator(cfg: Config, store: SectionStore | None = None) -> AsyncIterator[Aggregator]:
    connector = aiohttp.TCPConnector(limit=cfg.max_connections)
    async with aiohttp.ClientSession(connector=connector) as session:
        yield build_aggregator(cfg, session, store)
