from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from realtime_news.config import Config, load_config
from realtime_news.errors import ConfigError
from realtime_news.pipeline import open_aggregator, run_forever
from realtime_news.storage import write_snapshot
from realtime_news.store import SectionStore
from realtime_news.types import Article
from realtime_news.view import select_articles

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def format_article(a: Article) -> str:
    lines = [f"[{a.section}] {a.title or 'Untitled'}", f"    {a.source or 'Source'} | {a.pub_date}"]
    if a.link:
        lines.append(f"    {a.link}")
    return "\n".join(lines)


def print_listing(articles: Sequence[Article], limit: Optional[int]) -> None:
    shown = list(articles)[:limit] if limit is not None else list(articles)
    if not shown:
        print("No stories matched.")
        return
    for a in shown:
        print(format_article(a))
    print(f"{len(shown)} of {len(articles)} stories")


async def _refresh(cfg: Config, args: argparse.Namespace) -> int:
    store = SectionStore()
    async with open_aggregator(cfg, store) as aggregator:
        if args.section and args.section != cfg.all_section_id:
            if args.section not in {c.id for c in aggregator.categories}:
                print(f"Unknown section: {args.section}", file=sys.stderr)
                return 2
            await aggregator.refresh_one(args.section)
        else:
            await aggregator.refresh_all()

    if args.output:
        write_snapshot(args.output, store.snapshot())
        logger.info("Snapshot written to %s", args.output)

    print_listing(select_articles(store, args.section, args.search, all_section_id=cfg.all_section_id), args.limit)
    return 0


async def _watch(cfg: Config, args: argparse.Namespace) -> int:
    store = SectionStore()

    def _on_refresh(sections: dict) -> None:
        if args.output:
            write_snapshot(args.output, sections)
        total = sum(len(v) for v in sections.values())
        print(f"Refreshed {len(sections)} sections, {total} stories")

    async with open_aggregator(cfg, store) as aggregator:
        await run_forever(
            aggregator,
            cfg.refresh_interval_seconds,
            iterations=args.iterations,
            on_refresh=_on_refresh,
        )
    return 0


def _positive_int(text: str) -> int:
    try:
        n = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {text!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="realtime-news", description="Fetch and aggregate news search feeds")
    parser.add_argument("--config", "-c", default=None, help="YAML config file (merged over built-in defaults)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p_refresh = sub.add_parser("refresh", help="Refresh once and list stories")
    p_refresh.add_argument("--section", "-s", default=None, help="Refresh only this category id")
    p_refresh.add_argument("--search", "-q", default="", help="Case-insensitive filter over title/description/source")
    p_refresh.add_argument("--output", "-o", default=None, help="Write a snapshot (.csv or .json)")
    p_refresh.add_argument("--limit", "-n", type=_positive_int, default=None, help="Show at most N stories")

    p_watch = sub.add_parser("watch", help="Refresh on the configured interval")
    p_watch.add_argument("--iterations", type=_positive_int, default=None, help="Stop after N refreshes")
    p_watch.add_argument("--output", "-o", default=None, help="Rewrite a snapshot after every refresh")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (ConfigError, OSError) as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    setup_logging("DEBUG" if args.verbose else cfg.log_level)

    handler = _refresh if args.command == "refresh" else _watch
    try:
        return asyncio.run(handler(cfg, args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
