from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Iterable, Mapping

import pandas as pd

from realtime_news.normalize import parse_pub_date
from realtime_news.types import Article

COLUMNS = ["section", "title", "link", "source", "pub_date", "description", "image", "content"]


def articles_to_frame(articles: Iterable[Article]) -> pd.DataFrame:
    rows = []
    for a in articles:
        d = asdict(a)
        # parsed companion column; pub_date keeps the string as published
        d["published_at"] = parse_pub_date(a.pub_date)
        rows.append(d)
    return pd.DataFrame(rows, columns=COLUMNS + ["published_at"])


def sections_to_frame(sections: Mapping[str, Iterable[Article]]) -> pd.DataFrame:
    return articles_to_frame(a for items in sections.values() for a in items)


def write_frame(path: Path, df: pd.DataFrame) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".json":
        df.to_json(path, orient="records", date_format="iso", force_ascii=False, indent=2)
        return

    # default to csv
    df.to_csv(path, index=False, encoding="utf-8")


def write_snapshot(path: str | Path, sections: Mapping[str, Iterable[Article]]) -> pd.DataFrame:
    df = sections_to_frame(sections)
    write_frame(Path(path), df)
    return df
