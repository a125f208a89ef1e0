from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from realtime_news.errors import ConfigError
from realtime_news.types import Category


DEFAULTS: dict[str, Any] = {
    "categories": [
        {"id": "latest", "label": "Latest", "queries": ["UPSC", "IAS", "Civil Services", "Current Affairs"]},
        {"id": "editorial", "label": "Editorials", "queries": ['editorial OR opinion OR "op-ed"']},
        {
            "id": "schemes",
            "label": "Schemes",
            "queries": ['Government Schemes OR "government scheme" OR "govt scheme"'],
        },
        {
            "id": "pib",
            "label": "PIB",
            "queries": ['Press Information Bureau OR PIB OR "Press Information Bureau of India"'],
        },
    ],
    "all_section_id": "latest",
    "feed": {
        "search_base": "https://news.google.com/rss/search",
        "hl": "en-IN",
        "gl": "IN",
        "ceid": "IN:en",
    },
    "transports": {
        "json_proxy_base": "https://api.rss2json.com/v1/api.json",
        "relay_base": "https://api.allorigins.win/raw",
    },
    "http": {
        "timeout_seconds": 15,
        "max_connections": 20,
        "max_in_flight_requests": 10,
        "user_agent": "Mozilla/5.0 (compatible; realtime-news/0.1)",
    },
    "aggregate": {
        "max_items_per_section": 20,
        "description_max_chars": 1000,
    },
    "refresh": {
        "interval_seconds": 300,
    },
    "logging": {
        "level": "INFO",
    },
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def _positive_int(raw: dict[str, Any], section: str, key: str) -> int:
    value = (raw.get(section) or {}).get(key)
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{section}.{key} must be an integer, got {value!r}") from None
    if n <= 0:
        raise ConfigError(f"{section}.{key} must be positive, got {n}")
    return n


def _positive_float(raw: dict[str, Any], section: str, key: str) -> float:
    value = (raw.get(section) or {}).get(key)
    try:
        x = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{section}.{key} must be a number, got {value!r}") from None
    if x <= 0:
        raise ConfigError(f"{section}.{key} must be positive, got {x}")
    return x


def _required_str(raw: dict[str, Any], section: str, key: str) -> str:
    block = raw.get(section)
    if not isinstance(block, dict):
        raise ConfigError(f"{section} must be a mapping, got {block!r}")
    value = block.get(key)
    if value is None or not str(value).strip():
        raise ConfigError(f"{section}.{key} must be a non-empty string")
    return str(value).strip()


@dataclass(frozen=True)
class Config:
    raw: dict[str, Any]

    @property
    def categories(self) -> tuple[Category, ...]:
        out: list[Category] = []
        seen: set[str] = set()
        for entry in self.raw.get("categories") or []:
            if not isinstance(entry, dict):
                raise ConfigError(f"category entries must be mappings, got {entry!r}")
            cid = str(entry.get("id") or "").strip()
            if not cid:
                raise ConfigError("every category needs an id")
            if cid in seen:
                raise ConfigError(f"duplicate category id {cid!r}")
            seen.add(cid)
            queries = tuple(str(q) for q in (entry.get("queries") or []) if str(q).strip())
            if not queries:
                raise ConfigError(f"category {cid!r} has no queries")
            out.append(Category(id=cid, label=str(entry.get("label") or cid), queries=queries))
        if not out:
            raise ConfigError("at least one category must be configured")
        return tuple(out)

    @property
    def all_section_id(self) -> str:
        return str(self.raw.get("all_section_id") or "")

    @property
    def feed(self) -> dict[str, str]:
        block = self.raw.get("feed") or {}
        if not isinstance(block, dict):
            raise ConfigError(f"feed must be a mapping, got {block!r}")
        return {k: str(v) for k, v in block.items()}

    @property
    def json_proxy_base(self) -> str:
        return _required_str(self.raw, "transports", "json_proxy_base")

    @property
    def relay_base(self) -> str:
        return _required_str(self.raw, "transports", "relay_base")

    @property
    def timeout_seconds(self) -> float:
        return _positive_float(self.raw, "http", "timeout_seconds")

    @property
    def max_connections(self) -> int:
        return _positive_int(self.raw, "http", "max_connections")

    @property
    def max_in_flight_requests(self) -> int:
        return _positive_int(self.raw, "http", "max_in_flight_requests")

    @property
    def user_agent(self) -> str:
        return _required_str(self.raw, "http", "user_agent")

    @property
    def max_items_per_section(self) -> int:
        return _positive_int(self.raw, "aggregate", "max_items_per_section")

    @property
    def description_max_chars(self) -> int:
        return _positive_int(self.raw, "aggregate", "description_max_chars")

    @property
    def refresh_interval_seconds(self) -> float:
        return _positive_float(self.raw, "refresh", "interval_seconds")

    @property
    def log_level(self) -> str:
        return str((self.raw.get("logging") or {}).get("level") or "INFO").upper()

    def validate(self) -> "Config":
        # each property raises ConfigError on a bad value
        for name in (
            "categories",
            "feed",
            "json_proxy_base",
            "relay_base",
            "user_agent",
            "max_connections",
            "max_in_flight_requests",
            "max_items_per_section",
            "description_max_chars",
            "timeout_seconds",
            "refresh_interval_seconds",
        ):
            getattr(self, name)
        return self


def load_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: str | Path | None = None, overrides: dict[str, Any] | None = None) -> Config:
    try:
        user = load_yaml(path) if path else {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(user, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    raw = _merge(DEFAULTS, user)
    if overrides:
        raw = _merge(raw, overrides)
    return Config(raw=raw).validate()
