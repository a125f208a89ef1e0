from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from realtime_news.sources import SourceResolver, google_news_rss


def test_google_news_rss_encodes_query() -> None:
    url = google_news_rss('editorial OR opinion OR "op-ed"')
    assert url.startswith("https://news.google.com/rss/search?q=editorial%20OR%20opinion%20OR%20%22op-ed%22&")
    params = parse_qs(urlparse(url).query)
    assert params["q"] == ['editorial OR opinion OR "op-ed"']
    assert params["hl"] == ["en-IN"]
    assert params["gl"] == ["IN"]
    assert params["ceid"] == ["IN:en"]


def test_ampersand_in_query_stays_inside_q() -> None:
    params = parse_qs(urlparse(google_news_rss("R&D budget")).query)
    assert params["q"] == ["R&D budget"]


def test_resolver_uses_configured_locale() -> None:
    resolver = SourceResolver.from_config({"search_base": "https://feeds.example/search", "hl": "en-US", "gl": "US", "ceid": "US:en"})
    url = resolver.resolve("markets")
    assert url.startswith("https://feeds.example/search?q=markets&")
    assert parse_qs(urlparse(url).query)["gl"] == ["US"]


def test_resolver_is_pure() -> None:
    resolver = SourceResolver()
    assert resolver.resolve("IAS") == resolver.resolve("IAS") == google_news_rss("IAS")
