from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from realtime_news.errors import TransportError
from realtime_news.http import HttpClient


async def _ok(request: web.Request) -> web.Response:
    return web.Response(body=b"<rss/>", content_type="application/xml")


async def _json(request: web.Request) -> web.Response:
    return web.json_response({"items": [{"title": "A", "ua": request.headers.get("User-Agent")}]})


async def _broken_json(request: web.Request) -> web.Response:
    return web.Response(text="{not json", content_type="application/json")


async def _error(request: web.Request) -> web.Response:
    return web.Response(status=500, text="upstream down")


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(0.5)
    return web.Response(text="late")


def _run(check, timeout_seconds: float = 5.0):
    async def scenario():
        app = web.Application()
        app.router.add_get("/ok", _ok)
        app.router.add_get("/json", _json)
        app.router.add_get("/broken", _broken_json)
        app.router.add_get("/error", _error)
        app.router.add_get("/slow", _slow)
        async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as session:
            client = HttpClient(session, asyncio.Semaphore(2), "test-agent/1.0", timeout_seconds)
            return await check(client, lambda path: str(server.make_url(path)))

    return asyncio.run(scenario())


def test_get_bytes() -> None:
    async def check(client, url):
        return await client.get_bytes(url("/ok"))

    assert _run(check) == b"<rss/>"


def test_get_json_sends_user_agent() -> None:
    async def check(client, url):
        return await client.get_json(url("/json"))

    assert _run(check) == {"items": [{"title": "A", "ua": "test-agent/1.0"}]}


def test_error_status_raises_transport_error() -> None:
    async def check(client, url):
        with pytest.raises(TransportError) as exc_info:
            await client.get_bytes(url("/error"))
        return exc_info.value

    err = _run(check)
    assert err.status == 500
    assert str(err) == "HTTP 500"


def test_invalid_json_raises_transport_error() -> None:
    async def check(client, url):
        with pytest.raises(TransportError, match="invalid JSON"):
            await client.get_json(url("/broken"))

    _run(check)


def test_timeout_raises_transport_error() -> None:
    async def check(client, url):
        with pytest.raises(TransportError, match="timed out"):
            await client.get_bytes(url("/slow"))

    _run(check, timeout_seconds=0.1)


def test_connection_error_raises_transport_error() -> None:
    async def check(client, url):
        with pytest.raises(TransportError):
            await client.get_bytes("http://127.0.0.1:1/unreachable")

    _run(check)
