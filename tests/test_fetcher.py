# /tests/test_fetcher.py
from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from tests.fakes import ExplodingSession
from wsc.adapters.http.aiohttp_fetcher import AiohttpFetcher, build_request_url, dump_response
from wsc.errors import RequestBuildError, ResponseDumpError, TransportError

PAYLOAD = {"hello": "I'm a test"}
PAYLOAD_BYTES = json.dumps(PAYLOAD).encode("utf-8")


def make_app() -> web.Application:
    async def json_handler(request: web.Request) -> web.Response:
        return web.json_response(PAYLOAD)

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    async def compressed(request: web.Request) -> web.Response:
        resp = web.Response(text="a" * 100_000)
        resp.enable_compression(web.ContentCoding.gzip)
        return resp

    async def truncated(request: web.Request) -> web.StreamResponse:
        resp = web.StreamResponse()
        resp.content_length = 1000
        await resp.prepare(request)
        await resp.write(b"x" * 10)
        assert request.transport is not None
        request.transport.close()
        return resp

    app = web.Application()
    app.router.add_route("*", "/json", json_handler)
    app.router.add_get("/slow", slow)
    app.router.add_get("/gzip", compressed)
    app.router.add_get("/truncated", truncated)
    return app


@pytest.mark.asyncio
async def test_fetch_counts_headers_and_body() -> None:
    fetcher = AiohttpFetcher()
    try:
        async with TestServer(make_app()) as server:
            url = str(server.make_url("/json"))
            visit = await fetcher.fetch(url, "GET", 10)
    finally:
        await fetcher.close()

    assert visit.error is None
    assert visit.url == url
    assert visit.body_size > len(PAYLOAD_BYTES)


@pytest.mark.asyncio
async def test_head_has_no_body_but_nonzero_size() -> None:
    fetcher = AiohttpFetcher()
    try:
        async with TestServer(make_app()) as server:
            visit = await fetcher.fetch(str(server.make_url("/json")), "HEAD", 10)
    finally:
        await fetcher.close()

    assert visit.ok
    assert visit.body_size > 0


@pytest.mark.asyncio
async def test_compressed_body_is_measured_as_transmitted() -> None:
    fetcher = AiohttpFetcher()
    try:
        async with TestServer(make_app()) as server:
            visit = await fetcher.fetch(str(server.make_url("/gzip")), "GET", 10)
    finally:
        await fetcher.close()

    assert visit.ok
    assert 0 < visit.body_size < 100_000


@pytest.mark.asyncio
async def test_timeout_gives_zero_and_error() -> None:
    fetcher = AiohttpFetcher()
    try:
        async with TestServer(make_app()) as server:
            url = str(server.make_url("/slow"))
            visit = await fetcher.fetch(url, "GET", 0.2)
    finally:
        await fetcher.close()

    assert visit.body_size == 0
    assert isinstance(visit.error, TransportError)
    assert str(visit.error) == f'GET "{url}": timeout exceeded after 0.2s'


@pytest.mark.asyncio
async def test_body_cut_short_gives_zero_and_dump_error() -> None:
    fetcher = AiohttpFetcher()
    try:
        async with TestServer(make_app()) as server:
            url = str(server.make_url("/truncated"))
            visit = await fetcher.fetch(url, "GET", 10)
    finally:
        await fetcher.close()

    assert visit.url == url
    assert visit.body_size == 0
    assert isinstance(visit.error, ResponseDumpError)


@pytest.mark.asyncio
async def test_connection_refused_gives_zero_and_error() -> None:
    url = f"http://127.0.0.1:{unused_port()}/"
    fetcher = AiohttpFetcher()
    try:
        visit = await fetcher.fetch(url, "GET", 5)
    finally:
        await fetcher.close()

    assert visit.url == url
    assert visit.body_size == 0
    assert isinstance(visit.error, TransportError)
    assert isinstance(visit.error.original, aiohttp.ClientError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url,method",
    [
        ("not a url", "GET"),
        ("ftp://example.com/file", "GET"),
        ("http://", "GET"),
        ("http://example.com/", "BAD METHOD"),
        ("http://" + "a" * 64 + ".com/", "GET"),
        ("http://" + "a" * 300 + ".com/", "GET"),
        ("http://a..com/", "GET"),
    ],
)
async def test_unbuildable_request_never_hits_network(url: str, method: str) -> None:
    fetcher = AiohttpFetcher(session=ExplodingSession())  # type: ignore[arg-type]
    visit = await fetcher.fetch(url, method, 5)

    assert visit.url == url
    assert visit.body_size == 0
    assert isinstance(visit.error, RequestBuildError)


@pytest.mark.asyncio
async def test_injected_session_is_left_open() -> None:
    session = ExplodingSession()
    fetcher = AiohttpFetcher(session=session)  # type: ignore[arg-type]
    await fetcher.close()
    assert session.closed is False


def test_build_request_url_messages() -> None:
    with pytest.raises(ValueError, match="unsupported protocol scheme"):
        build_request_url("GET", "example.com/no-scheme")
    with pytest.raises(ValueError, match="invalid method"):
        build_request_url("G T", "http://example.com/")
    with pytest.raises(ValueError, match="invalid host"):
        build_request_url("GET", "http://" + "a" * 64 + ".com/")
    assert build_request_url("PATCH", "https://example.com/x?y=1").host == "example.com"


def test_dump_response_layout() -> None:
    resp = SimpleNamespace(
        version=aiohttp.HttpVersion11,
        status=200,
        reason="OK",
        raw_headers=((b"Content-Type", b"text/plain"), (b"Content-Length", b"5")),
    )
    dumped = dump_response(resp, b"hello")  # type: ignore[arg-type]
    assert dumped == (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/plain\r\n"
        b"Content-Length: 5\r\n"
        b"\r\n"
        b"hello"
    )
