# /wsc/adapters/http/aiohttp_fetcher.py
from __future__ import annotations

import logging
import re

import aiohttp
from yarl import URL

from wsc.config import settings
from wsc.domain.visit import Visit
from wsc.errors import RequestBuildError, ResponseDumpError, TransportError

LOG = logging.getLogger("adapter.http_fetcher")

# RFC 7230 token
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def build_request_url(method: str, url: str) -> URL:
    """Validate method and url before anything touches the network. Raises ValueError."""
    if not _METHOD_RE.match(method):
        raise ValueError(f"invalid method {method!r}")
    try:
        target = URL(url)
    except (TypeError, ValueError) as e:
        raise ValueError(f"parse {url!r}: {e}") from e
    if target.scheme not in ("http", "https"):
        raise ValueError(f'unsupported protocol scheme "{target.scheme}"')
    if not target.raw_host:
        raise ValueError("no Host in request URL")
    try:
        target.raw_host.encode("idna")
    except UnicodeError as e:
        raise ValueError(f"invalid host {target.raw_host!r}: {e}") from e
    return target


def dump_response(resp: aiohttp.ClientResponse, body: bytes) -> bytes:
    """
    Serialize a response the way it came off the wire: status line, raw headers,
    blank line, body. The length of this is what we report.
    """
    version = resp.version or aiohttp.HttpVersion11
    status_line = f"HTTP/{version.major}.{version.minor} {resp.status} {resp.reason or ''}"
    out = bytearray(status_line.encode("utf-8"))
    out += b"\r\n"
    for name, value in resp.raw_headers:
        out += name + b": " + value + b"\r\n"
    out += b"\r\n"
    out += body
    return bytes(out)


class AiohttpFetcher:
    """
    aiohttp fetcher sharing one session across every concurrent fetch.
    An injected session is used as-is and left open on close().
    """

    def __init__(self, session: aiohttp.ClientSession | None = None, *, limit: int = 100) -> None:
        self._session = session
        self._owns_session = session is None
        self._connector: aiohttp.TCPConnector | None = None
        self._limit = limit
        self._ssl = settings.VERIFY_TLS

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(limit=self._limit)
            # bodies are measured as transmitted, not decoded
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                auto_decompress=False,
                raise_for_status=False,
            )

        return self._session

    async def fetch(self, url: str, method: str, timeout_seconds: float) -> Visit:
        """
        Single attempt, no retries. Returns Visit(url, size) on success or
        Visit(url, 0, error) when the request cannot be built, sent or read.
        """
        try:
            target = build_request_url(method, url)
        except ValueError as e:
            LOG.info("visit.build_failed", extra={"extra": {"url": url, "error": str(e)}})
            return Visit(url=url, body_size=0, error=RequestBuildError(method, url, e))

        sess = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        LOG.debug("fetching", extra={"extra": {"url": url, "method": method}})
        try:
            async with sess.request(
                method, target, timeout=timeout, ssl=self._ssl, allow_redirects=True
            ) as resp:
                try:
                    body = await resp.read()
                except (TimeoutError, aiohttp.ClientError) as e:
                    LOG.info("visit.read_failed", extra={"extra": {"url": url, "error": repr(e)}})
                    return Visit(url=url, body_size=0, error=ResponseDumpError(method, url, e))
                size = len(dump_response(resp, body))
        except TimeoutError:
            LOG.info("visit.timeout", extra={"extra": {"url": url, "timeout": timeout_seconds}})
            err = TransportError(method, url, f"timeout exceeded after {timeout_seconds}s")
            return Visit(url=url, body_size=0, error=err)
        except (aiohttp.ClientError, UnicodeError) as e:
            LOG.info("visit.transport_failed", extra={"extra": {"url": url, "error": repr(e)}})
            return Visit(url=url, body_size=0, error=TransportError(method, url, e))

        LOG.info("visit.done", extra={"extra": {"url": url, "bytes": size}})
        return Visit(url=url, body_size=size)

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            self._connector = None
