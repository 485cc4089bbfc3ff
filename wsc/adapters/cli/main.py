# /wsc/adapters/cli/main.py
from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence

from wsc.adapters.http.aiohttp_fetcher import AiohttpFetcher
from wsc.adapters.system.logging_cfg import configure_logger
from wsc.config import FailurePolicy, RunConfig, build_run_config, settings
from wsc.domain.size_service import SizeService
from wsc.domain.visit import Visit
from wsc.errors import ConfigError
from wsc.ports.http_fetcher import HTTPFetcherPort

LOG = logging.getLogger("adapter.cli")

USAGE_EXAMPLES = """\
For help run:
$ wsc -h

Example with default values:
$ wsc https://example.de/ https://example.com/
https://example.de/ 14953 bytes
https://example.com/ 359600 bytes

Example with request timeout in seconds:
$ wsc -t 5 https://example.de/ https://example.com/

Example with max concurrent requests:
$ wsc -c 2 https://example.de/ https://example.com/

Example with POST method request:
$ wsc -c 2 -m POST https://example.de/ https://example.com/
https://example.de/ 1453 bytes
https://example.com/ 5960 bytes

Example with verbose mode enabled:
$ wsc -v -c 2 -t 1 -m POST https://example.de/ https://example.com/ https://example.com.br
https://example.com.br 0 bytes (POST "https://example.com.br": timeout exceeded after 1s)
https://example.de/ 936 bytes
https://example.com/ 1861 bytes
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="wsc",
        description="Fetch URLs and list them by full HTTP response size (status line + headers + body).",
    )
    p.add_argument("urls", nargs="*", help="URLs to measure")
    p.add_argument(
        "-t", "--timeout", type=int, default=settings.TIMEOUT_SECONDS,
        help="request timeout for the http request in seconds [1, 600]",
    )
    p.add_argument(
        "-c", "--concurrency", type=int, default=settings.CONCURRENCY,
        help="maximum number of concurrent requests [1, 100]",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="print request errors")
    p.add_argument("-m", "--method", default=settings.METHOD, help="http method to make the HTTP call")
    p.add_argument("-d", "--desc", action="store_true", help="largest responses first")
    p.add_argument(
        "--failures",
        choices=[fp.value for fp in FailurePolicy],
        default=FailurePolicy.AUTO.value,
        help="report failed URLs: auto (only when concurrent), include, drop",
    )
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG/INFO/WARNING/ERROR, logs go to stderr")
    return p


def format_visit(visit: Visit) -> str:
    if visit.error is not None:
        return f"{visit.url} {visit.body_size} bytes ({visit.error})"
    return f"{visit.url} {visit.body_size} bytes"


def print_dropped(visit: Visit) -> None:
    print(str(visit.error))


def print_invalid(visit: Visit) -> None:
    print(
        f"ERROR: cannot create a valid request - ignoring invalid URL '{visit.url}', "
        "setting body size to zero"
    )


async def run_async(
    urls: Sequence[str],
    cfg: RunConfig,
    fetcher: HTTPFetcherPort | None = None,
) -> list[Visit]:
    owned = fetcher is None
    fetcher = fetcher or AiohttpFetcher(limit=cfg.concurrency)
    svc = SizeService(
        fetcher,
        cfg,
        on_dropped=print_dropped if cfg.verbose else None,
        on_invalid=print_invalid if cfg.verbose else None,
    )
    try:
        return await svc.run(urls)
    finally:
        if owned:
            await fetcher.close()  # type: ignore[union-attr]


def main(argv: Sequence[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    configure_logger(ns.log_level)

    try:
        cfg = build_run_config(
            method=ns.method,
            timeout_seconds=ns.timeout,
            concurrency=ns.concurrency,
            verbose=ns.verbose,
            ascending=not ns.desc,
            failure_policy=ns.failures,
        )
    except ConfigError as e:
        LOG.error("config.invalid", extra={"extra": {"error": e.message, "exit_code": e.exit_code}})
        print(e.message)
        return e.exit_code

    if not ns.urls:
        print(USAGE_EXAMPLES)
        return 0

    for visit in asyncio.run(run_async(ns.urls, cfg)):
        print(format_visit(visit))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
