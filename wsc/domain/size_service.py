# /wsc/domain/size_service.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from wsc.config import RunConfig
from wsc.domain.visit import Visit, sort_visits
from wsc.errors import RequestBuildError
from wsc.ports.http_fetcher import HTTPFetcherPort

LOG = logging.getLogger("service.size")

VisitCallback = Callable[[Visit], None]


class SizeService:
    """Runs the fetcher over a URL list and hands back one sorted report."""

    def __init__(
        self,
        fetcher: HTTPFetcherPort,
        config: RunConfig,
        *,
        on_dropped: VisitCallback | None = None,
        on_invalid: VisitCallback | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.on_dropped = on_dropped
        self.on_invalid = on_invalid

    # --- helpers ---

    async def _fetch(self, url: str) -> Visit:
        visit = await self.fetcher.fetch(url, self.config.method, self.config.timeout_seconds)
        # unbuildable requests are reported in both modes, whatever the policy
        if isinstance(visit.error, RequestBuildError) and self.on_invalid is not None:
            self.on_invalid(visit)
        return visit

    def _keep(self, visit: Visit) -> bool:
        if visit.ok or self.config.includes_failures():
            return True
        LOG.info("visit.dropped", extra={"extra": {"url": visit.url, "error": str(visit.error)}})
        if self.on_dropped is not None:
            self.on_dropped(visit)
        return False

    async def _visit_one(
        self,
        url: str,
        queue: asyncio.Queue[Visit],
        sem: asyncio.Semaphore,
    ) -> None:
        async with sem:
            visit = await self._fetch(url)
        await queue.put(visit)

    async def _run_serial(self, urls: Sequence[str]) -> list[Visit]:
        visits: list[Visit] = []
        for url in urls:
            visit = await self._fetch(url)
            if self._keep(visit):
                visits.append(visit)
        return visits

    async def _run_concurrent(self, urls: Sequence[str]) -> list[Visit]:
        limit = self.config.concurrency
        queue: asyncio.Queue[Visit] = asyncio.Queue(maxsize=limit)
        sem = asyncio.Semaphore(limit)
        collected: list[Visit] = []

        async with asyncio.TaskGroup() as tg:
            for url in urls:
                tg.create_task(self._visit_one(url, queue, sem))
            # exactly one Visit per URL, in completion order
            for _ in range(len(urls)):
                visit = await queue.get()
                if self._keep(visit):
                    collected.append(visit)

        return collected

    # --- entrypoint ---

    async def run(self, urls: Sequence[str]) -> list[Visit]:
        """Visit every URL exactly once, then order the kept Visits by size."""
        if not urls:
            return []

        mode = "concurrent" if self.config.concurrent else "serial"
        LOG.info(
            "run.start",
            extra={"extra": {"urls": len(urls), "mode": mode, "concurrency": self.config.concurrency}},
        )
        if self.config.concurrent:
            visits = await self._run_concurrent(urls)
        else:
            visits = await self._run_serial(urls)

        LOG.info("run.collected", extra={"extra": {"kept": len(visits), "urls": len(urls)}})
        return sort_visits(visits, ascending=self.config.ascending)
