# /wsc/ports/http_fetcher.py
from __future__ import annotations

from typing import Protocol

from wsc.domain.visit import Visit


class HTTPFetcherPort(Protocol):
    async def fetch(self, url: str, method: str, timeout_seconds: float) -> Visit:
        """Request url once and measure the full response; failures come back inside the Visit."""
