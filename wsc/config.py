# /wsc/config.py
from __future__ import annotations

import os
from enum import Enum

from pydantic import BaseModel, ConfigDict

from wsc.domain.visit import contains
from wsc.errors import (
    ConcurrencyOutOfRangeError,
    TimeoutOutOfRangeError,
    UnsupportedMethodError,
)

ALLOWED_METHODS: tuple[str, ...] = (
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
)

TIMEOUT_RANGE = (1, 600)  # seconds
CONCURRENCY_RANGE = (1, 100)


class Settings(BaseModel):
    # CLI defaults
    TIMEOUT_SECONDS: int = int(os.getenv("WSC_TIMEOUT_SECONDS", "30"))
    CONCURRENCY: int = int(os.getenv("WSC_CONCURRENCY", "1"))
    METHOD: str = os.getenv("WSC_METHOD", "GET")

    # Transport
    VERIFY_TLS: bool = os.getenv("WSC_VERIFY_TLS", "true").lower() == "true"

    LOG_LEVEL: str = os.getenv("WSC_LOG_LEVEL", "WARNING")


settings = Settings()


class FailurePolicy(str, Enum):
    """Whether failed visits end up in the report."""

    AUTO = "auto"  # serial drops, concurrent includes
    INCLUDE = "include"
    DROP = "drop"


class RunConfig(BaseModel):
    """Everything one run needs, built once from parsed arguments."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    timeout_seconds: int = 30
    concurrency: int = 1
    verbose: bool = False
    ascending: bool = True
    failure_policy: FailurePolicy = FailurePolicy.AUTO

    @property
    def concurrent(self) -> bool:
        return self.concurrency > 1

    def includes_failures(self) -> bool:
        if self.failure_policy is FailurePolicy.AUTO:
            return self.concurrent
        return self.failure_policy is FailurePolicy.INCLUDE


def build_run_config(
    *,
    method: str = settings.METHOD,
    timeout_seconds: int = settings.TIMEOUT_SECONDS,
    concurrency: int = settings.CONCURRENCY,
    verbose: bool = False,
    ascending: bool = True,
    failure_policy: FailurePolicy | str = FailurePolicy.AUTO,
) -> RunConfig:
    """Validate raw option values; raises a ConfigError subclass on the first bad one."""
    lo, hi = TIMEOUT_RANGE
    if timeout_seconds < lo or timeout_seconds > hi:
        raise TimeoutOutOfRangeError(f"-t timeout param must be in the range [{lo}, {hi}]")

    lo, hi = CONCURRENCY_RANGE
    if concurrency < lo or concurrency > hi:
        raise ConcurrencyOutOfRangeError(f"-c concurrency param must be in the range [{lo}, {hi}]")

    if not contains(ALLOWED_METHODS, method):
        raise UnsupportedMethodError(
            f"-m unsupported http method, use valid values [{', '.join(ALLOWED_METHODS)}]"
        )

    return RunConfig(
        method=method,
        timeout_seconds=timeout_seconds,
        concurrency=concurrency,
        verbose=verbose,
        ascending=ascending,
        failure_policy=FailurePolicy(failure_policy),
    )
