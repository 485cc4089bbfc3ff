# /wsc/errors.py
"""Exceptions raised or captured by wsc."""
from __future__ import annotations


class VisitError(Exception):
    """A single URL could not be measured. Captured into the Visit, never raised past the fetcher."""

    def __init__(self, method: str, url: str, original: BaseException | str):
        self.method = method
        self.url = url
        self.original = original
        super().__init__(f'{method} "{url}": {self.detail}')

    @property
    def detail(self) -> str:
        if isinstance(self.original, BaseException):
            return str(self.original) or type(self.original).__name__
        return self.original


class RequestBuildError(VisitError):
    """Malformed URL or invalid method; no request was sent."""


class TransportError(VisitError):
    """Timeout, DNS, connection or TLS failure."""


class ResponseDumpError(VisitError):
    """The response arrived but its body could not be read in full."""


class ConfigError(Exception):
    """Invalid run configuration. Fatal; maps to a process exit code."""

    exit_code = 1

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TimeoutOutOfRangeError(ConfigError):
    exit_code = 1


class ConcurrencyOutOfRangeError(ConfigError):
    exit_code = 2


class UnsupportedMethodError(ConfigError):
    exit_code = 3
