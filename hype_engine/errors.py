"""
HypeMeter — Error Taxonomy
────────────────────────────
Upstream errors (network, timeout, status, parse) never leave a source
aggregator: they are converted to that source's fallback value there.
ConfigError is the only one that reaches the HTTP layer (as a 500).
"""

from typing import Optional


class HypeMeterError(Exception):
    """Base class for all HypeMeter errors."""


class ConfigError(HypeMeterError):
    """A required credential or setting is missing or invalid."""


class UpstreamError(HypeMeterError):
    """Any failure talking to a third-party API."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NetworkError(UpstreamError):
    """Connection, DNS or protocol failure."""


class UpstreamTimeoutError(UpstreamError):
    """The request deadline expired before a response arrived."""


class UpstreamStatusError(UpstreamError):
    """Upstream answered with a non-2xx HTTP status."""

    def __init__(self, status: int, url: Optional[str] = None):
        super().__init__(f"HTTP {status}", url)
        self.status = status

    @property
    def transient(self) -> bool:
        return self.status == 429 or self.status >= 500


class ParseError(UpstreamError):
    """Body was not JSON, or JSON of an unexpected shape."""
