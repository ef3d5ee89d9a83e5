"""Error taxonomy returned by the dispatcher."""

from __future__ import annotations


class PeakRequestsError(Exception):
    """Base class for every error produced by peakrequests."""


class ConfigError(PeakRequestsError, ValueError):
    """Invalid client configuration, such as a malformed header."""


class UnsupportedMethodError(PeakRequestsError):
    """HTTP verb outside GET, POST, PUT and DELETE."""

    def __init__(self, method: str) -> None:
        super().__init__(f"unsupported HTTP method: {method}")
        self.method = method


class InvalidPayloadError(PeakRequestsError):
    """Request payload that cannot be encoded unambiguously."""


class TransportError(PeakRequestsError):
    """Network, TLS or protocol failure reported by the transport."""


class RequestTimeoutError(TransportError):
    """The request did not complete within the configured timeout."""


class RedirectLimitError(TransportError):
    """The redirect chain was longer than max_redirects."""


class DecodeError(PeakRequestsError):
    """The response body could not be read or decoded as text."""
