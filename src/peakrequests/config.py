"""Configuration model for HttpClient construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .errors import ConfigError

DEFAULT_MAX_REDIRECTS = 10


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for HttpClient behavior.

    Instances are pure data; nothing touches the network until a client is
    built from them.
    """

    default_headers: Mapping[str, str] = field(default_factory=_default_headers)
    timeout_seconds: float | None = None
    allow_redirects: bool = True
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    verify_tls: bool = True

    def __post_init__(self) -> None:
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be > 0 when provided")
        if self.max_redirects < 0:
            raise ConfigError("max_redirects must be >= 0")

        # Freeze copied headers to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )
