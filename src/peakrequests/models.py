"""Normalized response model shared by every verb."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


def _empty_headers() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Response:
    """Verb-independent view of a completed HTTP exchange.

    Attributes:
        status_code: Final HTTP status code.
        text: Fully read and decoded response body.
        headers: Response headers; values that were not valid UTF-8 are
            replaced by an empty string.
        url: Effective URL, i.e. the last redirect target when redirects
            were followed.
    """

    status_code: int
    text: str
    headers: Mapping[str, str] = field(default_factory=_empty_headers)
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "headers",
            MappingProxyType(dict(self.headers)),
        )

    @property
    def ok(self) -> bool:
        """Return True for non-error status codes."""
        return self.status_code < 400

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json.loads(self.text)
