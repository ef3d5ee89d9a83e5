"""One-shot convenience functions.

Each call builds a default-configured client, performs exactly one request
and closes it again; nothing is shared between calls.
"""

from __future__ import annotations

from typing import Any, Mapping

from .client import HttpClient
from .errors import PeakRequestsError
from .models import Response
from .types import Result


def _request_once(
    method: str,
    url: str,
    *,
    data: Mapping[str, str] | None = None,
    json: Any | None = None,
) -> Result[Response, PeakRequestsError]:
    with HttpClient() as client:
        return client.request(method, url, data=data, json=json)


def get(url: str) -> Result[Response, PeakRequestsError]:
    return _request_once("GET", url)


def post(
    url: str, data: Mapping[str, str]
) -> Result[Response, PeakRequestsError]:
    """POST ``data`` as a URL-encoded form."""
    return _request_once("POST", url, data=data)


def post_json(url: str, json: Any) -> Result[Response, PeakRequestsError]:
    """POST ``json`` serialized as an application/json body."""
    return _request_once("POST", url, json=json)


def put(
    url: str, data: Mapping[str, str]
) -> Result[Response, PeakRequestsError]:
    return _request_once("PUT", url, data=data)


def put_json(url: str, json: Any) -> Result[Response, PeakRequestsError]:
    return _request_once("PUT", url, json=json)


def delete(url: str) -> Result[Response, PeakRequestsError]:
    return _request_once("DELETE", url)
