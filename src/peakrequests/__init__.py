"""Thin convenience layer over requests with normalized responses."""

import logging

from .api import delete, get, post, post_json, put, put_json
from .client import SUPPORTED_METHODS, ClientBuilder, HttpClient
from .config import ClientConfig
from .errors import (
    ConfigError,
    DecodeError,
    InvalidPayloadError,
    PeakRequestsError,
    RedirectLimitError,
    RequestTimeoutError,
    TransportError,
    UnsupportedMethodError,
)
from .models import Response
from .types import Err, Ok, Result

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "SUPPORTED_METHODS",
    "ClientBuilder",
    "ClientConfig",
    "ConfigError",
    "DecodeError",
    "Err",
    "HttpClient",
    "InvalidPayloadError",
    "Ok",
    "PeakRequestsError",
    "RedirectLimitError",
    "RequestTimeoutError",
    "Response",
    "Result",
    "TransportError",
    "UnsupportedMethodError",
    "delete",
    "get",
    "post",
    "post_json",
    "put",
    "put_json",
]
