"""Synchronous HTTP client and its fluent builder.

The client wraps a single ``requests.Session`` built from an immutable
``ClientConfig``. Every call returns a Result holding either a normalized
``Response`` or one of the errors from ``peakrequests.errors``; nothing is
retried.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from time import monotonic
from types import TracebackType
from typing import Any, Mapping

import requests
from requests.utils import check_header_validity, get_encoding_from_headers
from urllib3.exceptions import ReadTimeoutError

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

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
_BODYLESS_METHODS = frozenset({"GET", "DELETE"})

# Body read size; the total deadline is checked between chunks.
_CHUNK_SIZE = 1024

# RFC 7230 token characters.
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def _validate_header(name: Any, value: Any) -> None:
    """Raise ConfigError if a header cannot be sent by the transport."""
    if not isinstance(name, str) or not _HEADER_NAME_RE.match(name):
        raise ConfigError(f"invalid header name: {name!r}")
    if not isinstance(value, str):
        raise ConfigError(
            f"invalid value for header {name!r}: expected str, "
            f"got {type(value).__name__}"
        )
    try:
        check_header_validity((name, value))
    except requests.exceptions.InvalidHeader as exc:
        raise ConfigError(str(exc)) from exc
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as exc:
        raise ConfigError(
            f"invalid value for header {name!r}: not latin-1 encodable"
        ) from exc


def _header_text(value: str) -> str | None:
    """Re-decode a transport header value as UTF-8.

    http.client hands header bytes over as latin-1 text. Returns None when
    the underlying bytes are not valid UTF-8.
    """
    try:
        raw = value.encode("latin-1")
    except UnicodeEncodeError:
        return value
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


class HttpClient:
    """Configured HTTP client (sync).

    The transport session is created and configured in ``__init__``, so a
    client that exists can always dispatch. Use ``ClientBuilder`` to obtain
    one fluently.
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        """Create a new HttpClient.

        Args:
            config: Headers, timeout and redirect policy. Defaults apply
                when omitted.

        Raises:
            ConfigError: If a configured header is not valid on the wire.
        """
        self._config = config if config is not None else ClientConfig()
        for name, value in self._config.default_headers.items():
            _validate_header(name, value)

        self._session = requests.Session()
        self._session.headers.update(self._config.default_headers)
        self._session.max_redirects = self._config.max_redirects

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Release pooled connections held by the transport."""
        self._session.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _build_meta(
        self,
        method: str,
        request_url: str,
        response: requests.Response | None,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        """Construct metadata dictionary from the request and response."""
        meta: dict[str, Any] = {}
        meta["method"] = method
        meta["url"] = request_url
        meta["timeout_s"] = self._config.timeout_seconds

        if response is not None:
            meta["status_code"] = response.status_code
            meta["url"] = response.url
            meta["reason"] = response.reason
            meta["redirects"] = len(response.history)
            try:
                meta["elapsed_s"] = response.elapsed.total_seconds()
            except AttributeError:
                pass
        if final_error is not None:
            meta["final_error"] = final_error

        return meta

    def _fail(
        self,
        method: str,
        url: str,
        error: PeakRequestsError,
        response: requests.Response | None = None,
    ) -> Err[PeakRequestsError]:
        return Err(
            error,
            meta=self._build_meta(
                method, url, response, final_error=type(error).__name__
            ),
        )

    def _handle_request_exception(
        self,
        method: str,
        url: str,
        e: requests.exceptions.RequestException,
    ) -> Err[PeakRequestsError]:
        """Map requests exceptions to peakrequests errors."""
        error: PeakRequestsError
        # iter_content reports body read timeouts as ConnectionError.
        if isinstance(e, requests.exceptions.Timeout) or (
            isinstance(e, requests.exceptions.ConnectionError)
            and e.args
            and isinstance(e.args[0], ReadTimeoutError)
        ):
            error = RequestTimeoutError(str(e))
        elif isinstance(e, requests.exceptions.TooManyRedirects):
            error = RedirectLimitError(str(e))
        elif isinstance(
            e,
            (
                requests.exceptions.ContentDecodingError,
                requests.exceptions.ChunkedEncodingError,
            ),
        ):
            error = DecodeError(str(e))
        else:
            error = TransportError(str(e))

        logger.warning(
            "%s %s failed: %s: %s", method, url, type(e).__name__, e
        )
        return Err(
            error,
            meta=self._build_meta(
                method, url, e.response, final_error=type(e).__name__
            ),
        )

    @staticmethod
    def _read_body(
        response: requests.Response, deadline: float | None
    ) -> bytes:
        """Read the whole body, failing once the total deadline has passed."""

        def check_deadline() -> None:
            if deadline is not None and monotonic() > deadline:
                raise RequestTimeoutError(
                    f"{response.url} not received within the timeout"
                )

        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            chunks.append(chunk)
            check_deadline()
        check_deadline()
        return b"".join(chunks)

    @staticmethod
    def _text_value(response: requests.Response, body: bytes) -> str:
        """Decode the body strictly with the Content-Type charset or UTF-8.

        ``requests`` assumes ISO-8859-1 for any text/* type without a
        charset; only an explicit charset parameter is honored here.
        """
        content_type = response.headers.get("Content-Type", "")
        encoding = None
        if "charset=" in content_type.lower():
            encoding = get_encoding_from_headers(response.headers)
        encoding = encoding or "utf-8"
        try:
            return body.decode(encoding)
        except (LookupError, UnicodeDecodeError) as exc:
            raise DecodeError(
                f"response body is not valid {encoding} text: {exc}"
            ) from exc

    @staticmethod
    def _headers_value(response: requests.Response) -> dict[str, str]:
        """Collect final-hop headers; repeated names keep the last value."""
        headers: dict[str, str] = {}
        # response.headers joins repeated names with ", "; the raw urllib3
        # headers yield each occurrence.
        for name, value in response.raw.headers.iteritems():
            text = _header_text(value)
            if text is None:
                logger.warning(
                    "header %s from %s is not valid UTF-8, using empty value",
                    name,
                    response.url,
                )
                text = ""
            headers[name] = text
        return headers

    def request(
        self,
        method: str,
        url: str,
        *,
        data: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Result[Response, PeakRequestsError]:
        """Dispatch one request and normalize the outcome.

        Args:
            method: One of GET, POST, PUT or DELETE (exact, upper case).
            url: Absolute URL to request.
            data: Optional form fields, sent URL-encoded (POST/PUT only).
            json: Optional JSON payload (POST/PUT only, exclusive with data).

        Returns:
            Result containing a Response on success, or an error on failure.
        """
        if method not in SUPPORTED_METHODS:
            return self._fail(method, url, UnsupportedMethodError(method))

        if method in _BODYLESS_METHODS:
            if data is not None or json is not None:
                logger.debug("dropping payload for %s %s", method, url)
            data = None
            json = None
        elif data is not None and json is not None:
            return self._fail(
                method,
                url,
                InvalidPayloadError(
                    "form data and json payload are mutually exclusive"
                ),
            )

        logger.debug("%s %s", method, url)
        timeout = self._config.timeout_seconds
        deadline = None if timeout is None else monotonic() + timeout
        try:
            response = self._session.request(
                method,
                url,
                data=data,
                json=json,
                timeout=timeout,
                allow_redirects=self._config.allow_redirects,
                verify=self._config.verify_tls,
                stream=True,
            )
        except requests.exceptions.RequestException as exc:
            return self._handle_request_exception(method, url, exc)

        try:
            body = self._read_body(response, deadline)
            text = self._text_value(response, body)
        except requests.exceptions.RequestException as exc:
            return self._handle_request_exception(method, url, exc)
        except (RequestTimeoutError, DecodeError) as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            return self._fail(method, url, exc, response)
        finally:
            response.close()

        logger.debug(
            "%s %s -> %s (%s)", method, url, response.status_code, response.url
        )
        return Ok(
            Response(
                status_code=response.status_code,
                text=text,
                headers=self._headers_value(response),
                url=response.url,
            ),
            meta=self._build_meta(method, url, response),
        )

    def get(self, url: str) -> Result[Response, PeakRequestsError]:
        """Perform an HTTP GET request."""
        return self.request("GET", url)

    def post(
        self,
        url: str,
        data: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Result[Response, PeakRequestsError]:
        """Perform an HTTP POST request with an optional form or JSON body."""
        return self.request("POST", url, data=data, json=json)

    def put(
        self,
        url: str,
        data: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Result[Response, PeakRequestsError]:
        """Perform an HTTP PUT request with an optional form or JSON body."""
        return self.request("PUT", url, data=data, json=json)

    def delete(self, url: str) -> Result[Response, PeakRequestsError]:
        """Perform an HTTP DELETE request."""
        return self.request("DELETE", url)


class ClientBuilder:
    """Immutable fluent builder for HttpClient.

    Every setter returns a new builder, so a builder never changes after it
    is created. ``build()`` materializes a client; the verb shortcuts build
    one on first use and reuse it, which is safe because the configuration
    behind it cannot change. ``close()`` or a ``with`` block releases
    that cached client.

    Example:
        client = (
            ClientBuilder()
            .headers({"Accept": "application/json"})
            .timeout(10)
            .max_redirects(5)
            .build()
        )
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        self._config = config if config is not None else ClientConfig()
        self._client: HttpClient | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Close the client cached by the verb shortcuts, if any."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> ClientBuilder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _with(self, **changes: Any) -> ClientBuilder:
        return ClientBuilder(replace(self._config, **changes))

    def headers(self, headers: Mapping[str, str]) -> ClientBuilder:
        """Replace the whole default header set."""
        return self._with(default_headers=headers)

    def timeout(self, seconds: float) -> ClientBuilder:
        return self._with(timeout_seconds=seconds)

    def allow_redirects(self, allow: bool) -> ClientBuilder:
        return self._with(allow_redirects=allow)

    def max_redirects(self, count: int) -> ClientBuilder:
        """Bound redirect hops; ignored when redirects are disallowed."""
        return self._with(max_redirects=count)

    def verify_tls(self, verify: bool) -> ClientBuilder:
        return self._with(verify_tls=verify)

    def build(self) -> HttpClient:
        """Create a new HttpClient from the current configuration.

        Raises:
            ConfigError: If a header name or value is invalid.
        """
        return HttpClient(self._config)

    def _dispatch(
        self,
        method: str,
        url: str,
        data: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Result[Response, PeakRequestsError]:
        if self._client is None:
            try:
                self._client = self.build()
            except ConfigError as exc:
                return Err(
                    exc,
                    meta={
                        "method": method,
                        "url": url,
                        "final_error": type(exc).__name__,
                    },
                )
        return self._client.request(method, url, data=data, json=json)

    def get(self, url: str) -> Result[Response, PeakRequestsError]:
        return self._dispatch("GET", url)

    def post(
        self,
        url: str,
        data: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Result[Response, PeakRequestsError]:
        return self._dispatch("POST", url, data, json)

    def put(
        self,
        url: str,
        data: Mapping[str, str] | None = None,
        json: Any | None = None,
    ) -> Result[Response, PeakRequestsError]:
        return self._dispatch("PUT", url, data, json)

    def delete(self, url: str) -> Result[Response, PeakRequestsError]:
        return self._dispatch("DELETE", url)
