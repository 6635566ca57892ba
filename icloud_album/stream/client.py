"""
HTTP transport for the shared-streams endpoints.

StreamTransport wraps one requests.Session and turns every low-level
failure into the icloud-album error taxonomy, so the retry layer only has
to ask core.exceptions.is_retryable():

    connection error / timeout      -> TransientNetworkError
    HTTP 429                        -> RateLimitedError (Retry-After parsed)
    HTTP 5xx                        -> TransientNetworkError
    other non-2xx                   -> ClientRejectedError
    2xx with a body that isn't JSON -> TransientNetworkError

The session's connection pool is sized from HttpConfig.pool_size and is
the only resource shared between concurrent album resolutions.

Usage:
    transport = StreamTransport.from_config(config.http)
    payload = transport.post_json(base_url + "webstream", {"streamCtag": None})
"""

import math
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from icloud_album.core.config import HttpConfig
from icloud_album.core.exceptions import (
    ClientRejectedError,
    RateLimitedError,
    TransientNetworkError,
)
from icloud_album.core.logger import get_logger

logger = get_logger(__name__)


class StreamTransport:
    """
    JSON-over-POST client for shared-streams URLs.

    Attributes:
        session: The underlying requests.Session.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        pool_size: int = 10,
        user_agent: str | None = None
    ) -> None:
        """
        Initialize the transport.

        Args:
            session: Session to use. When None a new one is created and
                     mounted with an HTTPAdapter of pool_size connections.
                     A caller-provided session is used as is.
            timeout: Per-request timeout in seconds.
            pool_size: Connection pool size for a newly created session.
            user_agent: Optional User-Agent header.
        """
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("https://", adapter)
            session.mount("http://", adapter)

        self.session = session
        self.timeout = timeout
        self._headers = {"Content-Type": "application/json"}
        if user_agent:
            self._headers["User-Agent"] = user_agent

    @classmethod
    def from_config(
        cls,
        http_config: HttpConfig,
        session: requests.Session | None = None
    ) -> "StreamTransport":
        """Create a transport from the 'http' configuration section."""
        return cls(
            session=session,
            timeout=http_config.timeout,
            pool_size=http_config.pool_size,
            user_agent=http_config.user_agent
        )

    def post(self, url: str, payload: dict[str, Any]) -> requests.Response:
        """
        POST a JSON body and return the raw response, whatever its status.

        Raises:
            TransientNetworkError: If no response was received.
        """
        try:
            return self.session.post(
                url,
                json=payload,
                headers=self._headers,
                timeout=self.timeout,
                allow_redirects=False
            )
        except requests.Timeout as e:
            raise TransientNetworkError(
                f"Request timed out after {self.timeout}s: {url}",
                details={"url": url, "original_error": str(e)}
            ) from e
        except requests.RequestException as e:
            raise TransientNetworkError(
                f"Request failed: {url}: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e

    def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        """
        POST a JSON body and return the decoded JSON response.

        Raises:
            TransientNetworkError: Connection failure, timeout, 5xx or an
                                   unreadable body.
            RateLimitedError: HTTP 429.
            ClientRejectedError: Any other non-success status.
        """
        response = self.post(url, payload)
        status = response.status_code

        if status == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            raise RateLimitedError(
                f"Rate limited by {url}",
                details={"url": url, "status_code": status, "retry_after": retry_after},
                retry_after=retry_after
            )

        if status >= 500:
            raise TransientNetworkError(
                f"Server error {status} from {url}",
                details={"url": url, "status_code": status},
                status_code=status
            )

        if not 200 <= status < 300:
            raise ClientRejectedError(
                f"Request rejected with status {status}: {url}",
                details={"url": url, "status_code": status},
                status_code=status
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransientNetworkError(
                f"Unreadable JSON body from {url}",
                details={"url": url, "status_code": status, "original_error": str(e)},
                status_code=status
            ) from e

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()


def parse_retry_after(value: str | None) -> float | None:
    """
    Parse a Retry-After header given in seconds.

    HTTP-date values, negative and non-finite numbers give None.
    """
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        logger.debug(f"Ignoring non-numeric Retry-After header: {value!r}")
        return None
    if not math.isfinite(seconds):
        logger.debug(f"Ignoring non-finite Retry-After header: {value!r}")
        return None
    return seconds if seconds >= 0 else None
