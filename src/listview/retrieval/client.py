"""HTTP client for the remote list endpoint."""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional

import requests
from jsonschema import Draft202012Validator
from pydantic import BaseModel, Field

from listview.retrieval.errors import ResponseFormatError, ServerError, TransportError
from listview.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ENDPOINT_URL = "https://jsonplaceholder.typicode.com/posts"
DEFAULT_TIMEOUT_SECONDS = 20
DEFAULT_USER_AGENT = "listview/0.1"
TOTAL_COUNT_HEADER = "x-total-count"

ROW_LIST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id"],
    },
}

_row_list_validator = Draft202012Validator(ROW_LIST_SCHEMA)


class FetchResult(BaseModel):
    """One page of rows plus the server's total match count."""

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    status_code: Optional[int] = None
    duration_seconds: Optional[float] = None


def _parse_total_count(headers: Mapping[str, str], fallback: int) -> int:
    raw = headers.get(TOTAL_COUNT_HEADER)
    if raw is None:
        logger.warning(f"Response has no {TOTAL_COUNT_HEADER} header, using row count {fallback}")
        return fallback
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning(f"Unparsable {TOTAL_COUNT_HEADER} header {raw!r}, using row count {fallback}")
        return fallback
    if value < 0:
        logger.warning(f"Negative {TOTAL_COUNT_HEADER} header {raw!r}, using row count {fallback}")
        return fallback
    return value


class ListEndpointClient:
    """Fetches pages from a json-server style list resource."""

    def __init__(
        self,
        url: str = DEFAULT_ENDPOINT_URL,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            url: List resource URL (query parameters are appended per request)
            timeout_seconds: Per-request timeout
            user_agent: User-Agent header value
            session: Optional session to reuse. Sessions created here are closed by close().
        """
        self.url = url
        self.timeout = timeout_seconds
        self.user_agent = user_agent
        self._owns_session = session is None
        self.session = session or requests.Session()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    def fetch_page(self, params: Mapping[str, str]) -> FetchResult:
        """
        Fetch one page.

        Args:
            params: Encoded query parameters (see listview.query.encoder)

        Returns:
            FetchResult with the page rows and total count

        Raises:
            TransportError: Timeout, connection failure or other transport problem
            ServerError: Non-2xx response
            ResponseFormatError: 2xx response whose body is not a row list
        """
        start_time = time.monotonic()
        try:
            response = self.session.get(
                self.url,
                params=dict(params),
                headers=self._get_headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise ServerError(f"List endpoint returned HTTP {status_code}: {e}", status_code=status_code) from e
        except requests.Timeout as e:
            raise TransportError(f"List endpoint timed out after {self.timeout}s: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"List endpoint unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ResponseFormatError(
                f"List endpoint returned non-JSON body: {e}", status_code=response.status_code
            ) from e

        error = next(iter(_row_list_validator.iter_errors(body)), None)
        if error is not None:
            raise ResponseFormatError(
                f"List endpoint returned malformed rows: {error.message}",
                status_code=response.status_code,
            )

        total_count = _parse_total_count(response.headers, fallback=len(body))
        duration_seconds = time.monotonic() - start_time
        logger.debug(f"Fetched {len(body)} rows of {total_count} in {duration_seconds:.3f}s")
        return FetchResult(
            rows=body,
            total_count=total_count,
            status_code=response.status_code,
            duration_seconds=duration_seconds,
        )

    async def fetch_page_async(self, params: Mapping[str, str]) -> FetchResult:
        """fetch_page on a worker thread; the loop only suspends here."""
        return await asyncio.to_thread(self.fetch_page, params)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "ListEndpointClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
