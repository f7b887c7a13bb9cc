"""Failure taxonomy for list endpoint fetches."""

from typing import Optional


class FetchError(Exception):
    """Base class for any fetch that did not produce a usable page."""


class TransportError(FetchError):
    """Network unreachable, connection reset, timeout."""


class ServerError(FetchError):
    """The endpoint answered, but not with a usable 2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResponseFormatError(ServerError):
    """2xx response whose body is not a list of row objects."""
