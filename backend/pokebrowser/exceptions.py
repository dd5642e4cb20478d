# backend/pokebrowser/exceptions.py

from typing import Optional


class PokeBrowserError(Exception):
    """Base error for failures talking to PokeAPI."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NetworkError(PokeBrowserError):
    """Transport failure, timeout or unexpected HTTP status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, url=url)
        self.status_code = status_code


class DecodeError(PokeBrowserError):
    """Response body was not JSON or did not match the expected shape."""


class NotFound(PokeBrowserError):
    """The requested resource does not exist (HTTP 404)."""
