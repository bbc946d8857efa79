"""Exceptions raised by fetchx."""

from __future__ import annotations


class FetchxError(Exception):
    """Base exception for fetchx."""


class TransportError(FetchxError):
    """The default transport got a non-success HTTP response."""

    def __init__(self, verb: str, url: str, status_code: int, reason: str) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Failed to {verb} {url}:\n  {status_code} {reason}")
