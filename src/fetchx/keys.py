"""Resource keys — the canonical string identity of a remote resource."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlencode


def resource_key(address: str, query: Mapping[str, str] | None = None) -> str:
    """Return ``address`` extended with its encoded query parameters.

    Parameters are emitted in the mapping's iteration order; nothing is
    sorted, so callers must pass equal queries in the same order to get
    equal keys. An empty or missing query leaves the address unchanged.

        >>> resource_key("/items", {"page": "2", "q": "a b"})
        '/items?page=2&q=a+b'
    """
    if not query:
        return address
    return f"{address}?{urlencode(query)}"
