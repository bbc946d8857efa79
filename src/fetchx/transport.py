"""Default injected transports over httpx.

Both functions decode a JSON body and raise TransportError for any
non-2xx response. Pass ``client=`` to reuse a configured AsyncClient;
otherwise a short-lived one is opened per call.
"""

from __future__ import annotations

from typing import Any

import httpx

from fetchx.errors import TransportError


async def getter(url: str, *, client: httpx.AsyncClient | None = None) -> Any:
    if client is None:
        async with httpx.AsyncClient() as owned:
            return await getter(url, client=owned)
    response = await client.get(url)
    if not response.is_success:
        raise TransportError("fetch", url, response.status_code, response.reason_phrase)
    return response.json()


async def poster(url: str, body: Any = None, *, client: httpx.AsyncClient | None = None) -> Any:
    """POST ``body`` as JSON (no body at all when it is falsy)."""
    if client is None:
        async with httpx.AsyncClient() as owned:
            return await poster(url, body, client=owned)
    if body:
        response = await client.post(url, json=body)
    else:
        response = await client.post(url, headers={"Content-Type": "application/json"})
    if not response.is_success:
        raise TransportError("post", url, response.status_code, response.reason_phrase)
    return response.json()
