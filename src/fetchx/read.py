"""Read coordinator — one instance observing one resource key."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, TypeVar

from fetchx import transport
from fetchx.handle import Handle
from fetchx.keys import resource_key
from fetchx.reaction import Reaction, reaction
from fetchx.registry import Registration

if TYPE_CHECKING:
    from fetchx.context import CacheContext

logger = logging.getLogger("fetchx.read")

T = TypeVar("T")

FetchFn = Callable[[str], Awaitable[Any]]


class ReadHandle(Handle[T]):
    """Exposes ``data``, ``is_loading`` and ``error`` for one resource.

    With ``keep_previous_data`` the handle starts from whatever value any
    other instance cached for the same key, and refreshes happen without
    raising ``is_loading``.
    """

    pending_name = "is_loading"
    id_prefix = "read"

    def __init__(
        self,
        context: CacheContext,
        address: str,
        *,
        fetch_fn: FetchFn | None = None,
        query: Mapping[str, str] | None = None,
        keep_previous_data: bool = False,
    ) -> None:
        key = resource_key(address, query)
        seed = context.read_cache.first(key) if keep_previous_data else None
        super().__init__(context, key, data=seed, pending=seed is None)
        self.fetch_fn = fetch_fn or transport.getter
        self.keep_previous_data = keep_previous_data
        self._autostart: Reaction | None = None
        self._retry: asyncio.TimerHandle | None = None

    @property
    def is_loading(self) -> bool:
        return self._state.get("pending")

    def attach(self) -> ReadHandle[T]:
        """(Re)register this instance for its key and start fetching if empty.

        Safe to call repeatedly: the registration is overwritten, and the
        fetch only fires when ``data`` is or becomes None.
        """
        self.context.registry.register(
            self.instance_id,
            self.key,
            Registration(trigger=self.trigger, set_data=self.set_data, peek=self.peek_data),
        )
        if self._autostart is None or self._autostart.disposed:
            self._autostart = reaction(
                lambda: self._state.get("data") is None,
                self._on_empty,
                fire_immediately=True,
            )
        return self

    def detach(self) -> None:
        """Stop auto-fetching and leave the registry; cached values stay."""
        if self._autostart is not None:
            self._autostart.dispose()
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None
        self.context.registry.unregister(self.instance_id, self.key)

    def _on_empty(self, empty: bool) -> None:
        if empty:
            self.context.spawn(self.trigger())

    async def trigger(self) -> None:
        """Fetch the resource and publish the result if still current.

        A failure while no data is held schedules another attempt after
        ``context.retry_delay`` seconds. There is no cap and no backoff:
        an always-failing fetch is retried for as long as the handle stays
        empty, until a newer trigger supersedes it, the handle is detached,
        or the context is reset.
        """
        ledger = self.context.read_epochs
        epoch = ledger.next(self.instance_id, self.key)

        if not self.keep_previous_data:
            self._state.set("pending", True)

        try:
            result = await self.fetch_fn(self.key)
        except Exception as exc:
            if not ledger.is_current(self.instance_id, self.key, epoch):
                logger.debug("Dropping stale failure for %s (epoch %d)", self.key, epoch)
                return
            logger.warning("Fetch of %s failed: %s", self.key, exc)
            self._state.update(error=exc, pending=False)
            if self._state.peek("data") is None:
                self._schedule_retry()
            return

        if not ledger.is_current(self.instance_id, self.key, epoch):
            logger.debug("Dropping stale result for %s (epoch %d)", self.key, epoch)
            return

        if self._retry is not None:
            self._retry.cancel()
            self._retry = None
        self.context.read_cache.set(self.instance_id, self.key, result)
        self._state.update(data=result, error=None, pending=False)

    def _schedule_retry(self) -> None:
        if self._retry is not None:
            self._retry.cancel()
        delay = self.context.retry_delay
        logger.debug("Retrying %s in %ss", self.key, delay)
        self._retry = self.context.call_later(delay, self._fire_retry)

    def _fire_retry(self) -> None:
        self._retry = None
        self.context.spawn(self.trigger())
