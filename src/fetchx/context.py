"""CacheContext — owner of every registry, ledger and store.

One context is normally shared by the whole process so that instances
observing the same key see each other's data. Tests and full resets use
reset_all_caches(). Module-level shortcuts operate on a lazily created
default context, replaceable with set_default_context().

Handles spawn their work as asyncio tasks, so observe_resource() and the
propagation paths must run inside the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Mapping

from fetchx.keys import resource_key
from fetchx.ledger import EpochLedger, OpKind
from fetchx.read import FetchFn, ReadHandle
from fetchx.registry import CacheStore, SubscriberRegistry
from fetchx.write import MutateHandle, PostFn, PostOptions

logger = logging.getLogger("fetchx.context")

DEFAULT_RETRY_DELAY = 1.0


class CacheContext:
    """Process-wide coordination state with an explicit reset."""

    def __init__(self, *, retry_delay: float = DEFAULT_RETRY_DELAY) -> None:
        self.retry_delay = retry_delay
        self.registry = SubscriberRegistry()
        self.read_epochs = EpochLedger(OpKind.READ)
        self.write_epochs = EpochLedger(OpKind.WRITE)
        self.read_cache = CacheStore()
        self.write_cache = CacheStore()
        self._tasks: set[asyncio.Task] = set()
        self._timers: set[asyncio.TimerHandle] = set()

    # --- public surface ---

    def observe_resource(
        self,
        address: str,
        *,
        fetch_fn: FetchFn | None = None,
        query: Mapping[str, str] | None = None,
        keep_previous_data: bool = False,
    ) -> ReadHandle:
        """Create a read instance for address(+query), register it and auto-start it."""
        handle = ReadHandle(
            self, address, fetch_fn=fetch_fn, query=query, keep_previous_data=keep_previous_data
        )
        return handle.attach()

    def refresh_resource(self, address: str, *, query: Mapping[str, str] | None = None) -> None:
        """Re-fetch in every instance registered for the key. Fire-and-forget."""
        key = resource_key(address, query)
        count = self.registry.each(key, lambda _id, reg: self.spawn(reg.trigger()))
        logger.debug("Refresh of %s reached %d instance(s)", key, count)

    def mutate_resource(
        self,
        address: str,
        *,
        post_fn: PostFn | None = None,
        query: Mapping[str, str] | None = None,
        related_read_key: str | None = None,
        related_read_query: Mapping[str, str] | None = None,
        optimistic_data: Any = None,
        use_response_data: bool = False,
    ) -> MutateHandle:
        options = PostOptions(
            post_fn=post_fn,
            query=query,
            related_read_key=related_read_key,
            related_read_query=related_read_query,
            optimistic_data=optimistic_data,
            use_response_data=use_response_data,
        )
        return MutateHandle(self, address, options)

    def reset_all_caches(self) -> None:
        """Wipe registrations, both ledgers and both stores; cancel pending retries.

        In-flight operations still complete, but their epochs are gone so
        they commit nothing.
        """
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self.registry.clear()
        self.read_epochs.clear()
        self.write_epochs.clear()
        self.read_cache.clear()
        self.write_cache.clear()
        logger.debug("All caches reset")

    # --- scheduling ---

    def spawn(self, coro: Coroutine[Any, Any, Any] | Awaitable[Any]) -> asyncio.Future:
        """Run coro as a task on the running loop, holding a reference until done."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def call_later(self, delay: float, fn: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        timer: asyncio.TimerHandle | None = None

        def _fire() -> None:
            self._timers.discard(timer)
            fn()

        timer = loop.call_later(delay, _fire)
        self._timers.add(timer)
        return timer

    async def settle(self) -> None:
        """Wait until no spawned task is pending. Retry timers are not awaited."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_retries(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled())


_default: CacheContext | None = None


def get_default_context() -> CacheContext:
    global _default
    if _default is None:
        _default = CacheContext()
    return _default


def set_default_context(context: CacheContext | None) -> None:
    """Replace the context used by the module-level shortcuts (None recreates it lazily)."""
    global _default
    _default = context


def observe_resource(address: str, **options: Any) -> ReadHandle:
    return get_default_context().observe_resource(address, **options)


def refresh_resource(address: str, *, query: Mapping[str, str] | None = None) -> None:
    get_default_context().refresh_resource(address, query=query)


def mutate_resource(address: str, **options: Any) -> MutateHandle:
    return get_default_context().mutate_resource(address, **options)


def reset_all_caches() -> None:
    get_default_context().reset_all_caches()
