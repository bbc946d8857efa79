"""Write coordinator — mutations with optimistic updates and rollback."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, TypeVar

from fetchx import transport
from fetchx._tracking import batch
from fetchx.handle import Handle
from fetchx.keys import resource_key
from fetchx.registry import MISSING, Registration

if TYPE_CHECKING:
    from fetchx.context import CacheContext

logger = logging.getLogger("fetchx.write")

R = TypeVar("R")

PostFn = Callable[[str, Any], Awaitable[Any]]


@dataclasses.dataclass(frozen=True)
class PostOptions:
    """Options for a mutation; per-call overrides replace these field by field.

    ``optimistic_data`` is either a literal value or an updater called as
    ``updater(previous, body)``. None means no optimistic update.
    """

    post_fn: PostFn | None = None
    query: Mapping[str, str] | None = None
    related_read_key: str | None = None
    related_read_query: Mapping[str, str] | None = None
    optimistic_data: Any = None
    use_response_data: bool = False

    def merged(self, overrides: Mapping[str, Any]) -> PostOptions:
        return dataclasses.replace(self, **overrides)


def _optimistic_value(option: Any, previous: Any, body: Any) -> Any:
    if callable(option):
        return option(previous, body)
    return option


class MutateHandle(Handle[R]):
    """Exposes ``data``, ``is_posting``, ``error`` and ``mutate()``."""

    pending_name = "is_posting"
    id_prefix = "write"

    def __init__(self, context: CacheContext, address: str, options: PostOptions | None = None) -> None:
        self.address = address
        self.options = options or PostOptions()
        super().__init__(context, resource_key(address, self.options.query), data=None, pending=False)

    @property
    def is_posting(self) -> bool:
        return self._state.get("pending")

    async def mutate(self, body: Any = None, **overrides: Any) -> None:
        """Send ``body`` and reconcile every affected instance.

        Failures are published on ``error`` and never raised. Results of a
        call superseded by a newer ``mutate()`` on this handle are dropped,
        including their propagation and rollback.
        """
        opts = self.options.merged(overrides)
        ctx = self.context
        post_key = resource_key(self.address, opts.query)
        read_key = None
        if opts.related_read_key:
            read_key = resource_key(opts.related_read_key, opts.related_read_query)

        epoch = ctx.write_epochs.next(self.instance_id, post_key)

        optimistic = opts.optimistic_data is not None
        if optimistic:
            try:
                self.set_data(_optimistic_value(opts.optimistic_data, self.peek_data(), body))
            except Exception:
                logger.exception("Optimistic update of %s failed for %s", post_key, self.instance_id)
            if read_key is not None:
                ctx.registry.each(
                    read_key,
                    lambda _id, reg: reg.set_data(_optimistic_value(opts.optimistic_data, reg.peek(), body)),
                )
        else:
            self._state.set("pending", True)

        post_fn = opts.post_fn or transport.poster
        try:
            result = await post_fn(post_key, body)
        except Exception as exc:
            if not ctx.write_epochs.is_current(self.instance_id, post_key, epoch):
                logger.debug("Dropping stale failure for %s (epoch %d)", post_key, epoch)
                return
            logger.warning("Post to %s failed: %s", post_key, exc)
            with batch():
                self._state.update(error=exc, pending=False)
                if optimistic:
                    self.set_data(ctx.write_cache.get(self.instance_id, post_key, None))
            if optimistic and read_key is not None:
                self._roll_back_readers(read_key)
            return

        if not ctx.write_epochs.is_current(self.instance_id, post_key, epoch):
            logger.debug("Dropping stale response for %s (epoch %d)", post_key, epoch)
            return

        ctx.write_cache.set(self.instance_id, post_key, result)
        self._state.update(data=result, error=None, pending=False)

        if read_key is None:
            return
        if opts.use_response_data:
            ctx.registry.each(read_key, lambda _id, reg: reg.set_data(result))
            ctx.read_cache.set_everywhere(read_key, result)
        else:
            ctx.registry.each(read_key, lambda _id, reg: ctx.spawn(reg.trigger()))

    def _roll_back_readers(self, read_key: str) -> None:
        """Restore each reader of read_key to its own last fetched value."""
        ctx = self.context
        for instance_id in ctx.read_cache.instances():
            saved = ctx.read_cache.get(instance_id, read_key)
            registration: Registration | None = ctx.registry.lookup(instance_id, read_key)
            if saved is MISSING or registration is None:
                continue
            try:
                registration.set_data(saved)
            except Exception:
                logger.exception("Rollback of %s failed for %s", read_key, instance_id)
