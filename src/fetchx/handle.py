"""Shared plumbing for read and mutate handles.

A handle is one observing instance: it owns an instance id minted once
for its lifetime, a StateCell with ``data``, a progress flag and
``error``, and a Derived status describing where it is in

    IDLE -> PENDING -> READY | FAILED -> (retry) PENDING
"""

from __future__ import annotations

import enum
import itertools
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from fetchx.cell import StateCell
from fetchx.derived import Derived

if TYPE_CHECKING:
    from fetchx.context import CacheContext

T = TypeVar("T")

# Never reset, not even by reset_all_caches(): ids are not reused.
_ids = itertools.count(1)


def new_instance_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


class Status(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class Handle(Generic[T]):
    """One observing instance: its id, state cell and derived status."""

    pending_name = "is_pending"
    id_prefix = "instance"

    def __init__(self, context: CacheContext, key: str, *, data: T | None, pending: bool) -> None:
        self.context = context
        self.key = key
        self.instance_id = new_instance_id(self.id_prefix)
        self._state = StateCell(data=data, pending=pending, error=None)
        self._status = Derived(self._compute_status)

    @property
    def data(self) -> T | None:
        return self._state.get("data")

    @property
    def error(self) -> BaseException | None:
        return self._state.get("error")

    @property
    def status(self) -> Status:
        return self._status.get()

    def _compute_status(self) -> Status:
        if self._state.get("pending"):
            return Status.PENDING
        if self._state.get("error") is not None:
            return Status.FAILED
        if self._state.get("data") is not None:
            return Status.READY
        return Status.IDLE

    def set_data(self, value: Any) -> None:
        self._state.set("data", value)

    def peek_data(self) -> Any:
        return self._state.peek("data")

    def snapshot(self) -> dict[str, Any]:
        """Tracked read of the public state, for reactions and renderers."""
        state = self._state.snapshot()
        return {"data": state["data"], self.pending_name: state["pending"], "error": state["error"]}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r}, {self.instance_id}, {self._state.peek('data')!r})"
