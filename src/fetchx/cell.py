"""State cells — the settable state an observing instance holds.

A Cell is one observable value. Reading it inside a Derived or Reaction
evaluation registers the dependency; writing a different value re-runs
every dependent.

A StateCell groups the named Cells of one handle (``data``, the progress
flag, ``error``) and writes several of them as one batched change.

Thread safety: call set_scheduler() once from the thread that owns the
event loop. A .set() from any other thread is then marshaled through the
scheduler; writes on the owning thread stay synchronous.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Generic, TypeVar

from fetchx._tracking import active_watcher, batch, notify

T = TypeVar("T")

_scheduler: Callable[[Callable[[], None]], Any] | None = None
_scheduler_thread: threading.Thread | None = None


def set_scheduler(scheduler) -> None:
    """Install the cross-thread marshaller for cell writes.

    Call once from the loop thread, e.g.:
        fetchx.set_scheduler(loop.call_soon_threadsafe)
        fetchx.set_scheduler(app.call_from_thread)

    Pass None to remove it.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


class Cell(Generic[T]):
    """A single settable value with dependency tracking."""

    __slots__ = ("_value", "_dependents")

    def __init__(self, value: T) -> None:
        self._value = value
        self._dependents: set = set()

    def get(self) -> T:
        watcher = active_watcher.get()
        if watcher is not None:
            self._dependents.add(watcher)
            watcher._sources.add(self)
        return self._value

    def peek(self) -> T:
        """Read without registering a dependency."""
        return self._value

    def set(self, value: T) -> None:
        if _scheduler is not None and threading.current_thread() is not _scheduler_thread:
            _scheduler(lambda v=value: self._write(v))
        else:
            self._write(value)

    def _write(self, value: T) -> None:
        old = self._value
        if old is value or old == value:
            return
        self._value = value
        for watcher in list(self._dependents):
            notify(watcher)

    def _drop(self, watcher) -> None:
        self._dependents.discard(watcher)

    def __repr__(self) -> str:
        return f"Cell({self._value!r})"


class StateCell:
    """Named Cells for one instance, updated together."""

    __slots__ = ("_cells",)

    def __init__(self, **fields: Any) -> None:
        self._cells: dict[str, Cell] = {name: Cell(value) for name, value in fields.items()}

    def get(self, name: str) -> Any:
        return self._cells[name].get()

    def peek(self, name: str) -> Any:
        return self._cells[name].peek()

    def set(self, name: str, value: Any) -> None:
        self._cells[name].set(value)

    def update(self, **values: Any) -> None:
        """Write several fields; dependents run once, after all writes."""
        with batch():
            for name, value in values.items():
                self._cells[name].set(value)

    def snapshot(self) -> dict[str, Any]:
        """Tracked read of every field."""
        return {name: cell.get() for name, cell in self._cells.items()}

    def __repr__(self) -> str:
        fields = ", ".join(f"{n}={c.peek()!r}" for n, c in self._cells.items())
        return f"StateCell({fields})"
