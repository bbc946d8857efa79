"""Dependency tracking and write batching for state cells.

While a Derived or Reaction evaluates, it is the ``active_watcher``; every
Cell read in that window adds it as a dependent. A write re-runs the
dependents, unless a ``batch()`` is open, in which case they wait in the
flush queue and run once when the outermost batch closes.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fetchx.derived import Derived
    from fetchx.reaction import Reaction

    Watcher = Derived | Reaction

active_watcher: contextvars.ContextVar[Watcher | None] = contextvars.ContextVar(
    "active_watcher", default=None
)


class _FlushQueue:
    """Open batch depth and the watchers waiting for it to reach zero."""

    __slots__ = ("depth", "waiting")

    def __init__(self) -> None:
        self.depth = 0
        self.waiting: dict[Watcher, None] = {}  # ordered, no duplicates

    def flush(self) -> None:
        while self.waiting:
            ready = list(self.waiting)
            self.waiting.clear()
            for watcher in ready:
                watcher._run()


_queue = _FlushQueue()


def notify(watcher: Watcher) -> None:
    if _queue.depth:
        _queue.waiting[watcher] = None
        return
    watcher._run()


@contextmanager
def batch():
    """Hold dependents of every write made inside until the block exits.

    A handle publishing ``data``, its progress flag and ``error`` together
    is seen by subscribers as one change.
    """
    _queue.depth += 1
    try:
        yield
    finally:
        _queue.depth -= 1
        if _queue.depth == 0:
            _queue.flush()
