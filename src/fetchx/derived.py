"""Derived values — read-only state computed from cells.

A Derived wraps a function, records which cells it read, and caches the
result until one of them changes. Evaluation is lazy: invalidation only
marks it dirty and forwards the notification to its own dependents.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from fetchx._tracking import active_watcher, notify

T = TypeVar("T")

_UNSET = object()


class Derived(Generic[T]):
    """A cached value recomputed on read after its sources change."""

    __slots__ = ("_fn", "_value", "_dirty", "_sources", "_dependents")

    def __init__(self, fn: Callable[[], T]) -> None:
        self._fn = fn
        self._value = _UNSET
        self._dirty = True
        self._sources: set = set()
        self._dependents: set = set()

    def get(self) -> T:
        watcher = active_watcher.get()
        if watcher is not None:
            self._dependents.add(watcher)
            watcher._sources.add(self)
        if self._dirty:
            self._recompute()
        return self._value

    def _recompute(self) -> None:
        for source in self._sources:
            source._drop(self)
        self._sources.clear()

        token = active_watcher.set(self)
        try:
            self._value = self._fn()
        finally:
            active_watcher.reset(token)
        self._dirty = False

    def _run(self) -> None:
        if self._dirty:
            return
        self._dirty = True
        for watcher in list(self._dependents):
            notify(watcher)

    def _drop(self, watcher) -> None:
        self._dependents.discard(watcher)

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"Derived({getattr(self._fn, '__name__', 'fn')}, {state})"
