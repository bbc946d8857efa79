"""Reactions — side effects driven by cell changes.

reaction(data_fn, effect_fn) re-evaluates data_fn whenever a cell it read
changes and calls effect_fn only when the result differs from the last
one. Read handles use it to auto-start a fetch while ``data`` is empty;
the Textual bridge uses it to re-render on state changes.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from fetchx._tracking import active_watcher

T = TypeVar("T")

_NOTHING = object()


class Reaction:
    """Tracks data_fn's cells and feeds changed results to effect_fn."""

    __slots__ = ("_data_fn", "_effect_fn", "_last", "_sources", "_disposed")

    def __init__(self, data_fn: Callable[[], T], effect_fn: Callable[[T], None]) -> None:
        self._data_fn = data_fn
        self._effect_fn = effect_fn
        self._last = _NOTHING
        self._sources: set = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _track(self):
        for source in self._sources:
            source._drop(self)
        self._sources.clear()

        token = active_watcher.set(self)
        try:
            return self._data_fn()
        finally:
            active_watcher.reset(token)

    def _run(self) -> None:
        if self._disposed:
            return
        value = self._track()
        if self._last is _NOTHING or value != self._last:
            self._last = value
            self._effect_fn(value)

    def dispose(self) -> None:
        """Disconnect from every tracked cell. Later writes are ignored."""
        self._disposed = True
        for source in self._sources:
            source._drop(self)
        self._sources.clear()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Reaction({getattr(self._data_fn, '__name__', 'fn')}, {state})"


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> Reaction:
    """Track data_fn; call effect_fn when its result changes.

    With fire_immediately the effect also runs for the initial value.

    Usage:
        data = Cell(None)
        r = reaction(lambda: data.get() is None, on_empty, fire_immediately=True)
        # on_empty(True) ran; it runs again only when emptiness flips
        r.dispose()
    """
    r = Reaction(data_fn, effect_fn)
    if fire_immediately:
        r._run()
    else:
        r._last = r._track()
    return r
