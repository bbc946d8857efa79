"""Textual integration for fetchx. Opt-in — requires textual.

bind() re-renders a widget from a handle's state. Guarding, NoMatches
handling and thread marshaling live here, not at callsites, so the core
stays UI-agnostic.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from fetchx.reaction import reaction

# id(app) present <-> inside a pause() block for that app.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound renders while widgets are being replaced."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, handle, render, *, fire_immediately=True):
    """Call render(handle.snapshot()) whenever the handle's state changes.

    Renders are skipped while the app is not running or paused, NoMatches
    from widget queries is swallowed, and calls from other threads go
    through app.call_from_thread. Returns the reaction; dispose() unbinds.

    Usage:
        items = ctx.observe_resource("/items", fetch_fn=load_items)
        fetchx.textual.bind(app, items, lambda s: table.update(s["data"]))
    """
    owner = threading.get_ident()

    def _guarded(snapshot):
        if not is_safe(app):
            return
        if threading.get_ident() != owner:
            app.call_from_thread(_render, snapshot)
        else:
            _render(snapshot)

    def _render(snapshot):
        try:
            render(snapshot)
        except NoMatches:
            pass

    return reaction(handle.snapshot, _guarded, fire_immediately=fire_immediately)
