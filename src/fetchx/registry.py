"""Subscriber registry and cache store.

Both are double maps keyed by instance id first, then resource key, so
no two instances ever share an epoch, a callback slot or a cached value.
Cross-instance work is explicit: iterate every instance holding an entry
for one key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator

logger = logging.getLogger("fetchx.registry")

MISSING: Any = object()


@dataclass(frozen=True)
class Registration:
    """Callbacks one instance exposes for one resource key."""

    trigger: Callable[[], Awaitable[None]]
    set_data: Callable[[Any], None]
    peek: Callable[[], Any]


class SubscriberRegistry:
    """resource key -> instances currently interested in it.

    Registering again for the same (instance, key) overwrites the previous
    callbacks, so the latest closures always win.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Registration]] = {}

    def register(self, instance_id: str, key: str, registration: Registration) -> None:
        self._entries.setdefault(instance_id, {})[key] = registration

    def unregister(self, instance_id: str, key: str) -> None:
        per_instance = self._entries.get(instance_id)
        if per_instance is None:
            return
        per_instance.pop(key, None)
        if not per_instance:
            del self._entries[instance_id]

    def lookup(self, instance_id: str, key: str) -> Registration | None:
        return self._entries.get(instance_id, {}).get(key)

    def subscribers(self, key: str) -> list[tuple[str, Registration]]:
        """Snapshot of (instance_id, registration) pairs for key."""
        return [
            (instance_id, per_instance[key])
            for instance_id, per_instance in self._entries.items()
            if key in per_instance
        ]

    def each(self, key: str, fn: Callable[[str, Registration], None]) -> int:
        """Apply fn to every subscriber of key; one failure does not stop the rest.

        Returns the number of subscribers visited.
        """
        visited = self.subscribers(key)
        for instance_id, registration in visited:
            try:
                fn(instance_id, registration)
            except Exception:
                logger.exception("Subscriber %s failed while updating %s", instance_id, key)
        return len(visited)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return sum(len(per_instance) for per_instance in self._entries.values())


class CacheStore:
    """Last successfully applied value per (instance, key)."""

    def __init__(self) -> None:
        self._values: dict[str, dict[str, Any]] = {}

    def get(self, instance_id: str, key: str, default: Any = MISSING) -> Any:
        return self._values.get(instance_id, {}).get(key, default)

    def set(self, instance_id: str, key: str, value: Any) -> None:
        self._values.setdefault(instance_id, {})[key] = value

    def first(self, key: str, default: Any = None) -> Any:
        """Any instance's value for key; which one is unspecified."""
        for per_instance in self._values.values():
            if key in per_instance:
                return per_instance[key]
        return default

    def instances(self) -> Iterator[str]:
        return iter(list(self._values))

    def set_everywhere(self, key: str, value: Any) -> None:
        """Overwrite key for every instance the store knows about."""
        for per_instance in self._values.values():
            per_instance[key] = value

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return sum(len(per_instance) for per_instance in self._values.values())
