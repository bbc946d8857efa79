"""Epoch ledgers — detect superseded async operations.

Each operation mints a fresh epoch for its (instance, key) before its
first suspension point and compares it with the ledger before committing.
A mismatch means a newer operation for the same instance and key has
*started* since, so the older result is dropped regardless of which one
finishes first.
"""

from __future__ import annotations

import enum


class OpKind(enum.Enum):
    READ = "read"
    WRITE = "write"


class EpochLedger:
    """Per-(instance, key) monotonically increasing counters."""

    __slots__ = ("kind", "_epochs")

    def __init__(self, kind: OpKind) -> None:
        self.kind = kind
        self._epochs: dict[str, dict[str, int]] = {}

    def next(self, instance_id: str, key: str) -> int:
        """Increment and return the epoch for (instance_id, key)."""
        per_instance = self._epochs.setdefault(instance_id, {})
        epoch = per_instance.get(key, 0) + 1
        per_instance[key] = epoch
        return epoch

    def current(self, instance_id: str, key: str) -> int | None:
        return self._epochs.get(instance_id, {}).get(key)

    def is_current(self, instance_id: str, key: str, epoch: int) -> bool:
        return self.current(instance_id, key) == epoch

    def clear(self) -> None:
        self._epochs.clear()

    def __repr__(self) -> str:
        return f"EpochLedger({self.kind.value}, instances={len(self._epochs)})"
