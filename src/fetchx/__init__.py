"""fetchx: shared fetch coordination with staleness rejection and optimistic writes."""

from importlib.metadata import version as _version

__version__ = _version("fetchx")

from fetchx._tracking import batch
from fetchx.cell import Cell, StateCell, set_scheduler
from fetchx.context import (
    CacheContext,
    get_default_context,
    mutate_resource,
    observe_resource,
    refresh_resource,
    reset_all_caches,
    set_default_context,
)
from fetchx.derived import Derived
from fetchx.errors import FetchxError, TransportError
from fetchx.handle import Status
from fetchx.keys import resource_key
from fetchx.ledger import EpochLedger, OpKind
from fetchx.reaction import Reaction, reaction
from fetchx.read import ReadHandle
from fetchx.registry import CacheStore, Registration, SubscriberRegistry
from fetchx.write import MutateHandle, PostOptions
# textual NOT auto-imported — opt-in only

__all__ = [
    "CacheContext",
    "get_default_context",
    "set_default_context",
    "observe_resource",
    "refresh_resource",
    "mutate_resource",
    "reset_all_caches",
    "ReadHandle",
    "MutateHandle",
    "PostOptions",
    "Status",
    "resource_key",
    "EpochLedger",
    "OpKind",
    "SubscriberRegistry",
    "CacheStore",
    "Registration",
    "Cell",
    "StateCell",
    "set_scheduler",
    "Derived",
    "Reaction",
    "reaction",
    "batch",
    "FetchxError",
    "TransportError",
]
