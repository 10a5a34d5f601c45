# structeq/trace.py
# Comparison Trace -- event-sourced diagnostics for the equality engine.
#
# Scope: records why a comparison came out the way it did. Optional; an
# EqualsBuilder without a trace records nothing.
# No file IO. No timestamps. No global mutable state.
# Event IDs come from a per-trace counter; hashes are deterministic.
#
# Canonical import:
#   from structeq.trace import ComparisonTrace, TraceEvent, EventFilter

# ===========================================================================
# SECTION 1 -- IMPORTS
# ===========================================================================

import hashlib
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from structeq.constants import EVENT_MISMATCH, EVENT_TYPES

# ===========================================================================
# SECTION 2 -- CONSTANTS
# ===========================================================================

# Logged in place of non-finite floats so payloads stay hashable and
# printable. The event is never dropped.
_NAN_SENTINEL: str = "NaN_DETECTED"
_INF_SENTINEL: str = "Inf_DETECTED"

_HASH_SEP: str = "|"

# ===========================================================================
# SECTION 3 -- DATACLASSES: TraceEvent, EventFilter
# ===========================================================================

@dataclass(frozen=True)
class TraceEvent:
    """
    One recorded comparison event.

    Fields
    ------
    id   : Deterministic identifier derived from the trace's counter.
    type : One of EVENT_TYPES (MISMATCH, TYPE_MISMATCH, CYCLE_SKIPPED,
           ACCESS_FAULT, BYPASS).
    path : Dotted location of the compared values, e.g. "next.label[1]".
           Empty string for the top-level pair.
    data : Sanitized key-value payload.
    hash : SHA-256 hex digest over (id, type, path, data).
    """
    id:   str
    type: str
    path: str
    data: Dict[str, Any]
    hash: str


@dataclass
class EventFilter:
    """
    Filter for ComparisonTrace.query_events(). Omitted fields apply no
    constraint.

    Fields
    ------
    event_type  : Only events of this type.
    path_prefix : Only events whose path starts with this prefix.
    limit       : At most this many events, oldest first.
    """
    event_type:  Optional[str] = None
    path_prefix: Optional[str] = None
    limit:       Optional[int] = None


# ===========================================================================
# SECTION 4 -- INTERNAL HELPERS
# ===========================================================================

def _sanitize_value(value: Any) -> Any:
    if isinstance(value, float):
        if math.isnan(value):
            return _NAN_SENTINEL
        if math.isinf(value):
            return _INF_SENTINEL
    return value


def _compute_hash(event_id: str, event_type: str, path: str, data: Dict[str, Any]) -> str:
    """
    SHA-256 over the fields in fixed order; data is serialized as
    repr(sorted(data.items())) so insertion order does not matter.
    """
    preimage = (
        event_id
        + _HASH_SEP
        + event_type
        + _HASH_SEP
        + path
        + _HASH_SEP
        + repr(sorted(data.items()))
    )
    return hashlib.sha256(preimage.encode("ascii", errors="replace")).hexdigest()


def _make_event_id(counter: int) -> str:
    return "EVT-{:016d}".format(counter)


# ===========================================================================
# SECTION 5 -- ComparisonTrace
# ===========================================================================

class ComparisonTrace:
    """
    Append-only record of comparison events.

    A trace may be shared across several builders to collect one report for
    a batch of comparisons. It is not thread-safe; give each thread its own.
    """

    def __init__(self) -> None:
        self._store: List[TraceEvent] = []
        self._counter: int = 0

    def record(self, event_type: str, path: str, data: Dict[str, Any]) -> str:
        """
        Append one event and return its ID.

        Raises
        ------
        TraceError : event_type is not one of EVENT_TYPES, or path is not a
                     string.
        """
        if event_type not in EVENT_TYPES:
            raise TraceError("unknown event_type: {!r}".format(event_type))
        if not isinstance(path, str):
            raise TraceError("path must be a string; got: {}".format(type(path)))

        self._counter += 1
        event_id = _make_event_id(self._counter)
        sanitized = {k: _sanitize_value(v) for k, v in data.items()}
        self._store.append(TraceEvent(
            id=event_id,
            type=event_type,
            path=path,
            data=sanitized,
            hash=_compute_hash(event_id, event_type, path, sanitized),
        ))
        return event_id

    def query_events(self, filter: EventFilter) -> List[TraceEvent]:
        """
        Events matching filter, in insertion order.

        Filtering order: event_type, path_prefix, then limit.
        """
        if filter is None:
            raise TraceError("filter must not be None")
        results: List[TraceEvent] = []
        for event in self._store:
            if filter.event_type is not None and event.type != filter.event_type:
                continue
            if filter.path_prefix is not None and not event.path.startswith(filter.path_prefix):
                continue
            results.append(event)
        if filter.limit is not None:
            results = results[: filter.limit]
        return results

    def first_mismatch(self) -> Optional[TraceEvent]:
        """The earliest MISMATCH event, or None."""
        found = self.query_events(EventFilter(event_type=EVENT_MISMATCH, limit=1))
        return found[0] if found else None

    def event_count(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        """Drop all events. The ID counter keeps running."""
        self._store = []


# ===========================================================================
# SECTION 6 -- EXCEPTIONS
# ===========================================================================

class TraceError(Exception):
    """Raised by ComparisonTrace when called with invalid arguments."""


__all__ = [
    "TraceEvent",
    "EventFilter",
    "ComparisonTrace",
    "TraceError",
]
