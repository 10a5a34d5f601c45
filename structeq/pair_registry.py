# structeq/pair_registry.py
# Visited-Pair Registry -- cycle guard for reflective comparison.
#
# Holds the identity pairs (id(lhs), id(rhs)) whose fields are being walked
# right now on the calling thread. A pair is registered immediately before
# a field walk and unregistered immediately after it, so the registry only
# ever reflects in-progress comparisons.
#
# Storage is thread-local: comparisons running on different threads never
# see each other's pairs, and no lock is needed. When the last pair of a
# thread is removed, the thread's slot itself is deleted.
#
# Identity keys are safe for the duration of a walk: both objects are
# referenced from the caller's stack frame, so their ids cannot be reused.

import threading
from typing import Any, FrozenSet, Set, Tuple

_LOCAL = threading.local()

Pair = Tuple[int, int]


def _pair(lhs: Any, rhs: Any) -> Pair:
    return (id(lhs), id(rhs))


def _pairs() -> Set[Pair]:
    pairs = getattr(_LOCAL, "pairs", None)
    if pairs is None:
        pairs = set()
        _LOCAL.pairs = pairs
    return pairs


def is_registered(lhs: Any, rhs: Any) -> bool:
    """
    True if (lhs, rhs) or (rhs, lhs) is mid-comparison on this thread.

    Pure read; never creates the thread's slot.
    """
    pairs = getattr(_LOCAL, "pairs", None)
    if not pairs:
        return False
    return _pair(lhs, rhs) in pairs or _pair(rhs, lhs) in pairs


def register(lhs: Any, rhs: Any) -> None:
    """Mark (lhs, rhs) as mid-comparison on this thread."""
    _pairs().add(_pair(lhs, rhs))


def unregister(lhs: Any, rhs: Any) -> None:
    """
    Remove (lhs, rhs). Deletes the thread's slot once it holds no pairs.
    Removing a pair that is not registered is a no-op.
    """
    pairs = getattr(_LOCAL, "pairs", None)
    if pairs is None:
        return
    pairs.discard(_pair(lhs, rhs))
    if not pairs:
        del _LOCAL.pairs


def has_registry() -> bool:
    """True while this thread holds a registry slot."""
    return hasattr(_LOCAL, "pairs")


def snapshot() -> FrozenSet[Pair]:
    """Immutable copy of this thread's registered pairs."""
    return frozenset(getattr(_LOCAL, "pairs", ()))


__all__ = [
    "is_registered",
    "register",
    "unregister",
    "has_registry",
    "snapshot",
]
