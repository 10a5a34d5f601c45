from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import pytest

from structeq import pair_registry


@dataclass(eq=False)
class Record:
    """Plain record: (id, label) with label a sequence of characters."""
    id: int
    label: List[str]


@dataclass(eq=False)
class Node:
    """Singly linked node; next may point back to form a cycle."""
    payload: int
    next: Optional["Node"] = None


@pytest.fixture
def record_factory():
    """Build Record instances from (id, label-string) pairs."""
    def make(record_id: int, label: str) -> Record:
        return Record(id=record_id, label=list(label))
    return make


@pytest.fixture
def two_node_cycle():
    """
    Return a factory for n1 -> n2 -> n1 cycles with the given payloads.
    """
    def make(first: int = 1, second: int = 2):
        n1 = Node(payload=first)
        n2 = Node(payload=second)
        n1.next = n2
        n2.next = n1
        return n1, n2
    return make


@pytest.fixture(autouse=True)
def registry_left_clean():
    """Every test must leave the thread's visited-pair registry removed."""
    yield
    assert not pair_registry.has_registry(), (
        "visited-pair registry still present after test: "
        + repr(pair_registry.snapshot())
    )
