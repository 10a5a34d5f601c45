# usage_example.py
# Minimal usage example for the structeq package.
# This file is not part of the structeq package. For reference only.

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from structeq import (
    ComparisonTrace,
    EqualsBuilder,
    equals,
    reflection_equals,
    transient_field,
)


@dataclass(eq=False)
class Reading:
    sensor: str
    values: np.ndarray
    tags: List[str] = field(default_factory=list)
    cached_mean: Optional[float] = transient_field(default=None)


@dataclass(eq=False)
class Node:
    payload: int
    next: Optional["Node"] = None


# Field-by-field comparison; transient fields are skipped by default.
a = Reading("t1", np.array([1.0, np.nan]), ["x"], cached_mean=1.0)
b = Reading("t1", np.array([1.0, np.nan]), ["x"], cached_mean=2.0)
print(reflection_equals(a, b))                        # True
print(reflection_equals(a, b, test_transients=True))  # False

# Floating-point values compare by bit pattern: NaN equals NaN, 0.0 != -0.0.
print(equals(float("nan"), float("nan")))  # True
print(equals(0.0, -0.0))                   # False

# Cyclic graphs terminate.
n1, n2 = Node(1), Node(2)
n1.next, n2.next = n2, n1
m1, m2 = Node(1), Node(2)
m1.next, m2.next = m2, m1
print(equals(n1, m1))  # True

# Locating the first difference.
trace = ComparisonTrace()
m2.payload = 3
print(equals(n1, m1, trace=trace))  # False
print(trace.first_mismatch().path)  # next.payload

# Accumulating comparisons by hand.
builder = (
    EqualsBuilder()
    .append_int(1, 1)
    .append_double_array([1.0, 2.0], [1.0, 2.0])
    .append(["a", "b"], ["a", "b"])
)
print(builder.build())  # True
