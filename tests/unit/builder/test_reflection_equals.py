# =============================================================================
# structeq -- reflective comparison unit tests
# File:   tests/unit/builder/test_reflection_equals.py
# =============================================================================
#
# Coverage:
#   Record scenario          -- (id, label) records
#   Cycle safety             -- self loops, two-node cycles, shape mismatch
#   Type reconciliation      -- subtype / supertype, reflect_up_to, unrelated
#   Field selection          -- exclude list, exclusion marker, compare=False,
#                               transients, ClassVar, dunder slots
#   Access faults            -- missing attribute, raising property
#   Bypass / opaque types    -- own equality fallback
#   Properties               -- reflexivity, symmetry, None handling
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import ClassVar, List

import pytest

from structeq import (
    ComparisonConfig,
    EqualsBuilder,
    FieldRegistry,
    equals,
    excluded_field,
    reflection_equals,
    transient_field,
)
from structeq import pair_registry


# ---------------------------------------------------------------------------
# Model types
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Base:
    a: int


@dataclass(eq=False)
class Derived(Base):
    b: int = 0


class SameShapeSub(Base):
    """Subclass that declares no fields of its own."""


@dataclass(eq=False)
class Cat:
    name: str


@dataclass(eq=False)
class Dog:
    name: str


@dataclass(eq=False)
class Cached:
    value: int
    cache: int = transient_field(default=0)


@dataclass(eq=False)
class Marked:
    value: int
    audit: str = excluded_field(default="")
    note: str = field(default="", compare=False)


class Point:
    x: int
    y: int
    origin: ClassVar[int] = 0

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y


class Sampled:
    __transient_fields__ = ("checksum",)

    value: int
    checksum: int

    def __init__(self, value: int, checksum: int) -> None:
        self.value = value
        self.checksum = checksum


class Slotted:
    __slots__ = ("left", "right", "__weakref__")

    def __init__(self, left, right) -> None:
        self.left = left
        self.right = right


class Opaque:
    def __init__(self, value: int) -> None:
        self.value = value


@dataclass(eq=False)
class Container:
    inner: Cat
    tags: List[str]


class Money:
    amount: int
    currency: str

    def __init__(self, amount: int, currency: str) -> None:
        self.amount = amount
        self.currency = currency

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Money) and self.amount == other.amount

    __hash__ = None


class ExplodingEq:
    def __eq__(self, other: object) -> bool:
        raise RuntimeError("boom")


@dataclass(eq=False)
class HoldsExploding:
    value: ExplodingEq


# ---------------------------------------------------------------------------
# Record scenario
# ---------------------------------------------------------------------------

class TestRecordScenario:
    def test_identical_records(self, record_factory) -> None:
        assert reflection_equals(record_factory(1, "ab"), record_factory(1, "ab"))

    def test_label_differs(self, record_factory) -> None:
        assert not reflection_equals(record_factory(1, "ab"), record_factory(1, "ac"))

    def test_id_differs(self, record_factory) -> None:
        assert not reflection_equals(record_factory(1, "ab"), record_factory(2, "ab"))

    def test_label_length_differs(self, record_factory) -> None:
        assert not reflection_equals(record_factory(1, "ab"), record_factory(1, "abc"))

    def test_equals_entry_point(self, record_factory) -> None:
        assert equals(record_factory(1, "ab"), record_factory(1, "ab"))
        assert not equals(record_factory(1, "ab"), record_factory(1, "ac"))


# ---------------------------------------------------------------------------
# Cycle safety
# ---------------------------------------------------------------------------

class TestCycles:
    def test_two_node_cycles_equal(self, two_node_cycle) -> None:
        n1, _ = two_node_cycle(1, 2)
        m1, _ = two_node_cycle(1, 2)
        assert equals(n1, m1)

    def test_two_node_cycles_payload_differs(self, two_node_cycle) -> None:
        n1, _ = two_node_cycle(1, 2)
        m1, _ = two_node_cycle(1, 3)
        assert not equals(n1, m1)

    def test_reflection_equals_recursive_cycle(self, two_node_cycle) -> None:
        n1, _ = two_node_cycle()
        m1, _ = two_node_cycle()
        assert reflection_equals(n1, m1, test_recursive=True)

    def test_self_loop(self, two_node_cycle) -> None:
        n1, _ = two_node_cycle()
        m1, _ = two_node_cycle()
        n1.next = n1
        m1.next = m1
        assert equals(n1, m1)

    def test_cycle_against_open_chain(self, two_node_cycle) -> None:
        n1, _ = two_node_cycle(1, 2)
        m1, m2 = two_node_cycle(1, 2)
        m3 = type(m1)(payload=1)
        m2.next = m3
        assert not equals(n1, m1)

    def test_registry_removed_after_cycle(self, two_node_cycle) -> None:
        n1, _ = two_node_cycle()
        m1, _ = two_node_cycle()
        equals(n1, m1)
        assert not pair_registry.has_registry()


# ---------------------------------------------------------------------------
# Type reconciliation
# ---------------------------------------------------------------------------

class TestTypeReconciliation:
    def test_same_subtype(self) -> None:
        assert reflection_equals(Derived(1, 2), Derived(1, 2))

    def test_subtype_field_differs(self) -> None:
        assert not reflection_equals(Derived(1, 2), Derived(1, 3))

    def test_supertype_vs_subtype_with_extra_fields(self) -> None:
        assert not reflection_equals(Base(1), Derived(1, 2))
        assert not reflection_equals(Derived(1, 2), Base(1))

    def test_supertype_vs_subtype_without_extra_fields(self) -> None:
        assert reflection_equals(Base(1), SameShapeSub(1))
        assert reflection_equals(SameShapeSub(1), Base(1))

    def test_reflect_up_to_stops_walk(self) -> None:
        assert reflection_equals(Derived(1, 2), Derived(9, 2), reflect_up_to=Derived)
        assert not reflection_equals(Derived(1, 2), Derived(9, 2))

    def test_reflect_up_to_is_inclusive(self) -> None:
        assert not reflection_equals(Derived(1, 2), Derived(9, 2), reflect_up_to=Base)

    def test_reflect_up_to_unrelated_walks_to_root(self) -> None:
        assert not reflection_equals(Derived(1, 2), Derived(9, 2), reflect_up_to=Cat)

    def test_unrelated_types_same_layout(self) -> None:
        assert not reflection_equals(Cat("x"), Dog("x"))
        assert not equals(Cat("x"), Dog("x"))


# ---------------------------------------------------------------------------
# Field selection
# ---------------------------------------------------------------------------

class TestFieldSelection:
    def test_exclude_fields_by_name(self, record_factory) -> None:
        assert reflection_equals(
            record_factory(1, "ab"), record_factory(1, "zz"), exclude_fields=["label"]
        )

    def test_exclude_fields_single_name(self, record_factory) -> None:
        assert reflection_equals(
            record_factory(1, "ab"), record_factory(2, "ab"), exclude_fields="id"
        )

    def test_exclude_fields_ignores_none(self, record_factory) -> None:
        assert not reflection_equals(
            record_factory(1, "ab"), record_factory(2, "ab"), exclude_fields=[None]
        )

    def test_exclusion_marker(self) -> None:
        assert reflection_equals(Marked(1, audit="a"), Marked(1, audit="b"))

    def test_exclusion_marker_wins_over_transients(self) -> None:
        assert reflection_equals(Marked(1, audit="a"), Marked(1, audit="b"), test_transients=True)

    def test_compare_false_is_excluded(self) -> None:
        assert reflection_equals(Marked(1, note="a"), Marked(1, note="b"))

    def test_transient_skipped_by_default(self) -> None:
        assert reflection_equals(Cached(1, cache=10), Cached(1, cache=20))

    def test_transient_compared_when_enabled(self) -> None:
        assert not reflection_equals(Cached(1, cache=10), Cached(1, cache=20), test_transients=True)

    def test_transient_attribute_on_plain_class(self) -> None:
        assert reflection_equals(Sampled(1, 100), Sampled(1, 200))
        assert not reflection_equals(Sampled(1, 100), Sampled(1, 200), test_transients=True)

    def test_annotated_plain_class(self) -> None:
        assert reflection_equals(Point(1, 2), Point(1, 2))
        assert not reflection_equals(Point(1, 2), Point(1, 3))

    def test_classvar_not_compared(self) -> None:
        p, q = Point(1, 2), Point(1, 2)
        p.origin = 5
        assert reflection_equals(p, q)

    def test_slots(self) -> None:
        assert reflection_equals(Slotted(1, "a"), Slotted(1, "a"))
        assert not reflection_equals(Slotted(1, "a"), Slotted(1, "b"))

    def test_non_recursive_nested_uses_own_equality(self) -> None:
        assert not reflection_equals(Container(Cat("x"), ["t"]), Container(Cat("x"), ["t"]))

    def test_recursive_nested_walks_fields(self) -> None:
        assert reflection_equals(
            Container(Cat("x"), ["t"]), Container(Cat("x"), ["t"]), test_recursive=True
        )
        assert not reflection_equals(
            Container(Cat("x"), ["t"]), Container(Cat("y"), ["t"]), test_recursive=True
        )


# ---------------------------------------------------------------------------
# Access faults
# ---------------------------------------------------------------------------

class TestAccessFaults:
    def test_missing_slot_value_is_unequal(self) -> None:
        lhs = Slotted(1, 2)
        rhs = Slotted.__new__(Slotted)
        rhs.left = 1
        assert not reflection_equals(lhs, rhs)

    def test_raising_property_is_unequal(self) -> None:
        class Flaky:
            @property
            def value(self):
                raise RuntimeError("unreadable")

        registry = FieldRegistry()
        registry.register(Flaky, fields=["value"])
        assert not reflection_equals(Flaky(), Flaky(), registry=registry)

    def test_fault_does_not_leak_registry(self) -> None:
        equals(Base(1), Derived(1, 2))
        assert not pair_registry.has_registry()

    def test_exception_from_own_equality_propagates_and_cleans_up(self) -> None:
        with pytest.raises(RuntimeError, match="boom"):
            reflection_equals(HoldsExploding(ExplodingEq()), HoldsExploding(ExplodingEq()))
        assert not pair_registry.has_registry()


# ---------------------------------------------------------------------------
# Bypass and opaque types
# ---------------------------------------------------------------------------

class TestBypassAndOpaque:
    def test_strings_compare_by_value(self) -> None:
        assert reflection_equals("abc", "".join(["ab", "c"]))
        assert not reflection_equals("abc", "abd")

    def test_bypass_uses_own_equality(self) -> None:
        lhs, rhs = Money(1, "EUR"), Money(1, "USD")
        assert not reflection_equals(lhs, rhs)
        assert reflection_equals(lhs, rhs, bypass_types=(str, Money))

    def test_opaque_class_uses_own_equality(self) -> None:
        assert not reflection_equals(Opaque(1), Opaque(1))

    def test_registered_opaque_class_walks_fields(self) -> None:
        registry = FieldRegistry()
        registry.register(Opaque, fields=["value"])
        assert reflection_equals(Opaque(1), Opaque(1), registry=registry)
        assert not reflection_equals(Opaque(1), Opaque(2), registry=registry)

    def test_lists_at_top_level(self) -> None:
        assert reflection_equals([1, 2], [1, 2])
        assert not reflection_equals([1, 2], (1, 2))


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

_CONFIGS = [
    ComparisonConfig(),
    ComparisonConfig(test_recursive=True),
    ComparisonConfig(test_transients=True),
    ComparisonConfig(test_recursive=True, test_transients=True),
]


def _pairs():
    return [
        (Base(1), Base(1)),
        (Base(1), Base(2)),
        (Base(1), Derived(1, 2)),
        (Base(1), SameShapeSub(1)),
        (Cat("x"), Dog("x")),
        (Cached(1, 10), Cached(1, 20)),
        ([1.0, float("nan")], [1.0, float("nan")]),
        (0.0, -0.0),
        ({"k": Base(1)}, {"k": Base(1)}),
        ("abc", "abc"),
        (1, 1.0),
        (1, Decimal(1)),
        (0.5, Fraction(1, 2)),
    ]


class TestProperties:
    @pytest.mark.parametrize("config", _CONFIGS)
    def test_symmetry(self, config) -> None:
        for lhs, rhs in _pairs():
            forward = EqualsBuilder(config).append(lhs, rhs).is_equals()
            backward = EqualsBuilder(config).append(rhs, lhs).is_equals()
            assert forward == backward, (lhs, rhs)
            forward = EqualsBuilder(config).reflection_append(lhs, rhs).is_equals()
            backward = EqualsBuilder(config).reflection_append(rhs, lhs).is_equals()
            assert forward == backward, (lhs, rhs)

    @pytest.mark.parametrize("lhs, rhs", [
        (1, Decimal(1)),
        (0.5, Fraction(1, 2)),
        (2, Fraction(2)),
    ])
    def test_equals_symmetric_across_numeric_types(self, lhs, rhs) -> None:
        assert equals(lhs, rhs) is equals(rhs, lhs)
        assert not equals(lhs, rhs)
        assert equals(Decimal(1), Decimal(1))
        assert equals(Fraction(1, 2), Fraction(1, 2))

    @pytest.mark.parametrize("value", [
        None, 0, float("nan"), "s", [1, [2]], Base(1), Derived(1, 2), {"a": 1},
    ])
    def test_reflexivity(self, value) -> None:
        assert equals(value, value)
        assert reflection_equals(value, value)

    @pytest.mark.parametrize("value", [0, "", [], Base(1), float("nan")])
    def test_none_is_never_equal_to_a_value(self, value) -> None:
        assert not equals(value, None)
        assert not equals(None, value)
        assert not reflection_equals(value, None)
        assert not reflection_equals(None, value)

    def test_distinct_equal_copies(self) -> None:
        assert equals(Derived(1, 2), Derived(1, 2))
        assert equals([Base(1), {"k": (1, 2)}], [Base(1), {"k": (1, 2)}])
