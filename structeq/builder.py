# =============================================================================
# structeq -- STRUCTURAL EQUALITY ENGINE
# File:   structeq/builder.py
# =============================================================================
#
# SCOPE
# -----
# EqualsBuilder: accumulating, short-circuiting structural equality.
# equals() / reflection_equals(): one-call entry points.
#
# SESSION STATE
# -------------
# One EqualsBuilder is one comparison session. Its accumulator starts True
# and, once False, never returns to True (reset() excepted). Every append
# method returns immediately while the accumulator is False.
#
# DISPATCH (append)
# -----------------
#   lhs is rhs                       -> unchanged
#   exactly one side None            -> False
#   either side array-like           -> array dispatch (identical array
#                                       signature required, then primitive-
#                                       array or generic-array comparator)
#   test_recursive and either side is
#   not a primitive / numpy scalar   -> reflection_append
#   otherwise                        -> own equality (floats by bit pattern)
#
# TYPE RECONCILIATION (reflection_append)
# ---------------------------------------
#   rhs isinstance type(lhs): test type = type(lhs), or type(rhs) when
#                             lhs is not an instance of it (rhs is the
#                             subtype).
#   lhs isinstance type(rhs): symmetric.
#   neither                 : False. Unrelated types never compare equal.
#   Fields are then walked from the test type through its MRO down to
#   reflect_up_to (inclusive), or to the root.
#
# CYCLE GUARD
# -----------
# Each (lhs, rhs) level walk is bracketed by pair_registry.register /
# unregister in try/finally. A pair already registered on this thread, in
# either order, is skipped without touching the accumulator.
#
# FAILURE MODES
# -------------
# FieldAccessError during a walk -> accumulator False. Never propagated.
# Unrelated types               -> accumulator False.
# =============================================================================

from __future__ import annotations

import reprlib
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

import numpy as np

from structeq import pair_registry
from structeq.config import DEFAULT_CONFIG, ComparisonConfig
from structeq.constants import (
    DEFAULT_BYPASS_TYPES,
    EVENT_ACCESS_FAULT,
    EVENT_BYPASS,
    EVENT_CYCLE_SKIPPED,
    EVENT_MISMATCH,
    EVENT_TYPE_MISMATCH,
)
from structeq.exceptions import FieldAccessError
from structeq.introspection import (
    DEFAULT_REGISTRY,
    FieldDescriptor,
    FieldRegistry,
    TypeDescriptor,
    read_field,
)
from structeq.primitives import (
    PrimitiveKind,
    array_kind,
    array_signature,
    bits_hex,
    first_difference,
    is_array_like,
    is_primitive_or_wrapper,
    kind_of_value,
    ndarrays_equal,
    scalars_equal,
)
from structeq.trace import ComparisonTrace


_FLOAT_KINDS = frozenset({
    PrimitiveKind.FLOAT,
    PrimitiveKind.DOUBLE,
    PrimitiveKind.COMPLEX,
})

_repr = reprlib.Repr()
_repr.maxstring = 60
_repr.maxother = 60


class EqualsBuilder:
    """
    Structural equality accumulator.

    Typical use inside __eq__:

        def __eq__(self, other):
            if not isinstance(other, Point):
                return NotImplemented
            return (
                EqualsBuilder()
                .append_int(self.x, other.x)
                .append_double(self.weight, other.weight)
                .append(self.tags, other.tags)
                .is_equals()
            )

    or field-by-field without listing the fields:

        def __eq__(self, other):
            return reflection_equals(self, other)

    Parameters
    ----------
    config   : ComparisonConfig. Defaults to DEFAULT_CONFIG.
    registry : FieldRegistry used for field walks. Defaults to
               DEFAULT_REGISTRY.
    trace    : Optional ComparisonTrace receiving diagnostic events.
    """

    def __init__(
        self,
        config:   Optional[ComparisonConfig] = None,
        registry: Optional[FieldRegistry] = None,
        trace:    Optional[ComparisonTrace] = None,
    ) -> None:
        self._config: ComparisonConfig = DEFAULT_CONFIG if config is None else config
        self._registry: FieldRegistry = DEFAULT_REGISTRY if registry is None else registry
        self._trace: Optional[ComparisonTrace] = trace
        self._is_equals: bool = True
        self._path: List[str] = []

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------

    @property
    def config(self) -> ComparisonConfig:
        return self._config

    def set_test_transients(self, test_transients: bool) -> "EqualsBuilder":
        self._config = self._config.replace(test_transients=test_transients)
        return self

    def set_test_recursive(self, test_recursive: bool) -> "EqualsBuilder":
        self._config = self._config.replace(test_recursive=test_recursive)
        return self

    def set_reflect_up_to(self, reflect_up_to: Optional[type]) -> "EqualsBuilder":
        self._config = self._config.replace(reflect_up_to=reflect_up_to)
        return self

    def set_exclude_fields(self, *names: Any) -> "EqualsBuilder":
        """Replace the excluded names. Accepts names or one iterable of names."""
        if len(names) == 1 and not isinstance(names[0], str) and names[0] is not None:
            names = names[0]
        self._config = self._config.replace(exclude_fields=names)
        return self

    def set_bypass_types(self, bypass_types: Optional[Iterable[type]]) -> "EqualsBuilder":
        self._config = self._config.replace(bypass_types=bypass_types)
        return self

    # -----------------------------------------------------------------------
    # Accumulator
    # -----------------------------------------------------------------------

    def is_equals(self) -> bool:
        return self._is_equals

    def build(self) -> bool:
        return self._is_equals

    def reset(self) -> None:
        """Set the accumulator back to True so the builder can be reused."""
        self._is_equals = True

    def set_equals(self, is_equals: bool) -> None:
        """For subclasses that decide equality through their own logic."""
        self._is_equals = is_equals

    def append_super(self, super_equals: bool) -> "EqualsBuilder":
        """Fold in the result of a parent class's __eq__."""
        if not self._is_equals:
            return self
        self._is_equals = bool(super_equals)
        return self

    # -----------------------------------------------------------------------
    # Diagnostics
    # -----------------------------------------------------------------------

    def _location(self) -> str:
        return "".join(self._path).lstrip(".")

    def _record(self, event_type: str, **data: Any) -> None:
        if self._trace is not None:
            self._trace.record(event_type, self._location(), data)

    def _mismatch(self, reason: str, lhs: Any, rhs: Any, kind: Optional[PrimitiveKind] = None) -> None:
        self._is_equals = False
        if self._trace is None:
            return
        if kind is not None:
            self._record(
                EVENT_MISMATCH,
                reason=reason,
                kind=kind.value,
                lhs=bits_hex(kind, lhs),
                rhs=bits_hex(kind, rhs),
            )
        else:
            self._record(EVENT_MISMATCH, reason=reason, lhs=_repr.repr(lhs), rhs=_repr.repr(rhs))

    def _type_mismatch(self, lhs: Any, rhs: Any) -> None:
        self._is_equals = False
        self._record(
            EVENT_TYPE_MISMATCH,
            lhs_type=type(lhs).__qualname__,
            rhs_type=type(rhs).__qualname__,
        )

    # -----------------------------------------------------------------------
    # Primitive scalars
    # -----------------------------------------------------------------------

    def append_primitive(self, kind: PrimitiveKind, lhs: Any, rhs: Any) -> "EqualsBuilder":
        """
        Compare two scalars of the given kind.

        Floating-point kinds compare canonical IEEE 754 bit patterns: any two
        NaNs are equal, +0.0 and -0.0 are not.
        """
        if not self._is_equals:
            return self
        if lhs is rhs:
            return self
        if lhs is None or rhs is None:
            self._mismatch("none", lhs, rhs)
            return self
        if not scalars_equal(kind, lhs, rhs):
            self._mismatch("value", lhs, rhs, kind)
        return self

    def append_boolean(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.BOOLEAN, lhs, rhs)

    def append_byte(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.BYTE, lhs, rhs)

    def append_char(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.CHAR, lhs, rhs)

    def append_short(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.SHORT, lhs, rhs)

    def append_int(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.INT, lhs, rhs)

    def append_long(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.LONG, lhs, rhs)

    def append_float(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.FLOAT, lhs, rhs)

    def append_double(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive(PrimitiveKind.DOUBLE, lhs, rhs)

    # -----------------------------------------------------------------------
    # Primitive arrays
    # -----------------------------------------------------------------------

    def append_primitive_array(self, kind: PrimitiveKind, lhs: Any, rhs: Any) -> "EqualsBuilder":
        """
        Compare two sequences whose elements are of the given kind.

        Equal iff same length and every pair of elements is equal under
        append_primitive(kind, ...). Two numpy arrays must also have the
        same shape.
        """
        if not self._is_equals:
            return self
        if lhs is rhs:
            return self
        if lhs is None or rhs is None:
            self._mismatch("none", lhs, rhs)
            return self
        if isinstance(lhs, np.ndarray) and isinstance(rhs, np.ndarray):
            if lhs.shape != rhs.shape:
                self._mismatch("shape", lhs.shape, rhs.shape)
            elif not ndarrays_equal(lhs, rhs):
                self._mismatch("value", lhs, rhs)
            return self
        if len(lhs) != len(rhs):
            self._mismatch("length", len(lhs), len(rhs))
            return self
        index = first_difference(kind, lhs, rhs)
        if index != -1:
            self._path.append("[" + str(index) + "]")
            try:
                self._mismatch("value", lhs[index], rhs[index], kind)
            finally:
                self._path.pop()
        return self

    def append_boolean_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.BOOLEAN, lhs, rhs)

    def append_byte_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.BYTE, lhs, rhs)

    def append_char_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.CHAR, lhs, rhs)

    def append_short_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.SHORT, lhs, rhs)

    def append_int_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.INT, lhs, rhs)

    def append_long_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.LONG, lhs, rhs)

    def append_float_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.FLOAT, lhs, rhs)

    def append_double_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        return self.append_primitive_array(PrimitiveKind.DOUBLE, lhs, rhs)

    # -----------------------------------------------------------------------
    # Generic values
    # -----------------------------------------------------------------------

    def append(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        """
        Compare two values of any type. See DISPATCH in the module header.
        """
        if not self._is_equals:
            return self
        if lhs is rhs:
            return self
        if lhs is None or rhs is None:
            self._mismatch("none", lhs, rhs)
            return self
        if is_array_like(lhs) or is_array_like(rhs):
            self._append_array_like(lhs, rhs)
        elif self._config.test_recursive and not (
            is_primitive_or_wrapper(type(lhs)) and is_primitive_or_wrapper(type(rhs))
        ):
            self.reflection_append(lhs, rhs)
        else:
            self._append_own_equality(lhs, rhs)
        return self

    def append_array(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        """
        Compare two sequences of generic values element by element with
        append(). Equal iff same length and every pair of elements is equal.
        """
        if not self._is_equals:
            return self
        if lhs is rhs:
            return self
        if lhs is None or rhs is None:
            self._mismatch("none", lhs, rhs)
            return self
        if len(lhs) != len(rhs):
            self._mismatch("length", len(lhs), len(rhs))
            return self
        for index in range(len(lhs)):
            if not self._is_equals:
                break
            self._path.append("[" + str(index) + "]")
            try:
                self.append(lhs[index], rhs[index])
            finally:
                self._path.pop()
        return self

    def _append_array_like(self, lhs: Any, rhs: Any) -> None:
        # Array type first (container, element type, dimensionality), then
        # dispatch on element kind. Nested lists and object-dtype arrays
        # recurse through append(), which handles any depth.
        if array_signature(lhs) != array_signature(rhs):
            self._type_mismatch(lhs, rhs)
            return
        kind = array_kind(lhs)
        if kind is not None:
            self.append_primitive_array(kind, lhs, rhs)
        elif isinstance(lhs, np.ndarray):
            if lhs.shape != rhs.shape:
                self._mismatch("shape", lhs.shape, rhs.shape)
            elif lhs.dtype == object:
                self.append_array(lhs.ravel(), rhs.ravel())
            elif not np.array_equal(lhs, rhs):
                self._mismatch("value", lhs, rhs)
        else:
            self.append_array(lhs, rhs)

    def _append_own_equality(self, lhs: Any, rhs: Any) -> None:
        lhs_kind = kind_of_value(lhs)
        if lhs_kind in _FLOAT_KINDS and kind_of_value(rhs) is lhs_kind:
            if not scalars_equal(lhs_kind, lhs, rhs):
                self._mismatch("value", lhs, rhs, lhs_kind)
            return
        if not bool(lhs == rhs):
            self._mismatch("value", lhs, rhs)

    def _append_mapping(self, lhs: Mapping, rhs: Mapping) -> None:
        if type(lhs) is not type(rhs):
            self._type_mismatch(lhs, rhs)
            return
        if lhs.keys() != rhs.keys():
            self._mismatch("keys", sorted(map(repr, lhs.keys())), sorted(map(repr, rhs.keys())))
            return
        for key in lhs:
            if not self._is_equals:
                break
            self._path.append("[" + repr(key) + "]")
            try:
                self.append(lhs[key], rhs[key])
            finally:
                self._path.pop()

    # -----------------------------------------------------------------------
    # Reflective comparison
    # -----------------------------------------------------------------------

    def reflection_append(self, lhs: Any, rhs: Any) -> "EqualsBuilder":
        """
        Compare lhs and rhs field by field through the field registry.

        See TYPE RECONCILIATION in the module header. Bypass types and types
        that declare no fields fall back to their own ==; mappings compare
        key sets and then values with append(). A FieldAccessError during the
        walk makes the result False.
        """
        if not self._is_equals:
            return self
        if lhs is rhs:
            return self
        if lhs is None or rhs is None:
            self._mismatch("none", lhs, rhs)
            return self

        lhs_class = type(lhs)
        rhs_class = type(rhs)
        if isinstance(rhs, lhs_class):
            test_class = lhs_class
            if not isinstance(lhs, rhs_class):
                # rhs_class is a subclass of lhs_class
                test_class = rhs_class
        elif isinstance(lhs, rhs_class):
            test_class = rhs_class
            if not isinstance(rhs, lhs_class):
                # lhs_class is a subclass of rhs_class
                test_class = lhs_class
        else:
            self._type_mismatch(lhs, rhs)
            return self

        try:
            if is_array_like(lhs):
                self.append(lhs, rhs)
            elif self._config.is_bypassed(lhs_class) or self._config.is_bypassed(rhs_class):
                self._record(EVENT_BYPASS, type=test_class.__qualname__)
                self._append_own_equality(lhs, rhs)
            elif not self._registry.is_structural(test_class):
                if isinstance(lhs, Mapping) and isinstance(rhs, Mapping):
                    self._append_mapping(lhs, rhs)
                else:
                    self._append_own_equality(lhs, rhs)
            else:
                for descriptor in self._registry.chain(test_class, self._config.reflect_up_to):
                    if not self._is_equals:
                        break
                    self._reflection_append_level(lhs, rhs, descriptor)
        except FieldAccessError as exc:
            # Typically a subtype with extra fields compared against a
            # supertype instance: the supertype has no such attribute.
            self._is_equals = False
            self._record(
                EVENT_ACCESS_FAULT,
                field=exc.field_name,
                reason=exc.reason,
                owner=type(exc.value).__qualname__,
            )
        return self

    def _is_selected(self, field: FieldDescriptor) -> bool:
        if field.static or field.synthetic or field.excluded:
            return False
        if field.name in self._config.exclude_fields:
            return False
        return self._config.test_transients or not field.transient

    def _reflection_append_level(self, lhs: Any, rhs: Any, descriptor: TypeDescriptor) -> None:
        if pair_registry.is_registered(lhs, rhs):
            self._record(EVENT_CYCLE_SKIPPED, type=descriptor.cls.__qualname__)
            return
        pair_registry.register(lhs, rhs)
        try:
            for field in descriptor.fields:
                if not self._is_equals:
                    break
                if not self._is_selected(field):
                    continue
                lhs_value = read_field(lhs, field)
                rhs_value = read_field(rhs, field)
                self._path.append("." + field.name)
                try:
                    self.append(lhs_value, rhs_value)
                finally:
                    self._path.pop()
        finally:
            pair_registry.unregister(lhs, rhs)


# =============================================================================
# ENTRY POINTS
# =============================================================================

DEEP_CONFIG = ComparisonConfig(test_recursive=True)


def reflection_equals(
    lhs:             Any,
    rhs:             Any,
    test_transients: bool = False,
    reflect_up_to:   Optional[type] = None,
    test_recursive:  bool = False,
    exclude_fields:  Any = (),
    bypass_types:    Optional[Iterable[type]] = DEFAULT_BYPASS_TYPES,
    registry:        Optional[FieldRegistry] = None,
    trace:           Optional[ComparisonTrace] = None,
) -> bool:
    """
    Compare lhs and rhs field by field.

    Parameters
    ----------
    test_transients : Include fields marked transient.
    reflect_up_to   : Last ancestor class (inclusive) whose fields are
                      compared. None compares up to the root.
    test_recursive  : Compare nested non-primitive fields field by field
                      instead of with their own ==.
    exclude_fields  : Names (or one name) never compared. None entries are
                      ignored.
    bypass_types    : Types compared with their own ==. Default: (str,).

    Returns
    -------
    bool : True if lhs is rhs, or every compared field is equal.
           False if exactly one side is None, the types are unrelated, a
           field differs, or a declared field cannot be read.
    """
    if lhs is rhs:
        return True
    if lhs is None or rhs is None:
        return False
    config = ComparisonConfig(
        test_transients=test_transients,
        test_recursive=test_recursive,
        reflect_up_to=reflect_up_to,
        exclude_fields=exclude_fields,
        bypass_types=bypass_types,
    )
    return EqualsBuilder(config, registry, trace).reflection_append(lhs, rhs).is_equals()


def equals(
    lhs:      Any,
    rhs:      Any,
    config:   Optional[ComparisonConfig] = None,
    registry: Optional[FieldRegistry] = None,
    trace:    Optional[ComparisonTrace] = None,
) -> bool:
    """
    Deep structural equality of two values of any type.

    True iff lhs is rhs, or both are non-None and equal under config. The
    default config compares nested objects field by field
    (test_recursive=True) with transients excluded.

    Only structural objects are guarded against cycles. A cycle made up
    solely of lists, tuples or dicts recurses until RecursionError.
    """
    if lhs is rhs:
        return True
    if lhs is None or rhs is None:
        return False
    if config is None:
        config = DEEP_CONFIG
    return EqualsBuilder(config, registry, trace).append(lhs, rhs).is_equals()


__all__ = [
    "EqualsBuilder",
    "equals",
    "reflection_equals",
    "DEEP_CONFIG",
]
