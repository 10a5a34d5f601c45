# structeq/primitives.py
# Primitive kinds, IEEE 754 bit-pattern helpers and homogeneous array
# comparators.
#
# Float comparison is done on bit patterns, never with tolerance functions
# and never with plain == on the float values: == treats +0.0 as equal to
# -0.0 and NaN as unequal to itself, which breaks reflexivity and the
# equal-values-hash-equal contract.
#
# Scalar floats: struct.pack big-endian byte sequences, NaN collapsed to the
# canonical pattern first.
# numpy float arrays: vectorised NaN masks plus signbit, which is the same
# relation as canonical bit equality for every float width numpy supports.

import array
import math
import operator
import struct
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from structeq.constants import (
    CANONICAL_DOUBLE_NAN_BITS,
    CANONICAL_FLOAT_NAN_BITS,
    CHAR_TYPECODES,
    DOUBLE_TYPECODES,
    FLOAT_TYPECODES,
    PRIMITIVE_TYPES,
)


# ---------------------------------------------------------------------------
# PRIMITIVE KINDS
# ---------------------------------------------------------------------------

class PrimitiveKind(str, Enum):
    """
    Element kind of a primitive scalar or a homogeneous primitive array.

    The integer kinds differ only in width; their values compare as plain
    integers. FLOAT is single precision, DOUBLE is double precision, COMPLEX
    compares real and imaginary parts as two doubles.
    """
    BOOLEAN = "BOOLEAN"
    BYTE    = "BYTE"
    CHAR    = "CHAR"
    SHORT   = "SHORT"
    INT     = "INT"
    LONG    = "LONG"
    FLOAT   = "FLOAT"
    DOUBLE  = "DOUBLE"
    COMPLEX = "COMPLEX"


_INTEGER_KINDS = frozenset({
    PrimitiveKind.BYTE,
    PrimitiveKind.SHORT,
    PrimitiveKind.INT,
    PrimitiveKind.LONG,
})

_INTEGER_KIND_BY_SIZE = {
    1: PrimitiveKind.BYTE,
    2: PrimitiveKind.SHORT,
    4: PrimitiveKind.INT,
    8: PrimitiveKind.LONG,
}

_KIND_BY_TYPECODE = {
    "b": PrimitiveKind.BYTE,
    "B": PrimitiveKind.BYTE,
    "h": PrimitiveKind.SHORT,
    "H": PrimitiveKind.SHORT,
    "i": PrimitiveKind.INT,
    "I": PrimitiveKind.INT,
    "l": PrimitiveKind.LONG,
    "L": PrimitiveKind.LONG,
    "q": PrimitiveKind.LONG,
    "Q": PrimitiveKind.LONG,
}
for _code in CHAR_TYPECODES:
    _KIND_BY_TYPECODE[_code] = PrimitiveKind.CHAR
for _code in FLOAT_TYPECODES:
    _KIND_BY_TYPECODE[_code] = PrimitiveKind.FLOAT
for _code in DOUBLE_TYPECODES:
    _KIND_BY_TYPECODE[_code] = PrimitiveKind.DOUBLE


# ---------------------------------------------------------------------------
# BIT PATTERNS
# ---------------------------------------------------------------------------

def double_bits(value: float) -> bytes:
    """
    Return the 8-byte big-endian IEEE 754 pattern of value.

    Every NaN maps to CANONICAL_DOUBLE_NAN_BITS. +0.0 and -0.0 keep
    distinct patterns.
    """
    if math.isnan(value):
        return CANONICAL_DOUBLE_NAN_BITS
    return struct.pack(">d", value)


def float_bits(value: float) -> bytes:
    """
    Return the 4-byte big-endian single-precision pattern of value.

    value is narrowed to single precision first: finite values beyond the
    single-precision range round to an infinity of the same sign.
    """
    if math.isnan(value):
        return CANONICAL_FLOAT_NAN_BITS
    try:
        return struct.pack(">f", value)
    except OverflowError:
        return struct.pack(">f", math.copysign(math.inf, value))


def bits_hex(kind: PrimitiveKind, value: Any) -> str:
    """Hex rendering of a scalar for diagnostics. Non-float kinds use repr()."""
    if kind is PrimitiveKind.DOUBLE:
        return double_bits(value).hex()
    if kind is PrimitiveKind.FLOAT:
        return float_bits(value).hex()
    if kind is PrimitiveKind.COMPLEX:
        value = complex(value)
        return double_bits(value.real).hex() + ":" + double_bits(value.imag).hex()
    return repr(value)


# ---------------------------------------------------------------------------
# KIND DETECTION
# ---------------------------------------------------------------------------

def is_primitive_or_wrapper(cls: type) -> bool:
    """True for Python numeric scalar types and numpy scalar types."""
    return issubclass(cls, PRIMITIVE_TYPES)


def kind_of_dtype(dtype: np.dtype) -> Optional[PrimitiveKind]:
    """
    Map a numpy dtype to its PrimitiveKind.

    Returns None for dtypes without a primitive kind (object, multi-char
    strings, bytes, datetimes, structured dtypes).
    """
    if dtype.kind == "b":
        return PrimitiveKind.BOOLEAN
    if dtype.kind in ("i", "u"):
        return _INTEGER_KIND_BY_SIZE.get(dtype.itemsize, PrimitiveKind.LONG)
    if dtype.kind == "f":
        return PrimitiveKind.FLOAT if dtype.itemsize <= 4 else PrimitiveKind.DOUBLE
    if dtype.kind == "c":
        return PrimitiveKind.COMPLEX
    if dtype.kind == "U" and dtype.itemsize == 4:
        return PrimitiveKind.CHAR
    return None


def kind_of_typecode(typecode: str) -> Optional[PrimitiveKind]:
    """Map an array.array typecode to its PrimitiveKind."""
    return _KIND_BY_TYPECODE.get(typecode)


def kind_of_value(value: Any) -> Optional[PrimitiveKind]:
    """
    Map a scalar value to its PrimitiveKind.

    bool is checked before int because bool subclasses int. Python int and
    float are LONG and DOUBLE. str is never a primitive here; strings compare
    through their own equality.
    """
    if isinstance(value, np.generic):
        return kind_of_dtype(value.dtype)
    if isinstance(value, bool):
        return PrimitiveKind.BOOLEAN
    if isinstance(value, int):
        return PrimitiveKind.LONG
    if isinstance(value, float):
        return PrimitiveKind.DOUBLE
    if isinstance(value, complex):
        return PrimitiveKind.COMPLEX
    return None


# ---------------------------------------------------------------------------
# SCALAR COMPARISON
# ---------------------------------------------------------------------------

def scalars_equal(kind: PrimitiveKind, lhs: Any, rhs: Any) -> bool:
    """
    Compare two scalars of the given kind.

    DOUBLE, FLOAT and COMPLEX compare canonical bit patterns. BOOLEAN
    compares truth values. Integer kinds accept only true integers (anything
    with __index__, so numpy integer scalars too); any other value is
    unequal. CHAR compares the characters.
    """
    if kind is PrimitiveKind.DOUBLE:
        return double_bits(lhs) == double_bits(rhs)
    if kind is PrimitiveKind.FLOAT:
        return float_bits(lhs) == float_bits(rhs)
    if kind is PrimitiveKind.COMPLEX:
        lhs, rhs = complex(lhs), complex(rhs)
        return (
            double_bits(lhs.real) == double_bits(rhs.real)
            and double_bits(lhs.imag) == double_bits(rhs.imag)
        )
    if kind is PrimitiveKind.BOOLEAN:
        return bool(lhs) is bool(rhs)
    if kind in _INTEGER_KINDS:
        try:
            return operator.index(lhs) == operator.index(rhs)
        except TypeError:
            return False
    return lhs == rhs


# ---------------------------------------------------------------------------
# ARRAY SHAPE AND SIGNATURE
# ---------------------------------------------------------------------------

def is_array_like(value: Any) -> bool:
    """
    True for fixed-size sequences that are compared element-wise.

    numpy arrays and array.array are homogeneous primitive arrays (or object
    arrays for object dtype). list and tuple are generic-value arrays.
    """
    return isinstance(value, (np.ndarray, array.array, list, tuple))


def array_signature(value: Any) -> Tuple[Any, ...]:
    """
    Concrete array type of value: container type, element type and
    dimensionality. Two arrays are comparable only if their signatures are
    identical; lengths are checked later.
    """
    if isinstance(value, np.ndarray):
        return (type(value), value.dtype, value.ndim)
    if isinstance(value, array.array):
        return (type(value), value.typecode)
    return (type(value),)


def array_kind(value: Any) -> Optional[PrimitiveKind]:
    """PrimitiveKind of the elements of a primitive array, None otherwise."""
    if isinstance(value, np.ndarray):
        return kind_of_dtype(value.dtype)
    if isinstance(value, array.array):
        return kind_of_typecode(value.typecode)
    return None


# ---------------------------------------------------------------------------
# ARRAY COMPARISON
# ---------------------------------------------------------------------------

def _float_ndarrays_equal(lhs: np.ndarray, rhs: np.ndarray) -> bool:
    lhs_nan = np.isnan(lhs)
    rhs_nan = np.isnan(rhs)
    if not np.array_equal(lhs_nan, rhs_nan):
        return False
    both = ~lhs_nan
    return bool(
        np.array_equal(lhs[both], rhs[both])
        and np.array_equal(np.signbit(lhs[both]), np.signbit(rhs[both]))
    )


def ndarrays_equal(lhs: np.ndarray, rhs: np.ndarray) -> bool:
    """
    Compare two numpy arrays of a primitive dtype.

    Shapes must match exactly. Float and complex dtypes use NaN-equal,
    signed-zero-distinct semantics; other dtypes use exact element equality.
    """
    if lhs.shape != rhs.shape:
        return False
    if lhs.dtype.kind == "f":
        return _float_ndarrays_equal(lhs, rhs)
    if lhs.dtype.kind == "c":
        return (
            _float_ndarrays_equal(lhs.real, rhs.real)
            and _float_ndarrays_equal(lhs.imag, rhs.imag)
        )
    return bool(np.array_equal(lhs, rhs))


def first_difference(kind: PrimitiveKind, lhs: Sequence[Any], rhs: Sequence[Any]) -> int:
    """
    Index of the first differing element of two equal-length sequences,
    or -1 if every element is equal.
    """
    for index in range(len(lhs)):
        if not scalars_equal(kind, lhs[index], rhs[index]):
            return index
    return -1


__all__ = [
    "PrimitiveKind",
    "double_bits",
    "float_bits",
    "bits_hex",
    "is_primitive_or_wrapper",
    "kind_of_dtype",
    "kind_of_typecode",
    "kind_of_value",
    "scalars_equal",
    "is_array_like",
    "array_signature",
    "array_kind",
    "ndarrays_equal",
    "first_difference",
]
