# structeq/constants.py
# Defaults and lookup tables for the structural equality engine.
# Single authoritative definition. Imported by config.py, primitives.py,
# introspection.py and builder.py.
#
# Standard import pattern:
#   from structeq.constants import (
#       DEFAULT_BYPASS_TYPES,
#       PRIMITIVE_TYPES,
#       TRANSIENT_METADATA_KEY,
#       EXCLUDE_METADATA_KEY,
#   )

import struct
from typing import FrozenSet, Tuple

import numpy as np


# ---------------------------------------------------------------------------
# PACKAGE VERSION
# ---------------------------------------------------------------------------

STRUCTEQ_VERSION: str = "1.0.0"


# ---------------------------------------------------------------------------
# BYPASS TYPES
# ---------------------------------------------------------------------------
# Types compared with their own == instead of a field walk.
# str is bypassed because its identity-level state (interning, cached hash)
# carries no meaning for equality.

DEFAULT_BYPASS_TYPES: Tuple[type, ...] = (str,)


# ---------------------------------------------------------------------------
# PRIMITIVE AND BOXED TYPES
# ---------------------------------------------------------------------------
# Values of these types are never walked field-by-field, even when
# recursive comparison is enabled. numpy scalars play the role of boxed
# primitives.

PRIMITIVE_TYPES: Tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    np.generic,
)


# ---------------------------------------------------------------------------
# FLOATING-POINT BIT PATTERNS
# ---------------------------------------------------------------------------
# Every NaN collapses to one canonical pattern before comparison, so any two
# NaNs compare equal. Signed zeros keep distinct patterns.

CANONICAL_DOUBLE_NAN_BITS: bytes = struct.pack(">Q", 0x7FF8000000000000)
CANONICAL_FLOAT_NAN_BITS:  bytes = struct.pack(">I", 0x7FC00000)


# ---------------------------------------------------------------------------
# array.array TYPECODES
# ---------------------------------------------------------------------------

CHAR_TYPECODES:    FrozenSet[str] = frozenset({"u", "w"})
FLOAT_TYPECODES:   FrozenSet[str] = frozenset({"f"})
DOUBLE_TYPECODES:  FrozenSet[str] = frozenset({"d"})


# ---------------------------------------------------------------------------
# FIELD MARKERS
# ---------------------------------------------------------------------------
# Keys read from dataclasses.field(metadata=...) by the field registry.

TRANSIENT_METADATA_KEY: str = "structeq.transient"
EXCLUDE_METADATA_KEY:   str = "structeq.exclude"

# Class attributes read by the field registry on non-dataclass types.
TRANSIENT_FIELDS_ATTR: str = "__transient_fields__"
EXCLUDE_FIELDS_ATTR:   str = "__equals_exclude__"

# Classes defined in these modules expose no walkable fields.
OPAQUE_MODULES: FrozenSet[str] = frozenset({"builtins"})


# ---------------------------------------------------------------------------
# TRACE EVENT TYPES
# ---------------------------------------------------------------------------

EVENT_MISMATCH:      str = "MISMATCH"
EVENT_TYPE_MISMATCH: str = "TYPE_MISMATCH"
EVENT_CYCLE_SKIPPED: str = "CYCLE_SKIPPED"
EVENT_ACCESS_FAULT:  str = "ACCESS_FAULT"
EVENT_BYPASS:        str = "BYPASS"

EVENT_TYPES: FrozenSet[str] = frozenset({
    EVENT_MISMATCH,
    EVENT_TYPE_MISMATCH,
    EVENT_CYCLE_SKIPPED,
    EVENT_ACCESS_FAULT,
    EVENT_BYPASS,
})
