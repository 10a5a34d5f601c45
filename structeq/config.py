# =============================================================================
# structeq -- STRUCTURAL EQUALITY ENGINE
# File:   structeq/config.py
# =============================================================================
#
# SCOPE
# -----
# Frozen configuration object for one comparison session.
#
# NORMALISATION
# -------------
#   exclude_fields  -- any iterable of names -> frozenset[str]; None entries
#                      are dropped, a bare string counts as one name.
#   bypass_types    -- any iterable of classes -> tuple[type, ...]; None
#                      means "no bypass types at all".
#
# VALIDATION
# ----------
#   reflect_up_to   -- None or a class.           ConfigurationError otherwise.
#   bypass_types    -- every entry is a class.    ConfigurationError otherwise.
#   exclude_fields  -- every non-None entry is a str.
#
# Conflicting combinations (e.g. test_transients with every transient field
# excluded) are accepted as-is.
# =============================================================================

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional, Tuple

from structeq.constants import DEFAULT_BYPASS_TYPES
from structeq.exceptions import ConfigurationError


def normalize_exclude_fields(names: Any) -> FrozenSet[str]:
    """
    Return names as a frozenset of strings, dropping None entries.

    Raises ConfigurationError if an entry is neither None nor a str.
    """
    if names is None:
        return frozenset()
    if isinstance(names, str):
        return frozenset((names,))
    result = set()
    for name in names:
        if name is None:
            continue
        if not isinstance(name, str):
            raise ConfigurationError(
                "exclude_fields", name, "entries must be strings"
            )
        result.add(name)
    return frozenset(result)


def normalize_bypass_types(types: Optional[Iterable[Any]]) -> Tuple[type, ...]:
    """
    Return types as a tuple of classes. None yields an empty tuple.

    Raises ConfigurationError if an entry is not a class.
    """
    if types is None:
        return ()
    result = tuple(types)
    for entry in result:
        if not isinstance(entry, type):
            raise ConfigurationError(
                "bypass_types", entry, "entries must be classes"
            )
    return result


def check_reflect_up_to(value: Any) -> Optional[type]:
    if value is not None and not isinstance(value, type):
        raise ConfigurationError("reflect_up_to", value, "must be a class or None")
    return value


@dataclass(frozen=True)
class ComparisonConfig:
    """
    Options of one comparison session.

    Fields
    ------
    test_transients : Include fields marked transient.
    test_recursive  : Compare nested non-primitive values field by field
                      instead of with their own ==.
    reflect_up_to   : Last ancestor (inclusive) whose fields are walked.
                      None walks to the root.
    exclude_fields  : Field names never compared, at any level.
    bypass_types    : Types compared with their own == instead of a field
                      walk. Defaults to DEFAULT_BYPASS_TYPES.
    """
    test_transients: bool = False
    test_recursive:  bool = False
    reflect_up_to:   Optional[type] = None
    exclude_fields:  FrozenSet[str] = frozenset()
    bypass_types:    Tuple[type, ...] = field(default=DEFAULT_BYPASS_TYPES)

    def __post_init__(self) -> None:
        # Frozen: normalised values are written through object.__setattr__.
        object.__setattr__(self, "test_transients", bool(self.test_transients))
        object.__setattr__(self, "test_recursive", bool(self.test_recursive))
        object.__setattr__(self, "reflect_up_to", check_reflect_up_to(self.reflect_up_to))
        object.__setattr__(self, "exclude_fields", normalize_exclude_fields(self.exclude_fields))
        object.__setattr__(self, "bypass_types", normalize_bypass_types(self.bypass_types))

    def replace(self, **changes: Any) -> "ComparisonConfig":
        """Copy with the given fields changed; the copy is validated again."""
        return dataclasses.replace(self, **changes)

    def is_bypassed(self, cls: type) -> bool:
        return cls in self.bypass_types


DEFAULT_CONFIG = ComparisonConfig()


__all__ = [
    "ComparisonConfig",
    "DEFAULT_CONFIG",
    "normalize_exclude_fields",
    "normalize_bypass_types",
    "check_reflect_up_to",
]
