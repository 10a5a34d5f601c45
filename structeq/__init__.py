# structeq -- deep, cycle-safe, type-aware structural equality.
#
# Canonical imports:
#   from structeq import equals, reflection_equals, EqualsBuilder
#   from structeq import structural, transient_field, excluded_field

from .constants import STRUCTEQ_VERSION, DEFAULT_BYPASS_TYPES
from .exceptions import (
    StructEqError,
    FieldAccessError,
    RegistrationError,
    ConfigurationError,
)
from .config import ComparisonConfig, DEFAULT_CONFIG
from .primitives import PrimitiveKind
from .introspection import (
    FieldDescriptor,
    TypeDescriptor,
    FieldRegistry,
    DEFAULT_REGISTRY,
    register_fields,
    structural,
    transient_field,
    excluded_field,
)
from .trace import ComparisonTrace, TraceEvent, EventFilter, TraceError
from .builder import EqualsBuilder, equals, reflection_equals, DEEP_CONFIG

__version__ = STRUCTEQ_VERSION

__all__ = [
    # Version constants
    "STRUCTEQ_VERSION",
    "DEFAULT_BYPASS_TYPES",
    # Exceptions
    "StructEqError",
    "FieldAccessError",
    "RegistrationError",
    "ConfigurationError",
    # Configuration
    "ComparisonConfig",
    "DEFAULT_CONFIG",
    "DEEP_CONFIG",
    # Field registry
    "PrimitiveKind",
    "FieldDescriptor",
    "TypeDescriptor",
    "FieldRegistry",
    "DEFAULT_REGISTRY",
    "register_fields",
    "structural",
    "transient_field",
    "excluded_field",
    # Diagnostics
    "ComparisonTrace",
    "TraceEvent",
    "EventFilter",
    "TraceError",
    # Engine
    "EqualsBuilder",
    "equals",
    "reflection_equals",
]
