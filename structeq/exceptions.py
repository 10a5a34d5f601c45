# =============================================================================
# structeq -- STRUCTURAL EQUALITY ENGINE
# File:   structeq/exceptions.py
# =============================================================================
#
# SCOPE
# -----
# Exception hierarchy for the structural equality engine.
# All exceptions are pure value objects: no side effects, no I/O,
# no references to engine state.
#
# EXCEPTION HIERARCHY
# -------------------
#   StructEqError(Exception)               -- base; never raised directly
#     FieldAccessError(StructEqError)      -- a declared field could not be read
#     RegistrationError(StructEqError)     -- invalid field-descriptor registration
#     ConfigurationError(StructEqError)    -- malformed comparison configuration
#
# PROPAGATION
# -----------
# FieldAccessError is raised by structeq.introspection.read_field and caught
# by EqualsBuilder.reflection_append, where it becomes a False result.
# It never escapes equals() or reflection_equals().
# RegistrationError and ConfigurationError are raised at setup time and
# always propagate to the caller.
#
# MESSAGE CONTRACT
# ----------------
# Every exception message is deterministic, names the offending field or
# type, and is never empty.
# =============================================================================

from __future__ import annotations

from typing import Any


# =============================================================================
# BASE EXCEPTION
# =============================================================================

class StructEqError(Exception):
    """
    Base class for all structural equality exceptions.

    Never raised directly. Use a concrete subclass.

    Attributes:
        field_name:  Name of the offending field, or empty string if the
                     error concerns a type or configuration value.
        value:       The offending value, or None if not applicable.
        message:     Human-readable description. Always non-empty.
    """

    def __init__(
        self,
        message:    str,
        field_name: str = "",
        value:      Any = None,
    ) -> None:
        if not isinstance(message, str) or not message:
            raise ValueError(
                "StructEqError: message must be a non-empty string"
            )
        if not isinstance(field_name, str):
            raise ValueError(
                "StructEqError: field_name must be a string"
            )
        super().__init__(message)
        self.field_name: str = field_name
        self.value:      Any = value
        self.message:    str = message

    def __repr__(self) -> str:
        return (
            self.__class__.__name__
            + "(field_name=" + repr(self.field_name)
            + ", value=" + repr(self.value)
            + ", message=" + repr(self.message)
            + ")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructEqError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.field_name == other.field_name
            and self.value == other.value
            and self.message == other.message
        )

    __hash__ = Exception.__hash__


# =============================================================================
# CONCRETE EXCEPTIONS
# =============================================================================

class FieldAccessError(StructEqError):
    """
    Raised when a declared field cannot be read from an instance.

    The usual cause is comparing a supertype instance against a subtype
    that declares extra fields: the supertype instance has no such
    attribute. The engine converts this error to inequality.

    Message format:
        "FieldAccessError: cannot read field '<field_name>' from
         <type name>: <reason>."

    Args:
        field_name:  Name of the field that could not be read. Non-empty.
        owner:       The instance the read was attempted on.
        reason:      Short description of the underlying failure.
    """

    def __init__(self, field_name: str, owner: Any, reason: str) -> None:
        if not field_name:
            raise ValueError(
                "FieldAccessError: field_name must be a non-empty string"
            )
        message = (
            "FieldAccessError: cannot read field '"
            + field_name
            + "' from "
            + type(owner).__qualname__
            + ": "
            + reason
            + "."
        )
        super().__init__(message=message, field_name=field_name, value=owner)
        self.reason: str = reason


class RegistrationError(StructEqError):
    """
    Raised when a field-descriptor registration is malformed.

    Covers registering something that is not a class, field names that are
    not non-empty strings, duplicate field names within one level, and
    transient / excluded names that are not among the registered fields.

    Message format:
        "RegistrationError: <target>: <constraint>; got <value>."
    """

    def __init__(
        self,
        target:     Any,
        constraint: str,
        value:      Any = None,
        field_name: str = "",
    ) -> None:
        if not isinstance(constraint, str) or not constraint:
            raise ValueError(
                "RegistrationError: constraint must be a non-empty string"
            )
        target_name = getattr(target, "__qualname__", repr(target))
        message = (
            "RegistrationError: "
            + target_name
            + ": "
            + constraint
            + "; got "
            + repr(value)
            + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.constraint: str = constraint


class ConfigurationError(StructEqError):
    """
    Raised when a comparison configuration value has the wrong shape.

    Message format:
        "ConfigurationError: option '<option>' <constraint>; got <value>."
    """

    def __init__(self, option: str, value: Any, constraint: str) -> None:
        if not option:
            raise ValueError(
                "ConfigurationError: option must be a non-empty string"
            )
        if not isinstance(constraint, str) or not constraint:
            raise ValueError(
                "ConfigurationError: constraint must be a non-empty string"
            )
        message = (
            "ConfigurationError: option '"
            + option
            + "' "
            + constraint
            + "; got "
            + repr(value)
            + "."
        )
        super().__init__(message=message, field_name=option, value=value)
        self.constraint: str = constraint


# =============================================================================
# MODULE __all__
# =============================================================================

__all__ = [
    "StructEqError",
    "FieldAccessError",
    "RegistrationError",
    "ConfigurationError",
]
