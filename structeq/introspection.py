# =============================================================================
# structeq -- STRUCTURAL EQUALITY ENGINE
# File:   structeq/introspection.py
# =============================================================================
#
# SCOPE
# -----
# Field-descriptor registry. Answers two questions for the engine:
#   1. Which fields does a class declare at its own level, in declaration
#      order, and which of them are static, transient or excluded?
#   2. What is the ordered ancestor chain of a class, so that walking
#      "up to type T" is a prefix slice?
#
# A descriptor is built once per class and cached. Sources, first match
# wins:
#   registered   -- explicit register_fields() / @structural(...) call
#   dataclass    -- dataclasses.fields() restricted to the class's own
#                   annotations; metadata carries transient / exclude marks
#                   and compare=False counts as excluded
#   slots        -- names in the class's own __slots__
#   annotations  -- the class's own annotations; ClassVar entries are static
#   opaque       -- none of the above; the class declares no fields
#
# Non-dataclass types mark transient / excluded names through the class
# attributes __transient_fields__ and __equals_exclude__, or through the
# @structural decorator.
#
# FIELD READS
# -----------
# read_field() is the only place instance state is read. Any failure to
# read a declared field raises FieldAccessError.
# =============================================================================

from __future__ import annotations

import dataclasses
import inspect
import re
import typing
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from structeq.constants import (
    EXCLUDE_FIELDS_ATTR,
    EXCLUDE_METADATA_KEY,
    OPAQUE_MODULES,
    TRANSIENT_FIELDS_ATTR,
    TRANSIENT_METADATA_KEY,
)
from structeq.exceptions import FieldAccessError, RegistrationError


SOURCE_REGISTERED:  str = "registered"
SOURCE_DATACLASS:   str = "dataclass"
SOURCE_SLOTS:       str = "slots"
SOURCE_ANNOTATIONS: str = "annotations"
SOURCE_OPAQUE:      str = "opaque"


# =============================================================================
# SECTION 1 -- DESCRIPTORS
# =============================================================================

@dataclass(frozen=True)
class FieldDescriptor:
    """
    One declared field of one class level.

    Fields
    ------
    name      : Attribute name read from instances.
    static    : Class-level (ClassVar) attribute; never compared.
    transient : Derived or cache-like; compared only when transients are
                tested.
    excluded  : Always skipped, regardless of other flags.
    """
    name:      str
    static:    bool = False
    transient: bool = False
    excluded:  bool = False

    @property
    def synthetic(self) -> bool:
        """Dunder names (__dict__, __weakref__, ...) are interpreter-generated."""
        return self.name.startswith("__") and self.name.endswith("__")


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Declared fields of a single class and its ancestor chain.

    Fields
    ------
    cls       : The described class.
    fields    : Own-level fields in declaration order.
    ancestors : cls.__mro__, most-derived first, object last.
    source    : Where the field list came from (see module header).
    """
    cls:       type
    fields:    Tuple[FieldDescriptor, ...]
    ancestors: Tuple[type, ...]
    source:    str

    @property
    def structural(self) -> bool:
        return self.source != SOURCE_OPAQUE


# =============================================================================
# SECTION 2 -- DATACLASS FIELD HELPERS
# =============================================================================

def transient_field(**kwargs: Any) -> Any:
    """
    dataclasses.field() that marks the field transient.

    Accepts every dataclasses.field() keyword; metadata is merged.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TRANSIENT_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def excluded_field(**kwargs: Any) -> Any:
    """dataclasses.field() that excludes the field from structural equality."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EXCLUDE_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


# =============================================================================
# SECTION 3 -- DERIVATION
# =============================================================================

_CLASSVAR_TEXT = re.compile(r"^(?:\w+\s*\.\s*)*ClassVar\s*(?:\[|$)")


def _own_annotations(cls: type) -> Dict[str, Any]:
    return dict(inspect.get_annotations(cls))


def _is_classvar(annotation: Any) -> bool:
    # String annotations appear under `from __future__ import annotations`;
    # an already quoted annotation keeps its quotes inside the string.
    if isinstance(annotation, str):
        text = annotation.strip().strip("\"'").strip()
        return _CLASSVAR_TEXT.match(text) is not None
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def _marked_names(cls: type, attr: str) -> frozenset:
    names = cls.__dict__.get(attr, ())
    if isinstance(names, str):
        names = (names,)
    return frozenset(names)


def _derive_dataclass(cls: type) -> Tuple[FieldDescriptor, ...]:
    own = _own_annotations(cls)
    result = []
    for f in dataclasses.fields(cls):
        if f.name not in own:
            continue
        result.append(FieldDescriptor(
            name=f.name,
            transient=bool(f.metadata.get(TRANSIENT_METADATA_KEY, False)),
            excluded=bool(f.metadata.get(EXCLUDE_METADATA_KEY, False)) or not f.compare,
        ))
    return tuple(result)


def _derive_slots(cls: type) -> Tuple[FieldDescriptor, ...]:
    slots = cls.__dict__["__slots__"]
    if isinstance(slots, str):
        slots = (slots,)
    transient = _marked_names(cls, TRANSIENT_FIELDS_ATTR)
    excluded = _marked_names(cls, EXCLUDE_FIELDS_ATTR)
    return tuple(
        FieldDescriptor(
            name=name,
            transient=name in transient,
            excluded=name in excluded,
        )
        for name in slots
    )


def _derive_annotations(cls: type) -> Tuple[FieldDescriptor, ...]:
    transient = _marked_names(cls, TRANSIENT_FIELDS_ATTR)
    excluded = _marked_names(cls, EXCLUDE_FIELDS_ATTR)
    return tuple(
        FieldDescriptor(
            name=name,
            static=_is_classvar(annotation),
            transient=name in transient,
            excluded=name in excluded,
        )
        for name, annotation in _own_annotations(cls).items()
    )


def _derive(cls: type) -> Tuple[Tuple[FieldDescriptor, ...], str]:
    if cls.__module__ in OPAQUE_MODULES:
        return (), SOURCE_OPAQUE
    if "__dataclass_fields__" in cls.__dict__:
        return _derive_dataclass(cls), SOURCE_DATACLASS
    if "__slots__" in cls.__dict__:
        return _derive_slots(cls), SOURCE_SLOTS
    fields = _derive_annotations(cls)
    if fields:
        return fields, SOURCE_ANNOTATIONS
    return (), SOURCE_OPAQUE


# =============================================================================
# SECTION 4 -- REGISTRY
# =============================================================================

def _check_names(cls: type, option: str, names: Iterable[str]) -> Tuple[str, ...]:
    result = tuple(names)
    for name in result:
        if not isinstance(name, str) or not name:
            raise RegistrationError(
                cls, option + " entries must be non-empty strings", value=name
            )
    return result


class FieldRegistry:
    """
    Cache of TypeDescriptor objects keyed by class.

    Descriptors are derived lazily on first use and never rebuilt unless
    the class is registered again. Explicit registrations take precedence
    over derivation.
    """

    def __init__(self) -> None:
        self._descriptors: Dict[type, TypeDescriptor] = {}

    def register(
        self,
        cls:       type,
        fields:    Optional[Iterable[str]] = None,
        transient: Iterable[str] = (),
        exclude:   Iterable[str] = (),
    ) -> TypeDescriptor:
        """
        Register the own-level fields of cls.

        Parameters
        ----------
        cls       : The class being described.
        fields    : Field names in comparison order. None keeps the derived
                    field list and only applies the transient / exclude marks.
        transient : Names to mark transient.
        exclude   : Names to mark excluded.

        Raises
        ------
        RegistrationError : cls is not a class, a name is not a non-empty
                            string, a field name repeats, or a transient /
                            excluded name is not one of the fields.
        """
        if not isinstance(cls, type):
            raise RegistrationError(cls, "target must be a class", value=cls)
        transient = frozenset(_check_names(cls, "transient", transient))
        exclude = frozenset(_check_names(cls, "exclude", exclude))

        if fields is None:
            base, _ = _derive(cls)
        else:
            names = _check_names(cls, "fields", fields)
            seen = set()
            for name in names:
                if name in seen:
                    raise RegistrationError(
                        cls, "field names must be unique", value=name, field_name=name
                    )
                seen.add(name)
            base = tuple(FieldDescriptor(name=name) for name in names)

        unknown = sorted((transient | exclude) - {f.name for f in base})
        if unknown:
            raise RegistrationError(
                cls, "marked name is not a declared field",
                value=unknown[0], field_name=unknown[0],
            )

        descriptor = TypeDescriptor(
            cls=cls,
            fields=tuple(
                dataclasses.replace(
                    f,
                    transient=f.transient or f.name in transient,
                    excluded=f.excluded or f.name in exclude,
                )
                for f in base
            ),
            ancestors=tuple(cls.__mro__),
            source=SOURCE_REGISTERED,
        )
        self._descriptors[cls] = descriptor
        return descriptor

    def describe(self, cls: type) -> TypeDescriptor:
        """Return the cached descriptor of cls, deriving it on first use."""
        descriptor = self._descriptors.get(cls)
        if descriptor is None:
            fields, source = _derive(cls)
            descriptor = TypeDescriptor(
                cls=cls,
                fields=fields,
                ancestors=tuple(cls.__mro__),
                source=source,
            )
            self._descriptors[cls] = descriptor
        return descriptor

    def chain(self, cls: type, up_to: Optional[type] = None) -> Tuple[TypeDescriptor, ...]:
        """
        Descriptors from cls through its ancestors, stopping at up_to
        inclusive. If up_to is None or not an ancestor of cls the chain runs
        to the root.
        """
        ancestors = self.describe(cls).ancestors
        if up_to is not None and up_to in ancestors:
            ancestors = ancestors[: ancestors.index(up_to) + 1]
        return tuple(self.describe(klass) for klass in ancestors)

    def is_structural(self, cls: type) -> bool:
        """True if cls or any ancestor declares walkable fields."""
        return any(d.structural for d in self.chain(cls))

    def unregister(self, cls: type) -> None:
        """Drop the cached descriptor of cls. Unknown classes are ignored."""
        self._descriptors.pop(cls, None)

    def __contains__(self, cls: object) -> bool:
        return cls in self._descriptors


DEFAULT_REGISTRY = FieldRegistry()


def register_fields(
    cls:       type,
    fields:    Optional[Iterable[str]] = None,
    transient: Iterable[str] = (),
    exclude:   Iterable[str] = (),
    registry:  Optional[FieldRegistry] = None,
) -> TypeDescriptor:
    """Register cls in the given registry (default: DEFAULT_REGISTRY)."""
    target = DEFAULT_REGISTRY if registry is None else registry
    return target.register(cls, fields=fields, transient=transient, exclude=exclude)


def structural(
    *fields:   str,
    transient: Iterable[str] = (),
    exclude:   Iterable[str] = (),
    registry:  Optional[FieldRegistry] = None,
):
    """
    Class decorator form of register_fields().

        @structural("id", "label", transient=("cache",))
        class Record: ...

    With no positional names the derived field list is kept.
    """
    def decorate(cls):
        register_fields(
            cls,
            fields=fields or None,
            transient=transient,
            exclude=exclude,
            registry=registry,
        )
        return cls
    return decorate


# =============================================================================
# SECTION 5 -- FIELD READS
# =============================================================================

def read_field(instance: Any, descriptor: FieldDescriptor) -> Any:
    """
    Return the current value of a declared field on instance.

    Reads go through object.__getattribute__ so that a class overriding
    __getattr__ / __getattribute__ cannot fabricate values for fields the
    instance does not hold.

    Raises
    ------
    FieldAccessError : the instance has no such attribute, or the read
                       itself raised.
    """
    try:
        return object.__getattribute__(instance, descriptor.name)
    except AttributeError as exc:
        raise FieldAccessError(descriptor.name, instance, "attribute not set") from exc
    except Exception as exc:
        raise FieldAccessError(
            descriptor.name, instance, type(exc).__name__ + " during read"
        ) from exc


__all__ = [
    "FieldDescriptor",
    "TypeDescriptor",
    "FieldRegistry",
    "DEFAULT_REGISTRY",
    "register_fields",
    "structural",
    "transient_field",
    "excluded_field",
    "read_field",
]
