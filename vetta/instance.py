"""
Typed instances - the value graph produced by the transformer.

Every declared field is readable as an attribute; absent fields read as
``None``.  Which fields were actually present in the payload, and which
ones had the wrong structure, is tracked separately so a field called
``items`` or ``keys`` never collides with instance bookkeeping::

    store = transform({"id": "s1"}, Store)
    store.id                 # "s1"
    store.currency           # None (absent)
    store["id"]              # "s1"
    "currency" in store      # False
    is_present(store, "id")  # True
    to_plain(store)          # {"id": "s1"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional

if TYPE_CHECKING:
    from .exceptions import ShapeMismatch
    from .schema.descriptor import SchemaDescriptor

_DESCRIPTOR = "_vetta_descriptor"
_PRESENT = "_vetta_present"
_MISMATCHES = "_vetta_mismatches"


class TypedInstance:
    """
    A concrete value conforming to a ``SchemaDescriptor``.

    Built by ``transform()``.  Declarative ``Schema`` classes are typed
    instances themselves, so ``transform(raw, Store)`` returns a ``Store``.
    """

    def __init__(
        self,
        descriptor: SchemaDescriptor,
        values: Mapping[str, Any] | None = None,
        mismatches: Mapping[Any, ShapeMismatch] | None = None,
    ):
        _populate(self, descriptor, values or {}, mismatches or {})

    def __setattr__(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)
        descriptor = self.__dict__.get(_DESCRIPTOR)
        if descriptor is not None and descriptor.has_field(name):
            self.__dict__[_PRESENT].add(name)

    def __getitem__(self, name: str) -> Any:
        descriptor = self.__dict__[_DESCRIPTOR]
        if not descriptor.has_field(name):
            raise KeyError(name)
        return self.__dict__.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.__dict__[_PRESENT]

    def __iter__(self) -> Iterator[str]:
        descriptor = self.__dict__[_DESCRIPTOR]
        present = self.__dict__[_PRESENT]
        return (name for name in descriptor.field_names if name in present)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, TypedInstance):
            return NotImplemented
        return (
            schema_of(self) is schema_of(other)
            and to_plain(self) == to_plain(other)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        descriptor = self.__dict__[_DESCRIPTOR]
        shown = ", ".join(f"{name}={self.__dict__.get(name)!r}" for name in self)
        return f"{descriptor.name}({shown})"


def _populate(
    obj: TypedInstance,
    descriptor: SchemaDescriptor,
    values: Mapping[str, Any],
    mismatches: Mapping[Any, ShapeMismatch],
) -> None:
    state = obj.__dict__
    state[_DESCRIPTOR] = descriptor
    state[_PRESENT] = set()
    state[_MISMATCHES] = dict(mismatches)
    for name in descriptor.field_names:
        state[name] = None
    for name, value in values.items():
        if not descriptor.has_field(name):
            raise TypeError(f"{descriptor.name} has no field {name!r}")
        state[name] = value
        state[_PRESENT].add(name)


def schema_of(instance: TypedInstance) -> SchemaDescriptor:
    """Return the descriptor an instance was built for."""
    return instance.__dict__[_DESCRIPTOR]


def is_present(instance: TypedInstance, name: str) -> bool:
    """Whether *name* was supplied (possibly as ``None``)."""
    return name in instance.__dict__[_PRESENT]


def mismatches_of(instance: TypedInstance) -> Mapping[Any, ShapeMismatch]:
    """
    Shape mismatches recorded while transforming *instance*.

    Keys are field names, or ``(field_name, index)`` for array elements.
    """
    return instance.__dict__[_MISMATCHES]


def mismatch_for(instance: TypedInstance, name: str, index: Optional[int] = None) -> Optional[ShapeMismatch]:
    key: Any = name if index is None else (name, index)
    return instance.__dict__[_MISMATCHES].get(key)


def to_plain(value: Any) -> Any:
    """Convert a typed instance graph back to dicts/lists (present fields only)."""
    if isinstance(value, TypedInstance):
        return {name: to_plain(value.__dict__.get(name)) for name in value}
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    return value
