"""
Declared field shapes.

A shape tells the transformer how to build a field's value and the
validator whether to recurse:

- ``Scalar(py_type)``: passed through untouched; ``py_type`` is
  documentation only, constraints decide whether the value is acceptable
- ``Nested(schema)``: a nested object validated against another schema
- ``ArrayOf(item)``: a sequence whose elements all have shape ``item``

``as_shape()`` turns the shorthand used in ``Field(...)`` into a shape::

    Field(str)              -> Scalar(str)
    Field(Item)             -> Nested(Item)        # Item is a Schema
    Field([Item])           -> ArrayOf(Nested(Item))
    Field(lambda: Node)     -> Nested(<lazy>)      # forward/self reference
"""

from __future__ import annotations

from typing import Any, ClassVar


class Shape:
    """Base class for declared shapes."""

    category: ClassVar[str] = "shape"
    __slots__ = ()

    def same_category(self, other: Shape) -> bool:
        return self.category == other.category


class Scalar(Shape):
    """A leaf value; never coerced."""

    category = "scalar"
    __slots__ = ("py_type",)

    def __init__(self, py_type: Any = object):
        self.py_type = py_type

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Scalar) and other.py_type == self.py_type

    def __hash__(self) -> int:
        return hash(("scalar", self.py_type))

    def __repr__(self) -> str:
        name = getattr(self.py_type, "__name__", repr(self.py_type))
        return f"Scalar({name})"


class Nested(Shape):
    """
    A nested object.

    *target* is a ``Schema`` subclass, a ``SchemaDescriptor`` or a zero-arg
    callable returning either; it is resolved on first use so schemas can
    reference each other before both exist.
    """

    category = "nested"
    __slots__ = ("_target", "_resolved")

    def __init__(self, target: Any):
        self._target = target
        self._resolved = None

    @property
    def schema(self) -> Any:
        """The nested ``SchemaDescriptor`` (resolved lazily, then cached)."""
        if self._resolved is None:
            from .descriptor import descriptor_of

            target = self._target
            if _is_lazy(target):
                target = target()
            self._resolved = descriptor_of(target)
        return self._resolved

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Nested) and other.schema is self.schema

    def __hash__(self) -> int:
        return hash("nested")

    def __repr__(self) -> str:
        if self._resolved is not None:
            return f"Nested({self._resolved.name})"
        name = getattr(self._target, "__name__", None) or getattr(self._target, "name", "<lazy>")
        return f"Nested({name})"


class ArrayOf(Shape):
    """A sequence of scalars or nested objects."""

    category = "array"
    __slots__ = ("item",)

    def __init__(self, item: Any):
        item = as_shape(item)
        if isinstance(item, ArrayOf):
            raise TypeError("ArrayOf() cannot wrap another array shape")
        self.item = item

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, ArrayOf) and other.item == self.item

    def __hash__(self) -> int:
        return hash(("array", self.item))

    def __repr__(self) -> str:
        return f"ArrayOf({self.item!r})"


def _is_schema_like(value: Any) -> bool:
    from .descriptor import SchemaDescriptor

    if isinstance(value, SchemaDescriptor):
        return True
    return isinstance(value, type) and getattr(value, "__schema__", None) is not None


def _is_lazy(value: Any) -> bool:
    return callable(value) and not isinstance(value, type) and not _is_schema_like(value)


def as_shape(declared: Any) -> Shape | None:
    """
    Normalize a shape declaration.

    ``None`` is returned unchanged: it means "inherit the parent's shape".
    """
    if declared is None or isinstance(declared, Shape):
        return declared
    if isinstance(declared, list):
        if len(declared) != 1:
            raise TypeError("Array shorthand takes exactly one item shape: [Item]")
        return ArrayOf(declared[0])
    if _is_schema_like(declared):
        return Nested(declared)
    if isinstance(declared, type):
        return Scalar(declared)
    if callable(declared):
        return Nested(declared)
    raise TypeError(f"Cannot interpret {declared!r} as a field shape")

