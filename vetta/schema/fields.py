"""
Vetta Schema Fields - field specs, compiled field descriptors, and the
declarative ``Field`` used in ``Schema`` class bodies.

Field options:
- ``shape``: ``str`` / ``int`` ..., a ``Schema`` class, ``[Item]`` for arrays,
  an explicit ``Shape``, or ``None`` to keep the parent schema's shape
- ``*constraints``: ordered ``Constraint`` records
- ``optional`` (bool): absent/null is valid and never recursed into
- ``validate_if`` (callable): field-level condition over the enclosing
  instance; when false the field is not validated at all
- ``error_messages`` (dict): overrides for ``required``, ``nested``,
  ``array`` and ``array_item`` messages
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..constraints.core import Constraint, Predicate
from .shapes import Shape, as_shape

_NO_MESSAGES: Mapping[str, Any] = MappingProxyType({})


def _freeze_messages(messages: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not messages:
        return _NO_MESSAGES
    return MappingProxyType(dict(messages))


def _check_constraints(constraints: Any) -> tuple[Constraint, ...]:
    items = tuple(constraints)
    for item in items:
        if not isinstance(item, Constraint):
            raise TypeError(f"Expected a Constraint, got {item!r}")
    return items


@dataclass(frozen=True)
class FieldSpec:
    """
    Input to ``build()``: one field as declared by a schema author.

    ``shape=None`` is only meaningful when a parent schema declares the
    same field; the parent's shape is kept.
    """

    name: str
    shape: Optional[Shape] = None
    constraints: tuple[Constraint, ...] = ()
    optional: bool = False
    validate_if: Optional[Predicate] = None
    error_messages: Mapping[str, Any] = field(default_factory=lambda: _NO_MESSAGES)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", as_shape(self.shape))
        object.__setattr__(self, "constraints", _check_constraints(self.constraints))
        object.__setattr__(self, "error_messages", _freeze_messages(self.error_messages))


@dataclass(frozen=True)
class FieldDescriptor:
    """
    A compiled field of a ``SchemaDescriptor``.

    ``inherited_constraints`` come from ancestor schemas and always
    evaluate before ``own_constraints``.
    """

    name: str
    shape: Shape
    optional: bool = False
    inherited_constraints: tuple[Constraint, ...] = ()
    own_constraints: tuple[Constraint, ...] = ()
    validate_if: Optional[Predicate] = None
    error_messages: Mapping[str, Any] = field(default_factory=lambda: _NO_MESSAGES)

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return self.inherited_constraints + self.own_constraints

    @property
    def all_conditional(self) -> bool:
        """True when the field has constraints and every one is conditional."""
        merged = self.constraints
        return bool(merged) and all(c.conditional for c in merged)

    def message(self, key: str, default: Any) -> Any:
        return self.error_messages.get(key, default)

    def __repr__(self) -> str:
        flags = ", optional" if self.optional else ""
        return f"<FieldDescriptor {self.name}: {self.shape!r}{flags} ({len(self.constraints)} constraints)>"


class Field:
    """
    Declarative field for ``Schema`` class bodies.

    Usage::

        class Item(Schema):
            sku = Field(str, is_string())
            qty = Field(int, is_int(), min_value(1))
            tags = Field([str], optional=True)
    """

    _creation_counter: int = 0

    def __init__(
        self,
        shape: Any = None,
        *constraints: Constraint,
        optional: bool = False,
        validate_if: Predicate | None = None,
        error_messages: dict[str, Any] | None = None,
    ):
        self.shape = as_shape(shape)
        self.constraints = _check_constraints(constraints)
        self.optional = optional
        self.validate_if = validate_if
        self.error_messages = dict(error_messages or {})

        # Ordering
        self._order = Field._creation_counter
        Field._creation_counter += 1

    def to_spec(self, name: str) -> FieldSpec:
        return FieldSpec(
            name=name,
            shape=self.shape,
            constraints=self.constraints,
            optional=self.optional,
            validate_if=self.validate_if,
            error_messages=self.error_messages,
        )

    def __repr__(self) -> str:
        return f"<Field {self.shape!r}>"
