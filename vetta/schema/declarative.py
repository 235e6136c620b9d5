"""
Vetta Declarative Schemas - ``Schema`` base class and its metaclass.

Architecture:
    SchemaMeta (metaclass)
    └── Schema (base, a TypedInstance)
        └── your schemas; subclassing a schema inherits its fields
            and accumulates their constraints

Usage::

    class BasePayload(Schema):
        id = Field(str, is_string())
        password = Field(str, is_string())

    class PaymentPayload(BasePayload):
        # isString() is inherited, isStrongPassword runs after it
        password = Field(None, use(IsStrongPassword))
        count = Field(int, is_int(), min_value(1))

The descriptor is compiled once, when the class is created, and stored as
``__schema__``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from ..instance import TypedInstance, _populate
from .descriptor import SchemaDescriptor, build
from .fields import Field


class SchemaMeta(type):
    """
    Metaclass for Schema classes.

    Collects declared ``Field`` instances from the class body (in creation
    order) and compiles them, together with the nearest schema base, into
    ``__schema__``.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ) -> SchemaMeta:
        declared: list[tuple[str, Field]] = []
        for key, value in list(namespace.items()):
            if isinstance(value, Field):
                declared.append((key, value))
                namespace.pop(key)

        # Sort by creation order
        declared.sort(key=lambda pair: pair[1]._order)

        parents = [
            base.__schema__ for base in bases
            if isinstance(getattr(base, "__schema__", None), SchemaDescriptor)
        ]
        if len(parents) > 1:
            raise TypeError(f"Schema {name} may extend only one schema, got {len(parents)}")
        parent: Optional[SchemaDescriptor] = parents[0] if parents else None

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if namespace.get("__abstract__", False):
            cls.__schema__ = None
            return cls

        cls.__schema__ = build(
            name,
            [field_obj.to_spec(field_name) for field_name, field_obj in declared],
            parent,
            factory=cls,
        )
        return cls


class Schema(TypedInstance, metaclass=SchemaMeta):
    """
    Base class for declarative schemas.

    Instances are typed instances: ``transform(raw, Store)`` returns a
    ``Store``.  They can also be built directly::

        store = Store(id="s1", currency="TWD", items=[])
    """

    __abstract__ = True
    __schema__: ClassVar[Optional[SchemaDescriptor]]

    def __init__(self, **values: Any):
        descriptor = type(self).__schema__
        if descriptor is None:
            raise TypeError(f"{type(self).__name__} is abstract and cannot be instantiated")
        _populate(self, descriptor, values, {})
