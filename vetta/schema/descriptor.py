"""
Vetta Schema Descriptor - the compiled, immutable form of a schema.

``build()`` merges a parent descriptor's fields with a child's field specs:

- parent fields come first, in parent order
- a child field with a parent's name keeps the parent's position; the
  parent's constraints become the child's ``inherited_constraints`` and
  the child's are appended as ``own_constraints``
- the child's shape and ``optional`` take precedence, but a shape of a
  different category (scalar / nested / array) is a ``SchemaConflict``

A descriptor is built once per schema and shared by every transform and
validation run.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence

from ..exceptions import SchemaConflict, UnknownConstraintKind
from .fields import FieldDescriptor, FieldSpec
from .shapes import ArrayOf, Nested, Shape

logger = logging.getLogger("vetta.schema")


class SchemaDescriptor:
    """
    A named, ordered sequence of ``FieldDescriptor`` objects.

    Attributes:
        name: Schema name (used in fault messages and ``repr``)
        fields: Field descriptors in evaluation order
        parent: The descriptor this one extends, if any
        factory: ``TypedInstance`` subclass the transformer instantiates
    """

    __slots__ = ("name", "fields", "parent", "factory", "_by_name", "__weakref__")

    def __init__(
        self,
        name: str,
        fields: Sequence[FieldDescriptor],
        *,
        parent: Optional[SchemaDescriptor] = None,
        factory: Any = None,
    ):
        self.name = name
        self.fields: tuple[FieldDescriptor, ...] = tuple(fields)
        self.parent = parent
        self.factory = factory
        self._by_name: Mapping[str, FieldDescriptor] = MappingProxyType(
            {f.name: f for f in self.fields}
        )

    # ── Lookup ───────────────────────────────────────────────────────────

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def has_field(self, name: str) -> bool:
        return name in self._by_name

    def field(self, name: str) -> FieldDescriptor:
        return self._by_name[name]

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    # ── Instances ────────────────────────────────────────────────────────

    def new_instance(
        self,
        values: Mapping[str, Any],
        mismatches: Mapping[Any, Any] | None = None,
    ) -> Any:
        """Create a typed instance without running any ``__init__``."""
        from ..instance import TypedInstance, _populate

        factory = self.factory or TypedInstance
        obj = factory.__new__(factory)
        _populate(obj, self, values, mismatches or {})
        return obj

    # ── Registry check ───────────────────────────────────────────────────

    def check_kinds(self, registry: Any) -> None:
        """
        Verify every constraint kind used by this schema (and the schemas
        it nests) is known to *registry*.

        Raises:
            UnknownConstraintKind: a kind is missing from *registry*
        """
        for descriptor in _walk(self):
            for fd in descriptor.fields:
                for item in fd.constraints:
                    if item.kind not in registry:
                        raise UnknownConstraintKind(item.kind, schema=descriptor.name, field=fd.name)

    def __repr__(self) -> str:
        parent = f" extends {self.parent.name}" if self.parent is not None else ""
        return f"<SchemaDescriptor {self.name}{parent} fields=[{', '.join(self.field_names)}]>"


def _nested_of(shape: Shape) -> Optional[SchemaDescriptor]:
    if isinstance(shape, Nested):
        return shape.schema
    if isinstance(shape, ArrayOf) and isinstance(shape.item, Nested):
        return shape.item.schema
    return None


def _walk(root: SchemaDescriptor) -> Iterator[SchemaDescriptor]:
    """Yield *root* and every schema reachable through nested shapes once."""
    seen: set[int] = set()
    stack = [root]
    while stack:
        descriptor = stack.pop()
        if id(descriptor) in seen:
            continue
        seen.add(id(descriptor))
        yield descriptor
        for fd in descriptor.fields:
            nested = _nested_of(fd.shape)
            if nested is not None:
                stack.append(nested)


# ============================================================================
# Construction
# ============================================================================

def _merge(schema: str, inherited: FieldDescriptor, spec: FieldSpec) -> FieldDescriptor:
    shape = inherited.shape
    if spec.shape is not None:
        if not spec.shape.same_category(inherited.shape):
            raise SchemaConflict(
                schema,
                spec.name,
                f"declared as {spec.shape.category} but the parent declares {inherited.shape.category}",
            )
        shape = spec.shape

    messages = dict(inherited.error_messages)
    messages.update(spec.error_messages)
    return FieldDescriptor(
        name=spec.name,
        shape=shape,
        optional=spec.optional,
        inherited_constraints=inherited.constraints,
        own_constraints=spec.constraints,
        validate_if=spec.validate_if if spec.validate_if is not None else inherited.validate_if,
        error_messages=MappingProxyType(messages),
    )


def build(
    name: str,
    field_specs: Iterable[FieldSpec],
    parent: Optional[SchemaDescriptor] = None,
    *,
    factory: Any = None,
) -> SchemaDescriptor:
    """
    Compile field specs (plus an optional parent) into a descriptor.

    Raises:
        SchemaConflict: duplicate field names, a missing shape, or a
            shape category that contradicts the parent
    """
    merged: dict[str, FieldDescriptor] = {}
    if parent is not None:
        for fd in parent.fields:
            # Ancestor constraints are all "inherited" from the child's view
            merged[fd.name] = FieldDescriptor(
                name=fd.name,
                shape=fd.shape,
                optional=fd.optional,
                inherited_constraints=fd.constraints,
                own_constraints=(),
                validate_if=fd.validate_if,
                error_messages=fd.error_messages,
            )

    seen: set[str] = set()
    for spec in field_specs:
        if spec.name in seen:
            raise SchemaConflict(name, spec.name, "declared more than once")
        seen.add(spec.name)

        inherited = merged.get(spec.name)
        if inherited is not None:
            merged[spec.name] = _merge(name, inherited, spec)
            continue
        if spec.shape is None:
            raise SchemaConflict(name, spec.name, "no shape declared and no parent field to inherit one from")
        merged[spec.name] = FieldDescriptor(
            name=spec.name,
            shape=spec.shape,
            optional=spec.optional,
            inherited_constraints=(),
            own_constraints=spec.constraints,
            validate_if=spec.validate_if,
            error_messages=spec.error_messages,
        )

    descriptor = SchemaDescriptor(name, list(merged.values()), parent=parent, factory=factory)
    logger.debug(
        "Compiled schema %s (%d fields%s)",
        name,
        len(descriptor),
        f", parent {parent.name}" if parent is not None else "",
    )
    return descriptor


def descriptor_of(schema: Any) -> SchemaDescriptor:
    """
    Resolve a ``Schema`` class, a typed instance or a descriptor to its
    ``SchemaDescriptor``.
    """
    if isinstance(schema, SchemaDescriptor):
        return schema
    compiled = getattr(schema, "__schema__", None)
    if isinstance(compiled, SchemaDescriptor):
        return compiled
    from ..instance import TypedInstance, schema_of

    if isinstance(schema, TypedInstance):
        return schema_of(schema)
    raise TypeError(f"{schema!r} is not a schema")
