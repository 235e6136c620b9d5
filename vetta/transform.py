"""
Vetta Transformer - shapes an untyped payload into a typed instance graph.

The transformer only builds structure.  It never coerces scalars (``"1"``
stays a string) and never decides validity: a missing or ``null`` field is
simply absent, and a branch with the wrong structure is recorded as a
``ShapeMismatch`` on the owning instance while the rest of the payload is
still transformed.  The validator turns those records into error messages.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .exceptions import ShapeMismatch
from .instance import TypedInstance
from .schema.descriptor import SchemaDescriptor, descriptor_of
from .schema.shapes import ArrayOf, Nested

logger = logging.getLogger("vetta.transform")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def transform(raw: Any, schema: Any) -> TypedInstance:
    """
    Build a typed instance of *schema* from *raw*.

    Args:
        raw: A mapping (typically parsed JSON)
        schema: A ``Schema`` class or a ``SchemaDescriptor``

    Raises:
        ShapeMismatch: *raw* itself is not a mapping
    """
    descriptor = descriptor_of(schema)
    if not isinstance(raw, Mapping):
        raise ShapeMismatch("object", raw)
    return _transform_object(raw, descriptor)


def _transform_object(raw: Mapping[str, Any], descriptor: SchemaDescriptor) -> TypedInstance:
    values: dict[str, Any] = {}
    mismatches: dict[Any, ShapeMismatch] = {}

    for fd in descriptor.fields:
        name = fd.name
        value = raw.get(name)
        if value is None:
            continue

        shape = fd.shape
        if isinstance(shape, Nested):
            if isinstance(value, Mapping):
                values[name] = _transform_object(value, shape.schema)
            else:
                mismatches[name] = ShapeMismatch("object", value, field=name)
                values[name] = value
        elif isinstance(shape, ArrayOf):
            if not _is_sequence(value):
                mismatches[name] = ShapeMismatch("array", value, field=name)
                values[name] = value
            elif isinstance(shape.item, Nested):
                items = []
                for index, element in enumerate(value):
                    if isinstance(element, Mapping):
                        items.append(_transform_object(element, shape.item.schema))
                    else:
                        mismatches[(name, index)] = ShapeMismatch("object", element, field=name, index=index)
                        items.append(element)
                values[name] = items
            else:
                values[name] = list(value)
        else:
            values[name] = value

    if mismatches:
        logger.debug("Transformed %s with %d shape mismatches", descriptor.name, len(mismatches))
    return descriptor.new_instance(values, mismatches)
