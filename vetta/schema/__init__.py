"""
Vetta Schemas - shapes, fields and compiled schema descriptors.

Three ways to declare a schema, all producing a ``SchemaDescriptor``:

- ``Schema`` subclasses with ``Field(...)`` attributes
- ``build(name, [FieldSpec(...)], parent)``
- ``load_schemas(mapping_or_yaml_path)``
"""

from .shapes import ArrayOf, Nested, Scalar, Shape, as_shape
from .fields import Field, FieldDescriptor, FieldSpec
from .descriptor import SchemaDescriptor, build, descriptor_of
from .declarative import Schema, SchemaMeta
from .loader import SchemaCatalog, compile_schemas, load_schemas, parse_schemas, when_predicate

__all__ = [
    "ArrayOf",
    "Nested",
    "Scalar",
    "Shape",
    "as_shape",
    "Field",
    "FieldDescriptor",
    "FieldSpec",
    "SchemaDescriptor",
    "build",
    "descriptor_of",
    "Schema",
    "SchemaMeta",
    "SchemaCatalog",
    "compile_schemas",
    "load_schemas",
    "parse_schemas",
    "when_predicate",
]
