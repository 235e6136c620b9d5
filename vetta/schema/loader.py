"""
Configuration-driven schemas - compile descriptors from mappings or YAML.

Document format::

    schemas:
      Item:
        fields:
          sku: {type: string, constraints: [isString]}
          qty:
            type: int
            constraints:
              - isInt
              - {min: 1}
      Store:
        fields:
          id: {type: string, constraints: [isString]}
          currency:
            type: string
            constraints: [{isIn: [TWD, HKD]}]
          items:
            type: "[Item]"
            constraints: [{arrayMinSize: 1}]
      Order:
        extends: BaseOrder
        fields:
          pickupLocation:
            type: string
            constraints:
              - kind: isNotEmpty
                when: {deliveryOption: pickup}

Field keys: ``type`` (``string``/``int``/``number``/``boolean``/``any``, a
schema name, or ``[Name]`` for arrays), ``optional``, ``constraints``,
``validate_if`` (same form as ``when``), ``messages``.

Constraint entries: ``kind`` (bare string), ``{kind: parameter}``, or
``{kind: ..., parameters: [...], when: {...}, message: ...}``.  A ``when``
mapping holds when every named sibling equals the given value (or is one
of the values, when a list is given).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, Union

import yaml

from ..constraints.core import Constraint
from ..exceptions import SchemaDefinitionFault
from .descriptor import SchemaDescriptor, build
from .fields import FieldSpec
from .shapes import ArrayOf, Nested, Scalar, Shape

logger = logging.getLogger("vetta.schema.loader")

SCALAR_TYPES: dict[str, type] = {
    "string": str,
    "str": str,
    "int": int,
    "integer": int,
    "number": float,
    "float": float,
    "boolean": bool,
    "bool": bool,
    "any": object,
}

_CONSTRAINT_KEYS = {"kind", "parameters", "when", "message"}


class SchemaCatalog(Mapping[str, SchemaDescriptor]):
    """Read-only mapping of schema name -> compiled descriptor."""

    def __init__(self, descriptors: dict[str, SchemaDescriptor]):
        self._descriptors = dict(descriptors)

    def __getitem__(self, name: str) -> SchemaDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise SchemaDefinitionFault(
                f"Unknown schema '{name}'",
                metadata={"schema": name, "known": sorted(self._descriptors)},
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def get(self, name: str, default: Any = None) -> Any:
        return self._descriptors.get(name, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self) -> str:
        return f"<SchemaCatalog({', '.join(self._descriptors)})>"


# ============================================================================
# Predicates
# ============================================================================

def when_predicate(spec: Mapping[str, Any]) -> Callable[[Any], bool]:
    """Build a sibling predicate from a ``{field: expected}`` mapping."""
    expected = dict(spec)

    def predicate(siblings: Any) -> bool:
        for name, wanted in expected.items():
            actual = getattr(siblings, name, None)
            if isinstance(wanted, list):
                if actual not in wanted:
                    return False
            elif actual != wanted:
                return False
        return True

    predicate.__qualname__ = f"when({expected!r})"
    return predicate


# ============================================================================
# Compiler
# ============================================================================

class _Compiler:
    def __init__(self, documents: Mapping[str, Any]):
        self.documents = documents
        self.compiled: dict[str, SchemaDescriptor] = {}
        self._building: list[str] = []

    def compile_all(self) -> SchemaCatalog:
        for name in self.documents:
            self.compile(name)
        return SchemaCatalog(self.compiled)

    def compile(self, name: str) -> SchemaDescriptor:
        if name in self.compiled:
            return self.compiled[name]
        if name not in self.documents:
            raise SchemaDefinitionFault(f"Unknown schema '{name}'", metadata={"schema": name})
        if name in self._building:
            chain = " -> ".join(self._building + [name])
            raise SchemaDefinitionFault(f"Circular 'extends' chain: {chain}", metadata={"schema": name})

        doc = self.documents[name] or {}
        if not isinstance(doc, Mapping):
            raise SchemaDefinitionFault(f"Schema '{name}' must be a mapping", metadata={"schema": name})

        self._building.append(name)
        try:
            parent = self.compile(doc["extends"]) if doc.get("extends") else None
        finally:
            self._building.pop()

        fields = doc.get("fields") or {}
        if not isinstance(fields, Mapping):
            raise SchemaDefinitionFault(f"'fields' of schema '{name}' must be a mapping", metadata={"schema": name})

        specs = [self._field(name, field_name, field_doc or {}, parent) for field_name, field_doc in fields.items()]
        descriptor = build(name, specs, parent)
        self.compiled[name] = descriptor
        return descriptor

    def _field(
        self,
        schema: str,
        name: str,
        doc: Mapping[str, Any],
        parent: Optional[SchemaDescriptor],
    ) -> FieldSpec:
        if not isinstance(doc, Mapping):
            raise SchemaDefinitionFault(
                f"Field '{schema}.{name}' must be a mapping",
                metadata={"schema": schema, "field": name},
            )
        declared = doc.get("type")
        shape = self._shape(schema, name, declared) if declared is not None else None
        if shape is None and (parent is None or not parent.has_field(name)):
            shape = Scalar(object)

        validate_if = doc.get("validate_if")
        return FieldSpec(
            name=name,
            shape=shape,
            constraints=tuple(self._constraint(schema, name, item) for item in doc.get("constraints") or ()),
            optional=bool(doc.get("optional", False)),
            validate_if=when_predicate(validate_if) if validate_if else None,
            error_messages=doc.get("messages") or {},
        )

    def _shape(self, schema: str, field: str, declared: Any) -> Shape:
        if isinstance(declared, list):
            if len(declared) != 1:
                raise SchemaDefinitionFault(
                    f"Array type of '{schema}.{field}' must name exactly one item type",
                    metadata={"schema": schema, "field": field},
                )
            return ArrayOf(self._shape(schema, field, declared[0]))
        if not isinstance(declared, str):
            raise SchemaDefinitionFault(
                f"Type of '{schema}.{field}' must be a string",
                metadata={"schema": schema, "field": field},
            )
        text = declared.strip()
        if text.startswith("[") and text.endswith("]"):
            return ArrayOf(self._shape(schema, field, text[1:-1].strip()))
        if text in SCALAR_TYPES:
            return Scalar(SCALAR_TYPES[text])
        if text not in self.documents:
            raise SchemaDefinitionFault(
                f"Field '{schema}.{field}' references unknown schema '{text}'",
                metadata={"schema": schema, "field": field, "type": text},
            )
        return Nested(lambda: self.compile(text))

    def _constraint(self, schema: str, field: str, item: Any) -> Constraint:
        if isinstance(item, str):
            return Constraint(item)
        if not isinstance(item, Mapping):
            raise SchemaDefinitionFault(
                f"Constraint of '{schema}.{field}' must be a string or mapping, got {item!r}",
                metadata={"schema": schema, "field": field},
            )

        if "kind" in item:
            unknown = set(item) - _CONSTRAINT_KEYS
            if unknown:
                raise SchemaDefinitionFault(
                    f"Constraint of '{schema}.{field}' has unknown keys: {', '.join(sorted(unknown))}",
                    metadata={"schema": schema, "field": field},
                )
            kind = item["kind"]
            parameters = tuple(item.get("parameters") or ())
        else:
            shorthand = [key for key in item if key not in _CONSTRAINT_KEYS]
            if len(shorthand) != 1:
                raise SchemaDefinitionFault(
                    f"Constraint of '{schema}.{field}' must name exactly one kind",
                    metadata={"schema": schema, "field": field},
                )
            kind = shorthand[0]
            parameters = (item[kind],)

        when = item.get("when")
        return Constraint(
            kind,
            parameters,
            when_predicate(when) if when else None,
            item.get("message"),
        )


# ============================================================================
# Public API
# ============================================================================

def compile_schemas(document: Mapping[str, Any]) -> SchemaCatalog:
    """
    Compile a schema document (already parsed) into a ``SchemaCatalog``.

    Accepts either ``{"schemas": {...}}`` or the inner mapping directly.
    """
    if not isinstance(document, Mapping):
        raise SchemaDefinitionFault("Schema document must be a mapping")
    schemas = document.get("schemas", document)
    if not isinstance(schemas, Mapping):
        raise SchemaDefinitionFault("'schemas' must be a mapping of name -> schema")
    catalog = _Compiler(schemas).compile_all()
    logger.debug("Compiled %d schemas from document", len(catalog))
    return catalog


def parse_schemas(text: str) -> SchemaCatalog:
    """Compile schemas from YAML (or JSON) text."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaDefinitionFault(f"Invalid schema YAML: {exc}") from exc
    return compile_schemas(document or {})


def load_schemas(source: Union[str, Path, Mapping[str, Any]]) -> SchemaCatalog:
    """Compile schemas from a mapping or a ``.yaml``/``.yml``/``.json`` file."""
    if isinstance(source, Mapping):
        return compile_schemas(source)

    path = Path(source)
    if not path.exists():
        raise SchemaDefinitionFault(f"Schema file not found: {path}", metadata={"path": str(path)})
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        try:
            return compile_schemas(json.loads(text))
        except json.JSONDecodeError as exc:
            raise SchemaDefinitionFault(f"Invalid schema JSON in {path}: {exc}") from exc
    return parse_schemas(text)
