"""
Vetta - declarative validation and transformation of structured payloads.

Provides:
- Schema / Field: declarative schemas with inheritance of constraint sets
- build / FieldSpec / load_schemas: builder and YAML-driven schemas
- transform: untyped payload -> typed instance graph
- Validator / validate / validate_async: typed instance -> ErrorNode
- ConstraintRegistry: built-in and custom constraint kinds
- validator_constraint / use: class-based (sync or async) constraint plugins
- Faults: structured configuration errors with fault domains

Usage::

    from vetta import Schema, Field, transform, validate
    from vetta import is_string, is_int, is_in, min_value, array_min_size

    class Item(Schema):
        sku = Field(str, is_string())
        qty = Field(int, is_int(), min_value(1))

    class Store(Schema):
        id = Field(str, is_string())
        currency = Field(str, is_in(["TWD", "HKD"]))
        items = Field([Item], array_min_size(1))

    errors = validate(transform({"currency": "USD", "items": []}, Store))
    errors.flatten()
    # {"id": ["id is required"],
    #  "currency": ["currency must be one of TWD, HKD"],
    #  "items": ["items must contain at least 1 elements"]}
"""

__version__ = "0.1.0"

# ============================================================================
# Constraints
# ============================================================================

from .constraints import (
    Constraint,
    ConstraintResult,
    ValidationArguments,
    constraint,
    ConstraintKind,
    ConstraintRegistry,
    default_registry,
    array_max_size,
    array_min_size,
    is_boolean,
    is_defined,
    is_in,
    is_int,
    is_not_empty,
    is_number,
    is_string,
    is_uuid,
    matches,
    max_length,
    max_value,
    min_length,
    min_value,
    render_message,
    ConstraintPlugin,
    register_plugin,
    use,
    validator_constraint,
)

# ============================================================================
# Schemas
# ============================================================================

from .schema import (
    ArrayOf,
    Nested,
    Scalar,
    Shape,
    Field,
    FieldDescriptor,
    FieldSpec,
    SchemaDescriptor,
    build,
    descriptor_of,
    Schema,
    SchemaMeta,
    SchemaCatalog,
    compile_schemas,
    load_schemas,
    parse_schemas,
    when_predicate,
)

# ============================================================================
# Transform / Validate
# ============================================================================

from .instance import TypedInstance, is_present, mismatches_of, schema_of, to_plain
from .transform import transform
from .validator import (
    NON_FIELD_ERRORS,
    Validator,
    check,
    check_async,
    validate,
    validate_async,
)
from .errors import ErrorNode, ValidationError
from .config import ConfigLoader, ValidationConfig, load_config

# ============================================================================
# Faults
# ============================================================================

from .faults import ConfigFault, Fault, FaultDomain, Severity
from .exceptions import (
    AsyncConstraintInSyncValidation,
    DuplicateConstraintKind,
    RegistryFrozen,
    SchemaConflict,
    SchemaDefinitionFault,
    SchemaFault,
    ShapeMismatch,
    UnknownConstraintKind,
)

__all__ = [
    # Constraints
    "Constraint",
    "ConstraintResult",
    "ValidationArguments",
    "constraint",
    "ConstraintKind",
    "ConstraintRegistry",
    "default_registry",
    "array_max_size",
    "array_min_size",
    "is_boolean",
    "is_defined",
    "is_in",
    "is_int",
    "is_not_empty",
    "is_number",
    "is_string",
    "is_uuid",
    "matches",
    "max_length",
    "max_value",
    "min_length",
    "min_value",
    "render_message",
    "ConstraintPlugin",
    "register_plugin",
    "use",
    "validator_constraint",
    # Schemas
    "ArrayOf",
    "Nested",
    "Scalar",
    "Shape",
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
    # Transform / Validate
    "TypedInstance",
    "is_present",
    "mismatches_of",
    "schema_of",
    "to_plain",
    "transform",
    "NON_FIELD_ERRORS",
    "Validator",
    "check",
    "check_async",
    "validate",
    "validate_async",
    "ErrorNode",
    "ValidationError",
    "ConfigLoader",
    "ValidationConfig",
    "load_config",
    # Faults
    "ConfigFault",
    "Fault",
    "FaultDomain",
    "Severity",
    "AsyncConstraintInSyncValidation",
    "DuplicateConstraintKind",
    "RegistryFrozen",
    "SchemaConflict",
    "SchemaDefinitionFault",
    "SchemaFault",
    "ShapeMismatch",
    "UnknownConstraintKind",
]
