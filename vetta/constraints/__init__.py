"""
Vetta Constraints - declarative rules and the registry that evaluates them.

Provides:
- Constraint / ConstraintResult / ValidationArguments: the data model
- ConstraintRegistry: kind -> evaluator mapping (built-ins pre-registered)
- Built-in factories: is_string, is_int, min_value, is_in, is_uuid, ...
- Plugins: class-based custom constraints (sync or async)
"""

from .core import (
    Constraint,
    ConstraintResult,
    ValidationArguments,
    constraint,
)
from .registry import (
    ConstraintKind,
    ConstraintRegistry,
    default_registry,
)
from .builtins import (
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
)
from .messages import render_message
from .plugins import (
    ConstraintPlugin,
    register_plugin,
    use,
    validator_constraint,
)

__all__ = [
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
]
