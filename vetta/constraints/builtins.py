"""
Vetta Built-in Constraints - the kinds every registry starts with.

Each kind is an evaluator ``(value, parameters, siblings)`` plus a factory
that builds the matching ``Constraint`` record for use in a schema::

    class Item(Schema):
        sku = Field(str, is_string())
        qty = Field(int, is_int(), min_value(1))

Evaluators check the actual type of the value: the transformer never
coerces scalars, so ``"1"`` fails ``isInt`` and ``min``.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Iterable

from .core import Constraint, MessageSpec, Predicate

# ============================================================================
# Helpers
# ============================================================================

_UUID_PATTERNS = {
    None: re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I),
    "3": re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-3[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I),
    "4": re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.I),
    "5": re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-5[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.I),
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, (int, Decimal))


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _build(
    kind: str,
    *parameters: Any,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return Constraint(kind, tuple(parameters), applies_if, message)


# ============================================================================
# Evaluators
# ============================================================================

def eval_is_string(value: Any, parameters: tuple, siblings: Any) -> bool:
    return isinstance(value, str)


def eval_is_int(value: Any, parameters: tuple, siblings: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def eval_is_number(value: Any, parameters: tuple, siblings: Any) -> bool:
    return _is_number(value)


def eval_is_boolean(value: Any, parameters: tuple, siblings: Any) -> bool:
    return isinstance(value, bool)


def eval_min(value: Any, parameters: tuple, siblings: Any) -> bool:
    return _is_number(value) and value >= parameters[0]


def eval_max(value: Any, parameters: tuple, siblings: Any) -> bool:
    return _is_number(value) and value <= parameters[0]


def eval_is_in(value: Any, parameters: tuple, siblings: Any) -> bool:
    # bool is an int subclass; True must not match 1
    return any(
        value == allowed and isinstance(value, bool) == isinstance(allowed, bool)
        for allowed in parameters[0]
    )


def eval_is_uuid(value: Any, parameters: tuple, siblings: Any) -> bool:
    version = parameters[0] if parameters else None
    pattern = _UUID_PATTERNS[None if version is None else str(version)]
    return isinstance(value, str) and bool(pattern.match(value))


def eval_array_min_size(value: Any, parameters: tuple, siblings: Any) -> bool:
    return _is_array(value) and len(value) >= parameters[0]


def eval_array_max_size(value: Any, parameters: tuple, siblings: Any) -> bool:
    return _is_array(value) and len(value) <= parameters[0]


def eval_is_not_empty(value: Any, parameters: tuple, siblings: Any) -> bool:
    return value is not None and value != ""


def eval_is_defined(value: Any, parameters: tuple, siblings: Any) -> bool:
    return value is not None


def eval_min_length(value: Any, parameters: tuple, siblings: Any) -> bool:
    return isinstance(value, str) and len(value) >= parameters[0]


def eval_max_length(value: Any, parameters: tuple, siblings: Any) -> bool:
    return isinstance(value, str) and len(value) <= parameters[0]


def eval_matches(value: Any, parameters: tuple, siblings: Any) -> bool:
    pattern = parameters[0]
    if not isinstance(pattern, re.Pattern):
        pattern = re.compile(pattern)
    return isinstance(value, str) and pattern.search(value) is not None


def _matches_message(args: Any) -> str:
    pattern = args.constraints[0]
    return f"{args.property} must match {getattr(pattern, 'pattern', pattern)} regular expression"


# kind -> (evaluator, default message, checks_presence)
BUILTIN_KINDS: dict[str, tuple[Any, MessageSpec, bool]] = {
    "isString": (eval_is_string, "{{ property }} must be a string", False),
    "isInt": (eval_is_int, "{{ property }} must be an integer number", False),
    "isNumber": (
        eval_is_number,
        "{{ property }} must be a number conforming to the specified constraints",
        False,
    ),
    "isBoolean": (eval_is_boolean, "{{ property }} must be a boolean value", False),
    "min": (eval_min, "{{ property }} must not be less than {{ constraints[0] }}", False),
    "max": (eval_max, "{{ property }} must not be greater than {{ constraints[0] }}", False),
    "isIn": (eval_is_in, "{{ property }} must be one of {{ constraints[0] | join_values }}", False),
    "isUUID": (eval_is_uuid, "{{ property }} must be a UUID", False),
    "arrayMinSize": (
        eval_array_min_size,
        "{{ property }} must contain at least {{ constraints[0] }} elements",
        False,
    ),
    "arrayMaxSize": (
        eval_array_max_size,
        "{{ property }} must contain no more than {{ constraints[0] }} elements",
        False,
    ),
    "isNotEmpty": (eval_is_not_empty, "{{ property }} should not be empty", True),
    "isDefined": (eval_is_defined, "{{ property }} should not be null or undefined", True),
    "minLength": (
        eval_min_length,
        "{{ property }} must be longer than or equal to {{ constraints[0] }} characters",
        False,
    ),
    "maxLength": (
        eval_max_length,
        "{{ property }} must be shorter than or equal to {{ constraints[0] }} characters",
        False,
    ),
    "matches": (eval_matches, _matches_message, False),
}


def install_builtins(registry: Any) -> None:
    """Register every built-in kind on *registry*."""
    for kind, (evaluator, message, presence) in BUILTIN_KINDS.items():
        registry.register(kind, evaluator, message=message, checks_presence=presence)


# ============================================================================
# Factories
# ============================================================================

def is_string(*, applies_if: Predicate | None = None, message: MessageSpec | None = None) -> Constraint:
    return _build("isString", applies_if=applies_if, message=message)


def is_int(*, applies_if: Predicate | None = None, message: MessageSpec | None = None) -> Constraint:
    return _build("isInt", applies_if=applies_if, message=message)


def is_number(*, applies_if: Predicate | None = None, message: MessageSpec | None = None) -> Constraint:
    return _build("isNumber", applies_if=applies_if, message=message)


def is_boolean(*, applies_if: Predicate | None = None, message: MessageSpec | None = None) -> Constraint:
    return _build("isBoolean", applies_if=applies_if, message=message)


def min_value(
    limit: int | float | Decimal,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return _build("min", limit, applies_if=applies_if, message=message)


def max_value(
    limit: int | float | Decimal,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return _build("max", limit, applies_if=applies_if, message=message)


def is_in(
    values: Iterable[Any],
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    """Value must equal one of *values* (order kept for the message)."""
    return _build("isIn", tuple(values), applies_if=applies_if, message=message)


def is_uuid(
    version: int | str | None = None,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    if version is not None and str(version) not in _UUID_PATTERNS:
        raise ValueError(f"Unsupported UUID version: {version!r}")
    params = () if version is None else (str(version),)
    return _build("isUUID", *params, applies_if=applies_if, message=message)


def array_min_size(
    size: int,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return _build("arrayMinSize", size, applies_if=applies_if, message=message)


def array_max_size(
    size: int,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return _build("arrayMaxSize", size, applies_if=applies_if, message=message)


def is_not_empty(*, applies_if: Predicate | None = None, message: MessageSpec | None = None) -> Constraint:
    return _build("isNotEmpty", applies_if=applies_if, message=message)


def is_defined(*, applies_if: Predicate | None = None, message: MessageSpec | None = None) -> Constraint:
    return _build("isDefined", applies_if=applies_if, message=message)


def min_length(
    length: int,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return _build("minLength", length, applies_if=applies_if, message=message)


def max_length(
    length: int,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    return _build("maxLength", length, applies_if=applies_if, message=message)


def matches(
    pattern: str | re.Pattern,
    *,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    return _build("matches", pattern, applies_if=applies_if, message=message)
