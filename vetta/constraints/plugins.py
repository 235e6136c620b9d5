"""
Vetta Constraint Plugins - class-based custom constraints.

A plugin is any class implementing ``ConstraintPlugin``::

    @validator_constraint(name="isStrongPassword")
    class IsStrongPassword:
        def validate(self, value, args):
            return bool(re.search(r"[A-Z]", value or ""))

        def default_message(self, args):
            return "Password must contain an uppercase letter."

    class Account(Schema):
        password = Field(str, is_string(), use(IsStrongPassword))

Plugins are instantiated once, at registration, and then take part in
validation exactly like built-in kinds.  ``validate`` may be a coroutine
function; such plugins need ``validate_async()``.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional, Protocol, Type, runtime_checkable

from .core import Constraint, MessageSpec, Predicate, ValidationArguments
from .registry import ConstraintKind, ConstraintRegistry, default_registry

logger = logging.getLogger("vetta.plugins")

PLUGIN_NAME_ATTR = "__constraint_name__"


@runtime_checkable
class ConstraintPlugin(Protocol):
    """Custom constraint protocol."""

    def validate(self, value: Any, args: ValidationArguments) -> Any:
        """Return ``True`` when *value* satisfies the constraint."""
        ...


def _plugin_message(plugin: Any, kind: str) -> MessageSpec:
    if hasattr(plugin, "default_message"):
        return plugin.default_message
    return "{{ property }} failed the '" + kind + "' constraint"


def register_plugin(
    plugin: Any,
    *,
    name: str | None = None,
    registry: ConstraintRegistry | None = None,
    checks_presence: bool = False,
    is_async: bool = False,
) -> str:
    """
    Register a plugin class (or instance) and return its kind name.

    Raises:
        DuplicateConstraintKind: the name is already taken
        TypeError: *plugin* has no ``validate`` method
    """
    instance = plugin() if isinstance(plugin, type) else plugin
    if not isinstance(instance, ConstraintPlugin):
        raise TypeError(f"{plugin!r} does not implement validate(value, args)")

    kind = name or getattr(instance, PLUGIN_NAME_ATTR, None) or type(instance).__name__
    target = registry if registry is not None else default_registry()
    target.add(ConstraintKind(
        name=kind,
        evaluator=instance.validate,
        message=_plugin_message(instance, kind),
        checks_presence=checks_presence,
        is_async=is_async or inspect.iscoroutinefunction(instance.validate),
        plugin=instance,
    ))
    setattr(type(instance), PLUGIN_NAME_ATTR, kind)
    logger.debug("Registered constraint plugin %s as %r", type(instance).__name__, kind)
    return kind


def validator_constraint(
    name: str | None = None,
    *,
    is_async: bool = False,
    registry: ConstraintRegistry | None = None,
    checks_presence: bool = False,
) -> Callable[[Type], Type]:
    """
    Class decorator registering a constraint plugin.

    ``is_async`` marks a plugin whose ``validate`` returns an awaitable
    without being a coroutine function; coroutine functions are detected.
    """
    def decorator(cls: Type) -> Type:
        register_plugin(cls, name=name, registry=registry, checks_presence=checks_presence, is_async=is_async)
        return cls
    return decorator


def use(
    plugin: Any,
    *parameters: Any,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    """
    Reference a registered plugin (by class or kind name) from a field.

    Usage::

        password = Field(str, use(IsStrongPassword))
        password = Field(str, use("isStrongPassword"))
    """
    if isinstance(plugin, str):
        kind: Optional[str] = plugin
    else:
        owner = plugin if isinstance(plugin, type) else type(plugin)
        kind = getattr(owner, PLUGIN_NAME_ATTR, None)
        if kind is None:
            raise TypeError(
                f"{owner.__name__} is not a registered constraint plugin; "
                f"decorate it with @validator_constraint or call register_plugin()"
            )
    return Constraint(kind, tuple(parameters), applies_if, message)
