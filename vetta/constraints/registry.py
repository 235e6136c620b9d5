"""
Vetta Constraint Registry - maps constraint kinds to evaluators.

The registry is populated once at startup (built-in kinds plus whatever
custom kinds the application adds) and is read-only afterwards.  It is
shared by every schema and every validation run, so registration never
silently overwrites: registering a kind twice is a ``DuplicateConstraintKind``
fault.

Evaluator protocol::

    def evaluator(value, parameters, siblings) -> ConstraintResult | bool

``parameters`` is the constraint's parameter tuple and ``siblings`` is the
enclosing typed instance.  Evaluators may be coroutine functions, or return
an awaitable; such kinds can only be used with ``validate_async()``.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from ..exceptions import DuplicateConstraintKind, RegistryFrozen, UnknownConstraintKind
from .core import MessageSpec, ValidationArguments

logger = logging.getLogger("vetta.registry")

Evaluator = Callable[[Any, tuple, Any], Any]

def _default_message(kind: str) -> str:
    return "{{ property }} failed the '" + kind + "' constraint"


@dataclass(frozen=True, slots=True)
class ConstraintKind:
    """
    A registered constraint kind.

    Attributes:
        name: The kind discriminator used by ``Constraint.kind``
        evaluator: ``(value, parameters, siblings) -> result``
        message: Default failure message for this kind
        checks_presence: Whether the kind is meaningful on an absent value
            (``isNotEmpty``, ``isDefined``); such kinds replace the generic
            "is required" message
        is_async: Whether the evaluator is a coroutine function
        plugin: Plugin instance for class-based kinds; it receives the full
            ``ValidationArguments`` instead of the three-argument form
    """

    name: str
    evaluator: Evaluator
    message: MessageSpec
    checks_presence: bool = False
    is_async: bool = False
    plugin: Any = None

    def evaluate(self, args: ValidationArguments) -> Any:
        """Run the evaluator; the result may be awaitable for async kinds."""
        if self.plugin is not None:
            return self.plugin.validate(args.value, args)
        return self.evaluator(args.value, args.constraints, args.target)


class ConstraintRegistry:
    """
    Registry of constraint kinds.

    Usage::

        registry = ConstraintRegistry.with_builtins()

        @registry.register("isEven", message="{{ property }} must be even")
        def is_even(value, parameters, siblings):
            return isinstance(value, int) and value % 2 == 0
    """

    def __init__(self) -> None:
        self._kinds: Dict[str, ConstraintKind] = {}
        self._frozen = False

    @classmethod
    def with_builtins(cls) -> ConstraintRegistry:
        """Create a registry pre-loaded with the built-in kinds."""
        from .builtins import install_builtins

        registry = cls()
        install_builtins(registry)
        return registry

    # ── Registration ─────────────────────────────────────────────────────

    def register(
        self,
        kind: str,
        evaluator: Evaluator | None = None,
        *,
        message: MessageSpec | None = None,
        checks_presence: bool = False,
    ) -> Any:
        """
        Associate *kind* with *evaluator*.

        Can be called directly or used as a decorator (omit *evaluator*).

        Raises:
            DuplicateConstraintKind: *kind* is already registered
            RegistryFrozen: the registry no longer accepts registrations
        """
        if evaluator is None:
            def decorator(fn: Evaluator) -> Evaluator:
                self.register(kind, fn, message=message, checks_presence=checks_presence)
                return fn
            return decorator

        self.add(ConstraintKind(
            name=kind,
            evaluator=evaluator,
            message=message if message is not None else _default_message(kind),
            checks_presence=checks_presence,
            is_async=inspect.iscoroutinefunction(evaluator),
        ))
        return evaluator

    def add(self, entry: ConstraintKind) -> ConstraintKind:
        """Register a prepared ``ConstraintKind`` entry."""
        if self._frozen:
            raise RegistryFrozen(entry.name)
        if entry.name in self._kinds:
            raise DuplicateConstraintKind(entry.name)
        self._kinds[entry.name] = entry
        logger.debug("Registered constraint kind %r (async=%s)", entry.name, entry.is_async)
        return entry

    def freeze(self) -> None:
        """Reject any further registration."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Lookup ───────────────────────────────────────────────────────────

    def get(self, kind: str) -> ConstraintKind:
        """
        Return the entry for *kind*.

        Raises:
            UnknownConstraintKind: *kind* was never registered
        """
        try:
            return self._kinds[kind]
        except KeyError:
            raise UnknownConstraintKind(kind) from None

    def find(self, kind: str) -> Optional[ConstraintKind]:
        return self._kinds.get(kind)

    def kinds(self) -> list[str]:
        return list(self._kinds)

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def __iter__(self) -> Iterator[str]:
        return iter(self._kinds)

    def __len__(self) -> int:
        return len(self._kinds)

    def __repr__(self) -> str:
        state = ", frozen" if self._frozen else ""
        return f"<ConstraintRegistry(kinds={len(self._kinds)}{state})>"


_default_registry: ConstraintRegistry | None = None


def default_registry() -> ConstraintRegistry:
    """Get the process-wide registry (created with built-ins on first use)."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ConstraintRegistry.with_builtins()
    return _default_registry
