"""
Vetta Constraint Core - constraint records and evaluation results.

A ``Constraint`` is pure data: *which* rule (``kind``), *with what*
(``parameters``), *when* (``applies_if``) and *how to phrase a failure*
(``message``).  The logic behind a kind lives in the
``ConstraintRegistry``; a schema only ever stores these records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

Predicate = Callable[[Any], bool]
MessageSpec = Union[str, Callable[["ValidationArguments"], str]]


@dataclass(frozen=True, slots=True)
class ValidationArguments:
    """
    Everything a message template or constraint plugin may look at.

    Attributes:
        value: The (transformed) value under validation
        constraints: The constraint's parameters
        target: Sibling field values of the enclosing instance
        object: The enclosing typed instance
        property: Field name
    """

    value: Any
    constraints: tuple
    target: Mapping[str, Any]
    object: Any
    property: str


@dataclass(frozen=True, slots=True)
class ConstraintResult:
    """Outcome of one evaluator call: pass, or fail with an optional message."""

    passed: bool
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> ConstraintResult:
        return _PASS

    @classmethod
    def fail(cls, message: str | None = None) -> ConstraintResult:
        return cls(False, message)

    @classmethod
    def coerce(cls, outcome: Any) -> ConstraintResult:
        """Accept the loose return types evaluators are allowed to use."""
        if isinstance(outcome, ConstraintResult):
            return outcome
        if outcome is None or outcome is True:
            return _PASS
        if outcome is False:
            return cls(False)
        raise TypeError(
            f"Constraint evaluators must return bool or ConstraintResult, "
            f"got {type(outcome).__name__}"
        )

    def __bool__(self) -> bool:
        return self.passed


_PASS = ConstraintResult(True)


@dataclass(frozen=True, slots=True)
class Constraint:
    """
    A named, parameterized rule attached to a schema field.

    Attributes:
        kind: Registry key (``"isString"``, ``"min"``, ``"isIn"`` ...)
        parameters: Kind-specific parameters, positional
        applies_if: Predicate over the enclosing instance; ``None`` means
            the constraint always applies
        message: Override for the failure message (Jinja2 template or
            callable receiving ``ValidationArguments``)
    """

    kind: str
    parameters: tuple = ()
    applies_if: Optional[Predicate] = None
    message: Optional[MessageSpec] = None

    @property
    def conditional(self) -> bool:
        return self.applies_if is not None

    def applies(self, siblings: Any) -> bool:
        if self.applies_if is None:
            return True
        return bool(self.applies_if(siblings))

    def when(self, predicate: Predicate) -> Constraint:
        """Return a copy that only applies when *predicate* holds."""
        return Constraint(self.kind, self.parameters, predicate, self.message)

    def with_message(self, message: MessageSpec) -> Constraint:
        """Return a copy with a custom failure message."""
        return Constraint(self.kind, self.parameters, self.applies_if, message)

    def __repr__(self) -> str:
        params = ", ".join(repr(p) for p in self.parameters)
        cond = ", conditional" if self.applies_if is not None else ""
        return f"Constraint({self.kind}({params}){cond})"


def constraint(
    kind: str,
    *parameters: Any,
    applies_if: Predicate | None = None,
    message: MessageSpec | None = None,
) -> Constraint:
    """
    Build a constraint of any registered kind.

    Usage::

        constraint("min", 1)
        constraint("isNotEmpty", applies_if=lambda o: o.delivery_option == "pickup")
    """
    return Constraint(kind, tuple(parameters), applies_if, message)
