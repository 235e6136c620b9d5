"""
Vetta Exceptions - Fault-domain integrated error types.

Every structural error is a proper Vetta ``Fault`` with domain, severity
and structured metadata.  Two families exist:

- ``SchemaFault`` and subclasses: configuration/programming defects
  (unknown or duplicate constraint kinds, conflicting field shapes).
  Always raised, never folded into an error tree.
- ``ShapeMismatch``: the payload's structure disagrees with a declared
  shape.  The transformer records these per field; only a non-mapping
  root payload raises one.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .faults import Fault, FaultDomain, Severity


# ============================================================================
# Schema / registry faults
# ============================================================================

class SchemaFault(Fault):
    """
    Base fault for all structural configuration errors.

    Raised when a schema or constraint registry is set up in a way that
    cannot work, regardless of the data being validated.
    """

    def __init__(
        self,
        code: str = "SCHEMA_ERROR",
        message: str = "Schema configuration is invalid",
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.SCHEMA,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class DuplicateConstraintKind(SchemaFault):
    """A constraint kind was registered twice on the same registry."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(
            code="DUPLICATE_CONSTRAINT_KIND",
            message=f"Constraint kind '{kind}' is already registered",
            metadata={"kind": kind},
        )


class UnknownConstraintKind(SchemaFault):
    """A schema references a constraint kind the registry does not know."""

    def __init__(self, kind: str, *, schema: str | None = None, field: str | None = None):
        self.kind = kind
        where = ""
        if schema and field:
            where = f" (used by {schema}.{field})"
        super().__init__(
            code="UNKNOWN_CONSTRAINT_KIND",
            message=f"Constraint kind '{kind}' is not registered{where}",
            metadata={"kind": kind, "schema": schema, "field": field},
        )


class RegistryFrozen(SchemaFault):
    """Registration was attempted after the registry was frozen."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(
            code="REGISTRY_FROZEN",
            message=f"Cannot register '{kind}': the constraint registry is frozen",
            metadata={"kind": kind},
        )


class SchemaConflict(SchemaFault):
    """Field declarations of a schema (or its parent) contradict each other."""

    def __init__(self, schema: str, field: str, reason: str):
        self.schema = schema
        self.field = field
        super().__init__(
            code="SCHEMA_CONFLICT",
            message=f"Field '{field}' of schema '{schema}': {reason}",
            metadata={"schema": schema, "field": field, "reason": reason},
        )


class SchemaDefinitionFault(SchemaFault):
    """A schema document (mapping/YAML) cannot be compiled."""

    def __init__(self, message: str, *, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="SCHEMA_DEFINITION_INVALID",
            message=message,
            metadata=metadata,
        )


class AsyncConstraintInSyncValidation(SchemaFault):
    """An asynchronous evaluator was hit by the synchronous validator."""

    def __init__(self, kind: str, field: str):
        self.kind = kind
        self.field = field
        super().__init__(
            code="ASYNC_CONSTRAINT_IN_SYNC_VALIDATION",
            message=(
                f"Constraint '{kind}' on field '{field}' is asynchronous; "
                f"use validate_async() instead of validate()"
            ),
            metadata={"kind": kind, "field": field},
        )


# ============================================================================
# Transform faults
# ============================================================================

class ShapeMismatch(Fault):
    """
    Raised (or recorded) when a raw value does not have the declared shape.

    Attributes:
        field: Field name the mismatch belongs to (``None`` for the root)
        expected: ``"object"`` or ``"array"``
        index: Array position when the mismatch is an array element
    """

    def __init__(
        self,
        expected: str,
        value: Any,
        *,
        field: str | None = None,
        index: int | None = None,
    ):
        self.expected = expected
        self.value = value
        self.field = field
        self.index = index
        where = field or "<root>"
        if index is not None:
            where = f"{where}[{index}]"
        super().__init__(
            code="SHAPE_MISMATCH",
            message=f"{where}: expected {expected}, got {type(value).__name__}",
            domain=FaultDomain.TRANSFORM,
            severity=Severity.WARN,
            retryable=False,
            public=True,
            metadata={
                "field": field,
                "index": index,
                "expected": expected,
                "received": type(value).__name__,
            },
        )
