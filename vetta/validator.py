"""
Vetta Validator - walks a typed instance alongside its schema descriptor and
builds the error tree.

Per field, in descriptor order:

1. ``validate_if`` false -> the field is skipped entirely
2. absent/null and optional -> skipped, never recursed into
3. absent/null and required -> presence checks (``isNotEmpty`` ...) if any
   apply, else the generic "is required" message; no recursion.  A field
   whose constraints are all conditional and none applies is skipped.
4. shape mismatch (recorded by the transformer, or a directly built
   instance holding the wrong structure) -> message recorded, constraints
   still run, no recursion into the malformed value
5. constraints: inherited first, then own; ``applies_if`` false means
   skipped; every failure is recorded (no short-circuit)
6. nested objects / array elements are validated recursively and
   attached only when they hold errors

``validate()`` is synchronous and rejects asynchronous constraints with a
fault.  ``validate_async()`` runs independent fields and array elements
concurrently while awaiting each field's constraints strictly in order.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import weakref
from typing import Any, Iterable, List, Optional, Tuple

from .config import ValidationConfig
from .constraints.core import Constraint, ConstraintResult, ValidationArguments
from .constraints.messages import render_message
from .constraints.registry import ConstraintKind, ConstraintRegistry, default_registry
from .errors import ErrorNode
from .exceptions import AsyncConstraintInSyncValidation, ShapeMismatch
from .instance import TypedInstance, mismatch_for, mismatches_of
from .schema.descriptor import SchemaDescriptor, descriptor_of
from .schema.fields import FieldDescriptor
from .schema.shapes import ArrayOf, Nested
from .transform import transform

logger = logging.getLogger("vetta.validator")

NON_FIELD_ERRORS = "__all__"

# Synthetic kinds used in the error tree for non-constraint failures
REQUIRED = "required"
NESTED_VALIDATION = "nestedValidation"
ARRAY_VALIDATION = "arrayValidation"


class _FieldOutcome:
    """Everything one field contributes to its parent node."""

    __slots__ = ("failures", "child", "items")

    def __init__(self) -> None:
        self.failures: List[Tuple[str, str, Any]] = []
        self.child: Optional[ErrorNode] = None
        self.items: Optional[dict[int, ErrorNode]] = None

    def fail(self, kind: str, message: str, value: Any) -> None:
        self.failures.append((kind, message, value))


class _FieldPlan:
    """Constraints to evaluate for one field and whether to recurse."""

    __slots__ = ("value", "constraints", "recurse")

    def __init__(self, value: Any, constraints: list[Constraint], recurse: bool):
        self.value = value
        self.constraints = constraints
        self.recurse = recurse


class Validator:
    """
    Validates typed instances against schema descriptors.

    Usage::

        validator = Validator()
        errors = validator.validate(transform(payload, Store))
        if errors:
            print(errors.flatten())

    Args:
        registry: Constraint registry (default: the process-wide registry)
        config: Validator options
    """

    def __init__(
        self,
        registry: ConstraintRegistry | None = None,
        config: ValidationConfig | None = None,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.config = config or ValidationConfig()
        if self.config.freeze_registry:
            self.registry.freeze()
        # schemas already checked against this registry; kinds are never removed
        self._checked: weakref.WeakSet = weakref.WeakSet()

    # ── Public API ───────────────────────────────────────────────────────

    def validate(self, instance: TypedInstance, schema: Any = None) -> ErrorNode:
        """
        Validate *instance* synchronously.

        Raises:
            UnknownConstraintKind: the schema uses a kind the registry lacks
            AsyncConstraintInSyncValidation: an evaluator returned an awaitable
        """
        descriptor = self._prepare(instance, schema)
        node = self._validate_object(instance, descriptor).seal()
        self._log_run(descriptor, node)
        return node

    async def validate_async(self, instance: TypedInstance, schema: Any = None) -> ErrorNode:
        """Validate *instance*, awaiting asynchronous constraints."""
        descriptor = self._prepare(instance, schema)
        limit = self.config.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None
        node = (await self._validate_object_async(instance, descriptor, semaphore)).seal()
        self._log_run(descriptor, node)
        return node

    def check(self, raw: Any, schema: Any) -> Tuple[Optional[TypedInstance], ErrorNode]:
        """Transform *raw* and validate the result in one step."""
        instance, failed = self._transform_root(raw, schema)
        if failed is not None:
            return None, failed
        return instance, self.validate(instance, schema)

    async def check_async(self, raw: Any, schema: Any) -> Tuple[Optional[TypedInstance], ErrorNode]:
        instance, failed = self._transform_root(raw, schema)
        if failed is not None:
            return None, failed
        return instance, await self.validate_async(instance, schema)

    # ── Setup ────────────────────────────────────────────────────────────

    def _prepare(self, instance: Any, schema: Any) -> SchemaDescriptor:
        if not isinstance(instance, TypedInstance):
            raise TypeError(
                f"validate() expects a typed instance (see transform()), got {type(instance).__name__}"
            )
        descriptor = descriptor_of(schema if schema is not None else instance)
        if descriptor not in self._checked:
            descriptor.check_kinds(self.registry)
            self._checked.add(descriptor)
        return descriptor

    def _transform_root(self, raw: Any, schema: Any) -> Tuple[Optional[TypedInstance], Optional[ErrorNode]]:
        try:
            return transform(raw, schema), None
        except ShapeMismatch as exc:
            node = ErrorNode()
            node.add(NON_FIELD_ERRORS, NESTED_VALIDATION, "payload must be an object", exc.value)
            return None, node.seal()

    def _log_run(self, descriptor: SchemaDescriptor, node: ErrorNode) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Validated %s: %d failures", descriptor.name, len(node.messages()))

    # ── Shared per-field logic ───────────────────────────────────────────

    def _args(self, instance: TypedInstance, fd: FieldDescriptor, value: Any, parameters: tuple = ()) -> ValidationArguments:
        return ValidationArguments(
            value=value,
            constraints=parameters,
            target=instance,
            object=instance,
            property=fd.name,
        )

    def _plan(self, instance: TypedInstance, fd: FieldDescriptor, outcome: _FieldOutcome) -> Optional[_FieldPlan]:
        """Decide what to evaluate for *fd*; records structural failures."""
        if fd.validate_if is not None and not fd.validate_if(instance):
            return None

        value = instance.__dict__.get(fd.name)
        if value is None:
            if fd.optional or self.config.skip_missing_properties:
                return None
            applicable = [c for c in fd.constraints if c.applies(instance)]
            if fd.all_conditional and not applicable:
                return None
            presence = [c for c in applicable if self.registry.get(c.kind).checks_presence]
            if presence:
                return _FieldPlan(None, presence, recurse=False)
            message = fd.message(REQUIRED, self.config.required_message)
            outcome.fail(REQUIRED, render_message(message, self._args(instance, fd, None)), None)
            return None

        recurse = True
        if self._malformed(instance, fd, value):
            recurse = False
            if isinstance(fd.shape, ArrayOf):
                kind, message = ARRAY_VALIDATION, fd.message("array", self.config.array_message)
            else:
                kind, message = NESTED_VALIDATION, fd.message("nested", self.config.nested_message)
            outcome.fail(kind, render_message(message, self._args(instance, fd, value)), value)
        elif self._malformed_items(instance, fd, value):
            message = fd.message("array_item", self.config.array_item_message)
            outcome.fail(NESTED_VALIDATION, render_message(message, self._args(instance, fd, value)), value)

        applicable = [c for c in fd.constraints if c.applies(instance)]
        return _FieldPlan(value, applicable, recurse)

    def _malformed(self, instance: TypedInstance, fd: FieldDescriptor, value: Any) -> bool:
        """Whether *value* lacks the structure of the field's shape."""
        if mismatch_for(instance, fd.name) is not None:
            return True
        # Instances built directly (not via transform) carry no mismatch records
        if isinstance(fd.shape, Nested):
            return not isinstance(value, TypedInstance)
        if isinstance(fd.shape, ArrayOf):
            return not isinstance(value, (list, tuple))
        return False

    def _malformed_items(self, instance: TypedInstance, fd: FieldDescriptor, value: Any) -> bool:
        shape = fd.shape
        if not (isinstance(shape, ArrayOf) and isinstance(shape.item, Nested)):
            return False
        if any(isinstance(key, tuple) and key[0] == fd.name for key in mismatches_of(instance)):
            return True
        return any(not isinstance(element, TypedInstance) for element in value)

    def _call(self, entry: ConstraintKind, args: ValidationArguments) -> Any:
        try:
            return entry.evaluate(args)
        except (ValueError, TypeError) as exc:
            return ConstraintResult.fail(str(exc))

    def _record(
        self,
        outcome: _FieldOutcome,
        item: Constraint,
        entry: ConstraintKind,
        args: ValidationArguments,
        result: Any,
    ) -> None:
        result = ConstraintResult.coerce(result)
        if result.passed:
            return
        message = item.message or result.message or entry.message
        outcome.fail(item.kind, render_message(message, args), args.value)

    def _assemble(self, descriptor: SchemaDescriptor, outcomes: Iterable[_FieldOutcome]) -> ErrorNode:
        node = ErrorNode()
        for fd, outcome in zip(descriptor.fields, outcomes):
            for kind, message, value in outcome.failures:
                node.add(fd.name, kind, message, value)
            if outcome.child is not None:
                node.attach(fd.name, outcome.child)
            if outcome.items is not None:
                node.attach_items(fd.name, outcome.items)
        return node

    def _recursion_targets(self, fd: FieldDescriptor, value: Any):
        """Yield ``(index, element, schema)``; index is ``None`` for a nested object."""
        shape = fd.shape
        if isinstance(shape, Nested):
            yield None, value, shape.schema
        elif isinstance(shape, ArrayOf) and isinstance(shape.item, Nested):
            for index, element in enumerate(value):
                # malformed elements were reported on the array field itself
                if isinstance(element, TypedInstance):
                    yield index, element, shape.item.schema

    # ── Synchronous traversal ────────────────────────────────────────────

    def _validate_object(self, instance: TypedInstance, descriptor: SchemaDescriptor) -> ErrorNode:
        return self._assemble(descriptor, [self._validate_field(instance, fd) for fd in descriptor.fields])

    def _validate_field(self, instance: TypedInstance, fd: FieldDescriptor) -> _FieldOutcome:
        outcome = _FieldOutcome()
        plan = self._plan(instance, fd, outcome)
        if plan is None:
            return outcome

        for item in plan.constraints:
            entry = self.registry.get(item.kind)
            if entry.is_async:
                raise AsyncConstraintInSyncValidation(item.kind, fd.name)
            args = self._args(instance, fd, plan.value, item.parameters)
            result = self._call(entry, args)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise AsyncConstraintInSyncValidation(item.kind, fd.name)
            self._record(outcome, item, entry, args, result)

        if plan.recurse and plan.value is not None:
            for index, element, schema in self._recursion_targets(fd, plan.value):
                child = self._validate_object(element, schema)
                if index is None:
                    outcome.child = child
                else:
                    if outcome.items is None:
                        outcome.items = {}
                    outcome.items[index] = child
        return outcome

    # ── Asynchronous traversal ───────────────────────────────────────────

    async def _validate_object_async(
        self,
        instance: TypedInstance,
        descriptor: SchemaDescriptor,
        semaphore: Optional[asyncio.Semaphore],
    ) -> ErrorNode:
        outcomes = await _gather_all(
            self._validate_field_async(instance, fd, semaphore) for fd in descriptor.fields
        )
        return self._assemble(descriptor, outcomes)

    async def _evaluate_async(self, instance: TypedInstance, fd: FieldDescriptor, plan: _FieldPlan, outcome: _FieldOutcome) -> None:
        for item in plan.constraints:
            entry = self.registry.get(item.kind)
            args = self._args(instance, fd, plan.value, item.parameters)
            result = self._call(entry, args)
            if inspect.isawaitable(result):
                try:
                    result = await result
                except (ValueError, TypeError) as exc:
                    result = ConstraintResult.fail(str(exc))
            self._record(outcome, item, entry, args, result)

    async def _validate_field_async(
        self,
        instance: TypedInstance,
        fd: FieldDescriptor,
        semaphore: Optional[asyncio.Semaphore],
    ) -> _FieldOutcome:
        outcome = _FieldOutcome()
        plan = self._plan(instance, fd, outcome)
        if plan is None:
            return outcome

        # Hold a slot only while this field's own constraints run; nested
        # validation acquires its own slots
        if semaphore is not None:
            async with semaphore:
                await self._evaluate_async(instance, fd, plan, outcome)
        else:
            await self._evaluate_async(instance, fd, plan, outcome)

        if plan.recurse and plan.value is not None:
            targets = list(self._recursion_targets(fd, plan.value))
            children = await _gather_all(
                self._validate_object_async(element, schema, semaphore) for _, element, schema in targets
            )
            for (index, _, _), child in zip(targets, children):
                if index is None:
                    outcome.child = child
                else:
                    if outcome.items is None:
                        outcome.items = {}
                    outcome.items[index] = child
        return outcome


async def _gather_all(aws: Iterable[Any]) -> list:
    """
    Await *aws* concurrently and return their results in order.

    The first exception cancels the remaining tasks, waits for them to
    wind down and is then re-raised, so a failed run leaves nothing behind.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        pending = set(tasks)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if task in done and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


# ============================================================================
# Module-level shortcuts
# ============================================================================

_default_validator: Validator | None = None


def get_default_validator() -> Validator:
    """Validator bound to the default registry and default config."""
    global _default_validator
    if _default_validator is None or _default_validator.registry is not default_registry():
        _default_validator = Validator()
    return _default_validator


def validate(instance: TypedInstance, schema: Any = None) -> ErrorNode:
    """Validate with the default validator."""
    return get_default_validator().validate(instance, schema)


async def validate_async(instance: TypedInstance, schema: Any = None) -> ErrorNode:
    """Validate with the default validator, awaiting async constraints."""
    return await get_default_validator().validate_async(instance, schema)


def check(raw: Any, schema: Any) -> Tuple[Optional[TypedInstance], ErrorNode]:
    """``transform`` then ``validate`` with the default validator."""
    return get_default_validator().check(raw, schema)


async def check_async(raw: Any, schema: Any) -> Tuple[Optional[TypedInstance], ErrorNode]:
    return await get_default_validator().check_async(raw, schema)
