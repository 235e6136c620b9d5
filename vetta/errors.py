"""
Vetta Error Tree - the result of a validation run.

An ``ErrorNode`` mirrors one instance of the payload:

- ``field_errors``: ``{field: [messages]}`` in constraint evaluation order
- ``children``: ``{field: ErrorNode}`` for nested objects and
  ``{field: {index: ErrorNode}}`` for arrays (sparse, keyed by the
  element's position in the source array)

A node with no field errors and no children anywhere below it means the
instance is valid; ``bool(node)`` is ``True`` only when there are errors.
Nodes are sealed (read-only) when the run that produced them finishes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Tuple, Union

ChildEntry = Union["ErrorNode", Mapping[int, "ErrorNode"]]


@dataclass(frozen=True)
class ValidationError:
    """
    One failing property, in the flat-plus-children form callers expect
    from class-validator style APIs.

    Attributes:
        property: Field name (array positions appear as ``"0"``, ``"1"`` ...)
        value: The value that failed (``None`` for array position nodes)
        constraints: ``{kind: message}`` for each failed constraint
        children: Errors of nested objects / array elements
    """

    property: str
    value: Any = None
    constraints: Dict[str, str] = field(default_factory=dict)
    children: List["ValidationError"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "property": self.property,
            "value": self.value,
            "constraints": dict(self.constraints),
            "children": [child.to_dict() for child in self.children],
        }


class ErrorNode:
    """Validation outcome for one instance (root, nested object or array element)."""

    __slots__ = ("field_errors", "children", "_kinds", "_values", "_sealed")

    def __init__(self) -> None:
        self.field_errors: Dict[str, List[str]] = {}
        self.children: Dict[str, ChildEntry] = {}
        self._kinds: Dict[str, List[str]] = {}
        self._values: Dict[str, Any] = {}
        self._sealed = False

    # ── Building (validator side) ────────────────────────────────────────

    def add(self, field_name: str, kind: str, message: str, value: Any = None) -> None:
        """Record one failed constraint for *field_name*."""
        self._check_open()
        self.field_errors.setdefault(field_name, []).append(message)
        self._kinds.setdefault(field_name, []).append(kind)
        self._values[field_name] = value

    def attach(self, field_name: str, node: ErrorNode) -> None:
        """Attach a nested object's node (ignored when it is empty)."""
        self._check_open()
        if not node.is_empty:
            self.children[field_name] = node

    def attach_items(self, field_name: str, nodes: Mapping[int, ErrorNode]) -> None:
        """Attach per-element nodes of an array field (empty ones dropped)."""
        self._check_open()
        failing = {index: node for index, node in sorted(nodes.items()) if not node.is_empty}
        if failing:
            self.children[field_name] = failing

    def seal(self) -> ErrorNode:
        """Make this node and every node below it read-only."""
        if self._sealed:
            return self
        for entry in self.children.values():
            if isinstance(entry, ErrorNode):
                entry.seal()
            else:
                for node in entry.values():
                    node.seal()
        self.field_errors = MappingProxyType(
            {name: tuple(messages) for name, messages in self.field_errors.items()}
        )
        self.children = MappingProxyType(
            {
                name: entry if isinstance(entry, ErrorNode) else MappingProxyType(dict(entry))
                for name, entry in self.children.items()
            }
        )
        self._sealed = True
        return self

    def _check_open(self) -> None:
        if self._sealed:
            raise RuntimeError("ErrorNode is sealed; validation results are read-only")

    # ── Inspection ───────────────────────────────────────────────────────

    @property
    def is_empty(self) -> bool:
        return not self.field_errors and not self.children

    def __bool__(self) -> bool:
        return not self.is_empty

    def child(self, field_name: str, index: int | None = None) -> ErrorNode | None:
        """Return the nested node for *field_name* (and array *index*), if any."""
        entry = self.children.get(field_name)
        if entry is None:
            return None
        if index is None:
            return entry if isinstance(entry, ErrorNode) else None
        if isinstance(entry, ErrorNode):
            return None
        return entry.get(index)

    def iter_messages(self, prefix: str = "") -> Iterator[Tuple[str, str]]:
        """Yield ``(path, message)`` pairs depth first, field errors before children."""
        for name, messages in self.field_errors.items():
            for message in messages:
                yield f"{prefix}{name}", message
        for name, entry in self.children.items():
            if isinstance(entry, ErrorNode):
                yield from entry.iter_messages(f"{prefix}{name}.")
            else:
                for index, node in entry.items():
                    yield from node.iter_messages(f"{prefix}{name}[{index}].")

    def messages(self) -> List[str]:
        """Every message in the tree, in evaluation order."""
        return [message for _, message in self.iter_messages()]

    def flatten(self) -> Dict[str, List[str]]:
        """``{"items[0].qty": [messages], ...}``"""
        flat: Dict[str, List[str]] = {}
        for path, message in self.iter_messages():
            flat.setdefault(path, []).append(message)
        return flat

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested structure (no ``MappingProxyType``/tuples)."""
        children: Dict[str, Any] = {}
        for name, entry in self.children.items():
            if isinstance(entry, ErrorNode):
                children[name] = entry.to_dict()
            else:
                children[name] = {index: node.to_dict() for index, node in entry.items()}
        return {
            "field_errors": {name: list(messages) for name, messages in self.field_errors.items()},
            "children": children,
        }

    def as_validation_errors(self) -> List[ValidationError]:
        """Render the tree as a list of ``ValidationError`` records."""
        errors: List[ValidationError] = []
        names = list(self.field_errors)
        names += [name for name in self.children if name not in self.field_errors]
        for name in names:
            constraints: Dict[str, str] = {}
            for kind, message in zip(self._kinds.get(name, ()), self.field_errors.get(name, ())):
                # repeated kinds on one field keep the first message
                constraints.setdefault(kind, message)
            children: List[ValidationError] = []
            entry = self.children.get(name)
            if isinstance(entry, ErrorNode):
                children = entry.as_validation_errors()
            elif entry is not None:
                children = [
                    ValidationError(property=str(index), children=node.as_validation_errors())
                    for index, node in entry.items()
                ]
            errors.append(ValidationError(
                property=name,
                value=self._values.get(name),
                constraints=constraints,
                children=children,
            ))
        return errors

    def __repr__(self) -> str:
        if self.is_empty:
            return "<ErrorNode valid>"
        return f"<ErrorNode {self.flatten()!r}>"
