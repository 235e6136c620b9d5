"""
Constraint message rendering.

Failure messages are Jinja2 templates rendered in an immutable sandbox
with the fields of ``ValidationArguments`` as variables::

    "{{ property }} must not be less than {{ constraints[0] }}"
    "{{ property }} must be one of {{ constraints[0] | join_values }}"

A message may also be a callable taking ``ValidationArguments`` and
returning the final string.  Plain strings without template markers are
returned untouched.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Iterable

from jinja2 import StrictUndefined, Template
from jinja2.sandbox import ImmutableSandboxedEnvironment

from .core import MessageSpec, ValidationArguments


def _join_values(values: Iterable[Any], separator: str = ", ") -> str:
    if isinstance(values, (str, bytes)):
        return str(values)
    return separator.join(str(v) for v in values)


_env = ImmutableSandboxedEnvironment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)
_env.filters["join_values"] = _join_values


@lru_cache(maxsize=512)
def compile_message(source: str) -> Template:
    """Compile (and cache) a message template."""
    return _env.from_string(source)


def _is_template(source: str) -> bool:
    return "{{" in source or "{%" in source


def render_message(message: MessageSpec, args: ValidationArguments) -> str:
    """Produce the human-readable failure string for *args*."""
    if callable(message):
        return str(message(args))
    if not _is_template(message):
        return message
    return compile_message(message).render(
        property=args.property,
        value=args.value,
        constraints=args.constraints,
        target=args.target,
        object=args.object,
    )
