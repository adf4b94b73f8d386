"""
Identifier Expressions

A deliberately small expression language used to derive the per-call
identifier from the guarded operation's arguments. It is not a scripting
engine: only lookups are supported.

Grammar::

    expression := "#" reference ("." NAME)*
    reference  := NAME                # parameter by declared name, e.g. #phone
                | "p" DIGITS          # parameter by position, e.g. #p0
                | "args[" DIGITS "]"  # parameter by position, e.g. #args[1]

Property segments read a key from mappings and an attribute from any other
object, so ``#user.email`` works for both ``{"email": ...}`` and objects with
an ``email`` attribute.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from collections.abc import Mapping, Sequence
from typing import Any, Union

import structlog

from redis_ratelimiter.core.exceptions import ExpressionResolutionError

logger = structlog.get_logger(__name__)

_REFERENCE = re.compile(r"#(?:args\[(?P<index>\d+)\]|(?P<name>[A-Za-z_][A-Za-z0-9_]*))")
_PROPERTY = re.compile(r"\.(?P<attr>[A-Za-z_][A-Za-z0-9_]*)")
_POSITIONAL_NAME = re.compile(r"p(\d+)")


class ExpressionSyntaxError(ValueError):
    """Raised by the parser for malformed expressions."""


class ExpressionEvaluationError(LookupError):
    """Raised when an expression references something that is not there."""


@dataclass(frozen=True, slots=True)
class Variable:
    name: str


@dataclass(frozen=True, slots=True)
class PositionalRef:
    index: int


@dataclass(frozen=True, slots=True)
class PropertyAccess:
    target: "Node"
    attribute: str


Node = Union[Variable, PositionalRef, PropertyAccess]


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Arguments of one call, addressable by parameter name and by position."""
    variables: Mapping[str, Any]
    positions: Sequence[Any]

    @classmethod
    def bind(cls, parameter_names: Sequence[str], parameter_values: Sequence[Any]) -> "EvaluationContext":
        count = min(len(parameter_names), len(parameter_values))
        variables = {parameter_names[i]: parameter_values[i] for i in range(count)}
        return cls(variables=variables, positions=tuple(parameter_values))


@lru_cache(maxsize=256)
def parse_expression(expression: str) -> Node:
    """Parse `expression` into an AST.

    Raises:
        ExpressionSyntaxError: If the text does not match the grammar.
    """
    text = expression.strip()
    match = _REFERENCE.match(text)
    if match is None:
        raise ExpressionSyntaxError("expected '#name', '#pN' or '#args[N]' at position 0")

    node: Node
    if match.group("index") is not None:
        node = PositionalRef(int(match.group("index")))
    else:
        name = match.group("name")
        positional = _POSITIONAL_NAME.fullmatch(name)
        node = PositionalRef(int(positional.group(1))) if positional else Variable(name)

    pos = match.end()
    while pos < len(text):
        prop = _PROPERTY.match(text, pos)
        if prop is None:
            raise ExpressionSyntaxError(f"unexpected {text[pos:]!r} at position {pos}")
        node = PropertyAccess(node, prop.group("attr"))
        pos = prop.end()
    return node


def evaluate(node: Node, context: EvaluationContext) -> Any:
    """Evaluate a parsed expression against call arguments.

    Raises:
        ExpressionEvaluationError: Unknown variable, position out of range, or
            missing property.
    """
    if isinstance(node, Variable):
        try:
            return context.variables[node.name]
        except KeyError:
            raise ExpressionEvaluationError(f"unknown variable '#{node.name}'") from None

    if isinstance(node, PositionalRef):
        if node.index >= len(context.positions):
            raise ExpressionEvaluationError(
                f"argument index {node.index} out of range ({len(context.positions)} arguments)"
            )
        return context.positions[node.index]

    target = evaluate(node.target, context)
    if target is None:
        raise ExpressionEvaluationError(f"cannot read property '{node.attribute}' of None")
    if isinstance(target, Mapping):
        try:
            return target[node.attribute]
        except KeyError:
            raise ExpressionEvaluationError(f"missing key '{node.attribute}'") from None
        except Exception as exc:
            raise ExpressionEvaluationError(
                f"cannot read key '{node.attribute}': {type(exc).__name__}: {exc}"
            ) from exc
    try:
        return getattr(target, node.attribute)
    except AttributeError:
        raise ExpressionEvaluationError(
            f"'{type(target).__name__}' object has no property '{node.attribute}'"
        ) from None
    except Exception as exc:
        # Property getters and __getattr__ may raise anything.
        raise ExpressionEvaluationError(
            f"cannot read property '{node.attribute}': {type(exc).__name__}: {exc}"
        ) from exc


def resolve_identifier(
    expression: str | None,
    parameter_names: Sequence[str],
    parameter_values: Sequence[Any],
) -> str:
    """Resolve an identifier expression against call arguments.

    Args:
        expression: Expression such as ``#phone`` or ``#user.email``.
        parameter_names: Declared parameter names of the guarded operation.
        parameter_values: Argument values, positionally aligned with the names.

    Returns:
        The resolved value as a string, or ``""`` when the expression is empty
        or evaluates to ``None``.

    Raises:
        ExpressionResolutionError: If the expression cannot be parsed or
            evaluated. The original failure is chained as ``__cause__``.
    """
    if not expression or not expression.strip():
        return ""

    try:
        node = parse_expression(expression)
        value = evaluate(node, EvaluationContext.bind(parameter_names, parameter_values))
    except (ExpressionSyntaxError, ExpressionEvaluationError) as exc:
        logger.warning("identifier_expression_failed", expression=expression, error=str(exc))
        raise ExpressionResolutionError(expression, str(exc)) from exc

    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
