"""
Routing expressions.

A routing expression is evaluated against a message and yields the
function definition to route it to. The default evaluator uses the
Jinja2 expression language in a sandbox; the message is exposed as:

    headers   the message headers (attribute or item access)
    payload   the message payload
    message   the Message itself

Examples:
    "'echo'"
    "headers.contentType == 'text/plain' and 'echo' or 'pojoecho'"
    "'uppercase' if payload is string else 'reverse'"
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

if TYPE_CHECKING:
    from streamwire.messaging import Message

logger = logging.getLogger(__name__)


class ExpressionError(Exception):
    """An expression failed to compile or evaluate."""

    def __init__(self, expression: str, message: str):
        self.expression = expression
        super().__init__(f"Expression '{expression}' failed: {message}")


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Evaluates an expression against a message."""

    def evaluate(self, expression: str, message: Message) -> str | None:
        """Return the resulting definition, or None when there is none."""
        ...


class JinjaExpressionEvaluator:
    """
    ExpressionEvaluator backed by Jinja2's sandboxed expression compiler.

    Compiled expressions are cached per expression text. Undefined
    lookups evaluate to None; any other result is converted to str.
    """

    def __init__(self, environment: SandboxedEnvironment | None = None) -> None:
        self._environment = environment or SandboxedEnvironment()
        self._compiled: dict[str, Callable[..., Any]] = {}
        self._lock = threading.Lock()

    def _compile(self, expression: str) -> Callable[..., Any]:
        with self._lock:
            compiled = self._compiled.get(expression)
            if compiled is None:
                try:
                    compiled = self._environment.compile_expression(expression)
                except TemplateError as e:
                    raise ExpressionError(expression, str(e)) from e
                self._compiled[expression] = compiled
            return compiled

    def evaluate(self, expression: str, message: Message) -> str | None:
        compiled = self._compile(expression)
        try:
            result = compiled(
                headers=dict(message.headers),
                payload=message.payload,
                message=message,
            )
        except Exception as e:
            raise ExpressionError(expression, f"{type(e).__name__}: {e}") from e

        if result is None:
            return None
        result = str(result).strip()
        return result or None
