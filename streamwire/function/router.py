"""
Routing Function for streamwire.

The router picks, per message, the function definition to apply and
runs it. It is itself a catalog function (``functionRouter``), so it
can be bound directly or used as a stage of a composition such as
``enrich|functionRouter|reverse``.

Decision order (first match wins):
1. ``function.routing-expression`` header, evaluated against the message
2. configured routing_expression, evaluated the same way
3. ``function.definition`` header, used verbatim
4. configured default_definition
5. otherwise the message is rejected

States per message:

    AWAITING_DECISION -> DECIDED -> DISPATCHED
                      \\-> REJECTED  (no target, bad definition, streaming result)

The router keeps no per-message state on the instance and may be
called concurrently.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from streamwire.config import StreamFunctionProperties
from streamwire.messaging import Message, MessageHeaders

from .catalog import (
    DefinitionError,
    FunctionInvoker,
    FunctionKind,
    is_stream,
    to_message,
)
from .definition import DefinitionComposer, validate_stages
from .expression import ExpressionError, JinjaExpressionEvaluator

if TYPE_CHECKING:
    from .catalog import FunctionCatalog
    from .expression import ExpressionEvaluator

logger = logging.getLogger(__name__)

ROUTER_FUNCTION_NAME = "functionRouter"


# =============================================================================
# Exceptions
# =============================================================================


class RoutingError(Exception):
    """Raised when a message cannot be routed. Not retried."""

    def __init__(self, router_name: str, message: str, message_id: UUID | None = None):
        self.router_name = router_name
        self.message_id = message_id
        super().__init__(f"[{router_name}] {message}")


class NoRoutingTargetError(RoutingError):
    """No definition could be determined, or it does not resolve."""

    pass


class StreamingOutputError(RoutingError):
    """The routed function produces a stream, which cannot be routed."""

    pass


class RedirectLimitError(RoutingError):
    """A message was redirected more often than max_redirects allows."""

    pass


# =============================================================================
# Decisions and outcomes
# =============================================================================


class RoutingState(str, Enum):
    AWAITING_DECISION = "awaiting_decision"
    DECIDED = "decided"
    DISPATCHED = "dispatched"
    REJECTED = "rejected"


class DecisionSource(str, Enum):
    """Where a routing decision came from."""

    EXPRESSION_HEADER = "expression_header"
    ROUTING_EXPRESSION = "routing_expression"
    DEFINITION_HEADER = "definition_header"
    DEFAULT = "default"


@dataclass(frozen=True)
class RoutingDecision:
    """
    The definition chosen for one message.

    Transient; computed again for every message.
    """

    message_id: UUID
    definition: str
    source: DecisionSource
    expression: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "message_id": str(self.message_id),
            "definition": self.definition,
            "source": self.source.value,
            "expression": self.expression,
        }


@dataclass(frozen=True)
class SingleValue:
    """Routed successfully. message is None when the pipeline ended in a consumer."""

    message: Message | None
    decision: RoutingDecision
    invoked: tuple[str, ...] = ()

    @property
    def state(self) -> RoutingState:
        return RoutingState.DISPATCHED


@dataclass(frozen=True)
class Rejected:
    """Routing failed; error explains why. Nothing was emitted."""

    error: RoutingError
    decision: RoutingDecision | None = None

    @property
    def state(self) -> RoutingState:
        return RoutingState.REJECTED


RoutingOutcome = SingleValue | Rejected


# =============================================================================
# Router
# =============================================================================


class RoutingFunction(FunctionInvoker):
    """
    Per-message dispatch over a FunctionCatalog.

    If a stage returns a message whose definition header differs from
    the one it received, routing restarts from that definition and the
    rest of the current pipeline is dropped.

    Example:
        router = RoutingFunction(catalog, StreamFunctionProperties(default_definition="echo"))
        catalog.add(router)

        outcome = await router.route(Message.of("hi"))
        if isinstance(outcome, SingleValue):
            print(outcome.message.payload)
    """

    kind = FunctionKind.FUNCTION

    def __init__(
        self,
        catalog: FunctionCatalog,
        properties: StreamFunctionProperties | None = None,
        evaluator: ExpressionEvaluator | None = None,
        *,
        name: str = ROUTER_FUNCTION_NAME,
    ):
        self.name = name
        self.catalog = catalog
        self.properties = properties or StreamFunctionProperties()
        self.evaluator = evaluator or JinjaExpressionEvaluator()
        self.composer = DefinitionComposer(catalog, self.properties.composition_delimiter)

    @property
    def input_count(self) -> int:
        return 1

    @property
    def output_count(self) -> int:
        return 1

    # ==================== Decision ====================

    def decide(self, message: Message) -> RoutingDecision | None:
        """
        Pick the definition for a message.

        Returns:
            The decision, or None if nothing applies

        Raises:
            ExpressionError: If a routing expression fails to evaluate
        """
        header_expression = message.header(MessageHeaders.ROUTING_EXPRESSION)
        if header_expression:
            return self._decide_by_expression(
                message, header_expression, DecisionSource.EXPRESSION_HEADER
            )

        if self.properties.routing_expression:
            return self._decide_by_expression(
                message, self.properties.routing_expression, DecisionSource.ROUTING_EXPRESSION
            )

        definition = message.header(MessageHeaders.FUNCTION_DEFINITION)
        if definition:
            return RoutingDecision(message.id, str(definition), DecisionSource.DEFINITION_HEADER)

        if self.properties.default_definition:
            return RoutingDecision(
                message.id, self.properties.default_definition, DecisionSource.DEFAULT
            )

        return None

    def _decide_by_expression(
        self,
        message: Message,
        expression: str,
        source: DecisionSource,
    ) -> RoutingDecision | None:
        definition = self.evaluator.evaluate(expression, message)
        if definition is None:
            return None
        return RoutingDecision(message.id, definition, source, expression=expression)

    # ==================== Dispatch ====================

    def _resolve(self, definition: str, message: Message) -> list[FunctionInvoker]:
        try:
            stages = self.composer.resolve_stages(definition)
            validate_stages(definition, stages)
        except DefinitionError as e:
            raise NoRoutingTargetError(self.name, str(e), message.id) from e

        for stage in stages:
            if stage is self or stage.name == self.name:
                raise RoutingError(
                    self.name,
                    f"Definition '{definition}' routes back to the router itself",
                    message.id,
                )
        return stages

    def _streaming_error(self, stage: FunctionInvoker, message: Message) -> StreamingOutputError:
        return StreamingOutputError(
            self.name,
            f"Routing to functions that return a stream is not supported: '{stage.name}'",
            message.id,
        )

    async def route(self, message: Message) -> RoutingOutcome:
        """Decide and dispatch one message. Never raises for routing failures."""
        try:
            decision = self.decide(message)
        except ExpressionError as e:
            error = NoRoutingTargetError(self.name, str(e), message.id)
            error.__cause__ = e
            return self._reject(error, None)

        if decision is None:
            return self._reject(
                NoRoutingTargetError(
                    self.name,
                    "No routing target: set a routing expression, a "
                    f"'{MessageHeaders.FUNCTION_DEFINITION}' header or a default definition",
                    message.id,
                ),
                None,
            )

        logger.debug(
            f"Routing decision: {self.name} -> {decision.definition} "
            f"(source={decision.source.value}, id={str(message.id)[:8]}...)"
        )

        try:
            return await self._dispatch(message, decision)
        except RoutingError as e:
            return self._reject(e, decision)

    async def _dispatch(self, message: Message, decision: RoutingDecision) -> RoutingOutcome:
        stages = self._resolve(decision.definition, message)
        current = message
        invoked: list[str] = []
        redirects = 0
        index = 0

        while index < len(stages):
            stage = stages[index]
            if stage.is_streaming:
                raise self._streaming_error(stage, message)

            result = await stage.apply(current)
            invoked.append(stage.name)

            if is_stream(result):
                aclose = getattr(result, "aclose", None)
                if aclose is not None:
                    await aclose()
                raise self._streaming_error(stage, message)

            if result is None:
                return SingleValue(None, decision, tuple(invoked))

            output = to_message(result, current)
            redirect = output.header(MessageHeaders.FUNCTION_DEFINITION)
            if redirect and redirect != current.header(MessageHeaders.FUNCTION_DEFINITION):
                redirects += 1
                if redirects > self.properties.max_redirects:
                    raise RedirectLimitError(
                        self.name,
                        f"More than {self.properties.max_redirects} redirects, last to '{redirect}'",
                        message.id,
                    )
                logger.debug(f"'{stage.name}' redirected message to '{redirect}'")
                stages = self._resolve(str(redirect), message)
                index = 0
            else:
                index += 1
            current = output

        return SingleValue(current, decision, tuple(invoked))

    def _reject(self, error: RoutingError, decision: RoutingDecision | None) -> Rejected:
        logger.warning(f"Rejected message {error.message_id}: {error}")
        return Rejected(error, decision)

    # ==================== FunctionInvoker ====================

    async def apply(self, message: Message | None) -> Any:
        """Route as a catalog function; rejections are raised."""
        if message is None:
            raise ValueError(f"Function '{self.name}' requires an input message")
        outcome = await self.route(message)
        if isinstance(outcome, Rejected):
            raise outcome.error
        return outcome.message
