"""
Function definition parsing and composition.

A definition is function names joined by the composition delimiter:

    "uppercase"                  one function
    "enrich|uppercase|reverse"   output of each feeds the next

Suppliers may only start a pipeline and consumers may only end it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Any

from streamwire.messaging import Message

from .catalog import (
    DefinitionError,
    FunctionInvoker,
    FunctionKind,
    FunctionNotFoundError,
)

if TYPE_CHECKING:
    from .catalog import FunctionCatalog

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "|"


def parse_definition(raw: str | None, delimiter: str = DEFAULT_DELIMITER) -> tuple[str, ...]:
    """
    Split a definition into trimmed function names.

    Raises:
        DefinitionError: If the definition or any element is empty

    Example:
        >>> parse_definition("a | b|c")
        ('a', 'b', 'c')
    """
    if raw is None or not raw.strip():
        raise DefinitionError(raw or "", "definition is empty")

    names = tuple(part.strip() for part in raw.split(delimiter))
    for position, name in enumerate(names):
        if not name:
            raise DefinitionError(raw, f"empty function name at position {position}")
    return names


def validate_stages(definition: str, stages: Sequence[FunctionInvoker]) -> None:
    """
    Check stage placement: suppliers only first, consumers only last.

    Raises:
        DefinitionError: Naming the misplaced function
    """
    last_index = len(stages) - 1
    for index, stage in enumerate(stages):
        if index > 0 and stage.is_supplier:
            raise DefinitionError(
                definition, f"supplier '{stage.name}' can only start a composition"
            )
        if index < last_index and stage.is_consumer:
            raise DefinitionError(
                definition, f"consumer '{stage.name}' can only end a composition"
            )


class CompositeFunction(FunctionInvoker):
    """
    Sequential composition of invocable units.

    Each stage's output messages are fed one by one to the next stage,
    so a streaming stage fans out over the rest of the pipeline.
    """

    def __init__(self, name: str, stages: Sequence[FunctionInvoker]):
        if not stages:
            raise DefinitionError(name, "a composition needs at least one function")
        self.name = name
        self.stages = tuple(stages)
        validate_stages(name, self.stages)

        first, last = self.stages[0], self.stages[-1]
        if any(stage.is_streaming for stage in self.stages):
            self.kind = FunctionKind.STREAM
        elif first.is_supplier:
            self.kind = FunctionKind.SUPPLIER
        elif last.is_consumer:
            self.kind = FunctionKind.CONSUMER
        else:
            self.kind = FunctionKind.FUNCTION

    @property
    def input_count(self) -> int:
        return self.stages[0].input_count

    @property
    def output_count(self) -> int:
        return self.stages[-1].output_count

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    async def emit(self, message: Message | None) -> AsyncIterator[Message]:
        async for output in self._emit_from(0, message):
            yield output

    async def _emit_from(self, index: int, message: Message | None) -> AsyncIterator[Message]:
        if index == len(self.stages):
            if message is not None:
                yield message
            return
        async for output in self.stages[index].emit(message):
            async for final in self._emit_from(index + 1, output):
                yield final

    async def apply(self, message: Message | None) -> Any:
        if self.is_streaming:
            return self.emit(message)
        result = None
        async for output in self.emit(message):
            result = output
        return result


class DefinitionComposer:
    """
    Turns definition text into invocable units using a FunctionCatalog.

    Example:
        composer = DefinitionComposer(catalog)
        pipeline = composer.compose("enrich|uppercase")
        async for out in pipeline.emit(Message.of("hi")):
            ...
    """

    def __init__(self, catalog: FunctionCatalog, delimiter: str = DEFAULT_DELIMITER):
        self.catalog = catalog
        self.delimiter = delimiter

    def parse(self, raw: str | None) -> tuple[str, ...]:
        return parse_definition(raw, self.delimiter)

    def resolve_stages(self, raw: str) -> list[FunctionInvoker]:
        """
        Resolve every name of a definition, without caching anything.

        Raises:
            DefinitionError: If the definition is malformed
            FunctionNotFoundError: Naming the first unresolvable function
        """
        stages = []
        for name in self.parse(raw):
            invoker = self.catalog.lookup(name)
            if invoker is None:
                raise FunctionNotFoundError(name, raw, self.catalog.names)
            stages.append(invoker)
        return stages

    def compose(self, raw: str) -> FunctionInvoker:
        """
        Resolve a definition to a single invocable unit.

        Multi-function definitions are cached in the catalog under
        their normalized text.
        """
        names = self.parse(raw)
        if len(names) == 1:
            invoker = self.catalog.lookup(names[0])
            if invoker is None:
                raise FunctionNotFoundError(names[0], raw, self.catalog.names)
            return invoker

        key = self.delimiter.join(names)
        cached = self.catalog.lookup(key)
        if cached is not None:
            return cached

        composite = CompositeFunction(key, self.resolve_stages(raw))
        self.catalog.add(composite)
        logger.debug(f"Composed '{key}' from {composite.stage_names}")
        return composite

    def compose_as(self, name: str, raw: str) -> FunctionInvoker:
        """Compose a definition and register it under an alias name."""
        composite = CompositeFunction(name, self.resolve_stages(raw))
        self.catalog.add(composite)
        return composite
