"""
Function Catalog for streamwire.

The catalog maps names to invocable units. Application setup code
registers its functions explicitly; nothing is scanned.

Every unit has one of four shapes (FunctionKind):
- FUNCTION: one value in, one value out
- STREAM: one value in, an async iterator of values out
- SUPPLIER: nothing in, one value (or an async iterator) out
- CONSUMER: one value in, nothing out

Usage:
    catalog = FunctionCatalog()

    @catalog.function()
    def uppercase(text: str) -> str:
        return text.upper()

    catalog.register("number", lambda: "1", kind=FunctionKind.SUPPLIER)

    invoker = catalog.resolve("uppercase")
    async for message in invoker.emit(Message.of("hi")):
        ...
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from enum import Enum
from typing import Any

from streamwire.binding.factories import ConfigurationError
from streamwire.messaging import Message

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class DefinitionError(ConfigurationError):
    """A function definition cannot be parsed or composed."""

    def __init__(self, definition: str, message: str):
        self.definition = definition
        super().__init__(f"Invalid function definition '{definition}': {message}")


class FunctionNotFoundError(DefinitionError):
    """A name in a definition does not resolve to a registered function."""

    def __init__(self, name: str, definition: str | None = None, available: list[str] | None = None):
        self.name = name
        listing = ", ".join(available or []) or "(none)"
        super().__init__(
            definition if definition is not None else name,
            f"no function named '{name}'. Available: {listing}",
        )


class FunctionCatalogError(ConfigurationError):
    """Error in catalog registration."""

    pass


# =============================================================================
# Invocable units
# =============================================================================


class FunctionKind(str, Enum):
    FUNCTION = "function"
    STREAM = "stream"
    SUPPLIER = "supplier"
    CONSUMER = "consumer"


_DEFAULT_ARITY: dict[FunctionKind, tuple[int, int]] = {
    FunctionKind.FUNCTION: (1, 1),
    FunctionKind.STREAM: (1, 1),
    FunctionKind.SUPPLIER: (0, 1),
    FunctionKind.CONSUMER: (1, 0),
}


def is_stream(value: Any) -> bool:
    """True for async iterators (streaming results)."""
    return isinstance(value, AsyncIterator)


def to_message(value: Any, source: Message | None) -> Message:
    """
    Wrap a function result as a Message.

    Messages are returned as-is; plain values inherit the headers of
    the message they were computed from.
    """
    if isinstance(value, Message):
        return value
    if source is None:
        return Message(payload=value)
    return source.derive(payload=value)


class FunctionInvoker(ABC):
    """
    Base class for anything the catalog can resolve.

    apply() returns the raw result of one invocation; emit() normalizes
    it into zero or more output messages.
    """

    name: str
    kind: FunctionKind

    @property
    @abstractmethod
    def input_count(self) -> int:
        ...

    @property
    @abstractmethod
    def output_count(self) -> int:
        ...

    @property
    def is_supplier(self) -> bool:
        return self.input_count == 0

    @property
    def is_consumer(self) -> bool:
        return self.output_count == 0

    @property
    def is_streaming(self) -> bool:
        return self.kind is FunctionKind.STREAM

    @abstractmethod
    async def apply(self, message: Message | None) -> Any:
        """Invoke once and return the raw (awaited) result."""
        ...

    async def emit(self, message: Message | None) -> AsyncIterator[Message]:
        """
        Invoke and yield output messages.

        None yields nothing; an async iterator yields one message per
        item; anything else yields a single message.
        """
        result = await self.apply(message)
        if result is None:
            return
        if is_stream(result):
            async for item in result:
                yield to_message(item, message)
        else:
            yield to_message(result, message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', kind={self.kind.value})"


class RegisteredFunction(FunctionInvoker):
    """
    A user callable registered in the catalog.

    Sync and async callables are both supported. By default the
    callable receives the message payload; with accepts_message=True it
    receives the whole Message (and may return one to set headers).
    """

    def __init__(
        self,
        name: str,
        target: Callable[..., Any],
        kind: FunctionKind = FunctionKind.FUNCTION,
        *,
        accepts_message: bool = False,
        input_count: int | None = None,
        output_count: int | None = None,
    ):
        default_in, default_out = _DEFAULT_ARITY[kind]
        self.name = name
        self.target = target
        self.kind = kind
        self.accepts_message = accepts_message
        self._input_count = default_in if input_count is None else input_count
        self._output_count = default_out if output_count is None else output_count

    @property
    def input_count(self) -> int:
        return self._input_count

    @property
    def output_count(self) -> int:
        return self._output_count

    async def apply(self, message: Message | None) -> Any:
        if self.kind is FunctionKind.SUPPLIER:
            result = self.target()
        else:
            if message is None:
                raise ValueError(f"Function '{self.name}' requires an input message")
            result = self.target(message if self.accepts_message else message.payload)

        if asyncio.iscoroutine(result):
            result = await result
        return result


# =============================================================================
# Catalog
# =============================================================================


class FunctionCatalog:
    """
    Name -> invocable unit lookup.

    Functions are registered once at startup. Composed pipelines are
    cached under their definition text so later definitions can
    reference them.
    """

    def __init__(self) -> None:
        self._functions: dict[str, FunctionInvoker] = {}

    def add(self, invoker: FunctionInvoker, *, replace: bool = False) -> FunctionInvoker:
        """
        Add an invocable unit under its name.

        Raises:
            FunctionCatalogError: If the name is taken and replace is False
        """
        if invoker.name in self._functions and not replace:
            raise FunctionCatalogError(
                f"Function '{invoker.name}' already registered. "
                f"Use a unique name or replace=True."
            )
        self._functions[invoker.name] = invoker
        logger.info(f"Registered function: {invoker.name} ({invoker.kind.value})")
        return invoker

    def register(
        self,
        name: str,
        target: Callable[..., Any],
        kind: FunctionKind = FunctionKind.FUNCTION,
        **options: Any,
    ) -> RegisteredFunction:
        """Register a callable. Options are passed to RegisteredFunction."""
        invoker = RegisteredFunction(name, target, kind, **options)
        self.add(invoker)
        return invoker

    def function(
        self,
        name: str | None = None,
        *,
        kind: FunctionKind = FunctionKind.FUNCTION,
        **options: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of register(); the name defaults to the callable's."""

        def decorator(target: Callable[..., Any]) -> Callable[..., Any]:
            self.register(name or target.__name__, target, kind, **options)
            return target

        return decorator

    def lookup(self, name: str) -> FunctionInvoker | None:
        return self._functions.get(name)

    def resolve(self, name: str) -> FunctionInvoker:
        """
        Get an invocable unit by name.

        Raises:
            FunctionNotFoundError: If nothing is registered under the name
        """
        invoker = self._functions.get(name)
        if invoker is None:
            raise FunctionNotFoundError(name, available=self.names)
        return invoker

    def has(self, name: str) -> bool:
        return name in self._functions

    @property
    def names(self) -> list[str]:
        return list(self._functions.keys())

    def unregister(self, name: str) -> bool:
        if name in self._functions:
            del self._functions[name]
            return True
        return False

    def __len__(self) -> int:
        return len(self._functions)
