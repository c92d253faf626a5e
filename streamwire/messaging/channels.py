"""
In-process message channels.

Channels are the conduits between a binding and application code:

- SubscribableChannel: push-style, handlers are called on send()
- PollableMessageSource: pull-style, messages wait until poll()

A channel carries a component name and a small attribute map that
the binding layer uses to tag it (e.g. type=input/output).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from .message import Message

logger = logging.getLogger(__name__)


# Handlers may be sync or async
MessageHandler = Callable[[Message], "Awaitable[None] | None"]


class MessageDeliveryError(Exception):
    """Raised when a channel has nobody to deliver a message to."""

    def __init__(self, channel_name: str | None, message: Message):
        self.channel_name = channel_name
        self.failed_message = message
        super().__init__(f"Channel '{channel_name}' has no subscribers for {message!r}")


async def _call_handler(handler: MessageHandler, message: Message) -> None:
    result = handler(message)
    if asyncio.iscoroutine(result):
        await result


class Channel:
    """Base class for every channel created by the binding layer."""

    def __init__(self, component_name: str | None = None) -> None:
        self.component_name = component_name
        self.attributes: dict[str, Any] = {}

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.component_name}')"


class MessageChannel(Channel, ABC):
    """A channel that messages can be sent to."""

    @abstractmethod
    async def send(self, message: Message) -> bool:
        """Send a message. Returns True when it was accepted."""
        ...


class SubscribableChannel(MessageChannel, ABC):
    """A push-style channel that delivers to subscribed handlers."""

    @abstractmethod
    def subscribe(self, handler: MessageHandler) -> bool:
        ...

    @abstractmethod
    def unsubscribe(self, handler: MessageHandler) -> bool:
        ...


class DirectChannel(SubscribableChannel):
    """
    Point-to-point channel that calls one subscriber per message.

    Subscribers are used round-robin; the handler runs in the sender's
    task, so errors raised by the handler propagate to send().
    """

    def __init__(self, component_name: str | None = None) -> None:
        super().__init__(component_name)
        self._handlers: list[MessageHandler] = []
        self._next = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: MessageHandler) -> bool:
        if handler in self._handlers:
            return False
        self._handlers.append(handler)
        return True

    def unsubscribe(self, handler: MessageHandler) -> bool:
        if handler not in self._handlers:
            return False
        self._handlers.remove(handler)
        return True

    async def send(self, message: Message) -> bool:
        if not self._handlers:
            raise MessageDeliveryError(self.component_name, message)
        handler = self._handlers[self._next % len(self._handlers)]
        self._next += 1
        await _call_handler(handler, message)
        return True


class PollableMessageSource(Channel):
    """
    Pull-style input: the transport puts messages, application code polls.

    Not a MessageChannel; it cannot be used as an output.
    """

    def __init__(self, component_name: str | None = None) -> None:
        super().__init__(component_name)
        self._pending: deque[Message] = deque()

    def put(self, message: Message) -> None:
        """Queue a message for the next poll (transport side)."""
        self._pending.append(message)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def poll(self, handler: MessageHandler) -> bool:
        """
        Hand the oldest queued message to handler.

        Returns:
            True if a message was processed, False if nothing was queued
        """
        if not self._pending:
            return False
        message = self._pending.popleft()
        logger.debug(f"Polled {message!r} from '{self.component_name}'")
        await _call_handler(handler, message)
        return True
