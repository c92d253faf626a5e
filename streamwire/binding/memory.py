"""
In-process binder.

InMemoryBindingService implements the BindingService protocol with
plain in-memory destinations. It is the transport used by tests and
examples: send() plays the broker delivering to consumers, receive()
reads what producers published.

Usage:
    service = InMemoryBindingService(destinations={"uppercase.in.0": "words"})
    proxy.bind_inputs(service)
    proxy.bind_outputs(service)

    await service.send(Message.of("hello"), "words")
    reply = service.receive("uppercase.out.0")
"""
from __future__ import annotations

import logging
from collections import defaultdict, deque
from collections.abc import Mapping
from typing import Any

from streamwire.messaging import (
    Channel,
    Message,
    MessageChannel,
    PollableMessageSource,
    SubscribableChannel,
)

from .factories import ConfigurationError
from .service import Binding, BindingRole

logger = logging.getLogger(__name__)


class InMemoryBindingService:
    """
    BindingService backed by in-memory destinations.

    Destinations default to the binding name; pass a mapping to route
    a binding name to another destination. Failures raised while a
    consumer processes a message are recorded in `errors` and
    re-raised to the sender; messages are never requeued.
    """

    def __init__(self, destinations: Mapping[str, str] | None = None) -> None:
        self._destinations: dict[str, str] = dict(destinations or {})
        self._consumers: dict[str, list[Binding]] = defaultdict(list)
        self._producers: dict[str, list[tuple[Binding, Any]]] = defaultdict(list)
        self._published: dict[str, deque[Message]] = defaultdict(deque)
        self.errors: list[Exception] = []

    def destination_for(self, name: str) -> str:
        return self._destinations.get(name, name)

    # ==================== BindingService ====================

    def bind_consumer(self, channel: Channel, name: str) -> list[Binding]:
        if not isinstance(channel, (MessageChannel, PollableMessageSource)):
            raise ConfigurationError(f"Cannot bind {channel!r} as a consumer: {name}")
        binding = Binding(
            name=name,
            destination=self.destination_for(name),
            role=BindingRole.CONSUMER,
            target=channel,
        )
        self._consumers[name].append(binding)
        logger.info(f"Bound consumer {name} -> {binding.destination}")
        return [binding]

    def bind_producer(self, channel: Channel, name: str) -> Binding:
        if not isinstance(channel, SubscribableChannel):
            raise ConfigurationError(f"Cannot bind {channel!r} as a producer: {name}")
        destination = self.destination_for(name)

        def publish(message: Message) -> None:
            self._published[destination].append(message)

        channel.subscribe(publish)
        binding = Binding(
            name=name,
            destination=destination,
            role=BindingRole.PRODUCER,
            target=channel,
        )
        self._producers[name].append((binding, publish))
        logger.info(f"Bound producer {name} -> {destination}")
        return binding

    def unbind_consumers(self, name: str) -> None:
        for binding in self._consumers.pop(name, []):
            binding.stop()
            logger.info(f"Unbound consumer {name}")

    def unbind_producers(self, name: str) -> None:
        for binding, publish in self._producers.pop(name, []):
            binding.target.unsubscribe(publish)
            binding.stop()
            logger.info(f"Unbound producer {name}")

    # ==================== Inspection ====================

    def consumer_bindings(self, name: str) -> list[Binding]:
        return list(self._consumers.get(name, []))

    def producer_bindings(self, name: str) -> list[Binding]:
        return [binding for binding, _ in self._producers.get(name, [])]

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None

    # ==================== Transport side ====================

    async def send(self, message: Message | Any, destination: str) -> int:
        """
        Deliver a message to every consumer bound to destination.

        Plain payloads are wrapped in a Message.

        Returns:
            Number of consumer bindings the message was handed to
        """
        if not isinstance(message, Message):
            message = Message(payload=message)

        delivered = 0
        for bindings in list(self._consumers.values()):
            for binding in bindings:
                if not binding.running or binding.destination != destination:
                    continue
                channel = binding.target
                if isinstance(channel, PollableMessageSource):
                    channel.put(message)
                else:
                    try:
                        await channel.send(message)
                    except Exception as e:
                        logger.error(
                            f"Consumer '{binding.name}' failed on {message!r}: {e}",
                            exc_info=True,
                        )
                        self.errors.append(e)
                        raise
                delivered += 1

        if not delivered:
            logger.debug(f"No consumers bound to destination '{destination}'")
        return delivered

    def receive(self, destination: str) -> Message | None:
        """Pop the oldest message published to destination, or None."""
        published = self._published.get(destination)
        if not published:
            return None
        return published.popleft()
