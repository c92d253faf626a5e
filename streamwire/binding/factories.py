"""
Channel factories and the Channel Registry.

A ChannelFactory creates one kind of channel (push or pull). The
ChannelRegistry picks the single factory able to produce a requested
target type and memoizes the channels it creates by direction and name.

Usage:
    registry = create_channel_registry()
    channel = registry.create_input("uppercase.in.0", SubscribableChannel)
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum

from streamwire.messaging import (
    Channel,
    DirectChannel,
    MessageChannel,
    PollableMessageSource,
    SubscribableChannel,
)

from .components import ComponentRegistry, get_component_registry

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ConfigurationError(Exception):
    """Fatal startup misconfiguration. Never retried."""

    pass


class NoChannelFactoryError(ConfigurationError):
    """No registered factory can create the requested target type."""

    def __init__(self, target_type: type, registered: list[str]):
        self.target_type = target_type
        super().__init__(
            f"No factory found for binding target type: {target_type.__name__} "
            f"among registered factories: {', '.join(registered) or '(none)'}"
        )


class AmbiguousChannelFactoryError(ConfigurationError):
    """More than one registered factory can create the requested target type."""

    def __init__(self, target_type: type, candidates: list[str]):
        self.target_type = target_type
        self.candidates = candidates
        super().__init__(
            f"Multiple factories found for binding target type: "
            f"{target_type.__name__}: {', '.join(candidates)}"
        )


class ChannelDirection(str, Enum):
    """Direction of a channel relative to application code."""

    INPUT = "input"
    OUTPUT = "output"


# =============================================================================
# Factories
# =============================================================================


class ChannelFactory(ABC):
    """
    Strategy that creates channels of one concrete type.

    A factory can handle a requested type when the channels it
    produces are that type or a subtype of it. Created channels are
    tagged with their name and direction, and registered in the
    component registry unless the name is already taken there.
    """

    target_type: type[Channel] = Channel

    def __init__(self, component_registry: ComponentRegistry | None = None) -> None:
        self._component_registry = component_registry

    def can_handle(self, target_type: type) -> bool:
        return issubclass(self.target_type, target_type)

    def create_input(self, name: str) -> Channel:
        return self._create(name, ChannelDirection.INPUT)

    def create_output(self, name: str) -> Channel:
        return self._create(name, ChannelDirection.OUTPUT)

    @abstractmethod
    def _new_channel(self, name: str) -> Channel:
        ...

    def _create(self, name: str, direction: ChannelDirection) -> Channel:
        channel = self._new_channel(name)
        channel.component_name = name
        channel.set_attribute("type", direction.value)

        registry = self._component_registry or get_component_registry()
        registry.register_if_absent(name, channel)
        return channel

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(target_type={self.target_type.__name__})"


class SubscribableChannelFactory(ChannelFactory):
    """Creates push-style DirectChannels for inputs and outputs."""

    target_type = DirectChannel

    def _new_channel(self, name: str) -> Channel:
        return DirectChannel(name)


class PollableChannelFactory(ChannelFactory):
    """Creates pull-style PollableMessageSources. Inputs only."""

    target_type = PollableMessageSource

    def _new_channel(self, name: str) -> Channel:
        return PollableMessageSource(name)

    def create_output(self, name: str) -> Channel:
        raise ConfigurationError(f"Pollable sources cannot be used as outputs: {name}")


# =============================================================================
# Channel Registry
# =============================================================================


class ChannelRegistry:
    """
    Creates and memoizes named channels.

    Factories are registered by name. For every requested target type
    exactly one factory must claim it; zero or several is a
    ConfigurationError raised on the spot.

    Example:
        registry = ChannelRegistry({
            "subscribable": SubscribableChannelFactory(),
            "pollable": PollableChannelFactory(),
        })
        source = registry.create_input("orders.in.0", PollableMessageSource)
    """

    def __init__(self, factories: Mapping[str, ChannelFactory] | None = None) -> None:
        self._factories: dict[str, ChannelFactory] = dict(factories or {})
        self._channels: dict[tuple[ChannelDirection, str], Channel] = {}

    def register_factory(self, name: str, factory: ChannelFactory) -> None:
        self._factories[name] = factory
        logger.debug(f"Registered channel factory '{name}': {factory!r}")

    @property
    def factory_names(self) -> list[str]:
        return list(self._factories.keys())

    def __len__(self) -> int:
        return len(self._factories)

    def factory_for(self, target_type: type) -> ChannelFactory:
        """
        Select the single factory able to create target_type.

        Raises:
            NoChannelFactoryError: If no factory claims the type
            AmbiguousChannelFactoryError: If more than one does
        """
        candidates = [
            name for name, factory in self._factories.items() if factory.can_handle(target_type)
        ]
        if len(candidates) == 1:
            return self._factories[candidates[0]]
        if not candidates:
            raise NoChannelFactoryError(target_type, self.factory_names)
        raise AmbiguousChannelFactoryError(target_type, candidates)

    def create(
        self,
        direction: ChannelDirection,
        name: str,
        target_type: type,
    ) -> Channel:
        """Create a channel, or return the one already created under this name."""
        key = (direction, name)
        channel = self._channels.get(key)
        if channel is not None:
            return channel

        factory = self.factory_for(target_type)
        if direction is ChannelDirection.INPUT:
            channel = factory.create_input(name)
        else:
            channel = factory.create_output(name)

        self._channels[key] = channel
        logger.debug(f"Created {direction.value} channel '{name}' via {factory!r}")
        return channel

    def create_input(self, name: str, target_type: type = SubscribableChannel) -> Channel:
        return self.create(ChannelDirection.INPUT, name, target_type)

    def create_output(self, name: str, target_type: type = MessageChannel) -> Channel:
        return self.create(ChannelDirection.OUTPUT, name, target_type)

    def get(self, direction: ChannelDirection, name: str) -> Channel | None:
        return self._channels.get((direction, name))

    def clear(self) -> None:
        """Forget created channels (application shutdown)."""
        self._channels.clear()


def create_channel_registry(
    component_registry: ComponentRegistry | None = None,
) -> ChannelRegistry:
    """Channel registry with the built-in push and pull factories."""
    return ChannelRegistry(
        {
            "subscribable": SubscribableChannelFactory(component_registry),
            "pollable": PollableChannelFactory(component_registry),
        }
    )
