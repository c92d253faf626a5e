"""
Bindable Proxy for streamwire.

A BindableProxy owns the named input and output channels of one
logical component and binds them to the transport through a
BindingService.

Lifecycle:
1. Holders are declared (directly, or by a subclass on initialize())
2. bind_outputs() / bind_inputs() at application start
3. unbind_inputs() / unbind_outputs() at application stop

Binding is fail-fast: the first failing bind call propagates, the
remaining holders of that batch stay unbound, and nothing already
bound is rolled back. Calling bind_inputs() twice binds every
bindable input twice; there is no dedup across calls.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .factories import ChannelDirection, ConfigurationError

if TYPE_CHECKING:
    from streamwire.messaging import Channel

    from .factories import ChannelRegistry
    from .service import Binding, BindingService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BoundTargetHolder:
    """
    A created channel plus whether it should be bound to the transport.

    Non-bindable holders are channels used for internal wiring only.
    """

    target: Channel
    bindable: bool = True


class BindableProxy:
    """
    Owner of the named input/output holders of one component.

    Holders are kept in insertion order; index-based naming in
    subclasses depends on it. A name may be an input or an output,
    never both.

    Example:
        # Fixed-interface component with a single "output" channel
        proxy = BindableProxy("source", channel_registry=registry)
        proxy.declare_output("output", MessageChannel)
        proxy.bind_outputs(binding_service)
    """

    def __init__(
        self,
        component_type: str,
        *,
        channel_registry: ChannelRegistry | None = None,
        namespace: str = "",
    ) -> None:
        self.component_type = component_type
        self.namespace = namespace
        self._channel_registry = channel_registry
        self._input_holders: dict[str, BoundTargetHolder] = {}
        self._output_holders: dict[str, BoundTargetHolder] = {}

    # ==================== Holders ====================

    def add_input_holder(self, name: str, holder: BoundTargetHolder) -> None:
        if name in self._output_holders:
            raise ConfigurationError(f"'{name}' is already declared as an output of {self}")
        self._input_holders[name] = holder

    def add_output_holder(self, name: str, holder: BoundTargetHolder) -> None:
        if name in self._input_holders:
            raise ConfigurationError(f"'{name}' is already declared as an input of {self}")
        self._output_holders[name] = holder

    def declare_input(self, name: str, target_type: type, *, bindable: bool = True) -> Channel:
        """Create an input channel through the channel registry and hold it."""
        channel = self._require_registry().create(ChannelDirection.INPUT, name, target_type)
        self.add_input_holder(name, BoundTargetHolder(channel, bindable))
        return channel

    def declare_output(self, name: str, target_type: type, *, bindable: bool = True) -> Channel:
        """Create an output channel through the channel registry and hold it."""
        channel = self._require_registry().create(ChannelDirection.OUTPUT, name, target_type)
        self.add_output_holder(name, BoundTargetHolder(channel, bindable))
        return channel

    def _require_registry(self) -> ChannelRegistry:
        if self._channel_registry is None or len(self._channel_registry) == 0:
            raise ConfigurationError(f"'channel_registry' cannot be empty for {self}")
        return self._channel_registry

    @property
    def input_names(self) -> list[str]:
        return list(self._input_holders.keys())

    @property
    def output_names(self) -> list[str]:
        return list(self._output_holders.keys())

    def input_channel(self, name: str) -> Channel:
        return self._input_holders[name].target

    def output_channel(self, name: str) -> Channel:
        return self._output_holders[name].target

    # ==================== Lifecycle ====================

    def bind_inputs(self, binding_service: BindingService) -> list[Binding]:
        """Bind every bindable input as a consumer. Returns all bindings created."""
        bindings: list[Binding] = []
        logger.debug(f"Binding inputs for {self.namespace}:{self.component_type}")
        for name, holder in self._input_holders.items():
            if not holder.bindable:
                continue
            logger.debug(f"Binding {self.namespace}:{self.component_type}:{name}")
            bindings.extend(binding_service.bind_consumer(holder.target, name))
        return bindings

    def bind_outputs(self, binding_service: BindingService) -> list[Binding]:
        """Bind every bindable output as a producer. One binding per output."""
        bindings: list[Binding] = []
        logger.debug(f"Binding outputs for {self.namespace}:{self.component_type}")
        for name, holder in self._output_holders.items():
            if not holder.bindable:
                continue
            logger.debug(f"Binding {self.namespace}:{self.component_type}:{name}")
            bindings.append(binding_service.bind_producer(holder.target, name))
        return bindings

    def unbind_inputs(self, binding_service: BindingService) -> None:
        logger.debug(f"Unbinding inputs for {self.namespace}:{self.component_type}")
        for name, holder in self._input_holders.items():
            if holder.bindable:
                logger.debug(f"Unbinding {self.namespace}:{self.component_type}:{name}")
                binding_service.unbind_consumers(name)

    def unbind_outputs(self, binding_service: BindingService) -> None:
        logger.debug(f"Unbinding outputs for {self.namespace}:{self.component_type}")
        for name, holder in self._output_holders.items():
            if holder.bindable:
                logger.debug(f"Unbinding {self.namespace}:{self.component_type}:{name}")
                binding_service.unbind_producers(name)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(type='{self.component_type}', "
            f"inputs={self.input_names}, outputs={self.output_names})"
        )
