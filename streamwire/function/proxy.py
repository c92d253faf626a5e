"""
Bindable Function Proxy.

Derives the channel names of one function definition from the
index convention and creates its channels:

    uppercase            -> uppercase.in.0, uppercase.out.0
    enrich|uppercase     -> enrichuppercase.in.0, enrichuppercase.out.0
    number (supplier)    -> number.out.0

A computed name can be replaced by an explicit one through
StreamFunctionProperties.bindings.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from streamwire.binding.factories import ChannelDirection, ConfigurationError
from streamwire.binding.proxy import BindableProxy, BoundTargetHolder
from streamwire.config import StreamFunctionProperties
from streamwire.messaging import MessageChannel, PollableMessageSource, SubscribableChannel

if TYPE_CHECKING:
    from streamwire.binding.factories import ChannelRegistry
    from streamwire.messaging import Channel

logger = logging.getLogger(__name__)

NAME_SEPARATOR = "."
INPUT_SUFFIX = "in"
OUTPUT_SUFFIX = "out"


def computed_name(
    definition: str,
    direction: str,
    index: int,
    delimiter: str = "|",
) -> str:
    """
    Build the conventional channel name for one function input/output.

    Composition delimiters are removed from the definition first.

    Example:
        >>> computed_name("enrich|uppercase", "in", 0)
        'enrichuppercase.in.0'
    """
    base = definition.replace(delimiter, "")
    return NAME_SEPARATOR.join((base, direction, str(index)))


class BindableFunctionProxy(BindableProxy):
    """
    BindableProxy whose holders come from a function definition.

    Call initialize() once after construction; it fails fast when the
    channel registry has no factories.
    """

    def __init__(
        self,
        function_definition: str,
        input_count: int,
        output_count: int,
        properties: StreamFunctionProperties | None = None,
        *,
        channel_registry: ChannelRegistry | None = None,
        pollable: bool = False,
    ) -> None:
        self.properties = properties or StreamFunctionProperties()
        super().__init__(
            function_definition,
            channel_registry=channel_registry,
            namespace=self.properties.namespace,
        )
        self.function_definition = function_definition
        self.input_count = input_count
        self.output_count = output_count
        self.pollable = pollable
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return
        if self._channel_registry is None or len(self._channel_registry) == 0:
            raise ConfigurationError("'channel_registry' cannot be empty")

        for index in range(self.input_count):
            self._create_input(self._name_for(INPUT_SUFFIX, index))
        for index in range(self.output_count):
            self._create_output(self._name_for(OUTPUT_SUFFIX, index))

        self._initialized = True
        logger.info(
            f"Initialized function proxy '{self.function_definition}': "
            f"inputs={self.input_names}, outputs={self.output_names}"
        )

    def _name_for(self, direction: str, index: int) -> str:
        name = computed_name(
            self.function_definition,
            direction,
            index,
            self.properties.composition_delimiter,
        )
        return self.properties.binding_name(name)

    def _create_input(self, name: str) -> None:
        target_type = PollableMessageSource if self.pollable else SubscribableChannel
        channel = self._channel_registry.create(ChannelDirection.INPUT, name, target_type)
        self.add_input_holder(name, BoundTargetHolder(channel, True))

    def _create_output(self, name: str) -> None:
        channel = self._channel_registry.create(ChannelDirection.OUTPUT, name, MessageChannel)
        self.add_output_holder(name, BoundTargetHolder(channel, True))

    def input_name_at(self, index: int) -> str | None:
        """Input name at index, or None when the function has no inputs."""
        names = self.input_names
        if not names:
            return None
        return names[index]

    def output_name_at(self, index: int) -> str | None:
        """Output name at index, or None when the function has no outputs."""
        names = self.output_names
        if not names:
            return None
        return names[index]

    def input_channel_at(self, index: int) -> Channel | None:
        name = self.input_name_at(index)
        return None if name is None else self.input_channel(name)

    def output_channel_at(self, index: int) -> Channel | None:
        name = self.output_name_at(index)
        return None if name is None else self.output_channel(name)

    @property
    def is_composed(self) -> bool:
        """True when arguments or results need fan-out (several inputs or outputs)."""
        return self.input_count > 1 or self.output_count > 1
