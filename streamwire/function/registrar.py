"""
Function Binding Registrar.

Application setup registers its function definitions here; the
registrar composes each definition, builds its BindableFunctionProxy,
and on start() binds the channels and wires the function between
its input and output channel.

Flow:
    1. register(definition) or register_configured() at startup
    2. start(): bind outputs, bind inputs, subscribe input handlers
    3. messages arrive on input channels -> function -> output channel
    4. stop(): unsubscribe, unbind inputs, unbind outputs

Usage:
    catalog = FunctionCatalog()
    catalog.register("uppercase", str.upper)

    registrar = FunctionBindingRegistrar(
        catalog,
        StreamFunctionProperties(definition="uppercase"),
        channel_registry=create_channel_registry(),
        binding_service=InMemoryBindingService(),
    )
    registrar.register_configured()
    registrar.start()
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from streamwire.binding.factories import ConfigurationError
from streamwire.config import StreamFunctionProperties
from streamwire.messaging import Message, PollableMessageSource, SubscribableChannel

from .definition import DefinitionComposer
from .proxy import BindableFunctionProxy
from .router import ROUTER_FUNCTION_NAME, RoutingFunction

if TYPE_CHECKING:
    from streamwire.binding.factories import ChannelRegistry
    from streamwire.binding.service import Binding, BindingService
    from streamwire.messaging import MessageHandler

    from .catalog import FunctionCatalog, FunctionInvoker
    from .expression import ExpressionEvaluator

logger = logging.getLogger(__name__)


@dataclass
class FunctionBinding:
    """A registered definition: its invoker, proxy and live bindings."""

    definition: str
    invoker: FunctionInvoker
    proxy: BindableFunctionProxy
    bindings: list[Binding] = field(default_factory=list)
    handler: MessageHandler | None = None


class FunctionBindingRegistrar:
    """
    Connects catalog functions to bound channels.

    The router is added to the catalog under ``functionRouter`` unless
    a function of that name is already registered, so definitions may
    use it directly or inside a composition.
    """

    def __init__(
        self,
        catalog: FunctionCatalog,
        properties: StreamFunctionProperties | None = None,
        *,
        channel_registry: ChannelRegistry,
        binding_service: BindingService,
        evaluator: ExpressionEvaluator | None = None,
    ):
        self.catalog = catalog
        self.properties = properties or StreamFunctionProperties()
        self.channel_registry = channel_registry
        self.binding_service = binding_service
        self.composer = DefinitionComposer(catalog, self.properties.composition_delimiter)
        self._registrations: dict[str, FunctionBinding] = {}
        self._started = False

        if not catalog.has(ROUTER_FUNCTION_NAME):
            catalog.add(RoutingFunction(catalog, self.properties, evaluator))

    # ==================== Registration ====================

    def register(self, definition: str, *, pollable: bool = False) -> BindableFunctionProxy:
        """
        Register one definition and create its channels.

        Raises:
            ConfigurationError: If the definition does not compose or
                no channel factory fits (fatal at startup)
        """
        definition = definition.strip()
        if definition in self._registrations:
            raise ConfigurationError(f"Definition '{definition}' is already registered")

        invoker = self.composer.compose(definition)
        if pollable and invoker.is_supplier:
            raise ConfigurationError(f"Supplier definition '{definition}' cannot be pollable")

        proxy = BindableFunctionProxy(
            definition,
            invoker.input_count,
            invoker.output_count,
            self.properties,
            channel_registry=self.channel_registry,
            pollable=pollable,
        )
        proxy.initialize()
        self._registrations[definition] = FunctionBinding(definition, invoker, proxy)
        logger.info(f"Registered function binding: {definition}")
        return proxy

    def register_configured(self) -> list[BindableFunctionProxy]:
        """
        Register every configured definition.

        With routing enabled and no definition configured, the router
        itself is registered.
        """
        definitions = self.properties.definitions
        if not definitions and self.properties.routing_enabled:
            definitions = [ROUTER_FUNCTION_NAME]
        return [self.register(definition) for definition in definitions]

    def proxy(self, definition: str) -> BindableFunctionProxy:
        return self._get(definition).proxy

    def bindings(self, definition: str) -> list[Binding]:
        """Bindings created by start() for a definition."""
        return list(self._get(definition).bindings)

    @property
    def definitions(self) -> list[str]:
        return list(self._registrations.keys())

    def _get(self, definition: str) -> FunctionBinding:
        registration = self._registrations.get(definition)
        if registration is None:
            available = ", ".join(self._registrations.keys()) or "(none)"
            raise KeyError(f"No function binding for '{definition}'. Available: {available}")
        return registration

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Bind every registered function and wire its input handler."""
        if self._started:
            return
        for registration in self._registrations.values():
            proxy = registration.proxy
            registration.bindings.extend(proxy.bind_outputs(self.binding_service))
            registration.bindings.extend(proxy.bind_inputs(self.binding_service))

            channel = proxy.input_channel_at(0)
            if isinstance(channel, SubscribableChannel):
                registration.handler = self._handler_for(registration)
                channel.subscribe(registration.handler)
        self._started = True
        logger.info(f"Started function bindings: {self.definitions}")

    def stop(self) -> None:
        """Unwire handlers and unbind inputs, then outputs."""
        if not self._started:
            return
        for registration in self._registrations.values():
            proxy = registration.proxy
            channel = proxy.input_channel_at(0)
            if registration.handler is not None and isinstance(channel, SubscribableChannel):
                channel.unsubscribe(registration.handler)
                registration.handler = None
            proxy.unbind_inputs(self.binding_service)
            proxy.unbind_outputs(self.binding_service)
            registration.bindings.clear()
        self._started = False
        logger.info("Stopped function bindings")

    # ==================== Invocation ====================

    def _handler_for(self, registration: FunctionBinding) -> MessageHandler:
        async def handle(message: Message) -> None:
            await self._process(registration, message)

        return handle

    async def _process(self, registration: FunctionBinding, message: Message | None) -> int:
        output = registration.proxy.output_channel_at(0)
        sent = 0
        async for result in registration.invoker.emit(message):
            if output is None:
                continue
            await output.send(result)
            sent += 1
        return sent

    async def trigger(self, definition: str) -> int:
        """
        Invoke a supplier definition once and send what it emits.

        Returns:
            Number of messages sent to the output channel
        """
        registration = self._get(definition)
        if not registration.invoker.is_supplier:
            raise ConfigurationError(f"Definition '{definition}' is not a supplier")
        return await self._process(registration, None)

    async def poll(self, definition: str) -> bool:
        """
        Pull one message from a pollable input and process it.

        Returns:
            True if a message was available
        """
        registration = self._get(definition)
        source = registration.proxy.input_channel_at(0)
        if not isinstance(source, PollableMessageSource):
            raise ConfigurationError(f"Definition '{definition}' has no pollable input")

        async def handle(message: Message) -> None:
            await self._process(registration, message)

        return await source.poll(handle)
