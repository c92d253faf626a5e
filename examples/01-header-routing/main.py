"""
Header Routing Example

This example demonstrates per-message routing:
1. Register plain functions in a catalog
2. Bind the router to functionRouter.in.0 / functionRouter.out.0
3. Route each message by header, expression or default

Run: python examples/01-header-routing/main.py
"""
import asyncio
import logging

from streamwire import FunctionBindingRegistrar, FunctionCatalog, Message, MessageHeaders
from streamwire.binding import InMemoryBindingService, create_channel_registry
from streamwire.config import StreamFunctionProperties
from streamwire.function import RoutingError

# =============================================================================
# Functions
# =============================================================================


catalog = FunctionCatalog()


@catalog.function()
def echo(text: str) -> str:
    return text


@catalog.function()
def uppercase(text: str) -> str:
    return text.upper()


@catalog.function()
def reverse(text: str) -> str:
    return text[::-1]


@catalog.function(accepts_message=True)
def enrich(message: Message) -> Message:
    """Decide mid-pipeline that the message should be shouted."""
    return message.with_headers(**{MessageHeaders.FUNCTION_DEFINITION: "uppercase"})


# =============================================================================
# Main
# =============================================================================


async def main():
    binder = InMemoryBindingService()
    registrar = FunctionBindingRegistrar(
        catalog,
        StreamFunctionProperties(routing_enabled=True, default_definition="echo"),
        channel_registry=create_channel_registry(),
        binding_service=binder,
    )
    registrar.register_configured()
    registrar.start()

    print("Header Routing")
    print("=" * 50)
    print()

    test_messages = [
        Message.of("hello"),
        Message.of("hello", **{MessageHeaders.FUNCTION_DEFINITION: "echo|uppercase"}),
        Message.of("hello", **{MessageHeaders.ROUTING_EXPRESSION: "'reverse'"}),
        Message.of("hello", **{MessageHeaders.FUNCTION_DEFINITION: "enrich|reverse"}),
        Message.of("hello", **{MessageHeaders.FUNCTION_DEFINITION: "missing"}),
    ]

    for message in test_messages:
        print(f"In:  {message.payload} {message.headers}")
        try:
            await binder.send(message, "functionRouter.in.0")
        except RoutingError as e:
            print(f"Rejected: {e}")
        else:
            reply = binder.receive("functionRouter.out.0")
            print(f"Out: {reply.payload}")
        print()

    registrar.stop()


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    asyncio.run(main())
