"""
streamwire - function binding and routing for message-driven applications.

streamwire connects application functions to named message channels
and decides per message which function should handle it:

- **Function Catalog**: explicit registration of functions, suppliers and consumers
- **Composition**: "enrich|uppercase" pipelines from definition text
- **Binding**: channel names derived from definitions, bound through a BindingService
- **Routing**: per-message selection by header, expression or default

Quick Start:
    >>> from streamwire import FunctionCatalog, FunctionBindingRegistrar
    >>> from streamwire.binding import InMemoryBindingService, create_channel_registry
    >>> from streamwire.config import StreamFunctionProperties
    >>>
    >>> catalog = FunctionCatalog()
    >>> catalog.register("uppercase", str.upper)
    >>> registrar = FunctionBindingRegistrar(
    ...     catalog,
    ...     StreamFunctionProperties(definition="uppercase"),
    ...     channel_registry=create_channel_registry(),
    ...     binding_service=InMemoryBindingService(),
    ... )
    >>> registrar.register_configured()
    >>> registrar.start()
"""

__version__ = "0.1.0"
__license__ = "MIT"

from streamwire.config import StreamFunctionProperties
from streamwire.function import (
    FunctionBindingRegistrar,
    FunctionCatalog,
    FunctionKind,
    RoutingFunction,
)
from streamwire.messaging import Message, MessageHeaders

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Core
    "FunctionCatalog",
    "FunctionKind",
    "FunctionBindingRegistrar",
    "RoutingFunction",
    "StreamFunctionProperties",
    "Message",
    "MessageHeaders",
]
