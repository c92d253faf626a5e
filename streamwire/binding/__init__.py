"""
streamwire Binding Layer.

Core Components:
- ChannelRegistry: creates and memoizes channels via ChannelFactory strategies
- ComponentRegistry: application-wide name -> component lookup
- BindableProxy: owns a component's named inputs/outputs, binds them
- BindingService: protocol of the external transport
- InMemoryBindingService: in-process binder for tests and examples
"""

from .components import (
    ComponentNotFoundError,
    ComponentRegistry,
    get_component_registry,
    reset_component_registry,
)
from .factories import (
    AmbiguousChannelFactoryError,
    ChannelDirection,
    ChannelFactory,
    ChannelRegistry,
    ConfigurationError,
    NoChannelFactoryError,
    PollableChannelFactory,
    SubscribableChannelFactory,
    create_channel_registry,
)
from .memory import InMemoryBindingService
from .proxy import BindableProxy, BoundTargetHolder
from .service import Binding, BindingRole, BindingService

__all__ = [
    # Errors
    "ConfigurationError",
    "NoChannelFactoryError",
    "AmbiguousChannelFactoryError",
    "ComponentNotFoundError",
    # Channels
    "ChannelDirection",
    "ChannelFactory",
    "SubscribableChannelFactory",
    "PollableChannelFactory",
    "ChannelRegistry",
    "create_channel_registry",
    # Components
    "ComponentRegistry",
    "get_component_registry",
    "reset_component_registry",
    # Proxy
    "BindableProxy",
    "BoundTargetHolder",
    # Service
    "Binding",
    "BindingRole",
    "BindingService",
    "InMemoryBindingService",
]
