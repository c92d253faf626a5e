"""
Pytest configuration and fixtures for streamwire tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from streamwire.binding import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from streamwire.binding import (  # noqa: E402
    ComponentRegistry,
    InMemoryBindingService,
    create_channel_registry,
    reset_component_registry,
)
from streamwire.function import FunctionCatalog, FunctionKind  # noqa: E402
from streamwire.messaging import Message, MessageHeaders  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_component_registry():
    """Each test starts with an empty global component registry."""
    reset_component_registry()
    yield
    reset_component_registry()


@pytest.fixture
def component_registry() -> ComponentRegistry:
    return ComponentRegistry()


@pytest.fixture
def channel_registry(component_registry):
    return create_channel_registry(component_registry)


@pytest.fixture
def binding_service() -> InMemoryBindingService:
    return InMemoryBindingService()


@pytest.fixture
def catalog() -> FunctionCatalog:
    """Catalog with the functions used across routing tests."""
    catalog = FunctionCatalog()

    catalog.register("echo", lambda text: text)
    catalog.register("uppercase", lambda text: text.upper())
    catalog.register("reverse", lambda text: text[::-1])
    catalog.register("concatWithSelf", lambda text: f"{text}:{text}")

    def enrich(message: Message) -> Message:
        return Message(
            payload=message.payload,
            headers={MessageHeaders.FUNCTION_DEFINITION: "uppercase"},
        )

    catalog.register("enrich", enrich, accepts_message=True)

    async def echo_stream(text):
        yield text

    catalog.register("echoStream", echo_stream, FunctionKind.STREAM)
    return catalog
