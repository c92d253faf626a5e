"""
Component Registry for streamwire.

Application-wide registry of named components (channels, pollable
sources) so they can be looked up by name from anywhere in the app.
Registration is insert-if-absent and never overwrites.
"""
from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class ComponentNotFoundError(Exception):
    """Raised when no component is registered under a name."""

    pass


class ComponentRegistry:
    """
    Registry of named components.

    The check-then-register step is atomic, so two functions declaring
    a channel under the same resolved name cannot both register one.

    Example:
        registry = get_component_registry()
        registry.register_if_absent("uppercase.in.0", channel)

        channel = registry.get("uppercase.in.0")
    """

    def __init__(self) -> None:
        self._components: dict[str, Any] = {}
        self._lock = threading.Lock()

    def register_if_absent(self, name: str, component: Any) -> bool:
        """
        Register a component unless the name is taken.

        Returns:
            True if registered, False if a component already held the name
        """
        with self._lock:
            if name in self._components:
                logger.debug(f"Component already registered, keeping existing: {name}")
                return False
            self._components[name] = component
        logger.debug(f"Registered component: {name}")
        return True

    def get(self, name: str) -> Any:
        """
        Get a component by name.

        Raises:
            ComponentNotFoundError: If nothing is registered under the name
        """
        component = self._components.get(name)
        if component is None:
            available = ", ".join(self._components.keys()) or "(none)"
            raise ComponentNotFoundError(
                f"No component registered under name: {name}. Available: {available}"
            )
        return component

    def has(self, name: str) -> bool:
        return name in self._components

    @property
    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._components.keys())

    def clear(self) -> None:
        """Drop all components (application shutdown)."""
        with self._lock:
            self._components.clear()
        logger.debug("Cleared all components")


# Global registry instance
_registry: ComponentRegistry | None = None
_registry_lock = threading.Lock()


def get_component_registry() -> ComponentRegistry:
    """
    Get the global component registry.

    Creates the registry on first access (lazy initialization).
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = ComponentRegistry()
        return _registry


def reset_component_registry() -> None:
    """
    Tear down the global component registry.

    Called at application shutdown and between tests.
    """
    global _registry
    with _registry_lock:
        if _registry is not None:
            _registry.clear()
        _registry = None
