"""
Configuration module for streamwire.
"""

from .properties import (
    ENV_PREFIX,
    StreamFunctionProperties,
    load_properties,
    properties_from_env,
    properties_from_yaml,
)

__all__ = [
    "ENV_PREFIX",
    "StreamFunctionProperties",
    "load_properties",
    "properties_from_env",
    "properties_from_yaml",
]
