"""
Function binding properties for streamwire.

Pydantic model for the configuration surface of the binding and
routing layer, plus YAML and environment loaders.

Environment variables (all optional):
    STREAMWIRE_CONFIG_FILE               "streamwire.yaml"
    STREAMWIRE_FUNCTION_DEFINITION       "uppercase;number|toUpperCase"
    STREAMWIRE_FUNCTION_BINDINGS         "uppercase.in.0=words,uppercase.out.0=shout"
    STREAMWIRE_COMPOSITION_DELIMITER     "|"
    STREAMWIRE_DEFINITION_SEPARATOR      ";"
    STREAMWIRE_ROUTING_ENABLED           "true"
    STREAMWIRE_ROUTING_EXPRESSION        "headers.type"
    STREAMWIRE_DEFAULT_DEFINITION        "echo"
    STREAMWIRE_MAX_REDIRECTS             "16"
    STREAMWIRE_NAMESPACE                 "orders"
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "STREAMWIRE_"

# Environment key (without prefix) -> field name
_ENV_FIELDS = {
    "FUNCTION_DEFINITION": "definition",
    "FUNCTION_BINDINGS": "bindings",
    "COMPOSITION_DELIMITER": "composition_delimiter",
    "DEFINITION_SEPARATOR": "definition_separator",
    "ROUTING_ENABLED": "routing_enabled",
    "ROUTING_EXPRESSION": "routing_expression",
    "DEFAULT_DEFINITION": "default_definition",
    "MAX_REDIRECTS": "max_redirects",
    "NAMESPACE": "namespace",
}


class StreamFunctionProperties(BaseModel):
    """
    Configuration of function bindings and routing.

    Attributes:
        definition: Function definitions to bind, separated by definition_separator
        bindings: Computed channel name -> explicit channel name
        composition_delimiter: Delimiter composing functions into a pipeline
        definition_separator: Separator between independent definitions
        routing_enabled: Bind the router when no definition is configured
        routing_expression: Expression evaluated per message to pick a definition
        default_definition: Definition used for messages carrying no routing info
        max_redirects: Limit on mid-pipeline redirects for one message
        namespace: Label used in binding log lines
    """

    definition: str | None = Field(None, description="Function definition(s) to bind")
    bindings: dict[str, str] = Field(
        default_factory=dict,
        description="Channel name overrides keyed by computed name",
    )
    composition_delimiter: str = Field("|", min_length=1)
    definition_separator: str = Field(";", min_length=1)
    routing_enabled: bool = Field(False, description="Bind the router by default")
    routing_expression: str | None = Field(None, description="Global routing expression")
    default_definition: str | None = Field(None, description="Router fallback definition")
    max_redirects: int = Field(16, ge=1)
    namespace: str = Field("", description="Namespace for log lines")

    class Config:
        extra = "forbid"

    @field_validator("definition", "routing_expression", "default_definition")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_delimiters(self) -> StreamFunctionProperties:
        if self.composition_delimiter == self.definition_separator:
            raise ValueError(
                "composition_delimiter and definition_separator must differ, "
                f"both are '{self.composition_delimiter}'"
            )
        return self

    @property
    def definitions(self) -> list[str]:
        """Configured definitions, split and trimmed. Empty parts are dropped."""
        if not self.definition:
            return []
        parts = self.definition.split(self.definition_separator)
        return [part.strip() for part in parts if part.strip()]

    def binding_name(self, computed_name: str) -> str:
        """Apply an explicit override to a computed channel name."""
        return self.bindings.get(computed_name, computed_name)


def _parse_bindings(raw: str) -> dict[str, str]:
    bindings: dict[str, str] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        if "=" not in pair:
            raise ValueError(f"Invalid binding override '{pair}', expected name=override")
        name, override = pair.split("=", 1)
        bindings[name.strip()] = override.strip()
    return bindings


def _env_values(env: Mapping[str, str]) -> dict[str, Any]:
    """Field values for the STREAMWIRE_* variables that are set."""
    values: dict[str, Any] = {}
    for key, field_name in _ENV_FIELDS.items():
        raw = env.get(f"{ENV_PREFIX}{key}")
        if raw is None:
            continue
        if field_name == "bindings":
            values[field_name] = _parse_bindings(raw)
        elif field_name == "routing_enabled":
            values[field_name] = raw.strip().lower() == "true"
        else:
            values[field_name] = raw
    return values


def properties_from_env(environ: Mapping[str, str] | None = None) -> StreamFunctionProperties:
    """
    Build properties from STREAMWIRE_* environment variables.

    Args:
        environ: Mapping to read instead of os.environ (tests)
    """
    env = os.environ if environ is None else environ
    return StreamFunctionProperties(**_env_values(env))


def _yaml_values(path: str | Path) -> dict[str, Any]:
    with open(path) as f:
        document = yaml.safe_load(f) or {}
    if not isinstance(document, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    section = document.get("streamwire", document)
    if not isinstance(section, dict):
        raise ValueError(f"'streamwire' section in {path} must be a mapping")
    return section


def properties_from_yaml(path: str | Path) -> StreamFunctionProperties:
    """
    Build properties from a YAML file.

    Fields are read from a top-level ``streamwire`` mapping, or from
    the document root when that key is absent:

        streamwire:
          definition: uppercase;echo|reverse
          bindings:
            uppercase.in.0: words
          routing_enabled: false
    """
    return StreamFunctionProperties(**_yaml_values(path))


@lru_cache()
def load_properties() -> StreamFunctionProperties:
    """
    Get properties for the process.

    Reads the YAML file named by STREAMWIRE_CONFIG_FILE, if any, then
    applies STREAMWIRE_* environment variables on top.

    Uses lru_cache for singleton pattern; call
    load_properties.cache_clear() to reload.
    """
    values: dict[str, Any] = {}
    config_file = os.getenv(f"{ENV_PREFIX}CONFIG_FILE")
    if config_file:
        values.update(_yaml_values(config_file))
    values.update(_env_values(os.environ))

    properties = StreamFunctionProperties(**values)
    logger.info(
        f"Loaded function properties: definitions={properties.definitions}, "
        f"routing_enabled={properties.routing_enabled}"
    )
    return properties
