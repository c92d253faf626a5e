"""
Tests for StreamFunctionProperties and its YAML and environment loaders.
"""

import pytest
from pydantic import ValidationError

from streamwire.config import (
    StreamFunctionProperties,
    load_properties,
    properties_from_env,
    properties_from_yaml,
)


class TestStreamFunctionProperties:
    def test_defaults(self):
        properties = StreamFunctionProperties()

        assert properties.definitions == []
        assert properties.composition_delimiter == "|"
        assert properties.routing_enabled is False
        assert properties.max_redirects == 16

    def test_definitions_are_split_and_trimmed(self):
        properties = StreamFunctionProperties(definition=" supplier1 ; supplier2;; ")

        assert properties.definitions == ["supplier1", "supplier2"]

    def test_blank_values_become_none(self):
        properties = StreamFunctionProperties(definition="  ", default_definition="")

        assert properties.definition is None
        assert properties.default_definition is None

    def test_binding_name_override(self):
        properties = StreamFunctionProperties(bindings={"uppercase.in.0": "words"})

        assert properties.binding_name("uppercase.in.0") == "words"
        assert properties.binding_name("uppercase.out.0") == "uppercase.out.0"

    def test_delimiters_must_differ(self):
        with pytest.raises(ValidationError, match="must differ"):
            StreamFunctionProperties(composition_delimiter=";")

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            StreamFunctionProperties(defintion="typo")

    def test_max_redirects_positive(self):
        with pytest.raises(ValidationError):
            StreamFunctionProperties(max_redirects=0)


class TestEnvironmentLoader:
    def test_reads_prefixed_variables(self):
        properties = properties_from_env(
            {
                "STREAMWIRE_FUNCTION_DEFINITION": "uppercase;number|toUpperCase",
                "STREAMWIRE_FUNCTION_BINDINGS": "uppercase.in.0=words, uppercase.out.0=shout",
                "STREAMWIRE_ROUTING_ENABLED": "True",
                "STREAMWIRE_DEFAULT_DEFINITION": "echo",
                "STREAMWIRE_MAX_REDIRECTS": "4",
            }
        )

        assert properties.definitions == ["uppercase", "number|toUpperCase"]
        assert properties.bindings == {"uppercase.in.0": "words", "uppercase.out.0": "shout"}
        assert properties.routing_enabled is True
        assert properties.default_definition == "echo"
        assert properties.max_redirects == 4

    def test_empty_environment(self):
        assert properties_from_env({}) == StreamFunctionProperties()

    def test_malformed_binding_override(self):
        with pytest.raises(ValueError, match="name=override"):
            properties_from_env({"STREAMWIRE_FUNCTION_BINDINGS": "uppercase.in.0"})

    def test_load_properties_is_cached(self, monkeypatch):
        monkeypatch.delenv("STREAMWIRE_CONFIG_FILE", raising=False)
        monkeypatch.setenv("STREAMWIRE_DEFAULT_DEFINITION", "echo")
        load_properties.cache_clear()
        try:
            first = load_properties()
            monkeypatch.setenv("STREAMWIRE_DEFAULT_DEFINITION", "reverse")

            assert load_properties() is first
            assert first.default_definition == "echo"
        finally:
            load_properties.cache_clear()


class TestYamlLoader:
    def test_streamwire_section(self, tmp_path):
        path = tmp_path / "streamwire.yaml"
        path.write_text(
            "streamwire:\n"
            "  definition: uppercase;echo|reverse\n"
            "  bindings:\n"
            "    uppercase.in.0: words\n"
            "  max_redirects: 2\n"
        )

        properties = properties_from_yaml(path)

        assert properties.definitions == ["uppercase", "echo|reverse"]
        assert properties.bindings == {"uppercase.in.0": "words"}
        assert properties.max_redirects == 2

    def test_document_root(self, tmp_path):
        path = tmp_path / "streamwire.yaml"
        path.write_text("routing_enabled: true\ndefault_definition: echo\n")

        properties = properties_from_yaml(path)

        assert properties.routing_enabled is True
        assert properties.default_definition == "echo"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert properties_from_yaml(path) == StreamFunctionProperties()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- uppercase\n")

        with pytest.raises(ValueError, match="mapping"):
            properties_from_yaml(path)

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "streamwire.yaml"
        path.write_text("streamwire:\n  definition: uppercase\n  default_definition: echo\n")
        monkeypatch.setenv("STREAMWIRE_CONFIG_FILE", str(path))
        monkeypatch.setenv("STREAMWIRE_DEFAULT_DEFINITION", "reverse")
        load_properties.cache_clear()
        try:
            properties = load_properties()

            assert properties.definitions == ["uppercase"]
            assert properties.default_definition == "reverse"
        finally:
            load_properties.cache_clear()
