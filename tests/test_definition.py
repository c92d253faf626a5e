"""
Tests for the function catalog, definition parsing and composition.
"""

import pytest

from streamwire.function import (
    CompositeFunction,
    DefinitionComposer,
    DefinitionError,
    FunctionCatalog,
    FunctionCatalogError,
    FunctionKind,
    FunctionNotFoundError,
    parse_definition,
    validate_stages,
)
from streamwire.messaging import Message


async def collect(invoker, message=None):
    return [m.payload async for m in invoker.emit(message)]


# =============================================================================
# Parsing Tests
# =============================================================================


class TestParseDefinition:
    def test_splits_in_order(self):
        assert parse_definition("a|b|c") == ("a", "b", "c")

    def test_trims_whitespace(self):
        assert parse_definition(" a | b ") == ("a", "b")

    def test_single_name(self):
        assert parse_definition("echo") == ("echo",)

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_definition_fails(self, raw):
        with pytest.raises(DefinitionError, match="empty"):
            parse_definition(raw)

    @pytest.mark.parametrize("raw,position", [("a||b", 1), ("|a", 0), ("a|", 1)])
    def test_empty_element_fails(self, raw, position):
        with pytest.raises(DefinitionError) as exc_info:
            parse_definition(raw)

        assert f"position {position}" in str(exc_info.value)
        assert exc_info.value.definition == raw

    def test_custom_delimiter(self):
        assert parse_definition("a,b", delimiter=",") == ("a", "b")


# =============================================================================
# Catalog Tests
# =============================================================================


class TestFunctionCatalog:
    def test_decorator_registration(self):
        catalog = FunctionCatalog()

        @catalog.function()
        def shout(text):
            return text.upper()

        assert catalog.has("shout")
        assert shout("a") == "A"

    def test_duplicate_name_rejected(self, catalog):
        with pytest.raises(FunctionCatalogError, match="already registered"):
            catalog.register("echo", lambda x: x)

    def test_resolve_unknown(self, catalog):
        with pytest.raises(FunctionNotFoundError) as exc_info:
            catalog.resolve("missing")

        assert exc_info.value.name == "missing"
        assert "echo" in str(exc_info.value)

    def test_default_arity_per_kind(self):
        catalog = FunctionCatalog()
        supplier = catalog.register("number", lambda: "1", FunctionKind.SUPPLIER)
        consumer = catalog.register("sink", lambda x: None, FunctionKind.CONSUMER)

        assert (supplier.input_count, supplier.output_count) == (0, 1)
        assert (consumer.input_count, consumer.output_count) == (1, 0)
        assert supplier.is_supplier and consumer.is_consumer

    @pytest.mark.asyncio
    async def test_async_function(self):
        catalog = FunctionCatalog()

        async def slow_upper(text):
            return text.upper()

        invoker = catalog.register("slowUpper", slow_upper)

        assert await collect(invoker, Message.of("a")) == ["A"]

    @pytest.mark.asyncio
    async def test_plain_results_keep_headers(self, catalog):
        [output] = [m async for m in catalog.resolve("uppercase").emit(Message.of("a", k="v"))]

        assert output.payload == "A"
        assert output.headers == {"k": "v"}

    @pytest.mark.asyncio
    async def test_stream_emits_each_item(self):
        catalog = FunctionCatalog()

        async def split(text):
            for word in text.split():
                yield word

        invoker = catalog.register("split", split, FunctionKind.STREAM)

        assert await collect(invoker, Message.of("a b c")) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_consumer_emits_nothing(self):
        seen = []
        catalog = FunctionCatalog()
        invoker = catalog.register("sink", seen.append, FunctionKind.CONSUMER)

        assert await collect(invoker, Message.of("x")) == []
        assert seen == ["x"]


# =============================================================================
# Composition Tests
# =============================================================================


class TestDefinitionComposer:
    @pytest.mark.asyncio
    async def test_composes_in_order(self, catalog):
        composer = DefinitionComposer(catalog)

        pipeline = composer.compose("uppercase|concatWithSelf")

        assert isinstance(pipeline, CompositeFunction)
        assert pipeline.stage_names == ["uppercase", "concatWithSelf"]
        assert await collect(pipeline, Message.of("hello")) == ["HELLO:HELLO"]

    def test_single_name_returns_registered_function(self, catalog):
        composer = DefinitionComposer(catalog)

        assert composer.compose("echo") is catalog.resolve("echo")

    def test_composition_is_cached(self, catalog):
        composer = DefinitionComposer(catalog)

        first = composer.compose("echo | uppercase")
        second = composer.compose("echo|uppercase")

        assert first is second
        assert catalog.has("echo|uppercase")

    def test_unknown_token_is_named(self, catalog):
        composer = DefinitionComposer(catalog)

        with pytest.raises(FunctionNotFoundError) as exc_info:
            composer.compose("echo|nope|uppercase")

        assert exc_info.value.name == "nope"
        assert exc_info.value.definition == "echo|nope|uppercase"

    @pytest.mark.asyncio
    async def test_alias_of_composition_can_be_composed(self, catalog):
        composer = DefinitionComposer(catalog)
        composer.compose_as("shout", "uppercase|concatWithSelf")

        pipeline = composer.compose("shout|reverse")

        assert await collect(pipeline, Message.of("ab")) == ["BA:BA"]

    @pytest.mark.asyncio
    async def test_supplier_head(self, catalog):
        catalog.register("number", lambda: "1", FunctionKind.SUPPLIER)
        pipeline = DefinitionComposer(catalog).compose("number|uppercase|concatWithSelf")

        assert pipeline.kind is FunctionKind.SUPPLIER
        assert pipeline.input_count == 0
        assert await collect(pipeline) == ["1:1"]

    @pytest.mark.asyncio
    async def test_stream_stage_fans_out(self, catalog):
        async def count(_):
            for i in range(3):
                yield str(i)

        catalog.register("count", count, FunctionKind.STREAM)
        pipeline = DefinitionComposer(catalog).compose("count|concatWithSelf")

        assert pipeline.kind is FunctionKind.STREAM
        assert await collect(pipeline, Message.of(None)) == ["0:0", "1:1", "2:2"]

    def test_supplier_must_start(self, catalog):
        catalog.register("number", lambda: "1", FunctionKind.SUPPLIER)

        with pytest.raises(DefinitionError, match="can only start"):
            DefinitionComposer(catalog).compose("echo|number")

    def test_consumer_must_end(self, catalog):
        catalog.register("sink", lambda x: None, FunctionKind.CONSUMER)

        with pytest.raises(DefinitionError, match="can only end"):
            DefinitionComposer(catalog).compose("sink|echo")

    def test_placement_check_without_composing(self, catalog):
        catalog.register("sink", lambda x: None, FunctionKind.CONSUMER)
        stages = [catalog.resolve("sink"), catalog.resolve("echo")]

        with pytest.raises(DefinitionError) as exc_info:
            validate_stages("sink|echo", stages)

        assert exc_info.value.definition == "sink|echo"
        assert not catalog.has("sink|echo")
        validate_stages("echo|sink", stages[::-1])

    @pytest.mark.asyncio
    async def test_consumer_tail(self, catalog):
        seen = []
        catalog.register("sink", seen.append, FunctionKind.CONSUMER)
        pipeline = DefinitionComposer(catalog).compose("uppercase|sink")

        assert pipeline.kind is FunctionKind.CONSUMER
        assert pipeline.output_count == 0
        assert await pipeline.apply(Message.of("x")) is None
        assert seen == ["X"]
