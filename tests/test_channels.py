"""
Tests for streamwire messages and in-process channels.
"""

import pytest

from streamwire.messaging import (
    DirectChannel,
    Message,
    MessageDeliveryError,
    MessageHeaders,
    PollableMessageSource,
)

# =============================================================================
# Message Tests
# =============================================================================


class TestMessage:
    def test_of_builds_headers(self):
        message = Message.of("hi", contentType="text/plain")

        assert message.payload == "hi"
        assert message.headers == {"contentType": "text/plain"}

    def test_headers_are_copied(self):
        headers = {"a": 1}
        message = Message(payload="x", headers=headers)
        headers["a"] = 2

        assert message.header("a") == 1

    def test_is_immutable(self):
        message = Message.of("hi")
        with pytest.raises(Exception):  # frozen dataclass
            message.payload = "changed"

    def test_derive_tracks_lineage(self):
        message = Message.of("hi", x=1)
        derived = message.derive(payload="HI")

        assert derived.payload == "HI"
        assert derived.headers == {"x": 1}
        assert derived.id != message.id
        assert derived.source_message_id == message.id

    def test_with_headers_merges(self):
        message = Message.of("hi", x=1)
        updated = message.with_headers(**{MessageHeaders.FUNCTION_DEFINITION: "echo"})

        assert updated.headers == {"x": 1, "function.definition": "echo"}
        assert message.headers == {"x": 1}

    def test_to_dict(self):
        data = Message.of(b"raw", x=1).to_dict()

        assert data["headers"] == {"x": 1}
        assert data["payload_type"] == "bytes"
        assert data["source_message_id"] is None


# =============================================================================
# DirectChannel Tests
# =============================================================================


class TestDirectChannel:
    @pytest.mark.asyncio
    async def test_send_calls_sync_and_async_handlers(self):
        received = []
        channel = DirectChannel("words")

        async def async_handler(message):
            received.append(("async", message.payload))

        channel.subscribe(lambda m: received.append(("sync", m.payload)))
        channel.subscribe(async_handler)

        await channel.send(Message.of("a"))
        await channel.send(Message.of("b"))

        assert received == [("sync", "a"), ("async", "b")]

    @pytest.mark.asyncio
    async def test_send_without_subscribers_raises(self):
        channel = DirectChannel("words")

        with pytest.raises(MessageDeliveryError) as exc_info:
            await channel.send(Message.of("a"))

        assert "words" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_handler_errors_propagate(self):
        channel = DirectChannel("words")

        def failing(message):
            raise RuntimeError("boom")

        channel.subscribe(failing)

        with pytest.raises(RuntimeError, match="boom"):
            await channel.send(Message.of("a"))

    def test_subscribe_is_not_repeated(self):
        channel = DirectChannel("words")
        handler = lambda m: None  # noqa: E731

        assert channel.subscribe(handler) is True
        assert channel.subscribe(handler) is False
        assert channel.subscriber_count == 1
        assert channel.unsubscribe(handler) is True
        assert channel.unsubscribe(handler) is False

    def test_attributes(self):
        channel = DirectChannel()
        channel.set_attribute("type", "input")

        assert channel.get_attribute("type") == "input"
        assert channel.get_attribute("missing", "x") == "x"


# =============================================================================
# PollableMessageSource Tests
# =============================================================================


class TestPollableMessageSource:
    @pytest.mark.asyncio
    async def test_poll_empty_returns_false(self):
        source = PollableMessageSource("orders")

        assert await source.poll(lambda m: None) is False

    @pytest.mark.asyncio
    async def test_poll_is_fifo(self):
        source = PollableMessageSource("orders")
        source.put(Message.of(1))
        source.put(Message.of(2))
        seen = []

        assert await source.poll(lambda m: seen.append(m.payload)) is True
        assert seen == [1]
        assert source.pending == 1
