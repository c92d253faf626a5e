"""
Message abstraction for streamwire.

Messages are immutable payload + headers containers that flow through
channels and functions. New messages are derived, never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


def _utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


class MessageHeaders:
    """Well-known header names."""

    FUNCTION_DEFINITION = "function.definition"
    ROUTING_EXPRESSION = "function.routing-expression"
    CONTENT_TYPE = "contentType"


@dataclass(frozen=True, kw_only=True, slots=True)
class Message:
    """
    A payload with headers.

    - Unique ID for tracking
    - Creation timestamp
    - Source message ID for lineage tracking
    - Headers for routing and content metadata

    Headers are copied into a plain dict on construction so callers
    can pass any mapping without sharing it.
    """

    payload: Any = None
    headers: Mapping[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    source_message_id: UUID | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", dict(self.headers))

    @classmethod
    def of(cls, payload: Any, **headers: Any) -> Message:
        """Build a message from a payload and keyword headers."""
        return cls(payload=payload, headers=headers)

    def derive(self, **changes: Any) -> Message:
        """
        Create a new message derived from this one.

        The new message gets a new ID and timestamp, and
        source_message_id pointing to this message.

        Example:
            upper = message.derive(payload=message.payload.upper())
        """
        return replace(
            self,
            id=uuid4(),
            created_at=_utc_now(),
            source_message_id=self.id,
            **changes,
        )

    def with_headers(self, **extra: Any) -> Message:
        """Create new message with additional headers."""
        return self.derive(headers={**self.headers, **extra})

    def header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Serialize message to dictionary for logging."""
        return {
            "id": str(self.id),
            "created_at": self.created_at.isoformat(),
            "source_message_id": str(self.source_message_id) if self.source_message_id else None,
            "headers": dict(self.headers),
            "payload_type": type(self.payload).__name__,
        }

    def __repr__(self) -> str:
        return f"Message(id={str(self.id)[:8]}..., headers={sorted(self.headers)})"
