"""
Binding Service protocol.

The binding service links named channels to the external transport.
streamwire only consumes this interface; the transport (binder) is
supplied by the application. See memory.py for the in-process binder
used in tests and examples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from streamwire.messaging import Channel


def _utc_now() -> datetime:
    return datetime.now(UTC)


class BindingRole(str, Enum):
    CONSUMER = "consumer"
    PRODUCER = "producer"


@dataclass(slots=True)
class Binding:
    """
    An active subscription or publication for one channel.

    Owned by the binding service; proxies only keep references.

    Attributes:
        name: Binding (channel) name
        destination: Transport destination the channel is linked to
        role: Consumer (inbound) or producer (outbound)
        target: The bound channel
    """

    name: str
    destination: str
    role: BindingRole
    target: Channel
    created_at: datetime = field(default_factory=_utc_now)
    running: bool = True

    def stop(self) -> None:
        self.running = False

    def __repr__(self) -> str:
        state = "running" if self.running else "stopped"
        return f"Binding({self.role.value}:{self.name}->{self.destination}, {state})"


@runtime_checkable
class BindingService(Protocol):
    """
    Transport-facing binding operations.

    Implementations must treat unbinding a name with no active
    binding as a no-op.
    """

    def bind_consumer(self, channel: Channel, name: str) -> list[Binding]:
        """Subscribe channel to the transport destination for name."""
        ...

    def bind_producer(self, channel: Channel, name: str) -> Binding:
        """Publish messages sent on channel to the destination for name."""
        ...

    def unbind_consumers(self, name: str) -> None:
        ...

    def unbind_producers(self, name: str) -> None:
        ...
