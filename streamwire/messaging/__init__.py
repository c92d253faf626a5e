"""
streamwire messaging primitives: messages and in-process channels.
"""

from .channels import (
    Channel,
    DirectChannel,
    MessageChannel,
    MessageDeliveryError,
    MessageHandler,
    PollableMessageSource,
    SubscribableChannel,
)
from .message import Message, MessageHeaders

__all__ = [
    "Message",
    "MessageHeaders",
    # Channels
    "Channel",
    "MessageChannel",
    "SubscribableChannel",
    "DirectChannel",
    "PollableMessageSource",
    "MessageHandler",
    "MessageDeliveryError",
]
