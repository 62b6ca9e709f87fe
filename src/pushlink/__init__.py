"""
pushlink — push-messaging relay client for Python.

Keeps one authenticated connection to the relay, sends downstream messages
(single or broadcast) and acks or nacks upstream messages depending on how
the application handled them.
"""

from pushlink.client import AsyncPushClient, PushClient, SharedClient
from pushlink.codec import MessageCodec
from pushlink.config import ClientConfig
from pushlink.dispatch import HandlerTable, Outcome
from pushlink.errors import (
    ClientError,
    ConfigError,
    ConnectionError,
    MessageError,
    PushLinkError,
    TransportError,
)
from pushlink.models.message import InboundEnvelope, Message, ParseFailure
from pushlink.models.state import ConnectionEvent, ConnectionState
from pushlink.protocol import MessageKind, ProcessResult

__version__ = "0.1.0"
__all__ = [
    "AsyncPushClient",
    "PushClient",
    "SharedClient",
    "MessageCodec",
    "ClientConfig",
    "HandlerTable",
    "Outcome",
    "PushLinkError",
    "ConfigError",
    "TransportError",
    "ConnectionError",
    "MessageError",
    "ClientError",
    "InboundEnvelope",
    "Message",
    "ParseFailure",
    "ConnectionEvent",
    "ConnectionState",
    "MessageKind",
    "ProcessResult",
]
