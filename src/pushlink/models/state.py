"""
Connection state and the events the transport reports about it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"
    CLOSED_ON_ERROR = "closed_on_error"


class ConnectionEventType(str, Enum):
    RECONNECTION_SUCCEEDED = "reconnection_succeeded"
    RECONNECTION_FAILED = "reconnection_failed"
    RECONNECTING_IN = "reconnecting_in"
    CLOSED_ON_ERROR = "closed_on_error"
    CLOSED = "closed"


class ConnectionEvent(BaseModel):
    type: ConnectionEventType
    cause: Optional[str] = None
    seconds: Optional[float] = None

    @classmethod
    def reconnection_succeeded(cls) -> "ConnectionEvent":
        return cls(type=ConnectionEventType.RECONNECTION_SUCCEEDED)

    @classmethod
    def reconnection_failed(cls, cause: object) -> "ConnectionEvent":
        return cls(type=ConnectionEventType.RECONNECTION_FAILED, cause=str(cause))

    @classmethod
    def reconnecting_in(cls, seconds: float) -> "ConnectionEvent":
        return cls(type=ConnectionEventType.RECONNECTING_IN, seconds=seconds)

    @classmethod
    def closed_on_error(cls, cause: object) -> "ConnectionEvent":
        return cls(type=ConnectionEventType.CLOSED_ON_ERROR, cause=str(cause))

    @classmethod
    def closed(cls) -> "ConnectionEvent":
        return cls(type=ConnectionEventType.CLOSED)
