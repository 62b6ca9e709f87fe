"""
pushlink error types.

Only failures that cross the public API raise. Problems on the receive path
(malformed JSON, failing handlers, reply send errors) are logged and reported
as result values instead.
"""

from typing import Any, Optional


class PushLinkError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ConfigError(PushLinkError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("config_error", message, details)


class TransportError(PushLinkError):
    """Opening the transport or logging in failed. Not retried internally."""

    def __init__(self, message: str, code: str = "transport_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class ConnectionError(PushLinkError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)


class MessageError(PushLinkError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("message_error", message, details)


class ClientError(PushLinkError):
    def __init__(self, message: str):
        super().__init__("client_error", message)
