"""
Connection manager — owns the single relay connection.

connect() is one-shot: configure → open → install listeners → login. A
failure at open or login raises TransportError to the caller; retrying is
up to whoever called connect(). Once connected, reconnection is handled by
the transport and only logged here.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

from pushlink.config import ClientConfig
from pushlink.errors import ConnectionError, TransportError
from pushlink.models.packet import Packet
from pushlink.models.state import ConnectionEvent, ConnectionEventType, ConnectionState
from pushlink.protocol import ProcessResult
from pushlink.transport.base import Transport, TransportOptions, is_message
from pushlink.transport.extension import build_payload_packet, extract_payload, register_payload_extension

InboundProcessor = Callable[[str], Awaitable[ProcessResult]]

logger = logging.getLogger("pushlink.connection")

_STATE_AFTER_EVENT = {
    ConnectionEventType.RECONNECTION_SUCCEEDED: ConnectionState.CONNECTED,
    ConnectionEventType.RECONNECTION_FAILED: ConnectionState.RECONNECTING,
    ConnectionEventType.RECONNECTING_IN: ConnectionState.RECONNECTING,
    ConnectionEventType.CLOSED_ON_ERROR: ConnectionState.CLOSED_ON_ERROR,
    ConnectionEventType.CLOSED: ConnectionState.CLOSED,
}

_INCOMPLETE = (ProcessResult.PARSE_FAILURE, ProcessResult.REPLY_FAILED, ProcessResult.HOOK_FAILED)


class ConnectionManager:
    def __init__(self, config: ClientConfig, transport: Transport):
        self._config = config
        self._transport = transport
        self._state = ConnectionState.DISCONNECTED
        self._processor: Optional[InboundProcessor] = None
        self._listeners_installed = False
        self.last_event: Optional[ConnectionEvent] = None
        register_payload_extension(transport.extensions)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED and self._transport.connected

    @property
    def reconnecting(self) -> bool:
        return self._state == ConnectionState.RECONNECTING

    def on_inbound(self, processor: InboundProcessor) -> None:
        """Set the entry point inbound JSON payloads are handed to."""
        self._processor = processor

    def options(self) -> TransportOptions:
        return TransportOptions(
            tls_required=self._config.tls,
            reconnection=self._config.reconnection,
            reconnection_delay=self._config.reconnection_delay,
            send_presence=False,
            load_roster=False,
            login_timeout=self._config.login_timeout,
            debug=self._config.debug,
        )

    async def connect(self) -> None:
        if self.connected:
            return

        self._state = ConnectionState.CONNECTING
        try:
            await self._transport.open(self._config.host, self._config.port, self.options())
            if not self._listeners_installed:
                self._transport.add_state_listener(self._on_state_event)
                self._transport.add_inbound_listener(is_message, self._on_packet)
                self._transport.add_outbound_interceptor(is_message, self._on_outbound)
                self._listeners_installed = True
            await self._transport.login(self._config.identity, self._config.api_key)
        except Exception as e:
            await self._close_quietly()
            # closing may report CLOSED; a failed connect leaves us disconnected
            self._state = ConnectionState.DISCONNECTED
            if isinstance(e, TransportError):
                raise
            raise TransportError(f"Connection to {self._config.host}:{self._config.port} failed: {e}") from e

        self._state = ConnectionState.CONNECTED
        logger.info(f"logged in: {self._config.project_id}")

    def send(self, json_payload: str) -> None:
        """Send a JSON payload to the relay. Fire-and-forget."""
        if self._state in (ConnectionState.DISCONNECTED, ConnectionState.CONNECTING, ConnectionState.CLOSED):
            raise ConnectionError("Not connected. Call connect() first.")
        self._transport.send(build_payload_packet(json_payload))

    async def close(self) -> None:
        await self._transport.close()
        self._state = ConnectionState.CLOSED

    async def _close_quietly(self) -> None:
        try:
            await self._transport.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing failed connection: {e}")

    def _on_state_event(self, event: ConnectionEvent) -> None:
        self.last_event = event
        self._state = _STATE_AFTER_EVENT[event.type]
        if event.type is ConnectionEventType.RECONNECTION_SUCCEEDED:
            logger.info("Reconnected.")
        elif event.type is ConnectionEventType.RECONNECTION_FAILED:
            logger.info(f"Reconnection failed: {event.cause}")
        elif event.type is ConnectionEventType.RECONNECTING_IN:
            logger.info(f"Reconnecting in {event.seconds:g} secs")
        elif event.type is ConnectionEventType.CLOSED_ON_ERROR:
            logger.info(f"Connection closed on error: {event.cause}")
        else:
            logger.info("Connection closed.")

    def _on_outbound(self, packet: Packet) -> None:
        logger.info(f"Sent: {packet.to_wire()}")

    async def _on_packet(self, packet: Packet) -> None:
        logger.info(f"Received: {packet.to_wire()}")
        text = extract_payload(packet)
        if text is None:
            logger.warning("Received message packet without payload extension")
            return
        if self._processor is None:
            logger.warning("No inbound processor installed; dropping payload")
            return

        try:
            result: Any = self._processor(text)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            logger.exception(f"Unexpected error processing payload {text!r}")
            return

        if result in _INCOMPLETE:
            logger.debug(f"Inbound payload not completed: {result!r}")
        elif result is ProcessResult.UNKNOWN_TYPE:
            logger.debug("Inbound payload ignored: unknown message type")
        else:
            logger.debug(f"Inbound payload processed: {result!r}")
