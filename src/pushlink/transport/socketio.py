"""
Socket.IO transport.

Connection: {https|http}://{host}:{port}/socket.io/, then a `login` call
acknowledged with {"status": "ok"}. Packets travel as `packet` events whose
data is the wire form of pushlink.models.packet.Packet.

Reconnection is left to python-socketio; the transport only translates its
connect/disconnect/connect_error events into ConnectionEvents and logs in
again after a successful reconnect.
"""

import asyncio
import inspect
import logging
from typing import Any, Optional

import socketio

from pushlink.errors import ConnectionError, TransportError
from pushlink.models.packet import Packet
from pushlink.models.state import ConnectionEvent
from pushlink.transport.base import (
    PacketFilter,
    PacketInterceptor,
    PacketListener,
    StateListener,
    TransportOptions,
)
from pushlink.transport.extension import ExtensionRegistry, parse_packet

SOCKETIO_PATH = "/socket.io/"
PACKET_EVENT = "packet"
LOGIN_EVENT = "login"

logger = logging.getLogger("pushlink.transport.socketio")


class SocketIOTransport:
    def __init__(self, transports: Optional[list[str]] = None, socketio_path: str = SOCKETIO_PATH):
        self._transports = transports or ["websocket"]
        self._socketio_path = socketio_path
        self._sio: Optional[socketio.AsyncClient] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._options = TransportOptions()
        self._connected = False
        self._closing = False
        self._ever_connected = False
        self._credentials: Optional[tuple[str, str]] = None
        self._inbound_lock = asyncio.Lock()
        self._pending: set[Any] = set()

        self.extensions = ExtensionRegistry()
        self._state_listeners: list[StateListener] = []
        self._inbound_listeners: list[tuple[PacketFilter, PacketListener]] = []
        self._interceptors: list[tuple[PacketFilter, PacketInterceptor]] = []

    @property
    def connected(self) -> bool:
        return self._connected and self._sio is not None and self._sio.connected

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def add_inbound_listener(self, predicate: PacketFilter, listener: PacketListener) -> None:
        self._inbound_listeners.append((predicate, listener))

    def add_outbound_interceptor(self, predicate: PacketFilter, interceptor: PacketInterceptor) -> None:
        self._interceptors.append((predicate, interceptor))

    async def open(self, host: str, port: int, options: TransportOptions) -> None:
        if self._sio and self._sio.connected:
            return
        if self._sio is not None:
            await self._discard_client()

        self._options = options
        self._closing = False
        self._ever_connected = False
        self._loop = asyncio.get_running_loop()
        self._sio = socketio.AsyncClient(
            reconnection=options.reconnection,
            reconnection_delay=options.reconnection_delay,
            logger=options.debug,
            engineio_logger=options.debug,
        )
        self._sio.on("connect", self._handle_connect)
        self._sio.on("disconnect", self._handle_disconnect)
        self._sio.on("connect_error", self._handle_connect_error)
        self._sio.on(PACKET_EVENT, self._handle_packet)

        scheme = "https" if options.tls_required else "http"
        try:
            await self._sio.connect(
                f"{scheme}://{host}:{port}",
                transports=self._transports,
                socketio_path=self._socketio_path,
            )
        except socketio.exceptions.ConnectionError as e:
            self._sio = None
            raise TransportError(f"Failed to connect to {host}:{port}: {e}", code="connect_failed")

    async def _discard_client(self) -> None:
        """Stop a previous client that is still reconnecting in the background."""
        stale, self._sio = self._sio, None
        self._closing = True
        try:
            await stale.disconnect()  # type: ignore[union-attr]
        except Exception as e:
            logger.debug(f"Ignoring error while discarding stale client: {e}")
        finally:
            self._closing = False

    async def login(self, identity: str, credential: str) -> None:
        if not self._sio or not self._sio.connected:
            raise TransportError("Cannot log in: transport not open", code="login_failed")
        await self._login(identity, credential)
        self._credentials = (identity, credential)

    async def _login(self, identity: str, credential: str) -> None:
        try:
            reply = await self._sio.call(  # type: ignore[union-attr]
                LOGIN_EVENT,
                {"identity": identity, "credential": credential},
                timeout=self._options.login_timeout,
            )
        except socketio.exceptions.TimeoutError:
            raise TransportError(f"Timed out logging in as {identity}", code="login_failed")
        except socketio.exceptions.SocketIOError as e:
            raise TransportError(f"Login failed for {identity}: {e}", code="login_failed")
        if not isinstance(reply, dict) or reply.get("status") != "ok":
            raise TransportError(f"Login rejected for {identity}", code="login_failed", details={"reply": reply})

    def send(self, packet: Packet) -> None:
        """Hand a packet to the connection. Returns immediately.

        Safe to call from any thread; the emit itself runs on the transport's
        event loop and errors are logged.
        """
        if not self._sio or not self._sio.connected or self._loop is None:
            raise ConnectionError("Transport not connected")

        for predicate, interceptor in self._interceptors:
            if predicate(packet):
                interceptor(packet)

        wire = packet.to_wire()
        sio = self._sio

        async def _do_emit() -> None:
            try:
                await sio.emit(PACKET_EVENT, wire)
            except Exception as e:
                logger.error(f"Emit failed for packet {packet.id or ''}: {e}")

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            task = self._loop.create_task(_do_emit())
        else:
            task = asyncio.run_coroutine_threadsafe(_do_emit(), self._loop)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def close(self) -> None:
        self._closing = True
        self._connected = False
        if self._sio:
            await self._sio.disconnect()
            self._sio = None

    def _notify(self, event: ConnectionEvent) -> None:
        for listener in list(self._state_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"State listener failed on {event.type.value}")

    async def _handle_connect(self) -> None:
        self._connected = True
        if not self._ever_connected:
            self._ever_connected = True
            return
        if self._credentials:
            try:
                await self._login(*self._credentials)
            except TransportError as e:
                self._notify(ConnectionEvent.reconnection_failed(e))
                return
        self._notify(ConnectionEvent.reconnection_succeeded())

    async def _handle_disconnect(self, reason: Any = "") -> None:
        self._connected = False
        if self._closing:
            self._notify(ConnectionEvent.closed())
            return
        self._notify(ConnectionEvent.closed_on_error(reason or "connection lost"))
        if self._options.reconnection:
            self._notify(ConnectionEvent.reconnecting_in(self._options.reconnection_delay))

    async def _handle_connect_error(self, data: Any = None) -> None:
        if self._ever_connected:
            self._notify(ConnectionEvent.reconnection_failed(data or "connect error"))

    async def _handle_packet(self, data: Any) -> None:
        packet = parse_packet(data, self.extensions)
        if packet is None:
            logger.warning(f"Ignoring malformed packet: {data!r}")
            return
        # one packet at a time, in arrival order
        async with self._inbound_lock:
            for predicate, listener in list(self._inbound_listeners):
                if not predicate(packet):
                    continue
                try:
                    result = listener(packet)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception("Inbound listener failed")
