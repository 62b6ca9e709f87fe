"""
AsyncPushClient / PushClient — main client objects.
"""

import asyncio
import threading
from typing import Any, Optional, Sequence

from pushlink.broadcast import BroadcastDelivery, BroadcastSender
from pushlink.codec import MessageCodec
from pushlink.config import ClientConfig
from pushlink.connection import ConnectionManager
from pushlink.dispatch import Dispatcher, Handler, HandlerTable
from pushlink.errors import ClientError, MessageError
from pushlink.handlers import ECHO_ACTION, EchoHandler
from pushlink.models.message import Message
from pushlink.models.state import ConnectionState
from pushlink.protocol import AckNackProtocol, ReceiptHook
from pushlink.transport.base import Transport


class AsyncPushClient:
    """Async relay client (primary).

    Owns one connection. Upstream data messages are routed to ``handlers`` by
    their ``ACTION`` payload key and acked or nacked depending on the outcome;
    acks and nacks for our own messages go to ``on_ack`` / ``on_nack``.
    """

    def __init__(
        self,
        config: ClientConfig,
        handlers: Optional[HandlerTable] = None,
        on_ack: Optional[ReceiptHook] = None,
        on_nack: Optional[ReceiptHook] = None,
        transport: Optional[Transport] = None,
        codec: Optional[MessageCodec] = None,
    ):
        if transport is None:
            from pushlink.transport.socketio import SocketIOTransport
            transport = SocketIOTransport()

        self.config = config
        self.codec = codec or MessageCodec()
        self.handlers = handlers if handlers is not None else HandlerTable()
        self.connection = ConnectionManager(config, transport)
        self.protocol = AckNackProtocol(
            self.codec, Dispatcher(self.handlers), self.connection.send, on_ack=on_ack, on_nack=on_nack,
        )
        self.broadcaster = BroadcastSender(self.codec, self.connection.send)
        self.connection.on_inbound(self.protocol.process)
        self._closed: Optional[asyncio.Event] = None

    @property
    def connected(self) -> bool:
        return self.connection.connected

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    async def connect(self) -> None:
        self._closed = asyncio.Event()
        await self.connection.connect()

    async def close(self) -> None:
        await self.connection.close()
        if self._closed is not None:
            self._closed.set()

    async def wait(self) -> None:
        """Block until close() is called."""
        if self._closed is None:
            raise ClientError("Not connected. Call connect() first.")
        await self._closed.wait()

    def register_handler(self, action: str, handler: Handler) -> None:
        self.handlers.register(action, handler)

    def enable_echo(self) -> None:
        self.handlers.register(ECHO_ACTION, EchoHandler(self.codec, self.send))

    def new_message_id(self) -> str:
        return self.codec.new_message_id()

    def send(self, json_payload: str) -> None:
        """Send a raw JSON payload (fire-and-forget)."""
        self.connection.send(json_payload)

    def send_message(self, message: Message) -> str:
        """Send a downstream message, assigning a message id if it has none.

        Returns the message id the relay will ack or nack.
        """
        if not message.to:
            raise MessageError("Message has no recipient ('to')")
        if message.message_id is None:
            message = message.model_copy(update={"message_id": self.new_message_id()})
        self.send(self.codec.encode_message(message))
        return message.message_id  # type: ignore[return-value]

    def send_broadcast(
        self,
        payload: dict[str, str],
        recipients: Sequence[str],
        collapse_key: Optional[str] = None,
        time_to_live: Optional[int] = None,
        delay_while_idle: Optional[bool] = None,
    ) -> list[BroadcastDelivery]:
        return self.broadcaster.send_broadcast(payload, collapse_key, time_to_live, delay_while_idle, recipients)


class PushClient:
    """Sync wrapper around AsyncPushClient.

    The event loop runs on a background thread so inbound messages keep being
    processed (and acked) between calls.
    """

    def __init__(self, config: ClientConfig, **kwargs: Any):
        self._async = AsyncPushClient(config, **kwargs)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name="pushlink-loop", daemon=True)
        self._thread.start()

    def _run(self, coro: Any) -> Any:
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    @property
    def handlers(self) -> HandlerTable:
        return self._async.handlers

    @property
    def connected(self) -> bool:
        return self._async.connected

    @property
    def state(self) -> ConnectionState:
        return self._async.state

    def connect(self) -> None:
        self._run(self._async.connect())

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()

    def run_forever(self) -> None:
        """Block until the client is closed."""
        self._run(self._async.wait())

    def register_handler(self, action: str, handler: Handler) -> None:
        self._async.register_handler(action, handler)

    def enable_echo(self) -> None:
        self._async.enable_echo()

    def new_message_id(self) -> str:
        return self._async.new_message_id()

    def send(self, json_payload: str) -> None:
        self._async.send(json_payload)

    def send_message(self, message: Message) -> str:
        return self._async.send_message(message)

    def send_broadcast(self, payload: dict[str, str], recipients: Sequence[str], **kwargs: Any) -> list[BroadcastDelivery]:
        return self._async.send_broadcast(payload, recipients, **kwargs)


class SharedClient:
    """Explicitly owned handle to one lazily created AsyncPushClient.

    The first get_or_create() wins; later calls return the same client and
    ignore their arguments, credentials included.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._client: Optional[AsyncPushClient] = None

    def get_or_create(self, project_id: str, api_key: str, debug: bool = False, **kwargs: Any) -> AsyncPushClient:
        with self._lock:
            if self._client is None:
                config = ClientConfig(project_id=project_id, api_key=api_key, debug=debug)
                self._client = AsyncPushClient(config, **kwargs)
            return self._client

    def get(self) -> AsyncPushClient:
        if self._client is None:
            raise ClientError("Shared client has not been created yet")
        return self._client
