"""
Transport contract.

The protocol engine never touches sockets. It needs a connection that can be
opened and logged into, reports its state through listeners, delivers
inbound packets to listeners and lets interceptors see outbound packets before
they leave.
"""

from typing import Callable, Protocol, runtime_checkable

from pydantic import BaseModel

from pushlink.models.packet import Packet
from pushlink.models.state import ConnectionEvent
from pushlink.transport.extension import ExtensionRegistry

PacketFilter = Callable[[Packet], bool]
PacketListener = Callable[[Packet], object]  # may return an awaitable
PacketInterceptor = Callable[[Packet], None]
StateListener = Callable[[ConnectionEvent], None]


class TransportOptions(BaseModel):
    tls_required: bool = True
    reconnection: bool = True
    reconnection_delay: float = 1.0
    send_presence: bool = False
    load_roster: bool = False
    login_timeout: float = 10.0
    debug: bool = False


@runtime_checkable
class Transport(Protocol):
    extensions: ExtensionRegistry

    @property
    def connected(self) -> bool: ...

    async def open(self, host: str, port: int, options: TransportOptions) -> None: ...

    async def login(self, identity: str, credential: str) -> None: ...

    def add_state_listener(self, listener: StateListener) -> None: ...

    def add_inbound_listener(self, predicate: PacketFilter, listener: PacketListener) -> None: ...

    def add_outbound_interceptor(self, predicate: PacketFilter, interceptor: PacketInterceptor) -> None: ...

    def send(self, packet: Packet) -> None: ...

    async def close(self) -> None: ...


def is_message(packet: Packet) -> bool:
    return packet.is_message
