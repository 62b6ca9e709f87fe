"""Shared fixtures: an in-memory transport standing in for the relay connection."""

import inspect
import json
from typing import Any, Optional

import pytest

from pushlink.client import AsyncPushClient
from pushlink.config import PAYLOAD_ELEMENT, PAYLOAD_NAMESPACE, ClientConfig
from pushlink.errors import ConnectionError, TransportError
from pushlink.models.packet import Packet
from pushlink.transport.base import TransportOptions
from pushlink.transport.extension import ExtensionRegistry, extract_payload, parse_packet


class FakeTransport:
    def __init__(self, fail_open: Optional[Exception] = None, fail_login: Optional[Exception] = None):
        self.extensions = ExtensionRegistry()
        self.fail_open = fail_open
        self.fail_login = fail_login
        self.opened: Optional[tuple[str, int, TransportOptions]] = None
        self.logins: list[tuple[str, str]] = []
        self.sent: list[Packet] = []
        self.closed = 0
        self.fail_sends_to: set[str] = set()
        self.state_listeners: list[Any] = []
        self.inbound_listeners: list[Any] = []
        self.interceptors: list[Any] = []
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def open(self, host: str, port: int, options: TransportOptions) -> None:
        if self.fail_open:
            raise self.fail_open
        self.opened = (host, port, options)
        self._connected = True

    async def login(self, identity: str, credential: str) -> None:
        if self.fail_login:
            raise self.fail_login
        self.logins.append((identity, credential))

    def add_state_listener(self, listener) -> None:
        self.state_listeners.append(listener)

    def add_inbound_listener(self, predicate, listener) -> None:
        self.inbound_listeners.append((predicate, listener))

    def add_outbound_interceptor(self, predicate, interceptor) -> None:
        self.interceptors.append((predicate, interceptor))

    def send(self, packet: Packet) -> None:
        if not self._connected:
            raise ConnectionError("Transport not connected")
        payload = extract_payload(packet)
        if payload and json.loads(payload).get("to") in self.fail_sends_to:
            raise TransportError("send refused")
        for predicate, interceptor in self.interceptors:
            if predicate(packet):
                interceptor(packet)
        self.sent.append(packet)

    async def close(self) -> None:
        self.closed += 1
        self._connected = False

    # test helpers

    async def deliver_raw(self, raw: Any) -> None:
        packet = parse_packet(raw, self.extensions)
        assert packet is not None
        for predicate, listener in self.inbound_listeners:
            if predicate(packet):
                result = listener(packet)
                if inspect.isawaitable(result):
                    await result

    async def deliver(self, payload: Any) -> None:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        await self.deliver_raw({
            "type": "message",
            "extensions": [{"element": PAYLOAD_ELEMENT, "namespace": PAYLOAD_NAMESPACE, "text": text}],
        })

    def emit_state(self, event) -> None:
        for listener in self.state_listeners:
            listener(event)

    def sent_payloads(self) -> list[dict[str, Any]]:
        return [json.loads(extract_payload(p) or "null") for p in self.sent]


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(project_id="1234567890", api_key="secret-key")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(config: ClientConfig, transport: FakeTransport) -> AsyncPushClient:
    return AsyncPushClient(config, transport=transport)
