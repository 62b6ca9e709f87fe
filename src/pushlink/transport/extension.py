"""
Packet extensions — the (element, namespace) payloads carried by packets.

Decoders are registered per (element, namespace) pair; extensions nobody
registered a decoder for are dropped when a packet is parsed.
"""

import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from pushlink.config import PAYLOAD_ELEMENT, PAYLOAD_NAMESPACE
from pushlink.models.packet import MESSAGE, Packet, PacketExtension

ExtensionDecoder = Callable[[dict[str, Any]], PacketExtension]

logger = logging.getLogger("pushlink.transport.extension")


class ExtensionRegistry:
    def __init__(self) -> None:
        self._decoders: dict[tuple[str, str], ExtensionDecoder] = {}

    def add_provider(self, element: str, namespace: str, decoder: ExtensionDecoder) -> None:
        self._decoders[(element, namespace)] = decoder

    def has_provider(self, element: str, namespace: str) -> bool:
        return (element, namespace) in self._decoders

    def decode(self, raw: dict[str, Any]) -> Optional[PacketExtension]:
        decoder = self._decoders.get((raw.get("element", ""), raw.get("namespace", "")))
        if decoder is None:
            return None
        return decoder(raw)


def text_extension_decoder(raw: dict[str, Any]) -> PacketExtension:
    """Keep only the embedded text of the element."""
    return PacketExtension(
        element=raw["element"],
        namespace=raw["namespace"],
        text=str(raw.get("text") or ""),
    )


def register_payload_extension(registry: ExtensionRegistry) -> None:
    registry.add_provider(PAYLOAD_ELEMENT, PAYLOAD_NAMESPACE, text_extension_decoder)


def build_payload_packet(json_text: str) -> Packet:
    """Wrap a JSON payload in a message packet."""
    return Packet(
        type=MESSAGE,
        extensions=[PacketExtension(element=PAYLOAD_ELEMENT, namespace=PAYLOAD_NAMESPACE, text=json_text)],
    )


def extract_payload(packet: Packet) -> Optional[str]:
    ext = packet.get_extension(PAYLOAD_NAMESPACE, PAYLOAD_ELEMENT)
    return ext.text if ext is not None else None


def parse_packet(raw: Any, registry: ExtensionRegistry) -> Optional[Packet]:
    """Parse a wire packet. Returns None if invalid."""
    if not isinstance(raw, dict):
        return None
    extensions = []
    for item in raw.get("extensions") or []:
        if not isinstance(item, dict):
            continue
        try:
            ext = registry.decode(item)
        except (KeyError, ValidationError) as e:
            logger.warning(f"Dropping malformed extension {item!r}: {e}")
            continue
        if ext is not None:
            extensions.append(ext)
    try:
        return Packet.model_validate({**raw, "extensions": extensions})
    except ValidationError:
        return None
