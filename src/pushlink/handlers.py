"""
Built-in handlers.
"""

import logging
from typing import Callable

from pushlink.codec import MessageCodec
from pushlink.dispatch import ACTION_KEY, Outcome
from pushlink.models.message import InboundEnvelope

ECHO_ACTION = "ECHO"

logger = logging.getLogger("pushlink.handlers")


class EchoHandler:
    """Send the upstream payload straight back to the device that sent it."""

    def __init__(self, codec: MessageCodec, send: Callable[[str], None]):
        self._codec = codec
        self._send = send

    def __call__(self, envelope: InboundEnvelope) -> Outcome:
        payload = {k: v for k, v in envelope.payload.items() if k != ACTION_KEY}
        message_id = self._codec.new_message_id()
        self._send(self._codec.encode(to=envelope.sender, message_id=message_id, payload=payload))
        logger.info(f"Echoed message {envelope.message_id} to {envelope.sender} as {message_id}")
        return Outcome.SUCCESS
