"""
JSON payload encoding and decoding for relay messages.

Outbound data messages::

    {"to": ..., "collapse_key": ..., "time_to_live": ..., "delay_while_idle": true,
     "message_id": ..., "data": {...}}

Every key except ``data`` is omitted when absent; ``delay_while_idle`` only
appears when true. Acks and nacks carry exactly ``message_type``, ``to`` and
``message_id``.
"""

import json
import random
from typing import Any, Optional, Union

from pushlink.models.message import InboundEnvelope, Message, ParseFailure

ACK = "ack"
NACK = "nack"


class MessageCodec:
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def new_message_id(self) -> str:
        """Return a random message id such as ``m-4611686018427387904``.

        Pseudo random, for low volume use. Collisions are possible; this is
        not a unique or cryptographic identifier.
        """
        return "m-" + str(self._rng.getrandbits(64) - (1 << 63))

    @staticmethod
    def attribute_map(
        to: Optional[str] = None,
        message_id: Optional[str] = None,
        payload: Optional[dict[str, str]] = None,
        collapse_key: Optional[str] = None,
        time_to_live: Optional[int] = None,
        delay_while_idle: Optional[bool] = None,
    ) -> dict[str, Any]:
        message: dict[str, Any] = {}
        if to is not None:
            message["to"] = to
        if collapse_key is not None:
            message["collapse_key"] = collapse_key
        if time_to_live is not None:
            message["time_to_live"] = time_to_live
        if delay_while_idle:
            message["delay_while_idle"] = True
        if message_id is not None:
            message["message_id"] = message_id
        message["data"] = dict(payload) if payload is not None else {}
        return message

    def encode(
        self,
        to: Optional[str] = None,
        message_id: Optional[str] = None,
        payload: Optional[dict[str, str]] = None,
        collapse_key: Optional[str] = None,
        time_to_live: Optional[int] = None,
        delay_while_idle: Optional[bool] = None,
    ) -> str:
        return self.encode_attributes(self.attribute_map(
            to, message_id, payload, collapse_key, time_to_live, delay_while_idle,
        ))

    def encode_message(self, message: Message) -> str:
        return self.encode(
            to=message.to,
            message_id=message.message_id,
            payload=message.payload,
            collapse_key=message.collapse_key,
            time_to_live=message.time_to_live,
            delay_while_idle=message.delay_while_idle,
        )

    @staticmethod
    def encode_attributes(attributes: dict[str, Any]) -> str:
        return json.dumps(attributes, separators=(",", ":"))

    @staticmethod
    def decode(text: str) -> Union[dict[str, Any], ParseFailure]:
        """Parse an inbound JSON payload. Returns a ParseFailure instead of raising."""
        try:
            value = json.loads(text)
        except (TypeError, ValueError) as e:
            return ParseFailure(text=str(text), reason=str(e))
        if not isinstance(value, dict):
            return ParseFailure(text=text, reason=f"expected a JSON object, got {type(value).__name__}")
        return value

    @staticmethod
    def envelope(mapping: dict[str, Any]) -> InboundEnvelope:
        return InboundEnvelope.model_validate(mapping)

    @staticmethod
    def create_ack(to: str, message_id: str) -> str:
        return json.dumps({"message_type": ACK, "to": to, "message_id": message_id}, separators=(",", ":"))

    @staticmethod
    def create_nack(to: str, message_id: str) -> str:
        return json.dumps({"message_type": NACK, "to": to, "message_id": message_id}, separators=(",", ":"))
