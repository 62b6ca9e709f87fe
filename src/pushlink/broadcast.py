"""
Broadcast — one payload, many recipients, one message per recipient.

Each recipient gets its own message id and therefore its own ack/nack,
instead of a single message listing every registration id. Sends are
independent: a failure for one recipient is logged and the rest are still
attempted.
"""

import logging
from typing import Callable, Optional, Sequence

from pydantic import BaseModel

from pushlink.codec import MessageCodec

logger = logging.getLogger("pushlink.broadcast")


class BroadcastDelivery(BaseModel):
    to: str
    message_id: str
    sent: bool = True
    error: Optional[str] = None


class BroadcastSender:
    def __init__(self, codec: MessageCodec, send: Callable[[str], None]):
        self._codec = codec
        self._send = send

    def send_broadcast(
        self,
        payload: dict[str, str],
        collapse_key: Optional[str],
        time_to_live: Optional[int],
        delay_while_idle: Optional[bool],
        recipients: Sequence[str],
    ) -> list[BroadcastDelivery]:
        base = self._codec.attribute_map(
            payload=payload,
            collapse_key=collapse_key,
            time_to_live=time_to_live,
            delay_while_idle=delay_while_idle,
        )
        deliveries = []
        for to in recipients:
            message_id = self._codec.new_message_id()
            attributes = {**base, "to": to, "message_id": message_id}
            try:
                self._send(self._codec.encode_attributes(attributes))
            except Exception as e:
                logger.error(f"Broadcast send to {to} failed (message {message_id}): {e}")
                deliveries.append(BroadcastDelivery(to=to, message_id=message_id, sent=False, error=str(e)))
                continue
            deliveries.append(BroadcastDelivery(to=to, message_id=message_id))
        return deliveries
