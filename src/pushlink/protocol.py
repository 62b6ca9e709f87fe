"""
Ack/nack protocol for upstream messages.

Every inbound payload is classified by its ``message_type``:

- absent: a data message. It is dispatched to the application handlers and
  answered with an ack when handling succeeded, a nack when it failed.
- ``"ack"`` / ``"nack"``: the relay confirming or rejecting one of our
  downstream messages. Reported to the ack/nack hooks, never answered.
- anything else: logged and ignored.

process() never raises for a bad packet. It reports what happened as a
ProcessResult so the receive loop can log it and move on.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional

from pushlink.codec import ACK, NACK, MessageCodec
from pushlink.dispatch import Dispatcher, Outcome
from pushlink.models.message import ParseFailure

logger = logging.getLogger("pushlink.protocol")

ReceiptHook = Callable[[str, str], None]
SendFn = Callable[[str], None]


class MessageKind(str, Enum):
    DATA = "data"
    ACK = "ack"
    NACK = "nack"
    UNKNOWN = "unknown"


class ProcessResult(str, Enum):
    ACKED = "acked"
    NACKED = "nacked"
    ACK_RECEIVED = "ack_received"
    NACK_RECEIVED = "nack_received"
    UNKNOWN_TYPE = "unknown_type"
    PARSE_FAILURE = "parse_failure"
    REPLY_FAILED = "reply_failed"
    HOOK_FAILED = "hook_failed"


def log_ack_receipt(sender: str, message_id: str) -> None:
    logger.info(f"Ack received from: {sender}, messageId: {message_id}")


def log_nack_receipt(sender: str, message_id: str) -> None:
    logger.info(f"Nack received from: {sender}, messageId: {message_id}")


def classify(message: dict[str, Any]) -> MessageKind:
    message_type = message.get("message_type")
    if message_type is None:
        return MessageKind.DATA
    if message_type == ACK:
        return MessageKind.ACK
    if message_type == NACK:
        return MessageKind.NACK
    return MessageKind.UNKNOWN


class AckNackProtocol:
    def __init__(
        self,
        codec: MessageCodec,
        dispatcher: Dispatcher,
        send: SendFn,
        on_ack: Optional[ReceiptHook] = None,
        on_nack: Optional[ReceiptHook] = None,
    ):
        self._codec = codec
        self._dispatcher = dispatcher
        self._send = send
        self.on_ack = on_ack or log_ack_receipt
        self.on_nack = on_nack or log_nack_receipt

    async def process(self, text: str) -> ProcessResult:
        decoded = self._codec.decode(text)
        if isinstance(decoded, ParseFailure):
            logger.error(f"Error parsing JSON {decoded.text!r}: {decoded.reason}")
            return ProcessResult.PARSE_FAILURE

        kind = classify(decoded)
        if kind is MessageKind.DATA:
            return await self._handle_data(decoded)
        if kind is MessageKind.ACK:
            return self._receipt(self.on_ack, decoded, ProcessResult.ACK_RECEIVED)
        if kind is MessageKind.NACK:
            return self._receipt(self.on_nack, decoded, ProcessResult.NACK_RECEIVED)

        logger.warning(f"Unrecognized message type ({decoded.get('message_type')})")
        return ProcessResult.UNKNOWN_TYPE

    async def _handle_data(self, message: dict[str, Any]) -> ProcessResult:
        envelope = self._codec.envelope(message)
        outcome = await self._dispatcher.handle_data(envelope)
        if outcome is Outcome.SUCCESS:
            reply_type, result = ACK, ProcessResult.ACKED
            reply = self._codec.create_ack(envelope.sender, envelope.message_id)
        else:
            reply_type, result = NACK, ProcessResult.NACKED
            reply = self._codec.create_nack(envelope.sender, envelope.message_id)

        try:
            self._send(reply)
        except Exception:
            logger.exception(f"Couldn't send {reply_type} for message {envelope.message_id}")
            return ProcessResult.REPLY_FAILED
        return result

    @staticmethod
    def _receipt(hook: ReceiptHook, message: dict[str, Any], result: ProcessResult) -> ProcessResult:
        sender = str(message.get("from", ""))
        message_id = str(message.get("message_id", ""))
        try:
            hook(sender, message_id)
        except Exception:
            logger.exception(f"Receipt hook failed for message {message_id}")
            return ProcessResult.HOOK_FAILED
        return result
