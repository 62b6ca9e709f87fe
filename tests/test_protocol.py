"""AckNackProtocol: classification and the reply each kind of payload gets."""

import json
import logging

import pytest

from pushlink.codec import MessageCodec
from pushlink.dispatch import Dispatcher, HandlerTable, Outcome
from pushlink.protocol import AckNackProtocol, MessageKind, ProcessResult, classify

DATA = {"from": "dev-1", "category": "com.example", "message_id": "u-1", "data": {"ACTION": "PING"}}


def make_protocol(handlers=None, send=None, **hooks):
    sent: list[dict] = []
    proto = AckNackProtocol(
        MessageCodec(),
        Dispatcher(handlers if handlers is not None else HandlerTable()),
        send or (lambda text: sent.append(json.loads(text))),
        **hooks,
    )
    return proto, sent


@pytest.mark.parametrize("message,kind", [
    ({}, MessageKind.DATA),
    ({"message_type": None}, MessageKind.DATA),
    ({"message_type": "ack"}, MessageKind.ACK),
    ({"message_type": "nack"}, MessageKind.NACK),
    ({"message_type": "receipt"}, MessageKind.UNKNOWN),
    ({"message_type": "control"}, MessageKind.UNKNOWN),
])
def test_classify(message, kind):
    assert classify(message) is kind


@pytest.mark.asyncio
async def test_successful_handler_sends_one_ack():
    calls = []
    proto, sent = make_protocol(HandlerTable({"PING": calls.append}))

    result = await proto.process(json.dumps(DATA))

    assert result is ProcessResult.ACKED
    assert len(calls) == 1
    assert sent == [{"message_type": "ack", "to": "dev-1", "message_id": "u-1"}]


@pytest.mark.asyncio
async def test_data_without_action_is_acked():
    proto, sent = make_protocol()
    result = await proto.process(json.dumps({**DATA, "data": {}}))
    assert result is ProcessResult.ACKED
    assert [s["message_type"] for s in sent] == ["ack"]


@pytest.mark.asyncio
async def test_raising_handler_sends_one_nack():
    def boom(envelope):
        raise RuntimeError("database down")

    proto, sent = make_protocol(HandlerTable({"PING": boom}))

    result = await proto.process(json.dumps(DATA))

    assert result is ProcessResult.NACKED
    assert sent == [{"message_type": "nack", "to": "dev-1", "message_id": "u-1"}]


@pytest.mark.asyncio
async def test_failure_outcome_sends_nack():
    proto, sent = make_protocol(HandlerTable({"PING": lambda env: Outcome.FAILURE}))
    assert await proto.process(json.dumps(DATA)) is ProcessResult.NACKED
    assert [s["message_type"] for s in sent] == ["nack"]


@pytest.mark.asyncio
async def test_async_handler():
    seen = []

    async def handler(envelope):
        seen.append(envelope.message_id)
        return Outcome.SUCCESS

    proto, sent = make_protocol(HandlerTable({"PING": handler}))
    assert await proto.process(json.dumps(DATA)) is ProcessResult.ACKED
    assert seen == ["u-1"]


@pytest.mark.asyncio
async def test_malformed_json_sends_nothing_and_calls_no_handler(caplog):
    calls = []
    proto, sent = make_protocol(HandlerTable({"PING": calls.append}))

    with caplog.at_level(logging.ERROR, logger="pushlink.protocol"):
        result = await proto.process('{"from": "dev-1", "data": ')

    assert result is ProcessResult.PARSE_FAILURE
    assert sent == []
    assert calls == []
    assert "Error parsing JSON" in caplog.text


@pytest.mark.asyncio
async def test_ack_goes_to_hook_without_reply():
    acks = []
    proto, sent = make_protocol(on_ack=lambda sender, mid: acks.append((sender, mid)))

    result = await proto.process(json.dumps({"message_type": "ack", "from": "dev-1", "message_id": "m-5"}))

    assert result is ProcessResult.ACK_RECEIVED
    assert acks == [("dev-1", "m-5")]
    assert sent == []


@pytest.mark.asyncio
async def test_nack_goes_to_hook_without_reply():
    nacks = []
    proto, sent = make_protocol(on_nack=lambda sender, mid: nacks.append((sender, mid)))

    result = await proto.process(json.dumps({"message_type": "nack", "from": "dev-2", "message_id": "m-6"}))

    assert result is ProcessResult.NACK_RECEIVED
    assert nacks == [("dev-2", "m-6")]
    assert sent == []


@pytest.mark.asyncio
async def test_default_receipt_hooks_log(caplog):
    proto, sent = make_protocol()
    with caplog.at_level(logging.INFO, logger="pushlink.protocol"):
        await proto.process(json.dumps({"message_type": "ack", "from": "dev-1", "message_id": "m-7"}))
    assert "m-7" in caplog.text
    assert sent == []


@pytest.mark.asyncio
async def test_unknown_type_logs_warning(caplog):
    proto, sent = make_protocol()
    with caplog.at_level(logging.WARNING, logger="pushlink.protocol"):
        result = await proto.process(json.dumps({"message_type": "control", "from": "relay"}))
    assert result is ProcessResult.UNKNOWN_TYPE
    assert "Unrecognized message type (control)" in caplog.text
    assert sent == []


@pytest.mark.asyncio
async def test_reply_send_failure_does_not_propagate():
    def refuse(text):
        raise OSError("socket closed")

    proto, _ = make_protocol(send=refuse)
    assert await proto.process(json.dumps(DATA)) is ProcessResult.REPLY_FAILED


@pytest.mark.asyncio
async def test_hook_failure_does_not_propagate():
    def bad_hook(sender, message_id):
        raise ValueError("nope")

    proto, _ = make_protocol(on_ack=bad_hook)
    result = await proto.process(json.dumps({"message_type": "ack", "from": "d", "message_id": "m"}))
    assert result is ProcessResult.HOOK_FAILED
