"""MessageCodec: payload encoding, decoding and message ids."""

import json
import random

import pytest

from pushlink.codec import MessageCodec
from pushlink.models.message import InboundEnvelope, Message, ParseFailure


@pytest.fixture
def codec() -> MessageCodec:
    return MessageCodec(random.Random(42))


class TestAttributeMap:
    def test_only_data_when_everything_absent(self):
        assert MessageCodec.attribute_map(payload={"k": "v"}) == {"data": {"k": "v"}}

    def test_missing_payload_becomes_empty_data(self):
        assert MessageCodec.attribute_map(to="dev") == {"to": "dev", "data": {}}

    def test_all_fields(self):
        attrs = MessageCodec.attribute_map(
            to="dev-1", message_id="m-1", payload={"a": "b"},
            collapse_key="score", time_to_live=3600, delay_while_idle=True,
        )
        assert attrs == {
            "to": "dev-1",
            "message_id": "m-1",
            "data": {"a": "b"},
            "collapse_key": "score",
            "time_to_live": 3600,
            "delay_while_idle": True,
        }

    @pytest.mark.parametrize("flag", [False, None])
    def test_delay_while_idle_only_when_true(self, flag):
        assert "delay_while_idle" not in MessageCodec.attribute_map(payload={}, delay_while_idle=flag)

    def test_zero_ttl_is_kept(self):
        assert MessageCodec.attribute_map(time_to_live=0)["time_to_live"] == 0


class TestEncode:
    def test_absent_fields_are_omitted_not_null(self, codec):
        text = codec.encode(to="dev-1", message_id="m-9", payload={"x": "1"})
        assert json.loads(text) == {"to": "dev-1", "message_id": "m-9", "data": {"x": "1"}}
        assert "null" not in text

    def test_encode_message(self, codec):
        msg = Message(to="dev-1", message_id="m-2", payload={"hello": "world"}, time_to_live=60)
        assert json.loads(codec.encode_message(msg)) == {
            "to": "dev-1", "message_id": "m-2", "time_to_live": 60, "data": {"hello": "world"},
        }

    def test_message_payload_never_none(self):
        assert Message(payload=None).payload == {}

    def test_encode_attributes_is_plain_json(self, codec):
        attrs = {"to": "x", "data": {"k": "v"}, "message_id": "m-3"}
        assert json.loads(codec.encode_attributes(attrs)) == attrs

    @pytest.mark.parametrize("kwargs", [
        {"payload": {"k": "v"}},
        {"to": "dev", "message_id": "m-1", "payload": {}},
        {"to": "dev", "collapse_key": "ck", "time_to_live": 10, "delay_while_idle": True, "payload": {"a": "1"}},
    ])
    def test_decode_inverts_encode(self, codec, kwargs):
        assert codec.decode(codec.encode(**kwargs)) == MessageCodec.attribute_map(**kwargs)


class TestDecode:
    def test_malformed_json_is_a_parse_failure(self, codec):
        result = codec.decode('{"from": "dev", ')
        assert isinstance(result, ParseFailure)
        assert result.text == '{"from": "dev", '
        assert result.reason

    def test_non_object_is_a_parse_failure(self, codec):
        assert isinstance(codec.decode("[1, 2]"), ParseFailure)

    def test_envelope_fields(self, codec):
        env = codec.envelope({
            "from": "dev-1", "category": "com.example.app", "message_id": "u-1",
            "data": {"ACTION": "ECHO", "n": 5},
        })
        assert isinstance(env, InboundEnvelope)
        assert env.sender == "dev-1"
        assert env.category == "com.example.app"
        assert env.message_id == "u-1"
        assert env.payload == {"ACTION": "ECHO", "n": "5"}
        assert env.message_type is None

    @pytest.mark.parametrize("data", [None, "text", [1, 2]])
    def test_envelope_non_object_data_is_empty(self, codec, data):
        env = codec.envelope({"from": "dev", "message_id": "u-2", "data": data})
        assert env.payload == {}

    def test_envelope_is_immutable(self, codec):
        env = codec.envelope({"from": "dev", "message_id": "u-3"})
        with pytest.raises(Exception):
            env.sender = "other"  # type: ignore[misc]


class TestIds:
    def test_format(self, codec):
        message_id = codec.new_message_id()
        assert message_id.startswith("m-")
        value = int(message_id[2:])
        assert -(2 ** 63) <= value < 2 ** 63

    def test_seeded_ids_repeat_and_differ(self):
        a, b = MessageCodec(random.Random(7)), MessageCodec(random.Random(7))
        first = a.new_message_id()
        assert first == b.new_message_id()
        assert a.new_message_id() != first


class TestAckNack:
    def test_ack_has_exactly_three_fields(self):
        assert json.loads(MessageCodec.create_ack("dev-1", "u-1")) == {
            "message_type": "ack", "to": "dev-1", "message_id": "u-1",
        }

    def test_nack_has_exactly_three_fields(self):
        assert json.loads(MessageCodec.create_nack("dev-1", "u-1")) == {
            "message_type": "nack", "to": "dev-1", "message_id": "u-1",
        }


def test_envelope_reads_only_wire_keys(codec):
    env = codec.envelope({"sender": "dev-1", "payload": {"k": "v"}, "message_id": "u-4"})
    assert env.sender == ""
    assert env.payload == {}
