# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""Tests for the backup message envelope codec."""

import struct

import pytest
from pydantic import ValidationError

from pyqmqbackup.binary import ByteReader, pack_bytes, pack_string
from pyqmqbackup.envelope import decode_envelope, encode_envelope
from pyqmqbackup.exceptions import (
    AttributeDecodeError,
    DecodeError,
    NegativeLengthError,
    OutOfBoundsError,
)
from pyqmqbackup.models import BackupMessage
from pyqmqbackup.protocol import CREATE_TIME_ATTR, MessageFlag
from pyqmqbackup.serde import JsonDeserializer, JsonSerializer, MapSerializer


def build_envelope(
    *,
    sequence: int = 42,
    flag: int = 0,
    create_time: int = 1_560_000_000_000,
    expire_time: int = 0,
    subject: str = "order.changed",
    message_id: str = "190603.154239.100.80.136.24.3256.0",
    tags: list[str] | None = None,
    body: bytes = b"",
) -> bytes:
    parts = [
        struct.pack(">qBqq", sequence, flag, create_time, expire_time),
        pack_string(subject),
        pack_string(message_id),
    ]
    if flag & MessageFlag.TAGS:
        tags = tags or []
        parts.append(struct.pack(">b", len(tags)))
        parts.extend(pack_string(t) for t in tags)
    parts.append(pack_bytes(body))
    return b"".join(parts)


class TestDecodeEnvelope:
    """Tests for decode_envelope."""

    def test_decode_fields(self) -> None:
        """Test every header field is reproduced."""
        body = MapSerializer().serialize({"orderId": "1001"})
        message = decode_envelope(build_envelope(body=body))

        assert message.sequence == 42
        assert message.flag == 0
        assert message.create_time == 1_560_000_000_000
        assert message.subject == "order.changed"
        assert message.message_id == "190603.154239.100.80.136.24.3256.0"
        assert message.tags == frozenset()
        assert message.attrs["orderId"] == "1001"

    def test_create_time_injected(self) -> None:
        """Test qmq_createTime always equals the header create time."""
        message = decode_envelope(build_envelope(create_time=1234))
        assert message.attrs == {CREATE_TIME_ATTR: 1234}

    def test_create_time_overrides_body(self) -> None:
        """Test the header create time wins over a stored attribute."""
        body = MapSerializer().serialize({CREATE_TIME_ATTR: "1"})
        message = decode_envelope(build_envelope(create_time=99, body=body))
        assert message.attrs[CREATE_TIME_ATTR] == 99

    def test_tags_read_when_flagged(self) -> None:
        """Test tags are read only when the TAGS bit is set."""
        data = build_envelope(flag=MessageFlag.TAGS, tags=["a", "b", "a"])
        message = decode_envelope(data)

        assert message.tags == frozenset({"a", "b"})
        assert message.has_tags

    def test_tags_skipped_without_flag(self) -> None:
        """Test a flag without the TAGS bit reads no tag section."""
        flag = MessageFlag.DELAY | MessageFlag.UNRELIABLE
        message = decode_envelope(build_envelope(flag=flag))

        assert message.tags == frozenset()
        assert message.is_delay
        assert not message.is_reliable

    def test_expire_time_skipped(self) -> None:
        """Test the reserved timestamp does not affect decoding."""
        a = decode_envelope(build_envelope(expire_time=0))
        b = decode_envelope(build_envelope(expire_time=987654321))
        assert a == b

    def test_trailing_bytes_ignored(self) -> None:
        """Test bytes after the body are not validated."""
        message = decode_envelope(build_envelope() + b"\xde\xad\xbe\xef")
        assert message.sequence == 42

    def test_decode_from_reader(self) -> None:
        """Test decoding continues from an existing reader position."""
        data = b"\x00\x00" + build_envelope()
        reader = ByteReader(data, offset=2)
        message = decode_envelope(reader)

        assert message.sequence == 42
        assert reader.remaining == 0

    def test_truncated_buffer(self) -> None:
        """Test a truncated envelope fails fast."""
        data = build_envelope()
        with pytest.raises(OutOfBoundsError):
            decode_envelope(data[:-1])

    def test_truncated_header(self) -> None:
        """Test a buffer shorter than the fixed header fails fast."""
        with pytest.raises(OutOfBoundsError):
            decode_envelope(b"\x00" * 20)

    def test_negative_tag_count(self) -> None:
        """Test a negative tag count is corrupt input."""
        data = b"".join([
            struct.pack(">qBqq", 1, MessageFlag.TAGS, 0, 0),
            pack_string("s"),
            pack_string("m"),
            struct.pack(">b", -1),
        ])
        with pytest.raises(NegativeLengthError):
            decode_envelope(data)

    def test_attribute_failure_wrapped(self) -> None:
        """Test deserializer errors surface as AttributeDecodeError."""
        def broken(_: bytes) -> dict:
            raise RuntimeError("boom")

        with pytest.raises(AttributeDecodeError) as exc_info:
            decode_envelope(build_envelope(body=b"x"), broken)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_non_string_attribute_keys_wrapped(self) -> None:
        """Test a deserializer returning non-string keys is a decode error."""
        with pytest.raises(AttributeDecodeError) as exc_info:
            decode_envelope(build_envelope(body=b"x"), lambda _: {1: "x"})
        assert isinstance(exc_info.value, DecodeError)
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_non_mapping_attributes_wrapped(self) -> None:
        """Test a deserializer returning a non-mapping is a decode error."""
        with pytest.raises(AttributeDecodeError):
            decode_envelope(build_envelope(body=b"x"), lambda _: 42)

    def test_malformed_map_body_wrapped(self) -> None:
        """Test a corrupt default map body surfaces as AttributeDecodeError."""
        with pytest.raises(AttributeDecodeError):
            decode_envelope(build_envelope(body=b"\x00\x05ab"))

    def test_pluggable_deserializer(self) -> None:
        """Test a JSON attribute body."""
        body = JsonSerializer().serialize({"k": 1})
        message = decode_envelope(build_envelope(body=body), JsonDeserializer())
        assert message.attrs["k"] == 1


class TestEncodeEnvelope:
    """Tests for encode_envelope."""

    def test_matches_hand_built_layout(self) -> None:
        """Test the encoder writes the documented layout."""
        body = MapSerializer().serialize({"orderId": "1001"})
        expected = build_envelope(flag=MessageFlag.TAGS, tags=["x", "y"], body=body)
        message = decode_envelope(expected)

        assert encode_envelope(message) == expected

    def test_roundtrip_is_byte_identical(self) -> None:
        """Test encode -> decode -> encode reproduces the same bytes."""
        message = BackupMessage(
            sequence=7,
            flag=MessageFlag.DELAY,
            create_time=1000,
            subject="pay.done",
            message_id="m-1",
            tags=frozenset({"vip", "cn", "refund"}),
            attrs={"amount": "12.5", "currency": "CNY"},
        )
        first = encode_envelope(message)
        second = encode_envelope(decode_envelope(first))
        assert first == second

    def test_tags_set_flag(self) -> None:
        """Test tags force the TAGS bit on."""
        message = BackupMessage(
            sequence=1, create_time=0, subject="s", message_id="m", tags=frozenset({"t"})
        )
        decoded = decode_envelope(encode_envelope(message))
        assert decoded.flag & MessageFlag.TAGS
        assert decoded.tags == frozenset({"t"})

    def test_create_time_not_serialized(self) -> None:
        """Test the derived attribute is left out of the body."""
        message = decode_envelope(build_envelope(create_time=55))
        assert encode_envelope(message) == build_envelope(create_time=55)


class TestBackupMessage:
    """Tests for BackupMessage helpers."""

    def test_user_attrs(self) -> None:
        """Test derived attributes are separated from producer attributes."""
        body = MapSerializer().serialize({"k": "v"})
        message = decode_envelope(build_envelope(create_time=1000, body=body))

        assert message.user_attrs() == {"k": "v"}
        assert message.get_attr(CREATE_TIME_ATTR) == 1000
        assert message.get_attr("missing", "d") == "d"
        assert message.create_datetime.timestamp() == 1.0

    def test_immutable(self) -> None:
        """Test decoded messages are frozen."""
        message = decode_envelope(build_envelope())
        with pytest.raises(ValidationError):
            message.sequence = 1
