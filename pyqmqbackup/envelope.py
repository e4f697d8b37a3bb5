# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Full backup message envelope encoding/decoding.

Format:
    [8B sequence][1B flag][8B create_time][8B expire_or_schedule_time]
    [4B subject_len][subject][4B message_id_len][message_id]
    ([1B tag_count]{[4B tag_len][tag]} when flag & TAGS)
    [4B body_len][body]

The body holds the message attributes in whatever format the attribute
serde understands. Bytes after the body are ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .binary import (
    Buffer,
    ByteReader,
    pack_bytes,
    pack_int8,
    pack_int64,
    pack_string,
    pack_uint8,
)
from .exceptions import AttributeDecodeError, EncodeError, NegativeLengthError
from .models import BackupMessage
from .protocol import CREATE_TIME_ATTR, MessageFlag
from .serde import DEFAULT_DESERIALIZER, DEFAULT_SERIALIZER, AttributeDecoder, AttributeEncoder

logger = logging.getLogger("pyqmqbackup.envelope")


def read_tags(flag: int, reader: ByteReader) -> frozenset[str]:
    """Read the optional tag section selected by ``flag``."""
    if not flag & MessageFlag.TAGS:
        return frozenset()
    start = reader.position
    count = reader.read_int8()
    if count < 0:
        raise NegativeLengthError(start, count)
    return frozenset(reader.read_string() for _ in range(count))


def _decode_attrs(body: bytes, create_time: int, deserializer: AttributeDecoder) -> dict[str, Any]:
    try:
        attrs = dict(deserializer(body))
        for key in attrs:
            if not isinstance(key, str):
                raise TypeError(f"Attribute keys must be strings, got {type(key).__name__}")
    except Exception as e:
        logger.debug(f"Attribute body of {len(body)} bytes rejected: {e}")
        raise AttributeDecodeError(f"Failed to deserialize message attributes: {e}") from e
    attrs[CREATE_TIME_ATTR] = create_time
    return attrs


def decode_envelope(
    data: Buffer | ByteReader,
    deserializer: AttributeDecoder = DEFAULT_DESERIALIZER,
) -> BackupMessage:
    """
    Decode a full backup message.

    Args:
        data: Stored value, or a reader positioned at the envelope start.
        deserializer: Turns the body bytes into an attribute map.

    Returns:
        The decoded message. Its attributes always carry ``qmq_createTime``.

    Raises:
        OutOfBoundsError: If the value is truncated.
        NegativeLengthError: If a length prefix is negative.
        MalformedStringError: If a string field is not UTF-8.
        AttributeDecodeError: If the deserializer rejects the body.
    """
    reader = data if isinstance(data, ByteReader) else ByteReader(data)

    sequence = reader.read_int64()
    flag = reader.read_uint8()
    create_time = reader.read_int64()
    # expire time or schedule time
    reader.skip(8)
    subject = reader.read_string()
    message_id = reader.read_string()
    tags = read_tags(flag, reader)
    body = reader.read_bytes()

    attrs = _decode_attrs(body, create_time, deserializer)
    return BackupMessage(
        sequence=sequence,
        flag=flag,
        create_time=create_time,
        subject=subject,
        message_id=message_id,
        tags=tags,
        attrs=attrs,
    )


def encode_envelope(
    message: BackupMessage,
    *,
    expire_time: int = 0,
    serializer: AttributeEncoder = DEFAULT_SERIALIZER,
) -> bytes:
    """
    Encode a backup message in the envelope layout.

    Tags are written in sorted order. ``qmq_createTime`` is left out of
    the body since the header already carries it.
    """
    flag = message.flag
    if message.tags:
        flag |= MessageFlag.TAGS

    parts = [
        pack_int64(message.sequence),
        pack_uint8(flag),
        pack_int64(message.create_time),
        pack_int64(expire_time),
        pack_string(message.subject),
        pack_string(message.message_id),
    ]
    if flag & MessageFlag.TAGS:
        if len(message.tags) > 127:
            raise EncodeError(f"Too many tags: {len(message.tags)} (max 127)")
        parts.append(pack_int8(len(message.tags)))
        parts.extend(pack_string(tag) for tag in sorted(message.tags))
    parts.append(pack_bytes(serializer(_body_attrs(message.attrs))))
    return b"".join(parts)


def _body_attrs(attrs: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in attrs.items() if k != CREATE_TIME_ATTR}
