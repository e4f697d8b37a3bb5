# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Backup message metadata encoding/decoding.

Two layouts share the first 20 bytes and nothing else:

Legacy (empty version tag):
    [8B sequence][8B create_time][4B broker_group_len][broker_group][message_id]
    The message id has no length prefix; it runs to the end of the value.

V2:
    [8B sequence][8B create_time][4B broker_group_len][broker_group]
    [4B message_id_len][message_id][4B partition_id_len][partition_id]

``decode_meta`` is the lenient entry point used when scanning the index:
a bad cell yields ``None`` instead of an exception. ``read_meta`` raises.
"""

from __future__ import annotations

import logging

from .binary import Buffer, ByteReader, decode_utf8, pack_int32, pack_int64, pack_string
from .exceptions import EncodeError, OversizedFieldError
from .models import BackupMessageMeta
from .protocol import MAX_BROKER_GROUP_LENGTH, META_BROKER_GROUP_OFFSET, MetaVersion

logger = logging.getLogger("pyqmqbackup.meta")


def _read_header(reader: ByteReader, max_broker_group_length: int) -> tuple[int, int, str]:
    sequence = reader.read_int64()
    create_time = reader.read_int64()
    broker_group_length = reader.read_int32()
    if broker_group_length > max_broker_group_length:
        raise OversizedFieldError("broker_group", broker_group_length, max_broker_group_length)
    broker_group = decode_utf8(reader.read_raw(broker_group_length), META_BROKER_GROUP_OFFSET)
    return sequence, create_time, broker_group


def _read_legacy(data: Buffer, max_broker_group_length: int) -> BackupMessageMeta:
    reader = ByteReader(data)
    sequence, create_time, broker_group = _read_header(reader, max_broker_group_length)
    message_id_offset = reader.position
    message_id = decode_utf8(reader.read_remaining(), message_id_offset)
    return BackupMessageMeta(
        sequence=sequence,
        broker_group=broker_group,
        create_time=create_time,
        message_id=message_id,
        partition_id=None,
    )


def _read_v2(data: Buffer, max_broker_group_length: int) -> BackupMessageMeta:
    reader = ByteReader(data)
    sequence, create_time, broker_group = _read_header(reader, max_broker_group_length)
    message_id = reader.read_string()
    partition_id = reader.read_string()
    return BackupMessageMeta(
        sequence=sequence,
        broker_group=broker_group,
        create_time=create_time,
        message_id=message_id,
        partition_id=partition_id,
    )


def read_meta(
    version: str | MetaVersion | None,
    data: Buffer,
    *,
    max_broker_group_length: int = MAX_BROKER_GROUP_LENGTH,
) -> BackupMessageMeta:
    """
    Decode a metadata value, raising on any problem.

    Args:
        version: Version tag stored with the row. Empty or None is legacy.
        data: Stored value.
        max_broker_group_length: Sanity bound on the broker group length.

    Raises:
        UnsupportedVersionError: If the version tag is unknown.
        OversizedFieldError: If the broker group length exceeds the bound.
        OutOfBoundsError: If the value is truncated.
        NegativeLengthError: If a length prefix is negative.
        MalformedStringError: If a string field is not UTF-8.
    """
    layout = MetaVersion.parse(version)
    if layout is MetaVersion.V2:
        return _read_v2(data, max_broker_group_length)
    return _read_legacy(data, max_broker_group_length)


def decode_meta(
    version: str | MetaVersion | None,
    data: Buffer | None,
    *,
    max_broker_group_length: int = MAX_BROKER_GROUP_LENGTH,
) -> BackupMessageMeta | None:
    """
    Decode a metadata value, returning None when it cannot be decoded.

    Never raises: empty values, unknown versions, oversized broker groups,
    truncated buffers and values that are not bytes-like all yield None.
    """
    if not data:
        return None
    try:
        return read_meta(version, data, max_broker_group_length=max_broker_group_length)
    except Exception as e:
        logger.debug(f"Skipping undecodable metadata (version={version!r}): {e}")
        return None


def encode_meta(
    meta: BackupMessageMeta,
    version: str | MetaVersion | None = MetaVersion.V2,
    *,
    max_broker_group_length: int = MAX_BROKER_GROUP_LENGTH,
) -> bytes:
    """
    Encode metadata in the layout named by ``version``.

    The legacy layout cannot carry a partition id; it is dropped.
    """
    layout = MetaVersion.parse(version)
    broker_group = meta.broker_group.encode("utf-8")
    if len(broker_group) > max_broker_group_length:
        raise EncodeError(
            f"Broker group of {len(broker_group)} bytes exceeds limit {max_broker_group_length}"
        )

    parts = [
        pack_int64(meta.sequence),
        pack_int64(meta.create_time),
        pack_int32(len(broker_group)),
        broker_group,
    ]
    if layout is MetaVersion.V2:
        parts.append(pack_string(meta.message_id))
        parts.append(pack_string(meta.partition_id or ""))
    else:
        parts.append(meta.message_id.encode("utf-8"))
    return b"".join(parts)
