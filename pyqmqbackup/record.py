# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Consumption record encoding/decoding.

A record is split across the row key and the ``records`` column value.

Row key (UTF-8 text):
    [subject key (12 chars)][sequence (20 zero-padded digits)]...[action digit]

Value:
    [8B timestamp][2B consumer_id_len][consumer_id][2B consumer_group_len][consumer_group]

The record type is not stored; the caller knows which table it scanned.
"""

from __future__ import annotations

import re

from .binary import Buffer, ByteReader, decode_utf8, pack_int64, pack_short_string
from .exceptions import EncodeError, MalformedIntegerError, OutOfBoundsError
from .models import ConsumptionRecord
from .protocol import MESSAGE_SUBJECT_LENGTH, RECORD_SEQUENCE_LENGTH

# ASCII digits only; any other Unicode digit is rejected
_DECIMAL = re.compile(r"[+-]?[0-9]+", re.ASCII)


def parse_decimal(text: str, field: str | None = None, bits: int = 64) -> int:
    """Parse a signed ASCII decimal integer of at most ``bits`` bits."""
    if not _DECIMAL.fullmatch(text):
        raise MalformedIntegerError(text, field)
    value = int(text)
    if not -(1 << (bits - 1)) <= value < (1 << (bits - 1)):
        raise MalformedIntegerError(text, field)
    return value


def parse_row_key(
    row_key: Buffer,
    *,
    subject_length: int = MESSAGE_SUBJECT_LENGTH,
    sequence_length: int = RECORD_SEQUENCE_LENGTH,
) -> tuple[int, int]:
    """
    Extract ``(sequence, action)`` from a record row key.

    Raises:
        MalformedStringError: If the key is not UTF-8.
        OutOfBoundsError: If the key is too short for the sequence segment.
        MalformedIntegerError: If a segment is not a decimal integer.
    """
    row = decode_utf8(row_key, 0)
    end = subject_length + sequence_length
    if len(row) < end:
        raise OutOfBoundsError(subject_length, sequence_length, max(len(row) - subject_length, 0))
    sequence = parse_decimal(row[subject_length:end], "sequence")
    action = parse_decimal(row[-1], "action", bits=8)
    return sequence, action


def decode_record(
    row_key: Buffer,
    value: Buffer,
    record_type: int,
    *,
    subject_length: int = MESSAGE_SUBJECT_LENGTH,
    sequence_length: int = RECORD_SEQUENCE_LENGTH,
) -> ConsumptionRecord:
    """
    Decode a consumption record from its row key and column value.

    Args:
        row_key: Row key bytes.
        value: ``records`` column value.
        record_type: Type code of the table the row came from.

    Raises:
        DecodeError: If either the key or the value is malformed.
    """
    sequence, action = parse_row_key(
        row_key,
        subject_length=subject_length,
        sequence_length=sequence_length,
    )

    reader = ByteReader(value)
    timestamp = reader.read_int64()
    consumer_id = reader.read_short_string()
    consumer_group = reader.read_short_string()

    return ConsumptionRecord(
        consumer_group=consumer_group,
        action=action,
        record_type=record_type,
        timestamp=timestamp,
        consumer_id=consumer_id,
        sequence=sequence,
    )


def encode_record_row_key(
    subject_key: str,
    sequence: int,
    action: int,
    middle: str = "",
    *,
    subject_length: int = MESSAGE_SUBJECT_LENGTH,
    sequence_length: int = RECORD_SEQUENCE_LENGTH,
) -> bytes:
    """
    Build a record row key.

    ``subject_key`` must already be exactly ``subject_length`` characters.
    ``middle`` is whatever the writer places between the sequence and the
    action digit (consumer group key, timestamps, ...).
    """
    if len(subject_key) != subject_length:
        raise EncodeError(f"Subject key must be {subject_length} characters, got {len(subject_key)}")
    if sequence < 0 or len(str(sequence)) > sequence_length:
        raise EncodeError(f"Sequence {sequence} does not fit {sequence_length} digits")
    if not 0 <= action <= 9:
        raise EncodeError(f"Action must be a single digit, got {action}")
    return f"{subject_key}{sequence:0{sequence_length}d}{middle}{action}".encode("utf-8")


def encode_record_value(record: ConsumptionRecord) -> bytes:
    """Encode the ``records`` column value of a consumption record."""
    return b"".join([
        pack_int64(record.timestamp),
        pack_short_string(record.consumer_id),
        pack_short_string(record.consumer_group),
    ])
