# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
PyQMQBackup - Codec for QMQ backup store values.

Decodes the three kinds of value the backup service writes to its
key-value store:
- Full message envelopes (subject, id, tags, attributes)
- Message metadata, in the legacy and V2 layouts
- Consumption records (pull/ack actions) keyed by composite row keys

Quick Start:
    >>> from pyqmqbackup import BackupValueDecoder
    >>>
    >>> decoder = BackupValueDecoder()
    >>> message = decoder.get_message(cell_value)
    >>> print(message.subject, message.message_id, message.tags)

Metadata never raises; a bad cell is simply skipped:
    >>> meta = decoder.get_message_meta(version_tag, cell_value)
    >>> if meta is None:
    ...     print("undecodable metadata")

Records and envelopes fail fast:
    >>> from pyqmqbackup import DecodeError
    >>> try:
    ...     record = decoder.get_record(row_key, cell_value, record_type=0)
    ... except DecodeError as e:
    ...     print(f"corrupt record: {e}")

Custom attribute bodies:
    >>> from pyqmqbackup.serde import JsonDeserializer
    >>> decoder = BackupValueDecoder(deserializer=JsonDeserializer())
"""

from .binary import ByteReader
from .decoder import BackupValueDecoder
from .envelope import decode_envelope, encode_envelope
from .exceptions import (
    AttributeDecodeError,
    DecodeError,
    EncodeError,
    MalformedIntegerError,
    MalformedStringError,
    NegativeLengthError,
    OutOfBoundsError,
    OversizedFieldError,
    QMQBackupError,
    UnsupportedVersionError,
)
from .meta import decode_meta, encode_meta, read_meta
from .models import BackupMessage, BackupMessageMeta, ConsumptionRecord, DecoderConfig
from .protocol import (
    CREATE_TIME_ATTR,
    MAX_BROKER_GROUP_LENGTH,
    MESSAGE_SUBJECT_LENGTH,
    RECORD_SEQUENCE_LENGTH,
    MessageFlag,
    MetaVersion,
)
from .record import decode_record, encode_record_row_key, encode_record_value, parse_row_key
from .serde import AttributeDeserializer, AttributeSerializer, MapDeserializer, MapSerializer

__version__ = "1.0.0"

__all__ = [
    # Decoder
    "BackupValueDecoder",
    "DecoderConfig",
    # Codecs
    "ByteReader",
    "decode_envelope",
    "encode_envelope",
    "decode_meta",
    "read_meta",
    "encode_meta",
    "decode_record",
    "parse_row_key",
    "encode_record_row_key",
    "encode_record_value",
    # Models
    "BackupMessage",
    "BackupMessageMeta",
    "ConsumptionRecord",
    # Protocol
    "CREATE_TIME_ATTR",
    "MAX_BROKER_GROUP_LENGTH",
    "MESSAGE_SUBJECT_LENGTH",
    "RECORD_SEQUENCE_LENGTH",
    "MessageFlag",
    "MetaVersion",
    # Serde
    "AttributeSerializer",
    "AttributeDeserializer",
    "MapSerializer",
    "MapDeserializer",
    # Exceptions
    "QMQBackupError",
    "DecodeError",
    "OutOfBoundsError",
    "NegativeLengthError",
    "MalformedIntegerError",
    "MalformedStringError",
    "AttributeDecodeError",
    "OversizedFieldError",
    "UnsupportedVersionError",
    "EncodeError",
]
