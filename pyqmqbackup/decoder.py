# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Decoder bound to one store layout configuration.

Wraps the envelope, metadata and record codecs so that a store reader
only has to pass the raw cells it scanned.
"""

from __future__ import annotations

from typing import Any

from .binary import Buffer, ByteReader
from .envelope import decode_envelope
from .meta import decode_meta, read_meta
from .models import BackupMessage, BackupMessageMeta, ConsumptionRecord, DecoderConfig
from .protocol import MetaVersion
from .record import decode_record
from .serde import AttributeDecoder, SerdeRegistry


class BackupValueDecoder:
    """
    Decodes backup store values.

    Example:
        >>> decoder = BackupValueDecoder(subject_length=12)
        >>> meta = decoder.get_message_meta("V2", value)
        >>> if meta is not None:
        ...     print(meta.message_id, meta.partition_id)
    """

    def __init__(
        self,
        *,
        config: DecoderConfig | None = None,
        deserializer: AttributeDecoder | None = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the decoder.

        Args:
            config: Optional DecoderConfig object.
            deserializer: Attribute deserializer applied to envelope bodies.
                Defaults to the serde registered under config.attribute_serde.
            **kwargs: Override config options (subject_length, sequence_length, etc.)
        """
        if config is None:
            config = DecoderConfig(**kwargs)
        elif kwargs:
            config = DecoderConfig(**{**config.model_dump(), **kwargs})
        self._config = config
        if deserializer is None:
            _, deserializer = SerdeRegistry.get(config.attribute_serde)
        self._deserializer = deserializer

    @property
    def config(self) -> DecoderConfig:
        return self._config

    def get_message(self, value: Buffer | ByteReader) -> BackupMessage:
        """Decode a full backup message. Raises DecodeError on corrupt input."""
        return decode_envelope(value, self._deserializer)

    def get_message_meta(
        self,
        version: str | MetaVersion | None,
        value: Buffer | None,
    ) -> BackupMessageMeta | None:
        """Decode message metadata, or None if the value cannot be decoded."""
        return decode_meta(
            version,
            value,
            max_broker_group_length=self._config.max_broker_group_length,
        )

    def read_message_meta(self, version: str | MetaVersion | None, value: Buffer) -> BackupMessageMeta:
        """Strict variant of get_message_meta that raises on bad input."""
        return read_meta(
            version,
            value,
            max_broker_group_length=self._config.max_broker_group_length,
        )

    def get_record(self, row_key: Buffer, value: Buffer, record_type: int) -> ConsumptionRecord:
        """Decode a consumption record. Raises DecodeError on corrupt input."""
        return decode_record(
            row_key,
            value,
            record_type,
            subject_length=self._config.subject_length,
            sequence_length=self._config.sequence_length,
        )
