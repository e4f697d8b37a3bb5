# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Pydantic models for decoded QMQ backup values.

Every decoded value is a frozen model, built once by its decoder.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .protocol import (
    CREATE_TIME_ATTR,
    MAX_BROKER_GROUP_LENGTH,
    MESSAGE_SUBJECT_LENGTH,
    RECORD_SEQUENCE_LENGTH,
    MessageFlag,
)
from .serde import SerdeRegistry


# ============================================================================
# Configuration Models
# ============================================================================


class DecoderConfig(BaseModel):
    """Layout parameters shared by the decoders."""

    model_config = ConfigDict(validate_assignment=True)

    subject_length: int = Field(
        default=MESSAGE_SUBJECT_LENGTH,
        ge=0,
        description="Characters of the subject segment that opens a record row key",
    )
    sequence_length: int = Field(
        default=RECORD_SEQUENCE_LENGTH,
        ge=1,
        le=20,
        description="Decimal digits of the sequence segment after the subject",
    )
    max_broker_group_length: int = Field(default=MAX_BROKER_GROUP_LENGTH, ge=0)
    attribute_serde: str = Field(
        default="map",
        description="Registered serde used for envelope attribute bodies",
    )

    @field_validator("attribute_serde")
    @classmethod
    def validate_attribute_serde(cls, v: str) -> str:
        if SerdeRegistry.get(v)[1] is None:
            raise ValueError(f"Unknown attribute serde: {v!r}")
        return v


# ============================================================================
# Decoded Values
# ============================================================================


class BackupMessage(BaseModel):
    """A full backup message envelope."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    flag: int = 0
    create_time: int
    subject: str
    message_id: str
    tags: frozenset[str] = Field(default_factory=frozenset)
    attrs: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_tags(self) -> bool:
        return bool(self.flag & MessageFlag.TAGS)

    @property
    def is_delay(self) -> bool:
        """True when the skipped timestamp was a schedule time."""
        return bool(self.flag & MessageFlag.DELAY)

    @property
    def is_reliable(self) -> bool:
        return not self.flag & MessageFlag.UNRELIABLE

    @property
    def create_datetime(self) -> datetime:
        """Get create time as datetime object."""
        return datetime.fromtimestamp(self.create_time / 1000.0)

    def get_attr(self, key: str, default: Any = None) -> Any:
        return self.attrs.get(key, default)

    def user_attrs(self) -> dict[str, Any]:
        """Attributes as written by the producer, without derived keys."""
        return {k: v for k, v in self.attrs.items() if k != CREATE_TIME_ATTR}


class BackupMessageMeta(BaseModel):
    """Identity of a backed-up message, without its body."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    broker_group: str
    create_time: int
    message_id: str
    partition_id: str | None = None


class ConsumptionRecord(BaseModel):
    """A consume action (pull, ack, ...) recorded against a message."""

    model_config = ConfigDict(frozen=True)

    consumer_group: str
    action: int = Field(ge=-128, le=127)
    record_type: int = Field(ge=-128, le=127)
    timestamp: int
    consumer_id: str
    sequence: int
