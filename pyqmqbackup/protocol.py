# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
QMQ Backup Storage Layouts.

Envelope (full backup message):
    +-----------+------+-------------+--------------------------+
    | Seq (8B)  | Flag | Create (8B) | Expire/Schedule (8B)     |
    +-----------+------+-------------+--------------------------+
    | Subject [4B len][UTF-8] | Message ID [4B len][UTF-8]       |
    +---------------------------------------------------------+
    | Tags (only if Flag & TAGS): [1B count]{[4B len][UTF-8]}   |
    +---------------------------------------------------------+
    | Body [4B len][attribute map bytes]                        |
    +---------------------------------------------------------+

Metadata, legacy (empty version tag):
    [8B seq][8B create][4B broker group len][broker group][message id ...EOF]

Metadata, V2:
    [8B seq][8B create][4B broker group len][broker group]
    [4B len][message id][4B len][partition id]

Record row key (UTF-8 text):
    [subject key (12 chars)][sequence (20 decimal digits)]...[action digit]

Record value:
    [8B timestamp][2B len][consumer id][2B len][consumer group]
"""

from __future__ import annotations

from enum import Enum, IntFlag

from .exceptions import UnsupportedVersionError

# Row key segment widths
MESSAGE_SUBJECT_LENGTH: int = 12
RECORD_SEQUENCE_LENGTH: int = 20

# Sanity bound on the stored broker group name
MAX_BROKER_GROUP_LENGTH: int = 200

# Metadata broker group starts after seq, create time and its length
META_BROKER_GROUP_OFFSET: int = 20

# Attribute injected into every decoded envelope
CREATE_TIME_ATTR: str = "qmq_createTime"


class MessageFlag(IntFlag):
    """Bits of the envelope flag byte."""

    UNRELIABLE = 0x01
    DELAY = 0x02
    TAGS = 0x04


class MetaVersion(str, Enum):
    """Stored metadata layouts."""

    LEGACY = ""
    V2 = "V2"

    @classmethod
    def parse(cls, token: str | MetaVersion | None) -> MetaVersion:
        """
        Resolve a version token read from the store.

        ``None`` and the empty string select the legacy layout.

        Raises:
            UnsupportedVersionError: If the token names no known layout.
        """
        if isinstance(token, cls):
            return token
        if not token:
            return cls.LEGACY
        try:
            return cls(token)
        except ValueError:
            raise UnsupportedVersionError(token) from None
