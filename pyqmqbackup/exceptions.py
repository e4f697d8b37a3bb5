# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Custom exceptions for the QMQ backup value codec.

All exceptions inherit from QMQBackupError, making it easy to catch every
codec error with a single except clause:

    try:
        message = decode_envelope(value)
    except QMQBackupError as e:
        print(f"Backup decode error: {e}")

Corrupt stored values raise a DecodeError subclass, so callers can tell
"this cell is garbage" apart from "I called the decoder wrong":

    try:
        record = decode_record(row_key, value, record_type=0)
    except OutOfBoundsError as e:
        print(f"Value truncated at offset {e.offset}")
    except MalformedIntegerError as e:
        print(f"Row key segment {e.text!r} is not a number")
"""

from __future__ import annotations


class QMQBackupError(Exception):
    """
    Base exception for all backup codec errors.

    All codec exceptions inherit from this class, allowing you to catch
    all of them with a single except clause.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        self.hint = hint
        if hint:
            message = f"{message}\n\n  Hint: {hint}"
        super().__init__(message)


class DecodeError(QMQBackupError):
    """
    Base exception for corrupt or malformed stored values.

    ``offset`` is the buffer position the failing read started at, when
    known.
    """

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        *,
        hint: str | None = None,
    ) -> None:
        self.offset = offset
        super().__init__(message, hint=hint)


class OutOfBoundsError(DecodeError):
    """
    Raised when a fixed width or declared length runs past the buffer end.

    This typically means:
    - The value was truncated in the store
    - The value was written with a different layout version
    - A length prefix was read from the wrong position
    """

    def __init__(self, offset: int, needed: int, available: int) -> None:
        self.needed = needed
        self.available = available
        super().__init__(
            f"Read of {needed} bytes at offset {offset} exceeds buffer "
            f"({available} bytes remaining)",
            offset,
        )


class NegativeLengthError(DecodeError):
    """Raised when a length prefix decodes to a negative number."""

    def __init__(self, offset: int, length: int) -> None:
        self.length = length
        super().__init__(
            f"Negative length {length} at offset {offset}",
            offset,
            hint="The buffer is corrupt or misaligned",
        )


class MalformedIntegerError(DecodeError):
    """Raised when a decimal segment of a row key is not an integer."""

    def __init__(self, text: str, field: str | None = None) -> None:
        self.text = text
        self.field = field
        label = f" for {field}" if field else ""
        super().__init__(f"Malformed integer{label}: {text!r}")


class MalformedStringError(DecodeError):
    """Raised when a string field is not valid UTF-8."""

    def __init__(self, offset: int | None, reason: str) -> None:
        self.reason = reason
        where = f" at offset {offset}" if offset is not None else ""
        super().__init__(f"Invalid UTF-8{where}: {reason}", offset)


class AttributeDecodeError(DecodeError):
    """
    Raised when the attribute deserializer rejects a message body.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, message: str = "Failed to deserialize message attributes") -> None:
        super().__init__(
            message,
            hint="Check that the body was written with the same attribute serde",
        )


class OversizedFieldError(DecodeError):
    """
    Raised when a declared field length exceeds its sanity bound.

    Only the metadata layout bounds a field (the broker group). A larger
    value almost always means the buffer is misaligned.
    """

    def __init__(self, field: str, length: int, limit: int) -> None:
        self.field = field
        self.length = length
        self.limit = limit
        super().__init__(f"Field {field} length {length} exceeds limit {limit}")


class UnsupportedVersionError(QMQBackupError):
    """Raised when a metadata version token is not recognised."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(
            f"Unsupported metadata version: {version!r}",
            hint="Use an empty version for legacy rows or 'V2'",
        )


class EncodeError(QMQBackupError):
    """Raised when a value cannot be represented in a stored layout."""
