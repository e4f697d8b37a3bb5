#!/usr/bin/env python3
"""
01_decode_backup_values.py - Decoding QMQ Backup Store Values

What this example demonstrates:
- Building stored values with the encoders
- Decoding envelopes, metadata and consumption records
- The two error policies: metadata yields None, the rest raise

Key Concepts:
- Envelope: the full backed-up message with tags and attributes
- Metadata: identity-only index value, legacy or V2 layout
- Record: a consume action keyed by a composite row key

Prerequisites:
    - pyqmqbackup installed: pip install -e .

Run with:
    python 01_decode_backup_values.py
"""

from pyqmqbackup import (
    BackupMessage,
    BackupMessageMeta,
    BackupValueDecoder,
    ConsumptionRecord,
    DecodeError,
    encode_envelope,
    encode_meta,
    encode_record_row_key,
    encode_record_value,
)


def envelope_example(decoder: BackupValueDecoder) -> None:
    print("=== Envelope ===")
    value = encode_envelope(BackupMessage(
        sequence=1001,
        create_time=1_560_000_000_000,
        subject="order.changed",
        message_id="190603.154239.100.80.136.24.3256.0",
        tags=frozenset({"vip"}),
        attrs={"orderId": "42"},
    ))
    message = decoder.get_message(value)
    print(f"✓ {message.subject} #{message.sequence} tags={sorted(message.tags)}")
    print(f"  attrs={message.attrs}")


def meta_example(decoder: BackupValueDecoder) -> None:
    print("\n=== Metadata ===")
    meta = BackupMessageMeta(
        sequence=1001,
        broker_group="dev-broker-1",
        create_time=1_560_000_000_000,
        message_id="msg-1",
        partition_id="order.changed#3",
    )
    for version in (None, "V2"):
        decoded = decoder.get_message_meta(version, encode_meta(meta, version))
        print(f"✓ version={version!r}: {decoded.message_id} partition={decoded.partition_id}")

    # Corrupt cells are skipped, not raised
    print(f"✓ garbage cell -> {decoder.get_message_meta(None, b'garbage')}")


def record_example(decoder: BackupValueDecoder) -> None:
    print("\n=== Record ===")
    record = ConsumptionRecord(
        consumer_group="order-service",
        action=2,
        record_type=0,
        timestamp=1_560_000_001_000,
        consumer_id="host-7@1234",
        sequence=1001,
    )
    row_key = encode_record_row_key("a1b2c3d4e5f6", record.sequence, record.action, "grp")
    decoded = decoder.get_record(row_key, encode_record_value(record), record.record_type)
    print(f"✓ {decoded.consumer_group} action={decoded.action} seq={decoded.sequence}")

    try:
        decoder.get_record(row_key, b"\x00\x01", 0)
    except DecodeError as e:
        print(f"✓ Caught corrupt record: {e}")


def main():
    decoder = BackupValueDecoder()
    envelope_example(decoder)
    meta_example(decoder)
    record_example(decoder)


if __name__ == "__main__":
    main()
