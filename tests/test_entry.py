import struct
import time
from dataclasses import dataclass, field

import pytest

from nutstore.constants import PERSISTENT, DataFlag
from nutstore.entry import (
    HEADER_SIZE,
    Entry,
    MetaData,
    disk_size,
    is_expired,
    parse_meta,
    process_entries_scan_on_disk,
)
from nutstore.errors import KeyEmptyError, PayloadSizeMismatchError

EXPECTED_ENCODE = bytes(
    [48, 176, 185, 16, 1, 38, 64, 92, 0, 0, 0, 0, 8, 0, 0, 0, 8, 0, 0, 0, 1, 0, 0, 0, 0, 0,
     10, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 116, 101, 115, 116, 95, 101, 110, 116,
     114, 121, 107, 101, 121, 95, 48, 48, 48, 49, 118, 97, 108, 95, 48, 48, 48, 49]
)


@pytest.fixture
def entry():
    return Entry(
        key=b"key_0001",
        value=b"val_0001",
        bucket=b"test_entry",
        meta=MetaData(
            key_size=8,
            value_size=8,
            timestamp=1547707905,
            ttl=PERSISTENT,
            bucket_size=10,
            flag=DataFlag.SET,
        ),
    )


def test_disk_size_of_metadata():
    assert disk_size(MetaData()) == 42
    assert disk_size(MetaData) == 42
    assert HEADER_SIZE == 42


def test_disk_size_of_other_objects():
    @dataclass
    class Sized:
        a: int = field(default=0, metadata={"disk_width": 2})
        b: str = ""

    assert disk_size(Sized()) == 2
    assert disk_size(object()) == 0


def test_encode(entry):
    assert entry.encode() == EXPECTED_ENCODE


def test_size(entry):
    assert entry.size() == len(EXPECTED_ENCODE) == 68


def test_is_zero(entry):
    assert entry.is_zero() is False
    assert Entry().is_zero() is True


def test_crc(entry):
    expected = struct.unpack("<I", EXPECTED_ENCODE[:4])[0]
    assert entry.crc(EXPECTED_ENCODE[:42]) == expected


def test_parse_meta_round_trip(entry):
    meta = parse_meta(EXPECTED_ENCODE)
    assert meta.key_size == 8
    assert meta.value_size == 8
    assert meta.bucket_size == 10
    assert meta.timestamp == 1547707905
    assert meta.flag == DataFlag.SET
    assert meta.crc == struct.unpack("<I", EXPECTED_ENCODE[:4])[0]
    assert meta.to_header() == EXPECTED_ENCODE[:42]


def test_parse_meta_short_buffer():
    with pytest.raises(ValueError):
        parse_meta(b"\0" * 41)


def test_parse_payload(entry):
    parsed = Entry(meta=parse_meta(EXPECTED_ENCODE))
    parsed.parse_payload(EXPECTED_ENCODE[42:])
    assert parsed.bucket == b"test_entry"
    assert parsed.key == b"key_0001"
    assert parsed.value == b"val_0001"
    assert parsed.crc(EXPECTED_ENCODE[:42]) == parsed.meta.crc


def test_parse_payload_too_short(entry):
    with pytest.raises(ValueError):
        entry.parse_payload(b"short")


def test_check_payload_size(entry):
    entry.check_payload_size(26)
    with pytest.raises(PayloadSizeMismatchError):
        entry.check_payload_size(25)


def test_validate_empty_key():
    with pytest.raises(KeyEmptyError):
        Entry(key=b"", value=b"v", bucket=b"b").validate()


def test_is_filter():
    assert Entry(meta=MetaData(flag=DataFlag.DELETE)).is_filter() is True
    assert Entry(meta=MetaData(flag=DataFlag.ZPOP_MIN)).is_filter() is True
    assert Entry(meta=MetaData(flag=DataFlag.SET)).is_filter() is False
    assert Entry(meta=MetaData(flag=DataFlag.LPUSH)).is_filter() is False


def test_tx_id_bytes_and_bucket_name():
    e = Entry(bucket=b"bkt", meta=MetaData(tx_id=12345))
    assert e.tx_id_bytes == b"12345"
    assert e.bucket_name == "bkt"


def test_is_expired():
    assert is_expired(PERSISTENT, 0) is False
    assert is_expired(1, 0) is True
    now_ms = time.time_ns() // 1_000_000
    assert is_expired(3600, now_ms) is False


def _set_entry(key):
    return Entry(key=key, meta=MetaData(ttl=0, flag=DataFlag.SET))


def test_process_entries_sorts():
    entries = [_set_entry(b"abc"), _set_entry(b"z"), _set_entry(b"abcd")]
    expected = [_set_entry(b"abc"), _set_entry(b"abcd"), _set_entry(b"z")]
    assert process_entries_scan_on_disk(entries) == expected
    assert process_entries_scan_on_disk(entries, None) == expected


def test_process_entries_drops_expired_and_deleted():
    entries = [
        Entry(key=b"abc", meta=MetaData(ttl=1)),
        Entry(key=b"abc", meta=MetaData(ttl=0, flag=DataFlag.DELETE)),
    ]
    assert process_entries_scan_on_disk(entries) == []


def test_process_entries_custom_less():
    entries = [_set_entry(b"abc"), _set_entry(b"z"), _set_entry(b"abcd")]
    result = process_entries_scan_on_disk(entries, lambda left, right: left > right)
    assert [e.key for e in result] == [b"z", b"abcd", b"abc"]