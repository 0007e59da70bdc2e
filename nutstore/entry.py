"""Entries of the data files: header metadata, encoding and checksums."""

from __future__ import annotations

import dataclasses
import struct
import time
import zlib
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Callable, Iterable

from .constants import MAX_SIZE, PERSISTENT, DataFlag
from .errors import DataSizeExceedError, KeyEmptyError, PayloadSizeMismatchError

__all__ = [
    "HEADER_SIZE",
    "MetaData",
    "Entry",
    "Hint",
    "disk_size",
    "is_expired",
    "parse_meta",
    "process_entries_scan_on_disk",
]

_WIDTH = "disk_width"


def _unsigned(width: int) -> Any:
    return field(default=0, metadata={_WIDTH: width})


def disk_size(obj: Any) -> int:
    """Bytes taken on disk by the fixed-width unsigned fields of a dataclass."""
    if not dataclasses.is_dataclass(obj):
        return 0
    return sum(f.metadata.get(_WIDTH, 0) for f in dataclasses.fields(obj))


def is_expired(ttl: int, timestamp: int) -> bool:
    """True if data written at ``timestamp`` (ms) with ``ttl`` (s) has expired."""
    if ttl == PERSISTENT:
        return False
    now_ms = time.time_ns() // 1_000_000
    return timestamp + ttl * 1000 < now_ms


# crc, timestamp, key size, value size, flag, ttl, bucket size, status, ds, tx id
_HEADER = struct.Struct("<IQIIHIIHHQ")


@dataclass
class MetaData:
    """Fixed-size header information of an entry."""

    key_size: int = _unsigned(4)
    value_size: int = _unsigned(4)
    timestamp: int = _unsigned(8)
    ttl: int = _unsigned(4)
    flag: int = _unsigned(2)
    bucket_size: int = _unsigned(4)
    tx_id: int = _unsigned(8)
    status: int = _unsigned(2)
    ds: int = _unsigned(2)
    crc: int = _unsigned(4)

    def payload_size(self) -> int:
        """Total length of bucket, key and value."""
        return self.bucket_size + self.key_size + self.value_size

    def to_header(self) -> bytes:
        """The header bytes as stored on disk."""
        return _HEADER.pack(
            self.crc,
            self.timestamp,
            self.key_size,
            self.value_size,
            self.flag,
            self.ttl,
            self.bucket_size,
            self.status,
            self.ds,
            self.tx_id,
        )


HEADER_SIZE = disk_size(MetaData)
"""Size in bytes of an entry header."""


def parse_meta(buf: bytes) -> MetaData:
    """Decode an entry header from the first bytes of ``buf``."""
    if len(buf) < HEADER_SIZE:
        raise ValueError(f"header needs {HEADER_SIZE} bytes, got {len(buf)}")
    (crc, timestamp, key_size, value_size, flag, ttl, bucket_size, status, ds, tx_id) = (
        _HEADER.unpack_from(buf, 0)
    )
    return MetaData(
        key_size=key_size,
        value_size=value_size,
        timestamp=timestamp,
        ttl=ttl,
        flag=flag,
        bucket_size=bucket_size,
        tx_id=tx_id,
        status=status,
        ds=ds,
        crc=crc,
    )


def _fit(data: bytes, size: int) -> bytes:
    return bytes(data[:size]).ljust(size, b"\0")


_FILTER_FLAGS = frozenset(
    {
        DataFlag.DELETE,
        DataFlag.RPOP,
        DataFlag.LPOP,
        DataFlag.LREM,
        DataFlag.LTRIM,
        DataFlag.ZREM,
        DataFlag.ZREM_RANGE_BY_RANK,
        DataFlag.ZPOP_MAX,
        DataFlag.ZPOP_MIN,
        DataFlag.LREM_BY_INDEX,
    }
)


@dataclass
class Entry:
    """A data item: bucket, key and value with their header."""

    key: bytes = b""
    value: bytes = b""
    bucket: bytes = b""
    meta: MetaData = field(default_factory=MetaData)

    def size(self) -> int:
        """Length of the encoded entry."""
        return HEADER_SIZE + self.meta.payload_size()

    def encode(self) -> bytes:
        """Header followed by bucket, key and value, with the checksum set."""
        m = self.meta
        body = (
            m.to_header()[4:]
            + _fit(self.bucket, m.bucket_size)
            + _fit(self.key, m.key_size)
            + _fit(self.value, m.value_size)
        )
        return struct.pack("<I", zlib.crc32(body)) + body

    def is_zero(self) -> bool:
        """True if the header reads as all zeros."""
        m = self.meta
        return m.crc == 0 and m.key_size == 0 and m.value_size == 0 and m.timestamp == 0

    def crc(self, header: bytes) -> int:
        """Checksum of the header (past the crc field) and the payload."""
        value = zlib.crc32(bytes(header[4:]))
        value = zlib.crc32(self.bucket, value)
        value = zlib.crc32(self.key, value)
        return zlib.crc32(self.value, value)

    def parse_payload(self, data: bytes) -> None:
        """Split ``data`` into bucket, key and value using the header sizes."""
        m = self.meta
        if len(data) < m.payload_size():
            raise ValueError(f"payload needs {m.payload_size()} bytes, got {len(data)}")
        key_start = m.bucket_size
        value_start = key_start + m.key_size
        value_end = value_start + m.value_size
        self.bucket = bytes(data[:key_start])
        self.key = bytes(data[key_start:value_start])
        self.value = bytes(data[value_start:value_end])

    def check_payload_size(self, size: int) -> None:
        """Raise if the header's payload size is not ``size``."""
        if self.meta.payload_size() != size:
            raise PayloadSizeMismatchError()

    def is_filter(self) -> bool:
        """True if the entry records a removal that a merge may drop."""
        return self.meta.flag in _FILTER_FLAGS

    def validate(self) -> None:
        """Raise if the key is empty or any part is too large."""
        if not self.key:
            raise KeyEmptyError()
        if max(len(self.bucket), len(self.key), len(self.value)) > MAX_SIZE:
            raise DataSizeExceedError()

    @property
    def bucket_name(self) -> str:
        """The bucket as text."""
        return self.bucket.decode("utf-8", "surrogateescape")

    @property
    def tx_id_bytes(self) -> bytes:
        """The transaction id in decimal."""
        return str(self.meta.tx_id).encode()


@dataclass
class Hint:
    """Where a key's entry lives on disk."""

    key: bytes = b""
    file_id: int = 0
    meta: MetaData = field(default_factory=MetaData)
    data_pos: int = 0


def process_entries_scan_on_disk(
    entries: Iterable[Entry],
    less: Callable[[bytes, bytes], bool] | None = None,
) -> list[Entry]:
    """Sort entries by key and keep those neither expired nor deleted."""

    def compare(a: Entry, b: Entry) -> int:
        if less is None:
            return (a.key > b.key) - (a.key < b.key)
        if less(a.key, b.key):
            return -1
        if less(b.key, a.key):
            return 1
        return 0

    ordered = sorted(entries, key=cmp_to_key(compare))
    return [
        e
        for e in ordered
        if not is_expired(e.meta.ttl, e.meta.timestamp) and e.meta.flag != DataFlag.DELETE
    ]