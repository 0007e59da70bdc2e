"""Flags, data-structure kinds and limits of the on-disk format."""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "MAX_SIZE",
    "PERSISTENT",
    "SCAN_NO_LIMIT",
    "KV_WRITE_CH_CAPACITY",
    "FLOCK_NAME",
    "DataFlag",
    "DataStructure",
    "TxStatus",
]

MAX_SIZE = 2**31 - 1
"""Largest bucket, key or value length accepted."""

PERSISTENT = 0
"""TTL value meaning the data never expires."""

SCAN_NO_LIMIT = -1
"""Limit value meaning a scan returns everything."""

KV_WRITE_CH_CAPACITY = 1000

FLOCK_NAME = "nutsdb-flock"
"""Name of the lock file kept in the database directory."""


class DataFlag(IntEnum):
    """Operation recorded by an entry."""

    DELETE = 0
    SET = 1
    LPUSH = 2
    RPUSH = 3
    LREM = 4
    LPOP = 5
    RPOP = 6
    LTRIM = 8
    ZADD = 9
    ZREM = 10
    ZREM_RANGE_BY_RANK = 11
    ZPOP_MAX = 12
    ZPOP_MIN = 13
    SET_BUCKET_DELETE = 14
    SORTED_SET_BUCKET_DELETE = 15
    BTREE_BUCKET_DELETE = 16
    LIST_BUCKET_DELETE = 17
    LREM_BY_INDEX = 18
    EXPIRE_LIST = 19


class DataStructure(IntEnum):
    """Data structure an entry belongs to."""

    SET = 0
    SORTED_SET = 1
    BTREE = 2
    LIST = 3
    NONE = 4


class TxStatus(IntEnum):
    """Commit state of a transaction's entry."""

    UNCOMMITTED = 0
    COMMITTED = 1