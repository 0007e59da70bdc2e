"""Ordered in-memory index of keys to records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from sortedcontainers import SortedDict

from .entry import Hint, is_expired

__all__ = ["Record", "BTree"]


@dataclass
class Record:
    """An indexed value: the value itself if kept in memory, and its hint."""

    value: bytes | None = None
    hint: Hint | None = None
    bucket: str = ""

    def is_expired(self) -> bool:
        """True if the record's TTL has run out."""
        if self.hint is None:
            return False
        return is_expired(self.hint.meta.ttl, self.hint.meta.timestamp)


class BTree:
    """Keys ordered bytewise, each mapped to a record."""

    def __init__(self) -> None:
        self._items: SortedDict = SortedDict()

    def __len__(self) -> int:
        return len(self._items)

    def find(self, key: bytes) -> Record | None:
        """The record stored under ``key``, or None."""
        return self._items.get(bytes(key))

    def insert(self, key: bytes, value: bytes | None, hint: Hint | None) -> bool:
        """Store a new record; return True if one was replaced."""
        return self.insert_record(key, Record(value=value, hint=hint))

    def insert_record(self, key: bytes, record: Record) -> bool:
        """Store ``record`` under ``key``; return True if one was replaced."""
        key = bytes(key)
        replaced = key in self._items
        self._items[key] = record
        return replaced

    def delete(self, key: bytes) -> bool:
        """Remove ``key``; return True if it was present."""
        try:
            del self._items[bytes(key)]
        except KeyError:
            return False
        return True

    def all(self) -> list[Record]:
        """Every record in key order."""
        return list(self._items.values())

    def all_items(self) -> list[tuple[bytes, Record]]:
        """Every (key, record) pair in key order."""
        return list(self._items.items())

    def range(self, start: bytes, end: bytes) -> list[Record]:
        """Records whose keys lie between ``start`` and ``end`` inclusive."""
        return [self._items[k] for k in self._items.irange(bytes(start), bytes(end))]

    def _with_prefix(self, prefix: bytes) -> Iterable[bytes]:
        for key in self._items.irange(minimum=prefix):
            if not key.startswith(prefix):
                return
            yield key

    def prefix_scan(self, prefix: bytes, offset: int, limit: int) -> list[Record]:
        """Records whose keys start with ``prefix``, skipping ``offset``.

        Collection stops once ``limit`` records are taken; a negative limit
        takes everything.
        """
        prefix = bytes(prefix)
        records: list[Record] = []
        for key in self._with_prefix(prefix):
            if offset > 0:
                offset -= 1
                continue
            records.append(self._items[key])
            limit -= 1
            if limit == 0:
                break
        return records

    def prefix_search_scan(
        self, prefix: bytes, pattern: str, offset: int, limit: int
    ) -> list[Record]:
        """Like ``prefix_scan``, keeping keys whose remainder matches ``pattern``.

        The offset counts every key with the prefix, matching or not.
        """
        prefix = bytes(prefix)
        regex = re.compile(pattern.encode())
        records: list[Record] = []
        for key in self._with_prefix(prefix):
            if offset > 0:
                offset -= 1
                continue
            if regex.search(key[len(prefix):]) is None:
                continue
            records.append(self._items[key])
            limit -= 1
            if limit == 0:
                break
        return records

    def count(self) -> int:
        """Number of keys."""
        return len(self._items)

    def pop_min(self) -> tuple[bytes, Record] | None:
        """Remove and return the smallest (key, record), or None if empty."""
        return self._items.popitem(0) if self._items else None

    def pop_max(self) -> tuple[bytes, Record] | None:
        """Remove and return the largest (key, record), or None if empty."""
        return self._items.popitem(-1) if self._items else None

    def min(self) -> tuple[bytes, Record] | None:
        """The smallest (key, record), or None if empty."""
        return self._items.peekitem(0) if self._items else None

    def max(self) -> tuple[bytes, Record] | None:
        """The largest (key, record), or None if empty."""
        return self._items.peekitem(-1) if self._items else None