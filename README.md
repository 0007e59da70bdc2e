# nutstore

The storage core of an embeddable, persistent key/value store.

- `nutstore.entry`: the on-disk entry format. `MetaData` is an entry's
  header (`HEADER_SIZE` is 42 bytes, little-endian); `Entry` holds a
  bucket, key and value and `encode()`s them with a CRC-32 checksum;
  `parse_meta` decodes a header; `Hint` records where an entry lives
  (file id and position). `is_expired(ttl, timestamp)` checks a TTL given in
  seconds against a timestamp in milliseconds, and
  `process_entries_scan_on_disk` sorts entries by key and drops those that
  are expired or deleted.
- `nutstore.btree`: `BTree`, an ordered in-memory index from byte keys to
  `Record` objects, with lookups, inclusive range scans, prefix scans and
  prefix scans filtered by a regular expression, plus `min`, `max`,
  `pop_min` and `pop_max`.
- `nutstore.datafile`: `DataFile`, a fixed-capacity segment file that
  entries are written to and read from at byte offsets. `data_path` builds
  a segment's file name (`<id>.dat`) and `list_data_file_ids` lists the
  segment ids found in a directory.
- `nutstore.errors`: exceptions rooted at `NutsError` (for example
  `KeyNotFoundError`, `CrcError`, `EntryZeroError`) and helpers such as
  `is_key_not_found(err)`, which also look through chained exceptions.
- `nutstore.constants`: the `DataFlag`, `DataStructure` and `TxStatus`
  enumerations and limits such as `MAX_SIZE` and `PERSISTENT`.

## Installing

```
pip install .
```

## Encoding an entry

```python
from nutstore.constants import DataFlag
from nutstore.entry import Entry, MetaData, parse_meta, HEADER_SIZE

entry = Entry(
    key=b"key_0001",
    value=b"val_0001",
    bucket=b"test_entry",
    meta=MetaData(key_size=8, value_size=8, bucket_size=10,
                  timestamp=1547707905, flag=DataFlag.SET),
)
raw = entry.encode()
assert len(raw) == entry.size()
assert parse_meta(raw[:HEADER_SIZE]).key_size == 8
```

## Using the index

```python
from nutstore.btree import BTree
from nutstore.entry import Hint, MetaData

tree = BTree()
tree.insert(b"key_001", b"val_001", Hint(key=b"key_001", meta=MetaData()))
record = tree.find(b"key_001")          # None when the key is missing
records = tree.prefix_scan(b"key_", 0, 10)
```

`insert` and `delete` return whether a key was replaced or removed. A
negative limit makes a prefix scan return every match.

## Reading and writing a data file

```python
from nutstore.datafile import DataFile, data_path

with DataFile(data_path(0, "/tmp/store"), capacity=1024) as df:
    n = df.write_at(raw, 0)
    same = df.read_at(0)                 # Entry, or None at an all-zero header
    rec = df.read_record(0, entry.meta.payload_size())
```

The file is created and padded with zeros up to `capacity`. A damaged entry
raises `CrcError`; `read_record` raises `EntryZeroError` at an all-zero
header and `PayloadSizeMismatchError` when the sizes disagree. `release()`
drops the open handle (it is reopened when next needed); `close()` ends use
of the file.

## What this package does not do

It is a set of building blocks, not a database. There is no database object,
no transactions, no directory locking, no index rebuilding on start-up, no
merging of segments, no TTL expiry timers, and no list, set or sorted-set
structures. Nothing here runs as a command or a server.

## Running the tests

```
pip install ".[test]"
pytest
```