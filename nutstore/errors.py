"""Exception types raised by the store and helpers to classify them."""

from __future__ import annotations

__all__ = [
    "NutsError",
    "DBClosedError",
    "KeyNotFoundError",
    "BucketNotFoundError",
    "BucketEmptyError",
    "KeyEmptyError",
    "PrefixScanError",
    "PrefixSearchScanError",
    "DataSizeExceedError",
    "DirLockedError",
    "DirUnlockedError",
    "RecordIsNilError",
    "CrcError",
    "EntryZeroError",
    "PayloadSizeMismatchError",
    "is_db_closed",
    "is_key_not_found",
    "is_bucket_not_found",
    "is_bucket_empty",
    "is_key_empty",
    "is_prefix_scan",
    "is_prefix_search_scan",
]


class NutsError(Exception):
    """Base class of every error the store raises."""

    default_message = "nutstore error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class DBClosedError(NutsError):
    """The database has been closed."""

    default_message = "db is closed"


class KeyNotFoundError(NutsError, LookupError):
    """The key is not in the index."""

    default_message = "key not found"


class BucketNotFoundError(NutsError, LookupError):
    """The bucket does not exist."""

    default_message = "bucket not found"


class BucketEmptyError(NutsError):
    """The bucket holds no entries."""

    default_message = "bucket is empty"


class KeyEmptyError(NutsError, ValueError):
    """An empty key was given."""

    default_message = "key can not be empty"


class PrefixScanError(NutsError, LookupError):
    """A prefix scan found nothing."""

    default_message = "prefix scans not found"


class PrefixSearchScanError(NutsError, LookupError):
    """A prefix and pattern scan found nothing."""

    default_message = "prefix and search scans not found"


class DataSizeExceedError(NutsError, ValueError):
    """A bucket, key or value is larger than the format allows."""

    default_message = "data size too big"


class DirLockedError(NutsError):
    """Another process holds the lock on the database directory."""

    default_message = "the dir of db is locked"


class DirUnlockedError(NutsError):
    """The lock on the database directory was already released."""

    default_message = "the dir of db is unlocked"


class RecordIsNilError(NutsError, ValueError):
    """A record was expected but none was given."""

    default_message = "the record is nil"


class CrcError(NutsError):
    """The stored checksum does not match the data."""

    default_message = "crc error"


class EntryZeroError(NutsError):
    """An all-zero entry header was read."""

    default_message = "entry is zero "


class PayloadSizeMismatchError(NutsError):
    """The payload size in the header differs from the one expected."""

    default_message = "the payload size in meta mismatch with the payload size needed"


def _chain(err: BaseException | None):
    """Yield the error and every error it wraps, each once."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__ if err.__cause__ is not None else err.__context__


def _is(err: BaseException | None, kind: type[BaseException]) -> bool:
    return any(isinstance(e, kind) for e in _chain(err))


def is_db_closed(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says the db was closed."""
    return _is(err, DBClosedError)


def is_key_not_found(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says the key was not found."""
    return _is(err, KeyNotFoundError)


def is_bucket_not_found(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says the bucket does not exist."""
    return _is(err, BucketNotFoundError)


def is_bucket_empty(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says the bucket is empty."""
    return _is(err, BucketEmptyError)


def is_key_empty(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says the key is empty."""
    return _is(err, KeyEmptyError)


def is_prefix_scan(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says a prefix scan found nothing."""
    return _is(err, PrefixScanError)


def is_prefix_search_scan(err: BaseException | None) -> bool:
    """True if the error, or one it wraps, says a prefix search scan found nothing."""
    return _is(err, PrefixSearchScanError)