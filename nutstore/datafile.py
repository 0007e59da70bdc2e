"""Data files: append-only segments holding encoded entries."""

from __future__ import annotations

import os
import re
import threading
from pathlib import Path

from .entry import HEADER_SIZE, Entry, parse_meta
from .errors import CrcError, EntryZeroError

__all__ = ["DATA_SUFFIX", "DataFile", "data_path", "list_data_file_ids"]

DATA_SUFFIX = ".dat"
"""File name suffix of data files."""

_INT = re.compile(r"[+-]?\d+")


def data_path(file_id: int, directory: str | os.PathLike[str]) -> str:
    """Path of the data file with the given id inside ``directory``."""
    return os.path.join(os.fspath(directory), f"{file_id}{DATA_SUFFIX}")


def list_data_file_ids(directory: str | os.PathLike[str]) -> list[int]:
    """Ids of the data files in ``directory``, in ascending order.

    A missing or unreadable directory yields no ids. A data file whose name
    is not a number counts as id 0.
    """
    try:
        names = os.listdir(directory)
    except OSError:
        return []
    ids = []
    for name in names:
        stem, suffix = os.path.splitext(name)
        if suffix != DATA_SUFFIX:
            continue
        ids.append(int(stem) if _INT.fullmatch(stem) else 0)
    return sorted(ids)


class DataFile:
    """A data file of fixed capacity that entries are read from and written to.

    The file is created if missing and extended with zeros up to
    ``capacity`` bytes. ``release`` gives up the open handle, which is
    reopened on the next access; ``close`` ends the use of the file.
    """

    def __init__(self, path: str | os.PathLike[str], capacity: int, file_id: int = 0) -> None:
        if capacity <= 0:
            raise ValueError("capacity error")
        self.path = os.fspath(path)
        self.capacity = capacity
        self.file_id = file_id
        self.write_off = 0
        self.actual_size = 0
        self._lock = threading.Lock()
        self._closed = False
        self._handle = self._open()
        if os.fstat(self._handle.fileno()).st_size < capacity:
            self._handle.truncate(capacity)

    def _open(self):
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            return os.fdopen(fd, "r+b")
        except BaseException:
            os.close(fd)
            raise

    def _file(self):
        if self._closed:
            raise ValueError(f"data file {self.path} is closed")
        if self._handle is None:
            self._handle = self._open()
        return self._handle

    def _read_exact(self, off: int, size: int) -> bytes:
        if off < 0:
            raise ValueError(f"negative offset {off}")
        with self._lock:
            handle = self._file()
            handle.seek(off)
            data = handle.read(size)
        if len(data) < size:
            raise EOFError(f"read {len(data)} of {size} bytes at offset {off} in {self.path}")
        return data

    def read_at(self, off: int) -> Entry | None:
        """The entry starting at ``off``, or None where the header is all zeros."""
        header = self._read_exact(off, HEADER_SIZE)
        entry = Entry(meta=parse_meta(header))
        if entry.is_zero():
            return None
        payload = self._read_exact(off + HEADER_SIZE, entry.meta.payload_size())
        entry.parse_payload(payload)
        if entry.crc(header) != entry.meta.crc:
            raise CrcError()
        return entry

    def read_record(self, off: int, payload_size: int) -> Entry:
        """The entry at ``off`` whose bucket, key and value take ``payload_size`` bytes."""
        buf = self._read_exact(off, HEADER_SIZE + payload_size)
        header = buf[:HEADER_SIZE]
        entry = Entry(meta=parse_meta(header))
        if entry.is_zero():
            raise EntryZeroError()
        entry.check_payload_size(payload_size)
        entry.parse_payload(buf[HEADER_SIZE:])
        if entry.crc(header) != entry.meta.crc:
            raise CrcError()
        return entry

    def write_at(self, data: bytes, off: int) -> int:
        """Write ``data`` at ``off`` and return the number of bytes written."""
        if off < 0:
            raise ValueError(f"negative offset {off}")
        with self._lock:
            handle = self._file()
            handle.seek(off)
            written = handle.write(data)
        return written

    def sync(self) -> None:
        """Flush written data to stable storage."""
        with self._lock:
            handle = self._file()
            handle.flush()
            os.fsync(handle.fileno())

    def release(self) -> None:
        """Give up the open handle; it is reopened when next needed."""
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def close(self) -> None:
        """Close the file; later reads and writes raise ValueError."""
        self.release()
        self._closed = True

    @property
    def closed(self) -> bool:
        """True once ``close`` has been called."""
        return self._closed

    def __enter__(self) -> DataFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"DataFile(path={self.path!r}, file_id={self.file_id})"


def _ensure_dir(directory: str | os.PathLike[str]) -> Path:
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return path