"""
Filesystem helpers for remblob.io (local file protocol).

Responsibilities
- Open local sources for reading and destinations for atomic writing.
- Establish clear semantics for the atomic write path: tmp write → fsync → atomic rename.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same filesystem;
  the tmp file is always created next to its destination.
- All helpers are synchronous; callers decide on concurrency/locking if/when needed.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from .errors import IoWriteError


def tmp_path_for(path: str) -> str:
    """Return the sibling temporary path used while writing ``path``."""
    return path + ".tmp"


def fsync_file(fh: BinaryIO) -> None:
    """
    Flush and fsync an open file handle.

    Notes:
        Ensures file contents reach the storage device (subject to OS/filesystem semantics).
    """
    fh.flush()
    os.fsync(fh.fileno())


def rename_atomic(src: str, dst: str) -> None:
    """
    Atomically rename src -> dst on the same filesystem.

    Notes:
        Uses os.replace, which is atomic only if src and dst reside on the same filesystem.
    """
    os.replace(src, dst)


def open_read(path: str) -> BinaryIO:
    """Open a local file for binary reading."""
    return open(path, "rb")


class _AtomicFile:
    """
    Writable handle whose close() publishes the tmp file at its final path.

    The codec closes its destination after a successful write, so publishing happens on
    close(). discard() removes the tmp file instead.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.tmp_path = tmp_path_for(path)
        self._fh: BinaryIO = open(self.tmp_path, "wb")
        self._done = False

    def write(self, data: bytes) -> int:
        return self._fh.write(data)

    def flush(self) -> None:
        self._fh.flush()

    @property
    def closed(self) -> bool:
        return self._done

    def close(self) -> None:
        if self._done:
            return
        self._done = True
        try:
            fsync_file(self._fh)
            self._fh.close()
            rename_atomic(self.tmp_path, self.path)
        except OSError as exc:
            self._cleanup()
            raise IoWriteError(f"failed to write {self.path}: {exc}") from exc

    def discard(self) -> None:
        if self._done:
            return
        self._done = True
        self._cleanup()

    def _cleanup(self) -> None:
        if not self._fh.closed:
            self._fh.close()
        if os.path.exists(self.tmp_path):
            os.remove(self.tmp_path)


@contextmanager
def atomic_writer(path: str) -> Iterator[_AtomicFile]:
    """
    Open ``path`` for an all-or-nothing binary write.

    Yields:
        _AtomicFile: Handle supporting write()/flush()/close(). Closing it (or leaving the
        block normally) fsyncs and renames the tmp file onto ``path``.

    Raises:
        IoWriteError: If fsync or the rename fails.

    Notes:
        If the block raises, the tmp file is removed and ``path`` is left untouched.
    """
    fh = _AtomicFile(path)
    try:
        yield fh
    except BaseException:
        fh.discard()
        raise
    fh.close()
