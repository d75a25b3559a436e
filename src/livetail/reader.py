"""Live tail reader for files that are still being appended to.

A ``TailReader`` reads a file sequentially. When it reaches the current end of
the file it blocks until the filesystem reports a change, then tries once
more. Deletion and renaming of the file are reported as distinct statuses so
the caller can decide whether to reopen, alert or stop; closing the reader
from any thread ends a blocked read with end-of-stream.

Example:
    >>> with open_tail("/var/log/app.log", offset=saved_offset) as reader:
    ...     for chunk in reader:
    ...         handle(chunk)
    ...         saved_offset = reader.offset
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterator
from typing import Any, BinaryIO

from .errors import (
    CloseError,
    FileRemovedError,
    FileRenamedError,
    SeekError,
    StatError,
    TailSetupError,
    WatchSetupError,
)
from .models import ChangeKind, FileSnapshot, TailStatus
from .watch import PathWatch

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32 * 1024

# Returned by length(): the size of a growing file is never final.
UNBOUNDED_LENGTH = -1


class TailReader:
    """Sequential reader that follows a growing file.

    The reader owns two resources with the same lifetime: the open file and
    the change notification watch. Both are released together, exactly once,
    by ``close()``. Only one read may be in flight at a time; ``offset`` and
    ``close()`` may be used from any thread.

    Attributes:
        path: Path the file was opened from.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        offset: int = 0,
        *,
        follow: bool = True,
        liveness_interval: float = 1.0,
        watch_factory: Callable[..., PathWatch] = PathWatch,
    ):
        """Open ``path`` for tailing, starting at byte ``offset``.

        Args:
            path: File to follow.
            offset: Absolute byte position to start reading from.
            follow: Watch for appended data. When False the reader stops at
                the current end of file instead of waiting.
            liveness_interval: Seconds between watch health checks.
            watch_factory: Builds the change notification subscription.

        Raises:
            ValueError: If offset is negative.
            OSError: If the file cannot be opened (propagated unchanged).
            SeekError: If seeking to offset fails.
            StatError: If the file cannot be stat'ed.
            WatchSetupError: If the change notification watch cannot start.
        """
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")

        self.path = os.fspath(path)
        self._offset = offset
        self._offset_lock = threading.Lock()
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._close_started = False
        self._file: BinaryIO | None = None
        self._watch: PathWatch | None = None
        self._snapshot: FileSnapshot | None = None

        self._file = open(self.path, "rb", buffering=0)

        if offset > 0:
            try:
                self._file.seek(offset, os.SEEK_SET)
            except OSError as e:
                raise self._abort(SeekError(f"file seek failed: {self.path}: {e}", self.path)) from e
            logger.debug(f"Seeked {self.path} to offset {offset}")

        try:
            self._snapshot = FileSnapshot.from_stat(self.path, os.fstat(self._file.fileno()))
        except OSError as e:
            raise self._abort(StatError(f"get file stat failed: {self.path}: {e}", self.path)) from e

        if follow:
            try:
                watch = watch_factory(self.path, liveness_interval=liveness_interval)
                watch.start()
            except TailSetupError as e:
                self._abort(e)
                raise
            except Exception as e:
                raise self._abort(
                    WatchSetupError(f"create notify watcher failed: {self.path}: {e}", self.path)
                ) from e
            self._watch = watch

        logger.info(
            f"Opened tail reader for {self.path}",
            extra={
                "path": self.path,
                "offset": offset,
                "size": self._snapshot.size,
                "follow": follow,
            },
        )

    @classmethod
    def open(cls, path: str | os.PathLike[str], offset: int = 0, **kwargs: Any) -> TailReader:
        return cls(path, offset, **kwargs)

    @property
    def offset(self) -> int:
        """Absolute position of the next byte to be delivered."""
        with self._offset_lock:
            return self._offset

    @property
    def file(self) -> BinaryIO:
        """The underlying file. Owned by the reader: do not close it."""
        if self._file is None:
            raise ValueError("I/O operation on closed reader")
        return self._file

    @property
    def snapshot(self) -> FileSnapshot:
        """Metadata captured when the reader was opened."""
        if self._snapshot is None:
            raise ValueError("reader has no snapshot")
        return self._snapshot

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def length(self) -> int:
        """Always UNBOUNDED_LENGTH: the file is still growing."""
        return UNBOUNDED_LENGTH

    def readable(self) -> bool:
        return True

    def read_into(self, buffer: Any, timeout: float | None = None) -> tuple[int, TailStatus]:
        """Read available bytes into ``buffer``, waiting once if there are none.

        Args:
            buffer: Writable bytes-like object.
            timeout: Maximum seconds to wait for a change notification. None
                waits until a change arrives or the reader is closed.

        Returns:
            Tuple of (bytes_read, status). ``(0, TailStatus.OK)`` means the
            wait ended without new data (a spurious notification or the
            timeout); call again to keep tailing.

        Raises:
            OSError: If reading the file fails.
            WatcherError: If the change notification subscription failed.
        """
        if self._closed.is_set():
            return 0, TailStatus.END_OF_STREAM

        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0, TailStatus.OK

        n = self._read_direct(view)
        if n is None:
            return 0, TailStatus.END_OF_STREAM
        if n > 0:
            return n, TailStatus.OK

        status = self._wait(timeout)
        if status is not None:
            return 0, status

        n = self._read_direct(view)
        if n is None:
            return 0, TailStatus.END_OF_STREAM
        return n, TailStatus.OK

    def readinto(self, buffer: Any) -> int:
        """Fill ``buffer`` with the next bytes, blocking until some arrive.

        Returns:
            Number of bytes read; 0 once the reader is closed.

        Raises:
            FileRemovedError: If the file was deleted while waiting.
            FileRenamedError: If the file was renamed while waiting.
        """
        if not len(memoryview(buffer)):
            return 0
        while True:
            n, status = self.read_into(buffer)
            if n:
                return n
            if status is TailStatus.OK:
                continue
            self._raise_if_gone(status)
            return 0

    def read(self, size: int | None = -1) -> bytes:
        """Return the next chunk of at most ``size`` bytes; b"" once closed.

        A negative or None size reads one chunk of DEFAULT_CHUNK_SIZE bytes.
        """
        if size is None or size < 0:
            size = DEFAULT_CHUNK_SIZE
        buf = bytearray(size)
        n = self.readinto(buf)
        return bytes(buf[:n])

    def iter_chunks(
        self, chunk_size: int = DEFAULT_CHUNK_SIZE, timeout: float | None = None
    ) -> Iterator[bytes]:
        """Yield chunks as they are appended until the reader is closed.

        With a timeout, an empty chunk is yielded whenever a wait ends without
        new data, which lets the caller check its own stop conditions.

        Raises:
            FileRemovedError: If the file was deleted while waiting.
            FileRenamedError: If the file was renamed while waiting.
        """
        buf = bytearray(chunk_size)
        while True:
            n, status = self.read_into(buf, timeout)
            if n:
                yield bytes(buf[:n])
            elif status is TailStatus.OK:
                if timeout is not None:
                    yield b""
            else:
                self._raise_if_gone(status)
                return

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_chunks()

    def close(self) -> None:
        """Close the file and the watch. Only the first call does anything.

        A read blocked in another thread returns end-of-stream.

        Raises:
            CloseError: If releasing the file or the watch failed.
        """
        with self._close_lock:
            if self._close_started:
                return
            self._close_started = True

        self._closed.set()
        if self._watch is not None:
            self._watch.wake()

        errors: list[BaseException] = []
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                errors.append(e)
        if self._watch is not None:
            try:
                self._watch.close()
            except Exception as e:
                errors.append(e)

        logger.debug(
            f"Closed tail reader for {self.path}",
            extra={"path": self.path, "offset": self.offset},
        )
        if errors:
            raise CloseError(errors)

    def __enter__(self) -> TailReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<TailReader path={self.path!r} offset={self.offset} {state}>"

    def _read_direct(self, view: memoryview) -> int | None:
        """Read once from the file. Returns None if the reader was closed."""
        if self._closed.is_set():
            return None
        try:
            n = self.file.readinto(view) or 0
        except (OSError, ValueError):
            # close() from another thread may pull the handle out from under us
            if self._closed.is_set():
                return None
            raise
        if n > 0:
            with self._offset_lock:
                self._offset += n
        return n

    def _wait(self, timeout: float | None) -> TailStatus | None:
        """Block until something happens to the file.

        Returns a terminal status, or None when the caller should retry the read.
        """
        if self._watch is None:
            return TailStatus.END_OF_STREAM

        event = self._watch.get(timeout)
        if self._closed.is_set():
            return TailStatus.END_OF_STREAM
        if event is None:
            return None

        if event.kind is ChangeKind.REMOVED:
            if self._still_linked():
                # Moved out of the watched directory: the inode lives on elsewhere.
                logger.info(
                    f"Tailed file renamed out of its directory: {self.path}",
                    extra={"offset": self.offset},
                )
                return TailStatus.RENAMED
            logger.info(f"Tailed file removed: {self.path}", extra={"offset": self.offset})
            return TailStatus.REMOVED
        if event.kind is ChangeKind.RENAMED:
            logger.info(
                f"Tailed file renamed: {self.path} -> {event.dest_path}",
                extra={"offset": self.offset},
            )
            return TailStatus.RENAMED
        return None

    def _still_linked(self) -> bool:
        try:
            return os.fstat(self.file.fileno()).st_nlink > 0
        except (OSError, ValueError):
            return False

    def _raise_if_gone(self, status: TailStatus) -> None:
        if status is TailStatus.REMOVED:
            raise FileRemovedError(self.path, self.offset)
        if status is TailStatus.RENAMED:
            raise FileRenamedError(self.path, self.offset)

    def _abort(self, error: TailSetupError) -> TailSetupError:
        """Release whatever was opened so far and return ``error`` for raising."""
        try:
            self.close()
        except CloseError as e:
            error.cleanup_errors.extend(e.errors)
        logger.error(f"Failed to open tail reader: {error}", extra={"stage": error.stage})
        return error


def open_tail(path: str | os.PathLike[str], offset: int = 0, **kwargs: Any) -> TailReader:
    """Open a TailReader; see ``TailReader.__init__`` for arguments."""
    return TailReader(path, offset, **kwargs)
