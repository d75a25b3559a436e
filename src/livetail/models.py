"""Data models for the live tail reader.

This module defines the small value types shared by the watch layer and the
reader: change notification kinds, read statuses, and the metadata snapshot
captured when a file is opened.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class ChangeKind(Enum):
    """Kind of filesystem change observed for a watched path.

    Attributes:
        CREATED: A file appeared at the path (created, or moved onto it).
        REMOVED: The file at the path was deleted.
        RENAMED: The file at the path was moved away to another name.
        MODIFIED: The file was written to.
        OTHER: Any other notification (metadata changes and the like).
    """

    CREATED = "created"
    REMOVED = "removed"
    RENAMED = "renamed"
    MODIFIED = "modified"
    OTHER = "other"


class TailStatus(Enum):
    """Outcome of a single ``TailReader.read_into`` call.

    Attributes:
        OK: The call succeeded; it may still have delivered zero bytes after
            a spurious wakeup, in which case the caller should read again.
        END_OF_STREAM: The reader was closed; no more data will be delivered.
        REMOVED: The tracked file was deleted while waiting for data.
        RENAMED: The tracked file was renamed while waiting for data.
    """

    OK = "ok"
    END_OF_STREAM = "end_of_stream"
    REMOVED = "removed"
    RENAMED = "renamed"

    @property
    def terminal(self) -> bool:
        """True when no further data can arrive through this reader."""
        return self is not TailStatus.OK


@dataclass(frozen=True)
class ChangeEvent:
    """A filesystem change notification for one path.

    Attributes:
        kind: What happened to the path.
        path: Absolute path the event refers to.
        dest_path: Destination for move events, otherwise None.
    """

    kind: ChangeKind
    path: str
    dest_path: str | None = None


@dataclass(frozen=True)
class FileSnapshot:
    """File metadata captured once when a reader is opened.

    The snapshot is informational only and is never re-validated; the file
    keeps growing after it is taken.

    Attributes:
        path: Path the file was opened from.
        size: Size in bytes at open time.
        mode: ``st_mode`` bits.
        mtime: Modification time as a POSIX timestamp.
        inode: Inode number (0 where the platform does not report one).
        device: Device identifier.
    """

    path: str
    size: int
    mode: int
    mtime: float
    inode: int
    device: int

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> FileSnapshot:
        return cls(
            path=path,
            size=st.st_size,
            mode=st.st_mode,
            mtime=st.st_mtime,
            inode=int(getattr(st, "st_ino", 0)),
            device=int(getattr(st, "st_dev", 0)),
        )
