"""Live tail reading for files that are still being written.

This package provides a blocking reader that follows a growing file using
filesystem change notifications, plus an asyncio facade and YAML-backed
configuration.

Key Components:
    - reader: TailReader, the blocking tail reader, and open_tail
    - async_reader: AsyncTailReader for asyncio callers
    - watch: PathWatch, change notifications for one path via watchdog
    - models: ChangeKind, ChangeEvent, TailStatus and FileSnapshot
    - errors: exception hierarchy rooted at TailError
    - config: TailConfig and load_tail_config
    - logging_setup: configure_logging

Example:
    >>> from livetail import TailStatus, open_tail
    >>> reader = open_tail("/var/log/app.log")
    >>> buf = bytearray(4096)
    >>> n, status = reader.read_into(buf)
    >>> if status is TailStatus.RENAMED:
    ...     reader.close()
"""

from __future__ import annotations

from .async_reader import AsyncTailReader
from .config import TailConfig, load_tail_config
from .errors import (
    CloseError,
    FileRemovedError,
    FileRenamedError,
    SeekError,
    StatError,
    TailError,
    TailSetupError,
    TailTerminated,
    WatcherError,
    WatchSetupError,
)
from .logging_setup import configure_logging
from .models import ChangeEvent, ChangeKind, FileSnapshot, TailStatus
from .reader import DEFAULT_CHUNK_SIZE, UNBOUNDED_LENGTH, TailReader, open_tail
from .watch import PathWatch

__all__ = [
    "AsyncTailReader",
    "ChangeEvent",
    "ChangeKind",
    "CloseError",
    "DEFAULT_CHUNK_SIZE",
    "FileRemovedError",
    "FileRenamedError",
    "FileSnapshot",
    "PathWatch",
    "SeekError",
    "StatError",
    "TailConfig",
    "TailError",
    "TailReader",
    "TailSetupError",
    "TailStatus",
    "TailTerminated",
    "UNBOUNDED_LENGTH",
    "WatchSetupError",
    "WatcherError",
    "configure_logging",
    "load_tail_config",
    "open_tail",
]

__version__ = "0.1.0"
