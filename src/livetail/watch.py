"""Filesystem change notifications for a single path, backed by watchdog.

A ``PathWatch`` schedules a non-recursive watchdog handler on the parent
directory of the tracked file and turns the events that concern that file
into ``ChangeEvent`` items on a thread-safe queue. Writes that arrive while an
earlier one is still queued are folded into it, so a burst of appends wakes
the reader once. A reader waiting for data blocks on that queue; closing the
reader posts a wake token so the wait ends immediately.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatcherError, WatchSetupError
from .models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

# Access notifications say nothing about new content, and every close after a
# write follows a "modified" for the same write.
_IGNORED_EVENT_TYPES = frozenset({"opened", "closed", "closed_no_write"})

_TERMINAL_KINDS = frozenset({ChangeKind.REMOVED, ChangeKind.RENAMED})

_WAKE = object()


class _PathEventHandler(FileSystemEventHandler):
    """Translates watchdog events for one path and hands them to ``sink``."""

    def __init__(self, targets: frozenset[str], sink: Callable[[object], None]):
        super().__init__()
        self._targets = targets
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            change = self._translate(event)
        except Exception as e:
            logger.error(f"Failed to translate filesystem event {event!r}: {e}")
            self._sink(e)
            return
        if change is not None:
            self._sink(change)

    def _translate(self, event: FileSystemEvent) -> ChangeEvent | None:
        if event.is_directory or event.event_type in _IGNORED_EVENT_TYPES:
            return None

        src = os.fsdecode(event.src_path)
        dest = os.fsdecode(getattr(event, "dest_path", "") or "") or None

        if event.event_type == "moved":
            if src in self._targets:
                return ChangeEvent(ChangeKind.RENAMED, src, dest)
            if dest in self._targets:
                return ChangeEvent(ChangeKind.CREATED, dest, None)
            return None

        if src not in self._targets:
            return None

        if event.event_type == "deleted":
            kind = ChangeKind.REMOVED
        elif event.event_type == "created":
            kind = ChangeKind.CREATED
        elif event.event_type == "modified":
            kind = ChangeKind.MODIFIED
        else:
            kind = ChangeKind.OTHER
        return ChangeEvent(kind, src, dest)


class PathWatch:
    """Change notification subscription scoped to one file path.

    Attributes:
        path: Absolute path of the watched file.
        liveness_interval: Seconds between observer health checks while
            ``get`` is blocked.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        liveness_interval: float = 1.0,
        observer_factory: Callable[[], Any] = Observer,
    ):
        self.path = os.path.abspath(os.fspath(path))
        self.liveness_interval = liveness_interval
        self._directory = os.path.dirname(self.path)
        # Some platforms report the resolved directory (e.g. /private/var on macOS).
        targets = {
            self.path,
            os.path.join(os.path.realpath(self._directory), os.path.basename(self.path)),
        }
        self._queue: queue.Queue = queue.Queue()
        # At most one non-terminal change waits in the queue at a time.
        self._change_pending = False
        self._pending_lock = threading.Lock()
        self._handler = _PathEventHandler(frozenset(targets), self._post)
        self._observer_factory = observer_factory
        self._observer: Any = None
        self._lock = threading.Lock()
        self._closed = False

    def start(self) -> None:
        """Start delivering notifications.

        Raises:
            WatchSetupError: If the observer cannot be created or scheduled.
        """
        try:
            observer = self._observer_factory()
            observer.schedule(self._handler, self._directory, recursive=False)
            observer.daemon = True
            observer.start()
        except Exception as e:
            raise WatchSetupError(
                f"create notify watcher failed for {self.path}: {e}", self.path
            ) from e

        self._observer = observer
        logger.debug(
            "Watching path for changes",
            extra={"path": self.path, "directory": self._directory},
        )

    def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Block until the next change for the path.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely.

        Returns:
            The next ChangeEvent, or None when woken by ``wake()`` or when the
            timeout elapsed.

        Raises:
            WatcherError: If the subscription failed.
        """
        remaining = timeout
        while True:
            interval = self.liveness_interval
            if remaining is not None:
                interval = min(interval, remaining)
            try:
                item = self._queue.get(timeout=max(interval, 0))
            except queue.Empty:
                if remaining is not None:
                    remaining -= interval
                    if remaining <= 0:
                        return None
                self._check_alive()
                continue

            if item is _WAKE:
                return None
            if isinstance(item, BaseException):
                raise WatcherError(f"watcher error occurred: {item}") from item
            if item.kind not in _TERMINAL_KINDS:
                with self._pending_lock:
                    self._change_pending = False
            return item

    def _post(self, item: object) -> None:
        """Queue an item, folding repeated non-terminal changes into one."""
        if isinstance(item, ChangeEvent) and item.kind not in _TERMINAL_KINDS:
            with self._pending_lock:
                if self._change_pending:
                    return
                self._change_pending = True
        self._queue.put(item)

    def wake(self) -> None:
        """Release one pending or future ``get`` call."""
        self._queue.put(_WAKE)

    def close(self) -> None:
        """Stop the observer. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self.wake()
        observer = self._observer
        if observer is None:
            return
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=5)
        logger.debug("Stopped watching path", extra={"path": self.path})

    def _check_alive(self) -> None:
        if self._closed or self._observer is None:
            return
        if not self._observer.is_alive():
            raise WatcherError(f"watcher error occurred: observer for {self.path} stopped")
        for emitter in getattr(self._observer, "emitters", ()):
            if not emitter.is_alive():
                raise WatcherError(
                    f"watcher error occurred: event emitter for {self.path} stopped"
                )
