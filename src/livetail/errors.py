"""Exception hierarchy for livetail.

Open failures from the operating system are not wrapped: the original
``OSError`` reaches the caller unchanged. Everything else raised by this
package derives from ``TailError``.
"""

from __future__ import annotations


class TailError(Exception):
    """Base class for errors raised by livetail."""


class TailSetupError(TailError):
    """A reader could not be fully constructed.

    Attributes:
        path: File the reader was being opened for.
        cleanup_errors: Failures raised while tearing down the partially
            opened reader. They never replace the setup error itself.
    """

    stage = "setup"

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path
        self.cleanup_errors: list[BaseException] = []


class SeekError(TailSetupError):
    stage = "seek"


class StatError(TailSetupError):
    stage = "stat"


class WatchSetupError(TailSetupError):
    stage = "watch"


class WatcherError(TailError):
    """The change notification subscription failed while a read was waiting.

    Fatal for the reader: callers should close it and give up on it.
    """


class TailTerminated(TailError):
    """The tracked file went away; raised by the stream-style read methods."""

    def __init__(self, path: str, offset: int):
        super().__init__(f"{self.reason}: {path} (offset {offset})")
        self.path = path
        self.offset = offset

    reason = "file terminated"


class FileRemovedError(TailTerminated):
    reason = "file removed"


class FileRenamedError(TailTerminated):
    reason = "file renamed"


class CloseError(TailError):
    """One or more resources failed to release during close.

    Attributes:
        errors: Every release failure, in release order.
    """

    def __init__(self, errors: list[BaseException]):
        details = "; ".join(f"{type(e).__name__}: {e}" for e in errors)
        super().__init__(f"close failed: {details}")
        self.errors = errors
