"""Configuration for tail readers.

A ``TailConfig`` can be built in code or loaded from a YAML file, either as a
top-level mapping or nested under a ``tail:`` key:

    tail:
      path: /var/log/app.log
      offset: 1024
      wait_timeout: 5
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .reader import DEFAULT_CHUNK_SIZE, TailReader

logger = logging.getLogger(__name__)


@dataclass
class TailConfig:
    """Settings for opening and driving a TailReader.

    Attributes:
        path: File to follow.
        offset: Byte position to start reading from (default: 0).
        follow: Wait for appended data instead of stopping at end of file
            (default: True).
        chunk_size: Bytes requested per read (default: 32 KiB).
        wait_timeout: Seconds a read waits for a change before returning
            empty-handed, or None to wait until a change or close (default: None).
        liveness_interval: Seconds between watch health checks (default: 1.0).
    """

    path: str
    offset: int = 0
    follow: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE
    wait_timeout: float | None = None
    liveness_interval: float = 1.0

    def __post_init__(self) -> None:
        if not isinstance(self.path, str) or not self.path:
            raise ValueError("path must be a non-empty string")
        if isinstance(self.offset, bool) or not isinstance(self.offset, int) or self.offset < 0:
            raise ValueError(f"offset must be a non-negative integer, got {self.offset!r}")
        if not isinstance(self.follow, bool):
            raise ValueError(f"follow must be a boolean, got {self.follow!r}")
        if (
            isinstance(self.chunk_size, bool)
            or not isinstance(self.chunk_size, int)
            or self.chunk_size <= 0
        ):
            raise ValueError(f"chunk_size must be a positive integer, got {self.chunk_size!r}")
        if self.wait_timeout is not None and not _positive_number(self.wait_timeout):
            raise ValueError(f"wait_timeout must be a positive number, got {self.wait_timeout!r}")
        if not _positive_number(self.liveness_interval):
            raise ValueError(
                f"liveness_interval must be a positive number, got {self.liveness_interval!r}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TailConfig:
        """Build a config from a mapping, rejecting unknown keys.

        Raises:
            ValueError: If keys are unknown, missing or hold invalid values.
        """
        if not isinstance(data, dict):
            raise ValueError(f"tail configuration must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown tail configuration keys: {', '.join(unknown)}")
        if "path" not in data:
            raise ValueError("tail configuration requires 'path'")

        values = dict(data)
        if isinstance(values["path"], os.PathLike):
            values["path"] = os.fspath(values["path"])
        return cls(**values)

    def open(self) -> TailReader:
        return TailReader(
            self.path,
            self.offset,
            follow=self.follow,
            liveness_interval=self.liveness_interval,
        )

    def chunks(self, reader: TailReader) -> Iterator[bytes]:
        """Iterate ``reader`` with this config's chunk size and wait timeout."""
        return reader.iter_chunks(self.chunk_size, self.wait_timeout)


def load_tail_config(config_path: str | Path) -> TailConfig:
    """Load a TailConfig from a YAML file.

    Args:
        config_path: YAML file to read.

    Returns:
        Parsed TailConfig.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the YAML is malformed or the settings are invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Tail configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse tail configuration YAML: {e}") from e

    if isinstance(data, dict) and "tail" in data:
        data = data["tail"]

    config = TailConfig.from_dict(data)
    logger.debug(f"Loaded tail configuration from {config_path}", extra={"path": config.path})
    return config


def _positive_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and value > 0
