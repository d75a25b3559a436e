"""Shared fixtures for livetail tests."""

from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from livetail.reader import TailReader


@pytest.fixture
def empty_log_file(tmp_path: Path) -> Path:
    """Create empty log file."""
    log_file = tmp_path / "app.log"
    log_file.write_bytes(b"")
    return log_file


@pytest.fixture
def hello_log_file(tmp_path: Path) -> Path:
    """Create log file that already holds some content."""
    log_file = tmp_path / "hello.log"
    log_file.write_bytes(b"hello world")
    return log_file


@pytest.fixture
def open_reader() -> Iterator[Callable[..., TailReader]]:
    """Open TailReaders that are closed again at teardown."""
    readers: list[TailReader] = []

    def _open(path: Path, offset: int = 0, **kwargs) -> TailReader:
        reader = TailReader(path, offset, **kwargs)
        readers.append(reader)
        return reader

    yield _open

    for reader in readers:
        reader.close()


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    """Thread pool for running blocking reads in the background."""
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=False, cancel_futures=True)
