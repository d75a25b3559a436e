"""asyncio facade over TailReader.

The blocking reads run in a worker thread so the event loop stays free while
a read waits for the file to grow.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from typing import Any

from .models import TailStatus
from .reader import TailReader

logger = logging.getLogger(__name__)


class AsyncTailReader:
    """Awaitable wrapper around a TailReader.

    A thread blocked in a read can only be released by closing the reader,
    so cancelling a pending read closes it.

    Example:
        >>> async with await AsyncTailReader.open("/var/log/app.log") as reader:
        ...     async for chunk in reader:
        ...         await handle(chunk)
    """

    def __init__(self, reader: TailReader):
        self._reader = reader

    @classmethod
    async def open(
        cls, path: str | os.PathLike[str], offset: int = 0, **kwargs: Any
    ) -> AsyncTailReader:
        reader = await asyncio.to_thread(TailReader, path, offset, **kwargs)
        return cls(reader)

    @property
    def reader(self) -> TailReader:
        return self._reader

    @property
    def offset(self) -> int:
        return self._reader.offset

    @property
    def closed(self) -> bool:
        return self._reader.closed

    def length(self) -> int:
        return self._reader.length()

    async def read_into(self, buffer: Any, timeout: float | None = None) -> tuple[int, TailStatus]:
        return await self._run(self._reader.read_into, buffer, timeout)

    async def read(self, size: int | None = -1) -> bytes:
        return await self._run(self._reader.read, size)

    async def aclose(self) -> None:
        await asyncio.to_thread(self._reader.close)

    async def _run(self, func: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except asyncio.CancelledError:
            logger.debug(f"Read cancelled, closing tail reader for {self._reader.path}")
            # Closing joins the observer thread; keep that off the event loop.
            await asyncio.shield(asyncio.to_thread(self._reader.close))
            raise

    async def __aenter__(self) -> AsyncTailReader:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iter_chunks()

    async def _iter_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.read()
            if not chunk:
                return
            yield chunk
