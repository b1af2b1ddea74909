"""Asynchronous progress result stream.

A :class:`ProgressStream` is the hand-off between the task reading ffmpeg's
progress connection and the caller. It is an unbounded queue, so the reader
never waits on a slow consumer and ffmpeg is never stalled by it. The cost
is unbounded memory if nobody reads.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TypeAlias

from ffmpeg_cli.exceptions import ProgressError
from ffmpeg_cli.progress import Progress

logger = logging.getLogger(__name__)

ProgressItem: TypeAlias = Progress | ProgressError

# Queued after the last item
_END = object()


class ProgressStream:
    """Ordered async sequence of ``Progress | ProgressError`` items.

    Single producer, single consumer. The producer calls :meth:`publish`
    and finally :meth:`close`; the consumer iterates with ``async for`` and
    may stop early with :meth:`cancel`.

    Example:
        async for item in job.progress:
            if isinstance(item, ProgressError):
                raise item
            print(item.frame)
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._cancelled = False

    @property
    def closed(self) -> bool:
        """True once the producer has ended the stream."""
        return self._closed

    @property
    def cancelled(self) -> bool:
        """True once the consumer has stopped reading."""
        return self._cancelled

    def publish(self, item: ProgressItem) -> bool:
        """Append an item. Never blocks.

        Args:
            item: Snapshot or error to deliver.

        Returns:
            False if the item was dropped because the stream is closed or
            the consumer has gone away.
        """
        if self._closed or self._cancelled:
            return False
        self._queue.put_nowait(item)
        return True

    def close(self) -> None:
        """End the stream. Items already published are still delivered."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END)

    def cancel(self) -> None:
        """Stop consuming; later publishes are silently dropped.

        This does not stop ffmpeg or the reader task.
        """
        if self._cancelled:
            return
        self._cancelled = True
        while not self._queue.empty():
            self._queue.get_nowait()
        logger.debug("Progress consumer cancelled")

    def __aiter__(self) -> ProgressStream:
        return self

    async def __anext__(self) -> ProgressItem:
        if self._cancelled:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            # Leave the marker for any later __anext__ call
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def collect(self) -> list[ProgressItem]:
        """Read every remaining item until the stream ends."""
        return [item async for item in self]
