"""
Progress relay service.

Carries progress updates from the transfer loop to a renderer running as
its own task. The transfer side never waits: when the queue is full the
update is dropped.
"""
import asyncio
import inspect
from typing import Any, Callable, Optional

from ..models import UploadProgress
from ...logging import get_logger

ProgressCallback = Callable[[UploadProgress], Any]

_CLOSE = object()


class ProgressRelay:
    """
    Bounded single-producer/single-consumer progress channel.

    Example:
        >>> relay = ProgressRelay(maxsize=10)
        >>> relay.start(lambda p: print(f"{p.percentage:.0f}%"))
        >>> relay.emit(UploadProgress(bytes_sent=5, bytes_total=10))
        True
        >>> await relay.close()
    """

    DEFAULT_MAXSIZE = 10

    def __init__(self, maxsize: int = DEFAULT_MAXSIZE):
        if maxsize <= 0:
            raise ValueError("Relay capacity must be positive")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._consumer: Optional[asyncio.Task] = None
        self._dropped = 0
        self._logger = get_logger('cfstream.upload.progress')

    @property
    def dropped(self) -> int:
        """Number of updates discarded because the queue was full."""
        return self._dropped

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def emit(self, progress: UploadProgress) -> bool:
        """
        Offer an update without blocking.

        Returns:
            True if queued, False if dropped
        """
        try:
            self._queue.put_nowait(progress)
            return True
        except asyncio.QueueFull:
            self._dropped += 1
            self._logger.debug(
                f"Progress queue full, dropping update ({progress.bytes_sent}/{progress.bytes_total})"
            )
            return False

    def start(self, callback: ProgressCallback) -> 'ProgressRelay':
        """
        Start the consumer task.

        Args:
            callback: Called with each update; may be sync or async
        """
        if self.running:
            raise RuntimeError("Progress relay already has a consumer")
        self._consumer = asyncio.create_task(self._consume(callback))
        return self

    async def _consume(self, callback: ProgressCallback) -> None:
        while True:
            item = await self._queue.get()
            if item is _CLOSE:
                break
            try:
                result = callback(item)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # Rendering problems never affect the transfer
                self._logger.warning(f"Progress callback failed: {e}")

    async def close(self) -> None:
        """Deliver queued updates, then stop the consumer."""
        if self._consumer is None:
            return
        if not self._consumer.done():
            await self._queue.put(_CLOSE)
        await self._consumer
        self._consumer = None

    async def __aenter__(self) -> 'ProgressRelay':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
