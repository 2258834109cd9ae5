import asyncio
import logging
from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class BlobWriteStream:
    """
    Writable pass-through sink for streaming uploads.

    Bytes written here are handed to the upload consuming the stream as they
    arrive, through a bounded queue: a writer that gets ahead of the backend
    waits instead of buffering the whole payload. ``close()`` marks the end
    of the content.
    """

    def __init__(self, max_pending_chunks: int = 16) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(
            maxsize=max_pending_chunks
        )
        self._closed = False
        self._error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, data: bytes) -> None:
        if self._error is not None:
            raise self._error
        if self._closed:
            raise ValueError("write to closed stream")
        if not data:
            return
        await self._queue.put(bytes(data))
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._error is None:
            await self._queue.put(None)

    async def __aenter__(self) -> "BlobWriteStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk

    def abort(self, error: BaseException) -> None:
        """Fail the stream: blocked and future writes raise ``error``."""
        self._error = error
        # Drain so writers waiting on a full queue wake up
        while not self._queue.empty():
            self._queue.get_nowait()

    def attach(self, completion: "asyncio.Future[None]") -> None:
        """Abort the stream if the upload consuming it fails."""

        def _on_done(fut: "asyncio.Future[None]") -> None:
            if fut.cancelled():
                self.abort(asyncio.CancelledError())
            elif fut.exception() is not None:
                logger.debug("Streaming upload failed: %r", fut.exception())
                self.abort(fut.exception())

        completion.add_done_callback(_on_done)
