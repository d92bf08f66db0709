"""
Single-shot multipart upload service.

Streams a whole file as one multipart/form-data POST to a direct upload URL.
"""
import asyncio
import time
from typing import AsyncIterator, Optional

import aiohttp

from .file_service import ChunkReader
from ..models import UploadProgress, UploadSource
from ..protocols import ProgressSink
from ...api.config import MiB
from ...exceptions import TransportError
from ...logging import get_logger


class MultipartUploader:
    """
    Uploads a file in one multipart/form-data request.

    The file is read in ``buffer_size`` pieces and fed straight into the
    request body, so memory use stays flat whatever the file size. One
    progress update is emitted per piece written.

    Responsibilities:
    - Build the multipart body around a streaming file part
    - Send exactly one POST
    - Treat anything but 200/201 as failure
    """

    DEFAULT_BUFFER_SIZE = 1 * MiB
    FIELD_NAME = 'file'

    def __init__(
        self,
        session: aiohttp.ClientSession,
        progress: Optional[ProgressSink] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        proxy: Optional[str] = None
    ):
        """
        Initialize multipart uploader.

        Args:
            session: Shared HTTP session
            progress: Optional non-blocking progress sink
            buffer_size: Bytes read from disk per body piece
            timeout: Optional per-request timeout override
            proxy: Optional proxy URL
        """
        if buffer_size <= 0:
            raise ValueError("Buffer size must be positive")
        self._session = session
        self._progress = progress
        self._buffer_size = buffer_size
        self._timeout = timeout
        self._proxy = proxy
        self._logger = get_logger('cfstream.upload.multipart')

    async def upload(self, upload_url: str, source: UploadSource) -> None:
        """
        Stream ``source`` to ``upload_url``.

        Args:
            upload_url: One-time direct upload URL
            source: Open file to send

        Raises:
            TransportError: On network failure or a status other than 200/201
        """
        size_mb = source.size / MiB
        self._logger.info(f"Multipart upload: {source.name} ({size_mb:.2f} MB)")

        writer = self._build_body(source)
        kwargs = {}
        if self._timeout is not None:
            kwargs['timeout'] = self._timeout

        upload_start = time.time()
        try:
            async with self._session.post(
                upload_url,
                data=writer,
                proxy=self._proxy,
                **kwargs
            ) as response:
                status = response.status
                text = await response.text()
        except aiohttp.ClientError as e:
            elapsed = time.time() - upload_start
            self._logger.error(f"Multipart upload failed after {elapsed:.2f}s: {e}")
            raise TransportError(f"multipart upload failed: {e}") from e
        except asyncio.TimeoutError as e:
            elapsed = time.time() - upload_start
            self._logger.error(f"Multipart upload timeout after {elapsed:.2f}s")
            raise TransportError("multipart upload timed out") from e

        if status not in (200, 201):
            self._logger.error(f"Multipart upload rejected: HTTP {status}")
            raise TransportError.from_status(status, text, 'multipart upload')

        elapsed = time.time() - upload_start
        speed = (size_mb / elapsed) if elapsed > 0 else 0
        self._logger.info(f"Multipart upload completed in {elapsed:.2f}s ({speed:.2f} MB/s)")

    def _build_body(self, source: UploadSource) -> aiohttp.MultipartWriter:
        writer = aiohttp.MultipartWriter('form-data')
        part = writer.append(
            self._stream_file(source),
            {'Content-Type': 'application/octet-stream'}
        )
        part.set_content_disposition('form-data', name=self.FIELD_NAME, filename=source.name)
        return writer

    async def _stream_file(self, source: UploadSource) -> AsyncIterator[bytes]:
        written = 0
        async for chunk in ChunkReader(source.handle, self._buffer_size):
            yield chunk
            # Resumed only after the transport took the piece
            written += len(chunk)
            if self._progress is not None:
                self._progress.emit(UploadProgress(bytes_sent=written, bytes_total=source.size))
