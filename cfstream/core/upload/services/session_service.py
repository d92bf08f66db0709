"""
Resumable session upload service.

Opens a TUS session and sends the file as consecutive byte ranges.
"""
import time
from typing import Optional

from .file_service import ChunkReader
from ..models import SessionState, UploadProgress, UploadSource
from ..protocols import ProgressSink, StreamAPIProtocol
from ...api.config import MiB
from ...api.models import UploadSession
from ...logging import get_logger


class ResumableSessionUploader:
    """
    Uploads a file through a resumable session.

    State machine: UNOPENED -> OPENED -> COMPLETE. There is no failed
    state: an error propagates and the session is abandoned.

    Each chunk is read, sent and acknowledged before the next one is read.
    The acknowledged offset only advances after a 204 for that chunk.

    Example:
        >>> uploader = ResumableSessionUploader(api, progress=relay)
        >>> video_id = await uploader.upload(source, name="clip.mp4")
    """

    DEFAULT_CHUNK_SIZE = 50 * MiB

    def __init__(
        self,
        api: StreamAPIProtocol,
        progress: Optional[ProgressSink] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ):
        """
        Initialize session uploader.

        Args:
            api: Account API client
            progress: Optional non-blocking progress sink
            chunk_size: Bytes per PATCH request
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self._api = api
        self._progress = progress
        self._chunk_size = chunk_size
        self._state = SessionState.UNOPENED
        self._session: Optional[UploadSession] = None
        self._offset = 0
        self._logger = get_logger('cfstream.upload.session')

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[UploadSession]:
        return self._session

    @property
    def offset(self) -> int:
        """Bytes acknowledged by the service so far."""
        return self._offset

    async def open(
        self,
        source: UploadSource,
        name: Optional[str] = None,
        require_signed_urls: bool = False
    ) -> UploadSession:
        """
        Open the session, declaring the total length.

        Raises:
            TransportError: If the service does not answer 201
            ProtocolViolationError: If the response has no usable Location
        """
        if self._state is not SessionState.UNOPENED:
            raise RuntimeError(f"Session already {self._state.value}")

        self._session = await self._api.open_upload_session(
            source.size, name=name, require_signed_urls=require_signed_urls
        )
        self._state = SessionState.OPENED
        self._logger.info(f"Upload session opened for {self._session.resource_id}")
        return self._session

    async def send_chunks(
        self,
        source: UploadSource,
        start_offset: int = 0
    ) -> int:
        """
        Send the file from ``start_offset`` to the end.

        Args:
            source: Open file to send
            start_offset: First byte to send (0 for a fresh session)

        Returns:
            Final acknowledged offset

        Raises:
            TransportError: On the first chunk not answered with 204
        """
        if self._state is not SessionState.OPENED or self._session is None:
            raise RuntimeError("Session must be opened before sending chunks")

        self._offset = start_offset
        session_url = self._session.session_url
        total_mb = source.size / MiB
        chunks_sent = 0

        async for chunk in ChunkReader(source.handle, self._chunk_size, offset=start_offset):
            chunk_start = time.time()
            await self._api.send_chunk(session_url, self._offset, chunk)

            self._offset += len(chunk)
            chunks_sent += 1

            elapsed = time.time() - chunk_start
            chunk_mb = len(chunk) / MiB
            speed = (chunk_mb / elapsed) if elapsed > 0 else 0
            self._logger.debug(
                f"Chunk {chunks_sent} acknowledged: {self._offset / MiB:.2f}/{total_mb:.2f} MB "
                f"in {elapsed:.2f}s ({speed:.2f} MB/s)"
            )

            if self._progress is not None:
                self._progress.emit(UploadProgress(bytes_sent=self._offset, bytes_total=source.size))

        self._state = SessionState.COMPLETE
        self._logger.info(f"All chunks uploaded: {chunks_sent} chunks, {total_mb:.2f} MB")
        return self._offset

    async def upload(
        self,
        source: UploadSource,
        name: Optional[str] = None,
        require_signed_urls: bool = False
    ) -> str:
        """
        Open a session and send the whole file.

        Returns:
            Video UID obtained when the session was opened
        """
        session = await self.open(source, name=name, require_signed_urls=require_signed_urls)
        await self.send_chunks(source)
        return session.resource_id
