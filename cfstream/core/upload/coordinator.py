"""
Upload coordinator.

Orchestrates the upload process using injected dependencies.
Depends on the StreamAPIProtocol abstraction, not on a concrete client.
"""
import time
from pathlib import Path
from typing import Optional, Union

import aiofiles

from .models import UploadSource
from .protocols import ProgressSink, StreamAPIProtocol
from .services import FileValidator, MultipartUploader, ResumableSessionUploader
from .strategies import TransportStrategy, select_strategy
from ..api.config import MiB, UploadConfig
from ..api.models import DirectUploadOptions, UploadOptions, Video
from ..logging import get_logger

logger = get_logger('cfstream.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates the file upload process.

    Picks one of two transports from the file size, runs it, then re-reads
    the video record: neither transport's own response carries the
    processing state. Errors propagate unchanged and nothing is retried;
    a caller that wants a retry calls ``upload`` again from the start.
    """

    def __init__(
        self,
        api_client: StreamAPIProtocol,
        config: Optional[UploadConfig] = None,
        progress: Optional[ProgressSink] = None,
        proxy: Optional[str] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            api_client: Stream API client
            config: Upload tuning (threshold, chunk sizes)
            progress: Default progress sink for every upload
            proxy: Optional proxy URL for direct uploads
        """
        self._api = api_client
        self._config = config or UploadConfig()
        self._progress = progress
        self._proxy = proxy
        self._validator = FileValidator()

    @property
    def config(self) -> UploadConfig:
        return self._config

    async def upload(
        self,
        file_path: Union[str, Path],
        options: Optional[UploadOptions] = None,
        progress: Optional[ProgressSink] = None
    ) -> Video:
        """
        Execute the complete upload process.

        Args:
            file_path: Local file to upload
            options: Name, metadata and playback settings; name defaults
                to the file name
            progress: Progress sink for this call (overrides the default)

        Returns:
            The video record fetched after the upload

        Raises:
            InvalidInputError: If the path is empty, missing or the file is empty
            TransportError: If any HTTP step fails
            ProtocolViolationError: If the service response is unusable
        """
        path, file_size = self._validator.validate(file_path)
        options = options or UploadOptions()
        if not options.name:
            options = options.with_name(path.name)
        sink = progress if progress is not None else self._progress

        strategy = select_strategy(file_size, self._config.resumable_threshold)
        file_size_mb = file_size / MiB
        logger.info(f"Starting upload: {path.name} ({file_size_mb:.2f} MB) via {strategy.value}")

        upload_start = time.time()
        async with aiofiles.open(path, 'rb') as handle:
            source = UploadSource(path=path, handle=handle, size=file_size)
            if strategy is TransportStrategy.RESUMABLE_SESSION:
                video_id = await self._upload_resumable(source, options, sink)
            else:
                video_id = await self._upload_multipart(source, options, sink)

        elapsed = time.time() - upload_start
        logger.info(f"Upload finished in {elapsed:.2f}s, fetching video {video_id}")

        return await self._api.get_video(video_id)

    async def _upload_multipart(
        self,
        source: UploadSource,
        options: UploadOptions,
        sink: Optional[ProgressSink]
    ) -> str:
        """Direct upload URL, then one multipart POST. The UID comes from the URL response."""
        direct = await self._api.create_direct_upload_url(DirectUploadOptions(
            max_duration_seconds=self._config.max_duration_seconds,
            require_signed_urls=options.require_signed_urls,
            meta=options.to_meta() or None
        ))
        logger.debug(f"Direct upload URL obtained for {direct.uid}")

        session = await self._api.get_session()
        uploader = MultipartUploader(
            session,
            progress=sink,
            buffer_size=self._config.multipart_buffer_size,
            proxy=self._proxy
        )
        await uploader.upload(direct.upload_url, source)
        return direct.uid

    async def _upload_resumable(
        self,
        source: UploadSource,
        options: UploadOptions,
        sink: Optional[ProgressSink]
    ) -> str:
        """TUS session. The UID comes from the session Location header."""
        uploader = ResumableSessionUploader(
            self._api,
            progress=sink,
            chunk_size=self._config.chunk_size
        )
        return await uploader.upload(
            source,
            name=options.name,
            require_signed_urls=options.require_signed_urls
        )
