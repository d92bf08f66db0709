"""
High-level Stream client.

Ties settings, the API client and the upload engine together.
"""
import asyncio
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Union

from .core.api import (
    APIConfig,
    AsyncStreamClient,
    DirectUpload,
    DirectUploadOptions,
    ListOptions,
    UpdateOptions,
    UploadOptions,
    Video,
)
from .core.exceptions import ProcessingError
from .core.logging import get_logger
from .core.settings import StreamSettings
from .core.upload import UploadFacade
from .core.upload.services.progress_service import ProgressCallback

logger = get_logger('cfstream.client')


class StreamClient:
    """
    Video service client.

    Example:
        >>> async with StreamClient(StreamSettings.load().check()) as stream:
        ...     video = await stream.upload("clip.mp4", progress_callback=print)
        ...     video = await stream.wait_until_ready(video.uid)
    """

    def __init__(self, config: Union[StreamSettings, APIConfig]):
        """
        Args:
            config: Loaded settings or a ready API configuration
        """
        if isinstance(config, StreamSettings):
            config = config.to_api_config()
        self._config = config
        self._api = AsyncStreamClient(config)
        self._uploader = UploadFacade(
            self._api,
            config=config.upload,
            proxy=config.proxy_url
        )

    @property
    def api(self) -> AsyncStreamClient:
        return self._api

    async def __aenter__(self) -> 'StreamClient':
        await self._api.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._api.close()

    async def upload(
        self,
        file_path: Union[str, Path],
        name: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        require_signed_urls: bool = True,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Video:
        """
        Upload a local video file.

        Files below the resumable threshold are sent as one multipart POST,
        larger files through a resumable session.

        Args:
            file_path: Local file path
            name: Optional video name (defaults to the file name)
            metadata: Optional key/value metadata
            require_signed_urls: Require signed tokens for playback
            progress_callback: Called with UploadProgress updates

        Returns:
            Video record fetched after the upload
        """
        return await self._uploader.upload(
            file_path,
            name=name,
            metadata=metadata,
            require_signed_urls=require_signed_urls,
            progress_callback=progress_callback
        )

    async def upload_from_url(self, url: str, options: Optional[UploadOptions] = None) -> Video:
        return await self._api.upload_from_url(url, options)

    async def create_direct_upload_url(
        self,
        options: Optional[DirectUploadOptions] = None
    ) -> DirectUpload:
        return await self._api.create_direct_upload_url(options)

    async def get_video(self, video_id: str) -> Video:
        return await self._api.get_video(video_id)

    async def list_videos(self, options: Optional[ListOptions] = None) -> List[Video]:
        return await self._api.list_videos(options)

    async def delete_video(self, video_id: str) -> None:
        await self._api.delete_video(video_id)

    async def update_video(self, video_id: str, options: UpdateOptions) -> Video:
        return await self._api.update_video(video_id, options)

    async def wait_until_ready(
        self,
        video_id: str,
        interval: float = 5.0,
        max_attempts: int = 60,
        on_status: Optional[Callable[[Video], Any]] = None
    ) -> Video:
        """
        Poll a video until it is ready to stream.

        Args:
            video_id: Video UID
            interval: Seconds between polls
            max_attempts: Maximum number of polls
            on_status: Optional callback with each polled record

        Returns:
            The last polled record (may still be processing after
            ``max_attempts``)

        Raises:
            ProcessingError: If the service reports a processing error
        """
        video = None
        for _ in range(max_attempts):
            await asyncio.sleep(interval)
            video = await self._api.get_video(video_id)

            if video.ready_to_stream:
                logger.info(f"Video {video_id} ready for streaming")
                return video

            if video.status == 'error':
                raise ProcessingError(
                    f"Video processing failed: {video.status_details}",
                    video_id=video_id
                )

            if on_status is not None:
                on_status(video)

        logger.info(f"Video {video_id} still processing after {max_attempts} checks")
        return video if video is not None else await self._api.get_video(video_id)
