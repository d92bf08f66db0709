"""
Upload facade.

Provides a simplified interface for file uploads.
Hides the coordinator and the progress relay wiring.
"""
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .coordinator import UploadCoordinator
from .protocols import StreamAPIProtocol
from .services import ProgressRelay
from .services.progress_service import ProgressCallback
from ..api.config import UploadConfig
from ..api.models import UploadOptions, Video


class UploadFacade:
    """
    Simplified interface for video uploads.

    Runs the progress callback in its own task, fed through a bounded
    ProgressRelay, so a slow renderer cannot stall the transfer.

    Example:
        >>> uploader = UploadFacade(api_client)
        >>> video = await uploader.upload("clip.mp4", progress_callback=print)
        >>> print(video.uid, video.status)
    """

    def __init__(
        self,
        api_client: StreamAPIProtocol,
        config: Optional[UploadConfig] = None,
        proxy: Optional[str] = None
    ):
        """
        Initialize upload facade.

        Args:
            api_client: Stream API client
            config: Optional upload tuning
            proxy: Optional proxy URL for direct uploads
        """
        self._config = config or UploadConfig()
        self._coordinator = UploadCoordinator(
            api_client=api_client,
            config=self._config,
            proxy=proxy
        )

    async def upload(
        self,
        file_path: Union[str, Path],
        name: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        require_signed_urls: bool = True,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Video:
        """
        Upload a video file.

        Args:
            file_path: Path to file to upload
            name: Optional video name (defaults to the file name)
            metadata: Optional key/value metadata
            require_signed_urls: Require signed tokens for playback
            progress_callback: Called with UploadProgress updates (sync or async)

        Returns:
            Video record after upload
        """
        options = UploadOptions(
            name=name,
            metadata=metadata or {},
            require_signed_urls=require_signed_urls
        )
        return await self.upload_with_options(file_path, options, progress_callback)

    async def upload_with_options(
        self,
        file_path: Union[str, Path],
        options: UploadOptions,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Video:
        """Upload using explicit options."""
        if progress_callback is None:
            return await self._coordinator.upload(file_path, options)

        relay = ProgressRelay(maxsize=self._config.progress_queue_size)
        relay.start(progress_callback)
        try:
            return await self._coordinator.upload(file_path, options, progress=relay)
        finally:
            await relay.close()
