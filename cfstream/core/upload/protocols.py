"""
Protocol definitions for upload module.

Defines the interfaces the upload engine depends on, so the API client and
progress rendering can be swapped (or mocked) without touching the engine.
"""
from typing import Protocol, Optional

import aiohttp

from .models import UploadProgress
from ..api.models import DirectUpload, DirectUploadOptions, UploadSession, Video


class StreamAPIProtocol(Protocol):
    """Account API capabilities used by the upload engine."""

    async def get_session(self) -> aiohttp.ClientSession:
        """Returns the shared HTTP session."""
        ...

    async def open_upload_session(
        self,
        total_bytes: int,
        name: Optional[str] = None,
        require_signed_urls: bool = False
    ) -> UploadSession:
        """
        Open a resumable upload session.

        Args:
            total_bytes: Declared total file length
            name: Optional video name
            require_signed_urls: Ask for signed playback tokens

        Returns:
            Session with resource ID and target URL
        """
        ...

    async def send_chunk(self, session_url: str, offset: int, data: bytes) -> None:
        """
        Send one chunk at an explicit byte offset.

        Raises:
            TransportError: On any status other than 204
        """
        ...

    async def create_direct_upload_url(
        self,
        options: Optional[DirectUploadOptions] = None
    ) -> DirectUpload:
        """Obtain a one-time upload URL and the UID it will create."""
        ...

    async def get_video(self, video_id: str) -> Video:
        """Fetch the authoritative video record."""
        ...


class ProgressSink(Protocol):
    """Anything that accepts progress without blocking."""

    def emit(self, progress: UploadProgress) -> bool:
        """Offer an update; returns False if it was dropped."""
        ...
