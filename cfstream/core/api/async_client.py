"""
Async Stream API client.

Fully asynchronous client for the video service REST and TUS endpoints.
"""
import asyncio
import base64
import json
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

import aiohttp

from .config import APIConfig
from .models import (
    DirectUpload,
    DirectUploadOptions,
    ListOptions,
    UpdateOptions,
    UploadOptions,
    UploadSession,
    Video,
)
from ..exceptions import (
    InvalidInputError,
    ProtocolViolationError,
    TransportError,
)
from ..logging import get_logger


TUS_VERSION = '1.0.0'


def resource_id_from_location(location: str, endpoint: Optional[str] = None) -> str:
    """
    Extract the video UID from a session Location URL.

    The UID is the last path segment; query string and trailing slash are
    ignored. When ``endpoint`` is given, a Location that resolves to the
    endpoint itself or one of its parents is rejected.

    Raises:
        ProtocolViolationError: If no usable segment is present
    """
    path = urlsplit(location).path.rstrip('/')
    segment = path.rsplit('/', 1)[-1] if path else ''
    if endpoint is not None:
        endpoint_path = urlsplit(endpoint).path.rstrip('/')
        if len(path) <= len(endpoint_path) and endpoint_path.startswith(path):
            segment = ''
    if not segment:
        raise ProtocolViolationError(
            f"Could not extract video ID from upload location: {location!r}"
        )
    return segment


def encode_upload_metadata(pairs: Iterable[Tuple[str, Optional[str]]]) -> str:
    """
    Build a TUS ``Upload-Metadata`` header value.

    Values are base64 encoded; a None value emits the bare key.
    """
    parts = []
    for key, value in pairs:
        if value is None:
            parts.append(key)
        else:
            encoded = base64.b64encode(value.encode('utf-8')).decode('ascii')
            parts.append(f"{key} {encoded}")
    return ','.join(parts)


class AsyncStreamClient:
    """
    Asynchronous Stream API client.

    Features:
    - Full async/await support
    - Configurable proxy, SSL, timeouts
    - Connection pooling through one shared ClientSession
    - Resumable (TUS) session open and chunk PATCH
    - HTTP status mapped to typed errors

    Example:
        >>> config = APIConfig(account_id="abc", api_token="token")
        >>> async with AsyncStreamClient(config) as client:
        ...     video = await client.get_video("uid")
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
            session: Optional externally owned ClientSession
        """
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger('cfstream.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    async def __aenter__(self) -> 'AsyncStreamClient':
        """Async context manager entry."""
        await self.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def get_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close client and release resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _stream_url(self, *parts: str) -> str:
        return '/'.join([self._config.stream_url, *parts])

    async def _send(
        self,
        method: str,
        url: str,
        context: str,
        expected: Tuple[int, ...],
        **kwargs
    ) -> Tuple[int, Any, str]:
        """
        Execute one request and read its body.

        Returns:
            (status, headers, body text)

        Raises:
            TransportError: On network failure or unexpected status
        """
        session = await self.get_session()
        headers = {**self._config.auth_headers(), **kwargs.pop('headers', {})}

        self._logger.debug(f"{method} {url} ({context})")
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                proxy=self._config.proxy_url,
                **kwargs
            ) as response:
                text = await response.text()
                status = response.status
                response_headers = response.headers
        except aiohttp.ClientError as e:
            self._logger.error(f"Network error during {context}: {e}")
            raise TransportError(f"{context} failed: {e}") from e
        except asyncio.TimeoutError as e:
            self._logger.error(f"Timeout during {context}")
            raise TransportError(f"{context} timed out") from e

        if status not in expected:
            self._logger.error(f"{context} returned HTTP {status}")
            raise TransportError.from_status(status, text, context)

        return status, response_headers, text

    def _parse_result(self, text: str, context: str) -> Any:
        """Unwrap the ``{success, errors, result}`` envelope."""
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise ProtocolViolationError(f"{context}: response is not valid JSON") from e

        if not isinstance(payload, dict):
            raise ProtocolViolationError(f"{context}: unexpected response shape")

        if not payload.get('success', False):
            errors = payload.get('errors') or []
            if errors and isinstance(errors[0], dict) and errors[0].get('message'):
                raise TransportError(f"API error: {errors[0]['message']}")
            raise TransportError(f"{context} failed")

        return payload.get('result')

    async def _request_result(
        self,
        method: str,
        url: str,
        context: str,
        **kwargs
    ) -> Any:
        _, _, text = await self._send(method, url, context, (200,), **kwargs)
        return self._parse_result(text, context)

    # Resumable sessions

    async def open_upload_session(
        self,
        total_bytes: int,
        name: Optional[str] = None,
        require_signed_urls: bool = False
    ) -> UploadSession:
        """
        Open a resumable (TUS) upload session.

        Args:
            total_bytes: Declared total file length
            name: Optional video name sent as upload metadata
            require_signed_urls: Ask for signed playback tokens

        Returns:
            UploadSession with the video UID and chunk target URL

        Raises:
            TransportError: If the service does not answer 201
            ProtocolViolationError: If Location is missing or unusable
        """
        if total_bytes <= 0:
            raise InvalidInputError("total_bytes must be positive")

        url = self._config.stream_url
        headers = {
            'Tus-Resumable': TUS_VERSION,
            'Upload-Length': str(total_bytes),
        }

        metadata = []
        if name:
            metadata.append(('name', name))
        if require_signed_urls:
            metadata.append(('requiresignedurls', None))
        if metadata:
            headers['Upload-Metadata'] = encode_upload_metadata(metadata)

        _, response_headers, _ = await self._send(
            'POST', url, 'upload session open', (201,), headers=headers
        )

        location = response_headers.get('Location', '')
        if not location:
            raise ProtocolViolationError("Upload session location not returned")

        session_url = urljoin(url, location)
        resource_id = resource_id_from_location(session_url, endpoint=url)
        self._logger.debug(f"Upload session opened: {resource_id}")
        return UploadSession(resource_id=resource_id, session_url=session_url)

    async def send_chunk(self, session_url: str, offset: int, data: bytes) -> None:
        """
        PATCH one chunk to a resumable session.

        Args:
            session_url: Session target URL
            offset: Byte offset of the first byte of ``data``
            data: Chunk bytes

        Raises:
            TransportError: If the service does not answer 204
        """
        if not data:
            raise InvalidInputError(f"Cannot upload empty chunk at offset {offset}")

        headers = {
            'Tus-Resumable': TUS_VERSION,
            'Upload-Offset': str(offset),
            'Content-Type': 'application/offset+octet-stream',
            'Content-Length': str(len(data)),
        }
        await self._send(
            'PATCH', session_url, f"chunk upload at offset {offset}", (204,),
            headers=headers, data=data
        )

    # Direct uploads

    async def create_direct_upload_url(
        self,
        options: Optional[DirectUploadOptions] = None
    ) -> DirectUpload:
        """Create a one-time upload URL."""
        options = options or DirectUploadOptions()
        result = await self._request_result(
            'POST', self._stream_url('direct_upload'), 'direct upload URL creation',
            json=options.to_body()
        )
        if not isinstance(result, dict) or not result.get('uploadURL') or not result.get('uid'):
            raise ProtocolViolationError("Direct upload response missing uploadURL or uid")

        return DirectUpload(
            uid=result['uid'],
            upload_url=result['uploadURL'],
            expiry=options.expiry
        )

    async def upload_from_url(
        self,
        url: str,
        options: Optional[UploadOptions] = None
    ) -> Video:
        """Ask the service to fetch a video from a URL."""
        if not url:
            raise InvalidInputError("URL cannot be empty")
        options = options or UploadOptions()

        body: Dict[str, Any] = {
            'url': url,
            'requireSignedURLs': options.require_signed_urls,
        }
        meta = options.to_meta()
        if meta:
            body['meta'] = meta

        result = await self._request_result(
            'POST', self._stream_url('copy'), 'upload from URL', json=body
        )
        return Video.from_api(result or {})

    # Videos

    async def get_video(self, video_id: str) -> Video:
        """Fetch the full record for a video."""
        if not video_id:
            raise InvalidInputError("video ID cannot be empty")
        result = await self._request_result(
            'GET', self._stream_url(video_id), f"get video {video_id}"
        )
        if not isinstance(result, dict):
            raise ProtocolViolationError(f"get video {video_id}: missing result")
        return Video.from_api(result)

    async def list_videos(self, options: Optional[ListOptions] = None) -> List[Video]:
        """List videos with optional filters."""
        options = options or ListOptions()
        result = await self._request_result(
            'GET', self._config.stream_url, 'list videos', params=options.to_params()
        )
        videos = Video.list_from_api(result if isinstance(result, list) else [])
        if options.limit:
            videos = videos[:options.limit]
        return videos

    async def delete_video(self, video_id: str) -> None:
        """Delete a video."""
        if not video_id:
            raise InvalidInputError("video ID cannot be empty")
        await self._send(
            'DELETE', self._stream_url(video_id), f"delete video {video_id}", (200, 204)
        )

    async def update_video(self, video_id: str, options: UpdateOptions) -> Video:
        """Update metadata or playback settings of a video."""
        if not video_id:
            raise InvalidInputError("video ID cannot be empty")
        if options is None:
            raise InvalidInputError("update options cannot be None")
        result = await self._request_result(
            'POST', self._stream_url(video_id), f"update video {video_id}",
            json=options.to_body()
        )
        return Video.from_api(result or {})
