"""
Data models for the Stream API.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


def _parse_time(value: Any) -> Optional[datetime]:
    """Parse an RFC3339 timestamp as returned by the API."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


@dataclass(frozen=True)
class UploadOptions:
    """
    Options applied to an uploaded video.

    Attributes:
        name: Display name (stored as meta.name)
        metadata: Arbitrary key/value metadata
        require_signed_urls: Require signed tokens for playback

    Example:
        >>> opts = UploadOptions(name="clip.mp4", metadata={"project": "demo"})
        >>> opts.to_meta()
        {'project': 'demo', 'name': 'clip.mp4'}
    """
    name: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    require_signed_urls: bool = True

    def __post_init__(self):
        # Detach from the caller's dict so later mutation cannot leak in
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata or {})))

    def to_meta(self) -> Dict[str, Any]:
        """Build the ``meta`` object sent to the API (a fresh dict)."""
        meta = dict(self.metadata)
        if self.name:
            meta['name'] = self.name
        return meta

    def with_name(self, name: str) -> 'UploadOptions':
        """Return a copy with a different name."""
        return UploadOptions(
            name=name,
            metadata=self.metadata,
            require_signed_urls=self.require_signed_urls
        )


@dataclass(frozen=True)
class UploadSession:
    """
    One resumable upload attempt.

    Attributes:
        resource_id: Video UID taken from the session Location
        session_url: Target URL for chunk PATCH requests
    """
    resource_id: str
    session_url: str


@dataclass(frozen=True)
class DirectUploadOptions:
    """Parameters for creating a one-time direct upload URL."""
    max_duration_seconds: int = 0
    expiry: Optional[datetime] = None
    require_signed_urls: bool = False
    meta: Optional[Mapping[str, Any]] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.max_duration_seconds > 0:
            body['maxDurationSeconds'] = self.max_duration_seconds
        if self.expiry is not None:
            body['expiry'] = self.expiry.isoformat().replace('+00:00', 'Z')
        if self.require_signed_urls:
            body['requireSignedURLs'] = True
        if self.meta:
            body['meta'] = dict(self.meta)
        return body


@dataclass(frozen=True)
class DirectUpload:
    """A one-time upload URL and the UID of the video it will create."""
    uid: str
    upload_url: str
    expiry: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'uid': self.uid,
            'upload_url': self.upload_url,
            'expiry': self.expiry.isoformat() if self.expiry else None,
        }


@dataclass(frozen=True)
class ListOptions:
    """Filters for listing videos."""
    search: Optional[str] = None
    creator: Optional[str] = None
    status: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    asc: bool = False
    limit: Optional[int] = None

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.search:
            params['search'] = self.search
        if self.creator:
            params['creator'] = self.creator
        if self.status:
            params['status'] = self.status
        if self.start:
            params['start'] = self.start.isoformat()
        if self.end:
            params['end'] = self.end.isoformat()
        if self.asc:
            params['asc'] = 'true'
        return params


@dataclass(frozen=True)
class UpdateOptions:
    """Fields to change on an existing video. None means unchanged."""
    meta: Optional[Mapping[str, Any]] = None
    require_signed_urls: Optional[bool] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.meta is not None:
            body['meta'] = dict(self.meta)
        if self.require_signed_urls is not None:
            body['requireSignedURLs'] = self.require_signed_urls
        return body


@dataclass(frozen=True)
class Video:
    """
    A video record as reported by the service.

    Attributes:
        uid: Video identifier
        name: meta.name, falling back to uid
        status: Processing state (queued, inprogress, ready, error, ...)
        status_details: Error reason, or "<pct>% complete" while processing
        ready_to_stream: True once playback is available
    """
    uid: str
    name: str = ''
    status: str = ''
    status_details: str = ''
    duration: float = 0.0
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    ready_to_stream: bool = False
    require_signed_urls: bool = False
    preview: str = ''
    thumbnail: str = ''
    creator: str = ''
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Video':
        """Create from an API ``result`` object."""
        status = data.get('status') or {}
        details = ''
        if status.get('errorReasonText'):
            details = status['errorReasonText']
        elif status.get('pctComplete'):
            details = f"{status['pctComplete']}% complete"

        meta = data.get('meta') if isinstance(data.get('meta'), dict) else {}
        uid = data.get('uid', '')
        name = meta.get('name') if isinstance(meta.get('name'), str) else ''

        return cls(
            uid=uid,
            name=name or uid,
            status=status.get('state', ''),
            status_details=details,
            duration=float(data.get('duration') or 0.0),
            created=_parse_time(data.get('created')),
            modified=_parse_time(data.get('modified')),
            ready_to_stream=bool(data.get('readyToStream', False)),
            require_signed_urls=bool(data.get('requireSignedURLs', False)),
            preview=data.get('preview') or '',
            thumbnail=data.get('thumbnail') or '',
            creator=data.get('creator') or '',
            meta=dict(meta)
        )

    @classmethod
    def list_from_api(cls, items: List[Dict[str, Any]]) -> List['Video']:
        return [cls.from_api(item) for item in items or []]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            'uid': self.uid,
            'name': self.name,
            'status': self.status,
            'status_details': self.status_details,
            'duration': self.duration,
            'created': self.created.isoformat() if self.created else None,
            'modified': self.modified.isoformat() if self.modified else None,
            'ready_to_stream': self.ready_to_stream,
            'require_signed_urls': self.require_signed_urls,
            'preview': self.preview,
            'thumbnail': self.thumbnail,
            'creator': self.creator,
            'meta': self.meta,
        }
