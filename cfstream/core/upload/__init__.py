"""
Upload module for video uploads.

Small files go out as one streamed multipart POST; large files go through a
resumable session in fixed-size chunks. Progress is relayed to a separate
consumer task without ever blocking the transfer.
"""
from .facade import UploadFacade
from .coordinator import UploadCoordinator
from .models import UploadSource, UploadProgress, SessionState
from .strategies import TransportStrategy, select_strategy, RESUMABLE_THRESHOLD
from .services import (
    FileValidator,
    ChunkReader,
    MultipartUploader,
    ResumableSessionUploader,
    ProgressRelay,
)
from .protocols import StreamAPIProtocol, ProgressSink

__all__ = [
    # Main classes
    'UploadFacade',
    'UploadCoordinator',

    # Models
    'UploadSource',
    'UploadProgress',
    'SessionState',

    # Strategy selection
    'TransportStrategy',
    'select_strategy',
    'RESUMABLE_THRESHOLD',

    # Services
    'FileValidator',
    'ChunkReader',
    'MultipartUploader',
    'ResumableSessionUploader',
    'ProgressRelay',

    # Protocols
    'StreamAPIProtocol',
    'ProgressSink',
]
