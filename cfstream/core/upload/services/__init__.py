"""Upload services module."""
from .file_service import FileValidator, ChunkReader
from .multipart_service import MultipartUploader
from .session_service import ResumableSessionUploader
from .progress_service import ProgressRelay

__all__ = [
    'FileValidator',
    'ChunkReader',
    'MultipartUploader',
    'ResumableSessionUploader',
    'ProgressRelay',
]
