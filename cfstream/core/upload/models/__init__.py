"""Upload models."""
from .upload_models import (
    UploadSource,
    UploadProgress,
    SessionState,
)

__all__ = [
    'UploadSource',
    'UploadProgress',
    'SessionState',
]
