"""Stream API module."""
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, UploadConfig
from .async_client import AsyncStreamClient, resource_id_from_location
from .models import (
    Video,
    UploadOptions,
    UploadSession,
    DirectUpload,
    DirectUploadOptions,
    ListOptions,
    UpdateOptions,
)

__all__ = [
    # Client
    'AsyncStreamClient',
    'resource_id_from_location',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'UploadConfig',

    # Models
    'Video',
    'UploadOptions',
    'UploadSession',
    'DirectUpload',
    'DirectUploadOptions',
    'ListOptions',
    'UpdateOptions',
]
