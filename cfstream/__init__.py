"""
cfstream - Async Python client and CLI for a video streaming service.

Usage:
    >>> from cfstream import StreamClient, StreamSettings
    >>>
    >>> async with StreamClient(StreamSettings.load().check()) as stream:
    ...     video = await stream.upload("clip.mp4")
    ...     print(video.uid, video.status)
"""
import logging
from .client import StreamClient

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    UploadConfig,
    AsyncStreamClient,
    UploadOptions,
    Video,
)
from .core.settings import StreamSettings
from .core.logging import set_level

# Upload engine
from .core.upload import (
    UploadCoordinator,
    UploadFacade,
    UploadProgress,
    ProgressRelay,
    TransportStrategy,
    select_strategy,
)

# Errors
from .core.exceptions import (
    StreamError,
    InvalidInputError,
    TransportError,
    ProtocolViolationError,
    ProcessingError,
    ConfigError,
)

__version__ = '0.1.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for cfstream modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    set_level(level)


__all__ = [
    'StreamClient',
    'StreamSettings',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'UploadConfig',
    'AsyncStreamClient',
    'UploadOptions',
    'Video',
    'UploadCoordinator',
    'UploadFacade',
    'UploadProgress',
    'ProgressRelay',
    'TransportStrategy',
    'select_strategy',
    'StreamError',
    'InvalidInputError',
    'TransportError',
    'ProtocolViolationError',
    'ProcessingError',
    'ConfigError',
    'setup_logging',
]
