"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class UploadSource:
    """
    An open local file and its total length.

    Owned by the active uploader for the duration of one upload. The
    coordinator that opened it closes it.

    Attributes:
        path: Local file path
        handle: Open aiofiles binary handle
        size: Total size in bytes
    """
    path: Path
    handle: Any
    size: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class UploadProgress:
    """
    Upload progress information.

    Attributes:
        bytes_sent: Bytes acknowledged (resumable) or written (multipart) so far
        bytes_total: Total file size
    """
    bytes_sent: int
    bytes_total: int

    def __post_init__(self):
        if self.bytes_sent < 0 or self.bytes_total < 0:
            raise ValueError("Progress byte counts must be non-negative")

    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.bytes_total == 0:
            return 0.0
        return (self.bytes_sent / self.bytes_total) * 100

    @property
    def is_complete(self) -> bool:
        """Returns True if every byte has been sent."""
        return self.bytes_sent >= self.bytes_total


class SessionState(Enum):
    """Lifecycle of a resumable upload session."""
    UNOPENED = 'unopened'
    OPENED = 'opened'
    COMPLETE = 'complete'
