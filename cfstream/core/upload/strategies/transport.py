"""
Transport strategy selection.

Exactly two wire strategies exist, so the choice is a tagged variant
resolved once per upload rather than a pluggable class hierarchy.
"""
from enum import Enum

from ...api.config import MiB
from ...exceptions import InvalidInputError

RESUMABLE_THRESHOLD = 200 * MiB


class TransportStrategy(Enum):
    """How a file is sent to the service."""

    SINGLE_SHOT_MULTIPART = 'multipart'
    """One multipart/form-data POST to a direct upload URL."""

    RESUMABLE_SESSION = 'resumable'
    """A TUS session: one open request, then chunked PATCH requests."""


def select_strategy(
    file_size: int,
    threshold: int = RESUMABLE_THRESHOLD
) -> TransportStrategy:
    """
    Pick the transport for a file.

    Args:
        file_size: File size in bytes
        threshold: Sizes at or above this use the resumable session

    Returns:
        The selected TransportStrategy
    """
    if file_size < 0:
        raise InvalidInputError(f"File size cannot be negative: {file_size}")
    if file_size >= threshold:
        return TransportStrategy.RESUMABLE_SESSION
    return TransportStrategy.SINGLE_SHOT_MULTIPART
