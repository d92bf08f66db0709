"""
File validation and reading services.

Single Responsibility: Each class handles one specific task.
"""
from pathlib import Path
from typing import Any, AsyncIterator, Tuple, Union

from ...exceptions import InvalidInputError
from ...logging import get_logger


class FileValidator:
    """
    Validates files before upload.

    Responsibilities:
    - Reject empty paths
    - Check file existence
    - Verify file is not a directory
    - Reject zero-length files
    """

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (validated Path, file size in bytes)

        Raises:
            InvalidInputError: If the path is empty, missing, not a regular
                file, or the file is empty
        """
        if file_path is None or str(file_path).strip() == '':
            raise InvalidInputError("File path cannot be empty")

        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise InvalidInputError(f"File not found: {path}")

        if not path.is_file():
            raise InvalidInputError(f"Path is not a file: {path}")

        file_size = path.stat().st_size
        if file_size == 0:
            raise InvalidInputError(f"Cannot upload empty file: {path}")

        return path, file_size


class ChunkReader:
    """
    Forward-only reader of fixed-size chunks from an open file.

    Iterate it with ``async for``. Every chunk is at most ``chunk_size``
    bytes and iteration ends exactly at end of file. A reader can be
    iterated once; to re-read from some position, build a new reader with
    an explicit ``offset``.

    Example:
        >>> async with aiofiles.open(path, 'rb') as handle:
        ...     async for chunk in ChunkReader(handle, 50 * 1024 * 1024):
        ...         ...
    """

    def __init__(self, handle: Any, chunk_size: int, offset: int = 0):
        """
        Args:
            handle: Open aiofiles binary handle; nothing else may read it
            chunk_size: Maximum bytes per chunk
            offset: Position to seek to before the first read
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        if offset < 0:
            raise ValueError("Offset cannot be negative")

        self._handle = handle
        self._chunk_size = chunk_size
        self._start = offset
        self._offset = offset
        self._started = False
        self._logger = get_logger('cfstream.upload.file')

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def offset(self) -> int:
        """Position just past the last byte handed out."""
        return self._offset

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._started:
            raise RuntimeError("ChunkReader is not restartable; create a new reader")
        self._started = True
        return self._read_chunks()

    async def _read_chunks(self) -> AsyncIterator[bytes]:
        await self._handle.seek(self._start)
        while True:
            data = await self._handle.read(self._chunk_size)
            if not data:
                break
            start = self._offset
            self._offset += len(data)
            self._logger.debug(f"Read chunk: {start}-{self._offset} ({len(data)} bytes)")
            yield data
