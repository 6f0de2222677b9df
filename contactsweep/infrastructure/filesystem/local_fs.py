"""Concrete implementation of the FileSystem interface for the local disk.

Uses `pathlib` for paths and `aiofiles` for async I/O.
"""

import logging
from pathlib import Path

import aiofiles

from contactsweep.domain.interfaces.filesystem import FileSystem
from contactsweep.domain.models.common import FilePath

logger = logging.getLogger(__name__)


class LocalFileSystem(FileSystem):
    """Implementation of FileSystem for the local disk."""

    def __init__(self):
        logger.info("LocalFileSystem initialized.")

    async def read_file(self, file_path: FilePath) -> str:
        """Reads file content asynchronously using aiofiles."""
        path = Path(file_path)
        logger.debug(f"Attempting to read file: {path}")
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            async with aiofiles.open(path, mode='r', encoding='utf-8') as f:
                content = await f.read()
            logger.debug(f"Successfully read {len(content)} characters from {path}")
            return content
        except PermissionError as e:
            logger.error(f"Permission denied reading file: {path}")
            raise PermissionError(f"Permission denied: {file_path}") from e
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}", exc_info=True)
            raise IOError(f"Failed to read file {file_path}: {e}") from e

    async def write_file(self, file_path: FilePath, content: str) -> None:
        """Writes content to a file asynchronously, creating parent directories."""
        path = Path(file_path)
        logger.debug(f"Attempting to write {len(content)} characters to file: {path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # newline='' keeps csv's \r\n row terminators intact
            async with aiofiles.open(path, mode='w', encoding='utf-8', newline='') as f:
                await f.write(content)
            logger.debug(f"Successfully wrote to {path}")
        except PermissionError as e:
            logger.error(f"Permission denied writing file: {path}")
            raise PermissionError(f"Permission denied: {file_path}") from e
        except OSError as e:
            logger.error(f"Error writing file {path}: {e}", exc_info=True)
            raise IOError(f"Failed to write file {file_path}: {e}") from e
