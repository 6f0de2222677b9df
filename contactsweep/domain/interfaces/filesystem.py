"""Interface for interacting with the file system.

Defines the contract for reading and writing the contact export files,
allowing the core application to be independent of the specific
file system implementation.
"""

import abc

from ..models.common import FilePath


class FileSystem(abc.ABC):
    """Abstract Base Class for file system operations."""

    @abc.abstractmethod
    async def read_file(self, file_path: FilePath) -> str:
        """Reads the entire content of a file asynchronously.

        Args:
            file_path: The path to the file to read.

        Returns:
            The content of the file as a string.

        Raises:
            FileNotFoundError: If the file does not exist.
            PermissionError: If read permissions are denied.
            IOError: For other file system errors.
        """
        pass

    @abc.abstractmethod
    async def write_file(self, file_path: FilePath, content: str) -> None:
        """Writes content to a file asynchronously, overwriting if it exists.

        Raises:
            PermissionError: If write permissions are denied.
            IOError: For other file system errors.
        """
        pass
