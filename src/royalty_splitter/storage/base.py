"""
Abstract base class for storage backends.

This module defines the interface that all splitter state backends must
implement.
"""

from abc import ABC, abstractmethod
from typing import Any


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class StorageReadError(StorageError):
    """Raised when reading from storage fails."""
    pass


class StorageWriteError(StorageError):
    """Raised when writing to storage fails."""
    pass


class StorageBackend(ABC):
    """
    Abstract base class for splitter state backends.

    The state is the dictionary produced by ``RoyaltySplitter.to_dict()``:
    configuration, splits, owners, share index, update records and the
    work id counter.
    """

    @abstractmethod
    def load_state(self) -> dict[str, Any] | None:
        """
        Load the splitter state from storage.

        Returns:
            Dictionary containing splitter state, or None if no data exists.

        Raises:
            StorageReadError: If reading fails
        """
        pass

    @abstractmethod
    def save_state(self, state: dict[str, Any]) -> None:
        """
        Save the splitter state to storage.

        Args:
            state: Dictionary containing the complete splitter state

        Raises:
            StorageWriteError: If writing fails
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the storage backend is available and ready.

        Returns:
            True if storage is accessible, False otherwise
        """
        pass

    def get_info(self) -> dict[str, Any]:
        """
        Get information about the storage backend.

        Returns:
            Dictionary with backend type, status, and configuration
        """
        return {
            "backend_type": self.__class__.__name__,
            "available": self.is_available(),
        }

    def close(self) -> None:
        """Release resources. Default implementation does nothing."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes the backend."""
        self.close()
        return False
