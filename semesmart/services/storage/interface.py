"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Use Firestore in production
2. Use in-memory storage for testing
3. Keep the session logic decoupled from the document database

The interface is intentionally tiny. A family's data is ONE document,
so there are exactly two operations: read it whole, replace it whole.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from semesmart.models.family import UserData


@dataclass(frozen=True)
class UserDataSnapshot:
    """
    A document as the store last saw it.

    `revision` is opaque to callers. Hand it back to replace_user_data
    to make the write conditional on nobody having written in between.
    """

    data: UserData
    revision: Any = None


class UserDataStorageInterface(ABC):
    """
    Abstract interface for the per-user family document.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get_user_data(self, uid: str) -> Optional[UserDataSnapshot]:
        """
        Read the family document of a user.

        Args:
            uid: The authenticated user's id

        Returns:
            The snapshot, or None if the user has no document yet

        Raises:
            StorageError: If the read fails or the document is malformed
        """
        pass

    @abstractmethod
    async def replace_user_data(
        self,
        uid: str,
        data: UserData,
        expected_revision: Any = None,
    ) -> UserDataSnapshot:
        """
        Overwrite the family document of a user.

        Args:
            uid: The authenticated user's id
            data: The complete new document
            expected_revision: When given, the write only succeeds if the
                stored document is still at this revision

        Returns:
            The snapshot of what was written (the canonical copy)

        Raises:
            ConflictError: If expected_revision no longer matches
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConflictError(StorageError):
    """The document changed since it was read."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
