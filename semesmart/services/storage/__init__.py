"""
Storage Services Package

Provides the abstract family-document interface and its implementations:
Firestore for production, in-memory for tests. Also the device-local
suggestion store.
"""

from semesmart.services.storage.interface import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    StorageError,
    UserDataSnapshot,
    UserDataStorageInterface,
)
from semesmart.services.storage.firestore import (
    FirestoreClient,
    FirestoreUserDataStorage,
)
from semesmart.services.storage.memory import InMemoryUserDataStorage
from semesmart.services.storage.suggestions import (
    LocalSuggestionStore,
    suggest_income_source,
)

__all__ = [
    # Interfaces
    "UserDataSnapshot",
    "UserDataStorageInterface",
    # Exceptions
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "FirestoreClient",
    "FirestoreUserDataStorage",
    "InMemoryUserDataStorage",
    # Device-local
    "LocalSuggestionStore",
    "suggest_income_source",
]
