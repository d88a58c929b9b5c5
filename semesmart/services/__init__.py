"""Services package."""

from semesmart.services.auth import (
    AuthError,
    FirebaseAuthService,
    Identity,
    IdentityProviderInterface,
)
from semesmart.services.gateway import PersistenceGateway
from semesmart.services.storage import (
    ConflictError,
    ConnectionError,
    FirestoreClient,
    FirestoreUserDataStorage,
    InMemoryUserDataStorage,
    LocalSuggestionStore,
    NotFoundError,
    StorageError,
    UserDataSnapshot,
    UserDataStorageInterface,
    suggest_income_source,
)

__all__ = [
    # Auth
    "AuthError",
    "FirebaseAuthService",
    "Identity",
    "IdentityProviderInterface",
    # Gateway
    "PersistenceGateway",
    # Storage services
    "ConflictError",
    "ConnectionError",
    "FirestoreClient",
    "FirestoreUserDataStorage",
    "InMemoryUserDataStorage",
    "LocalSuggestionStore",
    "NotFoundError",
    "StorageError",
    "UserDataSnapshot",
    "UserDataStorageInterface",
    "suggest_income_source",
]
