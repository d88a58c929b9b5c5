"""Identity provider interface and the Firebase Auth implementation."""

from semesmart.services.auth.interface import (
    AUTH_ERROR_MESSAGES,
    AuthError,
    Identity,
    IdentityProviderInterface,
)
from semesmart.services.auth.firebase_auth import (
    FirebaseAuthService,
    auth_error_from_response,
)

__all__ = [
    "AUTH_ERROR_MESSAGES",
    "AuthError",
    "FirebaseAuthService",
    "Identity",
    "IdentityProviderInterface",
    "auth_error_from_response",
]
