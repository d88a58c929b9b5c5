"""
Abstract Identity Provider Interface

DESIGN DECISION: Credential checks and token issuing belong to the
identity provider. The application only needs a uid to key the family
document, plus the display name chosen at registration.

Provider failures are normalized to AuthError with a stable code
(the `auth/...` codes of the Firebase client SDKs) and a fixed
Portuguese message for the user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """An authenticated user."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    provider: str = "password"


class IdentityProviderInterface(ABC):
    """
    Abstract interface for authentication.
    """

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        """
        Sign in with email and password.

        Raises:
            AuthError: If the credentials are rejected or the provider fails
        """
        pass

    @abstractmethod
    async def sign_in_with_google(self, google_id_token: str) -> Identity:
        """
        Sign in with a Google ID token obtained by the front end.

        Raises:
            AuthError: If the token is missing/rejected or the flow is disabled
        """
        pass

    @abstractmethod
    async def sign_up(self, name: str, email: str, password: str) -> Identity:
        """
        Create an account and set its display name.

        Raises:
            AuthError: If the email is taken, the password is weak, ...
        """
        pass

    @abstractmethod
    async def sign_out(self, identity: Optional[Identity]) -> None:
        """End the provider session (if the provider keeps one)."""
        pass


AUTH_ERROR_MESSAGES = {
    "auth/invalid-credential": "E-mail ou senha inválidos.",
    "auth/user-not-found": "E-mail ou senha inválidos.",
    "auth/wrong-password": "E-mail ou senha inválidos.",
    "auth/email-already-in-use": "Este e-mail já está cadastrado.",
    "auth/weak-password": "A senha deve ter pelo menos 6 caracteres.",
    "auth/popup-closed-by-user": "Login com Google cancelado pelo usuário.",
    "auth/operation-not-allowed": (
        "Login com Google não está habilitado. Verifique as configurações do Firebase."
    ),
    "auth/account-exists-with-different-credential": (
        "Já existe uma conta com este e-mail usando outro método de login."
    ),
    "auth/too-many-requests": (
        "Muitas tentativas de login. Aguarde alguns minutos e tente novamente."
    ),
    "auth/network-request-failed": (
        "Não foi possível conectar ao servidor. Verifique sua conexão e tente novamente."
    ),
}


class AuthError(Exception):
    """Authentication failed."""

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(f"{code}: {self.message}")

    @property
    def user_message(self) -> str:
        known = AUTH_ERROR_MESSAGES.get(self.code)
        if known:
            return known
        return f"Ocorreu um erro no Firebase: {self.message}"
