"""
Firebase Auth over the Identity Toolkit REST API

DESIGN DECISION: A server-side app cannot use the browser SDK, and the
Admin SDK cannot verify passwords. The REST endpoints do both with a
plain web API key:

- accounts:signUp             create an email/password account
- accounts:update             set the display name after sign-up
- accounts:signInWithPassword email/password sign-in
- accounts:signInWithIdp      exchange a Google ID token for a session

Errors come back as {"error": {"message": "CODE : detail"}}. The CODE is
mapped to the `auth/...` codes used everywhere else in the app.
"""

from typing import Optional

import requests
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from semesmart.config import get_settings
from semesmart.services.auth.interface import (
    AuthError,
    Identity,
    IdentityProviderInterface,
)

logger = structlog.get_logger(__name__)

REST_ERROR_CODES = {
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "INVALID_EMAIL": "auth/invalid-credential",
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "WEAK_PASSWORD": "auth/weak-password",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
    "FEDERATED_USER_ID_ALREADY_LINKED": "auth/account-exists-with-different-credential",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
}


def auth_error_from_response(payload: dict) -> AuthError:
    """Build an AuthError from an Identity Toolkit error body."""
    message = (payload.get("error") or {}).get("message") or "UNKNOWN"
    rest_code = message.split(" : ", 1)[0].strip()
    code = REST_ERROR_CODES.get(rest_code, f"auth/{rest_code.lower().replace('_', '-')}")
    return AuthError(code, message)


class FirebaseAuthService(IdentityProviderInterface):
    """
    Identity provider backed by Firebase Auth.

    Network failures are retried with backoff; rejections are not.
    """

    def __init__(self, settings=None, session: Optional[requests.Session] = None):
        self._settings = settings or get_settings().firebase
        self._http = session or requests.Session()

    def _url(self, endpoint: str) -> str:
        return f"{self._settings.auth_base_url}/accounts:{endpoint}?key={self._settings.web_api_key}"

    @retry(
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _send(self, endpoint: str, payload: dict) -> requests.Response:
        return self._http.post(
            self._url(endpoint),
            json=payload,
            timeout=self._settings.request_timeout_seconds,
        )

    def _post(self, endpoint: str, payload: dict) -> dict:
        try:
            response = self._send(endpoint, payload)
        except requests.RequestException as e:
            logger.warning("auth_request_failed", endpoint=endpoint, error=str(e))
            raise AuthError("auth/network-request-failed", str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            raise auth_error_from_response(body)

        return body

    @staticmethod
    def _identity(body: dict, provider: str, display_name: Optional[str] = None) -> Identity:
        return Identity(
            uid=body["localId"],
            email=body.get("email"),
            display_name=display_name or body.get("displayName") or None,
            id_token=body.get("idToken"),
            refresh_token=body.get("refreshToken"),
            provider=provider,
        )

    async def sign_in(self, email: str, password: str) -> Identity:
        body = self._post("signInWithPassword", {
            "email": email.strip(),
            "password": password,
            "returnSecureToken": True,
        })
        return self._identity(body, "password")

    async def sign_in_with_google(self, google_id_token: str) -> Identity:
        if not google_id_token:
            raise AuthError("auth/popup-closed-by-user", "No Google credential was provided")

        body = self._post("signInWithIdp", {
            "postBody": f"id_token={google_id_token}&providerId=google.com",
            "requestUri": "http://localhost",
            "returnIdpCredential": True,
            "returnSecureToken": True,
        })
        # The account exists with a password; Firebase asks to link instead.
        if body.get("needConfirmation"):
            raise AuthError(
                "auth/account-exists-with-different-credential",
                "Account exists with a different sign-in method",
            )
        return self._identity(body, "google.com")

    async def sign_up(self, name: str, email: str, password: str) -> Identity:
        body = self._post("signUp", {
            "email": email.strip(),
            "password": password,
            "returnSecureToken": True,
        })
        self._post("update", {
            "idToken": body["idToken"],
            "displayName": name,
            "returnSecureToken": False,
        })
        return self._identity(body, "password", display_name=name)

    async def sign_out(self, identity: Optional[Identity]) -> None:
        # Identity Toolkit sessions are stateless; dropping the tokens is enough.
        logger.info("auth_signed_out", uid=identity.uid if identity else None)
