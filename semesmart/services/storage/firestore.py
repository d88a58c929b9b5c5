"""
Firestore Storage Implementation

DESIGN DECISION: One document per user at `users/<uid>`, holding the
whole family aggregate with camelCase keys. The web and mobile clients
read the same documents, so the stored shape must not drift.

Writes:
- Unconditional: `set()` replaces the document (last writer wins)
- Conditional: `update()` with a last-update-time precondition. Firestore
  rejects it with FailedPrecondition if anyone wrote in between, which
  we surface as ConflictError. `update()` reads keys as field paths, so
  every top-level key is quoted; keys written by other clients may hold
  dots or other characters a bare path would split on.

The document's `update_time` is the revision handed back to callers.
"""

from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.field_path import FieldPath
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from semesmart.config import get_settings
from semesmart.models.family import UserData
from semesmart.services.storage.interface import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    StorageError,
    UserDataSnapshot,
    UserDataStorageInterface,
)


def top_level_fields(payload: dict) -> dict:
    """Quote each key as a single field path for `DocumentReference.update()`."""
    return {FieldPath(key).to_api_repr(): value for key, value in payload.items()}


class FirestoreClient:
    """
    Low-level Firestore client wrapper.

    Handles app initialization and provides retry logic for connecting.
    """

    def __init__(self, settings=None):
        self._db = None
        self._settings = settings or get_settings().firebase

    def _get_app(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        if self._settings.credentials_path:
            cred = credentials.Certificate(self._settings.credentials_path)
        else:
            cred = credentials.ApplicationDefault()

        options = {}
        if self._settings.project_id:
            options["projectId"] = self._settings.project_id
        return firebase_admin.initialize_app(cred, options or None)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self):
        """
        Get the Firestore client, initializing the Firebase app on first use.
        """
        if self._db is None:
            try:
                self._db = firestore.client(self._get_app())
            except FileNotFoundError:
                raise ConnectionError(
                    f"Firebase credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Firestore: {e}")

        return self._db

    def user_document(self, uid: str):
        """Reference to users/<uid> (collection name is configurable)."""
        return self.connect().collection(self._settings.users_collection).document(uid)


class FirestoreUserDataStorage(UserDataStorageInterface):
    """
    Firestore implementation of the family document storage.
    """

    def __init__(self, client: Optional[FirestoreClient] = None):
        self._client = client or FirestoreClient()

    async def get_user_data(self, uid: str) -> Optional[UserDataSnapshot]:
        try:
            snapshot = self._client.user_document(uid).get()
        except google_exceptions.GoogleAPICallError as e:
            raise StorageError(f"Failed to read user data: {e}") from e

        if not snapshot.exists:
            return None

        try:
            data = UserData.from_document(snapshot.to_dict() or {})
        except ValidationError as e:
            raise StorageError(f"Stored user data is malformed: {e}") from e

        return UserDataSnapshot(data=data, revision=snapshot.update_time)

    async def replace_user_data(
        self,
        uid: str,
        data: UserData,
        expected_revision: Any = None,
    ) -> UserDataSnapshot:
        payload = data.to_document()
        ref = self._client.user_document(uid)

        try:
            if expected_revision is None:
                result = ref.set(payload)
            else:
                option = self._client.connect().write_option(last_update_time=expected_revision)
                result = ref.update(top_level_fields(payload), option=option)
        except google_exceptions.FailedPrecondition as e:
            raise ConflictError(f"User data for {uid} changed since it was read") from e
        except google_exceptions.NotFound as e:
            raise NotFoundError(f"User data for {uid} no longer exists") from e
        except google_exceptions.GoogleAPICallError as e:
            raise StorageError(f"Failed to save user data: {e}") from e

        return UserDataSnapshot(
            data=UserData.from_document(payload),
            revision=result.update_time,
        )
