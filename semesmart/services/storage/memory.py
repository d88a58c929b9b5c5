"""
In-Memory Storage

Keeps documents in a dict, serialized the same way Firestore stores them,
so everything read back has gone through the document round-trip.
Revisions are a per-document counter.
"""

import copy
from typing import Any, Optional

from pydantic import ValidationError

from semesmart.models.family import UserData
from semesmart.services.storage.interface import (
    ConflictError,
    StorageError,
    UserDataSnapshot,
    UserDataStorageInterface,
)


class InMemoryUserDataStorage(UserDataStorageInterface):
    """Storage for tests and local demos."""

    def __init__(self, documents: Optional[dict[str, dict]] = None):
        self._documents: dict[str, dict] = copy.deepcopy(documents or {})
        self._revisions: dict[str, int] = {uid: 1 for uid in self._documents}
        self.reads = 0
        self.writes = 0

    def raw_document(self, uid: str) -> Optional[dict]:
        """The stored dict, as a document database would hold it."""
        document = self._documents.get(uid)
        return copy.deepcopy(document) if document is not None else None

    def put_raw_document(self, uid: str, document: dict) -> None:
        """Write behind the session's back (another device, an admin tool)."""
        self._documents[uid] = copy.deepcopy(document)
        self._revisions[uid] = self._revisions.get(uid, 0) + 1

    async def get_user_data(self, uid: str) -> Optional[UserDataSnapshot]:
        self.reads += 1
        document = self._documents.get(uid)
        if document is None:
            return None

        try:
            data = UserData.from_document(copy.deepcopy(document))
        except ValidationError as e:
            raise StorageError(f"Stored user data is malformed: {e}") from e

        return UserDataSnapshot(data=data, revision=self._revisions[uid])

    async def replace_user_data(
        self,
        uid: str,
        data: UserData,
        expected_revision: Any = None,
    ) -> UserDataSnapshot:
        current = self._revisions.get(uid)
        if expected_revision is not None and expected_revision != current:
            raise ConflictError(
                f"Document for {uid} is at revision {current}, expected {expected_revision}"
            )

        self.writes += 1
        document = data.to_document()
        self._documents[uid] = copy.deepcopy(document)
        self._revisions[uid] = (current or 0) + 1
        return UserDataSnapshot(
            data=UserData.from_document(document),
            revision=self._revisions[uid],
        )
