"""Tests for the Firestore storage (client mocked)."""

from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from semesmart.config import FirebaseSettings
from semesmart.models import UserData, new_user_data
from semesmart.services.storage import (
    ConflictError,
    FirestoreClient,
    FirestoreUserDataStorage,
    NotFoundError,
    StorageError,
)
from semesmart.services.storage import firestore as firestore_module

from support import ANA_UID, family_document, run


@pytest.fixture
def ref():
    return MagicMock()


@pytest.fixture
def client(ref):
    client = MagicMock()
    client.user_document.return_value = ref
    client.connect.return_value.write_option.return_value = "precondition"
    return client


@pytest.fixture
def storage(client):
    return FirestoreUserDataStorage(client=client)


def stored(document, exists=True, update_time="rev-1"):
    snapshot = MagicMock()
    snapshot.exists = exists
    snapshot.to_dict.return_value = document
    snapshot.update_time = update_time
    return snapshot


class TestRead:
    """Tests for reading users/<uid>."""

    def test_missing_document(self, storage, ref):
        ref.get.return_value = stored(None, exists=False)
        assert run(storage.get_user_data(ANA_UID)) is None

    def test_document_and_revision(self, storage, client, ref):
        ref.get.return_value = stored(family_document())

        snapshot = run(storage.get_user_data(ANA_UID))

        client.user_document.assert_called_once_with(ANA_UID)
        assert snapshot.data.owner.id == "m-ana"
        assert snapshot.revision == "rev-1"

    def test_malformed_document(self, storage, ref):
        ref.get.return_value = stored({"transactions": [{"id": 1}]})
        with pytest.raises(StorageError):
            run(storage.get_user_data(ANA_UID))

    def test_api_error(self, storage, ref):
        ref.get.side_effect = google_exceptions.ServiceUnavailable("down")
        with pytest.raises(StorageError):
            run(storage.get_user_data(ANA_UID))


class TestWrite:
    """Tests for whole-document writes."""

    def test_unconditional_set(self, storage, ref):
        data = new_user_data("Ana")
        ref.set.return_value = MagicMock(update_time="rev-2")

        snapshot = run(storage.replace_user_data(ANA_UID, data))

        ref.set.assert_called_once_with(data.to_document())
        ref.update.assert_not_called()
        assert snapshot.revision == "rev-2"
        assert snapshot.data == data

    def test_conditional_update(self, storage, client, ref):
        data = new_user_data("Ana")
        ref.update.return_value = MagicMock(update_time="rev-3")

        snapshot = run(storage.replace_user_data(ANA_UID, data, expected_revision="rev-2"))

        client.connect.return_value.write_option.assert_called_once_with(last_update_time="rev-2")
        ref.update.assert_called_once_with(data.to_document(), option="precondition")
        assert snapshot.revision == "rev-3"

    def test_conditional_update_quotes_foreign_keys(self, storage, ref):
        document = new_user_data("Ana").to_document()
        document["legacy.theme"] = "dark"
        data = UserData.from_document(document)
        ref.update.return_value = MagicMock(update_time="rev-3")

        snapshot = run(storage.replace_user_data(ANA_UID, data, expected_revision="rev-2"))

        written = ref.update.call_args[0][0]
        assert written["`legacy.theme`"] == "dark"
        assert "legacy.theme" not in written
        assert written["hasSeenOnboarding"] is False
        assert snapshot.data.to_document()["legacy.theme"] == "dark"

    def test_stale_revision_is_a_conflict(self, storage, ref):
        ref.update.side_effect = google_exceptions.FailedPrecondition("stale")
        with pytest.raises(ConflictError):
            run(storage.replace_user_data(ANA_UID, new_user_data(), expected_revision="rev-1"))

    def test_deleted_document(self, storage, ref):
        ref.update.side_effect = google_exceptions.NotFound("gone")
        with pytest.raises(NotFoundError):
            run(storage.replace_user_data(ANA_UID, new_user_data(), expected_revision="rev-1"))

    def test_write_failure(self, storage, ref):
        ref.set.side_effect = google_exceptions.ServiceUnavailable("down")
        with pytest.raises(StorageError):
            run(storage.replace_user_data(ANA_UID, new_user_data()))


class TestClient:
    """Tests for the collection layout."""

    def test_user_document_path(self, monkeypatch):
        db = MagicMock()
        monkeypatch.setattr(firestore_module.firebase_admin, "get_app", lambda: "app")
        monkeypatch.setattr(firestore_module.firestore, "client", lambda app: db)
        client = FirestoreClient(settings=FirebaseSettings(web_api_key="k", users_collection="users"))

        client.user_document(ANA_UID)
        client.user_document(ANA_UID)

        db.collection.assert_called_with("users")
        db.collection.return_value.document.assert_called_with(ANA_UID)
        assert client.connect() is db
