"""
Persistence Gateway

The narrow facade the session talks to. It pairs the identity provider
with the family-document store:

- fetch_user_data     read users/<uid>, creating the default document if missing
- replace_user_data   write the whole document, return the canonical copy
- authenticate        email/password sign-in
- authenticate_with_google
- register            create the account and its initial document
- end_session         sign out at the provider

DESIGN DECISION: The gateway never merges. Whatever the session hands to
replace_user_data becomes the document.
"""

from typing import Any, Optional

from semesmart.audit import AuditLogger
from semesmart.models.audit import AuditEventBuilder
from semesmart.models.family import UserData, new_user_data
from semesmart.services.auth.interface import Identity, IdentityProviderInterface
from semesmart.services.storage.interface import UserDataSnapshot, UserDataStorageInterface


class PersistenceGateway:
    """Identity provider + document store behind one object."""

    def __init__(
        self,
        identity_provider: IdentityProviderInterface,
        storage: UserDataStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity = identity_provider
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

    async def fetch_user_data(self, identity: Identity) -> UserDataSnapshot:
        """
        Load the family document of an authenticated user.

        A user without a document (first sign-in, e.g. via Google) gets the
        default document, persisted before it is returned. The owner member
        is named after the account's display name.

        Raises:
            StorageError: If the read or the bootstrap write fails
        """
        snapshot = await self._storage.get_user_data(identity.uid)
        if snapshot is not None:
            return snapshot

        snapshot = await self._storage.replace_user_data(
            identity.uid,
            new_user_data(owner_name=identity.display_name),
        )
        await self._audit.log(AuditEventBuilder.user_data_bootstrapped(identity.uid))
        return snapshot

    async def replace_user_data(
        self,
        identity: Identity,
        data: UserData,
        expected_revision: Any = None,
    ) -> UserDataSnapshot:
        """
        Overwrite the family document and return what was written.

        Raises:
            ConflictError: If expected_revision is stale
            StorageError: If the write fails
        """
        return await self._storage.replace_user_data(
            identity.uid,
            data,
            expected_revision=expected_revision,
        )

    async def authenticate(self, email: str, password: str) -> Identity:
        return await self._identity.sign_in(email, password)

    async def authenticate_with_google(self, google_id_token: str) -> Identity:
        return await self._identity.sign_in_with_google(google_id_token)

    async def register(
        self,
        name: str,
        title: str,
        email: str,
        password: str,
    ) -> tuple[Identity, UserDataSnapshot]:
        """
        Create an account and store its initial family document.

        The owner member carries the name and title given at registration.

        Raises:
            AuthError: If the account cannot be created
            StorageError: If the initial document cannot be stored
        """
        identity = await self._identity.sign_up(name, email, password)
        snapshot = await self._storage.replace_user_data(
            identity.uid,
            new_user_data(owner_name=name, owner_title=title),
        )
        await self._audit.log(AuditEventBuilder.registration_completed(identity.uid))
        return identity, snapshot

    async def end_session(self, identity: Optional[Identity]) -> None:
        await self._identity.sign_out(identity)
