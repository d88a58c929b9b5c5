"""
Test helpers: a fake identity provider and document builders.
"""

import asyncio
from datetime import date
from typing import Optional

from semesmart.models import (
    Category,
    Member,
    Transaction,
    new_user_data,
)
from semesmart.orchestrator import FamilySession
from semesmart.services import (
    AuthError,
    Identity,
    IdentityProviderInterface,
    PersistenceGateway,
)

ANA_EMAIL = "ana@example.com"
ANA_PASSWORD = "segredo123"
ANA_UID = "uid-ana"


def run(coro):
    """Drive a coroutine from a synchronous test."""
    return asyncio.run(coro)


class FakeIdentityProvider(IdentityProviderInterface):
    """Accounts kept in a dict; mirrors the provider's error codes."""

    def __init__(self):
        self.accounts: dict[str, tuple[str, str, str]] = {
            ANA_EMAIL: (ANA_PASSWORD, ANA_UID, "Ana"),
        }
        self.signed_out: list[Optional[Identity]] = []

    async def sign_in(self, email: str, password: str) -> Identity:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthError("auth/invalid-credential", "INVALID_LOGIN_CREDENTIALS")
        _, uid, name = account
        return Identity(uid=uid, email=email, display_name=name)

    async def sign_in_with_google(self, google_id_token: str) -> Identity:
        if not google_id_token:
            raise AuthError("auth/popup-closed-by-user")
        return Identity(
            uid=f"google-{google_id_token}",
            email="bia@example.com",
            display_name="Bia",
            provider="google.com",
        )

    async def sign_up(self, name: str, email: str, password: str) -> Identity:
        if email in self.accounts:
            raise AuthError("auth/email-already-in-use", "EMAIL_EXISTS")
        if len(password) < 6:
            raise AuthError("auth/weak-password", "WEAK_PASSWORD")
        uid = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = (password, uid, name)
        return Identity(uid=uid, email=email, display_name=name)

    async def sign_out(self, identity: Optional[Identity]) -> None:
        self.signed_out.append(identity)


def make_transaction(
    amount: float,
    category: Category = Category.OUTROS,
    tx_id: Optional[str] = None,
    when: date = date(2024, 5, 10),
    member_id: str = "m-ana",
    **extra,
) -> Transaction:
    return Transaction(
        id=tx_id or f"t-{abs(amount)}-{category.value}-{when.isoformat()}",
        description=extra.pop("description", f"Lançamento {category.value}"),
        amount=amount,
        date=when,
        category=category,
        member_id=member_id,
        **extra,
    )


def family_document(
    transactions: Optional[list[Transaction]] = None,
    members: Optional[list[Member]] = None,
    **updates,
) -> dict:
    """A stored family document for Ana, as Firestore would hold it."""
    data = new_user_data(owner_name="Ana", owner_title="Mãe")
    owner = data.members[0].model_copy(update={"id": "m-ana"})
    changes = {
        "members": members if members is not None else [owner],
        "transactions": transactions or [],
        "has_seen_onboarding": True,
    }
    changes.update(updates)
    return data.model_copy(update=changes).to_document()


def build_session(storage, identity_provider, app_settings, suggestions=None, insight_agent=None) -> FamilySession:
    return FamilySession(
        gateway=PersistenceGateway(identity_provider, storage),
        insight_agent=insight_agent,
        suggestions=suggestions,
        settings=app_settings,
    )
