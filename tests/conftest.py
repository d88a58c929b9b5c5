"""
Shared fixtures.

No test talks to Firebase or Gemini: the session runs against the
in-memory document store and a fake identity provider.
"""

import pytest

from semesmart.config import AppSettings
from semesmart.models import Member, MemberRole
from semesmart.orchestrator import FamilySession
from semesmart.services import InMemoryUserDataStorage, LocalSuggestionStore

from support import ANA_EMAIL, ANA_PASSWORD, FakeIdentityProvider, build_session, run


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    return AppSettings(suggestions_path=str(tmp_path / "suggestions.json"))


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def storage() -> InMemoryUserDataStorage:
    return InMemoryUserDataStorage()


@pytest.fixture
def suggestions(tmp_path) -> LocalSuggestionStore:
    return LocalSuggestionStore(tmp_path / "suggestions.json")


@pytest.fixture
def session(storage, identity_provider, app_settings, suggestions) -> FamilySession:
    return build_session(storage, identity_provider, app_settings, suggestions)


@pytest.fixture
def signed_in(session) -> FamilySession:
    """Ana signed in with a freshly bootstrapped document."""
    run(session.sign_in(ANA_EMAIL, ANA_PASSWORD))
    return session


@pytest.fixture
def spouse_family() -> list[Member]:
    """Ana (spouse, signs in), Rui (administrator), Leo (child)."""
    return [
        Member(id="m-ana", name="Ana", role=MemberRole.CONJUGE, title="Mãe"),
        Member(id="m-rui", name="Rui", role=MemberRole.ADMINISTRADOR, title="Pai"),
        Member(id="m-leo", name="Leo", role=MemberRole.MEMBRO, title="Filho"),
    ]
