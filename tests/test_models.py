"""
Tests for SemeSmart models

Test strategy:
1. Unit tests for individual components (models, validators, views)
2. Session tests against in-memory storage and a fake identity provider
3. No real API calls in tests (use mocks)
"""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from semesmart.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Card,
    Category,
    ChallengeStatus,
    CreateGoal,
    EditGoal,
    GoalFields,
    Member,
    MemberRole,
    PaymentMethod,
    Transaction,
    UserData,
    new_entity_id,
    new_user_data,
)


class TestEnumSpellings:
    """Stored spellings are shared with the other clients."""

    def test_category_values(self):
        assert [c.value for c in Category] == [
            "Mercado", "Transporte", "Lazer", "Educação", "Contas",
            "Saúde", "Dízimo", "Outros", "Entrada",
        ]

    def test_payment_method_values(self):
        assert [p.value for p in PaymentMethod] == [
            "Cartão de Débito", "Crédito à Vista", "Crédito Parcelado",
            "Dinheiro", "Cartão Benefício", "PIX",
        ]

    def test_member_roles(self):
        assert MemberRole("Cônjuge") is MemberRole.CONJUGE

    def test_challenge_status_moves_forward_only(self):
        assert ChallengeStatus.AVAILABLE.next_status() is ChallengeStatus.ACTIVE
        assert ChallengeStatus.ACTIVE.next_status() is ChallengeStatus.COMPLETED
        assert ChallengeStatus.COMPLETED.next_status() is None


class TestDocumentShape:
    """Tests for the Firestore document round trip."""

    def test_transaction_uses_camel_case_keys(self):
        tx = Transaction(
            id="t1",
            description="Feira",
            amount=-50.0,
            date=date(2024, 5, 1),
            category=Category.MERCADO,
            member_id="m1",
            payment_method=PaymentMethod.PIX,
        )
        assert tx.to_document() == {
            "id": "t1",
            "description": "Feira",
            "amount": -50.0,
            "date": "2024-05-01",
            "category": "Mercado",
            "memberId": "m1",
            "paymentMethod": "PIX",
        }

    def test_transaction_accepts_iso_timestamp_date(self):
        tx = Transaction.from_document({
            "id": "t1",
            "description": "Salário",
            "amount": 3000,
            "date": "2024-05-05T12:30:00.000Z",
            "category": "Entrada",
            "memberId": "m1",
        })
        assert tx.date == date(2024, 5, 5)
        assert tx.is_income

    def test_goal_empty_deadline_is_none(self):
        data = UserData.from_document({
            "goals": [{"id": "g1", "name": "Viagem", "targetAmount": 1000, "deadline": ""}],
        })
        assert data.goals[0].deadline is None
        assert data.goals[0].current_amount == 0

    def test_unknown_top_level_fields_survive_rewrite(self):
        document = new_user_data("Ana").to_document()
        document["legacyTheme"] = "dark"
        data = UserData.from_document(document)
        assert data.to_document()["legacyTheme"] == "dark"

    def test_stored_text_has_no_length_limit(self):
        data = UserData.from_document({
            "familyProfile": {"name": "F" * 150},
            "members": [{"id": "m1", "name": "N" * 150, "title": "T" * 80}],
            "transactions": [{
                "id": "t1",
                "description": "x" * 250,
                "amount": -10,
                "date": "2024-05-01",
                "category": "Mercado",
                "memberId": "m1",
                "location": "y" * 150,
            }],
        })
        assert len(data.transactions[0].description) == 250
        assert len(data.members[0].title) == 80

    def test_round_trip_is_lossless(self):
        data = new_user_data("Ana", "Mãe")
        assert UserData.from_document(data.to_document()) == data

    def test_records_are_frozen(self):
        member = Member(id="m1", name="Ana")
        with pytest.raises(ValidationError):
            member.name = "Bia"

    def test_card_requires_four_digits(self):
        Card(id="c1", name="Nubank", last4="1234")
        with pytest.raises(ValidationError):
            Card(id="c1", name="Nubank", last4="123")
        with pytest.raises(ValidationError):
            Card(id="c1", name="Nubank", last4="12a4")


class TestDefaults:
    """Tests for the new-account document."""

    def test_new_user_data_shape(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        data = new_user_data("Ana", "Mãe", now=now)

        assert data.family_profile.name == "Minha Família"
        assert data.family_profile.avatar == "👨‍👩‍👧‍👦"
        assert data.family_profile.created_at == now
        assert len(data.members) == 1
        owner = data.owner
        assert owner.name == "Ana"
        assert owner.title == "Mãe"
        assert owner.role is MemberRole.ADMINISTRADOR
        assert owner.avatar == "😊"
        assert owner.id.startswith("m")
        assert data.transactions == [] and data.goals == [] and data.cards == []
        assert data.has_seen_onboarding is False

    def test_challenge_catalog_starts_available(self):
        data = new_user_data()
        assert [c.id for c in data.challenges] == ["c1", "c2", "c3"]
        assert data.challenges[0].title == "Semana sem delivery"
        assert all(c.status is ChallengeStatus.AVAILABLE for c in data.challenges)

    def test_owner_falls_back_to_eu_admin(self):
        owner = new_user_data(owner_name="  ").owner
        assert owner.name == "Eu"
        assert owner.title == "Admin"


class TestEntityIds:
    """Tests for client-side id minting."""

    def test_prefix_and_timestamp(self, monkeypatch):
        monkeypatch.setattr("semesmart.models.family.time.time_ns", lambda: 1_700_000_000_123_000_000)
        assert new_entity_id("t") == "t1700000000123"

    def test_collision_gets_suffix(self, monkeypatch):
        monkeypatch.setattr("semesmart.models.family.time.time_ns", lambda: 1_700_000_000_123_000_000)
        existing = {"t1700000000123", "t1700000000123-1"}
        assert new_entity_id("t", existing) == "t1700000000123-2"


class TestCommands:
    """Tests for tagged create/edit payloads."""

    def test_goal_commands_are_tagged(self):
        fields = GoalFields(name="Viagem", target_amount=1000)
        assert CreateGoal(fields=fields).kind == "create"
        assert EditGoal(goal_id="g1", fields=fields, current_amount=10).kind == "edit"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.USER_DATA_SAVED,
            description="Family data saved",
        )
        assert event.severity is AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.save_conflict("uid-1", "add_transaction", attempt=1)
        log = event.to_log_dict()
        assert log["event_type"] == "save_conflict"
        assert log["severity"] == "warning"
        assert log["uid"] == "uid-1"
        assert log["details"] == {"action": "add_transaction", "attempt": 1}

    def test_sign_in_failed_carries_code_only(self):
        event = AuditEventBuilder.sign_in_failed("password", "auth/invalid-credential")
        assert event.error_code == "auth/invalid-credential"
        assert event.is_user_action
