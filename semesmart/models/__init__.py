"""Data models for SemeSmart."""

from semesmart.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from semesmart.models.commands import (
    CardDraft,
    CreateGoal,
    CreateMember,
    EditGoal,
    EditMember,
    FamilyProfileDraft,
    GoalCommand,
    GoalFields,
    MemberCommand,
    MemberFields,
    TransactionDraft,
)
from semesmart.models.family import (
    CHALLENGE_CATALOG,
    EXPENSE_CATEGORIES,
    Card,
    CardIssuer,
    Category,
    Challenge,
    ChallengeStatus,
    FamilyProfile,
    Goal,
    Insight,
    Member,
    MemberRole,
    PaymentMethod,
    Transaction,
    TransactionKind,
    UserData,
    default_challenges,
    new_entity_id,
    new_user_data,
)

__all__ = [
    # Family document
    "Card",
    "CardIssuer",
    "Category",
    "Challenge",
    "ChallengeStatus",
    "CHALLENGE_CATALOG",
    "EXPENSE_CATEGORIES",
    "FamilyProfile",
    "Goal",
    "Insight",
    "Member",
    "MemberRole",
    "PaymentMethod",
    "Transaction",
    "TransactionKind",
    "UserData",
    "default_challenges",
    "new_entity_id",
    "new_user_data",
    # Commands
    "CardDraft",
    "CreateGoal",
    "CreateMember",
    "EditGoal",
    "EditMember",
    "FamilyProfileDraft",
    "GoalCommand",
    "GoalFields",
    "MemberCommand",
    "MemberFields",
    "TransactionDraft",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
