"""
Core Data Models for SemeSmart

These models define the one document we keep per family (UserData)
and every record nested inside it.

DESIGN DECISION: Python attributes are snake_case, but the stored document
keeps the camelCase keys and the Portuguese enum spellings the mobile/web
clients already write. Aliases are generated, so `to_document()` produces
the exact Firestore shape and `from_document()` reads it back.

Records are frozen. Changing the aggregate always means building a new one
(see semesmart.updates), never mutating in place.
"""

import datetime
import time
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values (stored spellings are part of the schema)
# =============================================================================

class Category(str, Enum):
    """
    Transaction categories.

    `Entrada` is reserved for income; the others are expense categories.
    """
    MERCADO = "Mercado"
    TRANSPORTE = "Transporte"
    LAZER = "Lazer"
    EDUCACAO = "Educação"
    CONTAS = "Contas"
    SAUDE = "Saúde"
    DIZIMO = "Dízimo"
    OUTROS = "Outros"
    ENTRADA = "Entrada"


EXPENSE_CATEGORIES = [category for category in Category if category is not Category.ENTRADA]


class PaymentMethod(str, Enum):
    """How an expense was paid."""
    DEBITO = "Cartão de Débito"
    CREDITO_A_VISTA = "Crédito à Vista"
    CREDITO_PARCELADO = "Crédito Parcelado"
    DINHEIRO = "Dinheiro"
    BENEFICIO = "Cartão Benefício"
    PIX = "PIX"


class MemberRole(str, Enum):
    """Member role, governs who may edit whom."""
    ADMINISTRADOR = "Administrador"
    CONJUGE = "Cônjuge"
    MEMBRO = "Membro"


class ChallengeStatus(str, Enum):
    """
    Challenge lifecycle.

    CRITICAL: Forward only. available -> active -> completed.
    """
    AVAILABLE = "available"
    ACTIVE = "active"
    COMPLETED = "completed"

    def next_status(self) -> Optional["ChallengeStatus"]:
        """Return the following status, or None once completed."""
        if self is ChallengeStatus.AVAILABLE:
            return ChallengeStatus.ACTIVE
        if self is ChallengeStatus.ACTIVE:
            return ChallengeStatus.COMPLETED
        return None


class CardIssuer(str, Enum):
    """Card brand."""
    VISA = "visa"
    MASTERCARD = "mastercard"
    ELO = "elo"
    AMEX = "amex"
    OTHER = "other"


class TransactionKind(str, Enum):
    """Direction chosen by the user when entering a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# DOCUMENT RECORDS
# =============================================================================

def _date_only(value: Any) -> Any:
    """Accept full ISO timestamps and empty form values for date fields."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return value[:10]
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


class DocumentModel(BaseModel):
    """Base for everything stored inside the user document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    def to_document(self) -> dict:
        """Serialize with the stored (camelCase) keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, data: dict):
        """Build from a stored document."""
        return cls.model_validate(data)


class FamilyProfile(DocumentModel):
    """Family name and picture shown in the header."""

    name: str = Field(
        default="Minha Família",
        description="Family display name"
    )
    avatar: str = Field(
        default="👨‍👩‍👧‍👦",
        description="Emoji or image data URI"
    )
    created_at: Optional[datetime.datetime] = None

    @property
    def has_image_avatar(self) -> bool:
        return self.avatar.startswith("data:image/")


class Member(DocumentModel):
    """
    A person in the family.

    By convention the first member of UserData.members is the account owner.
    """

    id: str = Field(..., min_length=1)
    name: str
    avatar: str = Field(default="😊")
    role: MemberRole = Field(default=MemberRole.MEMBRO)
    title: str = Field(
        default="",
        description="Free-text family label (Pai, Mãe, Filho, ...)"
    )
    income_source: Optional[str] = Field(
        default=None,
        description="Where this member's income usually comes from"
    )

    @property
    def is_admin(self) -> bool:
        return self.role is MemberRole.ADMINISTRADOR


class Transaction(DocumentModel):
    """
    A single income or expense.

    The sign of `amount` is the ONLY direction discriminator:
    positive = income, negative = expense.
    """

    id: str = Field(..., min_length=1)
    description: str
    amount: float = Field(..., description="Signed amount in BRL")
    date: datetime.date
    category: Category
    member_id: str = Field(..., description="Member who made it (not checked for existence)")
    payment_method: Optional[PaymentMethod] = None
    location: Optional[str] = None
    income_source: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time(cls, v: Any) -> Any:
        return _date_only(v)

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def is_income(self) -> bool:
        return self.amount > 0


class Goal(DocumentModel):
    """A savings goal."""

    id: str = Field(..., min_length=1)
    name: str
    target_amount: float = Field(..., ge=0)
    current_amount: float = Field(
        default=0.0,
        ge=0,
        description="Saved so far; may exceed the target"
    )
    illustration: str = Field(default="🎯")
    deadline: Optional[datetime.date] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def strip_time(cls, v: Any) -> Any:
        return _date_only(v)


class Challenge(DocumentModel):
    """A gamified savings task."""

    id: str = Field(..., min_length=1)
    title: str
    description: str
    icon: str
    status: ChallengeStatus = ChallengeStatus.AVAILABLE


class Card(DocumentModel):
    """A registered payment card (only the last four digits are kept)."""

    id: str = Field(..., min_length=1)
    name: str
    last4: str = Field(..., pattern=r"^\d{4}$")
    issuer: CardIssuer = CardIssuer.OTHER


class UserData(DocumentModel):
    """
    The aggregate: a family's entire financial state.

    CRITICAL: This is the sole unit of persistence. It is always
    read and written whole - no partial updates, no per-entity documents.

    Unknown top-level keys found in storage are kept (extra="allow") so a
    rewrite never drops data written by another client version.
    """

    model_config = ConfigDict(extra="allow")

    family_profile: FamilyProfile = Field(default_factory=FamilyProfile)
    members: list[Member] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    challenges: list[Challenge] = Field(default_factory=list)
    cards: list[Card] = Field(default_factory=list)
    has_seen_onboarding: bool = False

    @property
    def owner(self) -> Optional[Member]:
        """The logged-in account's member record (first by convention)."""
        return self.members[0] if self.members else None

    def find_member(self, member_id: str) -> Optional[Member]:
        return next((m for m in self.members if m.id == member_id), None)

    def find_goal(self, goal_id: str) -> Optional[Goal]:
        return next((g for g in self.goals if g.id == goal_id), None)

    def find_challenge(self, challenge_id: str) -> Optional[Challenge]:
        return next((c for c in self.challenges if c.id == challenge_id), None)


class Insight(BaseModel):
    """A short AI-generated spending tip."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)


# =============================================================================
# FACTORIES
# =============================================================================

CHALLENGE_CATALOG = (
    ("c1", "Semana sem delivery", "Cozinhe em casa e economize.", "🧑‍🍳"),
    ("c2", "Reduzir lazer em 15%", "Corte R$150 dos gastos com lazer este mês.", "📉"),
    ("c3", "Dia de compras consciente", "Vá ao mercado com uma lista e siga-a.", "🛒"),
)


def default_challenges() -> list[Challenge]:
    """The fixed challenge catalog every new family starts with."""
    return [
        Challenge(id=cid, title=title, description=description, icon=icon)
        for cid, title, description, icon in CHALLENGE_CATALOG
    ]


def new_entity_id(prefix: str, existing: Iterable[str] = ()) -> str:
    """
    Mint a client-side id: type prefix + millisecond timestamp.

    If the id is already taken (two adds in the same millisecond) a numeric
    suffix is appended until it is unique within `existing`.
    """
    taken = set(existing)
    candidate = f"{prefix}{time.time_ns() // 1_000_000}"
    if candidate not in taken:
        return candidate
    suffix = 1
    while f"{candidate}-{suffix}" in taken:
        suffix += 1
    return f"{candidate}-{suffix}"


def new_user_data(
    owner_name: Optional[str] = None,
    owner_title: Optional[str] = None,
    now: Optional[datetime.datetime] = None,
) -> UserData:
    """
    Build the default aggregate for a brand-new account.

    One owner member (administrator), the challenge catalog,
    no transactions/goals/cards, onboarding not yet seen.
    """
    owner = Member(
        id=new_entity_id("m"),
        name=(owner_name or "").strip() or "Eu",
        avatar="😊",
        role=MemberRole.ADMINISTRADOR,
        title=(owner_title or "").strip() or "Admin",
    )
    return UserData(
        family_profile=FamilyProfile(
            created_at=now or datetime.datetime.now(datetime.timezone.utc),
        ),
        members=[owner],
        challenges=default_challenges(),
        has_seen_onboarding=False,
    )
