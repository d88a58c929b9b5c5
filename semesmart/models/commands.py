"""
Command Payloads

What the user typed, before it becomes a stored record.

DESIGN DECISION: "create or edit" is decided by an explicit tag
(`kind`), not by checking whether the payload happens to carry an id.
The session dispatches on the tag; pydantic picks the variant from it.
"""

import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from semesmart.models.family import (
    CardIssuer,
    Category,
    MemberRole,
    PaymentMethod,
    TransactionKind,
)


class _Command(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)


class TransactionDraft(_Command):
    """
    A transaction as entered in the form.

    `amount_text` is the unsigned magnitude as typed ("45,90"); the sign
    comes from `kind`.
    """

    kind: TransactionKind
    description: str
    amount_text: str
    member_id: str
    date: datetime.date = Field(default_factory=datetime.date.today)
    category: Optional[Category] = Field(
        default=None,
        description="Defaults to Outros for expenses and Entrada for income"
    )
    payment_method: Optional[PaymentMethod] = None
    location: Optional[str] = None
    income_source: Optional[str] = None


class GoalFields(_Command):
    """Editable goal fields."""

    name: str
    target_amount: float
    illustration: str = "🎯"
    deadline: Optional[datetime.date] = None


class CreateGoal(_Command):
    kind: Literal["create"] = "create"
    fields: GoalFields


class EditGoal(_Command):
    kind: Literal["edit"] = "edit"
    goal_id: str
    fields: GoalFields
    current_amount: float = Field(..., description="Only edits may change the saved amount")


GoalCommand = Annotated[Union[CreateGoal, EditGoal], Field(discriminator="kind")]


class MemberFields(_Command):
    """Editable member fields."""

    name: str
    title: str = ""
    role: MemberRole = MemberRole.MEMBRO
    avatar: str = "😊"
    income_source: Optional[str] = None


class CreateMember(_Command):
    kind: Literal["create"] = "create"
    fields: MemberFields


class EditMember(_Command):
    kind: Literal["edit"] = "edit"
    member_id: str
    fields: MemberFields


MemberCommand = Annotated[Union[CreateMember, EditMember], Field(discriminator="kind")]


class CardDraft(_Command):
    name: str
    last4: str
    issuer: CardIssuer = CardIssuer.OTHER


class FamilyProfileDraft(_Command):
    """New family name and picture (emoji or image data URI)."""

    name: str
    avatar: str = "👨‍👩‍👧‍👦"
