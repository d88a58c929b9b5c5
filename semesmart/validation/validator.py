"""
Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - INPUT CHECKS:
- The amount text parses to a positive number
- Required text is present
- Card digits, category/direction agreement
- Text lengths (MAX_TEXT_LENGTHS). Only new entries are limited; stored
  records accept whatever the other clients wrote

STAGE 2 - RECORD CONSTRUCTION:
- The stored model is built; its own constraints (card digits, amounts)
  are reported as issues of the same shape

IMPORTANT: Validation NEVER silently fixes issues. A draft that fails
either stage raises EntryValidationError before anything is persisted.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from semesmart.models.commands import (
    CardDraft,
    FamilyProfileDraft,
    GoalFields,
    MemberFields,
    TransactionDraft,
)
from semesmart.models.family import (
    Card,
    Category,
    FamilyProfile,
    Goal,
    Member,
    PaymentMethod,
    Transaction,
    TransactionKind,
)

MAX_TEXT_LENGTHS = {
    "description": 200,
    "name": 100,
    "title": 50,
    "location": 100,
    "income_source": 100,
}


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Message shown to the user"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None


class EntryValidationError(Exception):
    """A draft was rejected. Nothing was persisted."""

    def __init__(self, entity_type: str, issues: list[ValidationIssue]):
        self.entity_type = entity_type
        self.issues = issues
        super().__init__(
            f"{entity_type} rejected: " + "; ".join(issue.message for issue in issues)
        )

    @property
    def user_message(self) -> str:
        return "\n".join(issue.message for issue in self.issues)


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse an amount as typed in a Brazilian form.

    "45,90", "45.90", "R$ 1.234,56" are accepted. Returns None when the
    text is not a finite number. The sign is NOT checked here.
    """
    cleaned = (text or "").replace("R$", "").replace(" ", "").strip()
    if "," in cleaned and "." in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    else:
        cleaned = cleaned.replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ())) or "entry"
        issues.append(ValidationIssue(
            field=location,
            issue_type=detail.get("type", "invalid_value"),
            message=f"Campo inválido ({location}): {detail.get('msg', '')}",
        ))
    return issues


def _length_issues(**texts: Optional[str]) -> list[ValidationIssue]:
    issues = []
    for field, value in texts.items():
        limit = MAX_TEXT_LENGTHS[field]
        if value and len(value) > limit:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"Use no máximo {limit} caracteres.",
            ))
    return issues


class EntryValidator:
    """
    Turns user drafts into stored records, or raises EntryValidationError.
    """

    def _build(self, model_cls, entity_type: str, issues: list[ValidationIssue], **values):
        if any(issue.severity == "error" for issue in issues):
            raise EntryValidationError(entity_type, issues)
        try:
            return model_cls(**values)
        except ValidationError as e:
            raise EntryValidationError(entity_type, _issues_from_pydantic(e)) from e

    def transaction_from_draft(self, draft: TransactionDraft, transaction_id: str) -> Transaction:
        """
        Build a Transaction from a form draft.

        The stored amount is the parsed magnitude, negated for expenses.
        Expenses keep payment method and location; income keeps its source.
        """
        issues = []

        magnitude = parse_amount(draft.amount_text)
        if magnitude is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Informe um valor numérico válido.",
                suggested_fix="Use apenas números, por exemplo 45,90",
            ))
        elif magnitude <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="O valor deve ser maior que zero.",
            ))

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Informe uma descrição.",
            ))

        if not draft.member_id:
            issues.append(ValidationIssue(
                field="member_id",
                issue_type="missing",
                message="Selecione o membro da família.",
            ))

        issues.extend(_length_issues(description=draft.description))

        if draft.kind is TransactionKind.EXPENSE:
            category = draft.category or Category.OUTROS
            if category is Category.ENTRADA:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="invalid_value",
                    message="A categoria Entrada é reservada para receitas.",
                ))
            values = dict(
                category=category,
                payment_method=draft.payment_method or PaymentMethod.DEBITO,
                location=draft.location or None,
            )
            issues.extend(_length_issues(location=draft.location))
        else:
            values = dict(
                category=Category.ENTRADA,
                income_source=draft.income_source or None,
            )
            issues.extend(_length_issues(income_source=draft.income_source))

        amount = None
        if magnitude is not None:
            amount = float(magnitude)
            if draft.kind is TransactionKind.EXPENSE:
                amount = -amount

        return self._build(
            Transaction,
            "transaction",
            issues,
            id=transaction_id,
            description=draft.description,
            amount=amount,
            date=draft.date,
            member_id=draft.member_id,
            **values,
        )

    def goal_from_fields(
        self,
        fields: GoalFields,
        goal_id: str,
        current_amount: float = 0.0,
    ) -> Goal:
        issues = []

        if not fields.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Informe o nome da meta.",
            ))
        issues.extend(_length_issues(name=fields.name))
        if fields.target_amount <= 0:
            issues.append(ValidationIssue(
                field="target_amount",
                issue_type="invalid_value",
                message="O valor da meta deve ser maior que zero.",
            ))
        if current_amount < 0:
            issues.append(ValidationIssue(
                field="current_amount",
                issue_type="invalid_value",
                message="O valor guardado não pode ser negativo.",
            ))

        return self._build(
            Goal,
            "goal",
            issues,
            id=goal_id,
            name=fields.name,
            target_amount=fields.target_amount,
            current_amount=current_amount,
            illustration=fields.illustration or "🎯",
            deadline=fields.deadline,
        )

    def member_from_fields(self, fields: MemberFields, member_id: str) -> Member:
        issues = []

        if not fields.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Informe o nome do membro.",
            ))
        issues.extend(_length_issues(
            name=fields.name,
            title=fields.title,
            income_source=fields.income_source,
        ))

        return self._build(
            Member,
            "member",
            issues,
            id=member_id,
            name=fields.name,
            title=fields.title,
            role=fields.role,
            avatar=fields.avatar or "😊",
            income_source=fields.income_source or None,
        )

    def profile_from_draft(self, draft: FamilyProfileDraft, current: FamilyProfile) -> FamilyProfile:
        """The creation date of the profile being replaced is kept."""
        issues = []

        if not draft.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Informe o nome da família.",
            ))
        issues.extend(_length_issues(name=draft.name))

        return self._build(
            FamilyProfile,
            "family_profile",
            issues,
            name=draft.name,
            avatar=draft.avatar or current.avatar,
            created_at=current.created_at,
        )

    def card_from_draft(self, draft: CardDraft, card_id: str) -> Card:
        issues = []

        if not draft.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Informe o nome do cartão.",
            ))
        issues.extend(_length_issues(name=draft.name))
        if len(draft.last4) != 4 or not (draft.last4.isascii() and draft.last4.isdigit()):
            issues.append(ValidationIssue(
                field="last4",
                issue_type="invalid_format",
                message="Informe exatamente os 4 últimos dígitos do cartão.",
            ))

        return self._build(
            Card,
            "card",
            issues,
            id=card_id,
            name=draft.name,
            last4=draft.last4,
            issuer=draft.issuer,
        )
