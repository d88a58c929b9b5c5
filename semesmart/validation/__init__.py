"""Entry validation and edit permissions."""

from semesmart.validation.permissions import (
    PermissionDeniedError,
    can_edit,
    can_edit_family_profile,
)
from semesmart.validation.validator import (
    EntryValidationError,
    EntryValidator,
    ValidationIssue,
    parse_amount,
)

__all__ = [
    "EntryValidationError",
    "EntryValidator",
    "PermissionDeniedError",
    "ValidationIssue",
    "can_edit",
    "can_edit_family_profile",
    "parse_amount",
]
