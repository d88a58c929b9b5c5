"""
Audit Models for SemeSmart

Every significant action in a family session is recorded as a typed event:
sign-in, document load and save, rejected entries, AI insight requests.

DESIGN DECISION: Events never carry amounts, descriptions or passwords.
Only ids, counts and error codes go into the log.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Session
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    SIGN_IN_FAILED = "sign_in_failed"
    REGISTRATION_COMPLETED = "registration_completed"

    # Aggregate persistence
    USER_DATA_LOADED = "user_data_loaded"
    USER_DATA_BOOTSTRAPPED = "user_data_bootstrapped"
    USER_DATA_LOAD_FAILED = "user_data_load_failed"
    USER_DATA_SAVED = "user_data_saved"
    SAVE_FAILED = "save_failed"
    SAVE_CONFLICT = "save_conflict"

    # Mutation guards
    VALIDATION_FAILED = "validation_failed"
    PERMISSION_DENIED = "permission_denied"

    # Insights
    INSIGHTS_REQUESTED = "insights_requested"
    INSIGHTS_SKIPPED = "insights_skipped"
    INSIGHTS_FAILED = "insights_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which user / record is this about?
    uid: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'user_data')"
    )
    entity_id: Optional[str] = None
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Flat, JSON-safe fields for structlog.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "uid": self.uid,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    One factory per event the session emits.

    Usage:
        event = AuditEventBuilder.session_started(uid, provider="password")
        event = AuditEventBuilder.user_data_saved(uid, "add_transaction", revision)
    """

    @staticmethod
    def session_started(uid: str, provider: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            uid=uid,
            description=f"Session started via {provider}",
            details={"provider": provider},
            is_user_action=True,
        )

    @staticmethod
    def session_ended(uid: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            uid=uid,
            description="Session ended",
            is_user_action=True,
        )

    @staticmethod
    def sign_in_failed(provider: str, error_code: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Sign-in via {provider} failed",
            details={"provider": provider},
            error_code=error_code,
            is_user_action=True,
        )

    @staticmethod
    def registration_completed(uid: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REGISTRATION_COMPLETED,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            description="Account registered and initial family data stored",
            is_user_action=True,
        )

    @staticmethod
    def user_data_loaded(uid: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DATA_LOADED,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            description="Family data loaded",
            details=counts,
        )

    @staticmethod
    def user_data_bootstrapped(uid: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DATA_BOOTSTRAPPED,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            description="No family data found, default document created",
        )

    @staticmethod
    def user_data_load_failed(uid: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DATA_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            description="Family data could not be loaded, session signed out",
            error_message=error_message,
        )

    @staticmethod
    def user_data_saved(
        uid: str,
        action: str,
        correlation_id: Optional[UUID] = None,
        attempts: int = 1,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DATA_SAVED,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            correlation_id=correlation_id,
            description=f"Family data saved after {action}",
            details={"action": action, "attempts": attempts},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        uid: str,
        action: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            correlation_id=correlation_id,
            description=f"Saving family data failed during {action}",
            details={"action": action},
            error_message=error_message,
        )

    @staticmethod
    def save_conflict(
        uid: str,
        action: str,
        attempt: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_CONFLICT,
            severity=AuditSeverity.WARNING,
            uid=uid,
            entity_type="user_data",
            entity_id=uid,
            correlation_id=correlation_id,
            description=f"Family data changed elsewhere during {action}, re-applying",
            details={"action": action, "attempt": attempt},
        )

    @staticmethod
    def validation_failed(
        uid: Optional[str],
        entity_type: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            uid=uid,
            entity_type=entity_type,
            description=f"{entity_type.capitalize()} rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def permission_denied(
        uid: Optional[str],
        action: str,
        acting_member_id: Optional[str],
        target_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            uid=uid,
            entity_id=target_id,
            description=f"Permission denied for {action}",
            details={"action": action, "acting_member_id": acting_member_id},
            is_user_action=True,
        )

    @staticmethod
    def insights_requested(uid: Optional[str], transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_REQUESTED,
            uid=uid,
            entity_type="insights",
            description=f"Insights requested for {transaction_count} expenses",
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def insights_skipped(uid: Optional[str], expense_count: int, threshold: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_SKIPPED,
            severity=AuditSeverity.DEBUG,
            uid=uid,
            entity_type="insights",
            description="Not enough expenses for insights",
            details={"expense_count": expense_count, "threshold": threshold},
        )

    @staticmethod
    def insights_failed(uid: Optional[str], error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_FAILED,
            severity=AuditSeverity.ERROR,
            uid=uid,
            entity_type="insights",
            description="Insight generation failed",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
