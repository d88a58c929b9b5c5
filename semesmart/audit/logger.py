"""
Audit Logger

DESIGN DECISION: Every significant action in a session is logged.
This provides:
1. Traceability of every save, including conflict retries
2. Debugging capability when a family reports lost entries
3. A record of rejected sign-ins and permission checks

The audit logger:
- Is async so it can be awaited inline in session flows
- Never raises into the caller (a failed log line must not fail a save)
- Supports correlation IDs to trace the attempts of one operation
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from semesmart.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# JSON lines on the standard library logger
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Writes audit events to the structured log.

    Events go to the structured local log. Nothing is persisted remotely:
    the family document holds only family data.
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("semesmart.audit")
        self.events_logged = 0

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity is AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity is AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity is AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False

        self.events_logged += 1
        return True

    async def log_session_started(self, uid: str, provider: str) -> None:
        await self.log(AuditEventBuilder.session_started(uid, provider))

    async def log_session_ended(self, uid: Optional[str]) -> None:
        await self.log(AuditEventBuilder.session_ended(uid))

    async def log_sign_in_failed(self, provider: str, error_code: str) -> None:
        await self.log(AuditEventBuilder.sign_in_failed(provider, error_code))

    async def log_save_conflict(
        self,
        uid: str,
        action: str,
        attempt: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected conditional write that is about to be re-applied."""
        await self.log(
            AuditEventBuilder.save_conflict(uid, action, attempt, correlation_id)
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    A fresh id tying together the audit events of one user action.

    Use this at the start of a user action (e.g., adding a transaction)
    and pass it through every save attempt of that action.
    """
    return uuid4()
