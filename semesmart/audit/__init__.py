"""Audit logging for SemeSmart."""

from semesmart.audit.logger import AuditLogger, create_correlation_id

__all__ = ["AuditLogger", "create_correlation_id"]
