"""Tests for the audit logger."""

from unittest.mock import MagicMock

from semesmart.audit import AuditLogger, create_correlation_id
from semesmart.models import AuditEventBuilder

from support import run


class TestAuditLogger:

    def test_routes_by_severity(self):
        backend = MagicMock()
        audit = AuditLogger(logger=backend)

        run(audit.log(AuditEventBuilder.user_data_saved("uid-1", "add_transaction")))
        run(audit.log(AuditEventBuilder.save_conflict("uid-1", "add_transaction", attempt=1)))
        run(audit.log(AuditEventBuilder.insights_failed("uid-1", "boom")))
        run(audit.log(AuditEventBuilder.insights_skipped("uid-1", 2, 5)))

        backend.info.assert_called_once()
        backend.warning.assert_called_once()
        backend.error.assert_called_once()
        backend.debug.assert_called_once()
        assert audit.events_logged == 4

    def test_log_failure_does_not_raise(self):
        backend = MagicMock()
        backend.info.side_effect = RuntimeError("disk full")
        audit = AuditLogger(logger=backend)

        assert run(audit.log(AuditEventBuilder.session_started("uid-1", "password"))) is False
        assert audit.events_logged == 0

    def test_correlation_id_is_carried(self):
        backend = MagicMock()
        audit = AuditLogger(logger=backend)
        correlation_id = create_correlation_id()

        run(audit.log_save_conflict("uid-1", "edit_goal", 2, correlation_id))

        kwargs = backend.warning.call_args[1]
        assert kwargs["correlation_id"] == str(correlation_id)
        assert kwargs["details"] == {"action": "edit_goal", "attempt": 2}
