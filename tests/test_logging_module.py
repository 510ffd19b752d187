"""Tests for structured audit logging."""

import logging
from datetime import UTC, datetime

from resource_reaper.errors import ListResourcesError
from resource_reaper.utils.logging import ActionType, LogEntry, LogLevel, ReaperLogger


class TestLogEntry:
    """Tests for LogEntry dataclass."""

    def test_log_entry_to_dict_basic(self):
        entry = LogEntry(
            timestamp=datetime(2025, 1, 11, 12, 0, 0, tzinfo=UTC),
            level=LogLevel.INFO,
            action=ActionType.WATCH,
            resource_type="GCE_VM",
            resource_id="us-east1-b/vm-1",
            message="Resource added to watchlist",
        )

        result = entry.to_dict()

        assert result["timestamp"] == "2025-01-11T12:00:00+00:00"
        assert result["level"] == "INFO"
        assert result["action"] == "WATCH"
        assert result["resource_id"] == "us-east1-b/vm-1"
        assert "details" not in result
        assert "error" not in result

    def test_log_entry_to_dict_with_error(self):
        entry = LogEntry(
            timestamp=datetime(2025, 1, 11, tzinfo=UTC),
            level=LogLevel.ERROR,
            action=ActionType.ERROR,
            resource_type="GCE_VM",
            resource_id="*",
            message="failed",
            details={"zones": ["a"]},
            error_info={"error_type": "ListResourcesError"},
        )

        result = entry.to_dict()

        assert result["details"] == {"zones": ["a"]}
        assert result["error"]["error_type"] == "ListResourcesError"


class TestReaperLogger:
    """Tests for ReaperLogger."""

    def test_scan_complete(self):
        audit = ReaperLogger(project_id="test-project")

        audit.log_scan_complete("GCE_VM", ["us-east1-b"], 3)

        entry = audit.get_log_entries()[0]
        assert entry.action == ActionType.SCAN
        assert entry.details["matching"] == 3

    def test_deleted_message_depends_on_dry_run(self):
        live = ReaperLogger()
        dry = ReaperLogger(dry_run=True)

        live.log_resource_deleted("GCE_VM", "vm-1", "us-east1-b")
        dry.log_resource_deleted("GCE_VM", "vm-1", "us-east1-b")

        assert live.get_log_entries()[0].message.startswith("Deleted resource")
        assert dry.get_log_entries()[0].message.startswith("Would delete resource")

    def test_error_includes_cause(self):
        audit = ReaperLogger()
        error = ListResourcesError("list failed", cause=TimeoutError("slow zone"))

        audit.log_error("GCE_VM", "*", error, action=ActionType.SCAN)

        entry = audit.get_log_entries()[0]
        assert entry.level == LogLevel.ERROR
        assert entry.action == ActionType.SCAN
        assert entry.error_info["error_type"] == "ListResourcesError"
        assert "slow zone" in entry.error_info["cause"]

    def test_error_defaults_to_error_action(self):
        audit = ReaperLogger()

        audit.log_error("GCE_VM", "vm-1", ValueError("bad"))

        assert audit.get_log_entries()[0].action == ActionType.ERROR

    def test_messages_are_sanitized(self):
        audit = ReaperLogger()

        audit.log_action_skipped("GCE_VM", "vm-1", "token=abcdef123")

        assert "abcdef123" not in audit.get_log_entries()[0].message

    def test_entries_bounded(self):
        audit = ReaperLogger(max_entries=3)

        for i in range(5):
            audit.log_resource_watched("GCE_VM", f"vm-{i}", "* * * * *")

        ids = [e.resource_id for e in audit.get_log_entries()]
        assert ids == ["vm-2", "vm-3", "vm-4"]

    def test_clear(self):
        audit = ReaperLogger()
        audit.log_schedule_gate(True, "* * * * *")

        audit.clear()

        assert audit.get_log_entries() == []

    def test_emits_to_package_logger(self, caplog):
        audit = ReaperLogger(project_id="test-project", dry_run=True)

        with caplog.at_level(logging.INFO, logger="resource_reaper"):
            audit.log_watchlist_rebuilt(watched=2, errors=0)
            audit.log_sweep_complete(deleted=1, retained=1, errors=0)

        assert "[DRY RUN] [test-project] [WATCH]" in caplog.text
        assert "Sweep complete (DRY RUN)" in caplog.text
