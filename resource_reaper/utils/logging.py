"""Structured audit logging for the resource reaper.

Every watchlist rebuild, deletion and recovered error goes through
``ReaperLogger`` so that the log stream doubles as the audit trail. All
messages pass through ``LogSanitizer`` before they are emitted.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

from resource_reaper.utils.security import LogSanitizer

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Log levels for reaper operations."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ActionType(Enum):
    """Types of actions that can be logged."""

    SCAN = "SCAN"
    WATCH = "WATCH"
    SCHEDULE = "SCHEDULE"
    DELETE = "DELETE"
    SKIP = "SKIP"
    ERROR = "ERROR"


@dataclass
class LogEntry:
    """Structured log entry."""

    timestamp: datetime
    level: LogLevel
    action: ActionType
    resource_type: str
    resource_id: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    error_info: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary for structured logging."""
        entry = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "action": self.action.value,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "message": self.message,
        }
        if self.details:
            entry["details"] = self.details
        if self.error_info:
            entry["error"] = self.error_info
        return entry


class ReaperLogger:
    """Audit logger scoped to one reaper.

    The most recent entries are kept in memory for reporting as well as
    written to the ``resource_reaper`` logger hierarchy.
    """

    def __init__(
        self,
        project_id: str = "",
        reaper_uuid: str = "",
        dry_run: bool = False,
        max_entries: int = 1000,
    ):
        self.project_id = project_id
        self.reaper_uuid = reaper_uuid
        self.dry_run = dry_run
        self._log_entries: Deque[LogEntry] = deque(maxlen=max_entries)

    def _create_entry(
        self,
        level: LogLevel,
        action: ActionType,
        resource_type: str,
        resource_id: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_info: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        """Create a sanitized log entry."""
        return LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            action=action,
            resource_type=resource_type,
            resource_id=LogSanitizer.sanitize(resource_id),
            message=LogSanitizer.sanitize(message),
            details=LogSanitizer.sanitize_dict(details) if details else {},
            error_info=LogSanitizer.sanitize_dict(error_info) if error_info else None,
        )

    def _log(self, entry: LogEntry) -> None:
        self._log_entries.append(entry)

        prefix = "[DRY RUN] " if self.dry_run else ""
        scope = f"[{self.project_id}] " if self.project_id else ""
        log_message = (
            f"{prefix}{scope}[{entry.action.value}] {entry.resource_type} "
            f"{entry.resource_id}: {entry.message}"
        )

        if entry.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in entry.details.items())
            log_message += f" ({detail_str})"

        if entry.level == LogLevel.DEBUG:
            logger.debug(log_message)
        elif entry.level == LogLevel.INFO:
            logger.info(log_message)
        elif entry.level == LogLevel.WARNING:
            logger.warning(log_message)
        elif entry.level == LogLevel.ERROR:
            if entry.error_info:
                log_message += f" - Error: {entry.error_info}"
            logger.error(log_message)
        elif entry.level == LogLevel.CRITICAL:
            logger.critical(log_message)

    def log_scan_complete(self, resource_type: str, zones: List[str], matching: int) -> None:
        """Log the result of one resource-type query."""
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.SCAN,
                resource_type=resource_type,
                resource_id="*",
                message=f"Scan complete: {matching} resources match filters",
                details={"zones": zones, "matching": matching},
            )
        )

    def log_resource_watched(self, resource_type: str, resource_id: str, ttl: str) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.DEBUG,
                action=ActionType.WATCH,
                resource_type=resource_type,
                resource_id=resource_id,
                message="Resource added to watchlist",
                details={"ttl": ttl},
            )
        )

    def log_watchlist_rebuilt(self, watched: int, errors: int) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.WATCH,
                resource_type="watchlist",
                resource_id=self.reaper_uuid or "*",
                message=f"Watchlist rebuilt with {watched} resources",
                details={"watched": watched, "errors": errors},
            )
        )

    def log_schedule_gate(self, opened: bool, schedule: Optional[str]) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.DEBUG,
                action=ActionType.SCHEDULE,
                resource_type="schedule",
                resource_id=self.reaper_uuid or "*",
                message="Sweep due" if opened else "Sweep not due",
                details={"schedule": schedule or "none"},
            )
        )

    def log_resource_deleted(
        self,
        resource_type: str,
        resource_id: str,
        zone: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a deletion (or, in dry run, a planned deletion)."""
        message = "Would delete resource" if self.dry_run else "Deleted resource"
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.DELETE,
                resource_type=resource_type,
                resource_id=resource_id,
                message=f"{message} in zone {zone}",
                details=details,
            )
        )

    def log_action_skipped(
        self,
        resource_type: str,
        resource_id: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.SKIP,
                resource_type=resource_type,
                resource_id=resource_id,
                message=f"Action skipped: {reason}",
                details=details,
            )
        )

    def log_error(
        self,
        resource_type: str,
        resource_id: str,
        error: Exception,
        action: Optional[ActionType] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a recovered error with its type and message."""
        error_info = {
            "error_type": type(error).__name__,
            "error_message": LogSanitizer.sanitize(str(error)),
        }

        cause = getattr(error, "cause", None)
        if cause is not None:
            error_info["cause"] = f"{type(cause).__name__}: {cause}"

        self._log(
            self._create_entry(
                level=LogLevel.ERROR,
                action=action or ActionType.ERROR,
                resource_type=resource_type,
                resource_id=resource_id,
                message=f"Error occurred: {type(error).__name__}",
                details=details,
                error_info=error_info,
            )
        )

    def log_sweep_complete(self, deleted: int, retained: int, errors: int) -> None:
        mode = "DRY RUN" if self.dry_run else "LIVE"
        logger.info(
            f"Sweep complete ({mode}) for {self.project_id or 'unconfigured project'}: "
            f"{deleted} deleted, {retained} retained, {errors} errors"
        )

    def get_log_entries(self) -> List[LogEntry]:
        """Get all log entries for reporting."""
        return list(self._log_entries)

    def clear(self) -> None:
        self._log_entries.clear()
