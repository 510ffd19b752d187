"""Cron parsing and the sweep schedule gate.

The same five-field grammar (minute, hour, day-of-month, month, day-of-week)
drives both the sweep schedule and resource TTLs. Descriptors such as
``@daily`` are accepted as well.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from croniter import CroniterBadDateError, croniter

from resource_reaper.clock import ensure_utc
from resource_reaper.errors import CronParseError, ScheduleParseError

logger = logging.getLogger(__name__)

CRON_FIELD_COUNT = 5


class CronSchedule:
    """A validated cron expression that can compute its next occurrence."""

    def __init__(self, expression: str):
        """
        Parse a cron expression.

        Args:
            expression: Standard five-field cron expression or descriptor

        Raises:
            CronParseError: If the expression is not valid cron grammar
        """
        expression = (expression or "").strip()
        if not expression:
            raise CronParseError("Cron expression cannot be empty", expression)

        if not expression.startswith("@"):
            fields = expression.split()
            if len(fields) != CRON_FIELD_COUNT:
                raise CronParseError(
                    f"Expected {CRON_FIELD_COUNT} cron fields, got {len(fields)}: '{expression}'",
                    expression,
                )

        try:
            croniter(expression)
        except (ValueError, KeyError) as e:
            raise CronParseError(
                f"Invalid cron expression '{expression}': {e}", expression, cause=e
            ) from e

        self.expression = expression

    def next(self, after: datetime, inclusive: bool = False) -> datetime:
        """
        Get the next occurrence of the schedule.

        Args:
            after: Instant to search forward from (naive values are UTC)
            inclusive: If True, an occurrence exactly at ``after`` counts

        Returns:
            The next matching instant, strictly after ``after`` unless inclusive

        Raises:
            CronParseError: If the expression never fires, such as ``0 0 30 2 *``
        """
        start = ensure_utc(after)
        try:
            if inclusive:
                earlier = start - timedelta(seconds=1)
                candidate = croniter(self.expression, earlier).get_next(datetime)
                if candidate >= start:
                    return candidate
            return croniter(self.expression, start).get_next(datetime)
        except CroniterBadDateError as e:
            raise CronParseError(
                f"Cron expression '{self.expression}' has no occurrence after {start.isoformat()}",
                self.expression,
                cause=e,
            ) from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CronSchedule):
            return NotImplemented
        return self.expression == other.expression

    def __hash__(self) -> int:
        return hash(self.expression)

    def __repr__(self) -> str:
        return f"CronSchedule('{self.expression}')"


def parse_schedule(expression: str) -> CronSchedule:
    """
    Parse the sweep schedule.

    Raises:
        ScheduleParseError: If the expression is not valid cron grammar
    """
    try:
        return CronSchedule(expression)
    except CronParseError as e:
        raise ScheduleParseError(e.message, expression, cause=e) from e


def should_run(
    schedule: Optional[CronSchedule],
    last_run_time: Optional[datetime],
    now: datetime,
) -> bool:
    """
    Decide whether a periodic trigger should start a sweep.

    Without a schedule, or with one that never fires, the gate never opens.
    A reaper that has never run sweeps immediately; afterwards it waits until
    ``now`` is strictly past the next occurrence after the last run.
    """
    if schedule is None:
        return False
    try:
        next_run = schedule.next(last_run_time if last_run_time is not None else now)
    except CronParseError as e:
        logger.error(f"Schedule gate stays closed: {e.message}")
        return False
    if last_run_time is None:
        return True
    logger.debug(f"Next scheduled sweep after {next_run.isoformat()}")
    return ensure_utc(now) > next_run
