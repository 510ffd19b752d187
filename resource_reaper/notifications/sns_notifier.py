"""SNS reports for reaper sweeps.

A report lists what a sweep deleted (or, in dry run, would delete), what it
kept watching, and the errors it recovered from.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from resource_reaper.models import ReconfigureResult, SweepResult
from resource_reaper.utils.security import LogSanitizer

logger = logging.getLogger(__name__)

# SNS rejects subjects longer than this
MAX_SUBJECT_LENGTH = 100


class SNSNotifier:
    """Publishes sweep reports to an SNS topic."""

    def __init__(self, sns_client: Any, topic_arn: str):
        """
        Initialize SNS notifier.

        Args:
            sns_client: Boto3 SNS client
            topic_arn: ARN of the SNS topic
        """
        self.sns = sns_client
        self.topic_arn = topic_arn

    def send_sweep_report(
        self,
        result: SweepResult,
        project_id: str,
        reaper_uuid: str,
        reconfigure_result: Optional[ReconfigureResult] = None,
    ) -> bool:
        """
        Send a report about one sweep.

        Args:
            result: Sweep result
            project_id: Project the reaper watches
            reaper_uuid: Reaper identity
            reconfigure_result: Optional result of the watchlist rebuild that
                preceded the sweep

        Returns:
            True if notification sent successfully
        """
        if not self.topic_arn:
            logger.warning("No SNS topic ARN configured, skipping notification")
            return False

        subject = self._build_subject(result, project_id)
        message = self._build_message(result, project_id, reaper_uuid, reconfigure_result)

        try:
            self.sns.publish(
                TopicArn=self.topic_arn,
                Subject=subject,
                Message=message,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error sending SNS notification: {LogSanitizer.sanitize(str(e))}")
            return False

        logger.info(f"Sent sweep report to {self.topic_arn}")
        return True

    def _build_subject(self, result: SweepResult, project_id: str) -> str:
        """Build notification subject line."""
        if result.dry_run:
            subject = f"[DRY RUN] Resource Reaper - {result.total_deleted()} would be deleted"
        else:
            subject = f"Resource Reaper - Deleted {result.total_deleted()} resources"
            if result.errors:
                subject += f" ({len(result.errors)} errors)"
        subject += f" in {project_id}"
        return subject[:MAX_SUBJECT_LENGTH]

    def _build_message(
        self,
        result: SweepResult,
        project_id: str,
        reaper_uuid: str,
        reconfigure_result: Optional[ReconfigureResult],
    ) -> str:
        lines: List[str] = [
            "=" * 60,
            "RESOURCE REAPER - SWEEP REPORT",
            "=" * 60,
            "",
            f"Timestamp: {datetime.now(timezone.utc).isoformat()}",
            f"Project: {project_id}",
            f"Reaper: {reaper_uuid}",
            f"Mode: {'DRY RUN' if result.dry_run else 'LIVE'}",
            "",
            "SUMMARY",
            "-" * 40,
            f"{'Would delete' if result.dry_run else 'Deleted'}: {result.total_deleted()}",
            f"Still watched: {len(result.retained)}",
            f"Errors: {len(result.errors)}",
            "",
        ]

        if result.deleted:
            heading = "PLANNED DELETIONS" if result.dry_run else "DELETED RESOURCES"
            lines.extend([heading, "-" * 40])
            for resource in result.deleted:
                lines.append(
                    f"  - {resource.resource_type.name} {resource.name} "
                    f"({resource.zone}, ttl '{resource.ttl}')"
                )
            lines.append("")

        errors = list(result.errors)
        if reconfigure_result is not None:
            errors = list(reconfigure_result.errors) + errors
        if errors:
            lines.extend(["ERRORS", "-" * 40])
            for error in errors:
                lines.append(f"  - {error.item}: {type(error.error).__name__}: {error.error}")
            lines.append("")

        lines.append("=" * 60)
        return LogSanitizer.sanitize("\n".join(lines))
