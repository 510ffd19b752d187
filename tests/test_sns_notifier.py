"""Tests for SNS sweep reports."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from conftest import make_resource
from resource_reaper.errors import DeleteResourceError, ListResourcesError
from resource_reaper.models import (
    OperationError,
    ReconfigureResult,
    SweepResult,
    WatchedResource,
)
from resource_reaper.notifications.sns_notifier import MAX_SUBJECT_LENGTH, SNSNotifier

TOPIC_ARN = "arn:aws:sns:us-east-1:123456789012:reaper-reports"


def watched(name: str) -> WatchedResource:
    return WatchedResource.from_resource(make_resource(name), "0 * * * *")


def create_result(dry_run: bool = False, errors=None) -> SweepResult:
    return SweepResult(
        deleted=[watched("vm-1"), watched("vm-2")],
        retained=[watched("vm-3")],
        errors=errors or [],
        dry_run=dry_run,
    )


class TestSNSNotifier:
    """Tests for SNSNotifier."""

    def test_no_topic_skips(self):
        sns = MagicMock()

        assert SNSNotifier(sns, "").send_sweep_report(create_result(), "p", "r") is False
        sns.publish.assert_not_called()

    def test_publishes_report(self):
        sns = MagicMock()

        sent = SNSNotifier(sns, TOPIC_ARN).send_sweep_report(
            create_result(), "test-project", "reaper-1"
        )

        assert sent is True
        kwargs = sns.publish.call_args.kwargs
        assert kwargs["TopicArn"] == TOPIC_ARN
        assert kwargs["Subject"] == "Resource Reaper - Deleted 2 resources in test-project"
        assert "GCE_VM vm-1" in kwargs["Message"]
        assert "Still watched: 1" in kwargs["Message"]
        assert "Reaper: reaper-1" in kwargs["Message"]

    def test_dry_run_report(self):
        sns = MagicMock()

        SNSNotifier(sns, TOPIC_ARN).send_sweep_report(
            create_result(dry_run=True), "test-project", "reaper-1"
        )

        kwargs = sns.publish.call_args.kwargs
        assert kwargs["Subject"].startswith("[DRY RUN]")
        assert "PLANNED DELETIONS" in kwargs["Message"]
        assert "Mode: DRY RUN" in kwargs["Message"]

    def test_errors_included(self):
        sns = MagicMock()
        sweep_errors = [OperationError("us-east1-b/vm-4", DeleteResourceError("denied"))]
        reconfigure = ReconfigureResult(
            errors=[OperationError("GCE_VM", ListResourcesError("zone down"))]
        )

        SNSNotifier(sns, TOPIC_ARN).send_sweep_report(
            create_result(errors=sweep_errors), "test-project", "reaper-1", reconfigure
        )

        kwargs = sns.publish.call_args.kwargs
        assert "(1 errors)" in kwargs["Subject"]
        assert "ListResourcesError: zone down" in kwargs["Message"]
        assert "DeleteResourceError: denied" in kwargs["Message"]

    def test_subject_truncated(self):
        sns = MagicMock()

        SNSNotifier(sns, TOPIC_ARN).send_sweep_report(create_result(), "p" * 200, "reaper-1")

        assert len(sns.publish.call_args.kwargs["Subject"]) == MAX_SUBJECT_LENGTH

    def test_publish_failure_returns_false(self):
        sns = MagicMock()
        sns.publish.side_effect = ClientError({"Error": {"Code": "AuthorizationError"}}, "Publish")

        sent = SNSNotifier(sns, TOPIC_ARN).send_sweep_report(create_result(), "p", "r")

        assert sent is False

    def test_timestamp_present(self):
        sns = MagicMock()
        year = str(datetime.now(UTC).year)

        SNSNotifier(sns, TOPIC_ARN).send_sweep_report(create_result(), "p", "r")

        assert f"Timestamp: {year}" in sns.publish.call_args.kwargs["Message"]
