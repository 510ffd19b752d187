"""Lambda handler for the resource reaper.

Each invocation (typically from an EventBridge schedule) applies the reaper
configuration document and runs the reaper's schedule gate. The document
comes from ``event["reaperConfig"]`` or, when the event carries none, from
``REAPER_CONFIG`` / ``REAPER_CONFIG_FILE``.

Reapers live in a module-level manager, so a warm Lambda container keeps
each reaper's last run time between invocations.
"""

import logging
from typing import Any, Dict, Optional

from resource_reaper.clients.ec2 import EC2Client
from resource_reaper.clients.registry import ClientRegistry, default_registry
from resource_reaper.context import OperationContext
from resource_reaper.errors import ConfigurationError, OperationCancelled
from resource_reaper.manager import ReaperManager
from resource_reaper.models import ReaperConfig, ResourceType
from resource_reaper.notifications.sns_notifier import SNSNotifier
from resource_reaper.utils.aws_client import AWSClientManager
from resource_reaper.utils.config import Settings, configure_logging
from resource_reaper.utils.security import LogSanitizer

logger = logging.getLogger(__name__)

EVENT_CONFIG_KEY = "reaperConfig"

# Time kept back from the Lambda deadline for reporting
LAMBDA_DEADLINE_MARGIN_SECONDS = 5.0

_manager: Optional[ReaperManager] = None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda entry point for the resource reaper.

    Args:
        event: Lambda event, optionally carrying the reaper configuration
            document under ``reaperConfig``
        context: Lambda context object

    Returns:
        Execution result summary with status code and details
    """
    settings = Settings.from_environment(validate=False)
    configure_logging(settings)

    logger.info("Starting resource reaper execution")
    logger.debug(
        f"Settings: dry_run={settings.dry_run}, batch_delete_size={settings.batch_delete_size}, "
        f"log_level={settings.log_level}"
    )

    errors = settings.validate()
    if errors:
        logger.error(f"Configuration errors: {LogSanitizer.sanitize(str(errors))}")
        return {"statusCode": 400, "body": {"errors": errors}}

    try:
        config = load_reaper_config(event, settings)
        reaper = get_manager(settings).get_or_create(config)
    except ConfigurationError as e:
        errors = e.errors or [e.message]
        logger.error(f"Invalid reaper configuration: {LogSanitizer.sanitize(str(errors))}")
        return {"statusCode": 400, "body": {"errors": errors}}

    ctx = OperationContext(timeout_seconds=operation_timeout(settings, context))
    try:
        reconfigure_result = reaper.reconfigure(config, ctx)
        sweep_result = reaper.run_on_schedule(ctx=ctx)
    except OperationCancelled as e:
        logger.error(f"Reaper {reaper.uuid} did not finish: {e.message}")
        return {"statusCode": 504, "body": {"uuid": reaper.uuid, "error": e.message}}

    if sweep_result is not None and settings.notification_topic_arn:
        notifier = SNSNotifier(
            sns_client=AWSClientManager(region=settings.region).sns,
            topic_arn=settings.notification_topic_arn,
        )
        notifier.send_sweep_report(sweep_result, reaper.project_id, reaper.uuid, reconfigure_result)

    body: Dict[str, Any] = {
        "reaper": reaper.get_status(),
        "watched": reconfigure_result.total_watched(),
        "reconfigure_errors": [str(error) for error in reconfigure_result.errors],
        "swept": sweep_result is not None,
    }
    if sweep_result is not None:
        body.update(
            {
                "dry_run": sweep_result.dry_run,
                "deleted": sweep_result.deleted_names(),
                "retained": len(sweep_result.retained),
                "sweep_errors": [str(error) for error in sweep_result.errors],
            }
        )

    return {"statusCode": 200, "body": body}


def load_reaper_config(event: Any, settings: Settings) -> ReaperConfig:
    """
    Build and validate the reaper configuration for an invocation.

    Raises:
        ConfigurationError: If no document is available or it is invalid
    """
    document = event.get(EVENT_CONFIG_KEY) if isinstance(event, dict) else None
    if document is None:
        document = settings.load_reaper_document()
    if document is None:
        raise ConfigurationError(
            f"No reaper configuration in the event ('{EVENT_CONFIG_KEY}') "
            "or REAPER_CONFIG / REAPER_CONFIG_FILE"
        )

    config = ReaperConfig.from_dict(document)
    errors = config.validate()
    if not config.uuid:
        errors.append("Reaper configuration must include a uuid")
    if errors:
        raise ConfigurationError(f"Reaper configuration validation failed: {errors}", errors=errors)
    return config


def operation_timeout(settings: Settings, context: Any) -> Optional[float]:
    """Deadline for the invocation: the configured timeout capped by Lambda's."""
    timeout = settings.operation_timeout_seconds
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if callable(get_remaining):
        lambda_remaining = max(0.0, get_remaining() / 1000.0 - LAMBDA_DEADLINE_MARGIN_SECONDS)
        timeout = lambda_remaining if timeout is None else min(timeout, lambda_remaining)
    return timeout


def build_registry(settings: Settings) -> ClientRegistry:
    """Default registry with the EC2 client bound to the configured region."""
    registry = default_registry.copy()
    registry.register(
        ResourceType.EC2_INSTANCE,
        lambda: EC2Client(client_manager=AWSClientManager(region=settings.region)),
    )
    return registry


def get_manager(settings: Settings) -> ReaperManager:
    """Manager shared across invocations of a warm container."""
    global _manager
    if _manager is None:
        _manager = ReaperManager(
            registry=build_registry(settings),
            dry_run=settings.dry_run,
            batch_delete_size=settings.batch_delete_size,
            deadline_inclusive=settings.ttl_inclusive,
        )
    return _manager


def reset_manager() -> None:
    """Drop the shared manager so the next invocation starts cold."""
    global _manager
    _manager = None
