"""Configuration management for the resource reaper.

Process-level settings come from environment variables. The reaper
configuration document itself (projects, resources, schedule) is JSON and can
be supplied inline or as a file.

Key configuration options:
- LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- DRY_RUN: Log planned deletions without deleting anything
- BATCH_DELETE_SIZE: Number of deletions issued concurrently during a sweep
- OPERATION_TIMEOUT_SECONDS: Deadline for one reconfigure or sweep
- NOTIFICATION_TOPIC_ARN / SNS_TOPIC_ARN: SNS topic for sweep reports
- TTL_INCLUSIVE: Let a TTL occurrence exactly at creation time count
- REAPER_CONFIG / REAPER_CONFIG_FILE: Reaper configuration document
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from resource_reaper.errors import ConfigurationError
from resource_reaper.utils.security import InputValidator

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

TRUE_VALUES = ("true", "1", "yes")

_config_logger = logging.getLogger(__name__)

__all__ = [
    "VALID_LOG_LEVELS",
    "ConfigurationError",
    "Settings",
    "configure_logging",
]


@dataclass
class Settings:
    """Process settings for running reapers.

    Attributes:
        log_level: Log level for output.
        dry_run: When True, eligible resources are reported but not deleted.
        batch_delete_size: Deletions issued concurrently within one sweep.
        operation_timeout_seconds: Deadline for one reconfigure or sweep,
            None for no deadline.
        notification_topic_arn: SNS topic that receives sweep reports.
        region: AWS region for the EC2 client and SNS.
        ttl_inclusive: Count a TTL occurrence exactly at creation time.
        reaper_config: Inline JSON reaper configuration document.
        reaper_config_file: Path to a JSON reaper configuration document.
    """

    log_level: str = "INFO"
    dry_run: bool = False
    batch_delete_size: int = 1
    operation_timeout_seconds: Optional[float] = None
    notification_topic_arn: str = ""
    region: str = "us-east-1"
    ttl_inclusive: bool = False
    reaper_config: str = ""
    reaper_config_file: str = ""

    @classmethod
    def from_environment(cls, validate: bool = True) -> "Settings":
        """Create settings from environment variables.

        Args:
            validate: If True, validates the settings and raises
                ConfigurationError if invalid.

        Raises:
            ConfigurationError: If validation is enabled and settings are invalid.
        """
        settings = cls()

        log_level_value = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        if log_level_value in VALID_LOG_LEVELS:
            settings.log_level = log_level_value
        else:
            _config_logger.warning(f"Invalid LOG_LEVEL '{log_level_value}', defaulting to INFO")
            settings.log_level = "INFO"

        settings.dry_run = os.environ.get("DRY_RUN", "false").lower().strip() in TRUE_VALUES
        settings.ttl_inclusive = (
            os.environ.get("TTL_INCLUSIVE", "false").lower().strip() in TRUE_VALUES
        )

        batch_size_value = os.environ.get("BATCH_DELETE_SIZE", "1").strip()
        try:
            parsed_batch_size = int(batch_size_value)
            if parsed_batch_size < 1:
                _config_logger.warning(
                    f"Invalid BATCH_DELETE_SIZE '{parsed_batch_size}' (must be positive), defaulting to 1"
                )
                parsed_batch_size = 1
            settings.batch_delete_size = parsed_batch_size
        except ValueError:
            _config_logger.warning(
                f"Invalid BATCH_DELETE_SIZE '{batch_size_value}' (not a valid integer), defaulting to 1"
            )
            settings.batch_delete_size = 1

        timeout_value = os.environ.get("OPERATION_TIMEOUT_SECONDS", "").strip()
        if timeout_value:
            try:
                parsed_timeout = float(timeout_value)
                if parsed_timeout > 0:
                    settings.operation_timeout_seconds = parsed_timeout
                else:
                    _config_logger.warning(
                        f"Invalid OPERATION_TIMEOUT_SECONDS '{timeout_value}' (must be positive), "
                        "running without a deadline"
                    )
            except ValueError:
                _config_logger.warning(
                    f"Invalid OPERATION_TIMEOUT_SECONDS '{timeout_value}' (not a number), "
                    "running without a deadline"
                )

        settings.notification_topic_arn = os.environ.get("NOTIFICATION_TOPIC_ARN", "")
        if not settings.notification_topic_arn:
            settings.notification_topic_arn = os.environ.get("SNS_TOPIC_ARN", "")

        settings.region = os.environ.get("AWS_REGION", "us-east-1")
        settings.reaper_config = os.environ.get("REAPER_CONFIG", "")
        settings.reaper_config_file = os.environ.get("REAPER_CONFIG_FILE", "")

        if validate:
            errors = settings.validate()
            if errors:
                raise ConfigurationError(
                    f"Configuration validation failed: {errors}", errors=errors
                )

        return settings

    def validate(self) -> List[str]:
        """Validate settings and return list of errors."""
        errors = []

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"Invalid log level: {self.log_level}")

        if self.batch_delete_size < 1:
            errors.append("BATCH_DELETE_SIZE must be a positive integer")

        region_result = InputValidator.validate_region(self.region)
        errors.extend(region_result.errors)

        if self.notification_topic_arn:
            arn_result = InputValidator.validate_arn(self.notification_topic_arn)
            if not arn_result.is_valid or not self.notification_topic_arn.startswith(
                "arn:aws:sns:"
            ):
                errors.append(f"Invalid SNS topic ARN: {self.notification_topic_arn}")

        if self.reaper_config_file and not os.path.isfile(self.reaper_config_file):
            errors.append(f"REAPER_CONFIG_FILE not found: {self.reaper_config_file}")

        return errors

    def get_numeric_log_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    def load_reaper_document(self) -> Optional[Dict[str, Any]]:
        """Load the reaper configuration document.

        Inline ``REAPER_CONFIG`` takes precedence over ``REAPER_CONFIG_FILE``.

        Returns:
            The parsed document, or None if neither source is configured.

        Raises:
            ConfigurationError: If the document cannot be read or parsed.
        """
        if self.reaper_config:
            source = "REAPER_CONFIG"
            text = self.reaper_config
        elif self.reaper_config_file:
            source = self.reaper_config_file
            try:
                with open(self.reaper_config_file, encoding="utf-8") as handle:
                    text = handle.read()
            except OSError as e:
                raise ConfigurationError(f"Cannot read {source}: {e}") from e
        else:
            return None

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {source}: {e}") from e

        if not isinstance(document, dict):
            raise ConfigurationError(f"{source} must contain a JSON object")
        return document


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure logging from settings or the LOG_LEVEL environment variable.

    Returns:
        The ``resource_reaper`` package logger.
    """
    if settings is None:
        log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        if log_level_str not in VALID_LOG_LEVELS:
            logging.warning(f"Invalid LOG_LEVEL '{log_level_str}', defaulting to INFO")
            log_level_str = "INFO"
    else:
        log_level_str = settings.log_level

    log_level = getattr(logging, log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )

    reaper_logger = logging.getLogger("resource_reaper")
    reaper_logger.setLevel(log_level)

    return reaper_logger
