"""Input validation and log sanitization for the resource reaper.

Configuration values end up in provider API calls and log output, so they
are checked against conservative patterns and scrubbed of credentials before
being logged.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

RESOURCE_PATTERNS = {
    # GCP project ids are 6-30 chars; AWS projects are 12-digit account ids
    "gcp_project_id": re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$"),
    "aws_account_id": re.compile(r"^[0-9]{12}$"),
    "zone": re.compile(r"^[a-z][a-z0-9-]*[a-z0-9]$"),
    "region": re.compile(r"^[a-z]{2}-[a-z]+-[0-9]$"),
    "arn": re.compile(r"^arn:aws:[a-z0-9-]+:[a-z0-9-]*:[0-9]*:[a-zA-Z0-9/_.-]+$"),
}

DANGEROUS_CHARACTERS = set("<>{}[]|\\`$;!&*()\"'\n\r\t")

MAX_LENGTHS = {
    "project_id": 30,
    "zone": 63,
    "region": 20,
    "arn": 2048,
}


@dataclass
class ValidationResult:
    """Result of input validation."""

    is_valid: bool
    errors: List[str]
    sanitized_value: Optional[Any] = None

    @classmethod
    def valid(cls, sanitized_value: Any = None) -> "ValidationResult":
        return cls(is_valid=True, errors=[], sanitized_value=sanitized_value)

    @classmethod
    def invalid(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=False, errors=errors)


class InputValidator:
    """Validates configuration inputs before they reach provider APIs."""

    @staticmethod
    def validate_project_id(project_id: str) -> ValidationResult:
        """
        Validate a project identifier.

        Accepts GCP project ids and AWS account ids.
        """
        if not project_id:
            return ValidationResult.invalid(["Project ID cannot be empty"])

        if any(c in project_id for c in DANGEROUS_CHARACTERS):
            return ValidationResult.invalid(
                ["Project ID contains potentially dangerous characters"]
            )

        if RESOURCE_PATTERNS["aws_account_id"].match(project_id):
            return ValidationResult.valid(project_id)

        if len(project_id) > MAX_LENGTHS["project_id"]:
            return ValidationResult.invalid(
                [f"Project ID exceeds maximum length of {MAX_LENGTHS['project_id']}"]
            )

        if not RESOURCE_PATTERNS["gcp_project_id"].match(project_id):
            return ValidationResult.invalid(
                [f"Project ID '{project_id}' does not match expected pattern"]
            )

        return ValidationResult.valid(project_id)

    @staticmethod
    def validate_zone(zone: str) -> ValidationResult:
        """Validate a zone or availability zone name."""
        if not zone:
            return ValidationResult.invalid(["Zone cannot be empty"])

        errors = []

        if len(zone) > MAX_LENGTHS["zone"]:
            errors.append(f"Zone exceeds maximum length of {MAX_LENGTHS['zone']}")

        if any(c in zone for c in DANGEROUS_CHARACTERS):
            errors.append("Zone contains potentially dangerous characters")
        elif not RESOURCE_PATTERNS["zone"].match(zone):
            errors.append(f"Zone '{zone}' does not match expected pattern")

        if errors:
            return ValidationResult.invalid(errors)

        return ValidationResult.valid(zone)

    @staticmethod
    def validate_region(region: str) -> ValidationResult:
        """Validate an AWS region."""
        if not region:
            return ValidationResult.invalid(["Region cannot be empty"])

        errors = []

        if len(region) > MAX_LENGTHS["region"]:
            errors.append(f"Region exceeds maximum length of {MAX_LENGTHS['region']}")

        if any(c in region for c in DANGEROUS_CHARACTERS):
            errors.append("Region contains potentially dangerous characters")

        if not RESOURCE_PATTERNS["region"].match(region):
            errors.append("Region does not match expected pattern (e.g., us-east-1)")

        if errors:
            return ValidationResult.invalid(errors)

        return ValidationResult.valid(region)

    @staticmethod
    def validate_arn(arn: str) -> ValidationResult:
        """Validate an AWS ARN."""
        if not arn:
            return ValidationResult.invalid(["ARN cannot be empty"])

        if len(arn) > MAX_LENGTHS["arn"]:
            return ValidationResult.invalid(
                [f"ARN exceeds maximum length of {MAX_LENGTHS['arn']}"]
            )

        if not RESOURCE_PATTERNS["arn"].match(arn):
            return ValidationResult.invalid(["ARN does not match expected format"])

        return ValidationResult.valid(arn)


class LogSanitizer:
    """Sanitizes log output to prevent sensitive data exposure."""

    SENSITIVE_PATTERNS = [
        (
            re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----", re.S),
            "[REDACTED_PRIVATE_KEY]",
        ),
        (re.compile(r"AKIA[0-9A-Z]{16}"), "[REDACTED_ACCESS_KEY]"),
        (re.compile(r"ya29\.[0-9A-Za-z_\-]+"), "[REDACTED_OAUTH_TOKEN]"),
        (re.compile(r"(?i)bearer\s+[0-9A-Za-z._\-]+"), "Bearer [REDACTED]"),
        (re.compile(r"(?i)password\s*[=:]\s*\S+"), "password=[REDACTED]"),
        (re.compile(r"(?i)secret\s*[=:]\s*\S+"), "secret=[REDACTED]"),
        (re.compile(r"(?i)token\s*[=:]\s*\S+"), "token=[REDACTED]"),
        (re.compile(r"(?i)api[_-]?key\s*[=:]\s*\S+"), "api_key=[REDACTED]"),
        (re.compile(r"[a-zA-Z0-9+/]{40}"), "[REDACTED_SECRET]"),
    ]

    @classmethod
    def sanitize(cls, message: str) -> str:
        """
        Sanitize a log message to remove sensitive data.

        Args:
            message: The message to sanitize

        Returns:
            Sanitized message
        """
        sanitized = message
        for pattern, replacement in cls.SENSITIVE_PATTERNS:
            sanitized = pattern.sub(replacement, sanitized)
        return sanitized

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize a dictionary for logging.

        Values under credential-like keys are replaced entirely.
        """
        sanitized = {}
        sensitive_keys = {"password", "secret", "token", "credential", "auth", "private_key"}

        for key, value in data.items():
            key_lower = key.lower()
            if any(s in key_lower for s in sensitive_keys):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, str):
                sanitized[key] = cls.sanitize(value)
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    cls.sanitize(v) if isinstance(v, str) else v for v in value
                ]
            else:
                sanitized[key] = value

        return sanitized
