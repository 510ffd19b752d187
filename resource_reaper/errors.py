"""Exception hierarchy for the resource reaper.

Provider and parse failures are recovered inside the reaper and reported on
the operation results. Only cancellation and configuration errors propagate
to callers.
"""

from typing import List, Optional


class ReaperError(Exception):
    """Base class for all reaper errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class ConfigurationError(ReaperError):
    """Exception raised for configuration validation errors."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or []
        super().__init__(message)


class UnsupportedResourceTypeError(ReaperError):
    """No client factory is registered for a resource type."""


class ClientError(ReaperError):
    """Failure reported by a resource client."""

    def __init__(
        self,
        message: str,
        resource_type: str = "",
        cause: Optional[BaseException] = None,
    ):
        self.resource_type = resource_type
        super().__init__(message, cause)


class AuthenticationError(ClientError):
    """Client could not establish credentials or a session."""


class ListResourcesError(ClientError):
    """Client failed to list resources for a resource config."""


class DeleteResourceError(ClientError):
    """Client failed to delete a single resource."""


class CronParseError(ReaperError):
    """A cron expression could not be parsed."""

    def __init__(self, message: str, expression: str = "", cause: Optional[BaseException] = None):
        self.expression = expression
        super().__init__(message, cause)


class ScheduleParseError(CronParseError):
    """The sweep schedule is not a valid cron expression."""


class TTLParseError(CronParseError):
    """A resource TTL is not a valid cron expression."""


class OperationCancelled(ReaperError):
    """The operation context was cancelled or its deadline passed."""
