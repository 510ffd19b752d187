"""Resource Reaper - TTL-based cleanup of cloud test resources."""

__version__ = "1.0.0"

from resource_reaper.clock import Clock
from resource_reaper.errors import (
    AuthenticationError,
    ConfigurationError,
    DeleteResourceError,
    ListResourcesError,
    OperationCancelled,
    ReaperError,
    ScheduleParseError,
    TTLParseError,
    UnsupportedResourceTypeError,
)
from resource_reaper.manager import ReaperManager
from resource_reaper.models import (
    DeletionEvent,
    OperationError,
    ReaperConfig,
    ReconfigureResult,
    Resource,
    ResourceConfig,
    ResourceType,
    SweepResult,
    WatchedResource,
)
from resource_reaper.reaper import Reaper

__all__ = [
    "AuthenticationError",
    "Clock",
    "ConfigurationError",
    "DeleteResourceError",
    "DeletionEvent",
    "ListResourcesError",
    "OperationCancelled",
    "OperationError",
    "Reaper",
    "ReaperConfig",
    "ReaperError",
    "ReaperManager",
    "ReconfigureResult",
    "Resource",
    "ResourceConfig",
    "ResourceType",
    "ScheduleParseError",
    "SweepResult",
    "TTLParseError",
    "UnsupportedResourceTypeError",
    "WatchedResource",
]
