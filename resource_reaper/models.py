"""Data models for the resource reaper."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from resource_reaper.clock import Clock, ensure_utc
from resource_reaper.errors import ConfigurationError, CronParseError, ReaperError, TTLParseError
from resource_reaper.schedule import CronSchedule
from resource_reaper.utils.security import InputValidator

logger = logging.getLogger(__name__)


class ResourceType(Enum):
    """Types of cloud resources the reaper can watch."""

    GCE_VM = "gce_vm"
    EC2_INSTANCE = "ec2_instance"

    @classmethod
    def parse(cls, value: Any) -> "ResourceType":
        """Resolve an enum member from its name or value."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.upper() == member.name or text.lower() == member.value:
                return member
        raise ConfigurationError(f"Unknown resource type: '{value}'")


@dataclass
class ResourceConfig:
    """One query against one resource type."""

    resource_type: ResourceType
    zones: List[str] = field(default_factory=list)
    name_filter: str = ""
    skip_filter: str = ""
    ttl: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceConfig":
        """
        Build a resource config from one entry of a document's resources.

        Raises:
            ConfigurationError: If the entry is not a mapping or a field has
                the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"ResourceConfig must be a mapping, got {data!r}")
        zones = _get(data, "zones", "zones") or []
        if isinstance(zones, str) or not isinstance(zones, (list, tuple)):
            raise ConfigurationError(f"ResourceConfig zones must be a list, got {zones!r}")
        return cls(
            resource_type=ResourceType.parse(_get(data, "resourceType", "resource_type")),
            zones=[str(zone) for zone in zones],
            name_filter=_get_string(data, "nameFilter", "name_filter"),
            skip_filter=_get_string(data, "skipFilter", "skip_filter"),
            ttl=_get_string(data, "ttl", "ttl"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resourceType": self.resource_type.name,
            "zones": list(self.zones),
            "nameFilter": self.name_filter,
            "skipFilter": self.skip_filter,
            "ttl": self.ttl,
        }


@dataclass
class ReaperConfig:
    """Partial update document applied by ``Reaper.reconfigure``.

    ``project_id``, ``uuid`` and ``schedule`` left as None keep the reaper's
    current value. ``resources`` always replaces the full query set.
    """

    resources: List[ResourceConfig] = field(default_factory=list)
    schedule: Optional[str] = None
    project_id: Optional[str] = None
    uuid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReaperConfig":
        """
        Build a config from a JSON-style document.

        Absent keys and empty strings both mean "no change".

        Raises:
            ConfigurationError: If the document is malformed
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Reaper configuration must be a mapping")

        resources = _get(data, "resources", "resources") or []
        if not isinstance(resources, list):
            raise ConfigurationError("Reaper configuration 'resources' must be a list")

        return cls(
            resources=[ResourceConfig.from_dict(item) for item in resources],
            schedule=_optional(_get(data, "schedule", "schedule")),
            project_id=_optional(_get(data, "projectID", "project_id")),
            uuid=_optional(_get(data, "uuid", "uuid")),
        )

    def to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {"resources": [r.to_dict() for r in self.resources]}
        if self.schedule is not None:
            document["schedule"] = self.schedule
        if self.project_id is not None:
            document["projectID"] = self.project_id
        if self.uuid is not None:
            document["uuid"] = self.uuid
        return document

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.project_id is not None:
            result = InputValidator.validate_project_id(self.project_id)
            errors.extend(result.errors)

        for index, resource_config in enumerate(self.resources):
            if not resource_config.zones:
                errors.append(f"resources[{index}] must list at least one zone")
            for zone in resource_config.zones:
                result = InputValidator.validate_zone(zone)
                errors.extend(f"resources[{index}]: {e}" for e in result.errors)
            if not resource_config.ttl:
                errors.append(f"resources[{index}] must define a ttl")

        return errors


def _get(data: Dict[str, Any], key: str, alias: str) -> Any:
    if key in data:
        return data[key]
    return data.get(alias)


def _get_string(data: Dict[str, Any], key: str, alias: str) -> str:
    value = _get(data, key, alias)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigurationError(
            f"ResourceConfig '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _optional(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class Resource:
    """A discovered cloud object, independent of the provider."""

    name: str
    zone: str
    creation_time: datetime
    resource_type: ResourceType
    resource_id: str = ""

    def __post_init__(self) -> None:
        if not self.resource_id:
            self.resource_id = self.name

    @property
    def key(self) -> Tuple[str, str]:
        """Watchlist key: a name is unique within its zone."""
        return (self.zone, self.name)


@dataclass
class WatchedResource(Resource):
    """A resource on the watchlist with its one-shot deletion deadline.

    ``ttl`` is a cron expression; the deadline is its next occurrence after
    the creation time. Each watched resource reads "now" from its own clock
    so tests can freeze time per resource.
    """

    ttl: str = ""
    clock: Clock = field(default_factory=Clock, compare=False)
    deadline_inclusive: bool = False

    @classmethod
    def from_resource(
        cls,
        resource: Resource,
        ttl: str,
        clock: Optional[Clock] = None,
        deadline_inclusive: bool = False,
    ) -> "WatchedResource":
        return cls(
            name=resource.name,
            zone=resource.zone,
            creation_time=resource.creation_time,
            resource_type=resource.resource_type,
            resource_id=resource.resource_id,
            ttl=ttl,
            clock=clock if clock is not None else Clock(),
            deadline_inclusive=deadline_inclusive,
        )

    def get_deletion_time(self) -> datetime:
        return get_deletion_time(self)

    def is_ready_for_deletion(self, now: Optional[datetime] = None) -> bool:
        return is_ready_for_deletion(self, now)

    def freeze_clock(self, instant: datetime) -> None:
        self.clock.freeze(instant)

    def with_ttl(self, ttl: str) -> "WatchedResource":
        return replace(self, ttl=ttl)


def get_deletion_time(watched: WatchedResource) -> datetime:
    """
    Compute the absolute deletion instant of a watched resource.

    Args:
        watched: The watched resource

    Returns:
        Next occurrence of the TTL cron pattern after the creation time

    Raises:
        TTLParseError: If the TTL is not valid cron grammar
    """
    try:
        schedule = CronSchedule(watched.ttl)
        return schedule.next(watched.creation_time, inclusive=watched.deadline_inclusive)
    except CronParseError as e:
        raise TTLParseError(
            f"Invalid TTL for {watched.name} in {watched.zone}: {e.message}",
            watched.ttl,
            cause=e,
        ) from e


def is_ready_for_deletion(watched: WatchedResource, now: Optional[datetime] = None) -> bool:
    """
    Check whether a watched resource has reached its deadline.

    A TTL that fails to parse is logged and treated as not ready.
    """
    try:
        deletion_time = get_deletion_time(watched)
    except TTLParseError as e:
        logger.error(f"Cannot evaluate deletion time: {e.message}")
        return False
    current = ensure_utc(now) if now is not None else watched.clock.now()
    return current >= deletion_time


@dataclass
class OperationError:
    """A failed step of an operation and the item it concerned."""

    item: str
    error: ReaperError

    def __str__(self) -> str:
        return f"{self.item}: {self.error}"


@dataclass
class ReconfigureResult:
    """Result of rebuilding the watchlist."""

    watched: List[WatchedResource] = field(default_factory=list)
    resource_counts: Dict[str, int] = field(default_factory=dict)
    errors: List[OperationError] = field(default_factory=list)

    def total_watched(self) -> int:
        return len(self.watched)


@dataclass
class SweepResult:
    """Result of a sweep through the watchlist."""

    deleted: List[WatchedResource] = field(default_factory=list)
    retained: List[WatchedResource] = field(default_factory=list)
    errors: List[OperationError] = field(default_factory=list)
    dry_run: bool = False

    def total_deleted(self) -> int:
        return len(self.deleted)

    def deleted_names(self) -> List[str]:
        return [resource.name for resource in self.deleted]


@dataclass
class DeletionEvent:
    """Emitted when the reaper deletes, or in dry run would delete, a resource."""

    resource: WatchedResource
    deleted_at: datetime
    project_id: str = ""
    reaper_uuid: str = ""
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.resource.name,
            "zone": self.resource.zone,
            "resource_id": self.resource.resource_id,
            "resource_type": self.resource.resource_type.name,
            "ttl": self.resource.ttl,
            "deleted_at": self.deleted_at.isoformat(),
            "project_id": self.project_id,
            "reaper_uuid": self.reaper_uuid,
            "dry_run": self.dry_run,
        }
