"""Reaper: watches cloud resources and deletes them once their TTL expires.

A reaper moves between two operations. ``reconfigure`` rebuilds the
watchlist from a configuration document by querying every configured
resource type. ``sweep`` deletes the watched resources whose deadline has
passed and keeps the rest. ``run_on_schedule`` gates sweeps behind the
reaper's cron schedule.

Both operations compute a new watchlist and publish it in one assignment,
so a cancelled operation leaves the previous watchlist in place.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from resource_reaper.cleanup.batch_processor import BatchProcessor
from resource_reaper.clients.base import ResourceClient
from resource_reaper.clients.registry import ClientRegistry, default_registry
from resource_reaper.clock import Clock, ensure_utc
from resource_reaper.context import OperationContext, background
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
from resource_reaper.models import (
    DeletionEvent,
    OperationError,
    ReaperConfig,
    ResourceConfig,
    ResourceType,
    ReconfigureResult,
    SweepResult,
    WatchedResource,
    get_deletion_time,
)
from resource_reaper.schedule import CronSchedule, parse_schedule, should_run
from resource_reaper.utils.logging import ActionType, ReaperLogger
from resource_reaper.watchlist import WatchlistBuilder

logger = logging.getLogger(__name__)

DeletionListener = Callable[[DeletionEvent], None]


def _item_key(watched: WatchedResource) -> str:
    return f"{watched.zone}/{watched.name}"


class Reaper:
    """Watches resources of one project and deletes them when they expire.

    A reaper is not thread-safe; callers serialize ``reconfigure``, ``sweep``
    and ``run_on_schedule`` on the same instance. Independent reapers can run
    concurrently.
    """

    def __init__(
        self,
        uuid: str = "",
        project_id: str = "",
        schedule: Optional[str] = None,
        clock: Optional[Clock] = None,
        registry: Optional[ClientRegistry] = None,
        dry_run: bool = False,
        batch_delete_size: int = 1,
        deadline_inclusive: bool = False,
    ):
        """
        Initialize an unconfigured reaper.

        Args:
            uuid: Reaper identity
            project_id: Target project (GCP project id or AWS account id)
            schedule: Optional cron expression gating sweeps
            clock: Time source; a live clock when omitted
            registry: Client registry; the default registry when omitted
            dry_run: If True, sweeps report deletions without executing them
            batch_delete_size: Number of deletions to run concurrently
            deadline_inclusive: If True, a TTL occurrence exactly at the
                creation time counts as the deadline

        Raises:
            ScheduleParseError: If ``schedule`` is not valid cron grammar
        """
        self.uuid = uuid
        self.project_id = project_id
        self.schedule: Optional[CronSchedule] = parse_schedule(schedule) if schedule else None
        self.last_run_time: Optional[datetime] = None
        self.clock = clock or Clock()
        self.registry = registry or default_registry
        self.dry_run = dry_run
        self.deadline_inclusive = deadline_inclusive
        self.batch_processor = BatchProcessor(batch_size=batch_delete_size)
        self.audit = ReaperLogger(project_id=project_id, reaper_uuid=uuid, dry_run=dry_run)

        self.resource_configs: List[ResourceConfig] = []
        self.configured = False
        self._watchlist: Tuple[WatchedResource, ...] = ()
        self._clients: Dict[ResourceType, ResourceClient] = {}
        self._listeners: List[DeletionListener] = []

    @property
    def watchlist(self) -> Tuple[WatchedResource, ...]:
        """Snapshot of the currently published watchlist."""
        return self._watchlist

    def add_deletion_listener(self, listener: DeletionListener) -> None:
        self._listeners.append(listener)

    def remove_deletion_listener(self, listener: DeletionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def freeze_time(self, instant: datetime) -> None:
        """Freeze the reaper clock and the clock of every watched resource."""
        self.clock.freeze(instant)
        for watched in self._watchlist:
            watched.freeze_clock(instant)

    def unfreeze_time(self) -> None:
        self.clock.unfreeze()
        for watched in self._watchlist:
            watched.clock.unfreeze()

    def reconfigure(
        self,
        config: ReaperConfig,
        ctx: Optional[OperationContext] = None,
    ) -> ReconfigureResult:
        """
        Apply a configuration document and rebuild the watchlist.

        ``project_id``, ``uuid`` and ``schedule`` are only overwritten when
        the document sets them. The watchlist is rebuilt from scratch from
        ``config.resources``.

        Args:
            config: Partial configuration update
            ctx: Operation context for cancellation and deadlines

        Returns:
            ReconfigureResult with the new watchlist and recovered errors

        Raises:
            OperationCancelled: If the context is cancelled; the reaper is
                left unchanged
        """
        ctx = ctx or background()
        ctx.check()

        errors: List[OperationError] = []
        project_id = config.project_id if config.project_id is not None else self.project_id
        uuid = config.uuid if config.uuid is not None else self.uuid

        schedule = self.schedule
        if config.schedule is not None:
            try:
                schedule = parse_schedule(config.schedule)
            except ScheduleParseError as e:
                logger.error(f"Reaper {uuid or '<unnamed>'} has an invalid schedule: {e.message}")
                self.audit.log_error("schedule", config.schedule, e)
                errors.append(OperationError(item="schedule", error=e))
                schedule = None

        builder = WatchlistBuilder(clock=self.clock, deadline_inclusive=self.deadline_inclusive)
        counts: Dict[str, int] = defaultdict(int)

        for resource_config in config.resources:
            ctx.check()
            type_name = resource_config.resource_type.name

            try:
                client = self._get_client(resource_config.resource_type, ctx)
            except (OperationCancelled, ConfigurationError):
                raise
            except (UnsupportedResourceTypeError, AuthenticationError) as e:
                self.audit.log_error(type_name, "*", e, action=ActionType.SCAN)
                errors.append(OperationError(item=type_name, error=e))
                continue
            except Exception as e:
                error = AuthenticationError(
                    f"Unexpected error preparing {type_name} client: {e}",
                    resource_type=type_name,
                    cause=e,
                )
                self.audit.log_error(type_name, "*", error, action=ActionType.SCAN)
                errors.append(OperationError(item=type_name, error=error))
                continue

            try:
                resources = client.list_resources(project_id, resource_config, ctx)
            except (OperationCancelled, ConfigurationError):
                raise
            except Exception as e:
                error = e
                if not isinstance(error, ListResourcesError):
                    error = ListResourcesError(
                        f"Unexpected error listing {type_name} in {resource_config.zones}: {e}",
                        resource_type=type_name,
                        cause=e,
                    )
                self.audit.log_error(
                    type_name,
                    "*",
                    error,
                    action=ActionType.SCAN,
                    details={"zones": resource_config.zones},
                )
                errors.append(OperationError(item=type_name, error=error))
                continue

            self.audit.log_scan_complete(type_name, resource_config.zones, len(resources))
            for resource in resources:
                builder.add(resource, resource_config.ttl)
            counts[type_name] += len(resources)

        errors.extend(builder.errors)
        watched = builder.build()

        self.project_id = project_id
        self.uuid = uuid
        self.schedule = schedule
        self.resource_configs = list(config.resources)
        self._watchlist = tuple(watched)
        self.configured = True

        self.audit.project_id = project_id
        self.audit.reaper_uuid = uuid
        for resource in watched:
            self.audit.log_resource_watched(
                resource.resource_type.name, _item_key(resource), resource.ttl
            )
        self.audit.log_watchlist_rebuilt(len(watched), len(errors))

        return ReconfigureResult(watched=watched, resource_counts=dict(counts), errors=errors)

    def sweep(
        self,
        now: Optional[datetime] = None,
        ctx: Optional[OperationContext] = None,
    ) -> SweepResult:
        """
        Delete every watched resource whose deadline has passed.

        Args:
            now: Instant to evaluate deadlines at; each resource's own clock
                is used when omitted
            ctx: Operation context for cancellation and deadlines

        Returns:
            SweepResult listing deleted and retained resources

        Raises:
            OperationCancelled: If the context is cancelled; the watchlist is
                left unchanged
        """
        ctx = ctx or background()
        ctx.check()

        result = SweepResult(dry_run=self.dry_run)
        snapshot = self._watchlist
        ready: List[WatchedResource] = []

        for watched in snapshot:
            try:
                deadline = get_deletion_time(watched)
            except TTLParseError as e:
                self.audit.log_error(watched.resource_type.name, _item_key(watched), e)
                result.errors.append(OperationError(item=_item_key(watched), error=e))
                result.retained.append(watched)
                continue

            current = ensure_utc(now) if now is not None else watched.clock.now()
            if current >= deadline:
                ready.append(watched)
            else:
                result.retained.append(watched)

        if self.dry_run:
            for watched in ready:
                self._record_deletion(result, watched, now)
            result.retained = list(snapshot)
        else:
            self._delete_ready(ready, result, now, ctx)
            deleted_keys = {w.key for w in result.deleted}
            result.retained = [w for w in snapshot if w.key not in deleted_keys]
            self._watchlist = tuple(result.retained)

        self.audit.log_sweep_complete(len(result.deleted), len(result.retained), len(result.errors))
        return result

    def run_on_schedule(
        self,
        now: Optional[datetime] = None,
        ctx: Optional[OperationContext] = None,
    ) -> Optional[SweepResult]:
        """
        Sweep if the schedule gate is open.

        Returns:
            The sweep result, or None if no sweep was due
        """
        current = ensure_utc(now) if now is not None else self.clock.now()
        due = should_run(self.schedule, self.last_run_time, current)
        self.audit.log_schedule_gate(due, self.schedule.expression if self.schedule else None)
        if not due:
            return None

        result = self.sweep(now, ctx)
        self.last_run_time = current
        return result

    def get_status(self) -> Dict[str, object]:
        """Summary of the reaper for reports."""
        return {
            "uuid": self.uuid,
            "project_id": self.project_id,
            "schedule": self.schedule.expression if self.schedule else None,
            "last_run_time": self.last_run_time.isoformat() if self.last_run_time else None,
            "dry_run": self.dry_run,
            "watched": len(self._watchlist),
        }

    def _get_client(self, resource_type: ResourceType, ctx: OperationContext) -> ResourceClient:
        client = self._clients.get(resource_type)
        if client is not None:
            return client

        client = self.registry.create(resource_type)
        client.authenticate(ctx)
        self._clients[resource_type] = client
        return client

    def _delete_ready(
        self,
        ready: List[WatchedResource],
        result: SweepResult,
        now: Optional[datetime],
        ctx: OperationContext,
    ) -> None:
        # Clients are resolved up front so the batch threads only read the cache
        deletable: List[WatchedResource] = []
        clients: Dict[ResourceType, ResourceClient] = {}
        for watched in ready:
            if watched.resource_type not in clients:
                try:
                    clients[watched.resource_type] = self._get_client(watched.resource_type, ctx)
                except (OperationCancelled, ConfigurationError):
                    raise
                except (UnsupportedResourceTypeError, AuthenticationError) as e:
                    self._record_failure(result, watched, e)
                    continue
                except Exception as e:
                    error = AuthenticationError(
                        f"Unexpected error preparing {watched.resource_type.name} client: {e}",
                        resource_type=watched.resource_type.name,
                        cause=e,
                    )
                    self._record_failure(result, watched, error)
                    continue
            deletable.append(watched)

        def delete(watched: WatchedResource) -> None:
            clients[watched.resource_type].delete_resource(self.project_id, watched, ctx)

        batch_result = self.batch_processor.process_deletions(
            deletable, delete, key=_item_key, ctx=ctx
        )

        for watched in batch_result.successful:
            self._record_deletion(result, watched, now)
        for watched in batch_result.failed:
            error = batch_result.errors[_item_key(watched)]
            if not isinstance(error, ReaperError):
                error = DeleteResourceError(
                    f"Unexpected error deleting {_item_key(watched)}: {error}",
                    resource_type=watched.resource_type.name,
                    cause=error,
                )
            self._record_failure(result, watched, error)

    def _record_deletion(
        self, result: SweepResult, watched: WatchedResource, now: Optional[datetime]
    ) -> None:
        deleted_at = ensure_utc(now) if now is not None else watched.clock.now()
        result.deleted.append(watched)
        self.audit.log_resource_deleted(
            watched.resource_type.name,
            watched.name,
            watched.zone,
            details={"ttl": watched.ttl, "resource_id": watched.resource_id},
        )

        event = DeletionEvent(
            resource=watched,
            deleted_at=deleted_at,
            project_id=self.project_id,
            reaper_uuid=self.uuid,
            dry_run=self.dry_run,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Deletion listener failed for {_item_key(watched)}")

    def _record_failure(
        self, result: SweepResult, watched: WatchedResource, error: ReaperError
    ) -> None:
        self.audit.log_error(
            watched.resource_type.name, _item_key(watched), error, action=ActionType.DELETE
        )
        result.errors.append(OperationError(item=_item_key(watched), error=error))
