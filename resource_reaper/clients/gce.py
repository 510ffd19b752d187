"""Google Compute Engine VM client."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import google.auth
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import compute_v1

from resource_reaper.clients.base import ResourceClient
from resource_reaper.clock import ensure_utc
from resource_reaper.context import OperationContext
from resource_reaper.errors import AuthenticationError, DeleteResourceError, ListResourcesError
from resource_reaper.models import Resource, ResourceConfig, ResourceType

logger = logging.getLogger(__name__)

COMPUTE_SCOPE = "https://www.googleapis.com/auth/compute"

GCP_ERRORS = (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


def parse_creation_timestamp(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 creation timestamp, returning None if malformed."""
    if not value:
        return None
    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def _call_options(ctx: Optional[OperationContext]) -> Dict[str, Any]:
    if ctx is None:
        return {}
    ctx.check()
    remaining = ctx.remaining()
    return {} if remaining is None else {"timeout": remaining}


class GCEClient(ResourceClient):
    """Lists and deletes Compute Engine instances zone by zone."""

    resource_type = ResourceType.GCE_VM

    def __init__(self, instances_client: Any = None, credentials: Any = None):
        """
        Initialize GCE client.

        Args:
            instances_client: Optional pre-built compute_v1.InstancesClient
            credentials: Optional google.auth credentials; application default
                credentials are used when omitted
        """
        super().__init__()
        self._instances = instances_client
        self._credentials = credentials

    def authenticate(self, ctx: Optional[OperationContext] = None) -> None:
        if ctx is not None:
            ctx.check()
        if self._instances is None:
            try:
                if self._credentials is None:
                    self._credentials, _ = google.auth.default(scopes=[COMPUTE_SCOPE])
                self._instances = compute_v1.InstancesClient(credentials=self._credentials)
            except GCP_ERRORS as e:
                raise AuthenticationError(
                    f"{self.type_name} client failed to authenticate: {e}",
                    resource_type=self.type_name,
                    cause=e,
                ) from e
        self.authenticated = True
        logger.debug("Authenticated Compute Engine client")

    def list_resources(
        self,
        project_id: str,
        config: ResourceConfig,
        ctx: Optional[OperationContext] = None,
    ) -> List[Resource]:
        client = self._require_client()
        resources: List[Resource] = []

        for zone in config.zones:
            options = _call_options(ctx)
            try:
                for instance in client.list(project=project_id, zone=zone, **options):
                    created = parse_creation_timestamp(instance.creation_timestamp)
                    if created is None:
                        logger.warning(
                            f"Skipping instance {instance.name} in {zone}: "
                            f"unparseable creation timestamp '{instance.creation_timestamp}'"
                        )
                        continue
                    resources.append(
                        Resource(
                            name=instance.name,
                            zone=zone,
                            creation_time=created,
                            resource_type=self.resource_type,
                        )
                    )
            except GCP_ERRORS as e:
                raise ListResourcesError(
                    f"{self.type_name} client failed to list instances in {zone}: {e}",
                    resource_type=self.type_name,
                    cause=e,
                ) from e

        filtered = self.apply_filters(resources, config)
        logger.debug(
            f"Listed {len(resources)} instances in {config.zones}, {len(filtered)} match filters"
        )
        return filtered

    def delete_resource(
        self,
        project_id: str,
        resource: Resource,
        ctx: Optional[OperationContext] = None,
    ) -> None:
        client = self._require_client()
        options = _call_options(ctx)
        try:
            client.delete(
                project=project_id,
                zone=resource.zone,
                instance=resource.resource_id,
                **options,
            )
        except gcp_exceptions.NotFound:
            logger.info(f"Instance {resource.name} in {resource.zone} is already gone")
        except GCP_ERRORS as e:
            raise DeleteResourceError(
                f"{self.type_name} client failed to delete {resource.name} in {resource.zone}: {e}",
                resource_type=self.type_name,
                cause=e,
            ) from e

    def _require_client(self) -> Any:
        if not self.authenticated or self._instances is None:
            raise AuthenticationError(
                f"{self.type_name} client used before authenticate()",
                resource_type=self.type_name,
            )
        return self._instances
