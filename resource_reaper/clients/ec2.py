"""EC2 instance client.

Zones are availability zones and the project is the AWS account id. EC2
instances have no unique name, so the watchlist name is the ``Name`` tag
joined with the instance id, which keeps (zone, name) unique while name
filters still see the tag.
"""

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from resource_reaper.clients.base import ResourceClient
from resource_reaper.clock import ensure_utc
from resource_reaper.context import OperationContext
from resource_reaper.errors import AuthenticationError, DeleteResourceError, ListResourcesError
from resource_reaper.models import Resource, ResourceConfig, ResourceType
from resource_reaper.utils.aws_client import AWSClientManager, RetryStrategy

logger = logging.getLogger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)


def resource_name(instance: Dict[str, Any]) -> str:
    """Build the watchlist name of an instance from its Name tag and id."""
    instance_id = instance["InstanceId"]
    tags = {t["Key"]: t["Value"] for t in instance.get("Tags", [])}
    name_tag = tags.get("Name", "").strip()
    return f"{name_tag}/{instance_id}" if name_tag else instance_id


class EC2Client(ResourceClient):
    """Lists and terminates EC2 instances in one region."""

    resource_type = ResourceType.EC2_INSTANCE

    # Instances in these states can still be terminated
    LISTABLE_STATES = ["pending", "running", "stopping", "stopped"]

    def __init__(
        self,
        client_manager: Optional[AWSClientManager] = None,
        retry_strategy: Optional[RetryStrategy] = None,
    ):
        super().__init__()
        self.client_manager = client_manager or AWSClientManager()
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.account_id: Optional[str] = None

    def authenticate(self, ctx: Optional[OperationContext] = None) -> None:
        if ctx is not None:
            ctx.check()
        try:
            self.account_id = self.retry_strategy.execute_with_retry(
                self.client_manager.get_account_id
            )
        except AWS_ERRORS as e:
            raise AuthenticationError(
                f"{self.type_name} client failed to authenticate: {e}",
                resource_type=self.type_name,
                cause=e,
            ) from e
        self.authenticated = True
        logger.debug(f"Authenticated EC2 client for account {self.account_id}")

    def list_resources(
        self,
        project_id: str,
        config: ResourceConfig,
        ctx: Optional[OperationContext] = None,
    ) -> List[Resource]:
        self._require_authenticated()
        if project_id and project_id != self.account_id:
            raise ListResourcesError(
                f"Project {project_id} is outside the authenticated account {self.account_id}",
                resource_type=self.type_name,
            )
        if not config.zones:
            return []

        ec2 = self._ec2(ctx)
        filters = [
            {"Name": "availability-zone", "Values": list(config.zones)},
            {"Name": "instance-state-name", "Values": self.LISTABLE_STATES},
        ]

        try:
            paginator = ec2.get_paginator("describe_instances")
            pages = self.retry_strategy.execute_with_retry(
                lambda: list(paginator.paginate(Filters=filters))
            )
        except AWS_ERRORS as e:
            raise ListResourcesError(
                f"{self.type_name} client failed to describe instances in {config.zones}: {e}",
                resource_type=self.type_name,
                cause=e,
            ) from e

        resources = []
        for page in pages:
            for reservation in page.get("Reservations", []):
                for instance in reservation.get("Instances", []):
                    resources.append(
                        Resource(
                            name=resource_name(instance),
                            zone=instance["Placement"]["AvailabilityZone"],
                            creation_time=ensure_utc(instance["LaunchTime"]),
                            resource_type=self.resource_type,
                            resource_id=instance["InstanceId"],
                        )
                    )

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
        self._require_authenticated()
        ec2 = self._ec2(ctx)
        try:
            self.retry_strategy.execute_with_retry(
                ec2.terminate_instances, InstanceIds=[resource.resource_id]
            )
        except AWS_ERRORS as e:
            raise DeleteResourceError(
                f"{self.type_name} client failed to terminate {resource.resource_id}: {e}",
                resource_type=self.type_name,
                cause=e,
            ) from e

    def _ec2(self, ctx: Optional[OperationContext]) -> Any:
        if ctx is None:
            return self.client_manager.ec2
        ctx.check()
        return self.client_manager.get_client("ec2", timeout=ctx.remaining())

    def _require_authenticated(self) -> None:
        if not self.authenticated:
            raise AuthenticationError(
                f"{self.type_name} client used before authenticate()",
                resource_type=self.type_name,
            )
