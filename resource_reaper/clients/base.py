"""Capability contract implemented by every resource client."""

from abc import ABC, abstractmethod
from typing import List, Optional

from resource_reaper.context import OperationContext
from resource_reaper.filters.name import NameFilter
from resource_reaper.models import Resource, ResourceConfig, ResourceType


class ResourceClient(ABC):
    """Lists and deletes resources of one resource type.

    ``authenticate`` must succeed before ``list_resources`` or
    ``delete_resource`` are called. Every method accepts the operation
    context of its caller and must honour its deadline.
    """

    resource_type: ResourceType

    def __init__(self) -> None:
        self.authenticated = False

    @abstractmethod
    def authenticate(self, ctx: Optional[OperationContext] = None) -> None:
        """Establish credentials or a session.

        Raises:
            AuthenticationError: If credentials cannot be obtained
        """
        raise NotImplementedError

    @abstractmethod
    def list_resources(
        self,
        project_id: str,
        config: ResourceConfig,
        ctx: Optional[OperationContext] = None,
    ) -> List[Resource]:
        """List resources in the configured zones that pass the name filter.

        Raises:
            ListResourcesError: If any zone cannot be listed
        """
        raise NotImplementedError

    @abstractmethod
    def delete_resource(
        self,
        project_id: str,
        resource: Resource,
        ctx: Optional[OperationContext] = None,
    ) -> None:
        """Request deletion of one resource without waiting for completion.

        Raises:
            DeleteResourceError: If the provider rejects the request
        """
        raise NotImplementedError

    def apply_filters(self, resources: List[Resource], config: ResourceConfig) -> List[Resource]:
        return NameFilter.from_config(config).filter_resources(resources)

    @property
    def type_name(self) -> str:
        return self.resource_type.name
