"""Resource type to client factory registry.

New resource types plug in by registering a factory; the reaper only ever
asks the registry for a client.
"""

import logging
from typing import Callable, Dict

from resource_reaper.clients.base import ResourceClient
from resource_reaper.clients.ec2 import EC2Client
from resource_reaper.clients.gce import GCEClient
from resource_reaper.errors import UnsupportedResourceTypeError
from resource_reaper.models import ResourceType

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], ResourceClient]


class ClientRegistry:
    """Maps resource types to client factories."""

    def __init__(self) -> None:
        self._factories: Dict[ResourceType, ClientFactory] = {}

    def register(self, resource_type: ResourceType, factory: ClientFactory) -> None:
        if resource_type in self._factories:
            logger.debug(f"Replacing client factory for {resource_type.name}")
        self._factories[resource_type] = factory

    def unregister(self, resource_type: ResourceType) -> None:
        self._factories.pop(resource_type, None)

    def is_registered(self, resource_type: ResourceType) -> bool:
        return resource_type in self._factories

    def create(self, resource_type: ResourceType) -> ResourceClient:
        """
        Create a new, unauthenticated client.

        Raises:
            UnsupportedResourceTypeError: If no factory is registered
        """
        factory = self._factories.get(resource_type)
        if factory is None:
            raise UnsupportedResourceTypeError(
                f"No client registered for resource type {resource_type.name}"
            )
        return factory()

    def copy(self) -> "ClientRegistry":
        registry = ClientRegistry()
        registry._factories = dict(self._factories)
        return registry


default_registry = ClientRegistry()
default_registry.register(ResourceType.GCE_VM, GCEClient)
default_registry.register(ResourceType.EC2_INSTANCE, EC2Client)


def register_client(resource_type: ResourceType, factory: ClientFactory) -> None:
    """Register a factory in the default registry."""
    default_registry.register(resource_type, factory)


def create_client(resource_type: ResourceType) -> ResourceClient:
    """Create a client from the default registry."""
    return default_registry.create(resource_type)
