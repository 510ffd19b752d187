"""Resource clients and the resource type registry."""

from resource_reaper.clients.base import ResourceClient
from resource_reaper.clients.ec2 import EC2Client
from resource_reaper.clients.gce import GCEClient
from resource_reaper.clients.registry import (
    ClientRegistry,
    create_client,
    default_registry,
    register_client,
)

__all__ = [
    "ResourceClient",
    "EC2Client",
    "GCEClient",
    "ClientRegistry",
    "create_client",
    "default_registry",
    "register_client",
]
