"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, datetime, timedelta
from typing import Dict, List, Optional

import pytest

from resource_reaper.clients.base import ResourceClient
from resource_reaper.clients.registry import ClientRegistry
from resource_reaper.clock import Clock
from resource_reaper.errors import DeleteResourceError, ListResourcesError
from resource_reaper.models import Resource, ResourceConfig, ResourceType

# Set AWS region for tests
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_REGION", "us-east-1")

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


class FakeClient(ResourceClient):
    """In-memory resource client keyed by zone."""

    resource_type = ResourceType.GCE_VM

    def __init__(self, resources: Optional[List[Resource]] = None):
        super().__init__()
        self.resources: List[Resource] = list(resources or [])
        self.deleted: List[str] = []
        self.fail_list_zones: set = set()
        self.fail_delete_names: set = set()
        self.authenticate_calls = 0

    def authenticate(self, ctx=None):
        self.authenticate_calls += 1
        self.authenticated = True

    def list_resources(self, project_id, config, ctx=None):
        if ctx is not None:
            ctx.check()
        for zone in config.zones:
            if zone in self.fail_list_zones:
                raise ListResourcesError(f"zone {zone} unavailable", resource_type="GCE_VM")
        found = [r for r in self.resources if r.zone in config.zones]
        return self.apply_filters(found, config)

    def delete_resource(self, project_id, resource, ctx=None):
        if ctx is not None:
            ctx.check()
        if resource.name in self.fail_delete_names:
            raise DeleteResourceError(f"cannot delete {resource.name}", resource_type="GCE_VM")
        self.deleted.append(resource.name)
        self.resources = [r for r in self.resources if r.key != resource.key]


def make_resource(
    name: str,
    zone: str = "us-east1-b",
    creation_time: datetime = BASE_TIME,
    resource_type: ResourceType = ResourceType.GCE_VM,
) -> Resource:
    """Helper to create a Resource for testing."""
    return Resource(name=name, zone=zone, creation_time=creation_time, resource_type=resource_type)


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def frozen_clock() -> Clock:
    """Clock frozen at the base test time."""
    return Clock(BASE_TIME)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def fake_registry(fake_client) -> ClientRegistry:
    """Registry that hands out the shared fake client for GCE_VM."""
    registry = ClientRegistry()
    registry.register(ResourceType.GCE_VM, lambda: fake_client)
    return registry


@pytest.fixture
def e2e_resources() -> List[Resource]:
    """Six resources spread over two zones, created at the base time."""
    return [
        make_resource("test-resource-1", "zone-a"),
        make_resource("test-resource-2", "zone-a"),
        make_resource("test-resource-3", "zone-b"),
        make_resource("test-skip", "zone-b"),
        make_resource("another-resource-1", "zone-b"),
        make_resource("another-resource-2", "zone-b"),
    ]


@pytest.fixture
def sample_document() -> Dict:
    """Reaper configuration document as it arrives in an event."""
    return {
        "projectID": "test-project",
        "uuid": "reaper-1",
        "schedule": "*/5 * * * *",
        "resources": [
            {
                "resourceType": "GCE_VM",
                "zones": ["us-east1-b"],
                "nameFilter": "test",
                "skipFilter": "keep",
                "ttl": "0 * * * *",
            }
        ],
    }


def hours_after_base(hours: float) -> datetime:
    return BASE_TIME + timedelta(hours=hours)
