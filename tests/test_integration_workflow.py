"""End-to-end workflow: configure a reaper, rebuild the watchlist, sweep.

Uses an in-memory client so the full reconfigure/sweep cycle runs without a
cloud project.
"""

from datetime import timedelta

from conftest import BASE_TIME
from resource_reaper.clock import Clock
from resource_reaper.manager import ReaperManager
from resource_reaper.models import ReaperConfig
from resource_reaper.reaper import Reaper

E2E_DOCUMENT = {
    "projectID": "test-project",
    "uuid": "UUID",
    "schedule": "*/5 * * * *",
    "resources": [
        {
            "resourceType": "GCE_VM",
            "zones": ["zone-a", "zone-b"],
            "nameFilter": "test",
            "skipFilter": "skip",
            "ttl": "9 7 * * *",
        },
        {
            "resourceType": "GCE_VM",
            "zones": ["zone-b"],
            "nameFilter": "another",
            "ttl": "1 * * * *",
        },
        {
            "resourceType": "GCE_VM",
            "zones": ["zone-b"],
            "nameFilter": "another-resource-1",
            "ttl": "* * * 10 *",
        },
    ],
}


def test_reaper_end_to_end(fake_client, fake_registry, e2e_resources):
    """Skipped resources are never watched and a long TTL survives the sweep."""
    fake_client.resources = list(e2e_resources)
    reaper = Reaper(clock=Clock(BASE_TIME), registry=fake_registry)

    result = reaper.reconfigure(ReaperConfig.from_dict(E2E_DOCUMENT))

    assert result.errors == []
    assert sorted(w.name for w in reaper.watchlist) == [
        "another-resource-1",
        "another-resource-2",
        "test-resource-1",
        "test-resource-2",
        "test-resource-3",
    ]
    assert reaper.uuid == "UUID"
    assert reaper.project_id == "test-project"

    reaper.freeze_time(BASE_TIME + timedelta(days=31))
    sweep_result = reaper.sweep()

    assert [w.name for w in reaper.watchlist] == ["another-resource-1"]
    assert sweep_result.total_deleted() == 4
    assert "test-skip" not in fake_client.deleted
    assert sorted(r.name for r in fake_client.resources) == ["another-resource-1", "test-skip"]


def test_manager_drives_scheduled_sweeps(fake_client, fake_registry, e2e_resources):
    """The manager creates the reaper from a document and runs its gate."""
    fake_client.resources = list(e2e_resources)
    manager = ReaperManager(registry=fake_registry, clock=Clock(BASE_TIME))
    config = ReaperConfig.from_dict(E2E_DOCUMENT)

    reaper = manager.get_or_create(config)
    reaper.reconfigure(config)

    first = manager.run_pending(now=BASE_TIME)
    assert first["UUID"] is not None
    assert first["UUID"].total_deleted() == 0

    assert manager.run_pending(now=BASE_TIME + timedelta(minutes=2))["UUID"] is None

    later = manager.run_pending(now=BASE_TIME + timedelta(hours=2))
    assert later["UUID"].deleted_names() == ["another-resource-2"]
