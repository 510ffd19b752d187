"""Tests for name-based resource filtering."""

from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import make_resource
from resource_reaper.filters import NameFilter, should_watch
from resource_reaper.models import ResourceConfig, ResourceType


class TestShouldWatch:
    """Tests for should_watch."""

    def test_empty_filters_match_everything(self):
        assert should_watch("anything") is True

    def test_name_filter_substring(self):
        assert should_watch("ci-test-vm", name_filter="test") is True
        assert should_watch("prod-vm", name_filter="test") is False

    def test_skip_filter_excludes(self):
        assert should_watch("test-skip", name_filter="test", skip_filter="skip") is False

    def test_empty_skip_filter_excludes_nothing(self):
        assert should_watch("test-skip", name_filter="test", skip_filter="") is True

    def test_skip_wins_over_name(self):
        assert should_watch("keep-me", name_filter="keep", skip_filter="keep") is False


class TestNameFilter:
    """Tests for NameFilter."""

    def test_from_config(self):
        config = ResourceConfig(ResourceType.GCE_VM, ["zone-a"], "test", "skip", "* * * * *")

        name_filter = NameFilter.from_config(config)

        assert name_filter.name_filter == "test"
        assert name_filter.skip_filter == "skip"

    def test_filter_resources_preserves_order(self):
        resources = [
            make_resource("test-2"),
            make_resource("other"),
            make_resource("test-1"),
            make_resource("test-skip"),
        ]

        result = NameFilter("test", "skip").filter_resources(resources)

        assert [r.name for r in result] == ["test-2", "test-1"]


name_strategy = st.text(alphabet="abcdef-", min_size=0, max_size=12)
filter_strategy = st.text(alphabet="abcdef-", min_size=0, max_size=3)


@settings(max_examples=200, deadline=5000)
@given(name=name_strategy, name_filter=filter_strategy, skip_filter=filter_strategy)
def test_filter_correctness(name: str, name_filter: str, skip_filter: str):
    """A name is selected iff it contains the name filter and not a non-empty skip filter."""
    expected = (name_filter in name) and not (skip_filter and skip_filter in name)

    assert should_watch(name, name_filter, skip_filter) is expected
