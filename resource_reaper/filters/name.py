"""Name-based inclusion and exclusion filter."""

import logging

from resource_reaper.filters.base import ResourceFilter
from resource_reaper.models import Resource, ResourceConfig

logger = logging.getLogger(__name__)


def should_watch(name: str, name_filter: str = "", skip_filter: str = "") -> bool:
    """
    Decide whether a resource name is selected by a pair of filters.

    Args:
        name: Resource name
        name_filter: Substring the name must contain; empty matches everything
        skip_filter: Substring that excludes the name; empty excludes nothing

    Returns:
        True if the name contains name_filter and does not contain skip_filter
    """
    if skip_filter and skip_filter in name:
        return False
    return name_filter in name


class NameFilter(ResourceFilter):
    """Selects resources whose name contains ``name_filter`` and not ``skip_filter``."""

    def __init__(self, name_filter: str = "", skip_filter: str = ""):
        self.name_filter = name_filter or ""
        self.skip_filter = skip_filter or ""

    @classmethod
    def from_config(cls, config: ResourceConfig) -> "NameFilter":
        return cls(config.name_filter, config.skip_filter)

    def matches(self, resource: Resource) -> bool:
        matched = should_watch(resource.name, self.name_filter, self.skip_filter)
        logger.debug(
            f"Name filter (include='{self.name_filter}', skip='{self.skip_filter}') "
            f"{'matched' if matched else 'excluded'} {resource.name}"
        )
        return matched
