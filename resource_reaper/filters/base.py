"""Base filter interface for resource filtering."""

from abc import ABC, abstractmethod
from typing import List

from resource_reaper.models import Resource


class ResourceFilter(ABC):
    """Abstract base class for resource filters.

    Filters are provider-agnostic: every client applies them to the
    resources it discovered before returning them.
    """

    @abstractmethod
    def matches(self, resource: Resource) -> bool:
        """Check whether a single resource passes the filter."""
        raise NotImplementedError

    def filter_resources(self, resources: List[Resource]) -> List[Resource]:
        """Return the resources that pass the filter, preserving order."""
        return [resource for resource in resources if self.matches(resource)]
