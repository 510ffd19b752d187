"""Resource filters shared by every resource client."""

from resource_reaper.filters.base import ResourceFilter
from resource_reaper.filters.name import NameFilter, should_watch

__all__ = ["ResourceFilter", "NameFilter", "should_watch"]
