"""Watchlist construction.

Several resource configs may match the same resource. The watchlist keeps a
single entry per (zone, name) and, when entries collide, the one whose
deletion deadline is furthest away wins.
"""

import logging
from typing import Dict, List, Optional, Tuple

from resource_reaper.clock import Clock
from resource_reaper.errors import TTLParseError
from resource_reaper.models import OperationError, Resource, WatchedResource

logger = logging.getLogger(__name__)


def merge_watched(existing: WatchedResource, incoming: WatchedResource) -> WatchedResource:
    """
    Pick which of two entries for the same resource stays on the watchlist.

    Args:
        existing: Entry already on the watchlist
        incoming: Entry produced by a later resource config

    Returns:
        The entry with the later deletion time; ties keep ``existing``

    Raises:
        TTLParseError: If either TTL cannot be parsed
    """
    if incoming.get_deletion_time() > existing.get_deletion_time():
        return incoming
    return existing


def _item_key(resource: Resource) -> str:
    return f"{resource.zone}/{resource.name}"


class WatchlistBuilder:
    """Accumulates watched resources from successive queries."""

    def __init__(self, clock: Optional[Clock] = None, deadline_inclusive: bool = False):
        self.clock = clock or Clock()
        self.deadline_inclusive = deadline_inclusive
        self._entries: Dict[Tuple[str, str], WatchedResource] = {}
        self.errors: List[OperationError] = []

    def add(self, resource: Resource, ttl: str) -> WatchedResource:
        """Add one resource, merging with any entry already present."""
        incoming = WatchedResource.from_resource(
            resource,
            ttl,
            clock=self.clock.copy(),
            deadline_inclusive=self.deadline_inclusive,
        )
        existing = self._entries.get(resource.key)
        if existing is None:
            self._entries[resource.key] = incoming
            return incoming

        try:
            winner = merge_watched(existing, incoming)
        except TTLParseError as e:
            logger.warning(f"Keeping existing watch on {_item_key(resource)}: {e.message}")
            self.errors.append(OperationError(item=_item_key(resource), error=e))
            return existing

        self._entries[resource.key] = winner
        return winner

    def add_all(self, resources: List[Resource], ttl: str) -> None:
        for resource in resources:
            self.add(resource, ttl)

    def __len__(self) -> int:
        return len(self._entries)

    def build(self) -> List[WatchedResource]:
        return list(self._entries.values())
