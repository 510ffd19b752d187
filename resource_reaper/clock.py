"""Freezeable time source."""

from datetime import UTC, datetime
from typing import Optional


def ensure_utc(instant: datetime) -> datetime:
    """Return an aware datetime, treating naive values as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant


class Clock:
    """Time source that reports wall-clock time until it is frozen.

    A clock frozen at an instant keeps returning that instant, which lets
    tests move time forward without waiting.
    """

    def __init__(self, frozen_at: Optional[datetime] = None):
        self._frozen_at = ensure_utc(frozen_at) if frozen_at is not None else None

    @property
    def frozen_at(self) -> Optional[datetime]:
        return self._frozen_at

    @property
    def is_frozen(self) -> bool:
        return self._frozen_at is not None

    def now(self) -> datetime:
        if self._frozen_at is not None:
            return self._frozen_at
        return datetime.now(UTC)

    def freeze(self, instant: datetime) -> None:
        self._frozen_at = ensure_utc(instant)

    def unfreeze(self) -> None:
        self._frozen_at = None

    def copy(self) -> "Clock":
        return Clock(self._frozen_at)

    def __repr__(self) -> str:
        if self._frozen_at is None:
            return "Clock(live)"
        return f"Clock(frozen_at={self._frozen_at.isoformat()})"
