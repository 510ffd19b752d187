"""Registry of reapers and the periodic trigger that drives them."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from resource_reaper.clock import Clock
from resource_reaper.context import OperationContext
from resource_reaper.errors import ConfigurationError
from resource_reaper.models import ReaperConfig, SweepResult
from resource_reaper.reaper import Reaper

logger = logging.getLogger(__name__)

ReaperFactory = Callable[..., Reaper]

DEFAULT_INTERVAL_SECONDS = 60


class ReaperManager:
    """Keeps reapers by uuid and runs their schedule gates.

    Reapers are kept in the order they were added. Each reaper is driven by
    at most one thread at a time; different reapers run concurrently.
    """

    def __init__(
        self,
        reaper_factory: ReaperFactory = Reaper,
        max_workers: Optional[int] = None,
        **reaper_options: Any,
    ):
        """
        Initialize reaper manager.

        Args:
            reaper_factory: Callable building a new Reaper for ``get_or_create``
            max_workers: Thread pool size for ``run_pending``; one thread per
                reaper when omitted
            **reaper_options: Keyword arguments passed to ``reaper_factory``;
                a ``clock`` option is copied for every new reaper
        """
        self.reaper_factory = reaper_factory
        self.max_workers = max_workers
        self.reaper_options = reaper_options
        self._reapers: Dict[str, Reaper] = {}
        self._lock = threading.Lock()

    @property
    def reapers(self) -> Tuple[Reaper, ...]:
        with self._lock:
            return tuple(self._reapers.values())

    def add_reaper(self, reaper: Reaper) -> None:
        """
        Register a reaper.

        Raises:
            ConfigurationError: If the reaper has no uuid or the uuid is taken
        """
        if not reaper.uuid:
            raise ConfigurationError("Reaper must have a uuid to be managed")
        with self._lock:
            if reaper.uuid in self._reapers:
                raise ConfigurationError(f"Reaper with uuid {reaper.uuid} already exists")
            self._reapers[reaper.uuid] = reaper
        logger.info(f"Added reaper {reaper.uuid} for project {reaper.project_id or '<unset>'}")

    def remove_reaper(self, uuid: str) -> bool:
        """Remove the reaper with the given uuid, returning False if none matched."""
        with self._lock:
            removed = self._reapers.pop(uuid, None)
        if removed is None:
            return False
        logger.info(f"Removed reaper {uuid}")
        return True

    def get_reaper(self, uuid: str) -> Optional[Reaper]:
        with self._lock:
            return self._reapers.get(uuid)

    def get_or_create(self, config: ReaperConfig) -> Reaper:
        """
        Look up the reaper a configuration document addresses, creating it.

        The returned reaper has not been reconfigured with ``config``.

        Raises:
            ConfigurationError: If the document has no uuid
        """
        if not config.uuid:
            raise ConfigurationError("Reaper configuration must include a uuid")
        with self._lock:
            reaper = self._reapers.get(config.uuid)
            if reaper is None:
                reaper = self.reaper_factory(uuid=config.uuid, **self._options_for_new_reaper())
                self._reapers[config.uuid] = reaper
                logger.info(f"Created reaper {config.uuid}")
        return reaper

    def _options_for_new_reaper(self) -> Dict[str, Any]:
        # Reapers never share a clock
        options = dict(self.reaper_options)
        clock = options.get("clock")
        if isinstance(clock, Clock):
            options["clock"] = clock.copy()
        return options

    def run_pending(
        self,
        now: Optional[datetime] = None,
        ctx: Optional[OperationContext] = None,
    ) -> Dict[str, Optional[SweepResult]]:
        """
        Run the schedule gate of every reaper.

        Args:
            now: Instant passed to each reaper's gate
            ctx: Operation context shared by all reapers

        Returns:
            Maps reaper uuid to its sweep result, or None if it did not sweep
            or failed
        """
        reapers = self.reapers
        results: Dict[str, Optional[SweepResult]] = {}
        if not reapers:
            return results

        workers = self.max_workers or len(reapers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                reaper.uuid: executor.submit(reaper.run_on_schedule, now, ctx)
                for reaper in reapers
            }
            for uuid, future in futures.items():
                try:
                    results[uuid] = future.result()
                except Exception as e:
                    logger.error(f"Reaper {uuid} failed: {e}")
                    results[uuid] = None

        swept = sum(1 for result in results.values() if result is not None)
        logger.debug(f"Ran {len(reapers)} reapers, {swept} swept")
        return results

    def run_forever(
        self,
        stop_event: threading.Event,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        """Call ``run_pending`` every interval until ``stop_event`` is set."""
        logger.info(f"Reaper manager started, checking every {interval_seconds}s")
        while not stop_event.is_set():
            self.run_pending(ctx=OperationContext(cancel_event=stop_event))
            stop_event.wait(interval_seconds)
        logger.info("Reaper manager stopped")
