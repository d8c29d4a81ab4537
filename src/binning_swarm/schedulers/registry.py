"""Registry for discovering and loading scheduler backends."""

from __future__ import annotations

import importlib.metadata
import logging
from pathlib import Path
from typing import Dict, List, Type

from binning_swarm.config import SchedulerConfig
from binning_swarm.exceptions import SchedulerNotFound
from binning_swarm.schedulers.base import Scheduler
from binning_swarm.schedulers.dry_run import DryRunScheduler
from binning_swarm.schedulers.swarm import SwarmScheduler

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "binning_swarm.schedulers"
BUILTIN_SCHEDULERS: Dict[str, Type[Scheduler]] = {
    SwarmScheduler.name: SwarmScheduler,
    DryRunScheduler.name: DryRunScheduler,
}


class SchedulerRegistry:
    """Built-in schedulers plus any registered under the entry point group."""

    def __init__(self) -> None:
        self._schedulers: Dict[str, Type[Scheduler]] = dict(BUILTIN_SCHEDULERS)
        self.discover_schedulers()

    def discover_schedulers(self) -> None:
        """Discover third-party schedulers via entry points."""
        for entry_point in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            try:
                scheduler_class = entry_point.load()
            except Exception as e:
                logger.warning(f"Could not load scheduler '{entry_point.name}': {e}")
                continue
            if isinstance(scheduler_class, type) and issubclass(scheduler_class, Scheduler):
                self._schedulers[entry_point.name] = scheduler_class
            else:
                logger.warning(f"Ignoring scheduler '{entry_point.name}': not a Scheduler subclass")

    def available(self) -> List[str]:
        return sorted(self._schedulers)

    def get_scheduler_class(self, name: str) -> Type[Scheduler]:
        if name not in self._schedulers:
            raise SchedulerNotFound(f"Scheduler '{name}' not found. Available: {', '.join(self.available())}")
        return self._schedulers[name]

    def load_scheduler(self, config: SchedulerConfig, log_dir: Path, name: str | None = None) -> Scheduler:
        scheduler_class = self.get_scheduler_class(name or config.backend)
        return scheduler_class(config, log_dir)


def get_scheduler(config: SchedulerConfig, log_dir: Path, dry_run: bool = False) -> Scheduler:
    """Instantiate the configured backend, or the dry-run backend."""
    registry = SchedulerRegistry()
    return registry.load_scheduler(config, log_dir, DryRunScheduler.name if dry_run else None)
