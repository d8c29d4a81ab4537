"""Base scheduler interface and the scheduler-agnostic completion waiter."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from binning_swarm.config import SchedulerConfig
from binning_swarm.model import BatchHandle, JobList

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """A cluster scheduler that runs a job-list file as one batch array."""

    name: str = "base"

    def __init__(self, config: SchedulerConfig, log_dir: Path) -> None:
        self.config = config
        self.log_dir = log_dir

    @abstractmethod
    def submit(self, job_list: JobList, job_name: str) -> BatchHandle:
        """Submit *job_list* and return its batch handle.

        Raises:
            SubmissionFailure: if the scheduler accepted no job.
        """
        raise NotImplementedError

    @abstractmethod
    def is_active(self, handle: BatchHandle) -> bool:
        """Whether any job of *handle* is still queued or running."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(log_dir={self.log_dir})"


def wait_for_completion(
    scheduler: Scheduler,
    handle: BatchHandle,
    interval: float,
    cancel_event: threading.Event | None = None,
) -> bool:
    """Block until no job of *handle* remains active.

    Polls every *interval* seconds. Returns ``False`` as soon as
    *cancel_event* is set; submitted jobs are left untouched in that case.
    """
    if interval <= 0:
        raise ValueError(f"Poll interval must be positive, got {interval}")
    cancel_event = cancel_event or threading.Event()

    logger.info("Waiting for %s jobs (batch %s) to finish...", handle.assembler, handle.batch_id)
    while not cancel_event.is_set():
        if not scheduler.is_active(handle):
            logger.info("%s batch %s has no active jobs left", handle.assembler, handle.batch_id)
            return True
        logger.debug("Batch %s still active; sleeping %.1fs", handle.batch_id, interval)
        if cancel_event.wait(interval):
            break
    logger.warning("Stopped waiting for %s batch %s; submitted jobs keep running", handle.assembler, handle.batch_id)
    return False
