"""Scheduler that only logs what would be submitted."""

from __future__ import annotations

import logging

from binning_swarm.model import BatchHandle, JobList
from binning_swarm.schedulers.base import Scheduler
from binning_swarm.schedulers.swarm import SwarmScheduler

logger = logging.getLogger(__name__)

DRY_RUN_ID = "dry-run"


class DryRunScheduler(Scheduler):
    name = "dry-run"

    def submit(self, job_list: JobList, job_name: str) -> BatchHandle:
        command = SwarmScheduler(self.config, self.log_dir).submit_command(job_list, job_name)
        logger.info("[DRY RUN] %d %s jobs in %s", len(job_list), job_list.assembler, job_list.path)
        logger.info("[DRY RUN] To submit manually: %s", " ".join(command))
        return BatchHandle(assembler=job_list.assembler, batch_id=DRY_RUN_ID, job_name=job_name)

    def is_active(self, handle: BatchHandle) -> bool:
        return False
