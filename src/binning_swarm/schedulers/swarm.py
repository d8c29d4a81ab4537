"""NIH HPC ``swarm`` backend: submit with ``swarm``, poll with ``squeue``."""

from __future__ import annotations

import logging
import subprocess
from typing import List

from binning_swarm.exceptions import SubmissionFailure
from binning_swarm.model import BatchHandle, JobList
from binning_swarm.schedulers.base import Scheduler

logger = logging.getLogger(__name__)

INVALID_JOB_ID = "invalid job id"


class SwarmScheduler(Scheduler):
    name = "swarm"

    def submit_command(self, job_list: JobList, job_name: str) -> List[str]:
        return [
            "swarm",
            "-f", str(job_list.path),
            "--job-name", job_name,
            "-t", str(self.config.threads),
            "-g", str(self.config.memory),
            "--time", self.config.time,
            "--logdir", str(self.log_dir),
        ]

    def submit(self, job_list: JobList, job_name: str) -> BatchHandle:
        command = self.submit_command(job_list, job_name)
        logger.info("Submitting the %s swarm job: %s", job_list.assembler, " ".join(command))
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=True)
        except (subprocess.CalledProcessError, FileNotFoundError, OSError) as e:
            stderr = getattr(e, "stderr", None) or ""
            raise SubmissionFailure(f"Failed to submit {job_list.assembler} swarm jobs: {e} {stderr}".strip()) from e

        batch_id = result.stdout.strip()
        if not batch_id:
            raise SubmissionFailure(f"Failed to submit {job_list.assembler} swarm jobs: swarm returned no job ID")
        logger.info("%s swarm jobs submitted with ID %s", job_list.assembler, batch_id)
        return BatchHandle(assembler=job_list.assembler, batch_id=batch_id, job_name=job_name)

    def is_active(self, handle: BatchHandle) -> bool:
        command = ["squeue", "-h", "-u", self.config.resolved_user(), "-j", handle.batch_id]
        result = subprocess.run(command, capture_output=True, text=True)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            # squeue rejects job IDs that have left the queue
            if INVALID_JOB_ID in stderr.lower():
                logger.debug("squeue no longer knows batch %s: %s", handle.batch_id, stderr)
                return False
            logger.warning(
                "squeue exited %d while polling batch %s (%s); treating the batch as still active",
                result.returncode, handle.batch_id, stderr,
            )
            return True
        return bool(result.stdout.strip())
