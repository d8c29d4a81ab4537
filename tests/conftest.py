from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Iterable, List

import pytest
import yaml

from binning_swarm.config import AppConfig, SchedulerConfig, load_and_validate_config
from binning_swarm.model import BatchHandle, JobList
from binning_swarm.schedulers import Scheduler

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SUCCESS = "PIPELINE SUCCESSFULLY FINISHED"
CONTIG_NAMES = {"megahit": "final.contigs.fa", "spades": "contigs.fasta"}


@pytest.fixture(scope="session")
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so they never outlive a test."""
    yield
    logger = logging.getLogger("binning_swarm")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    sys.excepthook = sys.__excepthook__


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Build a reads directory, both manifests and a config file under tmp_path."""

    def _make(
        reads: Iterable[str] = ("S1", "S2"),
        megahit: Iterable[str] = ("S1", "S2"),
        spades: Iterable[str] = ("S1", "S2"),
    ) -> Path:
        data_dir = tmp_path / "data"
        reads_dir = data_dir / "00_reads"
        reads_dir.mkdir(parents=True, exist_ok=True)
        for sample in reads:
            (reads_dir / f"{sample}_1.fastq").write_text("@r1\nACGT\n+\nIIII\n")
            (reads_dir / f"{sample}_2.fastq").write_text("@r1\nTGCA\n+\nIIII\n")

        for assembler, samples in (("megahit", megahit), ("spades", spades)):
            assembly_dir = data_dir / f"01_assembly_{assembler}"
            assembly_dir.mkdir(parents=True, exist_ok=True)
            lines = []
            for sample in samples:
                contigs = assembly_dir / f"{sample}_{assembler}_out" / CONTIG_NAMES[assembler]
                contigs.parent.mkdir(parents=True, exist_ok=True)
                contigs.write_text(">contig_1\nACGTACGT\n")
                lines.append(f"{contigs}\n")
            (assembly_dir / "final_contigs_list.txt").write_text("".join(lines))

        config = {
            "paths": {"data_dir": str(data_dir)},
            "container": {"sif_file": str(tmp_path / "metawrap.sif")},
            "scheduler": {"poll_interval": 0.01, "user": "tester"},
        }
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump(config))
        return config_path

    return _make


@pytest.fixture
def config_path(make_project) -> Path:
    return make_project()


@pytest.fixture
def app_config(config_path: Path) -> AppConfig:
    return load_and_validate_config(config_path)


class FakeScheduler(Scheduler):
    """In-memory scheduler that writes one swarm-style log per job on completion."""

    name = "fake"

    def __init__(self, config: SchedulerConfig, log_dir: Path, polls: int = 1, failing: Iterable[str] = ()):
        super().__init__(config, log_dir)
        self.polls = polls
        self.failing = set(failing)
        self.submitted: List[JobList] = []
        self.poll_count = 0
        self._remaining = {}

    def submit(self, job_list: JobList, job_name: str) -> BatchHandle:
        self.submitted.append(job_list)
        batch_id = str(1000 + len(self.submitted))
        self._remaining[batch_id] = (self.polls, job_list)
        return BatchHandle(assembler=job_list.assembler, batch_id=batch_id, job_name=job_name)

    def is_active(self, handle: BatchHandle) -> bool:
        self.poll_count += 1
        polls, job_list = self._remaining[handle.batch_id]
        if polls > 0:
            self._remaining[handle.batch_id] = (polls - 1, job_list)
            return True
        self._write_logs(handle, job_list)
        return False

    def _write_logs(self, handle: BatchHandle, job_list: JobList) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        for index, job in enumerate(job_list.jobs):
            body = f"binning sample: {job.sample_id}\nrunning metawrap binning\n"
            if job.sample_id not in self.failing:
                body += f"{SUCCESS}\n"
            (self.log_dir / f"{handle.job_name}_{handle.batch_id}_{index}.o").write_text(body)


@pytest.fixture
def fake_scheduler() -> Callable[..., FakeScheduler]:
    def _make(config: AppConfig, **kwargs) -> FakeScheduler:
        return FakeScheduler(config.scheduler, config.paths.log_path, **kwargs)

    return _make
