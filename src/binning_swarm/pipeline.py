"""Class-based pipeline stage architecture for binning-swarm."""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict

from binning_swarm.classify import append_completion_marker, classify_logs, write_failed_samples
from binning_swarm.config import AppConfig, AssemblerConfig
from binning_swarm.inventory import collect_inventory
from binning_swarm.jobs import build_jobs, write_binning_script, write_job_list, write_jobs_manifest
from binning_swarm.model import (
    BatchHandle,
    ClassificationResult,
    Inventory,
    JobList,
    PipelineResult,
    Reconciliation,
)
from binning_swarm.provenance import generate_provenance_report
from binning_swarm.reconcile import reconcile, report_mismatches
from binning_swarm.schedulers import Scheduler, wait_for_completion
from binning_swarm.utils import ensure_dir

logger = logging.getLogger(__name__)

JOBS_MANIFEST = "jobs_manifest.csv"


class PipelineStage(ABC):
    """Abstract base class for a pipeline stage."""

    @property
    @abstractmethod
    def stage_name(self) -> str:
        raise NotImplementedError

    def run(self, input_result: Any = None) -> Any:
        logger.info(f"Running stage '{self.stage_name}'.")
        return self._run_logic(input_result)

    @abstractmethod
    def _run_logic(self, input_result: Any = None) -> Any:
        raise NotImplementedError


class InventoryStage(PipelineStage):
    stage_name = "inventory"

    def __init__(self, config: AppConfig):
        self.config = config

    def _run_logic(self, input_result: None = None) -> Inventory:
        return collect_inventory(self.config)


class ReconciliationStage(PipelineStage):
    stage_name = "reconcile"

    def __init__(self, assembler: AssemblerConfig):
        self.assembler = assembler

    def _run_logic(self, input_result: Inventory) -> Reconciliation:
        records = input_result.assemblies.get(self.assembler.name, [])
        return reconcile(
            input_result.read_sample_ids,
            [record.sample_id for record in records],
            self.assembler.name,
        )


class GenerationStage(PipelineStage):
    stage_name = "generate"

    def __init__(self, config: AppConfig, assembler: AssemblerConfig, inventory: Inventory):
        self.config = config
        self.assembler = assembler
        self.inventory = inventory

    def _run_logic(self, input_result: Reconciliation) -> JobList:
        logger.info(f"Creating the {self.assembler.name} swarm file...")
        bins_dir = ensure_dir(self.config.bins_dir_for(self.assembler))
        jobs = build_jobs(
            input_result,
            self.inventory.reads,
            self.inventory.assemblies.get(self.assembler.name, []),
            bins_dir,
        )
        return write_job_list(
            self.config.job_list_for(self.assembler),
            self.assembler.name,
            jobs,
            self.config.binning_script,
        )


class SubmissionStage(PipelineStage):
    stage_name = "submit"

    def __init__(self, scheduler: Scheduler, assembler: AssemblerConfig):
        self.scheduler = scheduler
        self.assembler = assembler

    def _run_logic(self, input_result: JobList) -> BatchHandle:
        return self.scheduler.submit(input_result, self.assembler.job_name)


class WaitStage(PipelineStage):
    stage_name = "wait"

    def __init__(self, scheduler: Scheduler, interval: float, cancel_event: threading.Event):
        self.scheduler = scheduler
        self.interval = interval
        self.cancel_event = cancel_event

    def _run_logic(self, input_result: BatchHandle) -> bool:
        return wait_for_completion(self.scheduler, input_result, self.interval, self.cancel_event)


class ClassificationStage(PipelineStage):
    stage_name = "classify"

    def __init__(self, config: AppConfig, assembler: AssemblerConfig):
        self.config = config
        self.assembler = assembler

    def _run_logic(self, input_result: None = None) -> ClassificationResult:
        classifier = self.config.classifier
        result = classify_logs(
            self.config.paths.log_path,
            self.assembler.name,
            classifier.log_pattern.format(job_name=self.assembler.job_name, assembler=self.assembler.name),
            classifier.success_marker,
            classifier.sample_marker,
        )
        if result.logs_checked == 0:
            logger.warning(f"No {self.assembler.name} log files found in {self.config.paths.log_path}")
        write_failed_samples(self.config.failed_list_for(self.assembler), result)
        return result


# ---------------------------------------------------------------------------
# Pipeline entry points (shared by the CLI commands)


def reconcile_all(config: AppConfig, inventory: Inventory) -> Dict[str, Reconciliation]:
    """Reconcile reads against every assembler and log the mismatches."""
    reconciliations = {
        assembler.name: ReconciliationStage(assembler).run(inventory) for assembler in config.assemblers
    }
    report_mismatches(reconciliations.values())
    return reconciliations


def generate(config: AppConfig) -> PipelineResult:
    """Collect inputs and write the wrapper script plus every job list.

    All job lists are written before anything is submitted, so an empty
    job list aborts the run with nothing queued.
    """
    root = ensure_dir(config.paths.binning_path)
    ensure_dir(config.paths.log_path)

    inventory = InventoryStage(config).run()
    generate_provenance_report(config, root, inventory)
    reconciliations = reconcile_all(config, inventory)

    write_binning_script(config.binning_script, config)
    job_lists = {
        assembler.name: GenerationStage(config, assembler, inventory).run(reconciliations[assembler.name])
        for assembler in config.assemblers
    }
    write_jobs_manifest(root / JOBS_MANIFEST, job_lists.values())

    mismatches = [m for r in reconciliations.values() for m in r.mismatches]
    return PipelineResult(job_lists=job_lists, mismatches=mismatches)


def classify(config: AppConfig) -> Dict[str, ClassificationResult]:
    """Classify the logs of every assembler and write the failed-sample lists."""
    return {assembler.name: ClassificationStage(config, assembler).run() for assembler in config.assemblers}


def wait_all(
    scheduler: Scheduler,
    handles: Dict[str, BatchHandle],
    interval: float,
    cancel_event: threading.Event,
) -> bool:
    """Wait for every batch concurrently; ``False`` if waiting was cancelled."""
    finished: Dict[str, bool] = {}
    with ThreadPoolExecutor(max_workers=max(len(handles), 1)) as executor:
        futures = {
            executor.submit(WaitStage(scheduler, interval, cancel_event).run, handle): name
            for name, handle in handles.items()
        }
        try:
            for future in as_completed(futures):
                finished[futures[future]] = future.result()
        except KeyboardInterrupt:
            logger.warning("Interrupted while waiting; submitted jobs keep running on the cluster.")
            cancel_event.set()
        except Exception:
            # Release the remaining waiters before the executor joins them
            cancel_event.set()
            raise
    return len(finished) == len(handles) and all(finished.values())


def run_pipeline(
    config: AppConfig,
    scheduler: Scheduler,
    cancel_event: threading.Event | None = None,
    wait: bool = True,
) -> PipelineResult:
    """Generate, submit, wait for and classify the binning jobs of all assemblers."""
    cancel_event = cancel_event or threading.Event()
    result = generate(config)

    handles = {
        assembler.name: SubmissionStage(scheduler, assembler).run(result.job_lists[assembler.name])
        for assembler in config.assemblers
    }
    result = result.model_copy(update={"handles": handles})
    if not wait:
        return result

    if not wait_all(scheduler, handles, config.scheduler.poll_interval, cancel_event):
        return result.model_copy(update={"cancelled": True})

    append_completion_marker(config.paths.log_path)
    return result.model_copy(update={"classifications": classify(config)})
