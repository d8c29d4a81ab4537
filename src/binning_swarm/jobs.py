"""Generation of the binning wrapper script and per-assembler job lists."""
from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from binning_swarm.config import AppConfig
from binning_swarm.exceptions import FileOperationError, GenerationFailure
from binning_swarm.model import AssemblyRecord, JobList, MatchedJob, ReadPair, Reconciliation
from binning_swarm.samples import index_by_sample

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
BINNING_SCRIPT_TEMPLATE = "binning.sh.j2"
BINNING_OUT_SUFFIX = "_binning_out"

_jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def render_binning_script(config: AppConfig) -> str:
    template = _jinja_env.get_template(BINNING_SCRIPT_TEMPLATE)
    return template.render(
        output_suffix=BINNING_OUT_SUFFIX,
        sample_marker=config.classifier.sample_marker,
        module=config.container.module,
        bind_script=config.container.bind_script,
        sif_file=config.sif_path,
        binners=config.metawrap.binners,
        min_contig_length=config.metawrap.min_contig_length,
        threads=config.metawrap.threads,
        memory=config.metawrap.memory,
    )


def write_binning_script(path: Path, config: AppConfig) -> Path:
    """Write the executable wrapper that every job-list line invokes."""
    logger.info(f"Creating binning script at {path}...")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_binning_script(config), encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise FileOperationError(f"Failed to create binning script at {path}") from e
    return path


def output_dir_for(bins_dir: Path, sample_id: str) -> Path:
    return bins_dir / f"{sample_id}{BINNING_OUT_SUFFIX}"


def build_jobs(
    reconciliation: Reconciliation,
    read_pairs: Sequence[ReadPair],
    records: Sequence[AssemblyRecord],
    bins_dir: Path,
) -> List[MatchedJob]:
    """Build one job per matched sample, in matched order."""
    assembler = reconciliation.assembler
    reads = index_by_sample(read_pairs, label="reads")
    assemblies = index_by_sample(records, label=f"{assembler} assemblies")

    jobs = []
    for sample_id in reconciliation.matched:
        record = assemblies.get(sample_id)
        pair = reads.get(sample_id)
        if record is None or pair is None:
            logger.warning("No matching %s assembly or read pair found for sample %s; skipping", assembler, sample_id)
            continue
        job = MatchedJob(
            sample_id=sample_id,
            assembler=assembler,
            contigs=record.contigs,
            forward=pair.forward,
            reverse=pair.reverse,
            output_dir=output_dir_for(bins_dir, sample_id),
        )
        logger.debug("Matched %s sample %s -> %s", assembler, sample_id, job.output_dir)
        jobs.append(job)
    return jobs


def write_job_list(path: Path, assembler: str, jobs: Sequence[MatchedJob], binning_script: Path) -> JobList:
    """Truncate *path* and write one command line per job.

    Raises:
        GenerationFailure: if there is nothing to submit.
    """
    if not jobs:
        # Remove any job list left from an earlier run
        path.unlink(missing_ok=True)
        raise GenerationFailure(f"No {assembler} jobs were generated; refusing to write an empty job list {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="\n") as handle:
            for job in jobs:
                handle.write(job.command(binning_script) + "\n")
    except OSError as e:
        raise FileOperationError(f"Failed to write job list {path}") from e
    logger.info("%s job list with %d jobs written to %s", assembler, len(jobs), path)
    return JobList(assembler=assembler, path=path, jobs=list(jobs))


def write_jobs_manifest(path: Path, job_lists: Iterable[JobList]) -> pd.DataFrame:
    """Persist every generated job as a CSV sorted by assembler and sample."""
    rows = [job.model_dump(mode="json") for job_list in job_lists for job in job_list.jobs]
    columns = list(MatchedJob.model_fields)
    df = pd.DataFrame(rows, columns=columns).sort_values(["assembler", "sample_id"], kind="stable")
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return df
