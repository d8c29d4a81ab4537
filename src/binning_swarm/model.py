"""Pydantic models for the artifacts passed between pipeline stages."""
from __future__ import annotations

import shlex
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNPARSABLE_LOG = "UnparsableLog"


class ReadPair(BaseModel):
    """Forward and reverse read files of one sample."""
    model_config = ConfigDict(frozen=True)

    sample_id: str
    forward: Path
    reverse: Path


class AssemblyRecord(BaseModel):
    """One contig file listed in an assembler manifest."""
    model_config = ConfigDict(frozen=True)

    sample_id: str
    assembler: str
    contigs: Path


class MatchedJob(BaseModel):
    """A sample with both reads and an assembly, ready to be binned."""
    model_config = ConfigDict(frozen=True)

    sample_id: str
    assembler: str
    contigs: Path
    forward: Path
    reverse: Path
    output_dir: Path

    def command(self, binning_script: Path) -> str:
        """Render the job-list line that bins this sample."""
        args = [binning_script, self.contigs, self.forward, self.reverse, self.output_dir]
        return " ".join(["bash"] + [shlex.quote(str(arg)) for arg in args])


class JobList(BaseModel):
    """The job-list file written for one assembler."""
    model_config = ConfigDict(frozen=True)

    assembler: str
    path: Path
    jobs: List[MatchedJob]

    def __len__(self) -> int:
        return len(self.jobs)


class BatchHandle(BaseModel):
    """Scheduler identifier of one submitted job array."""
    model_config = ConfigDict(frozen=True)

    assembler: str
    batch_id: str
    job_name: str


class SampleMismatch(BaseModel):
    """A sample present in one inventory but absent from another."""
    model_config = ConfigDict(frozen=True)

    sample_id: str
    found_in: str
    missing_from: str

    def describe(self) -> str:
        return f"Sample {self.sample_id} found in {self.found_in} but not in {self.missing_from}."


class Reconciliation(BaseModel):
    """Outcome of matching the read inventory against one assembler."""
    model_config = ConfigDict(frozen=True)

    assembler: str
    matched: List[str]
    mismatches: List[SampleMismatch] = Field(default_factory=list)


class FailedSample(BaseModel):
    """A job whose log lacks the success marker."""
    model_config = ConfigDict(frozen=True)

    sample_id: Optional[str]
    log_file: Path

    @property
    def entry(self) -> str:
        """Line written to the failed-sample list."""
        if self.sample_id:
            return self.sample_id
        return f"{UNPARSABLE_LOG}:{self.log_file}"


class ClassificationResult(BaseModel):
    """Per-assembler outcome of scanning the job logs."""
    model_config = ConfigDict(frozen=True)

    assembler: str
    logs_checked: int
    failures: List[FailedSample] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class Inventory(BaseModel):
    """Read pairs and per-assembler assembly records discovered for a run."""
    model_config = ConfigDict(frozen=True)

    reads: List[ReadPair]
    assemblies: Dict[str, List[AssemblyRecord]]

    @property
    def read_sample_ids(self) -> List[str]:
        return [pair.sample_id for pair in self.reads]


class PipelineResult(BaseModel):
    """Everything a pipeline run produced, keyed by assembler name."""
    job_lists: Dict[str, JobList] = Field(default_factory=dict)
    handles: Dict[str, BatchHandle] = Field(default_factory=dict)
    classifications: Dict[str, ClassificationResult] = Field(default_factory=dict)
    mismatches: List[SampleMismatch] = Field(default_factory=list)
    cancelled: bool = False
