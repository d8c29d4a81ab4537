"""Sample identifiers derived from read and assembly file names.

Every SampleID in a run comes from one of the two extractors below, so the
naming convention is enforced in a single place:

- read files: ``<reads_dir>/S1_1.fastq`` -> ``S1`` (basename minus pairing suffix)
- contig files: ``.../S1_megahit_out/final.contigs.fa`` -> ``S1`` (parent
  directory minus the assembler's output suffix)
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Protocol, TypeVar

from binning_swarm.exceptions import InvalidSampleName

logger = logging.getLogger(__name__)


def _strip_suffix(name: str, suffix: str, source: Path | str) -> str:
    if not suffix:
        raise InvalidSampleName(f"Empty suffix given for {source}")
    if not name.endswith(suffix):
        raise InvalidSampleName(f"'{name}' (from {source}) does not end with expected suffix '{suffix}'")
    sample_id = name[: -len(suffix)]
    if not sample_id:
        raise InvalidSampleName(f"'{name}' (from {source}) is only the suffix '{suffix}'")
    return sample_id


def extract_sample_id(path: Path | str, suffix: str) -> str:
    """Return the SampleID of a read file by stripping *suffix* from its basename."""
    return _strip_suffix(Path(path).name, suffix, path)


def extract_assembly_sample_id(path: Path | str, suffix: str) -> str:
    """Return the SampleID of a contig file from its parent directory name."""
    parent = Path(path).parent.name
    if not parent:
        raise InvalidSampleName(f"Contig path {path} has no parent directory to name the sample")
    return _strip_suffix(parent, suffix, path)


class _HasSampleID(Protocol):
    sample_id: str


T = TypeVar("T", bound=_HasSampleID)


def index_by_sample(records: Iterable[T], label: str = "inventory") -> Dict[str, T]:
    """Map SampleID -> record, keeping the first record when an ID repeats."""
    index: Dict[str, T] = {}
    for record in records:
        if record.sample_id in index:
            logger.warning(
                "Duplicate sample %s in %s; keeping the first entry and ignoring %s",
                record.sample_id, label, record,
            )
            continue
        index[record.sample_id] = record
    return index
