"""Matching of read samples against each assembler's samples."""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from binning_swarm.model import Reconciliation, SampleMismatch

logger = logging.getLogger(__name__)

READS = "reads"


def _ordered_unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def reconcile(read_ids: Sequence[str], assembly_ids: Sequence[str], assembler: str) -> Reconciliation:
    """Intersect read and assembly SampleIDs, keeping read order.

    Mismatches list reads without an assembly (read order) followed by
    assemblies without reads (manifest order).
    """
    reads = _ordered_unique(read_ids)
    assemblies = _ordered_unique(assembly_ids)
    read_set = set(reads)
    assembly_set = set(assemblies)

    matched = [s for s in reads if s in assembly_set]
    mismatches = [
        SampleMismatch(sample_id=s, found_in=READS, missing_from=assembler)
        for s in reads
        if s not in assembly_set
    ]
    mismatches += [
        SampleMismatch(sample_id=s, found_in=assembler, missing_from=READS)
        for s in assemblies
        if s not in read_set
    ]
    return Reconciliation(assembler=assembler, matched=matched, mismatches=mismatches)


def report_mismatches(reconciliations: Iterable[Reconciliation]) -> List[SampleMismatch]:
    """Log every mismatch as a warning and return them all."""
    mismatches = [m for r in reconciliations for m in r.mismatches]
    if mismatches:
        logger.warning("There are %d mismatches between the sample lists:", len(mismatches))
        for mismatch in mismatches:
            logger.warning("  %s", mismatch.describe())
    else:
        logger.info("All samples match between reads and assemblies.")
    return mismatches
