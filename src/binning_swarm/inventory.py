"""Discovery of paired reads and assembler contig manifests."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from binning_swarm.config import AppConfig, AssemblerConfig
from binning_swarm.exceptions import ConfigurationError
from binning_swarm.model import AssemblyRecord, Inventory, ReadPair
from binning_swarm.samples import extract_assembly_sample_id, extract_sample_id

logger = logging.getLogger(__name__)


def list_read_files(reads_dir: Path, suffix: str) -> List[Path]:
    """List ``*<suffix>`` files directly inside *reads_dir*, sorted by name."""
    if not reads_dir.is_dir():
        raise ConfigurationError(f"Reads directory does not exist: {reads_dir}")
    files = sorted(
        (p for p in reads_dir.iterdir() if p.is_file() and p.name.endswith(suffix)),
        key=lambda p: p.name,
    )
    if not files:
        raise ConfigurationError(f"No read files matching '*{suffix}' found in {reads_dir}")
    return files


def read_manifest(path: Path) -> List[Path]:
    """Return the contig paths listed in a manifest, one per non-blank line."""
    if not path.is_file():
        raise ConfigurationError(f"Final contigs list does not exist at {path}")
    with path.open("r", encoding="utf-8") as handle:
        entries = [Path(line.strip()) for line in handle if line.strip()]
    if not entries:
        raise ConfigurationError(f"Final contigs list at {path} is empty")
    return entries


def collect_read_pairs(reads_dir: Path, forward_suffix: str, reverse_suffix: str) -> List[ReadPair]:
    """Pair forward and reverse reads by SampleID, in sorted forward order.

    A read file whose partner is missing is skipped with a warning.
    """
    forward = {extract_sample_id(p, forward_suffix): p for p in list_read_files(reads_dir, forward_suffix)}
    reverse = {extract_sample_id(p, reverse_suffix): p for p in list_read_files(reads_dir, reverse_suffix)}

    pairs = []
    for sample_id, fwd in forward.items():
        rev = reverse.get(sample_id)
        if rev is None:
            logger.warning("No reverse read for sample %s (%s); skipping", sample_id, fwd)
            continue
        pairs.append(ReadPair(sample_id=sample_id, forward=fwd, reverse=rev))
    for sample_id, rev in reverse.items():
        if sample_id not in forward:
            logger.warning("No forward read for sample %s (%s); skipping", sample_id, rev)

    logger.info("Found %d read pairs in %s", len(pairs), reads_dir)
    return pairs


def collect_assemblies(manifest: Path, assembler: AssemblerConfig) -> List[AssemblyRecord]:
    records = [
        AssemblyRecord(
            sample_id=extract_assembly_sample_id(contigs, assembler.output_suffix),
            assembler=assembler.name,
            contigs=contigs,
        )
        for contigs in read_manifest(manifest)
    ]
    logger.info("Found %d %s assemblies listed in %s", len(records), assembler.name, manifest)
    for record in records:
        logger.debug("  %s -> %s", record.sample_id, record.contigs)
    return records


def collect_inventory(config: AppConfig) -> Inventory:
    """Build the read and assembly inventory for every configured assembler."""
    # Manifests are read before the reads directory.
    assemblies = {
        assembler.name: collect_assemblies(config.manifest_for(assembler), assembler)
        for assembler in config.assemblers
    }
    reads = collect_read_pairs(
        config.paths.reads_path, config.reads.forward_suffix, config.reads.reverse_suffix
    )
    return Inventory(reads=reads, assemblies=assemblies)
