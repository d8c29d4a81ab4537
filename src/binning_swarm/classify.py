"""Classification of finished jobs from their scheduler log files."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from binning_swarm.exceptions import FileOperationError
from binning_swarm.model import ClassificationResult, FailedSample

logger = logging.getLogger(__name__)

NO_FAILURES = "none"
COMPLETION_LOG = "swarm_completion.log"
COMPLETION_MESSAGE = "Swarm jobs completed successfully"


def extract_failed_sample(text: str, sample_marker: str) -> Optional[str]:
    """Return the first token after *sample_marker*, up to the next whitespace."""
    match = re.search(re.escape(sample_marker) + r"(\S+)", text)
    return match.group(1) if match else None


def classify_logs(
    log_dir: Path,
    assembler: str,
    pattern: str,
    success_marker: str,
    sample_marker: str,
) -> ClassificationResult:
    """Check every log matching *pattern* for *success_marker*."""
    log_files = sorted(p for p in log_dir.glob(pattern) if p.is_file())
    logger.info("Analyzing %d %s log files for failures...", len(log_files), assembler)

    failures = []
    for log_file in log_files:
        text = log_file.read_text(encoding="utf-8", errors="replace")
        if success_marker in text:
            continue
        sample_id = extract_failed_sample(text, sample_marker)
        if sample_id is None:
            logger.warning("Failed log %s does not name its sample", log_file)
        else:
            logger.warning("%s sample %s failed (see %s)", assembler, sample_id, log_file)
        failures.append(FailedSample(sample_id=sample_id, log_file=log_file))

    return ClassificationResult(assembler=assembler, logs_checked=len(log_files), failures=failures)


def write_failed_samples(path: Path, result: ClassificationResult) -> Path:
    """Write one failed sample per line, or the single line ``none``."""
    lines = [failure.entry for failure in result.failures] or [NO_FAILURES]
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        raise FileOperationError(f"Failed to write failed samples list {path}") from e
    if result.failures:
        logger.info("%s failed samples list created at %s", result.assembler, path)
    else:
        logger.info("No %s failures; wrote '%s' to %s", result.assembler, NO_FAILURES, path)
    return path


def append_completion_marker(log_dir: Path) -> Path:
    path = log_dir / COMPLETION_LOG
    log_dir.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(COMPLETION_MESSAGE + "\n")
    return path
