"""Module for recording the provenance of a binning run."""

import logging
import platform
import subprocess
import sys
from importlib.metadata import distributions
from pathlib import Path
from typing import Any, Dict, Optional

from binning_swarm.config import AppConfig
from binning_swarm.model import Inventory
from binning_swarm.utils import _write_json, timestamp

logger = logging.getLogger(__name__)

PROVENANCE_FILE = "provenance.json"


def _run_command(command: list[str]) -> Optional[str]:
    """Helper to run a command and return its output."""
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=True, encoding='utf-8')
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError, OSError) as e:
        logger.debug(f"Command {command} failed: {e}")
        return None


def get_tool_versions() -> Dict[str, Optional[str]]:
    """Versions of the external tools the run shells out to, when installed."""
    return {
        "singularity": _run_command(["singularity", "--version"]),
        "swarm": _run_command(["swarm", "--version"]),
    }


def get_dependencies() -> Dict[str, str]:
    """Lists all installed packages and their versions using importlib.metadata."""
    deps = {}
    for dist in distributions():
        name = dist.metadata.get("Name")
        if name:
            deps[name] = dist.version
    return deps


def get_platform_info() -> Dict[str, str]:
    return {
        "python_version": sys.version,
        "platform": platform.platform(),
        "architecture": platform.machine(),
    }


def generate_provenance_report(
    config: AppConfig,
    output_dir: Path,
    inventory: Inventory | None = None,
) -> Dict[str, Any]:
    """
    Generate and save ``provenance.json`` for a run.

    Failures are logged and never interrupt the pipeline.

    Args:
        config: The AppConfig used for the run.
        output_dir: Directory the report is written to.
        inventory: Discovered reads and assemblies, if collected already.

    Returns:
        The provenance report as a dictionary.
    """
    report: Dict[str, Any] = {
        "run_timestamp_utc": timestamp(),
        "provenance_version": "1.0",
        "platform": get_platform_info(),
        "configuration": config.model_dump(mode="json"),
        "tools": get_tool_versions(),
    }

    if inventory is not None:
        report["inputs"] = {
            "read_pairs": len(inventory.reads),
            "assemblies": {name: len(records) for name, records in inventory.assemblies.items()},
        }

    try:
        report["dependencies"] = get_dependencies()
    except Exception as e:
        logger.warning(f"Failed to retrieve dependencies: {e}")
        report["dependencies"] = {"error": str(e)}

    provenance_file = output_dir / PROVENANCE_FILE
    try:
        _write_json(provenance_file, report)
        logger.info(f"Provenance report saved to {provenance_file}")
    except (OSError, TypeError) as e:
        logger.error(f"Failed to save provenance report: {e}")

    return report
