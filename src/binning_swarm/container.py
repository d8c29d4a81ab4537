"""Provisioning of the metaWRAP singularity image used by the binning jobs."""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from binning_swarm.config import AppConfig
from binning_swarm.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def ensure_container(config: AppConfig) -> Path:
    """Pull the container image unless the SIF file already exists."""
    sif = config.sif_path
    if sif.exists():
        logger.info(f"Singularity image file {sif} already exists. Skipping pull.")
        return sif

    sif.parent.mkdir(parents=True, exist_ok=True)
    command = ["singularity", "pull", str(sif), config.container.image_uri]
    logger.info(f"Pulling the metawrap container: {' '.join(command)}")
    try:
        subprocess.run(command, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        raise ConfigurationError(f"Failed to pull metawrap container into {sif}: {e.stderr.strip()}") from e
    except (FileNotFoundError, OSError) as e:
        raise ConfigurationError(f"Failed to pull metawrap container: {e}") from e
    return sif
