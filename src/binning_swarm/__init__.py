"""binning-swarm: metaWRAP binning job generation and submission for HPC swarms."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("binning-swarm")
except PackageNotFoundError:
    __version__ = "unknown"

__author__ = "binning-swarm Team"

# Import main modules for easier access
from . import classify, config, inventory, jobs, reconcile, samples
from . import schedulers
