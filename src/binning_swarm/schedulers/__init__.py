"""Cluster scheduler backends for submitting and polling job arrays."""

from .base import Scheduler, wait_for_completion
from .dry_run import DryRunScheduler
from .swarm import SwarmScheduler
from .registry import SchedulerRegistry, get_scheduler

__all__ = [
    "Scheduler",
    "wait_for_completion",
    "DryRunScheduler",
    "SwarmScheduler",
    "SchedulerRegistry",
    "get_scheduler",
]
