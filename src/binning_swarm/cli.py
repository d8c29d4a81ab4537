"""Typer-powered CLI for the binning-swarm pipeline.

Commands:
- `validate`: Pre-flight checks of the config, reads directory, manifests and
  scheduler executables.
- `configure`: Interactive generator for a `config.yaml` file.
- `reconcile`: Report which samples match between reads and each assembler.
- `generate`: Write the binning wrapper script and one job list per assembler.
- `run`: Generate, submit, wait for and classify the binning jobs.
  `--dry-run` stops after logging the submission commands.
- `classify`: Re-scan existing job logs and rewrite the failed-sample lists.
- `schedulers`: List the available scheduler backends.

Every command takes `--config`/`-c`, the YAML configuration file.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict

import typer

from binning_swarm import __version__
from binning_swarm.config import AppConfig, load_and_validate_config
from binning_swarm.configure import generate_config_interactive
from binning_swarm.container import ensure_container
from binning_swarm.exceptions import BinningSwarmError, ValidationError
from binning_swarm.inventory import collect_inventory
from binning_swarm.log_config import setup_logging
from binning_swarm.model import ClassificationResult, PipelineResult
from binning_swarm.pipeline import classify as classify_all
from binning_swarm.pipeline import generate as generate_all
from binning_swarm.pipeline import reconcile_all, run_pipeline
from binning_swarm.schedulers import SchedulerRegistry, get_scheduler
from binning_swarm.validation import validate_inputs

app = typer.Typer(add_completion=False, help="Generate, submit and check metaWRAP binning swarms")
logger = logging.getLogger("binning_swarm")

CONFIG_OPTION = typer.Option(..., "--config", "-c", exists=True, dir_okay=False, help="Path to the YAML configuration file.")
LOG_LEVEL_OPTION = typer.Option("INFO", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR).")


@app.callback(invoke_without_command=True)
def _version(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit")) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _load_config(config: Path, log_level: str) -> AppConfig:
    """Load the config and start logging into its log directory."""
    try:
        cfg = load_and_validate_config(config)
    except BinningSwarmError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    setup_logging(cfg.paths.log_path, log_level)
    return cfg


def _log_classifications(classifications: Dict[str, ClassificationResult]) -> None:
    for name, result in classifications.items():
        if result.succeeded:
            logger.info(f"✅ {name}: {result.logs_checked} logs checked, no failed samples")
        else:
            logger.warning(f"❌ {name}: {len(result.failures)} of {result.logs_checked} jobs failed")


def _log_summary(result: PipelineResult) -> None:
    for name, job_list in result.job_lists.items():
        handle = result.handles.get(name)
        batch = f", batch {handle.batch_id}" if handle else ""
        logger.info(f"{name}: {len(job_list)} jobs in {job_list.path}{batch}")
    if result.mismatches:
        logger.warning(f"{len(result.mismatches)} sample mismatches were reported above")
    _log_classifications(result.classifications)


@app.command()
def configure() -> None:
    """Launch an interactive tool to generate a config.yaml file."""
    try:
        generate_config_interactive()
    except Exception as e:
        logger.error(f"Failed to generate configuration: {e}", exc_info=True)
        raise typer.Exit(1)


@app.command()
def validate(
    config: Path = CONFIG_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Skip the scheduler executable checks."),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Validate the configuration and inputs without generating anything."""
    _load_config(config, log_level)
    try:
        validate_inputs(config, check_executables=not dry_run)
    except ValidationError as e:
        logger.error(f"Validation failed: {e}")
        raise typer.Exit(1)


@app.command()
def reconcile(config: Path = CONFIG_OPTION, log_level: str = LOG_LEVEL_OPTION) -> None:
    """Report matched and mismatched samples for every assembler."""
    cfg = _load_config(config, log_level)
    try:
        reconciliations = reconcile_all(cfg, collect_inventory(cfg))
    except BinningSwarmError as e:
        logger.error(f"Reconciliation failed: {e}")
        raise typer.Exit(1)
    for name, reconciliation in reconciliations.items():
        typer.echo(f"{name}: {len(reconciliation.matched)} matched")
        for sample_id in reconciliation.matched:
            typer.echo(f"  {sample_id}")
        for mismatch in reconciliation.mismatches:
            typer.echo(f"  ! {mismatch.describe()}")


@app.command()
def generate(config: Path = CONFIG_OPTION, log_level: str = LOG_LEVEL_OPTION) -> None:
    """Write the binning script and job lists without submitting them."""
    cfg = _load_config(config, log_level)
    try:
        result = generate_all(cfg)
    except BinningSwarmError as e:
        logger.error(f"Job generation failed: {e}")
        raise typer.Exit(1)
    _log_summary(result)


@app.command()
def run(
    config: Path = CONFIG_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Generate job lists and log the submit commands only."),
    pull_container: bool = typer.Option(False, "--pull-container", help="Pull the metaWRAP image if it is missing."),
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Run the full pipeline: generate, submit, wait and classify."""
    cfg = _load_config(config, log_level)
    try:
        validate_inputs(config, check_executables=not dry_run)
    except ValidationError as e:
        logger.error(f"Validation failed: {e}")
        raise typer.Exit(1)

    cancel_event = threading.Event()
    try:
        if pull_container:
            ensure_container(cfg)
        scheduler = get_scheduler(cfg.scheduler, cfg.paths.log_path, dry_run=dry_run)
        result = run_pipeline(cfg, scheduler, cancel_event, wait=not dry_run)
    except BinningSwarmError as e:
        logger.error(f"A pipeline error occurred: {e}")
        raise typer.Exit(code=1)

    _log_summary(result)
    if result.cancelled:
        logger.warning("Stopped waiting before the jobs finished; run `binning-swarm classify` once they are done.")
        raise typer.Exit(code=130)
    if dry_run:
        logger.info("Dry run complete. No jobs were submitted.")
    else:
        logger.info("Script completed successfully.")


@app.command()
def classify(config: Path = CONFIG_OPTION, log_level: str = LOG_LEVEL_OPTION) -> None:
    """Classify finished job logs and rewrite the failed-sample lists."""
    cfg = _load_config(config, log_level)
    try:
        classifications = classify_all(cfg)
    except BinningSwarmError as e:
        logger.error(f"Classification failed: {e}")
        raise typer.Exit(1)
    _log_classifications(classifications)


@app.command()
def schedulers() -> None:
    """List the available scheduler backends."""
    for name in SchedulerRegistry().available():
        typer.echo(name)


if __name__ == "__main__":
    app()
