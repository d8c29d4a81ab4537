"""Pre-flight validation checks for a binning-swarm run."""
from pathlib import Path
import logging
import shutil

from binning_swarm.config import AppConfig, load_and_validate_config
from binning_swarm.exceptions import BinningSwarmError, ValidationError
from binning_swarm.inventory import collect_assemblies, collect_read_pairs

logger = logging.getLogger(__name__)

SCHEDULER_EXECUTABLES = {"swarm": ["swarm", "squeue"]}


def validate_inputs(config_path: Path, check_executables: bool = True) -> AppConfig:
    """
    Check the config, the reads directory, every manifest and the scheduler tools.

    Raises:
        ValidationError: if any check fails.

    Returns:
        The validated ``AppConfig`` instance.
    """
    errors: list[str] = []

    # 1. Validate the config file
    try:
        logger.info(f"Validating configuration file: {config_path}")
        config = load_and_validate_config(config_path)
        logger.info("✅ Configuration file is valid.")
    except BinningSwarmError as e:
        logger.error(f"❌ {e}")
        raise ValidationError(f"Configuration file validation failed: {e}") from e

    # 2. Validate the reads directory
    try:
        pairs = collect_read_pairs(
            config.paths.reads_path, config.reads.forward_suffix, config.reads.reverse_suffix
        )
        logger.info(f"✅ {len(pairs)} read pairs found in {config.paths.reads_path}.")
    except BinningSwarmError as e:
        errors.append(str(e))
        logger.error(f"❌ {e}")

    # 3. Validate each assembler manifest
    for assembler in config.assemblers:
        try:
            records = collect_assemblies(config.manifest_for(assembler), assembler)
            logger.info(f"✅ {len(records)} {assembler.name} assemblies listed.")
        except BinningSwarmError as e:
            errors.append(str(e))
            logger.error(f"❌ {e}")

    # 4. Validate the scheduler executables
    if check_executables:
        for executable in SCHEDULER_EXECUTABLES.get(config.scheduler.backend, []):
            if shutil.which(executable) is None:
                errors.append(f"Required executable '{executable}' not found on PATH")
                logger.error(f"❌ {errors[-1]}")

    if errors:
        logger.error("💥 Input validation failed. Please fix the errors above before running the pipeline.")
        raise ValidationError("; ".join(errors))

    logger.info("🎉 All input validation checks passed successfully!")
    return config
