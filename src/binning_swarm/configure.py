"""Interactive configuration generator for binning-swarm."""
from pathlib import Path

import questionary
import yaml

from binning_swarm.config import AppConfig


def generate_config_interactive() -> Path | None:
    """Launch an interactive questionnaire to generate a config.yaml file."""
    print("Welcome to the binning-swarm interactive configuration generator!")
    print("Press Enter to accept the default value in brackets.")

    defaults = AppConfig().model_dump(mode="json")
    config = {}

    # --- Paths ---
    questionary.print("\n--- Paths ---", style="bold underline")
    config['paths'] = {
        'data_dir': questionary.text("Project data directory:", default=defaults['paths']['data_dir']).ask(),
        'reads_dir': questionary.text("Directory holding the paired FASTQ reads:", default=defaults['paths']['reads_dir']).ask(),
        'binning_dir': questionary.text("Binning output directory:", default=defaults['paths']['binning_dir']).ask(),
    }

    # --- Assemblers ---
    questionary.print("\n--- Assembler manifests ---", style="bold underline")
    assemblers = []
    for assembler in defaults['assemblers']:
        if not questionary.confirm(f"Bin {assembler['name']} assemblies?", default=True).ask():
            continue
        assembler['manifest'] = questionary.text(
            f"{assembler['name']} final contigs list:", default=assembler['manifest']
        ).ask()
        assemblers.append(assembler)
    config['assemblers'] = assemblers

    # --- metaWRAP / scheduler ---
    questionary.print("\n--- Job resources ---", style="bold underline")
    config['metawrap'] = {
        'min_contig_length': int(questionary.text("Minimum contig length:", default=str(defaults['metawrap']['min_contig_length'])).ask()),
    }
    config['scheduler'] = {
        'threads': int(questionary.text("Threads per job:", default=str(defaults['scheduler']['threads'])).ask()),
        'memory': int(questionary.text("Memory per job (GB):", default=str(defaults['scheduler']['memory'])).ask()),
        'time': questionary.text("Wall time per job:", default=defaults['scheduler']['time']).ask(),
    }

    # --- Save File ---
    questionary.print("\n--- Saving Configuration ---", style="bold underline")
    save_path = Path(questionary.text("Path to save config file:", default="config.yaml").ask())

    # Validate before writing
    AppConfig.model_validate(config)
    try:
        with open(save_path, 'w') as f:
            yaml.dump(config, f, sort_keys=False, default_flow_style=False)
        print(f"\n✅ Configuration saved successfully to {save_path}")
    except IOError as e:
        print(f"\n❌ Error saving configuration file: {e}")
        return None
    return save_path


if __name__ == '__main__':
    generate_config_interactive()
