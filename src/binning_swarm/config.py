"""Pydantic models for configuration validation."""
from __future__ import annotations

import getpass
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from binning_swarm.exceptions import ConfigurationError


class PathsConfig(BaseModel):
    data_dir: Path = Path("data")
    reads_dir: Path = Path("00_reads")
    binning_dir: Path = Path("02_binning")
    log_dir: Path | None = None

    def resolve(self, path: Path) -> Path:
        """Relative paths live under ``data_dir``; absolute paths are kept."""
        return self.data_dir / path

    @property
    def reads_path(self) -> Path:
        return self.resolve(self.reads_dir)

    @property
    def binning_path(self) -> Path:
        return self.resolve(self.binning_dir)

    @property
    def log_path(self) -> Path:
        if self.log_dir is None:
            return self.binning_path / "logs"
        return self.resolve(self.log_dir)


class ReadsConfig(BaseModel):
    forward_suffix: str = "_1.fastq"
    reverse_suffix: str = "_2.fastq"

    @field_validator("forward_suffix", "reverse_suffix")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("read suffix must not be empty")
        return value


class AssemblerConfig(BaseModel):
    name: str
    manifest: Path
    output_suffix: str
    bins_subdir: str

    @property
    def job_name(self) -> str:
        return f"{self.name}_binning"


def _default_assemblers() -> list[AssemblerConfig]:
    return [
        AssemblerConfig(
            name="megahit",
            manifest=Path("01_assembly_megahit/final_contigs_list.txt"),
            output_suffix="_megahit_out",
            bins_subdir="02_megahit_bins",
        ),
        AssemblerConfig(
            name="spades",
            manifest=Path("01_assembly_spades/final_contigs_list.txt"),
            output_suffix="_spades_out",
            bins_subdir="02_spades_bins",
        ),
    ]


class ContainerConfig(BaseModel):
    sif_file: Path = Path("container/MAG_wf_containers_metawrap.sif")
    image_uri: str = "shub://sskashaf/MAG_wf_containers:metawrap"
    module: str = "singularity"
    bind_script: str = "/usr/local/current/singularity/app_conf/sing_binds"


class MetawrapConfig(BaseModel):
    min_contig_length: int = Field(5000, gt=0)
    threads: int = Field(32, gt=0)
    memory: int = Field(128, gt=0)
    binners: list[str] = Field(default_factory=lambda: ["metabat2", "maxbin2", "concoct"])


class SchedulerConfig(BaseModel):
    backend: str = "swarm"
    threads: int = Field(32, gt=0)
    memory: int = Field(128, gt=0)
    time: str = "24:00:00"
    poll_interval: float = Field(60, gt=0)
    user: str | None = None

    def resolved_user(self) -> str:
        return self.user or os.environ.get("USER") or getpass.getuser()


class ClassifierConfig(BaseModel):
    success_marker: str = "PIPELINE SUCCESSFULLY FINISHED"
    sample_marker: str = "binning sample: "
    log_pattern: str = "{job_name}_*.o"


class AppConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    reads: ReadsConfig = Field(default_factory=ReadsConfig)
    assemblers: list[AssemblerConfig] = Field(default_factory=_default_assemblers)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    metawrap: MetawrapConfig = Field(default_factory=MetawrapConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)

    @field_validator("assemblers")
    @classmethod
    def _unique_assemblers(cls, value: list[AssemblerConfig]) -> list[AssemblerConfig]:
        if not value:
            raise ValueError("at least one assembler must be configured")
        names = [a.name for a in value]
        if len(set(names)) != len(names):
            raise ValueError(f"assembler names must be unique: {names}")
        return value

    # Per-assembler artifact locations, all namespaced under binning_dir.

    def manifest_for(self, assembler: AssemblerConfig) -> Path:
        return self.paths.resolve(assembler.manifest)

    def bins_dir_for(self, assembler: AssemblerConfig) -> Path:
        return self.paths.binning_path / assembler.bins_subdir

    def job_list_for(self, assembler: AssemblerConfig) -> Path:
        return self.paths.binning_path / f"{assembler.name}_swarm_file"

    def failed_list_for(self, assembler: AssemblerConfig) -> Path:
        return self.paths.binning_path / f"{assembler.name}_failed_samples_list.txt"

    @property
    def binning_script(self) -> Path:
        return self.paths.binning_path / "binning.sh"

    @property
    def sif_path(self) -> Path:
        return self.paths.resolve(self.container.sif_file)

    def get_assembler(self, name: str) -> AssemblerConfig:
        for assembler in self.assemblers:
            if assembler.name == name:
                return assembler
        raise ConfigurationError(f"Unknown assembler '{name}'")


def load_and_validate_config(config_path: Path) -> AppConfig:
    """Loads and validates the YAML configuration file."""
    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        return AppConfig.model_validate(config_data)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found at {config_path}") from e
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(f"Error parsing or validating config file {config_path}:\n{e}") from e
