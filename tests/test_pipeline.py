"""End-to-end tests of the pipeline entry points against an in-memory scheduler."""
import json
import threading

import pandas as pd
import pytest

from binning_swarm import provenance
from binning_swarm.classify import COMPLETION_LOG, COMPLETION_MESSAGE
from binning_swarm.config import SchedulerConfig, load_and_validate_config
from binning_swarm.exceptions import ConfigurationError, GenerationFailure
from binning_swarm.model import BatchHandle, SampleMismatch
from binning_swarm.pipeline import JOBS_MANIFEST, classify, generate, run_pipeline, wait_all
from binning_swarm.provenance import PROVENANCE_FILE
from binning_swarm.schedulers import DryRunScheduler, Scheduler


@pytest.fixture(autouse=True)
def _no_tool_probes(monkeypatch):
    monkeypatch.setattr(provenance, "get_tool_versions", lambda: {"singularity": None, "swarm": None})


def _failed_list(config, name):
    return config.failed_list_for(config.get_assembler(name)).read_text().splitlines()


def test_full_run_all_samples_succeed(app_config, fake_scheduler):
    scheduler = fake_scheduler(app_config, polls=2)

    result = run_pipeline(app_config, scheduler)

    assert not result.cancelled
    assert {name: handle.batch_id for name, handle in result.handles.items()} == {
        "megahit": "1001",
        "spades": "1002",
    }
    assert [job_list.assembler for job_list in scheduler.submitted] == ["megahit", "spades"]
    assert scheduler.poll_count == 6
    for name in ("megahit", "spades"):
        assert result.classifications[name].succeeded
        assert result.classifications[name].logs_checked == 2
        assert _failed_list(app_config, name) == ["none"]

    completion = app_config.paths.log_path / COMPLETION_LOG
    assert completion.read_text() == COMPLETION_MESSAGE + "\n"


def test_full_run_writes_job_lists_and_reports(app_config, fake_scheduler):
    result = run_pipeline(app_config, fake_scheduler(app_config))

    binning = app_config.paths.binning_path
    lines = (binning / "megahit_swarm_file").read_text().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith(f"bash {binning / 'binning.sh'} ")
    assert lines[0].endswith(str(binning / "02_megahit_bins" / "S1_binning_out"))
    assert len(result.job_lists["spades"]) == 2

    manifest = pd.read_csv(binning / JOBS_MANIFEST)
    assert len(manifest) == 4
    assert manifest["assembler"].tolist() == ["megahit", "megahit", "spades", "spades"]

    report = json.loads((binning / PROVENANCE_FILE).read_text())
    assert report["inputs"] == {"read_pairs": 2, "assemblies": {"megahit": 2, "spades": 2}}


def test_failed_sample_is_listed_for_each_assembler(app_config, fake_scheduler):
    result = run_pipeline(app_config, fake_scheduler(app_config, failing=["S2"]))

    for name in ("megahit", "spades"):
        assert [f.sample_id for f in result.classifications[name].failures] == ["S2"]
        assert _failed_list(app_config, name) == ["S2"]


def test_sample_missing_from_one_assembler(make_project, fake_scheduler):
    config = load_and_validate_config(make_project(reads=["S1", "S2", "S3"], megahit=["S1", "S2"]))

    result = run_pipeline(config, fake_scheduler(config))

    assert result.mismatches == [SampleMismatch(sample_id="S3", found_in="reads", missing_from="megahit")]
    assert len(result.job_lists["megahit"]) == 2
    assert len(result.job_lists["spades"]) == 3
    assert result.classifications["spades"].logs_checked == 3


def test_empty_job_list_aborts_before_submission(make_project, fake_scheduler):
    config = load_and_validate_config(make_project(reads=["S1"], megahit=["S2"], spades=["S1"]))
    scheduler = fake_scheduler(config)

    with pytest.raises(GenerationFailure, match="megahit"):
        run_pipeline(config, scheduler)

    assert scheduler.submitted == []


def test_missing_manifest_aborts_before_generation(app_config, fake_scheduler):
    app_config.manifest_for(app_config.get_assembler("spades")).unlink()
    scheduler = fake_scheduler(app_config)

    with pytest.raises(ConfigurationError, match="does not exist"):
        run_pipeline(app_config, scheduler)

    assert scheduler.submitted == []
    assert not (app_config.paths.binning_path / "megahit_swarm_file").exists()


def test_cancelled_wait_skips_classification(app_config, fake_scheduler):
    cancel = threading.Event()
    cancel.set()
    scheduler = fake_scheduler(app_config, polls=5)

    result = run_pipeline(app_config, scheduler, cancel_event=cancel)

    assert result.cancelled
    assert len(scheduler.submitted) == 2
    assert result.classifications == {}
    assert not (app_config.paths.log_path / COMPLETION_LOG).exists()
    assert not app_config.failed_list_for(app_config.get_assembler("megahit")).exists()


def test_dry_run_does_not_wait(app_config):
    scheduler = DryRunScheduler(app_config.scheduler, app_config.paths.log_path)

    result = run_pipeline(app_config, scheduler, wait=False)

    assert {handle.batch_id for handle in result.handles.values()} == {"dry-run"}
    assert result.classifications == {}
    assert (app_config.paths.binning_path / "spades_swarm_file").exists()


def test_generate_twice_overwrites_job_lists(app_config):
    generate(app_config)
    first = (app_config.paths.binning_path / "megahit_swarm_file").read_text()
    generate(app_config)

    assert (app_config.paths.binning_path / "megahit_swarm_file").read_text() == first


def test_classify_scans_only_each_assemblers_logs(app_config):
    log_dir = app_config.paths.log_path
    log_dir.mkdir(parents=True)
    (log_dir / "megahit_binning_1001_0.o").write_text("binning sample: S1\nPIPELINE SUCCESSFULLY FINISHED\n")
    (log_dir / "megahit_binning_1001_1.o").write_text("binning sample: S2\nSegmentation fault\n")
    (log_dir / "spades_binning_1002_0.o").write_text("out of memory\n")
    (log_dir / "binning_swarm.log").write_text("not a job log\n")

    results = classify(app_config)

    assert results["megahit"].logs_checked == 2
    assert _failed_list(app_config, "megahit") == ["S2"]
    assert results["spades"].logs_checked == 1
    assert _failed_list(app_config, "spades") == [f"UnparsableLog:{log_dir / 'spades_binning_1002_0.o'}"]


def test_classify_without_logs_writes_none(app_config, caplog):
    results = classify(app_config)

    assert results["megahit"].logs_checked == 0
    assert _failed_list(app_config, "megahit") == ["none"]
    assert "No megahit log files found" in caplog.text


def test_unpaired_read_is_skipped(make_project, caplog):
    config_path = make_project(reads=["S1", "S2"])
    config = load_and_validate_config(config_path)
    (config.paths.reads_path / "S3_1.fastq").write_text("@r1\nACGT\n+\nIIII\n")

    result = generate(config)

    assert [job.sample_id for job in result.job_lists["megahit"].jobs] == ["S1", "S2"]
    assert "No reverse read for sample S3" in caplog.text


class HalfBrokenScheduler(Scheduler):
    """Polling megahit fails; the spades batch never finishes."""

    def submit(self, job_list, job_name):
        raise NotImplementedError

    def is_active(self, handle):
        if handle.assembler == "megahit":
            raise OSError("squeue: command not found")
        return True


def test_wait_error_releases_other_waiters(tmp_path):
    scheduler = HalfBrokenScheduler(SchedulerConfig(), tmp_path)
    handles = {
        name: BatchHandle(assembler=name, batch_id=batch_id, job_name=f"{name}_binning")
        for name, batch_id in (("megahit", "1"), ("spades", "2"))
    }
    cancel = threading.Event()

    with pytest.raises(OSError, match="squeue"):
        wait_all(scheduler, handles, 0.01, cancel)

    assert cancel.is_set()
