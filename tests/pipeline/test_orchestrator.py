import json
import logging

import pytest

from lintra.errors import ConfigurationError, InvalidInputError
from lintra.pipeline.orchestrator import PipelineOrchestrator

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


def test_orchestrator_config_storage(pipeline_config, pipeline_output_dirs):
    """Test orchestrator stores config correctly."""
    orch = PipelineOrchestrator(pipeline_config, pipeline_output_dirs)

    assert orch.config == pipeline_config
    assert orch.output_dirs == pipeline_output_dirs


def test_run_ids_are_unique(pipeline_config, pipeline_output_dirs):
    first = PipelineOrchestrator(pipeline_config, pipeline_output_dirs)
    second = PipelineOrchestrator(pipeline_config, pipeline_output_dirs)

    assert first.run_id != second.run_id


def test_run_with_dataframe(pipeline_config, pipeline_output_dirs, branching_table, table_files):
    """A successful run writes tables, runtime config and a log."""
    summary = PipelineOrchestrator(pipeline_config, pipeline_output_dirs).run(branching_table)

    assert summary["n_cells"] == 90
    assert summary["n_clusters"] == 4
    assert summary["n_lineages"] == 2
    assert summary["root_cluster"] == "0"
    assert table_files() == ["pbmc_colors.json", "pbmc_lineages.json", "pbmc_trajectory.db"]
    assert summary["runtime_config"].exists()
    assert (pipeline_output_dirs["logs"] / "pipeline_pbmc.log").exists()


def test_runtime_config_round_trips(pipeline_config, pipeline_output_dirs, branching_table):
    summary = PipelineOrchestrator(pipeline_config, pipeline_output_dirs).run(branching_table)

    with open(summary["runtime_config"]) as f:
        saved = json.load(f)

    assert saved == pipeline_config.model_dump()
    assert summary["runtime_config"].name == f"runtime_config_{summary['run_id']}.json"


def test_run_reads_input_path(make_config, pipeline_output_dirs, branching_table, tmp_path):
    path = tmp_path / "cells.csv"
    branching_table.to_csv(path, index=False)
    config = make_config(INPUT_PATH=str(path), BASE_DIR=str(pipeline_output_dirs["base"]))

    summary = PipelineOrchestrator(config, pipeline_output_dirs).run()

    assert summary["n_cells"] == 90
    assert summary["outputs"]["lineages"].exists()


def test_run_without_input_fails(pipeline_config, pipeline_output_dirs, table_files):
    with pytest.raises(ConfigurationError, match="input_path"):
        PipelineOrchestrator(pipeline_config, pipeline_output_dirs).run()

    assert table_files() == []


def test_failed_run_leaves_only_its_log(pipeline_config, pipeline_output_dirs,
                                        cell_table_factory, table_files):
    table = cell_table_factory({"0": (0.0, 0.0)}, {"0": 10})

    with pytest.raises(InvalidInputError):
        PipelineOrchestrator(pipeline_config, pipeline_output_dirs).run(table)

    assert table_files() == []
    assert list(pipeline_output_dirs["base"].glob("runtime_config_*.json")) == []

    log_text = (pipeline_output_dirs["logs"] / "pipeline_pbmc.log").read_text()
    assert "failed" in log_text


def test_logging_handlers_removed_after_run(pipeline_config, pipeline_output_dirs, branching_table):
    root = logging.getLogger()
    before = list(root.handlers)

    PipelineOrchestrator(pipeline_config, pipeline_output_dirs).run(branching_table)

    assert root.handlers == before


def test_logging_handlers_removed_after_failure(pipeline_config, pipeline_output_dirs):
    root = logging.getLogger()
    before = list(root.handlers)

    with pytest.raises(ConfigurationError):
        PipelineOrchestrator(pipeline_config, pipeline_output_dirs).run()

    assert root.handlers == before
