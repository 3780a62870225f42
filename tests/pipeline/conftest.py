"""Fixtures for pipeline-level tests (processor, writer, orchestrator)."""

import pytest

from lintra.pipeline.processor import TrajectoryProcessor
from lintra.setup_directories import setup_output_directories


@pytest.fixture
def pipeline_output_dirs(tmp_path):
    """Output directories for a pipeline run."""
    return setup_output_directories(tmp_path / "run")


@pytest.fixture
def pipeline_config(make_config, pipeline_output_dirs):
    """Runtime config writing into ``pipeline_output_dirs``."""
    return make_config(BASE_DIR=str(pipeline_output_dirs["base"]), RUN_NAME="pbmc")


@pytest.fixture
def trajectory_result(internal_config, branching_table):
    """Processed branching table (two lineages, 90 cells)."""
    return TrajectoryProcessor(internal_config).run(branching_table)


@pytest.fixture
def table_files(pipeline_output_dirs):
    """Callable listing every entry in the tables directory, hidden ones included."""
    def _list():
        return sorted(p.name for p in pipeline_output_dirs["tables"].iterdir())
    return _list
