"""Tests for CLIConfig and its precedence over UserConfig."""

import pytest
from pydantic import ValidationError

from lintra.schemas.cli import CLIConfig
from lintra.schemas.param import ParamConfig
from lintra.schemas.resolve import resolve_config
from lintra.schemas.user import UserConfig

pytestmark = pytest.mark.unit


class TestCLIConfig:

    def test_empty_cli_has_no_overrides(self):
        assert CLIConfig().to_internal_overrides() == {}

    def test_overrides_structure(self):
        cli = CLIConfig(
            input_path="cells.csv",
            base_dir="/scratch/out",
            run_name="pbmc",
            root_cluster=0,
            seed=5,
            log_level="debug",
        )

        assert cli.to_internal_overrides() == {
            "input_path": "cells.csv",
            "output": {"base_dir": "/scratch/out", "run_name": "pbmc"},
            "lineage": {"root_cluster": "0"},
            "reporter": {"seed": 5},
            "logging": {"level": "DEBUG"},
        }

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            CLIConfig(log_level="verbose")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            CLIConfig(palette="tab10")


def test_cli_overrides_do_not_mutate_user():
    user = UserConfig.model_validate({"ROOT_CLUSTER": "1", "BASE_DIR": "/tmp"})
    cli = CLIConfig.model_validate({"root_cluster": "2"})

    internal = resolve_config(ParamConfig(), user, cli)

    # CLI should take precedence
    assert internal.lineage.root_cluster == "2"

    # But the original user model should remain unchanged
    assert user.root_cluster == "1"


def test_cli_root_cluster_keeps_user_end_clusters():
    user = UserConfig(END_CLUSTERS=["5"])
    cli = CLIConfig(root_cluster="0")

    config = resolve_config(ParamConfig(), user, cli)

    assert config.lineage.root_cluster == "0"  # CLI wins
    assert config.lineage.end_clusters == ["5"]  # User value preserved


def test_cli_base_dir_keeps_user_run_name():
    user = UserConfig(BASE_DIR="/tmp/a", RUN_NAME="pbmc")
    cli = CLIConfig(base_dir="/tmp/b")

    config = resolve_config(ParamConfig(), user, cli)

    assert config.output.base_dir == "/tmp/b"
    assert config.output.run_name == "pbmc"


def test_cli_log_level_reaches_logging_section():
    config = resolve_config(ParamConfig(), None, CLIConfig(log_level="warning"))

    assert config.logging.level == "WARNING"
