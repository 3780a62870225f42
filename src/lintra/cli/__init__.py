"""Command-line entry points."""

from lintra.cli.run_trajectory import run_trajectory_pipeline, load_user_config_dict

__all__ = ["run_trajectory_pipeline", "load_user_config_dict"]
