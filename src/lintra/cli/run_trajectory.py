"""Core trajectory pipeline execution logic.

This module contains the actual pipeline runner, separated from argument parsing.
Scripts are thin wrappers; this is the real implementation.
"""

import sys
import json
import argparse
import logging
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import ValidationError

from lintra.errors import TrajectoryError
from lintra.contracts import ContractViolation
from lintra.setup_directories import setup_output_directories
from lintra.pipeline.orchestrator import PipelineOrchestrator
from lintra.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig


logger = logging.getLogger(__name__)


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing CONFIG dict.

    Returns
    -------
    dict
        Raw user configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    # Find CONFIG dict
    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def run_trajectory_pipeline(
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    verbose: bool = False
) -> dict:
    """Execute the trajectory pipeline once.

    This is the core pipeline execution function. It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories
    3. Runs the orchestrator (load, process, write)

    Parameters
    ----------
    user_config_path : str, optional
        Path to user config file (Python file with CONFIG dict). Without
        one, only expert defaults and CLI overrides apply.

    cli_args : dict, optional
        CLI argument overrides. Keys: input_path, base_dir, run_name,
        root_cluster, seed, log_level. All optional.

    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    dict
        Run summary from ``PipelineOrchestrator.run``.

    Raises
    ------
    FileNotFoundError
        If the user config or the input table does not exist.
    ValidationError
        If configuration validation fails.
    TrajectoryError
        If the input or the run parameters are invalid.

    Examples
    --------
    Run with user config only::

        run_trajectory_pipeline("config/pbmc3k.py")

    Run with CLI overrides::

        run_trajectory_pipeline(
            "config/pbmc3k.py",
            cli_args={"root_cluster": "2", "seed": 7},
        )
    """
    # Load configurations
    param_cfg = ParamConfig()  # Expert defaults

    if user_config_path is not None:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))
    else:
        user_cfg = UserConfig()

    cli_args = dict(cli_args or {})
    if verbose and cli_args.get("log_level") is None:
        cli_args["log_level"] = "DEBUG"

    # Filter None values
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    # Resolve to internal config (Param < User < CLI)
    config = resolve_config(param_cfg, user_cfg, cli_cfg)

    output_dirs = setup_output_directories(config.output.base_dir)

    # Print summary
    print(f"\n{'='*60}")
    print("lintra Trajectory Pipeline")
    print('='*60)
    print(f"Config: {user_config_path or '(defaults)'}")
    print(f"Input:  {config.input_path}")
    print(f"Root:   {config.lineage.root_cluster or '(largest cluster)'}")
    print(f"Output: {output_dirs['base']}")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2))
        print('='*60)

    orchestrator = PipelineOrchestrator(config, output_dirs)
    return orchestrator.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the lintra lineage trajectory pipeline")
    parser.add_argument("config", nargs="?", help="Path to user config file")
    parser.add_argument("-i", "--input", dest="input_path", help="Cell table (CSV/TSV)")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--run-name", help="Prefix of output files")
    parser.add_argument("--root-cluster", help="Start cluster label")
    parser.add_argument("--seed", type=int, help="Seed for the plotting sample")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="Logging level")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    """Console entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    cli_args = {
        "input_path": args.input_path,
        "base_dir": args.base_dir,
        "run_name": args.run_name,
        "root_cluster": args.root_cluster,
        "seed": args.seed,
        "log_level": args.log_level,
    }

    try:
        summary = run_trajectory_pipeline(args.config, cli_args, verbose=args.verbose)
    except (TrajectoryError, ContractViolation, ValidationError, OSError, ValueError) as e:
        logger.error("Trajectory pipeline failed: %s", e)
        return 1

    print(f"Done: {summary['n_lineages']} lineages from {summary['n_cells']} cells "
          f"(run {summary['run_id']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
