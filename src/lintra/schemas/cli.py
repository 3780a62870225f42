"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: input table, output paths, root cluster, seed, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from lintra.schemas.base import LintraBaseModel
from lintra.schemas.param import coerce_cluster_label


class CLIConfig(LintraBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(
            input_path="pbmc3k_clusters.csv",
            base_dir="/scratch/lintra_output",
            root_cluster="0",
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    input_path: Optional[str] = None
    base_dir: Optional[str] = None
    run_name: Optional[str] = None
    root_cluster: Optional[str] = None
    seed: Optional[int] = Field(None, ge=0, lt=2**32)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("root_cluster", mode="before")
    @classmethod
    def coerce_root_cluster(cls, v):
        """Accept int or str cluster labels."""
        return coerce_cluster_label(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.input_path is not None:
            overrides["input_path"] = str(self.input_path)

        output_overrides = {}
        if self.base_dir is not None:
            output_overrides["base_dir"] = str(self.base_dir)
        if self.run_name is not None:
            output_overrides["run_name"] = self.run_name

        if output_overrides:
            overrides["output"] = output_overrides

        if self.root_cluster is not None:
            overrides["lineage"] = {"root_cluster": self.root_cluster}

        if self.seed is not None:
            overrides["reporter"] = {"seed": self.seed}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
