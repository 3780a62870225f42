"""ParamConfig: Expert defaults for the lintra pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional, Union
from pydantic import Field, field_validator
from lintra.schemas.base import LintraBaseModel


def coerce_cluster_label(v):
    """Cluster labels are strings; accept ints from hand-written configs."""
    if v is None:
        return v
    if isinstance(v, bool):
        raise ValueError("cluster label must be a string or integer")
    if isinstance(v, (int, float)) and float(v).is_integer():
        return str(int(v))
    return str(v).strip()


# =============================================================================
# Nested Configuration Models
# =============================================================================

class ReaderConfig(LintraBaseModel):
    """Cell table reader configuration."""
    file_format: Literal["csv", "tsv"] = "csv"
    cell_id_column: Optional[str] = Field("cell_id", description="None reads ids from the index")
    cluster_column: str = "cluster"
    embedding_columns: Optional[list[str]] = Field(None, description="Explicit embedding columns")
    embedding_prefix: str = Field("PC_", min_length=1)

    @field_validator("file_format", mode="before")
    @classmethod
    def normalize_file_format(cls, v):
        """Normalize format names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class LineageConfig(LintraBaseModel):
    """Lineage tree configuration."""
    root_cluster: Optional[str] = Field(None, description="None picks the largest cluster")
    end_clusters: list[str] = Field(default_factory=list)

    @field_validator("root_cluster", mode="before")
    @classmethod
    def coerce_root_cluster(cls, v):
        """Allow int or str for the root label."""
        return coerce_cluster_label(v)

    @field_validator("end_clusters", mode="before")
    @classmethod
    def coerce_end_clusters(cls, v):
        """Allow int or str labels."""
        if v is None:
            return []
        return [coerce_cluster_label(c) for c in v]


class PseudotimeConfig(LintraBaseModel):
    """Pseudotime projection configuration."""
    method: Literal["arc_length"] = "arc_length"
    segment_margin: float = Field(0.05, gt=0, lt=0.5)
    n_workers: int = Field(1, ge=1, description="Threads for per-lineage projection")

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method_name(cls, v):
        """Normalize method names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("segment_margin", mode="before")
    @classmethod
    def coerce_margin_to_float(cls, v):
        """Allow int or float for segment_margin."""
        if isinstance(v, int) and not isinstance(v, bool):
            return float(v)
        return v


class ReporterConfig(LintraBaseModel):
    """Report tables and plotting sample configuration."""
    palette: Union[str, list[str]] = Field("tab10", description="matplotlib colormap name or colour list")
    sample_fraction: float = Field(1.0, gt=0, le=1.0)
    seed: int = Field(42, ge=0, lt=2**32, description="numpy random_state for the plotting sample")


class OutputConfig(LintraBaseModel):
    """Output file configuration."""
    base_dir: Optional[str] = None
    run_name: str = Field("trajectory", min_length=1)
    table_format: Literal["sqlite", "csv", "parquet"] = "sqlite"


class LoggingConfig(LintraBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(LintraBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    input_path: Optional[str] = None
    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    lineage: LineageConfig = Field(default_factory=LineageConfig)
    pseudotime: PseudotimeConfig = Field(default_factory=PseudotimeConfig)
    reporter: ReporterConfig = Field(default_factory=ReporterConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
