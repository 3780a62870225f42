"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional, Union
from pydantic import Field, ConfigDict
from lintra.schemas.base import LintraBaseModel


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalReaderConfig(LintraBaseModel):
    """Runtime reader configuration."""
    file_format: Literal["csv", "tsv"]
    cell_id_column: Optional[str]  # None: cell ids come from the table index
    cluster_column: str
    embedding_columns: Optional[list[str]]
    embedding_prefix: str


class InternalLineageConfig(LintraBaseModel):
    """Runtime lineage configuration."""
    root_cluster: Optional[str]  # None: largest non-end cluster
    end_clusters: list[str]


class InternalPseudotimeConfig(LintraBaseModel):
    """Runtime pseudotime configuration."""
    method: Literal["arc_length"]
    segment_margin: float = Field(gt=0, lt=0.5)
    n_workers: int = Field(ge=1)


class InternalReporterConfig(LintraBaseModel):
    """Runtime reporter configuration."""
    palette: Union[str, list[str]]
    sample_fraction: float = Field(gt=0, le=1.0)
    seed: int = Field(ge=0, lt=2**32)


class InternalOutputConfig(LintraBaseModel):
    """Runtime output configuration.

    Note: base_dir may be None for in-memory runs (processor only). The
    orchestrator requires it before writing anything.
    """
    base_dir: Optional[str]
    run_name: str
    table_format: Literal["sqlite", "csv", "parquet"]


class InternalLoggingConfig(LintraBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(LintraBaseModel):
    """Authoritative runtime configuration.

    This is the ONLY configuration schema that processing code sees.
    It is fully validated, immutable, and contains explicit values for
    all parameters (no None for fields that runtime depends on).

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.root_cluster = config.lineage.root_cluster  # NOT .get()
            self.seed = config.reporter.seed

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO type checking
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    input_path: Optional[str]
    reader: InternalReaderConfig
    lineage: InternalLineageConfig
    pseudotime: InternalPseudotimeConfig
    reporter: InternalReporterConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
