"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., ROOT_CLUSTER -> lineage.root_cluster,
BASE_DIR -> output.base_dir).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Validation is lenient to accept
both uppercase and lowercase keys, integer cluster labels, etc.
"""

from typing import Optional, Union
from pydantic import Field, field_validator
from lintra.schemas.base import LintraBaseModel
from lintra.schemas.param import coerce_cluster_label


class UserReaderConfig(LintraBaseModel):
    """User-facing reader config."""
    file_format: Optional[str] = None
    cell_id_column: Optional[str] = None
    cluster_column: Optional[str] = None
    embedding_columns: Optional[list[str]] = None
    embedding_prefix: Optional[str] = None

    @field_validator("file_format", mode="before")
    @classmethod
    def normalize_file_format(cls, v):
        """Normalize format names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserLineageConfig(LintraBaseModel):
    """User-facing lineage config."""
    root_cluster: Optional[str] = None
    end_clusters: Optional[list[str]] = None

    @field_validator("root_cluster", mode="before")
    @classmethod
    def coerce_root_cluster(cls, v):
        """Accept int or str cluster labels."""
        return coerce_cluster_label(v)

    @field_validator("end_clusters", mode="before")
    @classmethod
    def coerce_end_clusters(cls, v):
        """Accept int or str cluster labels."""
        if v is None:
            return v
        return [coerce_cluster_label(c) for c in v]


class UserPseudotimeConfig(LintraBaseModel):
    """User-facing pseudotime config."""
    method: Optional[str] = None
    segment_margin: Optional[float] = Field(None, gt=0, lt=0.5)
    n_workers: Optional[int] = None

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        """Normalize method names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserReporterConfig(LintraBaseModel):
    """User-facing reporter config."""
    palette: Optional[Union[str, list[str]]] = None
    sample_fraction: Optional[float] = None
    seed: Optional[int] = Field(None, ge=0, lt=2**32)


class UserOutputConfig(LintraBaseModel):
    """User-facing output config."""
    base_dir: Optional[str] = None
    run_name: Optional[str] = None
    table_format: Optional[str] = None


class UserConfig(LintraBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    This config is converted to internal overrides during resolution.
    Nested sections win over the flat aliases. Keys set explicitly in a
    nested section are passed through even when None, so
    ``reader={"cell_id_column": None}`` selects the table index as cell id.

    Usage
    -----
        user_cfg = UserConfig(
            INPUT_PATH="/data/pbmc3k/clusters.csv",
            BASE_DIR="/scratch/lintra",
            ROOT_CLUSTER=0,
            SEED=7,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level operational settings
    input_path: Optional[str] = Field(None, alias="INPUT_PATH")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    run_name: Optional[str] = Field(None, alias="RUN_NAME")

    # Reader settings (flat aliases)
    file_format: Optional[str] = Field(None, alias="FILE_FORMAT")
    cell_id_column: Optional[str] = Field(None, alias="CELL_ID_COLUMN")
    cluster_column: Optional[str] = Field(None, alias="CLUSTER_COLUMN")
    embedding_columns: Optional[list[str]] = Field(None, alias="EMBEDDING_COLUMNS")
    embedding_prefix: Optional[str] = Field(None, alias="EMBEDDING_PREFIX")

    # Lineage settings (flat aliases)
    root_cluster: Optional[str] = Field(None, alias="ROOT_CLUSTER")
    end_clusters: Optional[list[str]] = Field(None, alias="END_CLUSTERS")

    # Pseudotime settings (flat aliases)
    n_workers: Optional[int] = Field(None, alias="N_WORKERS")

    # Reporter settings (flat aliases)
    palette: Optional[Union[str, list[str]]] = Field(None, alias="PALETTE")
    sample_fraction: Optional[float] = Field(None, alias="SAMPLE_FRACTION")
    seed: Optional[int] = Field(None, alias="SEED", ge=0, lt=2**32)

    # Output settings (flat aliases)
    table_format: Optional[str] = Field(None, alias="TABLE_FORMAT")

    # Nested overrides (advanced users)
    reader: Optional[UserReaderConfig] = None
    lineage: Optional[UserLineageConfig] = None
    pseudotime: Optional[UserPseudotimeConfig] = None
    reporter: Optional[UserReporterConfig] = None
    output: Optional[UserOutputConfig] = None

    model_config = LintraBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("root_cluster", mode="before")
    @classmethod
    def coerce_root_cluster(cls, v):
        """Accept int or str cluster labels."""
        return coerce_cluster_label(v)

    @field_validator("end_clusters", mode="before")
    @classmethod
    def coerce_end_clusters(cls, v):
        """Accept a single label or a list of int/str labels."""
        if v is None:
            return v
        if isinstance(v, (str, int)):
            v = [v]
        return [coerce_cluster_label(c) for c in v]

    @field_validator("sample_fraction", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for numeric fields."""
        if isinstance(v, int) and not isinstance(v, bool):
            return float(v)
        return v

    @field_validator("file_format", "table_format", mode="before")
    @classmethod
    def normalize_format_names(cls, v):
        """Normalize format names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.input_path is not None:
            overrides["input_path"] = str(self.input_path)

        # Reader section
        reader = {}
        if self.file_format is not None:
            reader["file_format"] = self.file_format
        if self.cell_id_column is not None:
            reader["cell_id_column"] = self.cell_id_column
        if self.cluster_column is not None:
            reader["cluster_column"] = self.cluster_column
        if self.embedding_columns is not None:
            reader["embedding_columns"] = self.embedding_columns
        if self.embedding_prefix is not None:
            reader["embedding_prefix"] = self.embedding_prefix

        # Merge with explicit reader config
        if self.reader is not None:
            reader.update(self.reader.model_dump(exclude_unset=True))

        if reader:
            overrides["reader"] = reader

        # Lineage section
        lineage = {}
        if self.root_cluster is not None:
            lineage["root_cluster"] = self.root_cluster
        if self.end_clusters is not None:
            lineage["end_clusters"] = self.end_clusters

        if self.lineage is not None:
            lineage.update(self.lineage.model_dump(exclude_unset=True))

        if lineage:
            overrides["lineage"] = lineage

        # Pseudotime section
        pseudotime = {}
        if self.n_workers is not None:
            pseudotime["n_workers"] = self.n_workers

        if self.pseudotime is not None:
            pseudotime.update(self.pseudotime.model_dump(exclude_unset=True))

        if pseudotime:
            overrides["pseudotime"] = pseudotime

        # Reporter section
        reporter = {}
        if self.palette is not None:
            reporter["palette"] = self.palette
        if self.sample_fraction is not None:
            reporter["sample_fraction"] = self.sample_fraction
        if self.seed is not None:
            reporter["seed"] = self.seed

        if self.reporter is not None:
            reporter.update(self.reporter.model_dump(exclude_unset=True))

        if reporter:
            overrides["reporter"] = reporter

        # Output section
        output = {}
        if self.base_dir is not None:
            output["base_dir"] = str(self.base_dir)
        if self.run_name is not None:
            output["run_name"] = self.run_name
        if self.table_format is not None:
            output["table_format"] = self.table_format

        if self.output is not None:
            output.update(self.output.model_dump(exclude_unset=True))

        if output:
            overrides["output"] = output

        return overrides
