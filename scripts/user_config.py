"""lintra User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Expert defaults live in lintra.schemas.param.

Usage:
    python scripts/run_trajectory_pipeline.py scripts/user_config.py
    python scripts/run_trajectory_pipeline.py scripts/user_config.py --root-cluster 2
    lintra-run scripts/user_config.py --seed 7
"""

CONFIG = {
    # ========================================================================
    # INPUT & OUTPUT
    # ========================================================================
    "INPUT_PATH": "data/pbmc3k_clusters.csv",  # One row per cell
    "BASE_DIR": "output",                      # All outputs go here
    "RUN_NAME": "pbmc3k",                      # Prefix of output files
    "TABLE_FORMAT": "sqlite",                  # "sqlite", "csv" or "parquet"

    # ========================================================================
    # CELL TABLE COLUMNS
    # ========================================================================
    "CELL_ID_COLUMN": "cell_id",
    "CLUSTER_COLUMN": "cluster",
    "EMBEDDING_PREFIX": "PC_",       # Every column starting with this
    "EMBEDDING_COLUMNS": None,       # Or an explicit list, e.g. ["PC_1", "PC_2"]

    # ========================================================================
    # LINEAGES
    # ========================================================================
    "ROOT_CLUSTER": None,            # None = largest cluster
    "END_CLUSTERS": [],              # Clusters forced to be terminal states

    # ========================================================================
    # REPORTING
    # ========================================================================
    "PALETTE": "tab10",              # matplotlib colormap or list of colours
    "SAMPLE_FRACTION": 1.0,          # Share of rows in the plotting sample
    "SEED": 42,                      # Seed for the plotting sample
    "N_WORKERS": 1,                  # Threads for per-lineage projection

    # Note: Advanced settings (segment margin, file format, ...) can be set
    # with nested sections, e.g. "pseudotime": {"segment_margin": 0.1}
}
