"""
Directory setup for trajectory runs.

Layout under the base directory:
- tables/: lineage and colour JSON, pseudotime tables (SQLite, CSV or Parquet)
- logs/: one log file per run name
- runtime_config_<run_id>.json in the base directory itself
"""

from pathlib import Path

from lintra.errors import ConfigurationError


def setup_output_directories(base_output_dir):
    """
    Set up the output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path
        Base output directory; created if missing.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'tables', 'logs'
    """
    if base_output_dir is None:
        raise ConfigurationError("An output base directory is required (output.base_dir)")

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "tables": base_output_dir / "tables",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    return directories


def get_table_path(output_dirs, run_name, table, extension):
    """
    Get the path of one output table.

    Parameters
    ----------
    output_dirs : dict
        Output directories from setup_output_directories()
    run_name : str
        Run name used as file prefix
    table : str
        Table name, e.g. 'pseudotime' or 'lineages'
    extension : str
        File extension with or without the leading dot

    Returns
    -------
    Path
        Full path: tables/<run_name>_<table>.<ext>

    Example
    -------
    >>> get_table_path(dirs, 'pbmc3k', 'pseudotime', 'csv')
    Path('output/tables/pbmc3k_pseudotime.csv')
    """
    ext = extension[1:] if extension.startswith('.') else extension
    return Path(output_dirs["tables"]) / f"{run_name}_{table}.{ext}"


def get_log_path(output_dirs, run_name):
    """
    Get the log file path of a run.

    Returns
    -------
    Path
        Full path: logs/pipeline_<run_name>.log
    """
    log_dir = Path(output_dirs["logs"])
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"pipeline_{run_name}.log"
