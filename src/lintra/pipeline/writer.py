"""Persist the artifacts of a successful trajectory run.

Everything is first written into a hidden staging directory next to the
final location and moved into place only when every file was written. A
failure removes the staging directory, so a failed write leaves no partial
tables behind. Files of an earlier run with the same names are set aside
before being replaced and are moved back if the new ones cannot all be
moved into place.
"""

import json
import logging
import shutil
import sqlite3
import tempfile
from contextlib import closing
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from lintra.setup_directories import get_table_path

if TYPE_CHECKING:
    from lintra.pipeline.processor import TrajectoryResult
    from lintra.schemas import InternalConfig

__all__ = ['TrajectoryWriter']

logger = logging.getLogger(__name__)

TABLE_EXTENSIONS = {"csv": "csv", "parquet": "parquet"}


class TrajectoryWriter:
    """Write lineages, colours and pseudotime tables of one run.

    **Output Files** (under ``output_dirs["tables"]``):

    - ``<run_name>_lineages.json``: list of cluster-label sequences
    - ``<run_name>_colors.json``: cluster label -> hex colour
    - tables ``pseudotime`` (long table), ``edges``, ``clusters``,
      ``average_pseudotime`` and ``sample`` (seeded plotting subsample):

      - ``table_format="sqlite"``: one ``<run_name>_trajectory.db``
      - ``table_format="csv"``: ``<run_name>_<table>.csv`` each
      - ``table_format="parquet"``: ``<run_name>_<table>.parquet`` each

    Examples
    --------
    >>> writer = TrajectoryWriter(config, output_dirs)
    >>> paths = writer.write(result)
    >>> sorted(paths)
    ['colors', 'lineages', 'tables']
    """

    def __init__(self, config: "InternalConfig", output_dirs: dict):
        self.config = config
        self.output_dirs = output_dirs
        self.run_name = config.output.run_name
        self.table_format = config.output.table_format

    def collect_tables(self, result: "TrajectoryResult") -> dict[str, pd.DataFrame]:
        """All output tables of a run, keyed by table name."""
        report = result.report
        reporter_cfg = self.config.reporter
        return {
            "pseudotime": report.long_table,
            "edges": report.edge_table(),
            "clusters": report.cluster_table(),
            "average_pseudotime": report.average_pseudotime(),
            "sample": report.sample(reporter_cfg.sample_fraction, reporter_cfg.seed),
        }

    def write(self, result: "TrajectoryResult") -> dict:
        """Write every artifact of ``result``.

        All payloads are computed before the first file is opened, so an
        invalid palette or sampling setting fails without touching disk.

        Returns
        -------
        dict
            ``lineages`` and ``colors`` JSON paths and ``tables``, a list of
            table file paths.
        """
        report = result.report
        lineages = report.lineages()
        colors = report.colors_for_clusters(self.config.reporter.palette)
        tables = self.collect_tables(result)

        tables_dir = Path(self.output_dirs["tables"])
        tables_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{self.run_name}_", dir=tables_dir))
        staged_dirs = {"tables": staging}
        previous = staging / ".previous"
        previous.mkdir()
        written = {}

        try:
            self._write_json(get_table_path(staged_dirs, self.run_name, "lineages", "json"), lineages)
            self._write_json(get_table_path(staged_dirs, self.run_name, "colors", "json"), colors)

            if self.table_format == "sqlite":
                self._write_sqlite(get_table_path(staged_dirs, self.run_name, "trajectory", "db"), tables)
            else:
                for name, df in tables.items():
                    path = get_table_path(staged_dirs, self.run_name, name, TABLE_EXTENSIONS[self.table_format])
                    self._write_table(path, df)

            for staged in sorted(p for p in staging.iterdir() if p.is_file()):
                final = tables_dir / staged.name
                if final.exists():
                    final.replace(previous / staged.name)
                staged.replace(final)
                written[staged.name] = final

        except Exception:
            logger.error("Writing outputs failed; removing partial files in %s", tables_dir)
            for path in written.values():
                path.unlink(missing_ok=True)
            for earlier in previous.iterdir():
                earlier.replace(tables_dir / earlier.name)
            raise

        finally:
            shutil.rmtree(staging, ignore_errors=True)

        paths = {
            "lineages": written[f"{self.run_name}_lineages.json"],
            "colors": written[f"{self.run_name}_colors.json"],
            "tables": [p for name, p in written.items() if not name.endswith(".json")],
        }
        logger.info("Wrote %d files to %s", len(written), tables_dir)
        return paths

    def _write_json(self, path: Path, payload) -> None:
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
        logger.debug("Wrote %s", path.name)

    def _write_sqlite(self, path: Path, tables: dict) -> None:
        with closing(sqlite3.connect(str(path))) as conn:
            for name, df in tables.items():
                df.to_sql(name, conn, if_exists="replace", index=False)
            conn.commit()
        logger.debug("Wrote %d tables to %s", len(tables), path.name)

    def _write_table(self, path: Path, df: pd.DataFrame) -> None:
        if self.table_format == "parquet":
            df.to_parquet(path, engine="pyarrow", index=False)
        else:
            df.to_csv(path, index=False)
        logger.debug("Wrote %s (%d rows)", path.name, len(df))
