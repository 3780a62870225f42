"""Single-run pipeline orchestration.

Sets up logging, loads the cell table, runs the processor, writes outputs
and the resolved runtime configuration, and logs a run summary.
"""

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import pandas as pd

from lintra.errors import ConfigurationError
from lintra.pipeline.processor import TrajectoryProcessor
from lintra.pipeline.writer import TrajectoryWriter
from lintra.setup_directories import get_log_path
from lintra.trajectory.loader import CellTableLoader

if TYPE_CHECKING:
    from lintra.schemas import InternalConfig

__all__ = ['PipelineOrchestrator']

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Run one trajectory analysis from input table to persisted outputs.

    **Run sequence:**

    1. Configure the root logger (console + ``logs/pipeline_<run_name>.log``)
    2. Load the cell table from ``config.input_path`` (unless a DataFrame
       is passed to ``run``)
    3. Run ``TrajectoryProcessor`` (ingest, lineages, pseudotime, report)
    4. Write tables with ``TrajectoryWriter``
    5. Save ``runtime_config_<run_id>.json`` in the base directory

    A failure in steps 2-4 propagates to the caller after being logged.
    Outputs are written only after every stage succeeded, and the runtime
    config only after the outputs, so a failed run leaves no artifacts
    besides its log.

    Example usage::

        from lintra.pipeline.orchestrator import PipelineOrchestrator

        config = resolve_config(ParamConfig(), user_cfg, cli_cfg)
        output_dirs = setup_output_directories(config.output.base_dir)

        orch = PipelineOrchestrator(config, output_dirs)
        summary = orch.run()
    """

    def __init__(self, config: "InternalConfig", output_dirs: dict):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        output_dirs : dict
            Output directory paths from ``setup_output_directories()``
            ('base', 'tables', 'logs').
        """
        self.config = config
        self.output_dirs = output_dirs
        self.run_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:6]

        self.loader = CellTableLoader(config)
        self.processor = TrajectoryProcessor(config)
        self.writer = TrajectoryWriter(config, output_dirs)

        self._handlers = []
        self._start_time = None

    def _setup_logging(self):
        """Configure root logger with file and console handlers.

        Log level and paths derived from config.
        """
        log_level = getattr(logging, self.config.logging.level, logging.INFO)
        log_path = get_log_path(self.output_dirs, self.config.output.run_name)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        root = logging.getLogger()
        root.setLevel(log_level)
        self._teardown_logging()

        # File handler
        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        # Console handler
        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        self._handlers = [fh, ch]
        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)

    def _teardown_logging(self):
        """Detach and close the handlers added by ``_setup_logging``."""
        root = logging.getLogger()
        for handler in self._handlers:
            root.removeHandler(handler)
            handler.close()
        self._handlers = []

    def run(self, table: Optional[pd.DataFrame] = None) -> dict:
        """Run the pipeline once and return a summary.

        Parameters
        ----------
        table : pd.DataFrame, optional
            Cell table to process. When None, it is read from
            ``config.input_path``.

        Returns
        -------
        dict
            ``run_id``, ``n_cells``, ``n_clusters``, ``n_lineages``,
            ``root_cluster``, ``outputs`` (writer paths) and
            ``runtime_config`` (path).

        Raises
        ------
        ConfigurationError
            If no table is passed and no input path is configured.
        TrajectoryError, ContractViolation, OSError
            Propagated from loading, processing or writing.
        """
        self._setup_logging()
        self._start_time = time.time()

        try:
            logger.info("=" * 60)
            logger.info("Starting Trajectory Pipeline (run %s)", self.run_id)
            logger.info("=" * 60)

            if table is None:
                if self.config.input_path is None:
                    raise ConfigurationError("No input table configured (input_path)")
                table = self.loader.load(self.config.input_path)

            result = self.processor.run(table)
            outputs = self.writer.write(result)
            config_path = self._save_runtime_config()

            summary = {
                "run_id": self.run_id,
                "n_cells": int(result.cells.sizes["cell"]),
                "n_clusters": result.graph.n_clusters,
                "n_lineages": result.report.lineage_count(),
                "root_cluster": result.graph.root_label,
                "outputs": outputs,
                "runtime_config": config_path,
            }
            self._log_summary(summary)
            return summary

        except Exception:
            logger.exception("Pipeline run %s failed; no outputs written", self.run_id)
            raise

        finally:
            self._teardown_logging()

    def _save_runtime_config(self) -> Path:
        """Persist the resolved configuration next to the outputs."""
        path = Path(self.output_dirs["base"]) / f"runtime_config_{self.run_id}.json"
        with open(path, "w") as f:
            json.dump(self.config.model_dump(), f, indent=2)
        logger.info("Runtime config: %s", path)
        return path

    def _log_summary(self, summary: dict):
        elapsed = time.time() - self._start_time if self._start_time else 0
        logger.info("=" * 60)
        logger.info("Run %s complete in %.1f seconds", summary["run_id"], elapsed)
        logger.info("Cells: %d, clusters: %d, lineages: %d, root: '%s'",
                    summary["n_cells"], summary["n_clusters"],
                    summary["n_lineages"], summary["root_cluster"])
        logger.info("=" * 60)
