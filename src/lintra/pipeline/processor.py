"""Trajectory processing pipeline.

Runs a clustered cell table through ingestion, lineage construction,
pseudotime projection and reporting, checking each stage's contract
before the next stage starts.
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pandas as pd
import xarray as xr

from lintra.errors import TrajectoryError
from lintra.trajectory.ingest import ClusterAssignmentIngestor
from lintra.trajectory.lineage_builder import LineageBuilder, LineageGraph
from lintra.trajectory.pseudotime import PseudotimeProjector
from lintra.trajectory.reporter import TrajectoryReport, TrajectoryReporter
from lintra.contracts import (
    ContractViolation,
    assert_ingested,
    assert_lineage_graph,
    assert_pseudotime,
    assert_report_output,
)

if TYPE_CHECKING:
    from lintra.schemas import InternalConfig

__all__ = ['TrajectoryProcessor', 'TrajectoryResult']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrajectoryResult:
    """Outputs of every stage of one run."""
    cells: xr.Dataset
    graph: LineageGraph
    pseudotime: xr.Dataset
    report: TrajectoryReport


class TrajectoryProcessor:
    """Run the four trajectory stages in order.

    **Processing Pipeline:**

    1. **Ingest**: validate the cell table and freeze it as an
       ``xarray.Dataset`` (cell x component embedding, cluster labels).

    2. **Lineages**: cluster centroids, minimum spanning tree, root
       selection, one lineage per leaf.

    3. **Pseudotime**: arc-length projection of every cell onto each
       lineage through its cluster.

    4. **Report**: long table and summary queries for rendering.

    Each stage output is checked by its contract. A contract violation is a
    bug in a stage, logged as CRITICAL and re-raised. Bad input or
    configuration raises a ``TrajectoryError`` subclass, logged and
    re-raised. Nothing is written here; persistence is the writer's job and
    only happens after ``run`` returns.

    Examples
    --------
    >>> processor = TrajectoryProcessor(config)
    >>> result = processor.run(df)
    >>> result.report.lineage_count()
    2
    """

    def __init__(self, config: "InternalConfig"):
        """Initialize processor and its stages.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        """
        self.config = config
        self.ingestor = ClusterAssignmentIngestor(config)
        self.builder = LineageBuilder(config)
        self.projector = PseudotimeProjector(config)
        self.reporter = TrajectoryReporter()

    def run(self, table: pd.DataFrame) -> TrajectoryResult:
        """Process one cell table: ingest -> lineages -> pseudotime -> report.

        Raises
        ------
        TrajectoryError
            Invalid input table, disconnected tree or bad run parameters.
        ContractViolation
            A stage broke its promised output invariants.
        """
        start = time.time()
        try:
            # Step 1: Ingest
            cells = self.ingestor.ingest(table)
            assert_ingested(cells)

            # Step 2: Lineages
            graph = self.builder.build(cells)
            assert_lineage_graph(graph)

            # Step 3: Pseudotime
            pseudotime = self.projector.project(cells, graph)
            assert_pseudotime(pseudotime, graph)

            # Step 4: Report
            report = self.reporter.report(graph, pseudotime)
            assert_report_output(report.long_table, int(pseudotime["on_lineage"].sum()))

        except ContractViolation as e:
            logger.critical("CRITICAL: Pipeline contract violated: %s", e)
            logger.critical("This indicates a bug in pipeline logic. Stopping pipeline.")
            raise

        except TrajectoryError as e:
            logger.error("Trajectory run failed (%s): %s", type(e).__name__, e)
            raise

        logger.info("Processed %d cells into %d lineages in %.2f s",
                    cells.sizes["cell"], report.lineage_count(), time.time() - start)
        return TrajectoryResult(cells=cells, graph=graph, pseudotime=pseudotime, report=report)
