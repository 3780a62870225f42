"""Trajectory inference stages.

- loader: Read the clustered cell table
- ingest: Validate and freeze cells, embeddings, cluster labels
- lineage_builder: Cluster MST and root-to-leaf lineages
- pseudotime: Per-lineage arc-length pseudotime
- reporter: Long tables, colours, seeded sampling
"""

from lintra.trajectory.loader import CellTableLoader
from lintra.trajectory.ingest import ClusterAssignmentIngestor
from lintra.trajectory.lineage_builder import Lineage, LineageGraph, LineageBuilder
from lintra.trajectory.pseudotime import PseudotimeProjector
from lintra.trajectory.reporter import TrajectoryReport, TrajectoryReporter

__all__ = [
    "CellTableLoader",
    "ClusterAssignmentIngestor",
    "Lineage",
    "LineageGraph",
    "LineageBuilder",
    "PseudotimeProjector",
    "TrajectoryReport",
    "TrajectoryReporter",
]
