# src/lintra/trajectory/reporter.py
"""Reshape pseudotime into tables for downstream rendering.

The reporter is the last computational stage. It turns the (cell, lineage)
pseudotime matrix into a long table with one row per assigned pair and
answers the queries a plotting layer needs: lineage list, cluster colours,
a seeded subsample for scatter plots, and per-cell average pseudotime.

Absent pairs (cell's cluster off the lineage) never appear as rows and are
skipped, not zero-filled, when averaging.
"""

import logging
from numbers import Integral
from typing import Sequence, Union

import numpy as np
import pandas as pd
import xarray as xr

from lintra.errors import ConfigurationError
from lintra.trajectory.colors import resolve_palette
from lintra.trajectory.labels import sort_labels
from lintra.trajectory.lineage_builder import LineageGraph

__all__ = ['TrajectoryReport', 'TrajectoryReporter']

logger = logging.getLogger(__name__)

LONG_TABLE_COLUMNS = ["cell_id", "lineage", "cluster", "pseudotime"]
MAX_SEED = 2**32 - 1


class TrajectoryReport:
    """Read-only view over one run's lineage graph and pseudotime.

    Parameters
    ----------
    graph : LineageGraph
    pseudotime : xr.Dataset
        Output of ``PseudotimeProjector.project``.
    """

    def __init__(self, graph: LineageGraph, pseudotime: xr.Dataset):
        self._graph = graph
        self._pseudotime = pseudotime
        self._long = self._to_long(pseudotime)

    @property
    def graph(self) -> LineageGraph:
        return self._graph

    @property
    def pseudotime(self) -> xr.Dataset:
        return self._pseudotime

    @property
    def long_table(self) -> pd.DataFrame:
        """One row per assigned (cell, lineage) pair; a fresh copy per access.

        Columns: cell_id, lineage, cluster, pseudotime. Rows are grouped by
        lineage, cells in input order within each lineage.
        """
        return self._long.copy()

    def __len__(self) -> int:
        return len(self._long)

    def lineage_count(self) -> int:
        return len(self._graph.lineages)

    def lineages(self) -> list[list[str]]:
        """Cluster-label sequence of each lineage, root first."""
        return [list(lineage.clusters) for lineage in self._graph.lineages]

    def cluster_lineages(self) -> dict[str, list[int]]:
        return self._graph.cluster_lineages()

    def colors_for_clusters(self, palette: Union[str, Sequence[str]]) -> dict[str, str]:
        """Assign palette colours to clusters in canonical label order.

        The i-th label (canonical order) gets ``colors[i % len(colors)]``,
        so the mapping depends only on the label set and the palette.

        Parameters
        ----------
        palette : str or sequence of str
            matplotlib colormap name, or colours in any matplotlib format.

        Returns
        -------
        dict
            Label -> hex colour, ordered by label.

        Raises
        ------
        ConfigurationError
            If the palette is empty, unknown or holds non-colours.

        Examples
        --------
        >>> report.colors_for_clusters(["#1f77b4", "#ff7f0e", "#2ca02c"])
        {'0': '#1f77b4', '1': '#ff7f0e', '2': '#2ca02c'}
        """
        labels = sort_labels(self._graph.labels)
        colors = resolve_palette(palette, len(labels))

        if len(colors) < len(labels):
            logger.warning("Palette has %d colours for %d clusters; colours will repeat",
                           len(colors), len(labels))

        return {label: colors[k % len(colors)] for k, label in enumerate(labels)}

    def sample(self, fraction: float, seed: int) -> pd.DataFrame:
        """Reproducible random subsample of the long table for plotting.

        Parameters
        ----------
        fraction : float
            Share of rows to keep, in (0, 1]. 1.0 returns every row in
            shuffled order, which avoids one lineage overplotting another.
        seed : int
            Random seed in [0, 2**32 - 1]; required.

        Raises
        ------
        ConfigurationError
            If the fraction is out of range or the seed is not a usable
            numpy seed.
        """
        if seed is None or isinstance(seed, bool) or not isinstance(seed, Integral):
            raise ConfigurationError(f"Sampling needs an explicit integer seed, got {seed!r}")
        if not (0 <= seed <= MAX_SEED):
            raise ConfigurationError(f"Sampling seed must be in [0, {MAX_SEED}], got {seed}")
        if isinstance(fraction, bool) or not (0 < fraction <= 1):
            raise ConfigurationError(f"Sampling fraction must be in (0, 1], got {fraction!r}")

        return self._long.sample(frac=fraction, random_state=int(seed))

    def average_pseudotime(self) -> pd.DataFrame:
        """Mean pseudotime per cell over the lineages it is assigned to.

        Columns: cell_id, cluster, n_lineages, pseudotime.
        """
        values = self._pseudotime["pseudotime"].values
        assigned = self._pseudotime["on_lineage"].values

        counts = assigned.sum(axis=1)
        totals = np.where(assigned, values, 0.0).sum(axis=1)
        mean = np.divide(totals, counts, out=np.full(len(counts), np.nan), where=counts > 0)

        return pd.DataFrame({
            "cell_id": self._pseudotime["cell"].values,
            "cluster": self._pseudotime["cluster"].values,
            "n_lineages": counts.astype(np.int64),
            "pseudotime": mean,
        })

    def edge_table(self) -> pd.DataFrame:
        """Tree edges oriented away from the root: parent, child, weight."""
        weights = {(i, j): w for i, j, w in self._graph.edges}
        labels = self._graph.labels

        rows = []
        for parent, kids in enumerate(self._graph.children):
            for child in kids:
                key = (min(parent, child), max(parent, child))
                rows.append({"parent": labels[parent], "child": labels[child], "weight": weights[key]})

        return pd.DataFrame(rows, columns=["parent", "child", "weight"])

    def cluster_table(self) -> pd.DataFrame:
        """One row per cluster: label, size, root flag, lineage count, centroid."""
        graph = self._graph
        lineage_map = graph.cluster_lineages()

        df = pd.DataFrame({
            "cluster": list(graph.labels),
            "n_cells": list(graph.sizes),
            "is_root": [k == graph.root for k in range(graph.n_clusters)],
            "n_lineages": [len(lineage_map[label]) for label in graph.labels],
        })
        for col, component in enumerate(graph.components):
            df[f"centroid_{component}"] = graph.centroids[:, col]
        return df

    @staticmethod
    def _to_long(pseudotime: xr.Dataset) -> pd.DataFrame:
        values = pseudotime["pseudotime"].values
        assigned = pseudotime["on_lineage"].values
        cell_ids = pseudotime["cell"].values
        clusters = pseudotime["cluster"].values

        frames = []
        for j, lineage in enumerate(pseudotime["lineage"].values):
            mask = assigned[:, j]
            frames.append(pd.DataFrame({
                "cell_id": cell_ids[mask],
                "lineage": np.full(int(mask.sum()), int(lineage), dtype=np.int64),
                "cluster": clusters[mask],
                "pseudotime": values[mask, j],
            }))

        if not frames:
            return pd.DataFrame(columns=LONG_TABLE_COLUMNS)
        return pd.concat(frames, ignore_index=True)[LONG_TABLE_COLUMNS]


class TrajectoryReporter:
    """Build a ``TrajectoryReport`` from the graph and pseudotime stages."""

    def report(self, graph: LineageGraph, pseudotime: xr.Dataset) -> TrajectoryReport:
        report = TrajectoryReport(graph, pseudotime)
        logger.info("Report: %d lineages, %d pseudotime rows",
                    report.lineage_count(), len(report))
        return report
