# src/lintra/trajectory/lineage_builder.py
"""Build the cluster-level minimum spanning tree and enumerate lineages.

Given the ingested cell table, this module computes one centroid per cluster,
connects the centroids with a minimum spanning tree (Euclidean weights), roots
the tree at a start cluster and walks it to list one lineage per leaf.

Key behaviour:
- Deterministic tree: Kruskal's algorithm over edges sorted by
  (weight, i, j), so equal weights prefer the lower-indexed cluster pair.
- Root: configured start cluster, or the largest cluster when none is given.
- End clusters: optionally forced to be leaves, attached to their nearest
  non-end cluster after the tree over the remaining clusters is built.
- Lineages share prefixes at branching clusters; children are visited in
  ascending cluster index.
"""

import logging
from collections import deque
from dataclasses import dataclass
from itertools import combinations
from typing import TYPE_CHECKING

import numpy as np
import xarray as xr
from scipy.spatial.distance import pdist, squareform

from lintra.errors import ConfigurationError, DisconnectedGraphError

if TYPE_CHECKING:
    from lintra.schemas import InternalConfig

__all__ = ['Lineage', 'LineageGraph', 'LineageBuilder']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Lineage:
    """Ordered path of clusters from the root to one leaf."""
    index: int
    nodes: tuple[int, ...]
    clusters: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def leaf(self) -> str:
        return self.clusters[-1]


@dataclass(frozen=True, eq=False)
class LineageGraph:
    """Rooted spanning tree over cluster centroids plus its lineages.

    Attributes
    ----------
    labels : tuple of str
        Cluster labels in canonical order; a cluster's index is its position.
    sizes : tuple of int
        Number of member cells per cluster.
    centroids : np.ndarray
        (n_clusters, n_components) read-only centroid matrix.
    components : tuple of str
        Embedding axis names, aligned with centroid columns.
    edges : tuple of (int, int, float)
        Undirected tree edges (i < j, weight), in insertion order.
    root : int
        Index of the root cluster.
    children : tuple of tuple of int
        Rooted adjacency; children in ascending index order.
    lineages : tuple of Lineage
        One lineage per leaf, in depth-first order.
    """
    labels: tuple[str, ...]
    sizes: tuple[int, ...]
    centroids: np.ndarray
    components: tuple[str, ...]
    edges: tuple[tuple[int, int, float], ...]
    root: int
    children: tuple[tuple[int, ...], ...]
    lineages: tuple[Lineage, ...]

    @property
    def n_clusters(self) -> int:
        return len(self.labels)

    @property
    def root_label(self) -> str:
        return self.labels[self.root]

    def leaves(self) -> list[int]:
        """Cluster indices without children in the rooted tree."""
        return [k for k, kids in enumerate(self.children) if not kids]

    def index_of(self, label: str) -> int:
        return self.labels.index(label)

    def cluster_lineages(self) -> dict[str, list[int]]:
        """Map each cluster label to the indices of lineages passing through it."""
        mapping = {label: [] for label in self.labels}
        for lineage in self.lineages:
            for label in lineage.clusters:
                mapping[label].append(lineage.index)
        return mapping


class LineageBuilder:
    """Compute centroids, the minimum spanning tree and the lineages.

    Configuration
    =============
    - `lineage.root_cluster` : str or None
        Start cluster. None selects the cluster with the most cells
        (ties go to the lowest cluster index).
    - `lineage.end_clusters` : list of str
        Clusters forced to be leaves (terminal states).

    Notes
    -----
    - Centroid = arithmetic mean of member embeddings
    - Distances are Euclidean in the full embedding (all components)
    - scipy's ``minimum_spanning_tree`` does not define an order among equal
      weights, so the tree is built with an explicit Kruskal pass instead

    Examples
    --------
    >>> builder = LineageBuilder(config)
    >>> graph = builder.build(cells)
    >>> [lin.clusters for lin in graph.lineages]
    [('0', '1', '3'), ('0', '2')]
    """

    def __init__(self, config: "InternalConfig"):
        """Initialize builder with validated configuration.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        """
        self.config = config
        self.root_cluster = config.lineage.root_cluster
        self.end_clusters = tuple(config.lineage.end_clusters)

    def build(self, cells: xr.Dataset) -> LineageGraph:
        """Build the rooted lineage graph for an ingested cell table.

        Parameters
        ----------
        cells : xr.Dataset
            Output of ``ClusterAssignmentIngestor``.

        Returns
        -------
        LineageGraph

        Raises
        ------
        ConfigurationError
            Unknown root/end cluster, root listed as an end cluster, or no
            non-end cluster left to build a tree over.
        DisconnectedGraphError
            Non-finite centroid distances, or the tree does not span.
        """
        labels = tuple(cells.attrs["cluster_labels"])
        centroids, sizes = self._compute_centroids(cells, labels)
        distances = self._centroid_distances(centroids, labels)

        ends = self._resolve_end_clusters(labels)
        root = self._select_root(labels, sizes, ends)

        edges = self._spanning_tree(distances, ends)
        children = self._orient(edges, root, len(labels))
        lineages = self._enumerate_lineages(children, root, labels)

        centroids.setflags(write=False)
        graph = LineageGraph(
            labels=labels,
            sizes=tuple(sizes),
            centroids=centroids,
            components=tuple(str(c) for c in cells["component"].values),
            edges=tuple(edges),
            root=root,
            children=tuple(tuple(kids) for kids in children),
            lineages=tuple(lineages),
        )

        logger.info("Lineage tree: %d clusters, root='%s', %d lineages",
                    graph.n_clusters, graph.root_label, len(graph.lineages))
        for lineage in graph.lineages:
            logger.debug("Lineage %d: %s", lineage.index, " -> ".join(lineage.clusters))
        return graph

    def _compute_centroids(self, cells: xr.Dataset, labels: tuple) -> tuple[np.ndarray, list[int]]:
        """Mean embedding and member count per cluster, in label order."""
        embedding = cells["embedding"].values
        cluster = cells["cluster"].values

        centroids = np.empty((len(labels), embedding.shape[1]), dtype=np.float64)
        sizes = []
        for k, label in enumerate(labels):
            members = cluster == label
            centroids[k] = embedding[members].mean(axis=0)
            sizes.append(int(members.sum()))

        return centroids, sizes

    def _centroid_distances(self, centroids: np.ndarray, labels: tuple) -> np.ndarray:
        """Pairwise Euclidean centroid distances; non-finite distances are fatal."""
        distances = squareform(pdist(centroids, metric="euclidean"))

        if not np.all(np.isfinite(distances)):
            bad = [labels[k] for k in range(len(labels)) if not np.all(np.isfinite(centroids[k]))]
            raise DisconnectedGraphError(
                "Cannot build spanning tree: non-finite centroid distances"
                + (f" (clusters with non-finite centroids: {bad})" if bad else "")
            )

        return distances

    def _resolve_end_clusters(self, labels: tuple) -> list[int]:
        """Validate end cluster labels and return their sorted indices."""
        unknown = [c for c in self.end_clusters if c not in labels]
        if unknown:
            raise ConfigurationError(f"End clusters not found: {unknown}; known clusters: {list(labels)}")

        ends = sorted({labels.index(c) for c in self.end_clusters})
        if len(ends) == len(labels):
            raise ConfigurationError("Every cluster is an end cluster; no start state is left")

        return ends

    def _select_root(self, labels: tuple, sizes: list[int], ends: list[int]) -> int:
        """Configured root, else the largest non-end cluster (lowest index on ties)."""
        if self.root_cluster is not None:
            if self.root_cluster not in labels:
                raise ConfigurationError(
                    f"Root cluster '{self.root_cluster}' not found; known clusters: {list(labels)}"
                )
            root = labels.index(self.root_cluster)
            if root in ends:
                raise ConfigurationError(f"Root cluster '{labels[root]}' cannot also be an end cluster")
            return root

        candidates = [k for k in range(len(labels)) if k not in ends]
        root = max(candidates, key=lambda k: (sizes[k], -k))
        logger.info("No root cluster configured, using largest cluster '%s' (%d cells)",
                    labels[root], sizes[root])
        return root

    def _spanning_tree(self, distances: np.ndarray, ends: list[int]) -> list[tuple[int, int, float]]:
        """Kruskal MST over non-end clusters, then attach each end cluster.

        Candidate edges are sorted by (weight, i, j) with i < j, which makes
        the lower-indexed pair win whenever weights tie.
        """
        n = distances.shape[0]
        core = [k for k in range(n) if k not in ends]

        parent = list(range(n))

        def find(k):
            while parent[k] != k:
                parent[k] = parent[parent[k]]
                k = parent[k]
            return k

        candidates = sorted((float(distances[i, j]), i, j) for i, j in combinations(core, 2))
        edges = []
        for weight, i, j in candidates:
            root_i, root_j = find(i), find(j)
            if root_i == root_j:
                continue
            parent[max(root_i, root_j)] = min(root_i, root_j)
            edges.append((i, j, weight))
            if len(edges) == len(core) - 1:
                break

        if len(edges) != len(core) - 1:
            raise DisconnectedGraphError(
                f"Spanning tree covers {len(edges) + 1} of {len(core)} clusters"
            )

        for end in ends:
            nearest = min(core, key=lambda k: (distances[end, k], k))
            edges.append((min(end, nearest), max(end, nearest), float(distances[end, nearest])))
            logger.debug("End cluster %d attached to %d", end, nearest)

        return edges

    def _orient(self, edges: list, root: int, n: int) -> list[list[int]]:
        """Breadth-first orientation of the tree away from the root."""
        adjacency = [[] for _ in range(n)]
        for i, j, _ in edges:
            adjacency[i].append(j)
            adjacency[j].append(i)

        children = [[] for _ in range(n)]
        visited = {root}
        queue = deque([root])
        while queue:
            node = queue.popleft()
            for neighbour in sorted(adjacency[node]):
                if neighbour not in visited:
                    visited.add(neighbour)
                    children[node].append(neighbour)
                    queue.append(neighbour)

        if len(visited) != n:
            raise DisconnectedGraphError(
                f"Spanning tree reaches {len(visited)} of {n} clusters from the root"
            )

        return children

    def _enumerate_lineages(self, children: list, root: int, labels: tuple) -> list[Lineage]:
        """One root-to-leaf path per leaf, depth-first."""
        paths = []
        stack = [(root, (root,))]
        while stack:
            node, path = stack.pop()
            if not children[node]:
                paths.append(path)
                continue
            # Reversed so the lowest-indexed child is walked first
            for child in reversed(children[node]):
                stack.append((child, path + (child,)))

        return [
            Lineage(index=i, nodes=path, clusters=tuple(labels[k] for k in path))
            for i, path in enumerate(paths)
        ]
