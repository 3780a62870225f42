"""Lineage stage contract.

Enforces the guarantee that the lineage graph is a spanning tree rooted at
its start cluster, and that its lineages are exactly its root-to-leaf paths.
"""

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from lintra.contracts.base import require


def assert_lineage_graph(graph) -> None:
    """Enforce lineage stage contract.

    Called after ``LineageBuilder.build``.

    Parameters
    ----------
    graph : LineageGraph

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    n = graph.n_clusters
    require(
        len(graph.edges) == n - 1,
        f"Lineage contract violated: tree over {n} clusters has {len(graph.edges)} edges, "
        f"expected {n - 1}"
    )

    weights = np.array([w for _, _, w in graph.edges], dtype=np.float64)
    require(
        bool(np.all(np.isfinite(weights))) and bool(np.all(weights >= 0)),
        "Lineage contract violated: edge weights must be finite and non-negative"
    )

    if n > 1:
        rows = [i for i, _, _ in graph.edges]
        cols = [j for _, j, _ in graph.edges]
        adjacency = coo_matrix((np.ones(len(rows)), (rows, cols)), shape=(n, n))
        n_components, _ = connected_components(adjacency, directed=False)
        require(
            n_components == 1,
            f"Lineage contract violated: tree has {n_components} connected components"
        )

    leaves = graph.leaves()
    require(
        len(graph.lineages) == len(leaves),
        f"Lineage contract violated: {len(graph.lineages)} lineages for {len(leaves)} leaves"
    )
    require(
        sorted(lineage.nodes[-1] for lineage in graph.lineages) == sorted(leaves),
        "Lineage contract violated: lineages must end at distinct leaves"
    )

    covered = set()
    for lineage in graph.lineages:
        require(
            lineage.nodes[0] == graph.root,
            f"Lineage contract violated: lineage {lineage.index} does not start at the root"
        )
        covered.update(lineage.nodes)

    require(
        covered == set(range(n)),
        f"Lineage contract violated: clusters on no lineage: "
        f"{[graph.labels[k] for k in sorted(set(range(n)) - covered)]}"
    )
