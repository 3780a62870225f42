"""Pseudotime stage contract.

Enforces the guarantee that a pseudotime value exists exactly for the
(cell, lineage) pairs whose cluster lies on the lineage.
"""

import numpy as np
import xarray as xr

from lintra.contracts.base import require


def assert_pseudotime(ds: xr.Dataset, graph) -> None:
    """Enforce pseudotime stage contract.

    Called after ``PseudotimeProjector.project``.

    Parameters
    ----------
    ds : xr.Dataset
        Pseudotime Dataset from the projector.

    graph : LineageGraph
        Graph the pseudotime was projected on.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    for var in ("pseudotime", "on_lineage"):
        require(
            var in ds.data_vars,
            f"Pseudotime contract violated: missing '{var}' variable"
        )

    require(
        ds.sizes.get("lineage") == len(graph.lineages),
        f"Pseudotime contract violated: {ds.sizes.get('lineage')} lineage columns "
        f"for {len(graph.lineages)} lineages"
    )

    values = ds["pseudotime"].values
    assigned = ds["on_lineage"].values
    clusters = ds["cluster"].values

    expected = np.column_stack([np.isin(clusters, lineage.clusters) for lineage in graph.lineages])
    require(
        np.array_equal(assigned, expected),
        "Pseudotime contract violated: on_lineage does not match lineage membership"
    )

    on_path = values[assigned]
    require(
        bool(np.all(np.isfinite(on_path))) and bool(np.all(on_path >= 0)),
        "Pseudotime contract violated: assigned pseudotime must be finite and >= 0"
    )
    require(
        bool(np.all(np.isnan(values[~assigned]))),
        "Pseudotime contract violated: unassigned pairs must be NaN"
    )
