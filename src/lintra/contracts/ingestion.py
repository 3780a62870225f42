"""Ingestion stage contract.

Enforces the guarantee that the ingested cell table has the layout every
later stage indexes into.
"""

import numpy as np
import xarray as xr

from lintra.contracts.base import require


def assert_ingested(ds: xr.Dataset) -> None:
    """Enforce ingestion stage contract.

    Called immediately after ``ClusterAssignmentIngestor.ingest``.

    Parameters
    ----------
    ds : xr.Dataset
        Cell table from the ingestor.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        "embedding" in ds.data_vars,
        "Ingestion contract violated: missing 'embedding' variable"
    )
    require(
        "cluster" in ds.data_vars,
        "Ingestion contract violated: missing 'cluster' variable"
    )
    require(
        ds["embedding"].dims == ("cell", "component"),
        f"Ingestion contract violated: embedding dims are {ds['embedding'].dims}, "
        "expected ('cell', 'component')"
    )
    require(
        ds["embedding"].dtype == np.float64,
        f"Ingestion contract violated: embedding dtype is {ds['embedding'].dtype}, expected float64"
    )

    labels = ds.attrs.get("cluster_labels")
    require(
        labels is not None and len(labels) >= 2,
        f"Ingestion contract violated: need >= 2 cluster labels, got {labels}"
    )
    require(
        set(np.unique(ds["cluster"].values)) == set(labels),
        "Ingestion contract violated: cluster_labels attribute does not match cluster variable"
    )
