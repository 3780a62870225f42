# src/lintra/trajectory/ingest.py
"""Validate a clustered cell table and freeze it as an xarray.Dataset.

This is the first pipeline stage. It accepts the output of upstream QC,
dimensionality reduction and clustering (one row per cell with an embedding
and a cluster label) and produces the immutable cell table every later stage
reads.

Output layout:
- Dimensions: ``cell`` (coordinate = cell ids), ``component`` (embedding axes)
- ``embedding (cell, component)``: float64, read-only
- ``cluster (cell)``: str cluster labels
- ``attrs["cluster_labels"]``: distinct labels in canonical order
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np
import pandas as pd
import xarray as xr

from lintra.errors import InvalidInputError
from lintra.trajectory.labels import sort_labels

if TYPE_CHECKING:
    from lintra.schemas import InternalConfig

__all__ = ['ClusterAssignmentIngestor']

logger = logging.getLogger(__name__)

MIN_CLUSTERS = 2
MIN_COMPONENTS = 2


class ClusterAssignmentIngestor:
    """Turn a per-cell (embedding, cluster label) table into the cell table.

    Validation rules (all raise ``InvalidInputError``):

    - table must contain at least one row
    - configured cluster column and cell id column must exist
    - every cell must carry a non-blank cluster label
    - at least 2 embedding columns, all numeric
    - cell ids must be unique
    - at least 2 distinct clusters (a trajectory needs two states)

    Embedding values are NOT checked for finiteness here. A NaN coordinate
    makes its cluster centroid undefined, which the lineage builder reports
    as ``DisconnectedGraphError``.

    Examples
    --------
    >>> ingestor = ClusterAssignmentIngestor(config)
    >>> cells = ingestor.ingest(df)
    >>> cells["embedding"].shape
    (2700, 2)
    >>> cells.attrs["cluster_labels"]
    ('0', '1', '2', '3')
    """

    def __init__(self, config: "InternalConfig"):
        """Initialize ingestor with validated configuration.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration. Column names are read
            from ``config.reader``.
        """
        self.config = config
        self.cell_id_column = config.reader.cell_id_column
        self.cluster_column = config.reader.cluster_column
        self.embedding_columns = config.reader.embedding_columns
        self.embedding_prefix = config.reader.embedding_prefix

    def ingest(self, table: pd.DataFrame) -> xr.Dataset:
        """Validate a cell table and return the frozen cell Dataset.

        Parameters
        ----------
        table : pd.DataFrame
            One row per cell. Cell ids come from ``cell_id_column``, or from
            the index when that column is configured as None.

        Returns
        -------
        xr.Dataset
            Cell table with ``embedding`` and ``cluster`` variables.

        Raises
        ------
        InvalidInputError
            If any validation rule is violated.
        """
        if table is None or len(table) == 0:
            raise InvalidInputError("Cell table is empty")

        if self.cluster_column not in table.columns:
            raise InvalidInputError(
                f"Cluster column '{self.cluster_column}' not found in cell table "
                f"(columns: {list(table.columns)})"
            )

        if self.cell_id_column is None:
            cell_ids = table.index.astype(str).to_numpy()
        elif self.cell_id_column in table.columns:
            cell_ids = table[self.cell_id_column].astype(str).to_numpy()
        else:
            raise InvalidInputError(f"Cell id column '{self.cell_id_column}' not found in cell table")

        components = self._select_embedding_columns(table)
        try:
            embedding = table[components].to_numpy(dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Embedding columns must be numeric: {e}") from e

        labels = self._normalize_labels(table[self.cluster_column], cell_ids)
        return self._build(cell_ids, embedding, labels, components)

    def from_arrays(self, embedding, labels: Sequence, cell_ids: Optional[Sequence] = None) -> xr.Dataset:
        """Build the cell table from in-memory arrays.

        Convenience entry for callers that already hold an embedding matrix
        (e.g. ``adata.obsm["X_pca"][:, :2]``) and a label vector.

        Parameters
        ----------
        embedding : array-like, shape (n_cells, n_components)
        labels : sequence, length n_cells
        cell_ids : sequence, optional
            Defaults to "0", "1", ... in row order.
        """
        embedding = np.asarray(embedding, dtype=np.float64)
        if embedding.ndim != 2:
            raise InvalidInputError(f"Embedding must be 2D (cells x components), got {embedding.ndim}D")

        n_cells = embedding.shape[0]
        if n_cells == 0:
            raise InvalidInputError("Cell table is empty")
        if len(labels) != n_cells:
            raise InvalidInputError(f"Got {len(labels)} labels for {n_cells} cells")

        if cell_ids is None:
            cell_ids = np.arange(n_cells).astype(str)
        else:
            cell_ids = np.asarray([str(c) for c in cell_ids])
            if len(cell_ids) != n_cells:
                raise InvalidInputError(f"Got {len(cell_ids)} cell ids for {n_cells} cells")

        components = [f"{self.embedding_prefix}{i + 1}" for i in range(embedding.shape[1])]
        labels = self._normalize_labels(pd.Series(list(labels)), cell_ids)
        return self._build(cell_ids, embedding, labels, components)

    def _select_embedding_columns(self, table: pd.DataFrame) -> list[str]:
        """Explicit column list wins; otherwise every column with the prefix."""
        if self.embedding_columns:
            missing = [c for c in self.embedding_columns if c not in table.columns]
            if missing:
                raise InvalidInputError(f"Embedding columns not found in cell table: {missing}")
            return list(self.embedding_columns)

        return [str(c) for c in table.columns if str(c).startswith(self.embedding_prefix)]

    def _normalize_labels(self, raw: pd.Series, cell_ids: np.ndarray) -> np.ndarray:
        """Reject missing labels and convert the rest to str.

        Integral float labels (an int column that went through NaN handling
        upstream) are rendered without the trailing ".0".
        """
        missing = raw.isna().to_numpy() | raw.astype(str).str.strip().eq("").to_numpy()
        if missing.any():
            examples = list(cell_ids[missing][:5])
            raise InvalidInputError(
                f"{int(missing.sum())} cells lack a cluster label (e.g. {examples})"
            )

        if pd.api.types.is_float_dtype(raw) and np.all(np.mod(raw.to_numpy(), 1) == 0):
            raw = raw.astype(np.int64)

        return raw.astype(str).str.strip().to_numpy()

    def _build(self, cell_ids, embedding, labels, components) -> xr.Dataset:
        """Run shared checks and assemble the read-only Dataset."""
        n_components = embedding.shape[1]
        if n_components < MIN_COMPONENTS:
            raise InvalidInputError(
                f"Embedding needs at least {MIN_COMPONENTS} dimensions, got {n_components}"
            )

        unique_ids, counts = np.unique(cell_ids, return_counts=True)
        if len(unique_ids) != len(cell_ids):
            duplicated = list(unique_ids[counts > 1][:5])
            raise InvalidInputError(f"Duplicate cell ids in cell table (e.g. {duplicated})")

        cluster_labels = sort_labels(labels)
        if len(cluster_labels) < MIN_CLUSTERS:
            raise InvalidInputError(
                f"Trajectory inference needs at least {MIN_CLUSTERS} clusters, "
                f"got {len(cluster_labels)}: {cluster_labels}"
            )

        embedding = np.array(embedding, dtype=np.float64)
        embedding.setflags(write=False)
        labels = np.asarray(labels, dtype=str)
        labels.setflags(write=False)

        ds = xr.Dataset(
            {
                "embedding": (("cell", "component"), embedding),
                "cluster": (("cell",), labels),
            },
            coords={
                "cell": np.asarray(cell_ids, dtype=str),
                "component": list(components),
            },
            attrs={"cluster_labels": tuple(cluster_labels)},
        )

        logger.info("Ingested %d cells, %d clusters, %d embedding dims",
                    len(cell_ids), len(cluster_labels), n_components)
        logger.debug("Cluster labels: %s", cluster_labels)
        return ds
