"""Tests for ClusterAssignmentIngestor validation and output layout."""

import numpy as np
import pandas as pd
import pytest

from lintra.errors import InvalidInputError
from lintra.trajectory.ingest import ClusterAssignmentIngestor

pytestmark = pytest.mark.unit


class TestIngestLayout:
    """Ingested cell table structure."""

    def test_two_cluster_example(self, internal_config, two_cluster_table):
        """Dataset has (cell, component) embedding and per-cell cluster labels."""
        cells = ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table)

        assert cells["embedding"].dims == ("cell", "component")
        assert cells["embedding"].shape == (4, 2)
        assert list(cells["cell"].values) == ["a1", "a2", "b1", "b2"]
        assert list(cells["component"].values) == ["PC_1", "PC_2"]
        assert list(cells["cluster"].values) == ["A", "A", "B", "B"]
        assert cells.attrs["cluster_labels"] == ("A", "B")

    def test_embedding_is_read_only(self, internal_config, two_cluster_table):
        cells = ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table)
        with pytest.raises(ValueError):
            cells["embedding"].values[0, 0] = 99.0

    def test_input_table_not_modified(self, internal_config, two_cluster_table):
        before = two_cluster_table.copy()
        ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table)
        pd.testing.assert_frame_equal(two_cluster_table, before)

    def test_integer_labels_become_strings(self, internal_config, two_cluster_table):
        """Labels 0 and "0" name the same cluster."""
        df = two_cluster_table.assign(cluster=[0, 0, 10, 10])
        cells = ClusterAssignmentIngestor(internal_config).ingest(df)
        assert cells.attrs["cluster_labels"] == ("0", "10")

    def test_integral_float_labels_drop_decimal(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(cluster=[1.0, 1.0, 2.0, 2.0])
        cells = ClusterAssignmentIngestor(internal_config).ingest(df)
        assert cells.attrs["cluster_labels"] == ("1", "2")

    def test_canonical_label_order(self, internal_config, cell_table_factory):
        """Numeric labels sort numerically and before other labels."""
        df = cell_table_factory(
            centers={"10": (0, 0), "2": (1, 0), "b": (2, 0), "a": (3, 0)},
            sizes={"10": 2, "2": 2, "b": 2, "a": 2},
        )
        cells = ClusterAssignmentIngestor(internal_config).ingest(df)
        assert cells.attrs["cluster_labels"] == ("2", "10", "a", "b")

    def test_higher_dimensional_embedding(self, internal_config):
        df = pd.DataFrame({
            "cell_id": ["c1", "c2", "c3"],
            "PC_1": [0.0, 1.0, 2.0],
            "PC_2": [0.0, 1.0, 2.0],
            "PC_3": [0.0, 1.0, 2.0],
            "cluster": ["x", "y", "y"],
        })
        cells = ClusterAssignmentIngestor(internal_config).ingest(df)
        assert cells.sizes["component"] == 3

    def test_explicit_embedding_columns(self, make_config):
        config = make_config(EMBEDDING_COLUMNS=["UMAP_1", "UMAP_2"])
        df = pd.DataFrame({
            "cell_id": ["c1", "c2"],
            "UMAP_1": [0.0, 1.0],
            "UMAP_2": [0.0, 1.0],
            "PC_1": [5.0, 5.0],
            "cluster": ["x", "y"],
        })
        cells = ClusterAssignmentIngestor(config).ingest(df)
        assert list(cells["component"].values) == ["UMAP_1", "UMAP_2"]

    def test_cell_ids_from_index(self, two_cluster_table):
        from lintra.schemas import ParamConfig, resolve_config
        config = resolve_config(ParamConfig(), {"reader": {"cell_id_column": None}})
        df = two_cluster_table.set_index("cell_id")
        cells = ClusterAssignmentIngestor(config).ingest(df)
        assert list(cells["cell"].values) == ["a1", "a2", "b1", "b2"]


class TestIngestValidation:
    """Every malformed table raises InvalidInputError."""

    def test_single_cluster_rejected(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(cluster="A")
        with pytest.raises(InvalidInputError, match="at least 2 clusters"):
            ClusterAssignmentIngestor(internal_config).ingest(df)

    def test_empty_table_rejected(self, internal_config, two_cluster_table):
        with pytest.raises(InvalidInputError, match="empty"):
            ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table.iloc[0:0])

    def test_missing_label_rejected(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(cluster=["A", None, "B", "B"])
        with pytest.raises(InvalidInputError, match="lack a cluster label"):
            ClusterAssignmentIngestor(internal_config).ingest(df)

    def test_nan_label_rejected(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(cluster=[1.0, np.nan, 2.0, 2.0])
        with pytest.raises(InvalidInputError, match="lack a cluster label"):
            ClusterAssignmentIngestor(internal_config).ingest(df)

    def test_blank_label_rejected(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(cluster=["A", "  ", "B", "B"])
        with pytest.raises(InvalidInputError, match="lack a cluster label"):
            ClusterAssignmentIngestor(internal_config).ingest(df)

    def test_missing_cluster_column(self, internal_config, two_cluster_table):
        with pytest.raises(InvalidInputError, match="Cluster column 'cluster'"):
            ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table.drop(columns="cluster"))

    def test_missing_cell_id_column(self, internal_config, two_cluster_table):
        with pytest.raises(InvalidInputError, match="Cell id column"):
            ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table.drop(columns="cell_id"))

    def test_one_dimensional_embedding_rejected(self, internal_config, two_cluster_table):
        with pytest.raises(InvalidInputError, match="at least 2 dimensions"):
            ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table.drop(columns="PC_2"))

    def test_non_numeric_embedding_rejected(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(PC_2=["x", "y", "z", "w"])
        with pytest.raises(InvalidInputError, match="numeric"):
            ClusterAssignmentIngestor(internal_config).ingest(df)

    def test_duplicate_cell_ids_rejected(self, internal_config, two_cluster_table):
        df = two_cluster_table.assign(cell_id=["a1", "a1", "b1", "b2"])
        with pytest.raises(InvalidInputError, match="Duplicate cell ids"):
            ClusterAssignmentIngestor(internal_config).ingest(df)

    def test_missing_explicit_embedding_column(self, make_config, two_cluster_table):
        config = make_config(EMBEDDING_COLUMNS=["PC_1", "PC_9"])
        with pytest.raises(InvalidInputError, match="PC_9"):
            ClusterAssignmentIngestor(config).ingest(two_cluster_table)


class TestFromArrays:
    """In-memory entry point."""

    def test_from_arrays_defaults(self, internal_config):
        cells = ClusterAssignmentIngestor(internal_config).from_arrays(
            [[0, 0], [0, 1], [5, 0], [5, 1]], ["A", "A", "B", "B"]
        )
        assert list(cells["cell"].values) == ["0", "1", "2", "3"]
        assert list(cells["component"].values) == ["PC_1", "PC_2"]

    def test_from_arrays_length_mismatch(self, internal_config):
        with pytest.raises(InvalidInputError, match="3 labels for 4 cells"):
            ClusterAssignmentIngestor(internal_config).from_arrays(
                np.zeros((4, 2)), ["A", "A", "B"]
            )

    def test_from_arrays_rejects_1d(self, internal_config):
        with pytest.raises(InvalidInputError, match="2D"):
            ClusterAssignmentIngestor(internal_config).from_arrays(np.zeros(4), ["A", "A", "B", "B"])
