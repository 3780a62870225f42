"""Tests for arc-length pseudotime projection."""

import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError

from lintra.errors import ConfigurationError
from lintra.trajectory.ingest import ClusterAssignmentIngestor
from lintra.trajectory.lineage_builder import Lineage, LineageBuilder
from lintra.trajectory.pseudotime import PseudotimeProjector

pytestmark = pytest.mark.unit


def project(config, table):
    cells = ClusterAssignmentIngestor(config).ingest(table)
    graph = LineageBuilder(config).build(cells)
    return cells, graph, PseudotimeProjector(config).project(cells, graph)


class TestTwoClusterExample:

    def test_a_before_b(self, make_config, two_cluster_table):
        """Root A: every A cell has smaller pseudotime than every B cell."""
        _, _, pt = project(make_config(ROOT_CLUSTER="A"), two_cluster_table)
        values = pt["pseudotime"].sel(lineage=0)

        a = values.sel(cell=["a1", "a2"]).values
        b = values.sel(cell=["b1", "b2"]).values
        assert a.max() < b.min()

    def test_segment_midpoints_without_spread(self, make_config, two_cluster_table):
        """A cells project to the same point, so they sit at their segment midpoint."""
        _, _, pt = project(make_config(ROOT_CLUSTER="A"), two_cluster_table)
        values = pt["pseudotime"].sel(lineage=0).values

        # A owns [0, 2.5], B owns [2.5, 5]
        np.testing.assert_allclose(values, [1.25, 1.25, 3.75, 3.75])

    def test_output_layout(self, internal_config, two_cluster_table):
        _, graph, pt = project(internal_config, two_cluster_table)

        assert pt["pseudotime"].dims == ("cell", "lineage")
        assert pt["on_lineage"].dtype == bool
        assert list(pt["cluster"].values) == ["A", "A", "B", "B"]
        assert pt.attrs["method"] == "arc_length"
        assert pt.attrs["root_cluster"] == graph.root_label


class TestBranchingProjection:

    def test_absent_pairs_are_nan(self, internal_config, branching_table):
        """Cells of cluster 3 have no pseudotime on lineage [0, 1, 2], and vice versa."""
        _, _, pt = project(internal_config, branching_table)
        cluster = pt["cluster"].values

        lineage0 = pt["pseudotime"].sel(lineage=0).values
        lineage1 = pt["pseudotime"].sel(lineage=1).values
        assert np.all(np.isnan(lineage0[cluster == "3"]))
        assert np.all(np.isnan(lineage1[cluster == "2"]))
        assert not pt["on_lineage"].sel(lineage=0).values[cluster == "3"].any()

        shared = np.isin(cluster, ["0", "1"])
        assert np.all(np.isfinite(lineage0[shared]))
        assert np.all(np.isfinite(lineage1[shared]))

    def test_shared_prefix_has_equal_values_until_tangent_differs(self, internal_config, branching_table):
        """Root cluster pseudotime depends only on the first edge, shared by both lineages."""
        _, _, pt = project(internal_config, branching_table)
        root = pt["cluster"].values == "0"
        np.testing.assert_allclose(
            pt["pseudotime"].sel(lineage=0).values[root],
            pt["pseudotime"].sel(lineage=1).values[root],
        )

    def test_strictly_increasing_between_clusters(self, internal_config, branching_table):
        _, graph, pt = project(internal_config, branching_table)
        cluster = pt["cluster"].values

        for lineage in graph.lineages:
            values = pt["pseudotime"].sel(lineage=lineage.index).values
            for earlier, later in zip(lineage.clusters, lineage.clusters[1:]):
                assert values[cluster == earlier].max() < values[cluster == later].min()

    def test_within_cluster_order_follows_tangent(self, internal_config, branching_table):
        """Root cluster cells are spread along PC_1, the direction of the first edge."""
        cells, _, pt = project(internal_config, branching_table)
        root = pt["cluster"].values == "0"

        x = cells["embedding"].sel(component="PC_1").values[root]
        values = pt["pseudotime"].sel(lineage=0).values[root]
        assert np.all(np.diff(values[np.argsort(x)]) >= 0)
        assert values.min() >= 0

    def test_deterministic(self, internal_config, branching_table):
        _, _, first = project(internal_config, branching_table)
        _, _, second = project(internal_config, branching_table)
        np.testing.assert_array_equal(first["pseudotime"].values, second["pseudotime"].values)

    def test_thread_pool_matches_serial(self, make_config, branching_table):
        _, _, serial = project(make_config(N_WORKERS=1), branching_table)
        _, _, pooled = project(make_config(N_WORKERS=4), branching_table)
        np.testing.assert_array_equal(serial["pseudotime"].values, pooled["pseudotime"].values)
        np.testing.assert_array_equal(serial["on_lineage"].values, pooled["on_lineage"].values)

    def test_small_margin_keeps_neighbours_apart(self, make_config):
        """Collinear clusters whose spread reaches the shared segment bound."""
        table = pd.DataFrame({
            "cell_id": ["a1", "a2", "b1", "b2"],
            "PC_1": [-1.0, 0.0, 5.0, 6.0],
            "PC_2": [0.0, 0.0, 0.0, 0.0],
            "cluster": ["A", "A", "B", "B"],
        })
        config = make_config(ROOT_CLUSTER="A", pseudotime={"segment_margin": 0.01})
        _, _, pt = project(config, table)

        values = pt["pseudotime"].sel(lineage=0).values
        assert values[:2].max() < values[2:].min()

    def test_zero_margin_rejected(self, param_config):
        from lintra.schemas import resolve_config

        with pytest.raises(ValidationError):
            resolve_config(param_config, {"pseudotime": {"segment_margin": 0}})


class TestEdgeCases:

    def test_single_cell_cluster_at_midpoint(self, make_config, cell_table_factory):
        df = cell_table_factory(
            centers={"0": (0, 0), "1": (4, 0), "2": (8, 0)},
            sizes={"0": 4, "1": 1, "2": 4},
        )
        _, _, pt = project(make_config(ROOT_CLUSTER=0), df)
        middle = pt["cluster"].values == "1"
        # cluster 1 owns [2, 6]
        assert pt["pseudotime"].sel(lineage=0).values[middle] == pytest.approx([4.0])

    def test_length_one_lineage_is_zero(self, internal_config):
        projector = PseudotimeProjector(internal_config)
        embedding = np.array([[0.0, 0.0], [1.0, 1.0], [5.0, 5.0]])
        members = {"A": np.array([0, 1]), "B": np.array([2])}
        centroids = np.array([[0.5, 0.5], [5.0, 5.0]])

        values = projector._project_lineage(Lineage(index=0, nodes=(0,), clusters=("A",)),
                                            embedding, members, centroids)
        np.testing.assert_array_equal(values[:2], [0.0, 0.0])
        assert np.isnan(values[2])

    def test_coincident_centroids_give_zero_tangent(self):
        points = np.array([[0.0, 0.0], [0.0, 0.0]])
        tangent = PseudotimeProjector._local_tangent(0, points)
        np.testing.assert_array_equal(tangent, [0.0, 0.0])

    def test_unknown_method(self, internal_config, two_cluster_table):
        cells = ClusterAssignmentIngestor(internal_config).ingest(two_cluster_table)
        graph = LineageBuilder(internal_config).build(cells)
        projector = PseudotimeProjector(internal_config)
        projector.method = "principal_curve"
        with pytest.raises(ConfigurationError, match="Unknown pseudotime method"):
            projector.project(cells, graph)
