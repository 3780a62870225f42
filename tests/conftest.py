"""Root-level pytest fixtures for the lintra test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture, and small synthetic cell tables with known geometry.
All tests must use these fixtures instead of creating raw dict configs.
"""

import numpy as np
import pandas as pd
import pytest

from lintra.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults.

    Use this as the base for all test configs. Override specific values
    using make_config or by creating custom UserConfig instances.
    """
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides).

    Use this when tests don't care about specific config values and just
    need a valid InternalConfig to pass to constructors.

    Examples
    --------
    >>> def test_builder_init(internal_config):
    ...     builder = LineageBuilder(internal_config)
    ...     assert builder.root_cluster is None
    """
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_custom_root(make_config):
    ...     config = make_config(ROOT_CLUSTER=2)
    ...     assert config.lineage.root_cluster == "2"
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        else:
            return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Cell Table Fixtures
# =============================================================================

def build_cell_table(centers: dict, sizes: dict, spread: float = 0.5) -> pd.DataFrame:
    """Cells spread symmetrically around exact cluster centres.

    Offsets along PC_1 are evenly spaced in [-spread, spread] and offsets
    along PC_2 alternate +-spread/4, so every cluster centroid equals its
    centre (sizes must be even for the PC_2 offsets to cancel).
    """
    rows = []
    for label, (x, y) in centers.items():
        n = sizes[label]
        dx = np.linspace(-spread, spread, n) if n > 1 else np.zeros(1)
        dy = np.where(np.arange(n) % 2 == 0, spread / 4, -spread / 4) if n > 1 else np.zeros(1)
        for k in range(n):
            rows.append({"PC_1": x + dx[k], "PC_2": y + dy[k], "cluster": label})

    df = pd.DataFrame(rows)
    df.insert(0, "cell_id", [f"cell_{i:03d}" for i in range(len(df))])
    return df


@pytest.fixture
def cell_table_factory():
    """Expose ``build_cell_table`` to tests."""
    return build_cell_table


@pytest.fixture
def two_cluster_table():
    """Two clusters A = {(0,0), (0,1)} and B = {(5,0), (5,1)}."""
    return pd.DataFrame({
        "cell_id": ["a1", "a2", "b1", "b2"],
        "PC_1": [0.0, 0.0, 5.0, 5.0],
        "PC_2": [0.0, 1.0, 0.0, 1.0],
        "cluster": ["A", "A", "B", "B"],
    })


@pytest.fixture
def branching_table():
    """Root "0" at the origin, "1" to its right, then a fork into "2" / "3".

    Centroid distances: 0-1 = 4, 1-2 = 1-3 = sqrt(32), 2-3 = 8,
    so the tree is 0-1, 1-2, 1-3 with two lineages [0, 1, 2] and [0, 1, 3].
    Cluster "0" is the largest and the default root.
    """
    return build_cell_table(
        centers={"0": (0.0, 0.0), "1": (4.0, 0.0), "2": (8.0, 4.0), "3": (8.0, -4.0)},
        sizes={"0": 30, "1": 20, "2": 20, "3": 20},
    )


@pytest.fixture
def output_dirs(tmp_path):
    """Standard lintra output directory structure under tmp_path."""
    from lintra.setup_directories import setup_output_directories
    return setup_output_directories(tmp_path / "out")
