"""Report stage contract.

Enforces the guarantee that the long pseudotime table has its required
columns and contains only assigned pairs.
"""

import pandas as pd

from lintra.contracts.base import require

REQUIRED_COLUMNS = ["cell_id", "lineage", "cluster", "pseudotime"]


def assert_report_output(df: pd.DataFrame, expected_rows: int = None) -> None:
    """Enforce report stage contract.

    Called after ``TrajectoryReporter.report``. Structural checks only.

    Parameters
    ----------
    df : pd.DataFrame
        Long pseudotime table of the report.

    expected_rows : int, optional
        Number of assigned (cell, lineage) pairs, when known.

    Raises
    ------
    ContractViolation
        If structural requirements are violated
    """
    require(
        isinstance(df, pd.DataFrame),
        f"Report contract violated: output is {type(df)}, expected DataFrame"
    )

    for col in REQUIRED_COLUMNS:
        require(
            col in df.columns,
            f"Report contract violated: missing required column '{col}'"
        )

    if len(df) > 0:
        require(
            bool(df["pseudotime"].notna().all()),
            "Report contract violated: long table contains missing pseudotime"
        )
        require(
            not df.duplicated(subset=["cell_id", "lineage"]).any(),
            "Report contract violated: duplicate (cell_id, lineage) rows"
        )

    if expected_rows is not None:
        require(
            len(df) == expected_rows,
            f"Report contract violated: got {len(df)} rows, expected {expected_rows}"
        )
