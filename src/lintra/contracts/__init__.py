"""Pipeline contracts: fail-fast checks of stage outputs.

Contracts fail immediately and loudly when a pipeline stage does not
produce what it promised.

- Pydantic validates config correctness
- Contracts validate pipeline correctness
- Stages raise TrajectoryError subclasses for bad input
"""

from lintra.contracts.failure import ContractViolation, FailurePolicy
from lintra.contracts.base import require
from lintra.contracts.ingestion import assert_ingested
from lintra.contracts.lineage import assert_lineage_graph
from lintra.contracts.pseudotime import assert_pseudotime
from lintra.contracts.report import assert_report_output

__all__ = [
    "ContractViolation",
    "FailurePolicy",
    "require",
    "assert_ingested",
    "assert_lineage_graph",
    "assert_pseudotime",
    "assert_report_output",
]
