"""`Lintra` - LINeage TRAjectory reconstruction for clustered single-cell data.

Subpackages:
- trajectory: Ingestion, lineage tree, pseudotime, reporting
- pipeline: Processor, writer, orchestrator
- schemas: Layered configuration
- contracts: Stage invariants
"""

__version__ = "0.1.0"
