"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from lintra.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. No recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.

    message : str
        Error message explaining the contract violation.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require("embedding" in ds.data_vars, "Ingestion contract: missing 'embedding'")
    >>> require(len(graph.edges) == n - 1, "Lineage contract: tree edge count")
    """
    if not condition:
        raise ContractViolation(message)
