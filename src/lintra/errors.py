"""User-facing error taxonomy for the trajectory pipeline.

These errors describe bad input or bad configuration. They are distinct from
``lintra.contracts.ContractViolation``, which signals a bug in a pipeline
stage. Every error is fatal to a run: no stage recovers from them and no
partial output is written.
"""

__all__ = [
    "TrajectoryError",
    "InvalidInputError",
    "DisconnectedGraphError",
    "ConfigurationError",
]


class TrajectoryError(Exception):
    """Base class for all trajectory pipeline errors."""
    pass


class InvalidInputError(TrajectoryError, ValueError):
    """Cell table is malformed: missing labels, fewer than 2 clusters, etc."""
    pass


class DisconnectedGraphError(TrajectoryError, RuntimeError):
    """No spanning tree over the cluster centroids could be built.

    Only reachable with degenerate distances (NaN or infinite centroid
    coordinates); a complete graph with finite weights always spans.
    """
    pass


class ConfigurationError(TrajectoryError, ValueError):
    """Run parameters are inconsistent with the data or out of range.

    Examples: a root cluster label that does not exist, a sampling fraction
    outside (0, 1], a missing random seed.
    """
    pass
