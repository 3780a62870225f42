"""Pipeline modules.

- orchestrator: Single-run controller (logging, load, process, write)
- processor: Stage sequencing with contract checks
- writer: Output tables and JSON artifacts
"""

from lintra.pipeline.orchestrator import PipelineOrchestrator
from lintra.pipeline.processor import TrajectoryProcessor, TrajectoryResult
from lintra.pipeline.writer import TrajectoryWriter

__all__ = [
    "PipelineOrchestrator",
    "TrajectoryProcessor",
    "TrajectoryResult",
    "TrajectoryWriter",
]
