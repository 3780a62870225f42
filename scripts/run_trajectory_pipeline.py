#!/usr/bin/env python3
"""``lintra`` Lineage Trajectory Pipeline Runner.

Usage:
    python scripts/run_trajectory_pipeline.py scripts/user_config.py
    python scripts/run_trajectory_pipeline.py scripts/user_config.py --root-cluster 2
    python scripts/run_trajectory_pipeline.py --input clusters.csv --base-dir out/

Note: User config in scripts/user_config.py, expert defaults in
lintra.schemas.param.ParamConfig. Same arguments as the ``lintra-run``
console script.
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from lintra.cli.run_trajectory import main


if __name__ == "__main__":
    sys.exit(main())
