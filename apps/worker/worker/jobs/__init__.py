"""
Pitchside Worker Jobs
=====================

Individual job modules:
- ingest: Demo data loading
- aggregates: Standings and player stat rebuilds
"""

from worker.jobs.aggregates import RebuildSummary, rebuild_aggregates
from worker.jobs.ingest import load_demo_data, run_demo_ingest

__all__ = [
    "RebuildSummary",
    "load_demo_data",
    "rebuild_aggregates",
    "run_demo_ingest",
]
