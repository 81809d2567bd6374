"""Drift detection and trend analysis over persisted snapshots."""

from drift.detector import detect_drift, drift_score, dump_snapshot, load_snapshot
from drift.trends import analyze_trends

__all__ = [
    "analyze_trends",
    "detect_drift",
    "drift_score",
    "dump_snapshot",
    "load_snapshot",
]
