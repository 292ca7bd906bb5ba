"""
Progress estimation: throughput and ETA from executor progress reports.
"""

from .estimator import (
    ProgressEstimate,
    ProgressEstimator,
    ProgressUpdate,
    apply_estimate,
    estimate_progress,
    synthetic_update,
)

__all__ = [
    "ProgressUpdate",
    "ProgressEstimate",
    "ProgressEstimator",
    "estimate_progress",
    "apply_estimate",
    "synthetic_update",
]
