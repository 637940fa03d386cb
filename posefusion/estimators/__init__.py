"""
State estimation algorithms used by pose fusion.

Available estimators:
    - Kalman Filter (KF)
"""

from posefusion.estimators.base import StateEstimator
from posefusion.estimators.kalman_filter import KalmanFilter

__all__ = [
    "StateEstimator",
    "KalmanFilter",
]
