"""Pose fusion.

This package combines the beacon and wheel odometry estimates:
- engine: FusionEngine (sin(theta) trick, heading recovery, uncertainty setters)
- strategies: Injectable numeric update step (Kalman by default)
"""

from posefusion.fusion.engine import (
    FusionEngine,
    pose_to_fusion_vector,
    recover_heading,
)
from posefusion.fusion.strategies import (
    NUM_UNCERTAINTIES,
    TRACK_SIZE,
    KalmanTrackUpdate,
    TrackUpdate,
)

__all__ = [
    "FusionEngine",
    "pose_to_fusion_vector",
    "recover_heading",
    "TrackUpdate",
    "KalmanTrackUpdate",
    "TRACK_SIZE",
    "NUM_UNCERTAINTIES",
]
