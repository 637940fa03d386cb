"""Pose estimation for a three-wheeled beacon-tracked mobile robot.

This package contains the components of the pose pipeline:
- filters: Per-channel FIR noise filters for raw ticks
- coords: Room calibration frame transforms
- sensors: Hardware boundary, wheel odometry and beacon estimators
- estimators: Linear Kalman filter used by the default fusion strategy
- fusion: Fusion engine combining odometry and beacon poses
- controller: Update cycle with bounded hardware-poll retries
"""

__version__ = "0.1.0"
