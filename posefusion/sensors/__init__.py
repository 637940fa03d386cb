"""
Sensor estimators for the pose pipeline.

Modules:
    interface: Hardware boundary (RobotInterface, Wheel)
    wheel_odometry: Incremental pose from three wheel encoders
    beacon: Absolute pose from the north-star beacon

Both estimators expose the same contract: ``update()`` reads the latest
hardware snapshot, filters each channel and writes a global-frame Pose.
The odometry estimator accumulates; the beacon estimator overwrites.
"""

from posefusion.sensors.interface import RobotInterface, Wheel
from posefusion.sensors.wheel_odometry import OdometryEstimator, make_filter
from posefusion.sensors.beacon import AbsolutePositionEstimator

__all__ = [
    "RobotInterface",
    "Wheel",
    "OdometryEstimator",
    "AbsolutePositionEstimator",
    "make_filter",
]
