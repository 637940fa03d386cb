"""
Absolute pose from the north-star beacon.

Each cycle the raw beacon x, y and theta are passed through their own
SignalFilter and converted into the global frame with the calibration entry
of the configured room (see posefusion.coords.room_frame for the composition
order). The result overwrites the estimator's pose; nothing is accumulated.
"""

import logging
import math
from typing import Optional, Tuple

from posefusion.config import CalibrationTable, RoomCalibration
from posefusion.coords.room_frame import room_to_global
from posefusion.sensors.interface import RobotInterface
from posefusion.sensors.wheel_odometry import FilterSource, make_filter
from posefusion.types import Pose

logger = logging.getLogger(__name__)


class AbsolutePositionEstimator:
    """
    Beacon-based absolute pose estimate.

    Attributes:
        pose: Latest transformed beacon pose (owned by the caller).
        calibration: Immutable per-room calibration table.
        room: Room id currently used for the transform.
    """

    def __init__(
        self,
        robot: RobotInterface,
        calibration: CalibrationTable,
        room: int,
        pose: Optional[Pose] = None,
        x_filter: FilterSource = "ns_x",
        y_filter: FilterSource = "ns_y",
        theta_filter: FilterSource = "ns_theta",
    ):
        """
        Initialize the estimator.

        Args:
            robot: Hardware collaborator providing beacon readings.
            calibration: Calibration table for all rooms.
            room: Room id the robot starts in.
            pose: Pose to overwrite each cycle; a new zero pose if omitted.
            x_filter: Coefficient resource (or coefficients) for beacon x.
            y_filter: Coefficient resource (or coefficients) for beacon y.
            theta_filter: Coefficient resource (or coefficients) for beacon theta.

        Raises:
            ValueError: If the room id is unknown or coefficients are malformed.
            FileNotFoundError: If a coefficient resource is missing.
        """
        calibration.validate_room(room)
        self.robot = robot
        self.calibration = calibration
        self.room = room
        self.pose = pose if pose is not None else Pose()
        self.x_filter = make_filter(x_filter)
        self.y_filter = make_filter(y_filter)
        self.theta_filter = make_filter(theta_filter)

    @property
    def room_calibration(self) -> RoomCalibration:
        return self.calibration[self.room]

    def set_room(self, room: int) -> None:
        """Switch the calibration entry used for subsequent cycles."""
        self.calibration.validate_room(room)
        if room != self.room:
            logger.info("Beacon room changed %d -> %d", self.room, room)
        self.room = room

    def read_raw(self) -> Tuple[float, float, float]:
        """
        Read the raw beacon channels without touching the filters.

        Returns:
            Raw (x, y, theta) in beacon units.

        Raises:
            ValueError: If any reading is non-finite.
        """
        reading = (
            float(self.robot.beacon_x()),
            float(self.robot.beacon_y()),
            float(self.robot.beacon_theta()),
        )
        if not all(math.isfinite(v) for v in reading):
            raise ValueError(f"Non-finite beacon reading {reading}")
        return reading

    def read_filtered(
        self, raw: Optional[Tuple[float, float, float]] = None
    ) -> Tuple[float, float, float]:
        """
        Filter the raw beacon channels.

        Args:
            raw: Reading already taken with read_raw(); read from the robot
                if None.

        Returns:
            Filtered raw (x, y, theta) in beacon units.
        """
        if raw is None:
            raw = self.read_raw()
        x = self.x_filter.filter(raw[0])
        y = self.y_filter.filter(raw[1])
        theta = self.theta_filter.filter(raw[2])
        return x, y, theta

    def update(self, raw: Optional[Tuple[float, float, float]] = None) -> Pose:
        """
        Run one beacon cycle and overwrite the pose with the global reading.

        Args:
            raw: Pre-read reading (see read_raw); read from the robot if None.

        Returns:
            The updated pose.
        """
        raw_x, raw_y, raw_theta = self.read_filtered(raw)
        x, y, theta = room_to_global(raw_x, raw_y, raw_theta, self.room_calibration)
        self.pose.set(x, y, theta)

        logger.debug(
            "beacon raw (%.1f, %.1f, %.3f) room %d -> %r",
            raw_x, raw_y, raw_theta, self.room, self.pose,
        )
        return self.pose

    def reset(self) -> None:
        """Clear the filter history."""
        self.x_filter.reset()
        self.y_filter.reset()
        self.theta_filter.reset()
