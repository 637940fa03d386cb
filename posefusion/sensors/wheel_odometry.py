"""
Wheel-encoder dead reckoning for a three-wheeled omni robot.

Wheel layout (robot frame, x forward, y lateral):
    - left wheel at 150°
    - right wheel at 30°
    - rear wheel at 0°, its rolling axis aligned with robot x

Per-cycle pipeline:
    1. Raw delta ticks per wheel -> per-wheel SignalFilter
    2. Robot-frame translation (ticks):
           dY = (left·sin150° + right·sin30°) / 2
           dX = (left·cos150° + right·cos30° + rear) / 3
       The rear wheel contributes no lateral signal, so dY averages only
       left and right.
    3. Rotation from the rear wheel alone:
           dθ = -ticks_to_cm(rear) / (π · robot_diameter)
    4. Robot frame -> global frame with the current heading θ, ticks -> cm:
           gx = dX cosθ - dY sinθ
           gy = dX sinθ + dY cosθ
       then accumulated into the estimator's pose via Pose.add.
"""

import logging
import math
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from posefusion.config import RobotGeometry
from posefusion.filters.fir import SignalFilter
from posefusion.sensors.interface import RobotInterface, Wheel
from posefusion.types import Pose

logger = logging.getLogger(__name__)

FilterSource = Union[str, Path, Sequence[float]]


def make_filter(source: FilterSource) -> SignalFilter:
    """Build a fresh SignalFilter from a resource name/path or explicit coefficients."""
    if isinstance(source, (str, Path)):
        return SignalFilter.from_resource(source)
    return SignalFilter(source)


class OdometryEstimator:
    """
    Incremental pose estimate from wheel encoder deltas.

    Attributes:
        pose: Pose accumulated by this estimator (owned by the caller).
        geometry: Wheel layout and tick scaling.
        total_rotation: Signed, unwrapped heading change since construction
            or the last reset (radians).
    """

    def __init__(
        self,
        robot: RobotInterface,
        geometry: Optional[RobotGeometry] = None,
        pose: Optional[Pose] = None,
        filter_source: FilterSource = "we",
    ):
        """
        Initialize the estimator.

        Args:
            robot: Hardware collaborator providing wheel deltas.
            geometry: Wheel geometry; defaults to RobotGeometry().
            pose: Pose to accumulate into; a new zero pose if omitted.
            filter_source: Coefficient resource (or coefficients) used for
                each wheel. Every wheel gets its own filter instance.

        Raises:
            FileNotFoundError: If the coefficient resource is missing.
            ValueError: If the coefficients are malformed.
        """
        self.robot = robot
        self.geometry = geometry if geometry is not None else RobotGeometry()
        self.pose = pose if pose is not None else Pose()
        self.filters = {wheel: make_filter(filter_source) for wheel in Wheel}
        self.total_rotation = 0.0

        left = math.radians(self.geometry.left_wheel_angle)
        right = math.radians(self.geometry.right_wheel_angle)
        self._left_cos, self._left_sin = math.cos(left), math.sin(left)
        self._right_cos, self._right_sin = math.cos(right), math.sin(right)

    def read_raw_ticks(self) -> Tuple[float, float, float]:
        """
        Read the latest raw wheel deltas without touching the filters.

        Returns:
            Raw (left, right, rear) delta ticks.

        Raises:
            ValueError: If any reading is non-finite.
        """
        ticks = tuple(
            float(self.robot.wheel_delta(wheel))
            for wheel in (Wheel.LEFT, Wheel.RIGHT, Wheel.REAR)
        )
        if not all(math.isfinite(t) for t in ticks):
            raise ValueError(f"Non-finite wheel delta reading {ticks}")
        return ticks

    def read_filtered_ticks(
        self, raw: Optional[Tuple[float, float, float]] = None
    ) -> Tuple[float, float, float]:
        """
        Filter the latest wheel deltas.

        Must be called once per successful poll: each call advances the
        filter windows.

        Args:
            raw: Raw (left, right, rear) ticks already read with
                read_raw_ticks(); read from the robot if None.

        Returns:
            Filtered (left, right, rear) delta ticks.
        """
        if raw is None:
            raw = self.read_raw_ticks()
        return tuple(
            self.filters[wheel].filter(sample)
            for wheel, sample in zip((Wheel.LEFT, Wheel.RIGHT, Wheel.REAR), raw)
        )

    def robot_frame_delta(self, left: float, right: float, rear: float) -> Tuple[float, float]:
        """
        Decompose filtered wheel ticks into robot-frame translation.

        Returns:
            (dX, dY) in ticks along robot x (forward) and y (lateral).
        """
        delta_y = (left * self._left_sin + right * self._right_sin) / 2.0
        # Rear wheel is already aligned with robot x
        delta_x = (left * self._left_cos + right * self._right_cos + rear) / 3.0
        return delta_x, delta_y

    def rotation_delta(self, rear: float) -> float:
        """Heading change (radians) from filtered rear-wheel ticks."""
        rear_cm = self.geometry.ticks_to_cm(rear)
        return -rear_cm / (math.pi * self.geometry.robot_diameter)

    def global_delta(self, left: float, right: float, rear: float) -> Tuple[float, float, float]:
        """
        Compute the global-frame pose change for one set of filtered ticks.

        Uses the current pose heading for the frame rotation.

        Returns:
            (dx, dy, dtheta) with dx, dy in cm and dtheta in radians.
        """
        delta_x, delta_y = self.robot_frame_delta(left, right, rear)
        cos_t = math.cos(self.pose.theta)
        sin_t = math.sin(self.pose.theta)

        dx = self.geometry.ticks_to_cm(delta_x * cos_t - delta_y * sin_t)
        dy = self.geometry.ticks_to_cm(delta_x * sin_t + delta_y * cos_t)
        return dx, dy, self.rotation_delta(rear)

    def update(
        self, raw: Optional[Tuple[float, float, float]] = None
    ) -> Tuple[float, float, float]:
        """
        Run one odometry cycle and accumulate it into the pose.

        Args:
            raw: Pre-read raw ticks (see read_raw_ticks); read from the
                robot if None.

        Returns:
            The applied (dx, dy, dtheta) delta.
        """
        left, right, rear = self.read_filtered_ticks(raw)
        dx, dy, dtheta = self.global_delta(left, right, rear)
        self.pose.add(dx, dy, dtheta)
        self.total_rotation += dtheta

        logger.debug(
            "odometry ticks L=%.2f R=%.2f B=%.2f -> delta (%.3f, %.3f, %.4f)",
            left, right, rear, dx, dy, dtheta,
        )
        return dx, dy, dtheta

    def reset(self, pose: Optional[Pose] = None) -> None:
        """Clear filter history and total rotation; optionally re-seed the pose."""
        for f in self.filters.values():
            f.reset()
        self.total_rotation = 0.0
        if pose is not None:
            self.pose.set(pose.x, pose.y, pose.theta)
