"""Update-cycle orchestration with bounded hardware-poll retries.

One cycle:

    POLLING ──(poll succeeded within fail_limit attempts)──> SUCCESS
        │                                                     odometry.update()
        │                                                     beacon.update()
        │                                                     fusion.fuse()
        │                                                     publish best pose
        └──(fail_limit consecutive failures)────────────────> FAILED
                                                              nothing else runs,
                                                              exposed pose unchanged

The failure counter starts fresh every cycle. The boundary is inclusive:
exactly ``fail_limit`` consecutive failures fail the cycle, and the poll is
never invoked a ``fail_limit + 1``-th time.

After a successful poll, wheel and beacon readings are read and checked
before any estimator runs. A non-finite reading also ends the cycle FAILED
with every pose and filter window untouched.

The controller exclusively owns the three poses: the odometry estimate,
the beacon estimate and the fused best estimate. The estimators write their
own pose; the fusion engine reads the first two and writes only the third.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from posefusion.config import RobotConfig, validate_fail_limit
from posefusion.fusion.engine import FusionEngine
from posefusion.fusion.strategies import TrackUpdate
from posefusion.sensors.beacon import AbsolutePositionEstimator
from posefusion.sensors.interface import RobotInterface
from posefusion.sensors.wheel_odometry import OdometryEstimator
from posefusion.types import Pose

logger = logging.getLogger(__name__)


class CycleStatus(Enum):
    """Outcome of one update cycle."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class CycleResult:
    """Result of one update cycle.

    Attributes:
        status: SUCCESS or FAILED.
        attempts: Number of poll invocations made this cycle.
        pose: Exposed pose after the cycle (a copy).
    """

    status: CycleStatus
    attempts: int
    pose: Pose

    @property
    def ok(self) -> bool:
        return self.status is CycleStatus.SUCCESS


class PoseController:
    """
    Drive the estimators and fusion from a polled robot.

    Attributes:
        robot: Hardware collaborator.
        config: Static configuration.
        odometry: Wheel odometry estimator.
        beacon: Beacon absolute position estimator.
        fusion: Fusion engine writing the best estimate.
        cycles: Number of cycles run.
        failed_cycles: Number of cycles that ended FAILED.

    Example:
        >>> controller = PoseController(robot, RobotConfig(room=2))
        >>> if controller.update():
        ...     print(controller.pose)
    """

    def __init__(
        self,
        robot: RobotInterface,
        config: Optional[RobotConfig] = None,
        fusion_strategy: Optional[TrackUpdate] = None,
        initial_pose: Optional[Pose] = None,
    ):
        """
        Build the estimators and the fusion engine.

        Args:
            robot: Hardware collaborator.
            config: Configuration; defaults to RobotConfig().
            fusion_strategy: Numeric fusion step; Kalman if omitted.
            initial_pose: Starting pose for all three estimates.

        Raises:
            ValueError: If the configuration or a filter resource is invalid.
            FileNotFoundError: If a filter resource is missing.
        """
        self.robot = robot
        self.config = config if config is not None else RobotConfig()
        self._fail_limit = validate_fail_limit(self.config.fail_limit)

        start = initial_pose if initial_pose is not None else Pose()
        self._odometry_pose = start.copy()
        self._beacon_pose = start.copy()
        self._best_pose = start.copy()
        self._exposed_pose = start.copy()

        self.odometry = OdometryEstimator(
            robot,
            geometry=self.config.geometry,
            pose=self._odometry_pose,
            filter_source=self.config.wheel_filter,
        )
        self.beacon = AbsolutePositionEstimator(
            robot,
            calibration=self.config.calibration,
            room=self.config.room,
            pose=self._beacon_pose,
            x_filter=self.config.beacon_x_filter,
            y_filter=self.config.beacon_y_filter,
            theta_filter=self.config.beacon_theta_filter,
        )
        self.fusion = FusionEngine(
            self._best_pose,
            strategy=fusion_strategy,
            config=self.config.fusion,
        )

        self.cycles = 0
        self.failed_cycles = 0
        logger.info(
            "PoseController ready: room %d, fail limit %d, start %r",
            self.config.room, self._fail_limit, start,
        )

    @property
    def fail_limit(self) -> int:
        return self._fail_limit

    @fail_limit.setter
    def fail_limit(self, limit: int) -> None:
        self._fail_limit = validate_fail_limit(limit)

    @property
    def pose(self) -> Pose:
        """Latest published best estimate (a copy)."""
        return self._exposed_pose.copy()

    @property
    def odometry_pose(self) -> Pose:
        return self._odometry_pose.copy()

    @property
    def beacon_pose(self) -> Pose:
        return self._beacon_pose.copy()

    def poll_hardware(self) -> Tuple[bool, int]:
        """
        Poll the robot until success or ``fail_limit`` consecutive failures.

        An OSError raised by the transport counts as a failed attempt.

        Returns:
            Tuple of (succeeded, attempts).
        """
        failures = 0
        while failures < self._fail_limit:
            try:
                ok = self.robot.poll()
            except OSError as exc:
                logger.warning("Poll attempt %d raised %s", failures + 1, exc)
                ok = False
            if ok:
                return True, failures + 1
            failures += 1
        return False, failures

    def step(self) -> CycleResult:
        """Run one update cycle and report its outcome."""
        self.cycles += 1
        ok, attempts = self.poll_hardware()

        if not ok:
            self.failed_cycles += 1
            logger.warning(
                "Cycle %d failed after %d poll attempts; keeping pose %r",
                self.cycles, attempts, self._exposed_pose,
            )
            return CycleResult(CycleStatus.FAILED, attempts, self.pose)

        # All readings are taken and checked before any estimator state moves
        try:
            ticks = self.odometry.read_raw_ticks()
            reading = self.beacon.read_raw()
        except ValueError as exc:
            self.failed_cycles += 1
            logger.warning(
                "Cycle %d rejected: %s; keeping pose %r",
                self.cycles, exc, self._exposed_pose,
            )
            return CycleResult(CycleStatus.FAILED, attempts, self.pose)

        self.odometry.update(ticks)
        self.beacon.update(reading)
        self.fusion.fuse(self._beacon_pose, self._odometry_pose)
        self._exposed_pose = self._best_pose.copy()

        logger.debug("Cycle %d: pose %r", self.cycles, self._exposed_pose)
        return CycleResult(CycleStatus.SUCCESS, attempts, self.pose)

    def update(self) -> bool:
        """Run one update cycle; True if the pose was advanced."""
        return self.step().ok

    def run(
        self,
        max_cycles: Optional[int] = None,
        period: float = 0.0,
        on_cycle: Optional[Callable[[CycleResult], None]] = None,
    ) -> int:
        """
        Run cycles until ``max_cycles`` is reached (forever if None).

        Args:
            max_cycles: Number of cycles to run, or None for no limit.
            period: Seconds to sleep between cycles.
            on_cycle: Optional callback receiving each CycleResult.

        Returns:
            Number of successful cycles.
        """
        successes = 0
        count = 0
        while max_cycles is None or count < max_cycles:
            result = self.step()
            count += 1
            if result.ok:
                successes += 1
            if on_cycle is not None:
                on_cycle(result)
            if period > 0:
                time.sleep(period)
        return successes
