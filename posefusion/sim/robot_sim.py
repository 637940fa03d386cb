"""
Simulated robot hardware for exercising the pose pipeline without a robot.

The simulator integrates a ground-truth pose from a commanded robot-frame
motion and synthesizes the readings the real hardware would report:

    - Wheel ticks: the wheel decomposition used by OdometryEstimator,
      inverted, so noise-free ticks reproduce the commanded motion.
    - Beacon: the true pose mapped back through the room calibration
      (global_to_room), plus Gaussian noise.
    - Poll: fails at random with probability ``drop_rate``.
"""

import math
from typing import Optional, Tuple

import numpy as np

from posefusion.config import RobotGeometry, RoomCalibration
from posefusion.coords.room_frame import global_to_room
from posefusion.sensors.interface import RobotInterface, Wheel
from posefusion.types import Pose


def wheel_ticks_for_motion(
    forward: float, lateral: float, turn: float, geometry: RobotGeometry
) -> Tuple[float, float, float]:
    """
    Wheel deltas (ticks) that produce a robot-frame motion.

    Inverts the odometry wheel decomposition:
        rear = -turn · π · D · ticks_per_cm
        (l·sinL + r·sinR) / 2      = lateral · ticks_per_cm
        (l·cosL + r·cosR + rear)/3 = forward · ticks_per_cm

    Args:
        forward: Motion along robot x (cm).
        lateral: Motion along robot y (cm).
        turn: Heading change (radians).
        geometry: Wheel geometry.

    Returns:
        (left, right, rear) ticks as floats.
    """
    rear = geometry.cm_to_ticks(-turn * math.pi * geometry.robot_diameter)
    left = math.radians(geometry.left_wheel_angle)
    right = math.radians(geometry.right_wheel_angle)

    A = np.array([
        [math.sin(left) / 2.0, math.sin(right) / 2.0],
        [math.cos(left) / 3.0, math.cos(right) / 3.0],
    ])
    b = np.array([
        geometry.cm_to_ticks(lateral),
        geometry.cm_to_ticks(forward) - rear / 3.0,
    ])
    l_ticks, r_ticks = np.linalg.solve(A, b)
    return float(l_ticks), float(r_ticks), float(rear)


class SimulatedRobotInterface(RobotInterface):
    """
    RobotInterface backed by a simple kinematic simulation.

    Attributes:
        true_pose: Ground-truth pose (global frame, cm).
        command: Robot-frame motion per successful poll (forward cm,
            lateral cm, turn rad).
        polls: Total poll invocations.
    """

    def __init__(
        self,
        room: RoomCalibration,
        geometry: Optional[RobotGeometry] = None,
        start: Optional[Pose] = None,
        command: Tuple[float, float, float] = (2.0, 0.0, 0.0),
        tick_noise: float = 0.5,
        beacon_noise: float = 20.0,
        beacon_theta_noise: float = 0.02,
        drop_rate: float = 0.0,
        seed: Optional[int] = None,
    ):
        """
        Args:
            room: Calibration of the room the robot is driving in.
            geometry: Wheel geometry; defaults to RobotGeometry().
            start: Initial true pose.
            command: Robot-frame motion applied on each successful poll.
            tick_noise: Std of the additive wheel tick noise (ticks).
            beacon_noise: Std of the beacon position noise (raw ticks).
            beacon_theta_noise: Std of the beacon heading noise (radians).
            drop_rate: Probability that a poll fails.
            seed: Random seed for reproducibility.
        """
        if not 0.0 <= drop_rate <= 1.0:
            raise ValueError(f"drop_rate must be in [0, 1], got {drop_rate}")

        self.room = room
        self.geometry = geometry if geometry is not None else RobotGeometry()
        self.true_pose = start.copy() if start is not None else Pose()
        self.command = command
        self.tick_noise = tick_noise
        self.beacon_noise = beacon_noise
        self.beacon_theta_noise = beacon_theta_noise
        self.drop_rate = drop_rate
        self.rng = np.random.default_rng(seed)
        self.polls = 0

        self._ticks = {wheel: 0 for wheel in Wheel}
        self._beacon = global_to_room(
            self.true_pose.x, self.true_pose.y, self.true_pose.theta, self.room
        )

    def poll(self) -> bool:
        self.polls += 1
        if self.rng.random() < self.drop_rate:
            return False
        self._advance()
        return True

    def _advance(self) -> None:
        forward, lateral, turn = self.command
        left, right, rear = wheel_ticks_for_motion(forward, lateral, turn, self.geometry)
        noise = self.rng.normal(0.0, self.tick_noise, size=3) if self.tick_noise > 0 else np.zeros(3)
        self._ticks = {
            Wheel.LEFT: int(round(left + noise[0])),
            Wheel.RIGHT: int(round(right + noise[1])),
            Wheel.REAR: int(round(rear + noise[2])),
        }

        # Motion is applied with the heading held before the step
        cos_t = math.cos(self.true_pose.theta)
        sin_t = math.sin(self.true_pose.theta)
        self.true_pose.add(
            forward * cos_t - lateral * sin_t,
            forward * sin_t + lateral * cos_t,
            turn,
        )

        raw_x, raw_y, raw_theta = global_to_room(
            self.true_pose.x, self.true_pose.y, self.true_pose.theta, self.room
        )
        self._beacon = (
            raw_x + self.rng.normal(0.0, self.beacon_noise),
            raw_y + self.rng.normal(0.0, self.beacon_noise),
            raw_theta + self.rng.normal(0.0, self.beacon_theta_noise),
        )

    def wheel_delta(self, wheel: Wheel) -> int:
        return self._ticks[wheel]

    def beacon_x(self) -> float:
        return self._beacon[0]

    def beacon_y(self) -> float:
        return self._beacon[1]

    def beacon_theta(self) -> float:
        return self._beacon[2]


class ScriptedRobotInterface(RobotInterface):
    """
    RobotInterface that replays scripted poll outcomes and readings.

    Useful for replaying logged sessions and for deterministic tests.

    Args:
        poll_results: Outcomes returned by successive poll() calls. Once
            exhausted, poll() returns ``default_poll``.
        wheel_deltas: (left, right, rear) ticks for each successful poll;
            the last entry repeats once exhausted.
        beacon: (x, y, theta) raw beacon readings for each successful poll;
            the last entry repeats once exhausted.
        default_poll: Poll outcome after the script runs out.

    Attributes:
        polls: Total poll invocations.
        wheel_reads: Total wheel_delta() invocations.
        beacon_reads: Total beacon_x/y/theta() invocations.
    """

    def __init__(
        self,
        poll_results=(),
        wheel_deltas=((0, 0, 0),),
        beacon=((0.0, 0.0, 0.0),),
        default_poll: bool = True,
    ):
        if not wheel_deltas or not beacon:
            raise ValueError("wheel_deltas and beacon need at least one entry")
        self._poll_results = list(poll_results)
        self._wheel_deltas = [tuple(d) for d in wheel_deltas]
        self._beacon_readings = [tuple(b) for b in beacon]
        self.default_poll = default_poll
        self.polls = 0
        self.successes = 0
        self.wheel_reads = 0
        self.beacon_reads = 0

    def poll(self) -> bool:
        index = self.polls
        self.polls += 1
        ok = self._poll_results[index] if index < len(self._poll_results) else self.default_poll
        if ok:
            self.successes += 1
        return bool(ok)

    def _current(self, readings):
        index = min(max(self.successes - 1, 0), len(readings) - 1)
        return readings[index]

    def wheel_delta(self, wheel: Wheel) -> int:
        self.wheel_reads += 1
        left, right, rear = self._current(self._wheel_deltas)
        return {Wheel.LEFT: left, Wheel.RIGHT: right, Wheel.REAR: rear}[wheel]

    def beacon_x(self) -> float:
        self.beacon_reads += 1
        return self._current(self._beacon_readings)[0]

    def beacon_y(self) -> float:
        self.beacon_reads += 1
        return self._current(self._beacon_readings)[1]

    def beacon_theta(self) -> float:
        self.beacon_reads += 1
        return self._current(self._beacon_readings)[2]
