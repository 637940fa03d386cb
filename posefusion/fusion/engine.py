"""Fusion of the beacon and odometry pose estimates.

The engine converts both poses to [x, y, theta] vectors, replaces theta by
sin(theta) so that 0 and 2π map to the same value, hands both vectors to an
injected numeric update strategy, and recovers the heading from the fused
sine with asin().

Known limitation:
    asin() returns values in [-π/2, π/2]. After normalization into [0, 2π)
    the recovered heading therefore always lies in [0, π/2] ∪ [3π/2, 2π).
    A true heading θ in the other half of the circle comes back as its
    mirror π - θ (normalized). This is inherent to fusing sin(theta) alone
    and is deliberately left as is.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from posefusion.config import FusionConfig
from posefusion.fusion.strategies import (
    NUM_UNCERTAINTIES,
    TRACK_SIZE,
    KalmanTrackUpdate,
    TrackUpdate,
)
from posefusion.types import Pose
from posefusion.utils.angles import normalize_theta

logger = logging.getLogger(__name__)

PROCESS = slice(0, 3)
ABSOLUTE = slice(3, 6)
ODOMETRY = slice(6, 9)


def pose_to_fusion_vector(pose: Pose) -> np.ndarray:
    """Convert a pose to the fused channel vector [x, y, sin(theta)]."""
    vector = pose.to_vector()
    vector[2] = math.sin(vector[2])
    return vector


def recover_heading(sin_theta: float) -> float:
    """
    Recover a heading in [0, 2π) from a fused sin(theta) value.

    Values marginally outside [-1, 1] from numerical noise are clipped.

    Example:
        >>> recover_heading(math.sin(0.3))
        0.3
        >>> recover_heading(math.sin(2.5))  # mirrored: π - 2.5
        0.6415926535897931
    """
    return normalize_theta(math.asin(float(np.clip(sin_theta, -1.0, 1.0))))


def _validate_group(name: str, values: Sequence[float], size: int) -> np.ndarray:
    array = np.asarray(values, dtype=float).ravel()
    if array.shape != (size,):
        raise ValueError(f"{name} needs {size} values, got {array.size}")
    if not np.all(np.isfinite(array)):
        raise ValueError(f"{name} must be finite, got {array}")
    return array


def _validate_uncertainty(name: str, values: Sequence[float], size: int) -> np.ndarray:
    array = _validate_group(name, values, size)
    if np.any(array <= 0):
        raise ValueError(f"{name} uncertainties must be > 0, got {array}")
    return array


class FusionEngine:
    """
    Combine an absolute (beacon) pose and an odometry pose into one estimate.

    The engine writes only into ``best_pose``; the two input poses are read.

    Attributes:
        best_pose: Pose receiving the fused estimate (owned by the caller).
        strategy: Numeric update strategy (Kalman by default).

    Example:
        >>> best = Pose()
        >>> engine = FusionEngine(best)
        >>> engine.fuse(Pose(10, 20, 0.5), Pose(10, 20, 0.5))
        Pose(x=10.00, y=20.00, theta=0.5000)
    """

    def __init__(
        self,
        best_pose: Pose,
        strategy: Optional[TrackUpdate] = None,
        config: Optional[FusionConfig] = None,
    ):
        config = config if config is not None else FusionConfig()
        self.best_pose = best_pose
        self._uncertainties = np.array(config.uncertainties, dtype=float)
        self._velocity = np.zeros(3)
        self._track = np.zeros(TRACK_SIZE)

        if strategy is None:
            strategy = KalmanTrackUpdate(
                initial=pose_to_fusion_vector(best_pose),
                initial_covariance=config.initial_covariance,
            )
        self.strategy = strategy
        self.fusions = 0

    @property
    def uncertainties(self) -> np.ndarray:
        return self._uncertainties.copy()

    @property
    def velocity(self) -> np.ndarray:
        return self._velocity.copy()

    @property
    def track(self) -> np.ndarray:
        return self._track.copy()

    def fuse(self, absolute_pose: Pose, odometry_pose: Pose) -> Pose:
        """
        Fuse the two estimates into ``best_pose``.

        Args:
            absolute_pose: Beacon pose in the global frame.
            odometry_pose: Wheel odometry pose in the global frame.

        Returns:
            ``best_pose``, updated in place.
        """
        absolute = pose_to_fusion_vector(absolute_pose)
        odometry = pose_to_fusion_vector(odometry_pose)

        self.strategy.update(
            absolute,
            odometry,
            self._velocity.copy(),
            self._uncertainties.copy(),
            self._track,
        )

        theta = recover_heading(self._track[2])
        self.best_pose.set(self._track[0], self._track[1], theta)
        self.fusions += 1

        logger.debug(
            "fused beacon %r + odometry %r -> %r",
            absolute_pose, odometry_pose, self.best_pose,
        )
        return self.best_pose

    def set_velocity(self, vx: float, vy: float, vtheta: float) -> None:
        """Set the per-cycle velocity used by the next prediction."""
        self._velocity = _validate_group("velocity", [vx, vy, vtheta], 3)

    def set_uncertainty(self, *values: float) -> None:
        """
        Replace all nine uncertainties.

        Args:
            *values: process x, y, theta; absolute x, y, theta;
                odometry x, y, theta.
        """
        self._uncertainties = _validate_uncertainty("uncertainty", values, NUM_UNCERTAINTIES)

    def set_process_uncertainty(self, x: float, y: float, theta: float) -> None:
        self._uncertainties[PROCESS] = _validate_uncertainty("process", [x, y, theta], 3)

    def set_absolute_uncertainty(self, x: float, y: float, theta: float) -> None:
        self._uncertainties[ABSOLUTE] = _validate_uncertainty("absolute", [x, y, theta], 3)

    def set_odometry_uncertainty(self, x: float, y: float, theta: float) -> None:
        self._uncertainties[ODOMETRY] = _validate_uncertainty("odometry", [x, y, theta], 3)

    def reset(self, pose: Optional[Pose] = None) -> None:
        """Zero the track and velocity and re-seed the strategy from ``pose``."""
        if pose is not None:
            self.best_pose.set(pose.x, pose.y, pose.theta)
        self._track[:] = 0.0
        self._velocity[:] = 0.0
        self.strategy.reset(pose_to_fusion_vector(self.best_pose))
