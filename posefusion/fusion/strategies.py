"""Numeric update strategies plugged into the fusion engine.

A strategy receives two measurement vectors of the fused channels
[x, y, sin(theta)], the current velocity estimate and the nine uncertainty
scalars, and writes its result into the 9-element track buffer:

    track[0:3]  fused [x, y, sin(theta)]
    track[3:6]  velocity used for the prediction
    track[6:9]  posterior variance of each fused channel

Uncertainty layout (standard deviations):
    uncertainties[0:3]  process noise       (x, y, sin(theta))
    uncertainties[3:6]  absolute sensor     (beacon)
    uncertainties[6:9]  odometry sensor     (wheel encoders)
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from posefusion.estimators.kalman_filter import KalmanFilter

logger = logging.getLogger(__name__)

TRACK_SIZE = 9
NUM_UNCERTAINTIES = 9


class TrackUpdate(ABC):
    """Contract for the numeric fusion step."""

    @abstractmethod
    def update(
        self,
        absolute: np.ndarray,
        odometry: np.ndarray,
        velocity: np.ndarray,
        uncertainties: np.ndarray,
        track: np.ndarray,
    ) -> None:
        """
        Fuse two measurements and write the result into ``track``.

        Args:
            absolute: Beacon measurement [x, y, sin(theta)] (3,).
            odometry: Odometry measurement [x, y, sin(theta)] (3,).
            velocity: Velocity estimate [vx, vy, vsin] per cycle (3,).
            uncertainties: Nine standard deviations (9,).
            track: Output buffer (9,), written in place.
        """

    def reset(self, initial: np.ndarray) -> None:
        """Re-seed internal state from a fused-channel vector (3,)."""


class KalmanTrackUpdate(TrackUpdate):
    """
    Constant-velocity Kalman update over [x, y, sin(theta)].

    Each call runs one predict/update pair:
        - predict: x = x + v·dt, P = P + diag(σ_process²)
        - update:  z = [absolute; odometry], H = [I; I],
                   R = diag(σ_absolute², σ_odometry²)

    The filter is seeded from ``initial`` with a large diagonal covariance,
    so the first update follows the measurements rather than the seed.
    """

    def __init__(
        self,
        initial: Optional[np.ndarray] = None,
        initial_covariance: float = 1.0e6,
        dt: float = 1.0,
    ):
        if initial_covariance <= 0:
            raise ValueError(f"initial_covariance must be positive, got {initial_covariance}")
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        self.initial_covariance = float(initial_covariance)
        self.dt = float(dt)
        H = np.vstack([np.eye(3), np.eye(3)])
        self.kf = KalmanFilter(
            F=np.eye(3),
            Q=np.zeros((3, 3)),
            H=H,
            R=np.eye(6),
            x0=np.zeros(3),
            P0=np.eye(3) * self.initial_covariance,
        )
        if initial is not None:
            self.reset(initial)

    def reset(self, initial: np.ndarray) -> None:
        initial = np.asarray(initial, dtype=float)
        if initial.shape != (3,):
            raise ValueError(f"initial must have shape (3,), got {initial.shape}")
        self.kf.seed(initial, np.eye(3) * self.initial_covariance)

    def update(
        self,
        absolute: np.ndarray,
        odometry: np.ndarray,
        velocity: np.ndarray,
        uncertainties: np.ndarray,
        track: np.ndarray,
    ) -> None:
        sigma = np.asarray(uncertainties, dtype=float)
        if sigma.shape != (NUM_UNCERTAINTIES,):
            raise ValueError(f"uncertainties must have shape (9,), got {sigma.shape}")

        self.kf.Q = np.diag(sigma[0:3] ** 2)
        self.kf.R = np.diag(sigma[3:9] ** 2)

        velocity = np.asarray(velocity, dtype=float)
        self.kf.predict(u=velocity * self.dt)
        self.kf.update(np.concatenate([absolute, odometry]))

        state, covariance = self.kf.get_state()
        track[0:3] = state
        track[3:6] = velocity
        track[6:9] = np.diag(covariance)
