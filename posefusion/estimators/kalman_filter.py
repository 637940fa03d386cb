"""
Linear Kalman filter with fixed model matrices.

The pose-fusion strategy runs it over the channels [x, y, sin(theta)] and
observes them twice per cycle (beacon and odometry) through a stacked
measurement matrix H = [I; I].

Cycle:
    predict:  x⁻ = F x + u          P⁻ = F P Fᵀ + Q
    update:   ν = z - H x⁻          S = H P⁻ Hᵀ + R
              K = P⁻ Hᵀ S⁻¹
              x = x⁻ + K ν          P = (I - K H) P⁻ (I - K H)ᵀ + K R Kᵀ

The covariance update uses the Joseph form, which stays symmetric under
rounding. Q and R may be replaced between cycles; their shapes are checked
on every use.
"""

from typing import Optional, Tuple

import numpy as np

from posefusion.estimators.base import StateEstimator


def _square(name: str, matrix: np.ndarray, size: int) -> np.ndarray:
    matrix = np.asarray(matrix, dtype=float)
    if matrix.shape != (size, size):
        raise ValueError(f"{name} must have shape ({size}, {size}), got {matrix.shape}")
    return matrix


class KalmanFilter(StateEstimator):
    """
    Kalman filter for a linear model with additive control.

    Attributes:
        F: State transition (n×n).
        Q: Process noise covariance (n×n).
        H: Measurement matrix (m×n).
        R: Measurement noise covariance (m×m).

    Example:
        >>> kf = KalmanFilter(np.eye(1), 0.01 * np.eye(1), np.eye(1), np.eye(1),
        ...                   x0=np.zeros(1), P0=np.eye(1))
        >>> kf.update(np.array([2.0]))
        >>> kf.state
        array([1.])
    """

    def __init__(
        self,
        F: np.ndarray,
        Q: np.ndarray,
        H: np.ndarray,
        R: np.ndarray,
        x0: Optional[np.ndarray] = None,
        P0: Optional[np.ndarray] = None,
    ):
        """
        Args:
            F: State transition matrix (n×n); fixes the state dimension.
            Q: Process noise covariance (n×n).
            H: Measurement matrix (m×n).
            R: Measurement noise covariance (m×m).
            x0: Initial state (n,). Seed later with ``seed`` if omitted.
            P0: Initial covariance (n×n). Required together with ``x0``.

        Raises:
            ValueError: If the matrix shapes are inconsistent.
        """
        F = np.asarray(F, dtype=float)
        if F.ndim != 2 or F.shape[0] != F.shape[1]:
            raise ValueError(f"F must be square, got shape {F.shape}")
        super().__init__(F.shape[0])

        H = np.asarray(H, dtype=float)
        if H.ndim != 2 or H.shape[1] != self.state_dim:
            raise ValueError(
                f"H must have {self.state_dim} columns, got shape {H.shape}"
            )

        self.F = F
        self.H = H
        self.Q = _square("Q", Q, self.state_dim)
        self.R = _square("R", R, H.shape[0])

        if (x0 is None) != (P0 is None):
            raise ValueError("x0 and P0 must be given together")
        if x0 is not None:
            self.seed(x0, P0)

    @property
    def measurement_dim(self) -> int:
        return self.H.shape[0]

    def predict(self, u: Optional[np.ndarray] = None) -> None:
        """
        Time update.

        Args:
            u: Additive control input (n,), e.g. velocity · dt. Zero if None.
        """
        self._require_initialized("predict")
        Q = _square("Q", self.Q, self.state_dim)

        self.state = self.F @ self.state
        if u is not None:
            self.state = self.state + np.asarray(u, dtype=float)
        self.covariance = self.F @ self.covariance @ self.F.T + Q

    def update(self, z: np.ndarray) -> None:
        """
        Measurement update.

        Args:
            z: Measurement vector (m,).

        Raises:
            ValueError: If ``z`` does not have length m.
        """
        self._require_initialized("update")
        nu, S = self.get_innovation(z)

        K = self.covariance @ self.H.T @ np.linalg.inv(S)
        self.state = self.state + K @ nu

        I_KH = np.eye(self.state_dim) - K @ self.H
        R = _square("R", self.R, self.measurement_dim)
        self.covariance = I_KH @ self.covariance @ I_KH.T + K @ R @ K.T

    def get_innovation(self, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Residual of ``z`` against the current estimate.

        Returns:
            (ν, S): innovation (m,) and its covariance (m×m).
        """
        self._require_initialized("get_innovation")
        z = np.asarray(z, dtype=float).ravel()
        if z.shape != (self.measurement_dim,):
            raise ValueError(
                f"Measurement must have {self.measurement_dim} elements, got {z.size}"
            )
        R = _square("R", self.R, self.measurement_dim)
        nu = z - self.H @ self.state
        S = self.H @ self.covariance @ self.H.T + R
        return nu, S
