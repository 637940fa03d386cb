"""Common interface of the recursive estimators used for pose fusion."""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np


class StateEstimator(ABC):
    """
    Recursive estimator holding a state vector and its covariance.

    Attributes:
        state_dim: Length of the state vector.
        state: Current estimate (state_dim,), None until seeded.
        covariance: Current covariance (state_dim × state_dim), None until seeded.
    """

    def __init__(self, state_dim: int):
        if state_dim < 1:
            raise ValueError(f"state_dim must be >= 1, got {state_dim}")
        self.state_dim = state_dim
        self.state: Optional[np.ndarray] = None
        self.covariance: Optional[np.ndarray] = None

    @abstractmethod
    def predict(self, u: Optional[np.ndarray] = None) -> None:
        """Propagate the estimate one cycle, adding the control input ``u``."""

    @abstractmethod
    def update(self, z: np.ndarray) -> None:
        """Correct the estimate with the measurement ``z``."""

    @property
    def initialized(self) -> bool:
        return self.state is not None and self.covariance is not None

    def _require_initialized(self, operation: str) -> None:
        if not self.initialized:
            raise RuntimeError(f"{type(self).__name__}.{operation}() called before seeding state")

    def seed(self, state: np.ndarray, covariance: np.ndarray) -> None:
        """
        Set the estimate and covariance.

        Raises:
            ValueError: If the shapes do not match ``state_dim``.
        """
        state = np.asarray(state, dtype=float).ravel()
        covariance = np.asarray(covariance, dtype=float)
        if state.shape != (self.state_dim,):
            raise ValueError(f"state must have shape ({self.state_dim},), got {state.shape}")
        if covariance.shape != (self.state_dim, self.state_dim):
            raise ValueError(
                f"covariance must have shape ({self.state_dim}, {self.state_dim}), "
                f"got {covariance.shape}"
            )
        self.state = state.copy()
        self.covariance = covariance.copy()

    def get_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return copies of (state, covariance)."""
        self._require_initialized("get_state")
        return self.state.copy(), self.covariance.copy()
