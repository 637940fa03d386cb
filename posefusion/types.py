"""Pose data structure shared by the estimators and the fusion engine.

Key types:
    - Pose: mutable 2D pose [x, y, theta] with heading kept in [0, 2π)

Units:
    - x, y: centimeters in the room-fixed global frame
    - theta: radians, counter-clockwise from the global x-axis
"""

import math

import numpy as np

from .utils.angles import angle_diff, normalize_theta


class Pose:
    """
    Mutable 2D pose (x, y, theta).

    The heading is normalized into [0, 2π) on every write, including the
    constructor and plain attribute assignment, so no code path can store
    an un-normalized angle.

    Attributes:
        x: Position along the global x-axis (cm).
        y: Position along the global y-axis (cm).
        theta: Heading in radians, always in [0, 2π).

    Examples:
        >>> p = Pose(10.0, 5.0, -np.pi / 2)
        >>> p.theta  # wrapped to the top of the range
        4.71238898038469
        >>> p.add(1.0, 0.0, np.pi)
        >>> p.to_vector()
        array([11.        ,  5.        ,  1.57079633])
    """

    __slots__ = ("_x", "_y", "_theta")

    def __init__(self, x: float = 0.0, y: float = 0.0, theta: float = 0.0):
        self._x = 0.0
        self._y = 0.0
        self._theta = 0.0
        self.set_x(x)
        self.set_y(y)
        self.set_theta(theta)

    @staticmethod
    def _check_finite(name: str, value: float) -> float:
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"{name} must be finite, got {value}")
        return value

    @property
    def x(self) -> float:
        return self._x

    @x.setter
    def x(self, value: float) -> None:
        self.set_x(value)

    @property
    def y(self) -> float:
        return self._y

    @y.setter
    def y(self, value: float) -> None:
        self.set_y(value)

    @property
    def theta(self) -> float:
        return self._theta

    @theta.setter
    def theta(self, value: float) -> None:
        self.set_theta(value)

    def set_x(self, value: float) -> None:
        self._x = self._check_finite("x", value)

    def set_y(self, value: float) -> None:
        self._y = self._check_finite("y", value)

    def set_theta(self, value: float) -> None:
        self._theta = normalize_theta(self._check_finite("theta", value))

    def set(self, x: float, y: float, theta: float) -> None:
        """Overwrite all three components; nothing is written if any value is invalid."""
        x = self._check_finite("x", x)
        y = self._check_finite("y", y)
        theta = self._check_finite("theta", theta)
        self._x, self._y, self._theta = x, y, normalize_theta(theta)

    def add(self, dx: float, dy: float, dtheta: float) -> None:
        """
        Accumulate a relative motion expressed in the global frame.

        The pose is left untouched if any resulting component is non-finite.

        Args:
            dx: Change in x (cm).
            dy: Change in y (cm).
            dtheta: Change in heading (radians, any sign).
        """
        self.set(self._x + dx, self._y + dy, self._theta + dtheta)

    def to_vector(self) -> np.ndarray:
        """Convert pose to NumPy array [x, y, theta] of shape (3,)."""
        return np.array([self._x, self._y, self._theta], dtype=float)

    @classmethod
    def from_vector(cls, vector: np.ndarray) -> "Pose":
        """
        Create a pose from a 3-element vector [x, y, theta].

        Raises:
            ValueError: If the vector does not have exactly 3 elements.
        """
        vector = np.asarray(vector, dtype=float).ravel()
        if vector.shape != (3,):
            raise ValueError(f"Pose vector must have 3 elements, got shape {vector.shape}")
        return cls(vector[0], vector[1], vector[2])

    def copy(self) -> "Pose":
        return Pose(self._x, self._y, self._theta)

    def isclose(self, other: "Pose", atol: float = 1e-9) -> bool:
        """Compare two poses; headings are compared across the 0/2π seam."""
        dtheta = abs(angle_diff(self._theta, other.theta))
        return (
            abs(self._x - other.x) <= atol
            and abs(self._y - other.y) <= atol
            and dtheta <= atol
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pose):
            return NotImplemented
        return (self._x, self._y, self._theta) == (other.x, other.y, other.theta)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Pose(x={self._x:.2f}, y={self._y:.2f}, theta={self._theta:.4f})"
