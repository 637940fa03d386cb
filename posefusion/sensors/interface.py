"""
Hardware boundary consumed by the pose pipeline.

The transport that talks to the robot (network link, serial bridge, ...) is
an external collaborator. The pipeline only needs the narrow interface
below: refresh the sensor snapshot, then read wheel deltas and the beacon.
"""

from abc import ABC, abstractmethod
from enum import Enum


class Wheel(Enum):
    """Wheel identifiers, named by mounting position."""

    LEFT = "left"
    RIGHT = "right"
    REAR = "rear"


class RobotInterface(ABC):
    """Abstract hardware collaborator.

    ``poll()`` refreshes the sensor snapshot; the read methods return values
    from the most recent successful poll.
    """

    @abstractmethod
    def poll(self) -> bool:
        """
        Refresh the sensor snapshot.

        Returns:
            True on success, False if the robot did not respond. The caller
            treats any failure as retryable.
        """

    @abstractmethod
    def wheel_delta(self, wheel: Wheel) -> int:
        """Encoder ticks accumulated by ``wheel`` since the previous poll."""

    @abstractmethod
    def beacon_x(self) -> float:
        """Raw north-star x reading (ticks)."""

    @abstractmethod
    def beacon_y(self) -> float:
        """Raw north-star y reading (ticks)."""

    @abstractmethod
    def beacon_theta(self) -> float:
        """Raw north-star heading (radians)."""
