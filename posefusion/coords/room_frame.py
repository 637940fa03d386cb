"""Beacon room frame to global frame transformation.

The north-star beacon reports position in raw ticks relative to whichever
room's ceiling projector it currently sees. Each room has its own origin,
tick scale and orientation, recorded in a RoomCalibration entry.

Composition order (fixed):
    1. shift:  p = raw - (x_shift, y_shift)
    2. scale:  p = p / (x_scale, y_scale)           ticks -> cm
    3. rotate: p = R(-rotation) @ p                  room axes -> global axes
    4. flip:   x -> -x if flip_x, y -> -y if flip_y

Heading follows the same rotate-then-flip order:
    theta = raw_theta - rotation
    theta = π - theta if flip_x
    theta = -theta     if flip_y
and is finally normalized into [0, 2π).
"""

import math
from typing import Tuple

import numpy as np

from posefusion.config import RoomCalibration
from posefusion.utils.angles import normalize_theta


def rotation_matrix_2d(angle: float) -> np.ndarray:
    """
    2D rotation matrix for a counter-clockwise rotation by ``angle`` radians.

    Example:
        >>> rotation_matrix_2d(np.pi / 2) @ np.array([1.0, 0.0])
        array([6.123234e-17, 1.000000e+00])
    """
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s], [s, c]])


def room_to_global_position(
    raw_x: float, raw_y: float, room: RoomCalibration
) -> Tuple[float, float]:
    """
    Convert a raw beacon position to global centimeters.

    Args:
        raw_x: Raw beacon x reading (ticks).
        raw_y: Raw beacon y reading (ticks).
        room: Calibration entry for the room the robot is in.

    Returns:
        (x, y) in the global frame (cm).
    """
    shifted = np.array([raw_x - room.x_shift, raw_y - room.y_shift])
    scaled = shifted / np.array([room.x_scale, room.y_scale])
    rotated = rotation_matrix_2d(-room.rotation_rad) @ scaled

    x, y = float(rotated[0]), float(rotated[1])
    if room.flip_x:
        x = -x
    if room.flip_y:
        y = -y
    return x, y


def room_to_global_theta(raw_theta: float, room: RoomCalibration) -> float:
    """
    Convert a raw beacon heading (radians) to a global heading in [0, 2π).

    Args:
        raw_theta: Raw beacon heading in radians.
        room: Calibration entry for the room the robot is in.

    Returns:
        Global heading in [0, 2π).
    """
    theta = raw_theta - room.rotation_rad
    if room.flip_x:
        theta = math.pi - theta
    if room.flip_y:
        theta = -theta
    return normalize_theta(theta)


def room_to_global(
    raw_x: float, raw_y: float, raw_theta: float, room: RoomCalibration
) -> Tuple[float, float, float]:
    """Convert a full raw beacon reading to a global (x, y, theta)."""
    x, y = room_to_global_position(raw_x, raw_y, room)
    return x, y, room_to_global_theta(raw_theta, room)


def global_to_room(
    x: float, y: float, theta: float, room: RoomCalibration
) -> Tuple[float, float, float]:
    """
    Inverse of room_to_global: global (x, y, theta) to raw beacon readings.

    Used to synthesize beacon readings for a known pose.

    Returns:
        Raw (x, y, theta); theta in radians, normalized into [0, 2π).
    """
    if room.flip_x:
        x = -x
        theta = math.pi - theta
    if room.flip_y:
        y = -y
        theta = -theta

    rotated = rotation_matrix_2d(room.rotation_rad) @ np.array([x, y])
    raw_x = rotated[0] * room.x_scale + room.x_shift
    raw_y = rotated[1] * room.y_scale + room.y_shift
    return float(raw_x), float(raw_y), normalize_theta(theta + room.rotation_rad)
