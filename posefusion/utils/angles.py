"""
Angle normalization and manipulation utilities.

Headings in this package live in [0, 2π), the convention of the robot's
beacon sensor and of the exposed pose. Signed differences between headings
are wrapped to [-π, π] instead.

Critical for:
- Pose heading after every mutation
- Heading recovered from the fused sin(theta) channel
- Comparing headings across the 0/2π seam
"""

import math
import numpy as np

TWO_PI = 2.0 * math.pi


def normalize_theta(theta: float) -> float:
    """
    Normalize angle to [0, 2π) range.

    Negative inputs wrap to the top of the range (-0.1 -> 2π - 0.1), they are
    never left negative.

    Args:
        theta: Angle in radians (any finite value)

    Returns:
        Normalized angle in range [0, 2π)

    Example:
        >>> normalize_theta(-np.pi / 2)
        4.71238898038469
        >>> normalize_theta(5 * np.pi)
        3.141592653589793
    """
    result = math.fmod(theta, TWO_PI)
    if result < 0.0:
        result += TWO_PI
    # -1e-20 + 2π rounds back up to 2π
    if result >= TWO_PI:
        result = 0.0
    return result + 0.0


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to [-π, π] range.

    Args:
        angle: Angle in radians (can be any value)

    Returns:
        Wrapped angle in range [-π, π]
    """
    # Use atan2 trick for robust wrapping
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def angle_diff(angle1: float, angle2: float) -> float:
    """
    Compute the shortest signed angular difference angle1 - angle2.

    Args:
        angle1: First angle in radians
        angle2: Second angle in radians

    Returns:
        Shortest signed difference in [-π, π]

    Example:
        >>> angle_diff(0.1, 2 * np.pi - 0.1)
        0.2
    """
    return wrap_angle(angle1 - angle2)

