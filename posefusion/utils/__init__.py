"""
Utility functions for the pose pipeline.

This module provides angle normalization helpers shared by the pose,
odometry, beacon and fusion modules.
"""

from .angles import (
    TWO_PI,
    normalize_theta,
    wrap_angle,
    angle_diff,
)

__all__ = [
    'TWO_PI',
    'normalize_theta',
    'wrap_angle',
    'angle_diff',
]
