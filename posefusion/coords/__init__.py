"""Coordinate frame transformations for beacon readings.

Converts raw room-relative north-star readings into the shared global frame
using the per-room calibration table.
"""

from posefusion.coords.room_frame import (
    global_to_room,
    room_to_global,
    room_to_global_position,
    room_to_global_theta,
    rotation_matrix_2d,
)

__all__ = [
    "global_to_room",
    "room_to_global",
    "room_to_global_position",
    "room_to_global_theta",
    "rotation_matrix_2d",
]
