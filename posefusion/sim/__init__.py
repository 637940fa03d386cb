"""
Simulation utilities for running the pose pipeline without hardware.

Modules:
    robot_sim: Kinematic robot producing wheel ticks, beacon readings and
        random poll failures through the RobotInterface boundary
        (SimulatedRobotInterface), and a replay of scripted readings
        (ScriptedRobotInterface)
"""

from posefusion.sim.robot_sim import (
    ScriptedRobotInterface,
    SimulatedRobotInterface,
    wheel_ticks_for_motion,
)

__all__ = [
    "ScriptedRobotInterface",
    "SimulatedRobotInterface",
    "wheel_ticks_for_motion",
]
