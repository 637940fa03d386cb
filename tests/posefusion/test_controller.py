"""Unit tests for posefusion.controller (update cycle and bounded retry)."""

import unittest

import pytest

from posefusion.config import RobotConfig
from posefusion.controller import CycleStatus, PoseController
from posefusion.sim import ScriptedRobotInterface
from posefusion.types import Pose


class FlakyLinkRobot(ScriptedRobotInterface):
    """Scripted robot whose first polls raise OSError."""

    def __init__(self, errors, **kwargs):
        super().__init__(**kwargs)
        self.errors = errors

    def poll(self):
        if self.errors > 0:
            self.errors -= 1
            self.polls += 1
            raise OSError("link down")
        return super().poll()


def make_controller(poll_results, fail_limit=5, **kwargs):
    robot = ScriptedRobotInterface(poll_results=poll_results, **kwargs)
    controller = PoseController(robot, RobotConfig(room=2, fail_limit=fail_limit))
    return robot, controller


class TestRetryBoundary(unittest.TestCase):
    """Exactly fail_limit consecutive failures fail the cycle."""

    def test_fail_limit_failures_fail_cycle(self):
        robot, controller = make_controller([False] * 5)
        before = controller.pose

        result = controller.step()

        self.assertEqual(result.status, CycleStatus.FAILED)
        self.assertFalse(result.ok)
        self.assertEqual(result.attempts, 5)
        self.assertEqual(robot.polls, 5)
        self.assertEqual(robot.wheel_reads, 0)
        self.assertEqual(robot.beacon_reads, 0)
        self.assertEqual(controller.fusion.fusions, 0)
        self.assertEqual(controller.pose, before)
        self.assertEqual(controller.failed_cycles, 1)

    def test_one_fewer_failure_succeeds(self):
        robot, controller = make_controller([False] * 4 + [True])

        result = controller.step()

        self.assertEqual(result.status, CycleStatus.SUCCESS)
        self.assertEqual(result.attempts, 5)
        self.assertEqual(robot.polls, 5)
        self.assertEqual(robot.wheel_reads, 3)
        self.assertEqual(robot.beacon_reads, 3)
        self.assertEqual(controller.fusion.fusions, 1)
        self.assertEqual(controller.failed_cycles, 0)

    def test_first_poll_success(self):
        robot, controller = make_controller([True])
        self.assertTrue(controller.update())
        self.assertEqual(robot.polls, 1)

    def test_counter_is_fresh_each_cycle(self):
        robot, controller = make_controller([False] * 4 + [True] + [False] * 4 + [True])
        self.assertTrue(controller.update())
        self.assertTrue(controller.update())
        self.assertEqual(robot.polls, 10)
        self.assertEqual(controller.fusion.fusions, 2)

    def test_fail_limit_one(self):
        robot, controller = make_controller([False, True], fail_limit=1)
        self.assertFalse(controller.update())
        self.assertEqual(robot.polls, 1)
        self.assertTrue(controller.update())
        self.assertEqual(robot.polls, 2)

    def test_os_error_counts_as_failure(self):
        robot = FlakyLinkRobot(errors=2)
        controller = PoseController(robot, RobotConfig(fail_limit=3))
        result = controller.step()
        self.assertTrue(result.ok)
        self.assertEqual(result.attempts, 3)

    def test_os_error_exhausts_limit(self):
        robot = FlakyLinkRobot(errors=3)
        controller = PoseController(robot, RobotConfig(fail_limit=3))
        result = controller.step()
        self.assertEqual(result.status, CycleStatus.FAILED)
        self.assertEqual(robot.polls, 3)


class TestPoseController:

    def test_failed_cycle_keeps_last_pose(self):
        robot, controller = make_controller(
            [True] + [False] * 5,
            wheel_deltas=[(0, 0, 40)],
            beacon=[(500.0, 600.0, 1.0)],
        )
        assert controller.update()
        published = controller.pose
        assert not controller.update()
        assert controller.pose == published

    def test_pose_is_fused_estimate(self):
        robot, controller = make_controller(
            [True], wheel_deltas=[(10, 20, 30)], beacon=[(300.0, 500.0, 0.4)],
        )
        controller.update()
        assert controller.pose == controller.fusion.best_pose
        assert controller.odometry_pose != Pose()
        assert controller.beacon_pose != Pose()

    def test_pose_is_a_copy(self):
        _, controller = make_controller([True])
        pose = controller.pose
        pose.set(99.0, 99.0, 1.0)
        assert controller.pose == Pose()

    def test_initial_pose(self):
        robot = ScriptedRobotInterface()
        controller = PoseController(robot, initial_pose=Pose(5.0, 6.0, 0.5))
        assert controller.pose == Pose(5.0, 6.0, 0.5)
        assert controller.odometry_pose == Pose(5.0, 6.0, 0.5)

    def test_fail_limit_setter(self):
        _, controller = make_controller([])
        controller.fail_limit = 2
        assert controller.fail_limit == 2
        with pytest.raises(ValueError):
            controller.fail_limit = 0
        assert controller.fail_limit == 2

    def test_bad_config_rejected(self):
        with pytest.raises(FileNotFoundError):
            PoseController(ScriptedRobotInterface(), RobotConfig(wheel_filter="missing"))

    def test_missing_explicit_filter_path_rejected(self, tmp_path):
        config = RobotConfig(wheel_filter=str(tmp_path / "custom" / "ns_x.ffc"))
        with pytest.raises(FileNotFoundError):
            PoseController(ScriptedRobotInterface(), config)

    def test_non_finite_beacon_fails_cycle_untouched(self):
        robot, controller = make_controller(
            [True, True],
            wheel_deltas=[(10, 20, 30)],
            beacon=[(300.0, float("inf"), 0.4), (300.0, 500.0, 0.4)],
        )
        result = controller.step()

        assert result.status is CycleStatus.FAILED
        assert controller.failed_cycles == 1
        assert controller.odometry_pose == Pose()
        assert controller.beacon_pose == Pose()
        assert controller.pose == Pose()
        assert controller.odometry.total_rotation == 0.0
        for f in controller.odometry.filters.values():
            assert not f.window.any()
        assert not controller.beacon.x_filter.window.any()
        assert controller.fusion.fusions == 0

        assert controller.update()
        assert controller.fusion.fusions == 1

    def test_non_finite_wheel_delta_fails_cycle(self):
        robot, controller = make_controller([True], wheel_deltas=[(0.0, float("nan"), 0.0)])
        result = controller.step()
        assert result.status is CycleStatus.FAILED
        assert controller.odometry_pose == Pose()
        assert robot.beacon_reads == 0

    def test_run(self):
        robot, controller = make_controller([True, False, False, True], fail_limit=2)
        results = []
        successes = controller.run(max_cycles=3, on_cycle=results.append)
        assert successes == 2
        assert [r.status for r in results] == [
            CycleStatus.SUCCESS, CycleStatus.FAILED, CycleStatus.SUCCESS,
        ]
        assert controller.cycles == 3
        assert controller.failed_cycles == 1
        assert robot.polls == 4
