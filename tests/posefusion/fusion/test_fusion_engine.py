"""Unit tests for posefusion.fusion (engine and Kalman track update)."""

import math
import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from posefusion.config import FusionConfig
from posefusion.fusion import (
    FusionEngine,
    KalmanTrackUpdate,
    TrackUpdate,
    pose_to_fusion_vector,
    recover_heading,
)
from posefusion.types import Pose


class RecordingStrategy(TrackUpdate):
    """Averages the two measurements and records what it was given."""

    def __init__(self):
        self.calls = []
        self.resets = []

    def update(self, absolute, odometry, velocity, uncertainties, track):
        self.calls.append((absolute.copy(), odometry.copy(), velocity.copy(), uncertainties.copy()))
        track[0:3] = (absolute + odometry) / 2.0
        track[3:6] = velocity

    def reset(self, initial):
        self.resets.append(np.array(initial))


class TestHeadingChannel(unittest.TestCase):

    def test_fusion_vector_uses_sine(self):
        assert_allclose(pose_to_fusion_vector(Pose(1.0, 2.0, 0.5)), [1.0, 2.0, math.sin(0.5)])

    def test_seam_maps_to_same_value(self):
        near_zero = pose_to_fusion_vector(Pose(0.0, 0.0, 1e-9))
        near_two_pi = pose_to_fusion_vector(Pose(0.0, 0.0, 2 * math.pi - 1e-9))
        self.assertAlmostEqual(near_zero[2], -near_two_pi[2])
        self.assertAlmostEqual(near_zero[2], 0.0)

    def test_recover_first_quadrant(self):
        self.assertAlmostEqual(recover_heading(math.sin(0.3)), 0.3)

    def test_recover_fourth_quadrant(self):
        self.assertAlmostEqual(recover_heading(math.sin(5.5)), 5.5)

    def test_recover_mirrors_back_half(self):
        """Headings in (π/2, 3π/2) come back mirrored as π - θ."""
        self.assertAlmostEqual(recover_heading(math.sin(2.5)), math.pi - 2.5)
        self.assertAlmostEqual(recover_heading(math.sin(4.0)), 3 * math.pi - 4.0)

    def test_recover_clips(self):
        self.assertAlmostEqual(recover_heading(1.0 + 1e-12), math.pi / 2)
        self.assertAlmostEqual(recover_heading(-1.0 - 1e-12), 3 * math.pi / 2)


class TestFusionEngine:

    def test_identical_inputs_return_input(self):
        best = Pose()
        engine = FusionEngine(best)
        pose = Pose(120.0, -40.0, 0.5)
        result = engine.fuse(pose, pose.copy())
        assert result is best
        assert best.isclose(pose, atol=1e-3)

    def test_identical_inputs_fourth_quadrant(self):
        best = Pose()
        engine = FusionEngine(best)
        pose = Pose(3.0, 4.0, 5.9)
        engine.fuse(pose, pose.copy())
        assert best.isclose(pose, atol=1e-3)

    def test_back_half_heading_is_mirrored(self):
        best = Pose()
        engine = FusionEngine(best)
        engine.fuse(Pose(5.0, 5.0, 2.5), Pose(5.0, 5.0, 2.5))
        assert best.theta == pytest.approx(math.pi - 2.5, abs=1e-3)
        assert (best.x, best.y) == pytest.approx((5.0, 5.0), abs=1e-3)

    def test_heading_pi_recovers_zero(self):
        best = Pose()
        engine = FusionEngine(best)
        engine.fuse(Pose(0.0, 0.0, math.pi), Pose(0.0, 0.0, math.pi))
        assert best.isclose(Pose(0.0, 0.0, 0.0), atol=1e-3)

    def test_inputs_are_not_written(self):
        best = Pose()
        absolute = Pose(10.0, 0.0, 0.1)
        odometry = Pose(12.0, 2.0, 0.3)
        engine = FusionEngine(best)
        engine.fuse(absolute, odometry)
        assert absolute == Pose(10.0, 0.0, 0.1)
        assert odometry == Pose(12.0, 2.0, 0.3)
        assert 10.0 < best.x < 12.0
        assert engine.fusions == 1

    def test_weights_follow_uncertainties(self):
        best = Pose()
        engine = FusionEngine(best)
        engine.set_absolute_uncertainty(0.01, 0.01, 0.01)
        engine.set_odometry_uncertainty(10.0, 10.0, 10.0)
        engine.fuse(Pose(100.0, 100.0, 0.2), Pose(0.0, 0.0, 0.2))
        assert best.x == pytest.approx(100.0, abs=0.01)
        assert best.y == pytest.approx(100.0, abs=0.01)

    def test_group_setters_touch_only_their_group(self):
        engine = FusionEngine(Pose())
        engine.set_process_uncertainty(1.0, 2.0, 3.0)
        assert_allclose(engine.uncertainties, [1, 2, 3] + [0.05] * 6)
        engine.set_absolute_uncertainty(4.0, 5.0, 6.0)
        assert_allclose(engine.uncertainties, [1, 2, 3, 4, 5, 6] + [0.05] * 3)
        engine.set_odometry_uncertainty(7.0, 8.0, 9.0)
        assert_allclose(engine.uncertainties, np.arange(1.0, 10.0))

    def test_set_uncertainty_all_nine(self):
        engine = FusionEngine(Pose())
        engine.set_uncertainty(*range(1, 10))
        assert_allclose(engine.uncertainties, np.arange(1.0, 10.0))

    @pytest.mark.parametrize("values", [
        (0.1,) * 8,
        (0.1,) * 10,
        (0.1,) * 8 + (0.0,),
        (0.1,) * 8 + (-1.0,),
        (0.1,) * 8 + (float("nan"),),
    ])
    def test_set_uncertainty_rejects(self, values):
        engine = FusionEngine(Pose())
        with pytest.raises(ValueError):
            engine.set_uncertainty(*values)
        assert_allclose(engine.uncertainties, [0.05] * 9)

    def test_uncertainties_from_config(self):
        config = FusionConfig(process=(0.1, 0.2, 0.3))
        engine = FusionEngine(Pose(), config=config)
        assert_allclose(engine.uncertainties[0:3], [0.1, 0.2, 0.3])

    def test_uncertainties_property_is_copy(self):
        engine = FusionEngine(Pose())
        engine.uncertainties[:] = 99.0
        assert_allclose(engine.uncertainties, [0.05] * 9)

    def test_velocity_reaches_strategy(self):
        strategy = RecordingStrategy()
        engine = FusionEngine(Pose(), strategy=strategy)
        engine.set_velocity(1.0, -2.0, 0.5)
        engine.fuse(Pose(2.0, 2.0, 0.0), Pose(4.0, 4.0, 0.0))

        absolute, odometry, velocity, uncertainties = strategy.calls[0]
        assert_allclose(absolute, [2.0, 2.0, 0.0])
        assert_allclose(odometry, [4.0, 4.0, 0.0])
        assert_allclose(velocity, [1.0, -2.0, 0.5])
        assert_allclose(uncertainties, [0.05] * 9)
        assert_allclose(engine.track[3:6], [1.0, -2.0, 0.5])
        assert engine.best_pose == Pose(3.0, 3.0, 0.0)

    def test_set_velocity_rejects_non_finite(self):
        engine = FusionEngine(Pose())
        with pytest.raises(ValueError):
            engine.set_velocity(float("inf"), 0.0, 0.0)

    def test_reset(self):
        strategy = RecordingStrategy()
        engine = FusionEngine(Pose(), strategy=strategy)
        engine.set_velocity(1.0, 1.0, 0.0)
        engine.fuse(Pose(2.0, 2.0, 0.0), Pose(4.0, 4.0, 0.0))
        engine.reset(Pose(7.0, 8.0, 0.25))
        assert engine.best_pose == Pose(7.0, 8.0, 0.25)
        assert_array_equal(engine.track, np.zeros(9))
        assert_array_equal(engine.velocity, np.zeros(3))
        assert_allclose(strategy.resets[-1], [7.0, 8.0, math.sin(0.25)])


class TestKalmanTrackUpdate:

    def test_track_layout(self):
        strategy = KalmanTrackUpdate(initial=np.zeros(3))
        track = np.zeros(9)
        velocity = np.array([0.5, 0.0, 0.0])
        strategy.update(
            np.array([1.0, 2.0, 0.1]),
            np.array([1.0, 2.0, 0.1]),
            velocity,
            np.full(9, 0.1),
            track,
        )
        assert_allclose(track[0:3], [1.0, 2.0, 0.1], atol=1e-6)
        assert_allclose(track[3:6], velocity)
        assert np.all(track[6:9] > 0)
        assert np.all(track[6:9] < 0.01)

    def test_velocity_drives_prediction(self):
        strategy = KalmanTrackUpdate(initial=np.zeros(3), initial_covariance=1e-4)
        track = np.zeros(9)
        sigma = np.array([0.01] * 3 + [100.0] * 6)
        strategy.update(np.zeros(3), np.zeros(3), np.array([3.0, 0.0, 0.0]), sigma, track)
        # Prediction dominates when the sensors are very noisy
        assert track[0] == pytest.approx(3.0, abs=0.01)

    def test_rejects_bad_shapes(self):
        with pytest.raises(ValueError):
            KalmanTrackUpdate(initial=np.zeros(4))
        strategy = KalmanTrackUpdate()
        with pytest.raises(ValueError):
            strategy.update(np.zeros(3), np.zeros(3), np.zeros(3), np.ones(6), np.zeros(9))

    def test_rejects_bad_parameters(self):
        with pytest.raises(ValueError):
            KalmanTrackUpdate(initial_covariance=0.0)
        with pytest.raises(ValueError):
            KalmanTrackUpdate(dt=-1.0)
