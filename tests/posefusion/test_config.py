"""Unit tests for posefusion.config (calibration table and robot config)."""

import json
import unittest
import warnings

import pytest

from posefusion.config import (
    DEFAULT_FAIL_LIMIT,
    CalibrationTable,
    FusionConfig,
    RobotConfig,
    RobotGeometry,
    RoomCalibration,
    load_config,
    save_config,
    validate_fail_limit,
)


class TestRoomCalibration(unittest.TestCase):
    """Test suite for RoomCalibration validation."""

    def test_valid_entry(self) -> None:
        room = RoomCalibration(199, 154, 45, 45, 350.7)
        self.assertFalse(room.flip_x)
        self.assertFalse(room.flip_y)
        self.assertAlmostEqual(room.rotation_rad, 6.120870, places=5)

    def test_zero_scale_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RoomCalibration(0, 0, 0, 45, 0)

    def test_non_finite_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RoomCalibration(float("nan"), 0, 45, 45, 0)

    def test_non_bool_flip_rejected(self) -> None:
        with self.assertRaises(TypeError):
            RoomCalibration(0, 0, 45, 45, 0, flip_x=1)

    def test_from_dict_missing_field(self) -> None:
        with self.assertRaises(ValueError):
            RoomCalibration.from_dict({"x_shift": 1, "y_shift": 2, "x_scale": 3})

    def test_from_dict_unknown_field(self) -> None:
        with self.assertRaises(ValueError):
            RoomCalibration.from_dict({
                "x_shift": 1, "y_shift": 2, "x_scale": 3, "y_scale": 3,
                "rotation": 0, "zoom": 2,
            })

    def test_frozen(self) -> None:
        room = RoomCalibration(0, 0, 45, 45, 0)
        with self.assertRaises(Exception):
            room.x_shift = 5


class TestCalibrationTable(unittest.TestCase):
    """Test suite for CalibrationTable."""

    def test_default_constants(self) -> None:
        table = CalibrationTable.default()
        self.assertEqual(len(table), 4)
        self.assertEqual([r.x_shift for r in table.rooms], [199, 48, 229, 375])
        self.assertEqual([r.y_shift for r in table.rooms], [154, 281, 449, 303])
        self.assertEqual([r.rotation for r in table.rooms], [350.7, 263.1, 5.7, 273.4])

    def test_unknown_room(self) -> None:
        table = CalibrationTable.default()
        with self.assertRaises(ValueError):
            table[4]
        with self.assertRaises(ValueError):
            table[-1]

    def test_incomplete_table_rejected(self) -> None:
        rooms = CalibrationTable.default().rooms[:3]
        with self.assertRaises(ValueError):
            CalibrationTable(rooms=rooms)


class TestRobotConfig:
    """Test suite for RobotConfig and JSON loading."""

    def test_defaults(self):
        config = RobotConfig()
        assert config.room == 0
        assert config.fail_limit == DEFAULT_FAIL_LIMIT == 5
        assert config.fusion.uncertainties == (0.05,) * 9

    def test_bad_room(self):
        with pytest.raises(ValueError):
            RobotConfig(room=7)

    def test_bad_fail_limit(self):
        with pytest.raises(ValueError):
            RobotConfig(fail_limit=0)

    def test_large_fail_limit_warns(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            assert validate_fail_limit(500) == 500
        assert any(issubclass(w.category, UserWarning) for w in caught)

    def test_fusion_uncertainty_must_be_positive(self):
        with pytest.raises(ValueError):
            FusionConfig(absolute=(0.05, 0.0, 0.05))

    def test_geometry_validation(self):
        with pytest.raises(ValueError):
            RobotGeometry(ticks_per_cm=0)
        assert RobotGeometry(ticks_per_cm=4.0).ticks_to_cm(10.0) == 2.5

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValueError):
            RobotConfig.from_dict({"rooom": 1})

    @pytest.mark.parametrize("data", [
        {"geometry": {"ticks_per_cm": 4.0, "wheel_count": 3}},
        {"fusion": {"process": [0.1, 0.1, 0.1], "gain": 2}},
        {"geometry": [4.0, 29.0]},
        {"calibration": {"x_shift": 1}},
    ])
    def test_from_dict_bad_sections(self, data):
        with pytest.raises(ValueError):
            RobotConfig.from_dict(data)

    def test_save_load_round_trip(self, tmp_path):
        config = RobotConfig(
            room=2,
            fail_limit=3,
            geometry=RobotGeometry(ticks_per_cm=5.0),
            fusion=FusionConfig(process=(0.1, 0.1, 0.2)),
        )
        path = tmp_path / "robot.json"
        save_config(config, path)
        assert load_config(path) == config

    def test_load_partial(self, tmp_path):
        path = tmp_path / "robot.json"
        path.write_text(json.dumps({"room": 3, "fusion": {"odometry": [0.2, 0.2, 0.1]}}))
        config = load_config(path)
        assert config.room == 3
        assert config.fusion.odometry == (0.2, 0.2, 0.1)
        assert config.calibration == CalibrationTable.default()

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.json")

    def test_load_malformed_json(self, tmp_path):
        path = tmp_path / "robot.json"
        path.write_text("{room: 1")
        with pytest.raises(ValueError, match="Malformed"):
            load_config(path)

    def test_load_incomplete_calibration(self, tmp_path):
        path = tmp_path / "robot.json"
        path.write_text(json.dumps({"calibration": [{"x_shift": 1}]}))
        with pytest.raises(ValueError):
            load_config(path)
