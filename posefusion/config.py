"""Static configuration for the pose pipeline.

All configuration is held in frozen dataclasses validated in
``__post_init__`` and handed to the estimators at construction time; nothing
here is mutated at runtime.

Structures:
    RoomCalibration: Beacon-to-global transform constants for one room
    CalibrationTable: Calibration entries indexed by room id (0-3)
    RobotGeometry: Wheel layout and tick scaling
    FusionConfig: Default fusion uncertainties and initial covariance
    RobotConfig: Everything the controller needs, loadable from JSON

Default calibration values are the constants measured for the four beacon
rooms of the course arena. Rotation is the room's angle relative to room 2's
base, where 0 degrees is parallel to the far wall.
"""

import json
import math
import warnings
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union

DEFAULT_FAIL_LIMIT = 5
NUM_ROOMS = 4

# Measured beacon calibration, one entry per room
DEFAULT_ROOM_X_SHIFT = (199.0, 48.0, 229.0, 375.0)
DEFAULT_ROOM_Y_SHIFT = (154.0, 281.0, 449.0, 303.0)
DEFAULT_ROOM_X_SCALE = (45.0, 45.0, 45.0, 45.0)
DEFAULT_ROOM_Y_SCALE = (45.0, 45.0, 45.0, 45.0)
DEFAULT_ROOM_ROTATION_DEG = (350.7, 263.1, 5.7, 273.4)


def _check_finite(owner: str, **values: float) -> None:
    for name, value in values.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise TypeError(f"{owner}.{name} must be numeric, got {type(value).__name__}")
        if not math.isfinite(value):
            raise ValueError(f"{owner}.{name} must be finite, got {value}")


def _section(name: str, value: Any, cls: type) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"RobotConfig.{name} must be an object, got {type(value).__name__}")
    unknown = set(value) - set(cls.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown RobotConfig.{name} keys: {sorted(unknown)}")
    return value


@dataclass(frozen=True)
class RoomCalibration:
    """Beacon calibration for a single room.

    Attributes:
        x_shift: Raw beacon x (ticks) at the room origin.
        y_shift: Raw beacon y (ticks) at the room origin.
        x_scale: Raw beacon ticks per centimeter along x. Must be non-zero.
        y_scale: Raw beacon ticks per centimeter along y. Must be non-zero.
        rotation: Room rotation relative to the global frame (degrees).
        flip_x: Mirror the x-axis after rotation.
        flip_y: Mirror the y-axis after rotation.
    """

    x_shift: float
    y_shift: float
    x_scale: float
    y_scale: float
    rotation: float
    flip_x: bool = False
    flip_y: bool = False

    def __post_init__(self) -> None:
        _check_finite(
            "RoomCalibration",
            x_shift=self.x_shift,
            y_shift=self.y_shift,
            x_scale=self.x_scale,
            y_scale=self.y_scale,
            rotation=self.rotation,
        )
        if self.x_scale == 0 or self.y_scale == 0:
            raise ValueError(
                f"RoomCalibration scales must be non-zero, got "
                f"x_scale={self.x_scale}, y_scale={self.y_scale}"
            )
        if not isinstance(self.flip_x, bool) or not isinstance(self.flip_y, bool):
            raise TypeError("RoomCalibration flip flags must be bool")

    @property
    def rotation_rad(self) -> float:
        return math.radians(self.rotation)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoomCalibration":
        missing = {"x_shift", "y_shift", "x_scale", "y_scale", "rotation"} - set(data)
        if missing:
            raise ValueError(f"Calibration entry missing fields: {sorted(missing)}")
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Calibration entry has unknown fields: {sorted(unknown)}")
        return cls(**data)


@dataclass(frozen=True)
class CalibrationTable:
    """Calibration entries for every room, indexed by room id.

    Example:
        >>> table = CalibrationTable.default()
        >>> table[2].rotation
        5.7
    """

    rooms: Tuple[RoomCalibration, ...]

    def __post_init__(self) -> None:
        if len(self.rooms) != NUM_ROOMS:
            raise ValueError(
                f"CalibrationTable needs exactly {NUM_ROOMS} rooms, got {len(self.rooms)}"
            )
        for i, room in enumerate(self.rooms):
            if not isinstance(room, RoomCalibration):
                raise TypeError(f"Room {i} entry must be RoomCalibration, got {type(room).__name__}")

    def __getitem__(self, room_id: int) -> RoomCalibration:
        self.validate_room(room_id)
        return self.rooms[room_id]

    def __len__(self) -> int:
        return len(self.rooms)

    def validate_room(self, room_id: int) -> None:
        if isinstance(room_id, bool) or not isinstance(room_id, int):
            raise TypeError(f"Room id must be int, got {type(room_id).__name__}")
        if not 0 <= room_id < len(self.rooms):
            raise ValueError(f"Room id must be in [0, {len(self.rooms) - 1}], got {room_id}")

    @classmethod
    def default(cls) -> "CalibrationTable":
        return cls(
            rooms=tuple(
                RoomCalibration(
                    x_shift=DEFAULT_ROOM_X_SHIFT[i],
                    y_shift=DEFAULT_ROOM_Y_SHIFT[i],
                    x_scale=DEFAULT_ROOM_X_SCALE[i],
                    y_scale=DEFAULT_ROOM_Y_SCALE[i],
                    rotation=DEFAULT_ROOM_ROTATION_DEG[i],
                )
                for i in range(NUM_ROOMS)
            )
        )

    @classmethod
    def from_list(cls, entries: list) -> "CalibrationTable":
        return cls(rooms=tuple(RoomCalibration.from_dict(e) for e in entries))


@dataclass(frozen=True)
class RobotGeometry:
    """Wheel layout and encoder scaling.

    Attributes:
        ticks_per_cm: Wheel encoder ticks per centimeter of wheel travel.
        robot_diameter: Distance across the wheel circle (cm).
        left_wheel_angle: Left wheel mounting angle (degrees).
        right_wheel_angle: Right wheel mounting angle (degrees).
    """

    ticks_per_cm: float = 4.0
    robot_diameter: float = 29.0
    left_wheel_angle: float = 150.0
    right_wheel_angle: float = 30.0

    def __post_init__(self) -> None:
        _check_finite(
            "RobotGeometry",
            ticks_per_cm=self.ticks_per_cm,
            robot_diameter=self.robot_diameter,
            left_wheel_angle=self.left_wheel_angle,
            right_wheel_angle=self.right_wheel_angle,
        )
        if self.ticks_per_cm <= 0:
            raise ValueError(f"ticks_per_cm must be positive, got {self.ticks_per_cm}")
        if self.robot_diameter <= 0:
            raise ValueError(f"robot_diameter must be positive, got {self.robot_diameter}")

    def ticks_to_cm(self, ticks: float) -> float:
        return ticks / self.ticks_per_cm

    def cm_to_ticks(self, cm: float) -> float:
        return cm * self.ticks_per_cm


@dataclass(frozen=True)
class FusionConfig:
    """Default fusion uncertainties (standard deviations).

    Groups of three scalars for x, y and the sin(theta) channel.
    """

    process: Tuple[float, float, float] = (0.05, 0.05, 0.05)
    absolute: Tuple[float, float, float] = (0.05, 0.05, 0.05)
    odometry: Tuple[float, float, float] = (0.05, 0.05, 0.05)
    initial_covariance: float = 1.0e6

    def __post_init__(self) -> None:
        for name in ("process", "absolute", "odometry"):
            group = tuple(getattr(self, name))
            if len(group) != 3:
                raise ValueError(f"FusionConfig.{name} needs 3 values, got {len(group)}")
            for value in group:
                _check_finite("FusionConfig", **{name: value})
                if value <= 0:
                    raise ValueError(f"FusionConfig.{name} values must be > 0, got {group}")
            object.__setattr__(self, name, tuple(float(v) for v in group))
        _check_finite("FusionConfig", initial_covariance=self.initial_covariance)
        if self.initial_covariance <= 0:
            raise ValueError(
                f"initial_covariance must be positive, got {self.initial_covariance}"
            )

    @property
    def uncertainties(self) -> Tuple[float, ...]:
        """All nine scalars ordered process, absolute, odometry."""
        return self.process + self.absolute + self.odometry


@dataclass(frozen=True)
class RobotConfig:
    """Complete configuration consumed by PoseController.

    Attributes:
        room: Room id the robot operates in (index into calibration).
        fail_limit: Consecutive poll failures tolerated per cycle.
        geometry: Wheel geometry and tick scaling.
        calibration: Per-room beacon calibration.
        fusion: Default fusion uncertainties.
        wheel_filter: Coefficient resource for each wheel channel.
        beacon_x_filter: Coefficient resource for beacon x.
        beacon_y_filter: Coefficient resource for beacon y.
        beacon_theta_filter: Coefficient resource for beacon theta.
    """

    room: int = 0
    fail_limit: int = DEFAULT_FAIL_LIMIT
    geometry: RobotGeometry = field(default_factory=RobotGeometry)
    calibration: CalibrationTable = field(default_factory=CalibrationTable.default)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    wheel_filter: str = "we"
    beacon_x_filter: str = "ns_x"
    beacon_y_filter: str = "ns_y"
    beacon_theta_filter: str = "ns_theta"

    def __post_init__(self) -> None:
        self.calibration.validate_room(self.room)
        validate_fail_limit(self.fail_limit)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RobotConfig":
        """
        Build a config from a plain dictionary (e.g. parsed JSON).

        Unspecified keys fall back to defaults.

        Raises:
            ValueError: On unknown keys (top level or inside a section),
                malformed sections or out-of-range values.
            TypeError: On non-numeric values.
        """
        data = dict(data)
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown RobotConfig keys: {sorted(unknown)}")

        if "geometry" in data:
            data["geometry"] = RobotGeometry(**_section("geometry", data["geometry"], RobotGeometry))
        if "calibration" in data:
            if not isinstance(data["calibration"], list):
                raise ValueError(
                    f"RobotConfig.calibration must be a list of rooms, "
                    f"got {type(data['calibration']).__name__}"
                )
            data["calibration"] = CalibrationTable.from_list(data["calibration"])
        if "fusion" in data:
            data["fusion"] = FusionConfig(**{
                k: tuple(v) if isinstance(v, list) else v
                for k, v in _section("fusion", data["fusion"], FusionConfig).items()
            })
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["calibration"] = data["calibration"]["rooms"]
        return data


def validate_fail_limit(limit: int) -> int:
    """
    Check a fail-limit value.

    Raises:
        ValueError: If the limit is not a positive integer.
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"fail_limit must be an int, got {type(limit).__name__}")
    if limit < 1:
        raise ValueError(f"fail_limit must be >= 1, got {limit}")
    if limit > 100:
        warnings.warn(
            f"fail_limit of {limit} is unusually large; a dead link will stall "
            f"each cycle for {limit} polls.",
            UserWarning,
        )
    return limit


def load_config(path: Union[str, Path]) -> RobotConfig:
    """
    Load a RobotConfig from a JSON file.

    Args:
        path: JSON file path.

    Returns:
        Validated RobotConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is malformed or fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed config JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config root must be an object, got {type(data).__name__}")
    return RobotConfig.from_dict(data)


def save_config(config: RobotConfig, path: Union[str, Path]) -> None:
    """Write a RobotConfig to JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
