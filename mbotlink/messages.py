"""Fixed-layout binary messages exchanged with the robot."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, fields
from enum import IntEnum
from itertools import islice
from typing import Any, ClassVar

_SCALAR = "scalar"
_ARRAY = "array"
_TEXT = "text"
_NESTED = "nested"


class Topic(IntEnum):
    """Topic identifiers carried in packet headers."""

    MBOT_TIMESYNC = 201
    MBOT_ODOMETRY = 210
    MBOT_ODOMETRY_RESET = 211
    MBOT_VEL_CMD = 214
    MBOT_IMU = 220
    MBOT_ENCODERS = 221
    MBOT_ENCODERS_RESET = 222
    MBOT_MOTOR_PWM_CMD = 230
    MBOT_MOTOR_VEL_CMD = 231
    MBOT_MOTOR_VEL = 232
    MBOT_MOTOR_PWM = 233
    MBOT_VEL = 234
    MBOT_LIDAR_SCAN = 240
    MBOT_CAMERA_FRAME = 241
    MBOT_ERROR = 250


def _zero(code: str) -> Any:
    if code in "fd":
        return 0.0
    if code == "?":
        return False
    return 0


def _scalar(code: str) -> Any:
    return field(default=_zero(code), metadata={"kind": _SCALAR, "code": code})


def _array(code: str, count: int) -> Any:
    zero = _zero(code)
    return field(
        default_factory=lambda: (zero,) * count,
        metadata={"kind": _ARRAY, "code": code, "count": count},
    )


def _text(length: int) -> Any:
    return field(default="", metadata={"kind": _TEXT, "count": length})


def _nested(message_type: type) -> Any:
    return field(
        default_factory=message_type,
        metadata={"kind": _NESTED, "type": message_type},
    )


def _layout_fields(cls: type) -> list:
    return [f for f in fields(cls) if "kind" in f.metadata]


_STRUCTS: dict[type, struct.Struct] = {}


def _struct_of(cls: type) -> struct.Struct:
    cached = _STRUCTS.get(cls)
    if cached is not None:
        return cached
    parts = ["<"]
    for f in _layout_fields(cls):
        meta = f.metadata
        kind = meta["kind"]
        if kind == _SCALAR:
            parts.append(meta["code"])
        elif kind == _ARRAY:
            parts.append(f"{meta['count']}{meta['code']}")
        elif kind == _TEXT:
            parts.append(f"{meta['count']}s")
        else:
            parts.append(f"{meta['type'].size()}s")
    compiled = struct.Struct("".join(parts))
    _STRUCTS[cls] = compiled
    return compiled


@dataclass
class Message:
    """Base of all packed little-endian messages."""

    def __post_init__(self) -> None:
        for f in _layout_fields(type(self)):
            if f.metadata["kind"] == _ARRAY:
                setattr(self, f.name, tuple(getattr(self, f.name)))

    @classmethod
    def size(cls) -> int:
        """Number of bytes of the packed fixed layout."""
        return _struct_of(cls).size

    def pack(self) -> bytes:
        """Serialise the message to its wire layout."""
        values: list[Any] = []
        for f in _layout_fields(type(self)):
            meta = f.metadata
            kind = meta["kind"]
            value = getattr(self, f.name)
            if kind == _ARRAY:
                if len(value) != meta["count"]:
                    raise ValueError(
                        f"{f.name} needs {meta['count']} items, got {len(value)}"
                    )
                values.extend(value)
            elif kind == _TEXT:
                encoded = value.encode("utf-8")
                if len(encoded) > meta["count"]:
                    raise ValueError(
                        f"{f.name} is longer than {meta['count']} bytes"
                    )
                values.append(encoded)
            elif kind == _NESTED:
                values.append(value.pack())
            else:
                values.append(value)
        try:
            return _struct_of(type(self)).pack(*values)
        except struct.error as exc:
            raise ValueError(f"cannot pack {type(self).__name__}: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> Message:
        """Build a message from the first ``size()`` bytes of ``data``."""
        layout = _struct_of(cls)
        if len(data) < layout.size:
            raise ValueError(
                f"{cls.__name__} needs {layout.size} bytes, got {len(data)}"
            )
        raw = iter(layout.unpack_from(data))
        kwargs: dict[str, Any] = {}
        for f in _layout_fields(cls):
            meta = f.metadata
            kind = meta["kind"]
            if kind == _ARRAY:
                kwargs[f.name] = tuple(islice(raw, meta["count"]))
            elif kind == _TEXT:
                kwargs[f.name] = (
                    next(raw).split(b"\0", 1)[0].decode("utf-8", "replace")
                )
            elif kind == _NESTED:
                kwargs[f.name] = meta["type"].unpack(next(raw))
            else:
                kwargs[f.name] = next(raw)
        return cls(**kwargs)


@dataclass
class Pose2D(Message):
    utime: int = _scalar("q")
    x: float = _scalar("f")
    y: float = _scalar("f")
    theta: float = _scalar("f")


@dataclass
class MotorVelocity(Message):
    utime: int = _scalar("q")
    velocity: tuple = _array("f", 3)


@dataclass
class Twist3D(Message):
    utime: int = _scalar("q")
    vx: float = _scalar("f")
    vy: float = _scalar("f")
    vz: float = _scalar("f")
    wx: float = _scalar("f")
    wy: float = _scalar("f")
    wz: float = _scalar("f")


@dataclass
class Imu(Message):
    utime: int = _scalar("q")
    gyro: tuple = _array("f", 3)
    accel: tuple = _array("f", 3)
    mag: tuple = _array("f", 3)
    angles_rpy: tuple = _array("f", 3)
    angles_quat: tuple = _array("f", 4)
    temp: float = _scalar("f")


@dataclass
class SlamStatus(Message):
    utime: int = _scalar("q")
    slam_mode: int = _scalar("i")
    map_path: str = _text(256)


@dataclass
class MotorPwm(Message):
    utime: int = _scalar("q")
    pwm: tuple = _array("f", 3)


@dataclass
class Pose3D(Message):
    utime: int = _scalar("q")
    x: float = _scalar("f")
    y: float = _scalar("f")
    z: float = _scalar("f")
    angles_rpy: tuple = _array("f", 3)
    angles_quat: tuple = _array("f", 4)


@dataclass
class Timestamp(Message):
    utime: int = _scalar("q")


@dataclass
class Particle(Message):
    pose: Pose2D = _nested(Pose2D)
    parent_pose: Pose2D = _nested(Pose2D)
    weight: float = _scalar("d")


@dataclass
class Twist2D(Message):
    utime: int = _scalar("q")
    vx: float = _scalar("f")
    vy: float = _scalar("f")
    wz: float = _scalar("f")


@dataclass
class Encoders(Message):
    utime: int = _scalar("q")
    ticks: tuple = _array("q", 3)
    delta_ticks: tuple = _array("i", 3)
    delta_time: int = _scalar("i")


@dataclass
class Joy(Message):
    timestamp: int = _scalar("q")
    left_analog_X: float = _scalar("f")
    left_analog_Y: float = _scalar("f")
    right_analog_X: float = _scalar("f")
    right_analog_Y: float = _scalar("f")
    right_trigger: float = _scalar("f")
    left_trigger: float = _scalar("f")
    dpad_X: float = _scalar("f")
    dpad_Y: float = _scalar("f")
    button_A: int = _scalar("b")
    button_B: int = _scalar("b")
    button_2: int = _scalar("b")
    button_X: int = _scalar("b")
    button_Y: int = _scalar("b")
    button_5: int = _scalar("b")
    button_l1: int = _scalar("b")
    button_r1: int = _scalar("b")
    button_l2: int = _scalar("b")
    button_r2: int = _scalar("b")
    button_select: int = _scalar("b")
    button_start: int = _scalar("b")
    button_12: int = _scalar("b")
    button_left_analog: int = _scalar("b")
    button_right_analog: int = _scalar("b")
    button_15: int = _scalar("b")


@dataclass
class Point3D(Message):
    utime: int = _scalar("q")
    x: float = _scalar("f")
    y: float = _scalar("f")
    z: float = _scalar("f")


@dataclass
class MessageReceived(Message):
    utime: int = _scalar("q")
    creation_time: int = _scalar("q")
    channel: str = _text(256)


@dataclass
class SlamReset(Message):
    utime: int = _scalar("q")
    slam_mode: int = _scalar("i")
    slam_map_location: str = _text(256)
    retain_pose: bool = _scalar("?")


@dataclass
class LidarScan(Message):
    utime: int = _scalar("q")
    ranges: tuple = _array("H", 360)


@dataclass
class MbotError(Message):
    utime: int = _scalar("q")
    error_code: int = _scalar("H")


@dataclass
class CameraFrame(Message):
    """Camera frame: a fixed header followed by raw image bytes."""

    utime: int = _scalar("q")
    width: int = _scalar("H")
    height: int = _scalar("H")
    format: int = _scalar("B")
    data: bytes = b""

    HEADER_ONLY: ClassVar[bool] = True

    def pack(self) -> bytes:
        """Serialise the header followed by the image bytes."""
        return super().pack() + bytes(self.data)

    @classmethod
    def unpack(cls, data: bytes) -> CameraFrame:
        """Parse the header and take every following byte as image data."""
        frame = super().unpack(data)
        frame.data = bytes(data[cls.size():])
        return frame