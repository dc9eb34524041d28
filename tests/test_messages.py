import pytest

from mbotlink.messages import (
    CameraFrame,
    Encoders,
    Imu,
    Joy,
    LidarScan,
    MbotError,
    MessageReceived,
    MotorPwm,
    MotorVelocity,
    Particle,
    Point3D,
    Pose2D,
    Pose3D,
    SlamReset,
    SlamStatus,
    Timestamp,
    Topic,
    Twist2D,
    Twist3D,
)


def _check_message(cls, message):
    packed = message.pack()
    assert cls.unpack(packed) == message
    assert len(packed) == cls.size()
    default = cls()
    assert cls.unpack(default.pack()) == default


def test_pose2d_round_trip():
    _check_message(Pose2D, Pose2D(utime=12345, x=1.5, y=-2.25, theta=0.5))


def test_motor_velocity_round_trip():
    _check_message(MotorVelocity, MotorVelocity(utime=7, velocity=(1.0, -1.0, 0.25)))


def test_twist3d_round_trip():
    _check_message(Twist3D, Twist3D(utime=9, vx=1.0, vy=2.0, vz=3.0, wx=-1.0, wy=-2.0, wz=-3.0))


def test_imu_round_trip():
    message = Imu(
        utime=11,
        gyro=(0.5, 1.0, 1.5),
        accel=(0.0, 9.75, -1.0),
        mag=(2.0, 4.0, 8.0),
        angles_rpy=(0.125, 0.25, 0.5),
        angles_quat=(1.0, 0.0, 0.0, 0.0),
        temp=25.5,
    )
    _check_message(Imu, message)


def test_slam_status_round_trip():
    _check_message(SlamStatus, SlamStatus(utime=3, slam_mode=2, map_path="/tmp/map.map"))


def test_motor_pwm_round_trip():
    _check_message(MotorPwm, MotorPwm(utime=4, pwm=(0.5, -0.5, 1.0)))


def test_pose3d_round_trip():
    message = Pose3D(
        utime=5, x=1.0, y=2.0, z=3.0, angles_rpy=(0.5, 0.5, 0.5), angles_quat=(0.5, 0.5, 0.5, 0.5)
    )
    _check_message(Pose3D, message)


def test_timestamp_round_trip():
    _check_message(Timestamp, Timestamp(utime=-42))


def test_particle_round_trip():
    message = Particle(pose=Pose2D(1, 1.0, 2.0, 3.0), parent_pose=Pose2D(2, 4.0, 5.0, 6.0), weight=0.125)
    _check_message(Particle, message)


def test_twist2d_round_trip():
    _check_message(Twist2D, Twist2D(utime=6, vx=0.25, vy=0.0, wz=-0.75))


def test_encoders_round_trip():
    message = Encoders(utime=8, ticks=(100, -200, 300), delta_ticks=(1, -2, 3), delta_time=20000)
    _check_message(Encoders, message)


def test_joy_round_trip():
    message = Joy(timestamp=10, left_analog_X=0.5, dpad_Y=-1.0, button_A=1, button_start=-1, button_15=127)
    _check_message(Joy, message)


def test_point3d_round_trip():
    _check_message(Point3D, Point3D(utime=12, x=-1.0, y=0.5, z=8.0))


def test_message_received_round_trip():
    _check_message(MessageReceived, MessageReceived(utime=13, creation_time=14, channel="MBOT_ODOMETRY"))


def test_slam_reset_round_trip():
    message = SlamReset(utime=15, slam_mode=3, slam_map_location="maps/lab.map", retain_pose=True)
    _check_message(SlamReset, message)


def test_lidar_scan_round_trip():
    _check_message(LidarScan, LidarScan(utime=16, ranges=tuple(range(0, 720, 2))))


def test_mbot_error_round_trip():
    _check_message(MbotError, MbotError(utime=17, error_code=65535))


def test_pose2d_size():
    assert Pose2D.size() == 20


def test_timestamp_wire_bytes_little_endian():
    assert Timestamp(utime=1).pack() == b"\x01" + b"\x00" * 7


def test_slam_reset_is_packed_without_padding():
    assert SlamReset.size() == 269


def test_particle_embeds_packed_poses():
    pose = Pose2D(1, 1.0, 2.0, 3.0)
    parent = Pose2D(2, 4.0, 5.0, 6.0)
    packed = Particle(pose=pose, parent_pose=parent, weight=0.5).pack()
    assert packed[: Pose2D.size()] == pose.pack()
    assert packed[Pose2D.size(): 2 * Pose2D.size()] == parent.pack()


def test_lists_become_tuples():
    message = MotorPwm(utime=1, pwm=[0.5, 0.25, 0.0])
    assert message.pwm == (0.5, 0.25, 0.0)


def test_wrong_array_length_raises():
    with pytest.raises(ValueError):
        MotorVelocity(utime=1, velocity=(1.0, 2.0)).pack()


def test_text_too_long_raises():
    with pytest.raises(ValueError):
        SlamStatus(map_path="x" * 257).pack()


def test_text_filling_whole_field_round_trips():
    message = MessageReceived(channel="c" * 256)
    assert MessageReceived.unpack(message.pack()).channel == "c" * 256


def test_text_stops_at_nul():
    raw = bytearray(SlamStatus(map_path="abc").pack())
    raw[12 + 4] = ord("z")
    assert SlamStatus.unpack(bytes(raw)).map_path == "abc"


def test_short_data_raises():
    data = Pose2D().pack()[:-1]
    with pytest.raises(ValueError):
        Pose2D.unpack(data)


def test_trailing_bytes_are_ignored():
    message = MbotError(utime=5, error_code=2)
    assert MbotError.unpack(message.pack() + b"extra") == message


def test_int8_out_of_range_raises():
    with pytest.raises(ValueError):
        Joy(button_A=200).pack()


def test_camera_frame_round_trip_with_data():
    frame = CameraFrame(utime=1, width=2, height=3, format=4, data=b"\x10\x20\x30")
    packed = frame.pack()
    assert len(packed) == CameraFrame.size() + 3
    assert CameraFrame.unpack(packed) == frame


def test_camera_frame_without_data():
    frame = CameraFrame(utime=9, width=640, height=480, format=1)
    assert CameraFrame.unpack(frame.pack()).data == b""


def test_topic_lookup_by_value():
    assert Topic(240) is Topic.MBOT_LIDAR_SCAN