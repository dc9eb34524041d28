# mbotlink

Python tools for exchanging data with an MBot robot:

- **`mbotlink.messages`**: fixed-layout, little-endian message dataclasses
  (`Pose2D`, `Pose3D`, `Twist2D`, `Twist3D`, `Imu`, `Encoders`, `MotorPwm`,
  `MotorVelocity`, `Timestamp`, `Particle`, `Joy`, `Point3D`, `SlamStatus`,
  `SlamReset`, `MessageReceived`, `LidarScan`, `MbotError`, `CameraFrame`)
  and the `Topic` numbers that identify them on the wire.
- **`mbotlink.rospacket`**: rosserial-style packet framing with
  `encode_rospkt`, `decode_rospkt` and `checksum`. A malformed packet or a
  failed checksum raises `RosPacketError`.
- **`mbotlink.uart`**: `Uart`, a small 8N1 serial port wrapper built on
  pyserial. It can also wrap any already opened object that behaves like a
  serial port.
- **`mbotlink.tcp`**: non-blocking `TcpServer`, `TcpConnection` and
  `TcpClient` with an idle timeout.

## Installation

```
pip install mbotlink
```

To run the tests:

```
pip install "mbotlink[test]"
pytest
```

## Messages and packets

```python
from mbotlink.messages import Pose2D, Topic
from mbotlink.rospacket import encode_rospkt, decode_rospkt

pose = Pose2D(utime=1000, x=1.0, y=2.0, theta=0.5)
packet = encode_rospkt(pose.pack(), Topic.MBOT_ODOMETRY)

payload, topic = decode_rospkt(packet)
assert topic == Topic.MBOT_ODOMETRY
assert Pose2D.unpack(payload) == pose
```

`Message.size()` gives the packed size of a message type. `unpack` reads
the first `size()` bytes and raises `ValueError` if there are fewer.
`pack` raises `ValueError` when an array field has the wrong number of
items, a text field is too long, or a value does not fit its field.
Array fields are stored as tuples. Text fields such as `SlamStatus.map_path`
are fixed-width and NUL-padded, and are read back up to the first NUL.
`CameraFrame` carries a variable-length `data` field after its fixed header.

A packet is laid out as `0xFF 0xFE`, the length in two little-endian bytes,
a checksum over the length, the topic in two little-endian bytes, the
message bytes, and a checksum over the topic and message. Each checksum is
`255 - sum % 256`.

## Serial port

```python
from mbotlink.uart import Uart

with Uart("/dev/ttyUSB0", 115200) as uart:
    uart.write(b"\xa5\x52")
    reply = uart.read(7, timeout_ms=5000)   # may be shorter on timeout
```

`read` with no timeout blocks until all requested bytes arrive. The other
methods are `write_byte`, `write_string` (UTF-8), `read_byte`,
`in_waiting` and `flush_input`. Any use after `close` raises `ValueError`.

## TCP

```python
from mbotlink.tcp import TcpServer, TcpClient

with TcpServer(5000) as server:
    with TcpClient("127.0.0.1", 5000) as client:
        conn = server.accept()          # None when nothing is pending
        client.send(b"hello")
```

Sockets are non-blocking. `recv` returns `b""` when nothing is available,
and `send` returns 0 on failure. A connection or client closes itself when
an error occurs. It also closes itself when nothing has been received for
five seconds; the limit can be changed through `timeout_ms`. A client that
cannot connect raises an `OSError`.

## What this package does not do

- It has no lidar driver. `Uart` gives raw byte access to a serial device,
  and `LidarScan` can carry 360 ranges, but no scanner command set or scan
  decoding is included.
- It has no command-line program; it is a library only.
- It offers no wireless peer-to-peer or USB device transport; the links
  provided are serial ports and TCP.