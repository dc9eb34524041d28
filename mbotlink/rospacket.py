"""Framing of messages into rosserial-style packets."""

from __future__ import annotations

from collections.abc import Iterable

SYNC_FLAG = 0xFF
VERSION_FLAG = 0xFE
ROS_HEADER_LEN = 7
ROS_FOOTER_LEN = 1
ROS_PKG_LEN = ROS_HEADER_LEN + ROS_FOOTER_LEN

_MAX_U16 = 0xFFFF


class RosPacketError(ValueError):
    """Raised when a packet is malformed or fails a checksum."""


def checksum(data: Iterable[int]) -> int:
    """Return 255 minus the byte sum modulo 256."""
    return 255 - (sum(data) % 256)


def encode_rospkt(data: bytes, topic: int) -> bytes:
    """Wrap ``data`` in a packet addressed to ``topic``."""
    data = bytes(data)
    if len(data) > _MAX_U16:
        raise ValueError(f"message of {len(data)} bytes does not fit in a packet")
    if not 0 <= topic <= _MAX_U16:
        raise ValueError(f"topic {topic} is out of range")
    length = len(data).to_bytes(2, "little")
    topic_bytes = int(topic).to_bytes(2, "little")
    return (
        bytes([SYNC_FLAG, VERSION_FLAG])
        + length
        + bytes([checksum(length)])
        + topic_bytes
        + data
        + bytes([checksum(topic_bytes + data)])
    )


def decode_rospkt(packet: bytes) -> tuple[bytes, int]:
    """Check a packet and return its ``(data, topic)``."""
    packet = bytes(packet)
    if len(packet) < ROS_PKG_LEN:
        raise RosPacketError("packet is shorter than header and footer")
    if packet[0] != SYNC_FLAG:
        raise RosPacketError("SYNC flag does not lead message")
    if packet[1] != VERSION_FLAG:
        raise RosPacketError("version flag is incompatible")
    if packet[4] != checksum(packet[2:4]):
        raise RosPacketError("checksum over message length failed")
    length = int.from_bytes(packet[2:4], "little")
    if len(packet) < length + ROS_PKG_LEN:
        raise RosPacketError("packet is shorter than its declared length")
    body = packet[5:ROS_HEADER_LEN + length]
    if packet[ROS_HEADER_LEN + length] != checksum(body):
        raise RosPacketError("checksum over message topic and content failed")
    topic = int.from_bytes(packet[5:7], "little")
    return packet[ROS_HEADER_LEN:ROS_HEADER_LEN + length], topic