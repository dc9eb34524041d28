"""MBot message types, rosserial-style packet framing, a serial port wrapper and TCP links."""

__version__ = "0.1.0"