"""Byte-oriented serial port access."""

from __future__ import annotations

from typing import Any, Optional

import serial

DEFAULT_BAUDRATE = 115200


class Uart:
    """A serial port configured for 8 data bits, no parity and one stop bit.

    ``port`` is a device name or any URL understood by pyserial.
    ``transport`` may be given instead to supply an already opened
    serial-like object.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        transport: Optional[Any] = None,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        if transport is None:
            transport = serial.serial_for_url(
                port,
                baudrate=baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=None,
            )
        self._transport = transport
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the port has been closed."""
        return self._closed

    def _check_open(self) -> Any:
        if self._closed:
            raise ValueError("uart is closed")
        return self._transport

    def close(self) -> None:
        """Release the port; closing twice is harmless."""
        if not self._closed:
            self._closed = True
            self._transport.close()

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""
        transport = self._check_open()
        data = bytes(data)
        written = transport.write(data)
        return len(data) if written is None else written

    def write_byte(self, value: int) -> int:
        """Write a single byte."""
        return self.write(bytes([value]))

    def write_string(self, text: str) -> int:
        """Write ``text`` encoded as UTF-8."""
        return self.write(text.encode("utf-8"))

    def read(self, size: int, timeout_ms: Optional[int] = None) -> bytes:
        """Read up to ``size`` bytes, waiting at most ``timeout_ms``.

        With no timeout the call blocks until ``size`` bytes arrive.
        """
        transport = self._check_open()
        transport.timeout = None if timeout_ms is None else timeout_ms / 1000.0
        return bytes(transport.read(size))

    def read_byte(self) -> Optional[int]:
        """Block for one byte and return it, or None if none came."""
        data = self.read(1)
        return data[0] if data else None

    def in_waiting(self) -> int:
        """Number of bytes waiting in the receive buffer."""
        return self._check_open().in_waiting

    def flush_input(self) -> None:
        """Discard everything in the receive buffer."""
        self._check_open().reset_input_buffer()

    def __enter__(self) -> Uart:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()