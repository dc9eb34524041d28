"""Non-blocking TCP server, connections and client with an idle timeout."""

from __future__ import annotations

import errno
import logging
import select
import socket
import time
from typing import Any, Optional

log = logging.getLogger(__name__)

TCP_TIMEOUT_MS = 5000
DEFAULT_RECV_SIZE = 4096

_IN_PROGRESS = {
    errno.EINPROGRESS,
    errno.EAGAIN,
    errno.EWOULDBLOCK,
    getattr(errno, "WSAEWOULDBLOCK", errno.EWOULDBLOCK),
}


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class _Stream:
    """A connected socket that is closed after ``timeout_ms`` without input."""

    def __init__(self, sock: socket.socket, port: int) -> None:
        self.sock = sock
        self.port = port
        self.closed = False
        self.sock.setblocking(False)
        self.timeout_ms: float = TCP_TIMEOUT_MS
        self.last_recv_time = _now_ms()

    def set_blocking(self, blocking: bool) -> None:
        if not self.closed:
            self.sock.setblocking(bool(blocking))

    def _timed_out(self) -> bool:
        if _now_ms() - self.last_recv_time > self.timeout_ms:
            log.warning("connection timeout")
            self.close()
            return True
        return False

    def send(self, data: bytes) -> int:
        if self.closed or self._timed_out():
            return 0
        view = memoryview(bytes(data))
        while view:
            try:
                written = self.sock.send(view)
            except (BlockingIOError, InterruptedError):
                continue
            except OSError as exc:
                log.error("error occurred during sending: %s", exc)
                self.close()
                return 0
            view = view[written:]
        return len(data)

    def recv(self, size: int) -> bytes:
        if self.closed or self._timed_out():
            return b""
        try:
            data = self.sock.recv(size)
        except (BlockingIOError, InterruptedError):
            return b""
        except OSError as exc:
            if exc.errno == errno.ENOTCONN:
                log.warning("connection closed")
            else:
                log.error("error occurred during receiving: %s", exc)
            self.close()
            return b""
        if data:
            self.last_recv_time = _now_ms()
        return data

    def close(self) -> None:
        if not self.closed:
            self.sock.close()
            self.closed = True


class TcpConnection:
    """A connection accepted by a :class:`TcpServer`."""

    def __init__(self, sock: socket.socket, port: int) -> None:
        self._stream = _Stream(sock, port)

    @property
    def port(self) -> int:
        """Port of the server that accepted this connection."""
        return self._stream.port

    @property
    def timeout_ms(self) -> float:
        """Idle time after which the connection is closed."""
        return self._stream.timeout_ms

    @timeout_ms.setter
    def timeout_ms(self, value: float) -> None:
        self._stream.timeout_ms = value

    def set_blocking(self, blocking: bool) -> None:
        """Switch the socket between blocking and non-blocking mode."""
        self._stream.set_blocking(blocking)

    def send(self, data: bytes) -> int:
        """Send all of ``data``; return its length, or 0 if the connection failed.

        A failure or an idle timeout closes the connection.
        """
        return self._stream.send(data)

    def recv(self, size: int = DEFAULT_RECV_SIZE) -> bytes:
        """Return up to ``size`` bytes; empty when nothing is available.

        A failure, a lost connection or an idle timeout closes the connection.
        """
        return self._stream.recv(size)

    def close(self) -> None:
        """Close the socket; closing twice is harmless."""
        self._stream.close()

    @property
    def closed(self) -> bool:
        """Whether the connection has been closed."""
        return self._stream.closed

    def __enter__(self) -> TcpConnection:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class TcpClient:
    """A connection opened to ``host`` on ``port``."""

    def __init__(self, host: str, port: int) -> None:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        if not infos:
            raise OSError(f"unable to resolve hostname for {host!r}")
        family, socktype, proto, _, address = infos[0]
        sock = socket.socket(family, socktype, proto)
        try:
            sock.setblocking(False)
            log.info("tcp created, connecting to %s:%s", host, port)
            result = sock.connect_ex(address)
            if result:
                if result not in _IN_PROGRESS:
                    raise ConnectionError(result, f"unable to connect: {errno.errorcode.get(result, result)}")
                _, writable, _ = select.select([], [sock], [])
                if not writable:
                    raise ConnectionError("connection timeout while waiting to be writable")
                error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
                if error:
                    raise ConnectionError(error, f"connection error: {errno.errorcode.get(error, error)}")
        except BaseException:
            sock.close()
            raise
        log.info("successfully connected")
        self._stream = _Stream(sock, port)

    @property
    def port(self) -> int:
        """Port of the server this client is connected to."""
        return self._stream.port

    @property
    def timeout_ms(self) -> float:
        """Idle time after which the client is closed."""
        return self._stream.timeout_ms

    @timeout_ms.setter
    def timeout_ms(self, value: float) -> None:
        self._stream.timeout_ms = value

    def set_blocking(self, blocking: bool) -> None:
        """Switch the socket between blocking and non-blocking mode."""
        self._stream.set_blocking(blocking)

    def send(self, data: bytes) -> int:
        """Send all of ``data``; return its length, or 0 if the client failed.

        A failure or an idle timeout closes the client.
        """
        return self._stream.send(data)

    def recv(self, size: int = DEFAULT_RECV_SIZE) -> bytes:
        """Return up to ``size`` bytes; empty when nothing is available.

        A failure, a lost connection or an idle timeout closes the client.
        """
        return self._stream.recv(size)

    def close(self) -> None:
        """Close the socket; closing twice is harmless."""
        self._stream.close()

    @property
    def closed(self) -> bool:
        """Whether the client has been closed."""
        return self._stream.closed

    def __enter__(self) -> TcpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class TcpServer:
    """A non-blocking listening socket on all IPv4 addresses."""

    def __init__(self, port: int) -> None:
        infos = socket.getaddrinfo("0.0.0.0", port, type=socket.SOCK_STREAM)
        if not infos:
            raise OSError("unable to resolve hostname for 0.0.0.0")
        family, socktype, proto, _, address = infos[0]
        sock = socket.socket(family, socktype, proto)
        try:
            sock.setblocking(False)
            sock.bind(address)
            sock.listen(1)
        except BaseException:
            sock.close()
            raise
        self._sock = sock
        self._port = sock.getsockname()[1]
        self._closed = False
        log.info("tcp bound, port %d", self._port)

    def accept(self) -> Optional[TcpConnection]:
        """Return a pending connection, or None if there is none."""
        if self._closed:
            return None
        try:
            conn, _ = self._sock.accept()
        except (BlockingIOError, InterruptedError):
            return None
        log.info("tcp accepted")
        return TcpConnection(conn, self._port)

    def close(self) -> None:
        """Stop listening; closing twice is harmless."""
        if not self._closed:
            self._sock.close()
            self._closed = True

    @property
    def ip(self) -> str:
        """Address the server is bound to."""
        return self._sock.getsockname()[0]

    @property
    def port(self) -> int:
        """Port the server listens on."""
        return self._port

    @property
    def closed(self) -> bool:
        """Whether the server has been closed."""
        return self._closed

    def __enter__(self) -> TcpServer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()