"""Socket I/O + line framing for mpv's JSON IPC."""

import socket
import threading
from typing import Any, Optional, Sequence

from . import _protocol as P
from . import _codec as codec
from ._errors import ConnectionError, ProtocolError


class Transport:
    """Wraps a stream socket with newline-delimited JSON send/recv.

    ``send`` may be called from any thread; whole frames are written under
    a lock so concurrent commands never interleave. ``recv`` must only be
    called by the single reader thread.
    """

    __slots__ = ("_sock", "_reader", "_write_lock")

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._write_lock = threading.Lock()

    @staticmethod
    def connect(path: str, timeout: float = 5.0) -> "Transport":
        """Connect to a Unix domain socket at the given path."""
        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            sock.connect(path)
            # The reader blocks indefinitely between events.
            sock.settimeout(None)
            return Transport(sock)
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {path}: {e}") from e

    @staticmethod
    def from_fd(fd: int) -> "Transport":
        """Adopt an inherited, already connected file descriptor."""
        try:
            return Transport(socket.socket(fileno=fd))
        except OSError as e:
            raise ConnectionError(f"Failed to adopt fd {fd}: {e}") from e

    def close(self) -> None:
        """Shut the socket down, waking a reader blocked in recv."""
        sock = self._sock
        if sock is None:
            return
        self._sock = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # already disconnected
        try:
            self._reader.close()
        except OSError:
            pass
        sock.close()

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def fileno(self) -> int:
        if self._sock is None:
            return -1
        return self._sock.fileno()

    def send(self, args: Sequence[Any], request_id: int) -> None:
        """Write one command frame."""
        data = codec.encode_command(args, request_id)
        with self._write_lock:
            sock = self._sock
            if sock is None:
                raise ConnectionError("Not connected")
            try:
                sock.sendall(data)
            except OSError as e:
                raise ConnectionError(f"Send failed: {e}") from e

    def recv(self) -> Optional[codec.Frame]:
        """Read and decode one frame, skipping blank lines.

        Returns None if the connection was closed cleanly between frames.
        Raises ConnectionError on I/O error or a truncated frame,
        ProtocolError on an oversized or undecodable frame.
        """
        while True:
            try:
                line = self._reader.readline(P.MAX_FRAME_SIZE + 1)
            except (OSError, ValueError) as e:
                # ValueError: the buffered reader was closed under us.
                raise ConnectionError(f"Recv failed: {e}") from e

            if not line:
                return None  # clean close

            if not line.endswith(P.FRAME_DELIMITER):
                if len(line) > P.MAX_FRAME_SIZE:
                    raise ProtocolError(f"Frame exceeds {P.MAX_FRAME_SIZE} bytes")
                raise ConnectionError("Connection closed mid-frame")

            if line.strip():
                return codec.decode_frame(line)
