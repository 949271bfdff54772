"""Locate, validate and spawn an mpv process with an IPC socket."""

import itertools
import os
import re
import shutil
import socket
import subprocess
import time
from typing import List, Optional, Sequence

from ._errors import MPVNotAvailableError, MPVUnsupportedFlagError
from ._log import log

_socket_counter = itertools.count(1)

# Cached output of `mpv --list-options`, keyed by binary path
_known_flags = {}


def resolve_socket_path(explicit: Optional[str] = None) -> str:
    """Pick a socket path for a new mpv process.

    1. Explicit path passed by the caller
    2. $MPVIPC_SOCKET environment variable
    3. $XDG_RUNTIME_DIR/mpvipc/mpv-<pid>-<n>.sock
    4. /tmp/mpvipc-$USER/mpv-<pid>-<n>.sock
    """
    if explicit:
        return explicit

    env_sock = os.environ.get("MPVIPC_SOCKET")
    if env_sock:
        return env_sock

    name = f"mpv-{os.getpid()}-{next(_socket_counter)}.sock"
    xdg = os.environ.get("XDG_RUNTIME_DIR")
    if xdg:
        return os.path.join(xdg, "mpvipc", name)

    user = os.environ.get("USER", os.environ.get("LOGNAME", "unknown"))
    return os.path.join(f"/tmp/mpvipc-{user}", name)


def find_mpv() -> Optional[str]:
    """$MPVIPC_MPV_PATH if it is executable, else `mpv` on PATH."""
    env_path = os.environ.get("MPVIPC_MPV_PATH")
    if env_path and os.path.isfile(env_path) and os.access(env_path, os.X_OK):
        return env_path
    return shutil.which("mpv")


def available() -> bool:
    return find_mpv() is not None


def ensure_available() -> str:
    """Return the mpv path or raise MPVNotAvailableError."""
    binary = find_mpv()
    if binary is None:
        raise MPVNotAvailableError()
    return binary


def normalize_flag(flag: str) -> str:
    """Reduce ``--no-foo=bar`` style flags to the ``--foo`` mpv lists."""
    flag = re.sub(r"^--no-", "--", flag)
    return re.sub(r"=.*$", "", flag)


def _list_options(binary: str) -> frozenset:
    if binary not in _known_flags:
        out = subprocess.run(
            [binary, "--list-options"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            universal_newlines=True,
            check=False,
        ).stdout
        _known_flags[binary] = frozenset(
            word for word in out.split() if word.startswith("--")
        )
    return _known_flags[binary]


def flag_supported(flag: str) -> bool:
    """Whether the installed mpv accepts ``flag``; False without mpv."""
    binary = find_mpv()
    if binary is None:
        return False
    return normalize_flag(flag) in _list_options(binary)


def ensure_flag(flag: str) -> None:
    ensure_available()
    if not flag_supported(flag):
        raise MPVUnsupportedFlagError(flag)


def can_connect(path: str) -> bool:
    """Check if something is accepting connections on the socket."""
    try:
        s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        s.settimeout(1.0)
        try:
            s.connect(path)
        finally:
            s.close()
        return True
    except OSError:
        return False


def wait_for_socket(path: str, timeout: float = 5.0, interval: float = 0.05) -> bool:
    """Poll until ``path`` accepts connections or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if os.path.exists(path) and can_connect(path):
            return True
        time.sleep(interval)
    return False


class Server:
    """An mpv process spawned with ``--input-ipc-server``."""

    BASE_ARGS = ("--idle", "--terminal=no")

    def __init__(self, path: Optional[str] = None, user_args: Sequence[str] = ()) -> None:
        self.socket_path = resolve_socket_path(path)
        self.args = self.build_args(self.socket_path, user_args)

        binary = ensure_available()
        for arg in self.args:
            ensure_flag(arg)

        sock_dir = os.path.dirname(self.socket_path)
        if sock_dir:
            os.makedirs(sock_dir, mode=0o700, exist_ok=True)
        if os.path.exists(self.socket_path):
            os.unlink(self.socket_path)

        log.info("spawning %s %s", binary, " ".join(self.args))
        self._process = subprocess.Popen(
            [binary] + self.args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

    @classmethod
    def build_args(cls, socket_path: str, user_args: Sequence[str] = ()) -> List[str]:
        """Base args plus user args, first occurrence wins."""
        args = list(cls.BASE_ARGS) + [f"--input-ipc-server={socket_path}"] + list(user_args)
        return list(dict.fromkeys(args))

    @property
    def pid(self) -> int:
        return self._process.pid

    def running(self) -> bool:
        return self._process.poll() is None

    def terminate(self, timeout: float = 5.0) -> None:
        """Stop mpv, escalating to SIGKILL if it ignores SIGTERM."""
        if not self.running():
            return
        self._process.terminate()
        try:
            self._process.wait(timeout)
        except subprocess.TimeoutExpired:
            log.warning("mpv pid %d ignored SIGTERM, killing", self.pid)
            self._process.kill()
            self._process.wait()
