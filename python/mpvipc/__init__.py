"""mpvipc — a threaded client for mpv's JSON IPC protocol.

Commands block until their own reply arrives, while a single reader thread
fans events out to callbacks, property observers, script-message handlers
and key binding sections.

Usage::

    import mpvipc

    with mpvipc.Session(user_args=["--no-config"]) as s:
        client = s.client
        client.set_property("volume", 50)
        client.observe_property("volume", lambda change: print(change.data))
        client.osd.create("Volume set", timeout=2.0)

Connecting to an mpv that is already running::

    client = mpvipc.Client.from_unix_socket_path("/tmp/mpv.sock")
    client.enter_modal_mode("really delete?", ["y", "n"], on_answer)
"""

from ._client import Client
from ._session import Session
from ._launcher import Server, resolve_socket_path
from ._osd import OsdManager, OsdMessage
from ._keybindings import ModalPrompt
from ._fence import Fence
from ._ass import Color, Text, ass_escape
from ._ids import IdAllocator
from ._router import ReplyRouter
from ._protocol import (
    FrameKind,
    Reply,
    Event,
    PropertyChange,
    ClientMessage,
    KeyBinding,
    KeyEvent,
)
from ._errors import (
    MPVError,
    ConnectionError,
    ProtocolError,
    UnknownObserverError,
    TimeoutError,
    CommandError,
    MPVNotAvailableError,
    MPVUnsupportedFlagError,
)

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("mpvipc")
except Exception:
    __version__ = "0.1.0"

__all__ = [
    "Client",
    "Session",
    "Server",
    "resolve_socket_path",
    "OsdManager",
    "OsdMessage",
    "ModalPrompt",
    "Fence",
    "Color",
    "Text",
    "ass_escape",
    "IdAllocator",
    "ReplyRouter",
    "FrameKind",
    "Reply",
    "Event",
    "PropertyChange",
    "ClientMessage",
    "KeyBinding",
    "KeyEvent",
    "MPVError",
    "ConnectionError",
    "ProtocolError",
    "UnknownObserverError",
    "TimeoutError",
    "CommandError",
    "MPVNotAvailableError",
    "MPVUnsupportedFlagError",
]
