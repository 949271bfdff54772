"""mpv JSON IPC protocol constants and decoded frame types.

Every inbound frame is decoded exactly once, at the reader, into one of the
classes below. Downstream code switches on ``frame.kind`` and never probes
the raw JSON again.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Tuple

from ._errors import CommandError

# ─── Wire format ──────────────────────────────────────────────────────────────

ENCODING = "utf-8"
FRAME_DELIMITER = b"\n"
MAX_FRAME_SIZE = 16 * 1024 * 1024  # 16 MiB

# Reply "error" value for a successful command
SUCCESS = "success"

# ─── Identifiers ──────────────────────────────────────────────────────────────

# mpv reads request ids and observer ids as int64; 0 means "no id".
ID_MIN = 1
ID_MAX = 2 ** 63 - 1

# ─── Event names ──────────────────────────────────────────────────────────────

EVT_PROPERTY_CHANGE = "property-change"
EVT_CLIENT_MESSAGE = "client-message"

# First client-message argument mpv uses for script-binding key presses
MSG_KEY_BINDING = "key-binding"

# ─── Commands ─────────────────────────────────────────────────────────────────

CMD_CLIENT_NAME = "client_name"
CMD_GET_PROPERTY = "get_property"
CMD_SET_PROPERTY = "set_property"
CMD_OBSERVE_PROPERTY = "observe_property"
CMD_UNOBSERVE_PROPERTY = "unobserve_property"
CMD_DEFINE_SECTION = "define-section"
CMD_ENABLE_SECTION = "enable-section"
CMD_DISABLE_SECTION = "disable-section"
CMD_OSD_OVERLAY = "osd-overlay"
CMD_QUIT = "quit"

# ─── Overlay ──────────────────────────────────────────────────────────────────

# The single overlay slot this client owns for the lifetime of the process.
OVERLAY_ID = 999
OVERLAY_FORMAT_ASS = "ass-events"
OVERLAY_FORMAT_NONE = "none"
ASS_LINE_BREAK = "\\N"

# ─── Sections ─────────────────────────────────────────────────────────────────

SECTION_PREFIX = "mpvipc-section-"
SECTION_FLAGS_DEFAULT = "default"
SECTION_FLAGS_FORCE = "force"
MODAL_EXIT_KEY = "ESC"


# ─── Frame types ──────────────────────────────────────────────────────────────

class FrameKind(enum.Enum):
    REPLY = "reply"
    EVENT = "event"
    PROPERTY_CHANGE = "property-change"
    CLIENT_MESSAGE = "client-message"
    KEY_BINDING = "key-binding"


@dataclass(frozen=True)
class Reply:
    """mpv's answer to one command.

    ``data`` is only meaningful when :attr:`success` is true.
    """

    kind: ClassVar[FrameKind] = FrameKind.REPLY

    data: Any
    error: str
    request_id: int

    @property
    def success(self) -> bool:
        return self.error == SUCCESS

    def unwrap(self) -> Any:
        """Return ``data``, raising :class:`CommandError` if the command failed."""
        if not self.success:
            raise CommandError(self.error, self.request_id)
        return self.data


@dataclass(frozen=True)
class Event:
    """An unsolicited frame from mpv. ``raw`` is the decoded JSON object."""

    kind: ClassVar[FrameKind] = FrameKind.EVENT

    event: str
    raw: dict = field(repr=False, compare=False)


@dataclass(frozen=True)
class PropertyChange(Event):
    """A change of an observed property; ``name`` is the property name."""

    kind: ClassVar[FrameKind] = FrameKind.PROPERTY_CHANGE

    id: int = 0
    name: str = ""
    data: Any = None


@dataclass(frozen=True)
class ClientMessage(Event):
    """A script-message delivered to this client."""

    kind: ClassVar[FrameKind] = FrameKind.CLIENT_MESSAGE

    args: Tuple[Any, ...] = ()

    @property
    def message(self) -> Optional[str]:
        return self.args[0] if self.args else None

    @property
    def arguments(self) -> Tuple[Any, ...]:
        return self.args[1:]


@dataclass(frozen=True)
class KeyEvent:
    """One key press reported for a bound section.

    ``state`` is two characters: ``d``/``u``/``r``/``p`` (down, up, repeat,
    press) followed by ``-`` or ``c`` for a canceled key.
    """

    section: str
    state: str
    key: str
    key2: Optional[str] = None

    @property
    def is_down(self) -> bool:
        return self.state[:1] == "d"

    @property
    def is_up(self) -> bool:
        return self.state[:1] == "u"

    @property
    def is_repeat(self) -> bool:
        return self.state[:1] == "r"

    @property
    def is_press(self) -> bool:
        return self.state[:1] == "p"

    @property
    def canceled(self) -> bool:
        return self.state[1:2] == "c"


@dataclass(frozen=True)
class KeyBinding(ClientMessage):
    """A ``key-binding`` client-message, already reinterpreted as a KeyEvent."""

    kind: ClassVar[FrameKind] = FrameKind.KEY_BINDING

    key_event: Optional[KeyEvent] = None
