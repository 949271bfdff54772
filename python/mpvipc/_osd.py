"""On-screen message overlay: many messages, one aggregate osd-overlay."""

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from . import _protocol as P
from ._ass import Text
from ._errors import MPVError
from ._log import log

if TYPE_CHECKING:
    from ._client import Client

Styled = Union[str, Any]  # plain text, or anything with to_script()


@dataclass(frozen=True)
class OsdMessage:
    id: int
    text: Any
    script: str


def _styled(text: Styled) -> Any:
    return Text(text) if isinstance(text, str) else text


class OsdManager:
    """Owns the client's overlay slot and the messages shown in it.

    Messages render top to bottom in creation order. Every mutation is
    followed by exactly one render, sent through the client's normal
    command path; a failed render raises CommandError from the mutating
    call after the mutation has been applied.
    """

    def __init__(self, client: "Client") -> None:
        self._client = client
        self._messages: Dict[int, OsdMessage] = {}
        self._timers: Dict[int, threading.Timer] = {}
        # Held across mutate + render so the last render sent always
        # reflects the current registry.
        self._lock = threading.RLock()

    @property
    def messages(self) -> Dict[int, OsdMessage]:
        """Snapshot of the current messages, in render order."""
        with self._lock:
            return dict(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def create(self, text: Styled, timeout: Optional[float] = None) -> int:
        """Show a message, optionally deleting it after ``timeout`` seconds."""
        osd_id = self._client.next_id()
        self.edit(osd_id, text, timeout)
        return osd_id

    def edit(self, osd_id: int, text: Styled, timeout: Optional[float] = None) -> P.Reply:
        """Replace the text stored under ``osd_id``.

        An unknown id is simply added at the end.
        """
        styled = _styled(text)
        with self._lock:
            self._messages[osd_id] = OsdMessage(osd_id, styled, styled.to_script())
            if timeout is not None and timeout > 0:
                self._schedule_unlocked(osd_id, timeout)
            return self._render_unlocked()

    def delete(self, osd_id: int, delay: Optional[float] = None) -> Optional[P.Reply]:
        """Remove a message now, or after ``delay`` seconds without blocking."""
        with self._lock:
            if delay is not None and delay > 0:
                self._schedule_unlocked(osd_id, delay)
                return None
            self._cancel_timer_unlocked(osd_id)
            self._messages.pop(osd_id, None)
            return self._render_unlocked()

    def clear(self) -> P.Reply:
        """Remove every message."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._messages.clear()
            return self._render_unlocked()

    def script(self) -> str:
        """The ASS text currently represented by the registry."""
        with self._lock:
            return P.ASS_LINE_BREAK.join(m.script for m in self._messages.values())

    def close(self) -> None:
        """Cancel pending timed deletions without rendering."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

    # ─── Internals ────────────────────────────────────────────────────────

    def _render_unlocked(self) -> P.Reply:
        if self._messages:
            args = [P.CMD_OSD_OVERLAY, P.OVERLAY_ID, P.OVERLAY_FORMAT_ASS, self.script()]
        else:
            args = [P.CMD_OSD_OVERLAY, P.OVERLAY_ID, P.OVERLAY_FORMAT_NONE, ""]
        reply = self._client.command(*args)
        reply.unwrap()
        return reply

    def _cancel_timer_unlocked(self, osd_id: int) -> None:
        timer = self._timers.pop(osd_id, None)
        if timer is not None:
            timer.cancel()

    def _schedule_unlocked(self, osd_id: int, delay: float) -> None:
        self._cancel_timer_unlocked(osd_id)
        timer = threading.Timer(delay, self._expire, args=(osd_id,))
        timer.daemon = True
        timer.name = f"mpvipc-osd-{osd_id}"
        self._timers[osd_id] = timer
        timer.start()

    def _expire(self, osd_id: int) -> None:
        with self._lock:
            if self._timers.get(osd_id) is not threading.current_thread():
                return  # rescheduled or cancelled meanwhile
            del self._timers[osd_id]
            self._messages.pop(osd_id, None)
            try:
                self._render_unlocked()
            except MPVError as e:
                log.error("render after timed deletion of osd %d failed: %s", osd_id, e)
