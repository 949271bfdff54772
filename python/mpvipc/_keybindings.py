"""Key binding sections and single-shot modal prompts.

A section is a named group of bindings inside mpv. Each bound key runs
``script-binding <client>/<section>``, which mpv turns into a
``key-binding`` client-message for this client; the dispatcher routes it to
the message handler registered under the bare section name.
"""

import threading
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional

from . import _protocol as P
from ._errors import CommandError
from ._log import log

if TYPE_CHECKING:
    from ._client import Client

KeyHandler = Callable[[P.KeyEvent], Any]


class KeybindingManager:
    def __init__(self, client: "Client") -> None:
        self._client = client

    def allocate_section(self) -> str:
        """A section name that is unique for this client."""
        return f"{P.SECTION_PREFIX}{self._client.next_id()}"

    def qualified_name(self, section: str) -> str:
        """The mpv-side name: scoped by client so clients never collide."""
        return f"{self._client.client_name}/{section}"

    def register(
        self,
        keys: Iterable[str],
        callback: KeyHandler,
        section: Optional[str] = None,
        flags: str = P.SECTION_FLAGS_DEFAULT,
    ) -> str:
        """Bind ``keys`` so that each press calls ``callback(KeyEvent)``.

        Returns the section name to pass to :meth:`unregister`.
        """
        if section is None:
            section = self.allocate_section()
        name = self.qualified_name(section)
        contents = "\n".join(f"{key} script-binding {name}" for key in keys)

        self._client.register_message_handler(section, callback)
        try:
            self._client.command(P.CMD_DEFINE_SECTION, name, contents, flags).unwrap()
            self._client.command(P.CMD_ENABLE_SECTION, name).unwrap()
        except CommandError:
            self._client.unregister_message_handler(section)
            raise
        log.debug("registered section %s", name)
        return section

    def unregister(self, section: str) -> None:
        """Disable and empty the section, then drop its handler."""
        name = self.qualified_name(section)
        try:
            self._client.command(P.CMD_DISABLE_SECTION, name).unwrap()
            self._client.command(P.CMD_DEFINE_SECTION, name, "").unwrap()
        finally:
            self._client.unregister_message_handler(section)
        log.debug("unregistered section %s", name)

    def enter_modal_mode(
        self,
        message: Any,
        keys: Iterable[str],
        callback: KeyHandler,
        exit_key: str = P.MODAL_EXIT_KEY,
    ) -> "ModalPrompt":
        """Show ``message`` and wait for exactly one key press.

        The first press of any bound key (or ``exit_key``) removes the
        message and the bindings. ``callback`` runs only if the key was not
        ``exit_key``.
        """
        osd_id = self._client.osd.create(message)
        prompt = ModalPrompt(self._client, self.allocate_section(), osd_id, exit_key, callback)
        bound: List[str] = list(keys)
        if exit_key not in bound:
            bound.append(exit_key)
        try:
            self.register(bound, prompt, section=prompt.section, flags=P.SECTION_FLAGS_FORCE)
        except CommandError:
            self._client.osd.delete(osd_id)
            raise
        return prompt


class ModalPrompt:
    """ARMED until the first key event, then DISARMED for good."""

    ARMED = "armed"
    DISARMED = "disarmed"

    def __init__(
        self,
        client: "Client",
        section: str,
        osd_id: int,
        exit_key: str,
        callback: KeyHandler,
    ) -> None:
        self._client = client
        self.section = section
        self.osd_id = osd_id
        self.exit_key = exit_key
        self._callback = callback
        self._state = self.ARMED
        self._lock = threading.Lock()
        self._done = threading.Event()
        self.key_event: Optional[P.KeyEvent] = None

    @property
    def state(self) -> str:
        return self._state

    @property
    def armed(self) -> bool:
        return self._state == self.ARMED

    def __call__(self, key_event: P.KeyEvent) -> None:
        with self._lock:
            if self._state != self.ARMED:
                return
            self._state = self.DISARMED
            self.key_event = key_event

        try:
            self._client.osd.delete(self.osd_id)
            self._client.unregister_keybindings(self.section)
        finally:
            self._done.set()

        if key_event.key != self.exit_key:
            self._callback(key_event)

    def wait(self, timeout: Optional[float] = None) -> Optional[P.KeyEvent]:
        """Block until the prompt has fired; returns the key event or None."""
        self._done.wait(timeout)
        return self.key_event
