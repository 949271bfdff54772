"""Client class — one JSON IPC connection to a running mpv."""

import socket
import threading
from typing import Any, Callable, Iterable, List, Optional, Union

from . import _protocol as P
from ._dispatch import DEFAULT_MAX_WORKERS, Dispatcher
from ._errors import ConnectionError, MPVError
from ._ids import IdAllocator
from ._keybindings import KeyHandler, KeybindingManager, ModalPrompt
from ._log import log
from ._osd import OsdManager
from ._router import ReplyRouter
from ._transport import Transport


class Client:
    """A connection to mpv's JSON IPC socket.

    A dedicated reader thread owns the socket's read side. Replies are
    routed to the thread that sent the matching command; events are fanned
    out to callbacks, property observers and message handlers on a worker
    pool. Any number of threads may issue commands concurrently.

    Usage::

        client = Client.from_unix_socket_path("/tmp/mpv.sock")
        client.get_property("volume").unwrap()      # 100.0
        client.observe_property("pause", lambda change: print(change.data))
        client.osd.create("hello", timeout=2.0)
        client.close()
    """

    def __init__(
        self,
        sock: Union[socket.socket, Transport],
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        reply_timeout: Optional[float] = None,
    ) -> None:
        self._transport = sock if isinstance(sock, Transport) else Transport(sock)
        self._reply_timeout = reply_timeout
        self._ids = IdAllocator()
        self._replies = ReplyRouter()
        self._dispatcher = Dispatcher(max_workers=max_workers)
        self._keybindings = KeybindingManager(self)
        self._osd = OsdManager(self)
        self._client_name: Optional[str] = None
        self._name_lock = threading.Lock()
        self._alive = True
        self._closing = False

        self._reader = threading.Thread(
            target=self._read_loop, name="mpvipc-reader", daemon=True
        )
        self._reader.start()

    @classmethod
    def from_unix_socket_path(cls, path: str, timeout: float = 5.0, **kwargs) -> "Client":
        """Connect to the socket mpv created with --input-ipc-server."""
        return cls(Transport.connect(path, timeout), **kwargs)

    @classmethod
    def from_file_descriptor(cls, fd: int, **kwargs) -> "Client":
        """Use a socket inherited from mpv (--input-ipc-client=fd://N)."""
        return cls(Transport.from_fd(fd), **kwargs)

    # ─── State ────────────────────────────────────────────────────────────

    @property
    def alive(self) -> bool:
        """False once the connection is gone; commands then raise ConnectionError."""
        return self._alive

    @property
    def osd(self) -> OsdManager:
        return self._osd

    @property
    def client_name(self) -> str:
        """mpv's name for this connection, fetched once."""
        with self._name_lock:
            if self._client_name is None:
                self._client_name = self.command(P.CMD_CLIENT_NAME).unwrap()
                log.debug("client_name=%s", self._client_name)
            return self._client_name

    def next_id(self) -> int:
        return self._ids.next()

    @property
    def pending_requests(self) -> int:
        return self._replies.pending

    # ─── Commands ─────────────────────────────────────────────────────────

    def command(self, *args: Any, timeout: Optional[float] = None) -> P.Reply:
        """Send a command and block until its reply arrives.

        A failed command is returned as a Reply whose ``error`` is not
        ``"success"``; call ``.unwrap()`` to turn that into CommandError.
        Raises ConnectionError if the connection is or goes down, and
        TimeoutError if ``timeout`` (or the client's reply_timeout) elapses.
        """
        if not self._alive:
            raise ConnectionError("Not connected to mpv")

        request_id = self._ids.next()
        log.debug("command send request_id=%d %r", request_id, args)
        self._transport.send(args, request_id)

        if timeout is None:
            timeout = self._reply_timeout
        reply = self._replies.pop(request_id, timeout)
        log.debug("command reply request_id=%d error=%s", request_id, reply.error)
        return reply

    def get_property(self, name: str) -> P.Reply:
        return self.command(P.CMD_GET_PROPERTY, name)

    def set_property(self, name: str, value: Any) -> P.Reply:
        return self.command(P.CMD_SET_PROPERTY, name, value)

    def quit(self) -> None:
        """Ask mpv to exit. The client is unusable afterwards."""
        try:
            if self._alive:
                self.command(P.CMD_QUIT)
        except ConnectionError:
            pass  # mpv may close the socket before replying
        finally:
            self.close()

    # ─── Events ───────────────────────────────────────────────────────────

    def add_callback(self, callback: Callable[[P.Event], Any]) -> None:
        """Call ``callback(event)`` for every event mpv sends."""
        self._dispatcher.add_callback(callback)

    def remove_callback(self, callback: Callable[[P.Event], Any]) -> None:
        self._dispatcher.remove_callback(callback)

    @property
    def callbacks(self) -> List[Callable[[P.Event], Any]]:
        return self._dispatcher.callbacks

    def observe_property(self, name: str, callback: Callable[[P.PropertyChange], Any]) -> int:
        """Call ``callback(PropertyChange)`` whenever property ``name`` changes.

        mpv reports the current value right away. Returns the observer id.
        """
        observer_id = self._ids.next()
        self._dispatcher.observers.add(observer_id, callback)
        try:
            self.command(P.CMD_OBSERVE_PROPERTY, observer_id, name).unwrap()
        except MPVError:
            self._dispatcher.observers.remove(observer_id)
            raise
        return observer_id

    def unobserve_property(self, observer_id: int) -> None:
        try:
            self.command(P.CMD_UNOBSERVE_PROPERTY, observer_id).unwrap()
        finally:
            self._dispatcher.observers.remove(observer_id)

    def register_message_handler(self, name: str, callback: Callable[..., Any]) -> None:
        """Call ``callback(*args)`` for every ``script-message name args...``."""
        self._dispatcher.handlers.add(name, callback)

    def unregister_message_handler(self, name: str) -> None:
        self._dispatcher.handlers.remove(name)

    def register_keybindings(
        self,
        keys: Iterable[str],
        callback: KeyHandler,
        section: Optional[str] = None,
        flags: str = P.SECTION_FLAGS_DEFAULT,
    ) -> str:
        return self._keybindings.register(keys, callback, section=section, flags=flags)

    def unregister_keybindings(self, section: str) -> None:
        self._keybindings.unregister(section)

    def enter_modal_mode(
        self,
        message: Any,
        keys: Iterable[str],
        callback: KeyHandler,
        exit_key: str = P.MODAL_EXIT_KEY,
    ) -> ModalPrompt:
        return self._keybindings.enter_modal_mode(message, keys, callback, exit_key)

    # ─── Reader ───────────────────────────────────────────────────────────

    def _read_loop(self) -> None:
        """Read frames until the stream fails; never restarted."""
        reason: MPVError = ConnectionError("mpv closed the connection")
        try:
            while True:
                frame = self._transport.recv()
                if frame is None:
                    break

                if frame.kind is P.FrameKind.REPLY:
                    if frame.request_id == 0:
                        log.warning("dropping reply without request_id: %r", frame)
                        continue
                    self._replies.push(frame.request_id, frame)
                else:
                    self._dispatcher.dispatch(frame)
        except MPVError as e:
            reason = e
        finally:
            self._alive = False
            if self._closing:
                log.debug("reader stopped: client closed")
            else:
                log.error("reader stopped: %s", reason)
            lost = reason if isinstance(reason, ConnectionError) else \
                ConnectionError(f"Connection lost: {reason}")
            self._replies.close(lost)

    # ─── Lifecycle ────────────────────────────────────────────────────────

    def close(self) -> None:
        """Disconnect. Pending commands fail with ConnectionError."""
        if self._closing:
            return
        self._closing = True
        self._alive = False
        # Fail in-flight commands first: a render blocked on its reply
        # holds the OSD lock that cancelling the timers needs.
        self._transport.close()
        self._replies.close(ConnectionError("Client closed"))
        if self._reader is not threading.current_thread():
            self._reader.join(timeout=1.0)
        self._osd.close()
        self._dispatcher.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass
