"""Event fan-out: generic callbacks, property observers and message handlers."""

import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Deque, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from . import _protocol as P
from ._errors import UnknownObserverError
from ._log import log

K = TypeVar("K")

DEFAULT_MAX_WORKERS = 8


class Registry(Generic[K]):
    """A lock-protected map of key -> callback."""

    def __init__(self, label: str) -> None:
        self._label = label
        self._entries: Dict[K, Callable] = {}
        self._lock = threading.Lock()

    def add(self, key: K, callback: Callable) -> None:
        with self._lock:
            if key in self._entries:
                log.debug("replacing %s for %r", self._label, key)
            self._entries[key] = callback

    def remove(self, key: K) -> Optional[Callable]:
        with self._lock:
            return self._entries.pop(key, None)

    def get(self, key: K) -> Optional[Callable]:
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> List[K]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, key) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class _Lane:
    """Pending calls for one consumer, drained by at most one worker."""

    __slots__ = ("calls", "running")

    def __init__(self) -> None:
        self.calls: Deque[Tuple[Callable, tuple]] = deque()
        self.running = False


class Dispatcher:
    """Runs every callback for an event on a bounded worker pool.

    The reader thread only classifies and submits, so a slow or blocking
    callback (one that issues commands of its own, say) never stalls frame
    reading or the other callbacks. Calls to the same consumer (a generic
    callback, an observer id, a message name, a section) run one at a time
    in the order their events were read; different consumers run
    concurrently. Callback exceptions are logged.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mpvipc-dispatch"
        )
        self._callbacks: List[Callable[[P.Event], Any]] = []
        self._callbacks_lock = threading.Lock()
        self.observers: Registry[int] = Registry("observer")
        self.handlers: Registry[str] = Registry("message handler")
        self._lanes: Dict[Hashable, _Lane] = {}
        self._lanes_lock = threading.Lock()
        self._closed = False

    # ─── Generic callbacks ────────────────────────────────────────────────

    def add_callback(self, callback: Callable[[P.Event], Any]) -> None:
        with self._callbacks_lock:
            self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[P.Event], Any]) -> None:
        with self._callbacks_lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    @property
    def callbacks(self) -> List[Callable[[P.Event], Any]]:
        with self._callbacks_lock:
            return list(self._callbacks)

    # ─── Dispatch ─────────────────────────────────────────────────────────

    def dispatch(self, event: P.Event) -> None:
        """Fan one event out. Called only from the reader thread."""
        for callback in self.callbacks:
            self._submit(("callback", id(callback)), callback, event)

        kind = event.kind
        if kind is P.FrameKind.PROPERTY_CHANGE:
            observer = self.observers.get(event.id)
            if observer is None:
                log.error("%s (property %r)", UnknownObserverError(event.id), event.name)
                return
            self._submit(("observer", event.id), observer, event)

        elif kind is P.FrameKind.KEY_BINDING:
            key_event = event.key_event
            handler = self.handlers.get(key_event.section)
            if handler is not None:
                self._submit(("handler", key_event.section), handler, key_event)
            else:
                log.debug("no handler for key-binding section %r", key_event.section)

        elif kind is P.FrameKind.CLIENT_MESSAGE:
            handler = self.handlers.get(event.message)
            if handler is not None:
                self._submit(("handler", event.message), handler, *event.arguments)

    def _submit(self, key: Hashable, fn: Callable, *args) -> None:
        """Queue ``fn(*args)`` on the lane for ``key``, starting a drain if idle."""
        if self._closed:
            return
        with self._lanes_lock:
            lane = self._lanes.get(key)
            if lane is None:
                lane = self._lanes[key] = _Lane()
            lane.calls.append((fn, args))
            if lane.running:
                return
            lane.running = True
        try:
            self._pool.submit(self._drain, key, lane)
        except RuntimeError:
            # Pool shut down between the check above and submit.
            log.debug("dispatcher closed, dropping callback %r", fn)
            with self._lanes_lock:
                lane.calls.clear()
                lane.running = False

    def _drain(self, key: Hashable, lane: _Lane) -> None:
        while True:
            with self._lanes_lock:
                if not lane.calls or self._closed:
                    lane.calls.clear()
                    lane.running = False
                    if self._lanes.get(key) is lane:
                        del self._lanes[key]
                    return
                fn, args = lane.calls.popleft()
            try:
                fn(*args)
            except Exception:
                log.error("event callback %r raised", fn, exc_info=True)

    def close(self) -> None:
        self._closed = True
        self._pool.shutdown(wait=False)
