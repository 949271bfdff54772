"""Request/reply correlation: one single-use slot per in-flight request id."""

import threading
from concurrent import futures
from typing import Dict, Optional, Set

from ._errors import TimeoutError
from ._log import log


class ReplyRouter:
    """Keyed one-shot slots connecting the reader to blocked callers.

    ``push`` and ``pop`` may happen in either order; whichever comes first
    creates the slot and ``pop`` removes it once the value is taken, so the
    map only ever holds in-flight requests.

    After :meth:`close` every waiting and future ``pop`` raises the close
    exception instead of blocking forever on a reader that will never
    answer.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: Dict[int, futures.Future] = {}
        # Ids whose caller timed out; a late reply for them is discarded.
        self._abandoned: Set[int] = set()
        self._closed: Optional[BaseException] = None

    def _slot_unlocked(self, request_id: int) -> futures.Future:
        """Return the slot for request_id, creating it. Caller holds self._lock."""
        slot = self._slots.get(request_id)
        if slot is None:
            slot = futures.Future()
            if self._closed is not None:
                slot.set_exception(self._closed)
            self._slots[request_id] = slot
        return slot

    def push(self, request_id: int, value) -> None:
        with self._lock:
            if request_id in self._abandoned:
                self._abandoned.discard(request_id)
                log.debug("discarding late reply for abandoned request_id=%d", request_id)
                return
            slot = self._slot_unlocked(request_id)
            if slot.done():
                log.warning("duplicate reply for request_id=%d ignored", request_id)
                return
            slot.set_result(value)

    def pop(self, request_id: int, timeout: Optional[float] = None):
        """Block until the value for request_id arrives, then forget the id.

        Raises TimeoutError if ``timeout`` elapses first, or the close
        exception if the router was closed.
        """
        with self._lock:
            slot = self._slot_unlocked(request_id)

        try:
            try:
                return slot.result(timeout)
            except futures.TimeoutError:
                with self._lock:
                    if not slot.done():
                        self._abandoned.add(request_id)
                        raise TimeoutError(
                            f"No reply for request_id={request_id} within {timeout}s"
                        ) from None
                # The reply raced the timeout; take it.
                return slot.result()
        finally:
            with self._lock:
                if self._slots.get(request_id) is slot:
                    del self._slots[request_id]

    def close(self, exc: BaseException) -> None:
        """Fail every pending and future pop with ``exc``."""
        with self._lock:
            if self._closed is not None:
                return
            self._closed = exc
            pending = [s for s in self._slots.values() if not s.done()]
            for slot in pending:
                slot.set_exception(exc)
        if pending:
            log.debug("failed %d pending request(s): %s", len(pending), exc)

    @property
    def closed(self) -> bool:
        return self._closed is not None

    @property
    def pending(self) -> int:
        """Number of live slots (requests waiting or replies not yet taken)."""
        with self._lock:
            return len(self._slots)
