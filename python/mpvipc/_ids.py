"""Thread-safe id allocator shared by request ids, observer ids and OSD ids."""

import threading

from . import _protocol as P


class IdAllocator:
    """Hands out strictly increasing integers in ``[minimum, maximum]``.

    After ``maximum`` has been returned the next id is ``minimum`` again.
    ``minimum`` must be positive because mpv reads 0 as "no id". Ids that
    stay live for longer than ``maximum - minimum`` allocations can collide
    after wraparound; with the default int64 range that never happens in
    practice.
    """

    __slots__ = ("_minimum", "_maximum", "_last", "_lock")

    def __init__(self, minimum: int = P.ID_MIN, maximum: int = P.ID_MAX) -> None:
        if minimum < 1:
            raise ValueError(f"minimum must be >= 1, got {minimum}")
        if maximum < minimum:
            raise ValueError(f"maximum ({maximum}) is below minimum ({minimum})")
        self._minimum = minimum
        self._maximum = maximum
        self._last = None
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            if self._last is None or self._last >= self._maximum:
                self._last = self._minimum
            else:
                self._last += 1
            return self._last

    __next__ = next

    def __iter__(self) -> "IdAllocator":
        return self

    @property
    def minimum(self) -> int:
        return self._minimum

    @property
    def maximum(self) -> int:
        return self._maximum
