"""A thread-safe call recorder for testing callback-driven mpv code.

Shipped as production code so users can test their own scripts::

    fence = Fence()
    client.register_message_handler("my-message", fence)
    client.command("script-message", "my-message", "a", "b")
    assert fence.wait() == [("a", "b")]
"""

import threading
import time
from typing import Any, List, Tuple

DEFAULT_TIMEOUT = 5.0


class Fence:
    def __init__(self) -> None:
        self._calls: List[Tuple[Any, ...]] = []
        self._cond = threading.Condition()

    def __call__(self, *args: Any) -> None:
        with self._cond:
            self._calls.append(args)
            self._cond.notify_all()

    def wait(self, runs: int = 1, timeout: float = DEFAULT_TIMEOUT) -> List[Tuple[Any, ...]]:
        """Wait for at least ``runs`` calls or ``timeout`` seconds.

        Returns the recorded argument tuples and clears the history.
        """
        deadline = time.monotonic() + timeout
        with self._cond:
            while len(self._calls) < runs:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            calls, self._calls = self._calls, []
            return calls

    def clear(self) -> None:
        with self._cond:
            self._calls.clear()

    def __len__(self) -> int:
        with self._cond:
            return len(self._calls)
