"""Session class — an mpv process plus a client connected to it."""

import time
from typing import Any, Callable, List, Optional, Sequence

from . import _protocol as P
from ._client import Client
from ._errors import ConnectionError
from ._launcher import Server, wait_for_socket
from ._log import log


class Session:
    """Spawn mpv with an IPC socket and connect to it.

    Usage::

        with Session(user_args=["--no-config"]) as s:
            s.set_property("volume", 50)
            s.client.osd.create("hi", timeout=1.0)
            s.quit()
    """

    def __init__(
        self,
        path: Optional[str] = None,
        user_args: Sequence[str] = (),
        timeout: float = 5.0,
        **client_kwargs: Any,
    ) -> None:
        self.server = Server(path=path, user_args=user_args)
        self.socket_path = self.server.socket_path

        if not wait_for_socket(self.socket_path, timeout):
            self.server.terminate()
            raise ConnectionError(
                f"mpv did not open {self.socket_path} within {timeout}s"
            )

        # mpv can accept before it is ready to answer; retry briefly.
        max_attempts = 3
        backoff = 0.1
        for attempt in range(1, max_attempts + 1):
            try:
                self.client = Client.from_unix_socket_path(self.socket_path, **client_kwargs)
                break
            except ConnectionError as exc:
                log.warning("connect attempt %d/%d failed: %s", attempt, max_attempts, exc)
                if attempt == max_attempts:
                    self.server.terminate()
                    raise
                time.sleep(backoff * attempt)

    def running(self) -> bool:
        return self.server.running()

    @property
    def callbacks(self) -> List[Callable[[P.Event], Any]]:
        return self.client.callbacks

    def command(self, *args: Any, timeout: Optional[float] = None) -> P.Reply:
        return self.client.command(*args, timeout=timeout)

    def get_property(self, name: str) -> P.Reply:
        return self.client.get_property(name)

    def set_property(self, name: str, value: Any) -> P.Reply:
        return self.client.set_property(name, value)

    def quit(self) -> None:
        self.client.quit()

    def close(self) -> None:
        """Close the client and stop mpv if it is still running."""
        self.client.close()
        self.server.terminate()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args) -> None:
        self.close()
