"""Exception hierarchy for the mpvipc client."""


class MPVError(Exception):
    """Base exception for all mpvipc errors."""
    pass


class ConnectionError(MPVError):
    """Failed to connect to or communicate with mpv."""
    pass


class ProtocolError(MPVError):
    """Wire protocol violation (malformed JSON, non-object frame, oversized line)."""
    pass


class UnknownObserverError(ProtocolError):
    """A property-change event named an observer id nobody registered."""

    def __init__(self, observer_id: int):
        self.observer_id = observer_id
        super().__init__(f"No observer registered for id {observer_id}")


class TimeoutError(MPVError):
    """A reply did not arrive within the requested timeout."""
    pass


class CommandError(MPVError):
    """mpv answered a command with a non-success error string."""

    def __init__(self, error: str, request_id: int = 0):
        self.error = error
        self.request_id = request_id
        super().__init__(f"mpv command {request_id} failed: {error}")


class MPVNotAvailableError(MPVError):
    """No mpv executable could be found."""

    def __init__(self):
        super().__init__(
            "Could not find an mpv binary to execute. "
            "Set MPVIPC_MPV_PATH or add mpv to PATH."
        )


class MPVUnsupportedFlagError(MPVError):
    """The installed mpv does not know a requested command-line flag."""

    def __init__(self, flag: str):
        self.flag = flag
        super().__init__(f"Installed mpv doesn't support the {flag} flag")
