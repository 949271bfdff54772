"""mpvipc logger.

Usage from any module::

    from ._log import log

    log.debug("send request_id=%d", request_id)
    log.warning("dropping reply without request_id")

Enable via environment variable::

    MPVIPC_LOG=DEBUG python my_script.py   # all messages
    MPVIPC_LOG=INFO  python my_script.py   # info and above
    MPVIPC_LOG=1     python my_script.py   # alias for DEBUG

Or programmatically::

    import logging
    logging.getLogger("mpvipc").setLevel(logging.DEBUG)
"""

import logging
import os

log = logging.getLogger("mpvipc")

_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "RESET": "\033[0m",
}

_ALIASES = {"1": "DEBUG", "0": "WARNING", "TRUE": "DEBUG", "FALSE": "WARNING"}


class ColoredFormatter(logging.Formatter):
    """Add colors to log levels when the handler writes to a terminal."""

    def __init__(self, fmt: str, stream=None) -> None:
        super().__init__(fmt)
        self._stream = stream

    def format(self, record):
        isatty = getattr(self._stream, "isatty", None)
        if isatty is not None and isatty():
            record = logging.makeLogRecord(record.__dict__)
            color = _COLORS.get(record.levelname, "")
            record.levelname = f"{color}{record.levelname}{_COLORS['RESET']}"
        return super().format(record)


def level_from_env(value: str):
    """Translate a MPVIPC_LOG value into a logging level, or None."""
    name = value.strip().upper()
    if not name:
        return None
    name = _ALIASES.get(name, name)
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else None


_level = level_from_env(os.environ.get("MPVIPC_LOG", ""))
if _level is not None:
    log.setLevel(_level)
    if not log.handlers:
        _handler = logging.StreamHandler()
        _handler.setFormatter(ColoredFormatter(
            "[mpvipc %(levelname)s] %(message)s (%(threadName)s %(filename)s:%(lineno)d)",
            stream=_handler.stream,
        ))
        log.addHandler(_handler)
