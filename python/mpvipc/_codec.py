"""Encode command frames and decode inbound frames for mpv's JSON IPC."""

import json
from typing import Any, Sequence, Union

from . import _protocol as P
from ._errors import ProtocolError
from ._log import log

Frame = Union[P.Reply, P.Event]


def encode_command(args: Sequence[Any], request_id: int) -> bytes:
    """Serialize one command as a newline-terminated JSON frame."""
    payload = {"command": list(args), "request_id": request_id}
    try:
        text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Command is not JSON serializable: {e}") from e
    return text.encode(P.ENCODING) + P.FRAME_DELIMITER


def decode_key_event(args: Sequence[Any]) -> P.KeyEvent:
    """Build a KeyEvent from the arguments following ``key-binding``."""
    if len(args) < 3:
        raise ProtocolError(f"key-binding message has too few arguments: {list(args)!r}")
    section, state, key = args[0], args[1], args[2]
    key2 = args[3] if len(args) > 3 else None
    return P.KeyEvent(section=section, state=state, key=key, key2=key2)


def _decode_event(obj: dict) -> P.Event:
    name = obj["event"]
    if name == P.EVT_PROPERTY_CHANGE:
        return P.PropertyChange(
            event=name,
            raw=obj,
            id=obj.get("id") or 0,
            name=obj.get("name", ""),
            data=obj.get("data"),
        )

    if name == P.EVT_CLIENT_MESSAGE:
        args = obj.get("args") or []
        if not isinstance(args, list):
            raise ProtocolError(f"client-message args is not a list: {args!r}")
        args = tuple(args)
        if args and args[0] == P.MSG_KEY_BINDING:
            # Any script may send "key-binding"; only mpv's own carry a key.
            try:
                key_event = decode_key_event(args[1:])
            except ProtocolError as e:
                log.warning("treating as plain client-message: %s", e)
                return P.ClientMessage(event=name, raw=obj, args=args)
            return P.KeyBinding(event=name, raw=obj, args=args, key_event=key_event)
        return P.ClientMessage(event=name, raw=obj, args=args)

    return P.Event(event=name, raw=obj)


def decode_frame(line: Union[bytes, str]) -> Frame:
    """Decode one line into a Reply or an Event.

    Raises ProtocolError on anything that is not a JSON object.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode(P.ENCODING)
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Frame is not valid UTF-8: {e}") from e

    try:
        obj = json.loads(line)
    except ValueError as e:
        raise ProtocolError(f"Malformed frame: {e}") from e

    if not isinstance(obj, dict):
        raise ProtocolError(f"Frame is not a JSON object: {line[:80]!r}")

    if "event" in obj:
        return _decode_event(obj)

    return P.Reply(
        data=obj.get("data"),
        error=obj.get("error", ""),
        request_id=obj.get("request_id") or 0,
    )
