"""Shared fixtures: a scripted mpv endpoint speaking the JSON IPC protocol.

FakeMPV sits on one end of a ``socket.socketpair()`` and answers commands
the way mpv does for the subset the client uses: properties, observation,
script messages, input sections and keypresses, and osd-overlay. Every
command and overlay it receives is recorded for assertions.
"""

import json
import os
import socket
import sys
import threading
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mpvipc import Client


class FakeMPV:
    CLIENT_NAME = "ipc_0"

    def __init__(self, chatty: bool = False) -> None:
        self.client_socket, self._sock = socket.socketpair()
        self._reader = self._sock.makefile("rb")
        self._write_lock = threading.Lock()
        self.chatty = chatty

        self.properties = {"volume": 100.0, "pause": False}
        self.observers = {}        # observer id -> property name
        self.sections = {}         # section name -> {"bindings": {key: target}, "flags": str}
        self.enabled = []          # enabled section names, most recent last
        self.overlays = []         # (format, data) per osd-overlay command
        self.commands = []         # every command list received
        self.fail_commands = set()

        self._thread = threading.Thread(target=self._serve, name="fake-mpv", daemon=True)
        self._thread.start()

    # ─── Wire ─────────────────────────────────────────────────────────────

    def send(self, obj) -> None:
        self.send_raw(json.dumps(obj).encode("utf-8") + b"\n")

    def send_raw(self, data: bytes) -> None:
        with self._write_lock:
            self._sock.sendall(data)

    def close(self) -> None:
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()

    def _serve(self) -> None:
        try:
            for line in self._reader:
                frame = json.loads(line)
                args = frame["command"]
                self.commands.append(args)
                data, error, events = self._handle(args)
                reply = {"error": error, "request_id": frame.get("request_id", 0)}
                if data is not None:
                    reply["data"] = data
                self.send(reply)
                for event in events:
                    self.send(event)
                if self.chatty:
                    self.send({"event": "audio-reconfig"})
                if args[0] == "quit":
                    self.close()
                    return
        except (OSError, ValueError):
            return  # client went away

    # ─── Command semantics ────────────────────────────────────────────────

    def _handle(self, args):
        name, rest = args[0], args[1:]
        if name in self.fail_commands:
            return None, "error running command", []

        if name == "client_name":
            return self.CLIENT_NAME, "success", []

        if name == "get_property":
            if rest[0] not in self.properties:
                return None, "property not found", []
            return self.properties[rest[0]], "success", []

        if name == "set_property":
            prop, value = rest
            if isinstance(self.properties.get(prop), float):
                value = float(value)
            self.properties[prop] = value
            events = [
                {"event": "property-change", "id": oid, "name": prop, "data": value}
                for oid, watched in list(self.observers.items()) if watched == prop
            ]
            return None, "success", events

        if name == "observe_property":
            oid, prop = rest
            self.observers[oid] = prop
            return None, "success", [
                {"event": "property-change", "id": oid, "name": prop,
                 "data": self.properties.get(prop)}
            ]

        if name == "unobserve_property":
            self.observers.pop(rest[0], None)
            return None, "success", []

        if name == "script-message":
            return None, "success", [{"event": "client-message", "args": list(rest)}]

        if name == "define-section":
            section, contents = rest[0], rest[1]
            bindings = {}
            for line in contents.splitlines():
                key, _, target = line.split(" ", 2)
                bindings[key] = target
            flags = rest[2] if len(rest) > 2 else "default"
            self.sections[section] = {"bindings": bindings, "flags": flags}
            return None, "success", []

        if name == "enable-section":
            if rest[0] in self.enabled:
                self.enabled.remove(rest[0])
            self.enabled.append(rest[0])
            return None, "success", []

        if name == "disable-section":
            if rest[0] in self.enabled:
                self.enabled.remove(rest[0])
            return None, "success", []

        if name == "keypress":
            key = rest[0]
            for section in reversed(self.enabled):
                target = self.sections[section]["bindings"].get(key)
                if target is not None:
                    binding = target.split("/", 1)[1]
                    return None, "success", [{
                        "event": "client-message",
                        "args": ["key-binding", binding, "p-", key, key],
                    }]
            return None, "success", []

        if name == "osd-overlay":
            self.overlays.append((rest[1], rest[2]))
            return None, "success", []

        if name == "quit":
            return None, "success", []

        return None, "invalid parameter", []

    # ─── Helpers ──────────────────────────────────────────────────────────

    def count(self, command: str) -> int:
        return sum(1 for args in list(self.commands) if args[0] == command)


def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def fake_mpv():
    fake = FakeMPV()
    yield fake
    fake.close()


@pytest.fixture
def client(fake_mpv):
    c = Client(fake_mpv.client_socket)
    yield c
    c.close()


@pytest.fixture
def peer():
    """A raw socket pair: (client end, test-controlled mpv end)."""
    a, b = socket.socketpair()
    yield a, b
    for s in (a, b):
        try:
            s.close()
        except OSError:
            pass
