#!/usr/bin/env python3
"""Ask a yes/no question with a modal key prompt.

Connects to an mpv that is already running with an IPC socket::

    mpv --input-ipc-server=/tmp/mpv.sock --idle --force-window

Usage:
    python examples/modal_prompt.py /tmp/mpv.sock
"""

import os
import sys
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import mpvipc
from mpvipc import Color, Text

path = sys.argv[1] if len(sys.argv) > 1 else mpvipc.resolve_socket_path()

with mpvipc.Client.from_unix_socket_path(path) as client:
    question = Text("Really quit? [y/n, ESC cancels]").font_size(32).color(Color.yellow())
    prompt = client.enter_modal_mode(question, ["y", "n"], lambda event: None)

    event = prompt.wait()
    if event is None or event.key == prompt.exit_key:
        print("cancelled")
    elif event.key == "y":
        print("quitting mpv")
        client.quit()
    else:
        client.osd.create("Staying", timeout=1.5)
        print("staying")
        time.sleep(1.5)
