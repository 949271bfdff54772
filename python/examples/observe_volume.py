#!/usr/bin/env python3
"""Observe a property and show each change on the OSD.

Spawns an idle mpv, watches ``volume`` and steps it down a few times.

Usage:
    python examples/observe_volume.py
"""

import os
import sys
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import mpvipc


def on_volume(change):
    print(f"volume -> {change.data}")
    client.osd.create(f"Volume: {change.data:.0f}", timeout=1.0)


with mpvipc.Session(user_args=["--no-config", "--force-window"]) as s:
    client = s.client
    client.observe_property("volume", on_volume)

    for volume in (80, 60, 40):
        time.sleep(1.0)
        s.set_property("volume", volume)

    time.sleep(1.5)
    s.quit()
