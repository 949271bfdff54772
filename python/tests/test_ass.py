"""ASS markup tests: escaping, colors and styled text.

Run: python -m pytest tests/test_ass.py -v
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from mpvipc import Color, Text, ass_escape


class TestEscape:
    def test_plain_text_unchanged(self):
        assert ass_escape("hello world") == "hello world"

    def test_braces(self):
        assert ass_escape("{b1}") == "\\{b1\\}"

    def test_backslash_cannot_start_a_tag(self):
        assert ass_escape("a\\N") == "a\\\ufeffN"

    def test_newline_becomes_line_break(self):
        assert ass_escape("one\ntwo") == "one\\Ntwo"


class TestColor:
    def test_blue_green_red_order(self):
        assert Color(0x11, 0x22, 0x33).to_script() == "&H332211&"

    def test_named_colors(self):
        assert Color.black().to_script() == "&H000000&"
        assert Color.white().to_script() == "&HFFFFFF&"
        assert Color.red().to_script() == "&H0000FF&"
        assert Color.green().to_script() == "&H00FF00&"
        assert Color.yellow().to_script() == "&H00FFFF&"

    def test_equality(self):
        assert Color(1, 2, 3) == Color(1, 2, 3)
        assert Color(1, 2, 3) != Color(3, 2, 1)
        assert len({Color.red(), Color(255, 0, 0)}) == 1

    @pytest.mark.parametrize("component", [-1, 256])
    def test_out_of_range(self, component):
        with pytest.raises(ValueError):
            Color(component, 0, 0).to_script()


class TestText:
    def test_default_style(self):
        assert Text("hi").to_script() == "{\\fs40}{\\bord1}{\\3c&H000000&}{\\1c&HFFFFFF&}hi"

    def test_setters_chain(self):
        text = Text("hi").font_size(20).border(3, Color.red()).color(Color.yellow())
        assert text.to_script() == "{\\fs20}{\\bord3}{\\3c&H0000FF&}{\\1c&H00FFFF&}hi"

    def test_text_is_escaped(self):
        assert Text("{x}").to_script().endswith("\\{x\\}")
