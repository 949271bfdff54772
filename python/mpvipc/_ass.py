"""Minimal ASS (SubStation Alpha) markup for OSD overlay text."""


def ass_escape(text: str) -> str:
    """Escape plain text so libass renders it literally."""
    # A zero-width no-break space after each backslash stops it from
    # starting an override tag.
    text = text.replace("\\", "\\\ufeff")
    text = text.replace("{", "\\{").replace("}", "\\}")
    return text.replace("\n", "\\N")


def _hex(component: int) -> str:
    if not 0 <= component <= 255:
        raise ValueError(f"color component out of range: {component}")
    return f"{component:02X}"


class Color:
    """An RGB color, rendered in ASS's blue-green-red order."""

    __slots__ = ("rgb",)

    def __init__(self, red: int, green: int, blue: int) -> None:
        self.rgb = (red, green, blue)

    @classmethod
    def black(cls) -> "Color":
        return cls(0, 0, 0)

    @classmethod
    def white(cls) -> "Color":
        return cls(255, 255, 255)

    @classmethod
    def red(cls) -> "Color":
        return cls(255, 0, 0)

    @classmethod
    def green(cls) -> "Color":
        return cls(0, 255, 0)

    @classmethod
    def yellow(cls) -> "Color":
        return cls(255, 255, 0)

    def to_script(self) -> str:
        red, green, blue = self.rgb
        return f"&H{_hex(blue)}{_hex(green)}{_hex(red)}&"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Color):
            return NotImplemented
        return self.rgb == other.rgb

    def __hash__(self) -> int:
        return hash(self.rgb)

    def __repr__(self) -> str:
        return "Color(%d, %d, %d)" % self.rgb


class Text:
    """Plain text plus a style, rendered as one ASS event line.

    Style setters return ``self`` so they can be chained::

        Text("Delete?").font_size(32).color(Color.yellow()).to_script()
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._style = {
            "fs": 40,
            "bord": 1,
            "3c": Color.black().to_script(),
            "1c": Color.white().to_script(),
        }

    def font_size(self, size: int) -> "Text":
        self._style["fs"] = size
        return self

    def border(self, size: int, color: Color) -> "Text":
        self._style["bord"] = size
        self._style["3c"] = color.to_script()
        return self

    def color(self, color: Color) -> "Text":
        self._style["1c"] = color.to_script()
        return self

    def to_script(self) -> str:
        tags = "".join(f"{{\\{k}{v}}}" for k, v in self._style.items())
        return tags + ass_escape(self.text)

    def __repr__(self) -> str:
        return f"Text({self.text!r})"
