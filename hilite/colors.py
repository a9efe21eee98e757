from __future__ import annotations

import os
import re
from typing import TextIO

from .types import Color

"""Color names, ANSI sequences and byte-size parsing.

Colors map to foreground SGR sequences: the eight basic names use 3N,
'fixed(N)' the 256-color palette and 'rgb(R,G,B)' truecolor.
"""

BASIC_COLORS: dict[str, int] = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
    "default": 9,
}

SIZE = "size"

_FIXED = re.compile(r"fixed\((\d+)\)")
_RGB = re.compile(r"rgb\((\d+),(\d+),(\d+)\)")
_SIZE_TEXT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)\s*([kmgtpe]?)(i?)(b?)", re.IGNORECASE)

_UNIT_POWERS = {"": 0, "k": 1, "m": 2, "g": 3, "t": 4, "p": 5, "e": 6}


def _sgr(body: str) -> str:
    return f"\x1b[3{body}m"


def _channel(value: str) -> int:
    number = int(value)
    if number > 255:
        raise ValueError(f"color component {number} out of range 0-255")
    return number


def parse_color(token: str) -> Color:
    """Translate a color name into a Color, raising ValueError if unknown."""
    name = token.strip().lower()
    if name == SIZE:
        return Color(name=name, code=None)
    if name in BASIC_COLORS:
        return Color(name=name, code=_sgr(str(BASIC_COLORS[name])))
    m = _FIXED.fullmatch(name)
    if m:
        return Color(name=name, code=_sgr(f"8;5;{_channel(m.group(1))}"))
    m = _RGB.fullmatch(name.replace(" ", ""))
    if m:
        red, green, blue = (_channel(v) for v in m.groups())
        return Color(name=name, code=_sgr(f"8;2;{red};{green};{blue}"))
    raise ValueError("unknown color")


def looks_like_color(token: str) -> bool:
    name = token.strip().lower()
    return name == SIZE or name in BASIC_COLORS or name.startswith(("fixed(", "rgb("))


def parse_size(text: str) -> int:
    """Parse a byte size such as '126M', '8.4 MiB', '691K' or '0'.

    Plain unit letters are decimal (K = 1000), an 'i' makes them binary (Ki = 1024).
    """
    m = _SIZE_TEXT.fullmatch(text.strip())
    if not m:
        raise ValueError(f"not a byte size: {text!r}")
    number, unit, binary, _ = m.groups()
    if binary and not unit:
        raise ValueError(f"not a byte size: {text!r}")
    base = 1024 if binary else 1000
    return int(float(number) * base ** _UNIT_POWERS[unit.lower()])


def should_use_color(stream: TextIO, mode: str = "auto") -> bool:
    """Decide whether ANSI colors are written to 'stream'.

    'auto' honours NO_COLOR (https://no-color.org/) and requires a TTY.
    """
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR") is not None:
        return False
    try:
        return stream.isatty()
    except AttributeError:
        return False
