from __future__ import annotations

from dataclasses import dataclass

# Resets the foreground only, so attributes set by the input survive.
RESET_FG = "\x1b[39m"


@dataclass(frozen=True)
class Color:
    """A named color.

    - name: the token as written on the command line
    - code: ANSI SGR sequence, or None for the 'size' scale
    """
    name: str
    code: str | None

    @property
    def is_size(self) -> bool:
        return self.code is None


@dataclass(frozen=True)
class CharRange:
    """Character slice inside a field.

    Either START..END with slice semantics, or OFFSET+LENGTH when length is set.
    """
    start: int | None = None
    end: int | None = None
    length: int | None = None

    def bounds(self, size: int) -> tuple[int, int]:
        if self.length is None:
            start, end, _ = slice(self.start, self.end).indices(size)
            return start, max(start, end)
        start, _, _ = slice(self.start, None).indices(size)
        return start, min(start + self.length, size)


@dataclass(frozen=True)
class Selector:
    field: int
    chars: CharRange | None = None
    color: Color | None = None
    # Original text, kept for log messages
    source: str = ""


@dataclass(frozen=True)
class Style:
    prefix: str
    suffix: str

    def wrap(self, text: str) -> str:
        return self.prefix + text + self.suffix
