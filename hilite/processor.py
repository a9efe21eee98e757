from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TextIO

from .colors import parse_color, parse_size
from .config import Config
from .types import RESET_FG, Selector, Style

logger = logging.getLogger(__name__)

_NON_SPACE = re.compile(r"\S+")

Span = tuple[int, int]


def split_fields(line: str, delimiter: str | None = None) -> list[Span]:
    """Return the (start, end) offsets of every field in 'line'.

    Without a delimiter, fields are runs of non-whitespace. With one, every
    occurrence splits, so adjacent delimiters give empty fields.
    """
    if not line:
        return []
    if delimiter is None:
        return [m.span() for m in _NON_SPACE.finditer(line)]
    spans: list[Span] = []
    start = 0
    while True:
        idx = line.find(delimiter, start)
        if idx < 0:
            spans.append((start, len(line)))
            return spans
        spans.append((start, idx))
        start = idx + len(delimiter)


@dataclass
class Processor:
    config: Config
    selectors: list[Selector]
    use_color: bool = True
    _marker: Style = field(init=False, repr=False)
    _size_colors: dict[str, Style] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._marker = Style(self.config.open, self.config.close)
        self._size_colors = {
            name: Style(parse_color(name).code or "", RESET_FG) for name in ("green", "yellow", "red")
        }

    @classmethod
    def from_config(cls, config: Config, use_color: bool = True) -> "Processor":
        return cls(config=config, selectors=config.compile_selectors(), use_color=use_color)

    def process_stream(self, src: TextIO, dst: TextIO) -> None:
        for line_number, raw_line in enumerate(src, start=1):
            body = raw_line.rstrip("\r\n")
            ending = raw_line[len(body):] or "\n"
            dst.write(self.highlight_line(body, line_number) + ending)

    def highlight_line(self, line: str, line_number: int = 0) -> str:
        """Wrap every selected span of 'line', leaving all other characters as they are."""
        offset = 0
        if self.config.skip is not None:
            idx = line.find(self.config.skip)
            if idx < 0:
                logger.debug("line %d: skip string %r not found", line_number, self.config.skip)
                return line
            offset = idx + len(self.config.skip)

        fields = [(s + offset, e + offset) for s, e in split_fields(line[offset:], self.config.delimiter)]
        spans = self._collect_spans(fields, line_number)
        if not spans:
            return line

        out: list[str] = []
        pos = 0
        for start, end, selector in spans:
            out.append(line[pos:start])
            out.append(self._render(line[start:end], selector, line_number))
            pos = end
        out.append(line[pos:])
        return "".join(out)

    def _collect_spans(self, fields: list[Span], line_number: int) -> list[tuple[int, int, Selector]]:
        accepted: list[tuple[int, int, Selector]] = []
        for selector in self.selectors:
            if not -len(fields) <= selector.field < len(fields):
                logger.debug(
                    "line %d: field %d not present (%d fields), selector %r",
                    line_number, selector.field, len(fields), selector.source,
                )
                continue
            start, end = fields[selector.field]
            if selector.chars is not None:
                lo, hi = selector.chars.bounds(end - start)
                if lo >= hi:
                    continue
                start, end = start + lo, start + hi
            if any(_overlaps((start, end), (s, e)) for s, e, _ in accepted):
                logger.debug("line %d: selector %r overlaps an earlier one", line_number, selector.source)
                continue
            accepted.append((start, end, selector))
        accepted.sort(key=lambda item: (item[0], item[1]))
        return accepted

    def _render(self, text: str, selector: Selector, line_number: int) -> str:
        color = selector.color
        if color is None or not self.use_color:
            return self._marker.wrap(text)
        if not color.is_size:
            return Style(color.code or "", RESET_FG).wrap(text)
        try:
            size = parse_size(text)
        except ValueError:
            logger.warning("line %d: %r is not a size, left unhighlighted", line_number, text)
            return text
        if size > self.config.red_size:
            return self._size_colors["red"].wrap(text)
        if size > self.config.yellow_size:
            return self._size_colors["yellow"].wrap(text)
        return self._size_colors["green"].wrap(text)


def _overlaps(a: Span, b: Span) -> bool:
    # An empty span conflicts only with its twin or a span strictly around it
    return a == b or (a[0] < b[1] and b[0] < a[1])
