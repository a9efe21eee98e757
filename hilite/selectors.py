from __future__ import annotations

import logging
import re

from .colors import looks_like_color, parse_color
from .types import CharRange, Selector

logger = logging.getLogger(__name__)

_SLICE = re.compile(r"(-?\d*)\.\.(-?\d*)")
_OFFSET = re.compile(r"(-?\d+)\+(\d+)")
_FIELD = re.compile(r"-?\d+")


class SelectorError(ValueError):
    """A selector argument could not be parsed.

    The message always names the offending token.
    """
    def __init__(self, selector: str, token: str, reason: str) -> None:
        self.selector = selector
        self.token = token
        self.reason = reason
        super().__init__(f"{reason}: {token!r} in selector {selector!r}")


def _int_or_none(value: str) -> int | None:
    return int(value) if value else None


def parse_range(token: str) -> CharRange | None:
    """Return the CharRange for 'token', or None if it is not a range."""
    m = _SLICE.fullmatch(token)
    if m:
        start, end = m.groups()
        if start == "-" or end == "-":
            return None
        return CharRange(start=_int_or_none(start), end=_int_or_none(end))
    m = _OFFSET.fullmatch(token)
    if m:
        return CharRange(start=int(m.group(1)), length=int(m.group(2)))
    return None


def parse_selector(text: str, one_based: bool = False) -> Selector:
    """Parse FIELD[:RANGE][:COLOR] into a Selector.

    RANGE is START..END or OFFSET+LENGTH, COLOR a name understood by
    colors.parse_color. Without a color the span is wrapped in markers.
    With one_based, positive field numbers start at 1.
    """
    tokens = text.strip().split(":")
    field_token, rest = tokens[0], tokens[1:]
    if not _FIELD.fullmatch(field_token):
        raise SelectorError(text, field_token, "field must be an integer")
    field = int(field_token)
    if one_based and field > 0:
        field -= 1
    elif one_based and field == 0:
        raise SelectorError(text, field_token, "fields are numbered from 1")

    if len(rest) > 2:
        raise SelectorError(text, ":".join(rest[2:]), "too many parts")

    chars: CharRange | None = None
    color = None
    for token in rest:
        if not token:
            raise SelectorError(text, token, "empty part")
        char_range = parse_range(token)
        if char_range is not None:
            if chars is not None:
                raise SelectorError(text, token, "character range given twice")
            chars = char_range
            continue
        if color is not None:
            reason = "color given twice" if looks_like_color(token) else "not a range or color"
            raise SelectorError(text, token, reason)
        try:
            color = parse_color(token)
        except ValueError as e:
            raise SelectorError(text, token, str(e)) from e
    selector = Selector(field=field, chars=chars, color=color, source=text)
    logger.debug("parsed selector %r -> %s", text, selector)
    return selector
