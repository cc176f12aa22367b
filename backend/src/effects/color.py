"""Color type and hex parsing for shadow/highlight endpoints."""

import re
from typing import NamedTuple, Sequence

from effects.errors import MalformedColorString

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


class Color(NamedTuple):
    """8-bit RGB color, no alpha."""

    r: int
    g: int
    b: int

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


def parse_hex(text: str) -> Color:
    """Parse ``#rgb`` / ``#rrggbb`` (leading ``#`` optional) into a Color.

    Shorthand duplicates each nibble, so ``abc`` reads as ``aabbcc``.

    Raises:
        MalformedColorString: wrong length or non-hex characters.
    """
    if not isinstance(text, str):
        raise MalformedColorString(
            f"Expected hex color string, got {type(text).__name__}"
        )
    h = text[1:] if text.startswith("#") else text
    if len(h) not in (3, 6):
        raise MalformedColorString(
            f"Hex color must have 3 or 6 digits, got {len(h)}: {text!r}"
        )
    if not _HEX_DIGITS.fullmatch(h):
        raise MalformedColorString(f"Non-hex characters in color: {text!r}")
    if len(h) == 3:
        h = "".join(c + c for c in h)
    num = int(h, 16)
    return Color((num >> 16) & 255, (num >> 8) & 255, num & 255)


def coerce_color(value: "Color | str | Sequence[int]") -> Color:
    """Accept a Color, a hex string or an (r, g, b) sequence."""
    if isinstance(value, str):
        return parse_hex(value)
    try:
        r, g, b = (int(c) for c in value)
    except (TypeError, ValueError) as e:
        raise MalformedColorString(f"Cannot interpret {value!r} as a color") from e
    # Color instances too: NamedTuple construction doesn't range-check
    for c in (r, g, b):
        if not 0 <= c <= 255:
            raise MalformedColorString(f"Channel {c} outside 0..255 in {value!r}")
    if isinstance(value, Color) and value == (r, g, b):
        return value
    return Color(r, g, b)


def linear_gradient(shadow: Color, highlight: Color, angle: int = 90) -> str:
    """CSS ``linear-gradient`` running from shadow to highlight."""
    lo, hi = coerce_color(shadow), coerce_color(highlight)
    return f"linear-gradient({angle}deg, {lo.to_hex()}, {hi.to_hex()})"
