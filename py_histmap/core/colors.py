"""Color-string parsing for metadata colors."""

import math
import re
from typing import Any, Tuple

RGBA = Tuple[int, int, int, int]

FALLBACK_COLOR: RGBA = (0, 0, 0, 255)

_RGB_PATTERN = re.compile(r"rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)")
_RGBA_PATTERN = re.compile(
    r"rgba\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*([\d.]+)\s*\)"
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_color(value: Any) -> RGBA:
    """
    Convert an ``rgb()`` or ``rgba()`` string to an RGBA tuple.

    ``rgba`` alpha is a 0-1 float scaled to 0-255. Anything that does not
    match either form yields opaque black.

    Args:
        value: Color string like "rgba(173, 135, 27, 1)" or "rgb(173, 135, 27)"

    Returns:
        Tuple of (r, g, b, a)
    """
    if not isinstance(value, str):
        return FALLBACK_COLOR

    match = _RGB_PATTERN.search(value)
    if match:
        r, g, b = (int(group) for group in match.groups())
        return (r, g, b, 255)

    match = _RGBA_PATTERN.search(value)
    if match:
        try:
            alpha = float(match.group(4))
        except ValueError:
            # e.g. "1.2.3" matches the character class but is not a float
            return FALLBACK_COLOR
        r, g, b = (int(group) for group in match.groups()[:3])
        return (r, g, b, _round_half_up(alpha * 255))

    return FALLBACK_COLOR
