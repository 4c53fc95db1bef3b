"""Hex / RGB / HSV conversions used by the color picker and request validation.

Hue is in degrees [0, 360), saturation and value in percent [0, 100].
"""

from __future__ import annotations

import math
import re

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)

MAX_HUE = 359.99


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    """Parse a 6-digit hex color (leading ``#`` optional). Returns None if malformed."""
    match = _HEX_RE.match(value)
    if match is None:
        return None
    r, g, b = (int(group, 16) for group in match.groups())
    return r, g, b


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format channels as uppercase ``#RRGGBB``. Channels must already be in [0, 255]."""
    return f"#{r:02X}{g:02X}{b:02X}"


def normalize_hex(value: str) -> str:
    """Return the canonical ``#RRGGBB`` form of a hex color or raise ValueError."""
    rgb = hex_to_rgb(value.strip())
    if rgb is None:
        raise ValueError(f"Invalid hex color: {value!r}")
    return rgb_to_hex(*rgb)


def rgb_to_hsv(r: int, g: int, b: int) -> tuple[float, float, float]:
    rf, gf, bf = r / 255, g / 255, b / 255
    high = max(rf, gf, bf)
    low = min(rf, gf, bf)
    delta = high - low

    s = 0.0 if high == 0 else delta / high
    h = 0.0
    if delta != 0:
        if high == rf:
            h = (gf - bf) / delta + (6 if gf < bf else 0)
        elif high == gf:
            h = (bf - rf) / delta + 2
        else:
            h = (rf - gf) / delta + 4
        h /= 6
    return h * 360, s * 100, high * 100


def hsv_to_rgb(h: float, s: float, v: float) -> tuple[int, int, int]:
    s /= 100
    v /= 100
    sector = math.floor(h / 60)
    f = h / 60 - sector
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)

    r, g, b = {
        0: (v, t, p),
        1: (q, v, p),
        2: (p, v, t),
        3: (p, q, v),
        4: (t, p, v),
        5: (v, p, q),
    }[sector % 6]
    return _round_channel(r), _round_channel(g), _round_channel(b)


def clamp_hsv(h: float, s: float, v: float) -> tuple[float, float, float]:
    """Clamp picker coordinates into the valid HSV box."""
    return (
        max(0.0, min(MAX_HUE, h)),
        max(0.0, min(100.0, s)),
        max(0.0, min(100.0, v)),
    )


def _round_channel(value: float) -> int:
    # Half-up rounding; Python's round() is banker's rounding
    return int(math.floor(value * 255 + 0.5))
