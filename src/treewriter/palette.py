"""Color cascade: root hues and per-depth lightness."""

import re

BASE_COLOR_HUE = 200
HUE_ROTATION_STEP = 30
BASE_COLOR_SATURATION = 60
BASE_COLOR_LIGHTNESS = 90
LIGHTNESS_STEP_DOWN = 3
MIN_LIGHTNESS = 15

Hsl = tuple[int, int, int]

BASE_HSL: Hsl = (BASE_COLOR_HUE, BASE_COLOR_SATURATION, BASE_COLOR_LIGHTNESS)

_HSL_RE = re.compile(r"hsl\((\d+),\s*(\d+)%,\s*(\d+)%\)")


def root_hsl(root_index: int) -> Hsl:
    """Color of the root card at root_index in the root ordering."""
    hue = (BASE_COLOR_HUE + max(root_index, 0) * HUE_ROTATION_STEP) % 360
    return (hue, BASE_COLOR_SATURATION, BASE_COLOR_LIGHTNESS)


def child_hsl(parent: Hsl) -> Hsl:
    """Color of a child: parent's hue one lightness step darker."""
    hue, saturation, lightness = parent
    return (hue, saturation, max(MIN_LIGHTNESS, lightness - LIGHTNESS_STEP_DOWN))


def format_hsl(hsl: Hsl) -> str:
    """Render as a CSS hsl() string: (200, 60, 90) → "hsl(200, 60%, 90%)"."""
    hue, saturation, lightness = hsl
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def parse_hsl(text: str) -> Hsl | None:
    """Parse an hsl() string back into a tuple, or None if malformed."""
    match = _HSL_RE.fullmatch(text.strip()) if text else None
    if match is None:
        return None
    hue, saturation, lightness = (int(g) for g in match.groups())
    return (hue, saturation, lightness)
