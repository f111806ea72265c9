"""
Color math for the theme engine.
Provides parsing, color space conversion, mixing, adjustment and the
WCAG luminance / contrast functions used by contrast checking and repair.

All functions are pure. Colors are tuples ``(r, g, b, a)`` with integer
channels in [0, 255] and alpha in [0, 1]; 3-tuples are accepted as input and
treated as opaque.
"""

import re
import math
from typing import List, Optional, Sequence, Tuple, Union

from theme_color_engine.core import CONFIG, memoize
from theme_color_engine.utils.logger import get_logger

# Configure logger
logger = get_logger(__name__)

# Type definitions
RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, float]
Color = RGBA
ColorLike = Union[RGB, RGBA, Sequence[float]]
HSVSL = Tuple[int, int, int, int, int]

# Constants
DEFAULT_ALPHA = 1.0
BLACK: Color = (0, 0, 0, 1.0)
WHITE: Color = (255, 255, 255, 1.0)

_HEX_PATTERN = re.compile(r'^#([0-9a-f]{3,8})$', re.IGNORECASE)
_RGB_PATTERN = re.compile(
    r'^rgba?\(\s*(\d+)[\s,]+(\d+)[\s,]+(\d+)(?:\s*[,/]\s*([\d.]+))?\s*\)$',
    re.IGNORECASE
)
_SRGB_PATTERN = re.compile(
    r'^color\(\s*srgb\s+([\d.]+)\s+([\d.]+)\s+([\d.]+)(?:\s*/\s*([\d.]+))?\s*\)$',
    re.IGNORECASE
)


class ColorError(Exception):
    """Raised when a color literal or numeric color input cannot be parsed."""
    pass


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def alpha_of(rgb: ColorLike) -> float:
    """Alpha channel of a color, 1 when absent."""
    return float(rgb[3]) if len(rgb) > 3 else DEFAULT_ALPHA


def to_color(rgb: ColorLike) -> Color:
    """Normalize a 3- or 4-element sequence to an ``(r, g, b, a)`` tuple."""
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), alpha_of(rgb))


# ---------------------------------------------------------------------------
# Parsing and formatting
# ---------------------------------------------------------------------------

def hex_to_rgb(hex_string: str) -> Color:
    """
    Parse 3, 4, 6 or 8 hex digits (without the hash).

    Args:
        hex_string: Hex digits

    Returns:
        Parsed color

    Raises:
        ColorError: If the digits are not a valid hex color
    """
    digits = hex_string.strip()
    if len(digits) in (3, 4):
        # "rgb" -> "rrggbb"
        digits = ''.join(c + c for c in digits)

    if len(digits) not in (6, 8) or not all(c in '0123456789abcdefABCDEF' for c in digits):
        raise ColorError(f"Invalid hex color format: #{hex_string}")

    alpha = int(digits[6:8], 16) / 255 if len(digits) == 8 else DEFAULT_ALPHA
    return (
        int(digits[0:2], 16),
        int(digits[2:4], 16),
        int(digits[4:6], 16),
        alpha,
    )


def parse_color(text: str) -> Color:
    """
    Parse a color literal.

    Accepts ``#rgb``, ``#rgba``, ``#rrggbb``, ``#rrggbbaa``, ``rgb()``/``rgba()``
    and ``color(srgb r g b [/ a])`` with components in [0, 1].
    Anything else (``var()``, ``color-mix()``, named colors) is not a literal.

    Args:
        text: Color string

    Returns:
        Parsed color

    Raises:
        ColorError: If the text is not a supported literal
    """
    if not text or not isinstance(text, str):
        raise ColorError(f"Empty or invalid color value: {text!r}")

    value = text.strip()

    match = _HEX_PATTERN.match(value)
    if match:
        return hex_to_rgb(match.group(1))

    match = _RGB_PATTERN.match(value)
    if match:
        channels = [int(match.group(i)) for i in range(1, 4)]
        if any(c > 255 for c in channels):
            raise ColorError(f"RGB channel out of range in {value}")
        alpha = float(match.group(4)) if match.group(4) is not None else DEFAULT_ALPHA
        return (channels[0], channels[1], channels[2], min(1.0, alpha))

    match = _SRGB_PATTERN.match(value)
    if match:
        channels = [round_half_up(min(1.0, float(match.group(i))) * 255) for i in range(1, 4)]
        alpha = float(match.group(4)) if match.group(4) is not None else DEFAULT_ALPHA
        return (channels[0], channels[1], channels[2], min(1.0, alpha))

    raise ColorError(f"Unsupported color format: {value}")


def try_parse_color(text: Optional[str]) -> Optional[Color]:
    """Parse a color literal, returning None instead of raising."""
    try:
        return parse_color(text)
    except ColorError:
        return None


def rgb_to_hex_string(rgb: Optional[ColorLike], prepend_hash: bool = True) -> str:
    """
    Format a color as ``#rrggbb``, or ``#rrggbbaa`` when alpha < 1.

    Args:
        rgb: Color to format
        prepend_hash: Whether to include the leading '#'

    Returns:
        Hex string, empty for a null color
    """
    if rgb is None:
        return ''
    hex_string = ''.join(f"{max(0, min(255, int(c))):02x}" for c in rgb[:3])
    alpha = alpha_of(rgb)
    if alpha < 1:
        hex_string += f"{round_half_up(max(0.0, alpha) * 255):02x}"
    return ('#' if prepend_hash else '') + hex_string


def rgb_to_csv_string(rgb: Optional[ColorLike]) -> str:
    """Decimal ``r,g,b`` representation, alpha ignored."""
    if rgb is None:
        return ''
    return f"{int(rgb[0])},{int(rgb[1])},{int(rgb[2])}"


def rgb_equal(rgb1: Optional[ColorLike], rgb2: Optional[ColorLike]) -> bool:
    """Channel equality with a missing alpha treated as 1. Two nulls are equal."""
    if rgb1 is None and rgb2 is None:
        return True
    if rgb1 is None or rgb2 is None:
        return False
    return (
        rgb1[0] == rgb2[0]
        and rgb1[1] == rgb2[1]
        and rgb1[2] == rgb2[2]
        and alpha_of(rgb1) == alpha_of(rgb2)
    )


# ---------------------------------------------------------------------------
# Color space conversion
# ---------------------------------------------------------------------------

@memoize
def rgb_to_hsv_sl(rgb: ColorLike) -> HSVSL:
    """
    Convert a color to its HSV and HSL components.

    The hue is shared between both models and therefore returned once.

    Args:
        rgb: Color with channels in [0, 255]

    Returns:
        ``(hue, saturation_hsv, value, saturation_hsl, lightness)``, hue in
        [0, 360), the others in [0, 100], all rounded to integers
    """
    r, g, b = rgb[0] / 255, rgb[1] / 255, rgb[2] / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    d = max_c - min_c

    if max_c == min_c:
        h = 0.0
    elif max_c == r:
        h = (60 * (g - b) / d + 360) % 360
    elif max_c == g:
        h = (60 * (b - r) / d + 120) % 360
    else:
        h = (60 * (r - g) / d + 240) % 360

    s_hsv = 0.0 if max_c == 0 else d / max_c
    s_hsl = 0.0 if max_c == min_c else 100 * d / (1 - abs(max_c + min_c - 1))

    return (
        round_half_up(h),
        round_half_up(s_hsv * 100),
        round_half_up(max_c * 100),
        round_half_up(s_hsl),
        round_half_up((max_c + min_c) * 50),
    )


def hsv_to_rgb(hsv: Sequence[float], alpha: float = DEFAULT_ALPHA) -> Color:
    """
    Convert HSV to a color.

    Args:
        hsv: ``(hue, saturation, value)``, hue in degrees (any range),
            saturation and value in [0, 100]
        alpha: Alpha of the resulting color

    Returns:
        Color with rounded channels
    """
    h, s, v = hsv[0], hsv[1] / 100, hsv[2] / 100

    def channel(n: int) -> int:
        k = (n + h / 60) % 6
        return round_half_up(v * (1 - s * max(min(k, 4 - k, 1), 0)) * 255)

    return (channel(5), channel(3), channel(1), alpha)


def hsl_to_rgb(hsl: Sequence[float], alpha: float = DEFAULT_ALPHA) -> Color:
    """
    Convert HSL to a color.

    Args:
        hsl: ``(hue, saturation, lightness)``, hue in degrees (any range),
            saturation and lightness in [0, 100]
        alpha: Alpha of the resulting color

    Returns:
        Color with rounded channels
    """
    h, s, l = hsl[0], hsl[1] / 100, hsl[2] / 100

    def channel(n: int) -> int:
        k = (n + h / 30) % 12
        return round_half_up((l - s * min(l, 1 - l) * max(min(k - 3, 9 - k, 1), -1)) * 255)

    return (channel(0), channel(8), channel(4), alpha)


# ---------------------------------------------------------------------------
# Mixing and adjustment
# ---------------------------------------------------------------------------

def mix_colors(
    colors: Sequence[Optional[ColorLike]],
    weights: Optional[Sequence[float]] = None
) -> Color:
    """
    Weighted per-channel average of colors.

    Colors that are None and weights that are not positive are skipped.
    Missing weights default to 1.

    Args:
        colors: Colors to mix
        weights: Optional relative weights

    Returns:
        Mixed color, opaque black if the total weight is zero
    """
    mixed = [0.0, 0.0, 0.0, 0.0]
    total = 0.0

    for i, color in enumerate(colors or []):
        weight = weights[i] if weights is not None and len(weights) > i else 1
        if weight <= 0 or color is None:
            continue
        total += weight
        mixed[0] += color[0] * weight
        mixed[1] += color[1] * weight
        mixed[2] += color[2] * weight
        mixed[3] += alpha_of(color) * weight

    if total == 0:
        return BLACK

    return (
        round_half_up(mixed[0] / total),
        round_half_up(mixed[1] / total),
        round_half_up(mixed[2] / total),
        mixed[3] / total,
    )


def inverted_color(rgb: Optional[ColorLike]) -> Optional[Color]:
    """Full channel inversion, alpha kept."""
    if rgb is None:
        return None
    return (255 - int(rgb[0]), 255 - int(rgb[1]), 255 - int(rgb[2]), alpha_of(rgb))


def invert(rgb: Optional[ColorLike], amount: float = 1) -> Optional[Color]:
    """
    Invert a color gradually.

    Args:
        rgb: Color to invert
        amount: 0 keeps the color, 1 inverts it fully; clamped to [0, 1]

    Returns:
        Inverted color, None for a null color
    """
    if rgb is None:
        return None
    amount = max(0.0, min(1.0, amount))
    if amount == 0:
        return to_color(rgb)
    if amount == 1:
        return inverted_color(rgb)
    return (
        round_half_up(rgb[0] + amount * (255 - 2 * rgb[0])),
        round_half_up(rgb[1] + amount * (255 - 2 * rgb[1])),
        round_half_up(rgb[2] + amount * (255 - 2 * rgb[2])),
        alpha_of(rgb),
    )


def hue_rotate(rgb: Optional[ColorLike], degrees: float) -> Optional[Color]:
    """Rotate the HSL hue of a color by the given degrees."""
    if rgb is None:
        return None
    if not degrees:
        return to_color(rgb)
    hsvsl = rgb_to_hsv_sl(rgb)
    return hsl_to_rgb((hsvsl[0] + degrees, hsvsl[3], hsvsl[4]), alpha_of(rgb))


def adjust_hsl(
    rgb: Optional[ColorLike],
    hue: float = 0,
    saturation_factor: float = 1,
    lightness_factor: float = 1
) -> Optional[Color]:
    """
    Adjust the HSL components of a color.

    Args:
        rgb: Color to adjust
        hue: Degrees added to the hue
        saturation_factor: 0 removes saturation, 1 keeps it, >1 increases it
        lightness_factor: 0 gives black, 1 keeps lightness, >1 lightens

    Returns:
        Adjusted color, None for a null color
    """
    if rgb is None:
        return None
    hsvsl = rgb_to_hsv_sl(rgb)
    return hsl_to_rgb(
        (
            hsvsl[0] + hue,
            min(100, max(0, hsvsl[3] * saturation_factor)),
            min(100, max(0, hsvsl[4] * lightness_factor)),
        ),
        alpha_of(rgb)
    )


def inverse_lightness(rgb: Optional[ColorLike]) -> Optional[Color]:
    """Mirror the HSL lightness of a color (l -> 100 - l)."""
    if rgb is None:
        return None
    hsvsl = rgb_to_hsv_sl(rgb)
    return hsl_to_rgb((hsvsl[0], hsvsl[3], 100 - hsvsl[4]), alpha_of(rgb))


def inverse_luminance(rgb: Optional[ColorLike]) -> Optional[Color]:
    """Color of the same hue and saturation with relative luminance 1 - L."""
    if rgb is None:
        return None
    return set_relative_luminance(rgb, 1 - relative_luminance(rgb))


# ---------------------------------------------------------------------------
# Luminance and contrast
# ---------------------------------------------------------------------------

def _linear_channel(value: float) -> float:
    c = value / 255
    return c / 12.92 if c < 0.03928 else ((c + 0.055) / 1.055) ** 2.4


@memoize
def relative_luminance(rgb: ColorLike) -> float:
    """
    WCAG 2.0 relative luminance in [0, 1].

    Args:
        rgb: Color, alpha is ignored

    Returns:
        Relative luminance
    """
    return (
        0.2126 * _linear_channel(rgb[0])
        + 0.7152 * _linear_channel(rgb[1])
        + 0.0722 * _linear_channel(rgb[2])
    )


def luminance_contrast(luminance1: float, luminance2: float) -> float:
    """Contrast ratio of two relative luminances, in [1, 21]."""
    lighter = max(luminance1, luminance2)
    darker = min(luminance1, luminance2)
    return (lighter + 0.05) / (darker + 0.05)


def contrast_ratio(rgb1: Optional[ColorLike], rgb2: Optional[ColorLike]) -> Optional[float]:
    """
    Contrast ratio between two colors.

    If either color is translucent each luminance is first blended toward the
    other proportionally to its own alpha. That is only an approximation, the
    real contrast depends on the backdrop the colors are drawn on.

    Args:
        rgb1: First color
        rgb2: Second color

    Returns:
        Contrast ratio in [1, 21], None if either color is null
    """
    if rgb1 is None or rgb2 is None:
        return None
    lum1 = relative_luminance(rgb1)
    lum2 = relative_luminance(rgb2)
    alpha1 = alpha_of(rgb1)
    alpha2 = alpha_of(rgb2)
    if alpha1 == 1 and alpha2 == 1:
        return luminance_contrast(lum1, lum2)
    return luminance_contrast(
        lum1 * alpha1 + lum2 * (1 - alpha1),
        lum2 * alpha2 + lum1 * (1 - alpha2)
    )


def needed_luminance_range(luminance: float, min_contrast: float) -> Tuple[float, float]:
    """
    Luminances that fail to reach a contrast against a given luminance.

    Values at or below the low bound, or at or above the high bound, reach
    ``min_contrast``. The bounds may lie outside [0, 1] when one side cannot
    be reached at all.

    Args:
        luminance: Relative luminance of the other color
        min_contrast: Required contrast ratio

    Returns:
        ``(low, high)``; ``(luminance, luminance)`` when nothing is excluded
    """
    if min_contrast < 1:
        return (luminance, luminance)
    return (
        (luminance + 0.05) / min_contrast - 0.05,
        min_contrast * (luminance + 0.05) - 0.05,
    )


def set_relative_luminance(
    rgb: ColorLike,
    target: float,
    max_difference: Optional[float] = None,
    prefer: Optional[str] = None
) -> Color:
    """
    Color with the same hue and saturation and a given relative luminance.

    Binary search over HSL lightness, using that luminance is monotonically
    non-decreasing in lightness.

    Args:
        rgb: Source color
        target: Relative luminance to reach
        max_difference: Accepted distance to the target; defaults to
            CONFIG["luminance_tolerance"]
        prefer: "below" or "above" to only accept results on that side of
            the target; the closest such candidate is returned if the search
            does not converge

    Returns:
        Adjusted color
    """
    if prefer not in (None, "above", "below"):
        raise ValueError(f"prefer must be 'above', 'below' or None, got {prefer!r}")

    tolerance = CONFIG["luminance_tolerance"] if max_difference is None else max_difference
    max_iterations = CONFIG["luminance_max_iterations"]
    hsvsl = rgb_to_hsv_sl(rgb)
    alpha = alpha_of(rgb)

    min_lightness = 0.0
    max_lightness = 100.0
    candidate = to_color(rgb)
    best_preferred: Optional[Color] = None
    best_preferred_diff = math.inf

    for _ in range(max_iterations):
        lightness = (min_lightness + max_lightness) / 2
        candidate = hsl_to_rgb((hsvsl[0], hsvsl[3], lightness), alpha)
        diff = target - relative_luminance(candidate)

        on_preferred_side = (
            prefer is None
            or (prefer == "below" and diff >= 0)
            or (prefer == "above" and diff <= 0)
        )
        if on_preferred_side and abs(diff) < best_preferred_diff:
            best_preferred = candidate
            best_preferred_diff = abs(diff)

        if abs(diff) < tolerance and on_preferred_side:
            return candidate

        if diff > 0:
            min_lightness = lightness
        else:
            max_lightness = lightness

    if prefer is not None and best_preferred is not None:
        return best_preferred
    return candidate


__all__ = [
    "RGB", "RGBA", "Color", "ColorLike", "BLACK", "WHITE",
    "ColorError",
    "round_half_up", "alpha_of", "to_color",
    "hex_to_rgb", "parse_color", "try_parse_color",
    "rgb_to_hex_string", "rgb_to_csv_string", "rgb_equal",
    "rgb_to_hsv_sl", "hsv_to_rgb", "hsl_to_rgb",
    "mix_colors", "inverted_color", "invert", "hue_rotate", "adjust_hsl",
    "inverse_lightness", "inverse_luminance",
    "relative_luminance", "luminance_contrast", "contrast_ratio",
    "needed_luminance_range", "set_relative_luminance",
]
