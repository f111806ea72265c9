"""
Approximates a color with a CSS filter chain applied to black.

The chain ``invert(0.5) sepia(1) hue-rotate(h) brightness(b) saturate(s)``
turns black into a tinted color; the parameters are refined iteratively until
the result is close to the target. Useful to recolor monochrome icons.

The filter primitives are the matrices of the W3C Filter Effects Module,
operating on channels in [0, 255] with every output channel clamped.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from theme_color_engine.core import CONFIG, memoize
from theme_color_engine.utils.logger import get_logger, log_function_call

logger = get_logger(__name__)

# Relative luminance weights used by the W3C matrices
_LUM_R, _LUM_G, _LUM_B = 0.213, 0.715, 0.072


@dataclass
class FilterResult:
    """Best filter found for a target color."""
    input: Tuple[int, int, int]
    steps: int
    error: float
    filter_string: str
    output: Optional[Tuple[float, float, float]] = None
    parameters: Tuple[float, float, float] = field(default=(0.0, 1.0, 1.0))  # hue, brightness, saturate


# ---------------------------------------------------------------------------
# Filter primitives
# ---------------------------------------------------------------------------

def _clamp(rgb: np.ndarray) -> np.ndarray:
    return np.clip(rgb, 0, 255)


def _apply_matrix(rgb: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    return _clamp(matrix @ rgb)


def linear(rgb: np.ndarray, slope: float = 1, intercept: float = 0) -> np.ndarray:
    return _clamp(rgb * slope + intercept * 255)


def brightness(rgb: np.ndarray, value: float = 1) -> np.ndarray:
    return linear(rgb, value)


def invert(rgb: np.ndarray, value: float = 1) -> np.ndarray:
    return _clamp((value + (rgb / 255) * (1 - 2 * value)) * 255)


def sepia(rgb: np.ndarray, value: float = 1) -> np.ndarray:
    rest = 1 - value
    matrix = np.array([
        [0.393 + 0.607 * rest, 0.769 - 0.769 * rest, 0.189 - 0.189 * rest],
        [0.349 - 0.349 * rest, 0.686 + 0.314 * rest, 0.168 - 0.168 * rest],
        [0.272 - 0.272 * rest, 0.534 - 0.534 * rest, 0.131 + 0.869 * rest],
    ])
    return _apply_matrix(rgb, matrix)


def saturate(rgb: np.ndarray, value: float = 1) -> np.ndarray:
    matrix = np.array([
        [_LUM_R + 0.787 * value, _LUM_G - _LUM_G * value, _LUM_B - _LUM_B * value],
        [_LUM_R - _LUM_R * value, _LUM_G + 0.285 * value, _LUM_B - _LUM_B * value],
        [_LUM_R - _LUM_R * value, _LUM_G - _LUM_G * value, _LUM_B + 0.928 * value],
    ])
    return _apply_matrix(rgb, matrix)


def hue_rotate(rgb: np.ndarray, degrees: float = 0) -> np.ndarray:
    angle = math.radians(degrees)
    sin = math.sin(angle)
    cos = math.cos(angle)
    matrix = np.array([
        [_LUM_R + cos * 0.787 - sin * _LUM_R, _LUM_G - cos * _LUM_G - sin * _LUM_G, _LUM_B - cos * _LUM_B + sin * 0.928],
        [_LUM_R - cos * _LUM_R + sin * 0.143, _LUM_G + cos * 0.285 + sin * 0.140, _LUM_B - cos * _LUM_B - sin * 0.283],
        [_LUM_R - cos * _LUM_R - sin * 0.787, _LUM_G - cos * _LUM_G + sin * _LUM_G, _LUM_B + cos * 0.928 + sin * _LUM_B],
    ])
    return _apply_matrix(rgb, matrix)


def rgb_to_hsl(rgb: Sequence[float]) -> Tuple[float, float, float]:
    """Unrounded HSL of a color, hue in [0, 360), saturation and lightness in [0, 100]."""
    r, g, b = rgb[0] / 255, rgb[1] / 255, rgb[2] / 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    d = max_c - min_c

    if d == 0:
        h = 0.0
    elif max_c == r:
        h = (60 * (g - b) / d + 360) % 360
    elif max_c == g:
        h = (60 * (b - r) / d + 120) % 360
    else:
        h = (60 * (r - g) / d + 240) % 360

    s = 0.0 if d == 0 else 100 * d / (1 - abs(max_c + min_c - 1))
    return h, s, (max_c + min_c) * 50


def apply_filter_chain(hue: float, brightness_factor: float, saturate_factor: float) -> np.ndarray:
    """Color produced by the filter chain applied to black."""
    rgb = sepia(invert(np.zeros(3), 0.5), 1)
    rgb = hue_rotate(rgb, hue)
    rgb = brightness(rgb, brightness_factor)
    return saturate(rgb, saturate_factor)


def _format_number(value: float) -> str:
    text = f"{round(value, 3):.3f}".rstrip('0').rstrip('.')
    return "0" if text in ("-0", "") else text


def filter_string(hue: float, brightness_factor: float, saturate_factor: float) -> str:
    return (
        f"invert(0.5) sepia(1) hue-rotate({_format_number(hue)}deg) "
        f"brightness({_format_number(brightness_factor * 100)}%) "
        f"saturate({_format_number(saturate_factor * 100)}%)"
    )


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------

class FilterSynthesizer:
    """Iterative solver for the filter chain parameters."""

    def __init__(
        self,
        max_iterations: Optional[int] = None,
        max_error: Optional[float] = None,
        damping: Optional[float] = None
    ):
        """
        Args:
            max_iterations: Iteration cap, CONFIG["filter_max_iterations"] if None
            max_error: Channel sum error to stop at, CONFIG["filter_max_error"] if None
            damping: Correction damping, CONFIG["filter_damping"] if None
        """
        self.max_iterations = CONFIG["filter_max_iterations"] if max_iterations is None else max_iterations
        self.max_error = CONFIG["filter_max_error"] if max_error is None else max_error
        self.damping = CONFIG["filter_damping"] if damping is None else damping

    def calculate_filter(self, rgb: Optional[Sequence[int]]) -> Optional[FilterResult]:
        """
        Find filter parameters reproducing a color from black.

        Each iteration sets hue, brightness and saturation from the target
        and the cumulative corrections, then updates the corrections by the
        damped remaining mismatch. The lowest-error result is returned.

        Args:
            rgb: Target color

        Returns:
            Best result, None for a null color
        """
        if rgb is None:
            return None

        target = (int(rgb[0]), int(rgb[1]), int(rgb[2]))
        hue_in, sat_in, light_in = rgb_to_hsl(target)

        if light_in == 0:
            return FilterResult(target, 0, 0.0, "none", (0.0, 0.0, 0.0))
        if sat_in == 0:
            return FilterResult(
                target, 0, 0.0, f"invert({_format_number(light_in / 100)})",
                tuple(float(c) for c in target)
            )

        anchor = sepia(invert(np.zeros(3), 0.5), 1)
        target_array = np.array(target, dtype=float)
        offsets = [0.0, 1.0, 1.0]  # hue, saturation, lightness corrections
        best: Optional[FilterResult] = None

        for step in range(self.max_iterations):
            hsl = rgb_to_hsl(anchor)

            hue = hue_in + offsets[0] - hsl[0]
            color = hue_rotate(anchor, hue)
            hsl = rgb_to_hsl(color)

            # brightness first, it changes the saturation a lot
            brightness_factor = light_in * offsets[2] / hsl[2] if hsl[2] > 0 else 1.0
            color = brightness(color, brightness_factor)
            hsl = rgb_to_hsl(color)

            saturate_factor = sat_in * offsets[1] / hsl[1] if hsl[1] > 0 else 1.0
            color = saturate(color, saturate_factor)
            hsl = rgb_to_hsl(color)

            error = float(np.abs(color - target_array).sum())
            if best is None or error < best.error:
                best = FilterResult(
                    target, step, error,
                    filter_string(hue, brightness_factor, saturate_factor),
                    tuple(float(c) for c in color),
                    (hue, brightness_factor, saturate_factor),
                )
            if error < self.max_error:
                break

            offsets[0] += math.fmod(math.floor((hue_in - hsl[0]) * self.damping + 0.5), 360)
            if hsl[1] > 0:
                offsets[1] *= (sat_in / hsl[1]) ** self.damping
            if hsl[2] > 0:
                offsets[2] *= (light_in / hsl[2]) ** self.damping

        if best.error >= self.max_error:
            logger.debug(f"Filter for {target} not exact, error {best.error:.2f} after {self.max_iterations} steps")
        return best


@memoize
@log_function_call()
def calculate_filter(rgb: Optional[Sequence[int]]) -> Optional[FilterResult]:
    """Filter for a color with the configured solver settings."""
    return FilterSynthesizer().calculate_filter(rgb)


__all__ = [
    "FilterResult", "FilterSynthesizer", "calculate_filter", "apply_filter_chain",
    "filter_string", "rgb_to_hsl", "invert", "sepia", "saturate", "hue_rotate",
    "brightness", "linear",
]
