"""
Contrast requirements between color variables and automatic repair.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional

from theme_color_engine.core import CONFIG
from theme_color_engine.models.color import (
    BLACK, WHITE, alpha_of, contrast_ratio, needed_luminance_range,
    relative_luminance, rgb_equal, set_relative_luminance
)
from theme_color_engine.utils.logger import get_logger, log_function_call

logger = get_logger(__name__)


class ContrastLevel(Enum):
    """Classification of a contrast ratio against its requirement."""
    SUFFICIENT = "sufficient"
    INSUFFICIENT = "insufficient"
    BAD = "bad"
    UNKNOWN = "unknown"


def classify_contrast(contrast: Optional[float], min_contrast: float) -> ContrastLevel:
    """
    Classify a contrast ratio.

    Args:
        contrast: Measured ratio, None if unknown
        min_contrast: Required ratio

    Returns:
        SUFFICIENT at or above the minimum, INSUFFICIENT at or above the
        configured fraction of it, BAD below
    """
    if contrast is None:
        return ContrastLevel.UNKNOWN
    if contrast >= min_contrast:
        return ContrastLevel.SUFFICIENT
    if contrast >= min_contrast * CONFIG["insufficient_contrast_factor"]:
        return ContrastLevel.INSUFFICIENT
    return ContrastLevel.BAD


class ContrastLink:
    """A required minimum contrast between a subject and a target variable."""

    def __init__(self, subject, target, min_contrast: Optional[float] = None):
        """
        Args:
            subject: Variable whose color is checked and repaired
            target: Variable the contrast is measured against
            min_contrast: Required ratio, CONFIG["default_min_contrast"] if None

        Raises:
            ValueError: If min_contrast is below 1
        """
        if min_contrast is None:
            min_contrast = CONFIG["default_min_contrast"]
        if min_contrast < 1:
            raise ValueError(f"Minimum contrast must be at least 1, got {min_contrast}")

        self.subject = subject
        self.target = target
        self.min_contrast = float(min_contrast)
        self.contrast: Optional[float] = None
        self.level = ContrastLevel.UNKNOWN

    def __repr__(self) -> str:
        return (
            f"ContrastLink({self.subject.name} -> {self.target.name}, "
            f"min={self.min_contrast}, contrast={self.contrast}, level={self.level.value})"
        )

    @property
    def target_name(self) -> str:
        return self.target.name

    @property
    def sufficient(self) -> bool:
        return self.level == ContrastLevel.SUFFICIENT

    @property
    def is_approximation(self) -> bool:
        """Whether a translucent color makes the ratio an approximation."""
        if self.subject.rgb is None or self.target.rgb is None:
            return False
        return alpha_of(self.subject.rgb) < 1 or alpha_of(self.target.rgb) < 1

    def update_contrast(self) -> Optional[float]:
        """
        Recompute and classify the contrast from the current colors.

        Returns:
            Contrast ratio, None if either color is unknown
        """
        if self.subject.rgb is None or self.target.rgb is None:
            logger.debug(f"No contrast for {self.subject.name} / {self.target.name}, color missing")
            self.contrast = None
        else:
            self.contrast = contrast_ratio(self.subject.rgb, self.target.rgb)
        self.level = classify_contrast(self.contrast, self.min_contrast)
        return self.contrast

    def fix(self) -> bool:
        """Repair the subject's lightness for this link only."""
        return fix_contrast_with_lightness(self.subject, [self])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject.name,
            "target": self.target.name,
            "contrast": self.contrast,
            "min_contrast": self.min_contrast,
            "level": self.level.value,
        }


@log_function_call()
def fix_contrast_with_lightness(subject, links: Optional[Iterable[ContrastLink]] = None) -> bool:
    """
    Change the luminance of a variable so it meets all given contrast links.

    The luminances failing any requirement are merged into one blocked range.
    The subject moves past the lower bound for light targets and past the
    upper bound for dark targets, or to the other side if that one cannot be
    reached. If neither bound can be reached, pure white or black is used.
    The new color is set explicitly, which detaches an indirect subject from
    its definition.

    Args:
        subject: Variable to adjust
        links: Links to satisfy, all links of the subject if None

    Returns:
        Whether the subject's color changed
    """
    if subject is None or subject.rgb is None:
        return False
    links = list(subject.contrast_variables if links is None else links)
    if not links:
        return False

    low = None
    high = None
    luminance_sum = 0.0
    count = 0
    for link in links:
        if link.target.rgb is None:
            continue
        luminance = relative_luminance(link.target.rgb)
        luminance_sum += luminance
        count += 1
        blocked = needed_luminance_range(luminance, link.min_contrast)
        if blocked[0] == blocked[1]:
            continue
        low = blocked[0] if low is None else min(low, blocked[0])
        high = blocked[1] if high is None else max(high, blocked[1])

    if count == 0:
        return False

    luminance_mean = luminance_sum / count
    current = relative_luminance(subject.rgb)
    if low is None or current <= low or current >= high:
        logger.info(f"Contrast of {subject.name} is already sufficient, color is not adjusted")
        return False

    pad = CONFIG["luminance_tolerance"]
    can_darken = low >= 0
    can_lighten = high <= 1
    dark_targets = luminance_mean < CONFIG["dark_target_luminance"]

    if subject.use_indirect_definition:
        logger.warning(f"{subject.name} is defined indirectly and will be set explicitly")

    if not can_darken and not can_lighten:
        # luminance 0.18 has about the same contrast to black and white
        color = WHITE if dark_targets else BLACK
        logger.warning(
            f"No luminance of {subject.name} reaches all required contrasts, "
            f"using {'white' if dark_targets else 'black'}"
        )
    elif (dark_targets and can_lighten) or not can_darken:
        color = set_relative_luminance(subject.rgb, min(high + pad, 1.0), prefer="above")
    else:
        color = set_relative_luminance(subject.rgb, max(low - pad, 0.0), prefer="below")

    before = subject.rgb
    subject.set_color(color)
    return not rgb_equal(before, subject.rgb)


__all__ = ["ContrastLevel", "ContrastLink", "classify_contrast", "fix_contrast_with_lightness"]
