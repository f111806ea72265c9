"""
Indirect color definitions as a small typed expression tree.

A definition like ``color-mix(in srgb, var(--a) 30%, #fff)`` is parsed once
into nodes (literal, reference, mix, function call). Dependencies are read
from the tree structurally and the tree is re-evaluated whenever an input
color changes.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from theme_color_engine.models.color import (
    Color, ColorError, parse_color, mix_colors, rgb_to_hex_string
)
from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)

# Resolver from a variable name to its current color (None if unknown or unset)
Resolver = Callable[[str], Optional[Color]]

VARIABLE_NAME_PATTERN = re.compile(r'^--[-\w]+$')
_FUNCTION_PATTERN = re.compile(r'^([a-zA-Z][-\w]*)\(')
_LEADING_PERCENT = re.compile(r'^(\d+(?:\.\d+)?)%\s+(.+)$', re.DOTALL)
_TRAILING_PERCENT = re.compile(r'^(.+?)\s+(\d+(?:\.\d+)?)%$', re.DOTALL)

# Color literal functions handled by parse_color
_LITERAL_FUNCTIONS = ("rgb", "rgba", "color")

# Spaces mixed exactly; others are approximated in sRGB
EXACT_MIX_SPACES = ("srgb",)


class ExpressionError(Exception):
    """Raised when an indirect color definition cannot be parsed."""
    pass


class Expression:
    """Base class of expression tree nodes."""

    def references(self) -> List[str]:
        """Names of the variables this expression reads, in order of appearance."""
        return []

    def evaluate(self, resolve: Resolver, dark: bool = False) -> Optional[Color]:
        """
        Evaluate the expression against current variable colors.

        Args:
            resolve: Returns the current color of a variable name
            dark: Whether the dark view is active (for ``light-dark()``)

        Returns:
            Resolved color or None if it cannot be determined
        """
        raise NotImplementedError

    def to_css(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_css()


@dataclass(frozen=True)
class Literal(Expression):
    color: Color

    def evaluate(self, resolve: Resolver, dark: bool = False) -> Optional[Color]:
        return self.color

    def to_css(self) -> str:
        return rgb_to_hex_string(self.color)


@dataclass(frozen=True)
class Reference(Expression):
    """``var(--name)`` with an optional fallback used when the name has no color."""
    name: str
    fallback: Optional[Expression] = None

    def references(self) -> List[str]:
        names = [self.name]
        if self.fallback is not None:
            names.extend(n for n in self.fallback.references() if n not in names)
        return names

    def evaluate(self, resolve: Resolver, dark: bool = False) -> Optional[Color]:
        color = resolve(self.name)
        if color is None and self.fallback is not None:
            return self.fallback.evaluate(resolve, dark)
        return color

    def to_css(self) -> str:
        if self.fallback is None:
            return f"var({self.name})"
        return f"var({self.name}, {self.fallback.to_css()})"


@dataclass(frozen=True)
class MixItem:
    expression: Expression
    percentage: Optional[float] = None


@dataclass(frozen=True)
class Mix(Expression):
    """
    ``color-mix(in <space>, <color> [p%], <color> [p%])``.

    Percentages follow the CSS rules: both omitted gives 50/50, one omitted
    gives 100 minus the other, and a sum below 100 scales the result alpha.
    """
    space: str
    items: Tuple[MixItem, ...] = field(default_factory=tuple)

    def references(self) -> List[str]:
        names: List[str] = []
        for item in self.items:
            names.extend(n for n in item.expression.references() if n not in names)
        return names

    def weights(self) -> Optional[List[float]]:
        """Normalized percentages of the items, None for an invalid mix."""
        percentages = [item.percentage for item in self.items]
        given = [p for p in percentages if p is not None]
        missing = len(percentages) - len(given)

        if missing == len(percentages):
            return [100 / len(percentages)] * len(percentages)

        if missing:
            rest = max(0.0, 100 - sum(given)) / missing
            percentages = [rest if p is None else p for p in percentages]

        if sum(percentages) <= 0:
            return None
        return percentages

    def evaluate(self, resolve: Resolver, dark: bool = False) -> Optional[Color]:
        weights = self.weights()
        if weights is None:
            logger.debug(f"Mix percentages sum to zero in {self.to_css()}")
            return None

        colors = [item.expression.evaluate(resolve, dark) for item in self.items]
        if all(c is None for c in colors):
            return None

        if self.space not in EXACT_MIX_SPACES:
            logger.debug(f"Mixing in {self.space} approximated in srgb")

        mixed = mix_colors(colors, weights)
        total = sum(weights)
        if total < 100:
            mixed = (mixed[0], mixed[1], mixed[2], mixed[3] * total / 100)
        return mixed

    def to_css(self) -> str:
        parts = []
        for item in self.items:
            if item.percentage is None:
                parts.append(item.expression.to_css())
            else:
                parts.append(f"{item.expression.to_css()} {item.percentage:g}%")
        return f"color-mix(in {self.space}, {', '.join(parts)})"


@dataclass(frozen=True)
class FunctionCall(Expression):
    """A registered color function applied to argument expressions."""
    name: str
    args: Tuple[Expression, ...] = field(default_factory=tuple)

    def references(self) -> List[str]:
        names: List[str] = []
        for arg in self.args:
            names.extend(n for n in arg.references() if n not in names)
        return names

    def evaluate(self, resolve: Resolver, dark: bool = False) -> Optional[Color]:
        function = COLOR_FUNCTIONS[self.name][0]
        return function(self.args, resolve, dark)

    def to_css(self) -> str:
        return f"{self.name}({', '.join(arg.to_css() for arg in self.args)})"


def _light_dark(args, resolve: Resolver, dark: bool) -> Optional[Color]:
    return args[1 if dark else 0].evaluate(resolve, dark)


# name -> (implementation, number of arguments)
COLOR_FUNCTIONS: Dict[str, Tuple[Callable, int]] = {
    "light-dark": (_light_dark, 2),
}


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """
    Split text at separators that are not nested in parentheses.

    Raises:
        ExpressionError: If the parentheses are unbalanced
    """
    parts = []
    depth = 0
    start = 0
    for i, char in enumerate(text):
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                raise ExpressionError(f"Unbalanced parentheses in {text!r}")
        elif char == separator and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    if depth != 0:
        raise ExpressionError(f"Unbalanced parentheses in {text!r}")
    parts.append(text[start:].strip())
    return parts


def _split_function(text: str) -> Tuple[Optional[str], str]:
    """Split ``name(args)`` into name and argument text if the call spans the whole text."""
    match = _FUNCTION_PATTERN.match(text)
    if not match or not text.endswith(')'):
        return None, text

    depth = 0
    for i, char in enumerate(text):
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth == 0 and i != len(text) - 1:
                # the first call closes before the end, e.g. "a(1) b(2)"
                return None, text
    return match.group(1).lower(), text[match.end():-1]


def _parse_mix_item(text: str) -> MixItem:
    match = _LEADING_PERCENT.match(text)
    if match:
        return MixItem(parse_expression(match.group(2)), float(match.group(1)))
    match = _TRAILING_PERCENT.match(text)
    if match:
        return MixItem(parse_expression(match.group(1)), float(match.group(2)))
    return MixItem(parse_expression(text))


def parse_expression(text: str) -> Expression:
    """
    Parse a color definition into an expression tree.

    Args:
        text: Color literal or indirect definition

    Returns:
        Expression tree

    Raises:
        ExpressionError: If the definition is empty or not supported
    """
    if text is None or not text.strip():
        raise ExpressionError("Empty color definition")

    value = text.strip()
    name, arguments = _split_function(value)

    if name is None or name in _LITERAL_FUNCTIONS:
        try:
            return Literal(parse_color(value))
        except ColorError as e:
            raise ExpressionError(str(e)) from e

    args = split_top_level(arguments)

    if name == "var":
        reference = args[0]
        if not VARIABLE_NAME_PATTERN.match(reference):
            raise ExpressionError(f"Invalid variable reference: {reference!r}")
        fallback_text = arguments.split(',', 1)[1].strip() if len(args) > 1 else ''
        fallback = parse_expression(fallback_text) if fallback_text else None
        return Reference(reference, fallback)

    if name == "color-mix":
        if len(args) != 3 or not args[0].lower().startswith("in "):
            raise ExpressionError(f"Expected color-mix(in <space>, <color>, <color>): {value}")
        space = args[0][3:].strip().split()[0].lower()
        items = tuple(_parse_mix_item(arg) for arg in args[1:])
        if any(item.percentage is not None and not 0 <= item.percentage <= 100 for item in items):
            raise ExpressionError(f"Mix percentage out of range: {value}")
        return Mix(space, items)

    if name in COLOR_FUNCTIONS:
        expected = COLOR_FUNCTIONS[name][1]
        if len(args) != expected:
            raise ExpressionError(f"{name}() takes {expected} arguments, got {len(args)}")
        return FunctionCall(name, tuple(parse_expression(arg) for arg in args))

    raise ExpressionError(f"Unsupported color function: {name}()")


__all__ = [
    "ExpressionError", "Expression", "Literal", "Reference", "MixItem", "Mix",
    "FunctionCall", "COLOR_FUNCTIONS", "VARIABLE_NAME_PATTERN",
    "parse_expression", "split_top_level",
]
