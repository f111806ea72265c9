"""
Theme Color Engine - Data Models
================================
Color math, the expression tree of indirect definitions, color variables,
the dependency graph, contrast links and theme snapshots.
"""

from theme_color_engine.models.color import (
    ColorError, parse_color, rgb_to_hex_string, rgb_to_hsv_sl, hsv_to_rgb,
    hsl_to_rgb, mix_colors, invert, hue_rotate, adjust_hsl,
    relative_luminance, contrast_ratio, needed_luminance_range,
    set_relative_luminance
)
from theme_color_engine.models.expression import (
    ExpressionError, Expression, Literal, Reference, Mix, FunctionCall,
    parse_expression
)
from theme_color_engine.models.variable import ColorVariable, Suggestion
from theme_color_engine.models.contrast import (
    ContrastLevel, ContrastLink, fix_contrast_with_lightness
)
from theme_color_engine.models.graph import (
    GraphEvent, GraphError, CyclicDependencyError, VariableUpdate, DependencyGraph
)
from theme_color_engine.models.theme import ThemeError, ThemeStore

__all__ = [
    'ColorError', 'parse_color', 'rgb_to_hex_string', 'rgb_to_hsv_sl', 'hsv_to_rgb',
    'hsl_to_rgb', 'mix_colors', 'invert', 'hue_rotate', 'adjust_hsl',
    'relative_luminance', 'contrast_ratio', 'needed_luminance_range',
    'set_relative_luminance',
    'ExpressionError', 'Expression', 'Literal', 'Reference', 'Mix', 'FunctionCall',
    'parse_expression',
    'ColorVariable', 'Suggestion',
    'ContrastLevel', 'ContrastLink', 'fix_contrast_with_lightness',
    'GraphEvent', 'GraphError', 'CyclicDependencyError', 'VariableUpdate', 'DependencyGraph',
    'ThemeError', 'ThemeStore'
]
