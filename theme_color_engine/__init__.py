"""
Theme Color Engine
==================
Keeps a set of named CSS color variables consistent while they are edited:
indirect definitions are re-evaluated when their sources change, contrast
requirements are checked and can be repaired, and themes are exported as
stylesheet text.
"""

from theme_color_engine.core import CONFIG, configure, memoize, Profiler
from theme_color_engine.models import (
    ColorError, ColorVariable, ContrastLevel, ContrastLink, CyclicDependencyError,
    DependencyGraph, ExpressionError, GraphError, GraphEvent, Suggestion,
    ThemeError, ThemeStore, VariableUpdate, fix_contrast_with_lightness
)
from theme_color_engine.generation import FilterSynthesizer, calculate_filter
from theme_color_engine.editor import ThemeEditor

__version__ = "0.1.0"

__all__ = [
    'CONFIG', 'configure', 'memoize', 'Profiler',
    'ColorError', 'ColorVariable', 'ContrastLevel', 'ContrastLink', 'CyclicDependencyError',
    'DependencyGraph', 'ExpressionError', 'GraphError', 'GraphEvent', 'Suggestion',
    'ThemeError', 'ThemeStore', 'VariableUpdate', 'fix_contrast_with_lightness',
    'FilterSynthesizer', 'calculate_filter', 'ThemeEditor'
]
