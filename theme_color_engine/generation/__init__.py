"""
Theme Color Engine - Generation
===============================
CSS filter synthesis and stylesheet text export/import.
"""

from theme_color_engine.generation.filter_synthesizer import (
    FilterResult, FilterSynthesizer, calculate_filter
)
from theme_color_engine.generation.stylesheet import (
    ImportedDeclaration, export_styles, import_styles, parse_stylesheet
)

__all__ = [
    'FilterResult', 'FilterSynthesizer', 'calculate_filter',
    'ImportedDeclaration', 'export_styles', 'import_styles', 'parse_stylesheet'
]
