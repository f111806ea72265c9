"""
Stylesheet text handling: theme export, declaration import and a minimal
rule parser for reading theme snapshots from CSS.

This is not a CSS parser; it understands flat rule blocks with custom
property declarations, which is what theme files contain.
"""

import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from theme_color_engine.core import CONFIG
from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)

_COMMENT_PATTERN = re.compile(r'/\*.*?\*/', re.DOTALL)
_RULE_PATTERN = re.compile(r'([^{}]+)\{([^{}]*)\}')
_DECLARATION_PATTERN = re.compile(
    r'(--[-\w]+)\s*:\s*([^;]+)\s*;(?:[ \t]*/\*[ \t]*\{([^}]+)\}[ \t]*\*/)?'
)
_OPTION_PATTERN = re.compile(
    r'(saveExplicitRgbInOutput|invert|hueRotate|saturationFactor|lightnessFactor)\s*:\s*(-?\d+(?:\.\d+)?)'
)

# Option names in the comment syntax -> variable option names
OPTION_NAMES = OrderedDict([
    ("saveExplicitRgbInOutput", "save_explicit_rgb_in_output"),
    ("invert", "invert"),
    ("hueRotate", "hue_rotate"),
    ("saturationFactor", "saturation_factor"),
    ("lightnessFactor", "lightness_factor"),
])

NOTHING_TO_EXPORT = "/* no variables were different from the base theme, nothing to export. */"


@dataclass
class ImportedDeclaration:
    """A variable declaration read from exported theme text."""
    name: str
    value: str
    # All five options when the declaration carried an option comment
    options: Optional[Dict[str, Any]] = None


def _format_option(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def explicit_options_comment(variable) -> Optional[str]:
    """
    Option comment body for a variable, None if all options are neutral.

    Example: ``saveExplicitRgbInOutput: 1, invert: 1, hueRotate: 30``
    """
    options = []
    if variable.save_explicit_rgb_in_output:
        options.append("saveExplicitRgbInOutput: 1")
    if variable.option_invert:
        options.append("invert: 1")
    if variable.option_hue_rotate != 0:
        options.append(f"hueRotate: {_format_option(variable.option_hue_rotate)}")
    if variable.option_saturation_factor != 1:
        options.append(f"saturationFactor: {_format_option(variable.option_saturation_factor)}")
    if variable.option_lightness_factor != 1:
        options.append(f"lightnessFactor: {_format_option(variable.option_lightness_factor)}")
    return ", ".join(options) if options else None


def export_styles(
    variables: Iterable,
    selector: Optional[str] = None,
    include_explicit_options: bool = False,
    include_rgb_variants: bool = False,
    filter_variables: Optional[Dict[str, str]] = None
) -> str:
    """
    Export the variables that differ from their base as one rule block.

    With ``include_explicit_options`` the raw definitions are written with an
    option comment so the theme can be imported again. Otherwise the CSS-ready
    values are written, optionally with ``--rgb`` companions and filters.

    Args:
        variables: Variables to consider
        selector: Rule selector, CONFIG["export_selector"] if None
        include_explicit_options: Write definitions and option comments
        include_rgb_variants: Also write ``r,g,b`` companions where needed
        filter_variables: Variable name -> filter property to write with it,
            CONFIG["filter_variables"] if None

    Returns:
        Stylesheet text, or a comment if nothing differs
    """
    selector = CONFIG["export_selector"] if selector is None else selector
    filter_variables = CONFIG["filter_variables"] if filter_variables is None else filter_variables
    lines: List[str] = []

    for variable in variables:
        options = explicit_options_comment(variable) if include_explicit_options else None
        if not options and not variable.value_should_go_in_output():
            continue

        if include_explicit_options:
            if variable.use_indirect_definition:
                value = variable.value
            else:
                value = variable.value_string_output()
            lines.append(f"{variable.name}: {value};" + (f" /* {{{options}}} */" if options else ""))
            continue

        lines.append(f"{variable.name}: {variable.value_string_output()};")
        if include_rgb_variants and variable.has_format_rgb:
            lines.append(f"{variable.name}{CONFIG['rgb_suffix']}: {variable.value_color_as_csv()};")
        filter_property = filter_variables.get(variable.name)
        if filter_property and variable.rgb is not None:
            # imported here to keep text handling free of numpy
            from theme_color_engine.generation.filter_synthesizer import calculate_filter
            lines.append(f"{filter_property}: {calculate_filter(variable.rgb).filter_string};")

    if not lines:
        return NOTHING_TO_EXPORT

    logger.debug(f"Exported {len(lines)} declarations")
    return f"{selector} {{\n    " + "\n    ".join(lines) + "\n}\n"


def _parse_options(text: str) -> Optional[Dict[str, Any]]:
    matches = _OPTION_PATTERN.findall(text)
    if not matches:
        return None

    options: Dict[str, Any] = {
        "save_explicit_rgb_in_output": False,
        "invert": False,
        "hue_rotate": 0.0,
        "saturation_factor": 1.0,
        "lightness_factor": 1.0,
    }
    for key, number in matches:
        name = OPTION_NAMES[key]
        value = float(number)
        if name in ("save_explicit_rgb_in_output", "invert"):
            options[name] = value != 0
        else:
            options[name] = value
    return options


def import_styles(text: str) -> List[ImportedDeclaration]:
    """
    Read variable declarations with optional option comments.

    Args:
        text: Exported theme text

    Returns:
        Declarations in order; options omitted from a comment are neutral
    """
    declarations = []
    for match in _DECLARATION_PATTERN.finditer(text or ''):
        options = _parse_options(match.group(3)) if match.group(3) else None
        declarations.append(ImportedDeclaration(match.group(1), match.group(2).strip(), options))

    if not declarations:
        logger.warning("No variable declarations found in the imported text")
    return declarations


def parse_stylesheet(text: str) -> "OrderedDict[str, Dict[str, str]]":
    """
    Collect declarations per selector.

    Comments are removed and comma separated selectors are split. Later
    declarations override earlier ones.

    Args:
        text: Stylesheet text

    Returns:
        Selector -> {property: value}, in order of first appearance
    """
    rules: "OrderedDict[str, Dict[str, str]]" = OrderedDict()
    cleaned = _COMMENT_PATTERN.sub('', text or '')

    for selector_text, body in _RULE_PATTERN.findall(cleaned):
        declarations = {}
        for declaration in body.split(';'):
            if ':' not in declaration:
                continue
            name, value = declaration.split(':', 1)
            name = name.strip()
            value = value.strip()
            if name and value:
                declarations[name] = value

        for selector in selector_text.split(','):
            selector = selector.strip()
            if not selector or selector.startswith('@'):
                continue
            rules.setdefault(selector, {}).update(declarations)

    return rules


__all__ = [
    "ImportedDeclaration", "OPTION_NAMES", "NOTHING_TO_EXPORT",
    "explicit_options_comment", "export_styles", "import_styles", "parse_stylesheet",
]
