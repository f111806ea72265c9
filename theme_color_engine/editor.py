"""
Editing session over a dependency graph and its themes.

The session holds what an interactive editor needs between actions: the
theme the edits are based on, the variable copied for pasting and the
variable currently being edited.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from theme_color_engine.core import CONFIG
from theme_color_engine.generation import stylesheet
from theme_color_engine.models.color import (
    ColorError, hsl_to_rgb, inverse_lightness, inverse_luminance, parse_color,
    rgb_to_hsv_sl, try_parse_color, alpha_of
)
from theme_color_engine.models.contrast import ContrastLink, fix_contrast_with_lightness
from theme_color_engine.models.expression import ExpressionError, parse_expression
from theme_color_engine.models.graph import CyclicDependencyError, DependencyGraph
from theme_color_engine.models.theme import (
    DARK_VIEW, LIGHT_VIEW, ROOT_THEME, VIEWS, ThemeStore, view_name
)
from theme_color_engine.models.variable import ColorVariable, NEUTRAL_OPTIONS, Suggestion
from theme_color_engine.utils.logger import get_logger, log_exception

logger = get_logger(__name__)

# (subject, target) or (subject, target, min_contrast) or a dict with those keys
ContrastRequirement = Union[Tuple, Dict[str, Any]]

_COMPONENTS = ("r", "g", "b", "a", "h", "s", "l")


def _is_color_definition(value: str) -> bool:
    try:
        parse_expression(value)
        return True
    except ExpressionError:
        return False


class ThemeEditor:
    """
    Session context for editing a set of color variables.
    """

    def __init__(
        self,
        graph: Optional[DependencyGraph] = None,
        store: Optional[ThemeStore] = None,
        theme_base_dark: bool = False
    ):
        self.graph = graph if graph is not None else DependencyGraph()
        self.store = store if store is not None else ThemeStore()
        self._theme_base_dark = False
        self.theme_base_dark = theme_base_dark

        self.held_variable: Optional[ColorVariable] = None
        self.current_variable: Optional[ColorVariable] = None
        self.export_include_rgb_variants = True
        self.export_include_explicit_options = False
        # Variable whose lightness tells if an inverted theme is dark
        self.view_indicator_variable: Optional[str] = None

    @property
    def theme_base_dark(self) -> bool:
        return self._theme_base_dark

    @theme_base_dark.setter
    def theme_base_dark(self, dark: bool) -> None:
        self._theme_base_dark = bool(dark)
        self.graph.dark_view = self._theme_base_dark

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_stylesheet(
        cls,
        text: str,
        contrast_requirements: Optional[Iterable[ContrastRequirement]] = None,
        suggestions: Optional[Dict[str, Union[Suggestion, Dict[str, Any]]]] = None,
        theme: Optional[str] = None,
        dark: bool = False
    ) -> 'ThemeEditor':
        """
        Build a session from theme stylesheet text.

        Every custom property holding a color definition in a root, view or
        theme rule becomes a variable.

        Args:
            text: Stylesheet with ``:root``, ``.view-*`` and ``.theme-*`` rules
            contrast_requirements: Contrast requirements between variables
            suggestions: Suggested definitions per variable name
            theme: Theme to apply, the light or dark view if None
            dark: Whether the theme is based on the dark view

        Returns:
            Initialized editor
        """
        all_themes = ThemeStore.from_css(text)
        rgb_suffix = CONFIG["rgb_suffix"]

        names: List[str] = []
        for theme_name in all_themes.names:
            for name, value in all_themes[theme_name].items():
                if name in names or not _is_color_definition(value):
                    continue
                names.append(name)
        # r,g,b companions of known variables are written, not edited
        names = [n for n in names if not (n.endswith(rgb_suffix) and n[:-len(rgb_suffix)] in names)]

        store = ThemeStore.from_css(text, names)
        editor = cls(store=store, theme_base_dark=dark)
        for name in names:
            editor.graph.add_variable(name)
        for variable in editor.graph:
            variable.has_format_rgb = store.has_rgb_variant(variable.name, names)

        for name, suggestion in (suggestions or {}).items():
            variable = editor.graph.get(name)
            if variable is None:
                logger.warning(f"Suggestion for unknown variable {name} ignored")
                continue
            if isinstance(suggestion, dict):
                suggestion = Suggestion.from_dict(suggestion)
            variable.suggested_value = suggestion

        if not editor.apply_theme(theme or view_name(dark)):
            editor.apply_theme(ROOT_THEME)
        editor.link_inverted_variables()

        for requirement in contrast_requirements or []:
            editor.add_contrast_requirement(requirement)

        logger.info(f"Editor initialized with {len(editor.graph)} variables")
        return editor

    def add_contrast_requirement(self, requirement: ContrastRequirement) -> Optional[ContrastLink]:
        """Add a contrast requirement given as tuple or dict."""
        if isinstance(requirement, dict):
            subject = requirement.get("subject")
            target = requirement.get("target")
            min_contrast = requirement.get("min_contrast", requirement.get("minContrast"))
        else:
            subject, target = requirement[0], requirement[1]
            min_contrast = requirement[2] if len(requirement) > 2 else None
        return self.graph.add_contrast_requirement(subject, target, min_contrast)

    # ------------------------------------------------------------------
    # Themes
    # ------------------------------------------------------------------

    def apply_theme(self, name: Optional[str]) -> bool:
        """
        Set all variables to the values of a theme.

        Views also set the base values. Named themes are applied on top of
        the view the session is based on.

        Args:
            name: Theme name

        Returns:
            Whether the theme was found and applied
        """
        if not name:
            logger.warning("Cannot apply a theme without name")
            return False

        if name not in VIEWS:
            self.apply_theme(view_name(self.theme_base_dark))
        elif name in (LIGHT_VIEW, DARK_VIEW):
            self.theme_base_dark = name == DARK_VIEW

        values = self.store.get(name)
        if values is None and name in (LIGHT_VIEW, DARK_VIEW):
            values = self.store.get(ROOT_THEME)
        if values is None:
            logger.warning(f"No theme with name {name!r} found to apply")
            return False

        self._apply_values(values, also_set_as_base=name in VIEWS)
        logger.info(f"Applied theme {name}")
        return True

    def _apply_values(self, values: Dict[str, str], also_set_as_base: bool) -> None:
        # literals first, so indirect values see their final sources
        items = sorted(
            values.items(),
            key=lambda item: 0 if try_parse_color(item[1]) is not None else 1
        )
        touched = []
        for name, value in items:
            variable = self.graph.get(name)
            if variable is None:
                continue
            try:
                variable.set_value(value, also_set_as_base)
                touched.append(variable)
            except CyclicDependencyError as e:
                log_exception(logger, e, context={"variable": name, "value": value})

        if also_set_as_base:
            for variable in touched:
                if variable.use_indirect_definition:
                    variable.base_color = variable.rgb
                    variable._update_indicator()

    def apply_theme_as_base(self, view: str) -> None:
        """
        Use a view's values as base values without changing the colors.

        Args:
            view: "view-light" or "view-dark"
        """
        if view not in (LIGHT_VIEW, DARK_VIEW):
            return
        values = self.store.get(view)
        if values is None:
            logger.warning(f"No view with name {view!r} found to apply")
            return
        for name, value in values.items():
            variable = self.graph.get(name)
            if variable is not None:
                variable.set_base_value(value)

    def link_inverted_variables(self) -> int:
        """
        Define every ``<name>--inverted`` variable as the inverse of ``<name>``.

        Returns:
            Number of linked variables
        """
        suffix = CONFIG["inverted_suffix"]
        count = 0
        for variable in self.graph:
            if not variable.name.endswith(suffix) or len(variable.name) <= len(suffix):
                continue
            source = self.graph.get(variable.name[:-len(suffix)])
            if source is None:
                continue
            try:
                variable.set_value(f"var({source.name})")
            except CyclicDependencyError as e:
                log_exception(logger, e, context={"variable": variable.name})
                continue
            variable.set_options(save_explicit_rgb_in_output=True, invert=True)
            count += 1
        return count

    def invert_all_lightness(self, use_luminance: bool = False) -> None:
        """
        Invert the lightness (or luminance) of all explicit variables and
        switch the base view accordingly.
        """
        for variable in self.graph:
            if variable.use_indirect_definition or variable.rgb is None:
                continue
            if use_luminance:
                variable.set_color(inverse_luminance(variable.rgb))
            else:
                variable.set_color(inverse_lightness(variable.rgb))

        indicator = self.graph.get(self.view_indicator_variable) if self.view_indicator_variable else None
        if indicator is not None and indicator.rgb is not None:
            # light text means a dark theme
            dark = rgb_to_hsv_sl(indicator.rgb)[4] > 50
        else:
            dark = not self.theme_base_dark
        self.theme_base_dark = dark
        self.apply_theme_as_base(view_name(dark))

    def apply_all_suggestions(self) -> None:
        for variable in self.graph:
            variable.set_value_by_definition(dark=self.theme_base_dark)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def hold(self, name: str) -> Optional[ColorVariable]:
        """Copy a variable for pasting."""
        variable = self.graph.get(name)
        if variable is None:
            logger.warning(f"Unknown variable {name}, nothing copied")
        self.held_variable = variable
        return variable

    def paste(self, target: str, as_reference: bool = False, relative: bool = False) -> bool:
        """
        Paste the held variable onto another one.

        Args:
            target: Name of the variable to change
            as_reference: Define the target as ``var(<held>)`` instead of
                copying the color
            relative: With as_reference, store hue, saturation and lightness
                offsets so the target keeps its current color

        Returns:
            Whether the target was changed

        Raises:
            CyclicDependencyError: If the reference would create a cycle
        """
        source = self.held_variable
        variable = self.graph.get(target)
        if source is None or variable is None:
            logger.warning(f"Cannot paste onto {target}: nothing held or unknown variable")
            return False

        if not as_reference:
            variable.set_color(source.rgb)
            return True

        options = dict(NEUTRAL_OPTIONS)
        if relative and source.rgb is not None and variable.rgb is not None:
            source_hsvsl = rgb_to_hsv_sl(source.rgb)
            target_hsvsl = rgb_to_hsv_sl(variable.rgb)
            options.update(
                save_explicit_rgb_in_output=True,
                hue_rotate=target_hsvsl[0] - source_hsvsl[0],
                saturation_factor=target_hsvsl[3] / source_hsvsl[3] if source_hsvsl[3] > 0 else 1,
                lightness_factor=target_hsvsl[4] / source_hsvsl[4] if source_hsvsl[4] > 0 else 1,
            )

        variable.set_value(f"var({source.name})")
        variable.set_options(**options)
        return True

    def edit(self, name: Optional[str]) -> Optional[ColorVariable]:
        """
        Toggle the variable being edited.

        Selecting the current variable again (or None) ends editing.
        """
        current_name = self.current_variable.name if self.current_variable is not None else None
        if not name or name == current_name:
            self.current_variable = None
            return None

        variable = self.graph.get(name)
        if variable is None:
            logger.warning(f"Unknown variable {name}, cannot edit")
        self.current_variable = variable
        return variable

    def set_value(self, name: str, text: str) -> bool:
        """
        Set a variable from user input.

        Malformed hex input leaves the variable unchanged.

        Returns:
            Whether the value was applied
        """
        variable = self.graph.get(name)
        if variable is None:
            logger.warning(f"Unknown variable {name}")
            return False

        value = (text or '').strip()
        if value.startswith('#'):
            try:
                parse_color(value)
            except ColorError as e:
                logger.warning(f"{name} not changed: {e}")
                return False

        try:
            variable.set_value(value)
        except CyclicDependencyError as e:
            log_exception(logger, e, level=logging.WARNING, context={"variable": name, "value": value})
            return False
        return True

    def set_component(self, name: str, component: str, text: str) -> bool:
        """
        Set one color component of a variable from numeric input.

        Args:
            name: Variable name
            component: One of r, g, b (0-255), a (0-1), h (degrees), s, l (0-100)
            text: Numeric input

        Returns:
            Whether the color was changed; invalid input is reported and ignored
        """
        variable = self.graph.get(name)
        if variable is None or variable.rgb is None:
            logger.warning(f"Unknown variable or no color: {name}")
            return False
        if component not in _COMPONENTS:
            logger.warning(f"Unknown color component {component!r}")
            return False

        try:
            number = float(text)
        except (TypeError, ValueError):
            logger.warning(f"Invalid number {text!r} for {component} of {name}, value not changed")
            return False

        rgb = list(variable.rgb)
        if component in ("r", "g", "b"):
            rgb["rgb".index(component)] = int(max(0, min(255, round(number))))
            color = tuple(rgb)
        elif component == "a":
            color = (rgb[0], rgb[1], rgb[2], max(0.0, min(1.0, number)))
        else:
            hsvsl = rgb_to_hsv_sl(variable.rgb)
            hsl = [hsvsl[0], hsvsl[3], hsvsl[4]]
            hsl["hsl".index(component)] = number if component == "h" else max(0.0, min(100.0, number))
            color = hsl_to_rgb(hsl, alpha_of(variable.rgb))

        variable.set_color(color)
        return True

    def fix_contrast(self, name: str, target: Optional[str] = None) -> bool:
        """
        Repair the contrast of a variable by changing its lightness.

        Args:
            name: Variable to change
            target: Only consider the link to this variable

        Returns:
            Whether the color changed
        """
        variable = self.graph.get(name)
        if variable is None:
            logger.warning(f"Unknown variable {name}")
            return False

        links = variable.contrast_variables
        if target is not None:
            links = [link for link in links if link.target_name == target]
            if not links:
                logger.warning(f"{name} has no contrast requirement to {target}")
                return False
        return fix_contrast_with_lightness(variable, links)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_styles(self, selector: Optional[str] = None) -> str:
        return stylesheet.export_styles(
            self.graph.variables,
            selector=selector,
            include_explicit_options=self.export_include_explicit_options,
            include_rgb_variants=self.export_include_rgb_variants,
        )

    def import_styles(self, text: str, use_light_view: bool = True) -> int:
        """
        Apply exported theme text on top of the light or dark view.

        Returns:
            Number of applied declarations
        """
        declarations = stylesheet.import_styles(text)
        if not declarations:
            return 0

        self.apply_theme(LIGHT_VIEW if use_light_view else DARK_VIEW)
        rgb_suffix = CONFIG["rgb_suffix"]
        applied = 0
        for declaration in declarations:
            variable = self.graph.get(declaration.name)
            if variable is None:
                if not declaration.name.endswith(rgb_suffix):
                    logger.info(f"Variable {declaration.name} not found, value not applied")
                continue
            try:
                variable.set_value(declaration.value)
            except CyclicDependencyError as e:
                log_exception(logger, e, context={"variable": declaration.name})
                continue
            if declaration.options is not None:
                variable.set_options(**declaration.options)
            applied += 1

        logger.info(f"Imported {applied} of {len(declarations)} declarations")
        return applied


__all__ = ["ThemeEditor"]
