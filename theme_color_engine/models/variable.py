"""
Color variable node of the dependency graph.

A variable is either explicit (its color was set directly) or indirect (its
color is derived from other variables through an expression). Edges to other
variables are owned by the DependencyGraph and only changed through
``DependencyGraph.relink``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from theme_color_engine.models.color import (
    Color, ColorError, adjust_hsl, inverted_color, parse_color, rgb_equal,
    rgb_to_csv_string, rgb_to_hex_string, to_color, try_parse_color
)
from theme_color_engine.models.expression import (
    Expression, ExpressionError, parse_expression
)
from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)

# Neutral values of the adjustment options
NEUTRAL_OPTIONS: Dict[str, Any] = {
    "save_explicit_rgb_in_output": False,
    "invert": False,
    "hue_rotate": 0.0,
    "saturation_factor": 1.0,
    "lightness_factor": 1.0,
}


@dataclass
class Suggestion:
    """
    Suggested definition of a variable.

    Either an indirect definition with optional adjustments, or explicit
    colors for the light and the dark view.
    """
    indirect: Optional[str] = None
    light: Optional[str] = None
    dark: Optional[str] = None
    invert: Optional[bool] = None
    hue_rotate: Optional[float] = None
    saturation_factor: Optional[float] = None
    lightness_factor: Optional[float] = None

    @property
    def has_adjustments(self) -> bool:
        return any(
            v is not None
            for v in (self.invert, self.hue_rotate, self.saturation_factor, self.lightness_factor)
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Suggestion':
        """Build a suggestion from a dict with camelCase or snake_case keys."""
        aliases = {
            "hueRotate": "hue_rotate",
            "saturationFactor": "saturation_factor",
            "lightnessFactor": "lightness_factor",
        }
        values = {aliases.get(k, k): v for k, v in data.items()}
        unknown = set(values) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown suggestion fields: {', '.join(sorted(unknown))}")
        return cls(**values)


class ColorVariable:
    """
    A named color that is explicit or derived from other variables.

    Invariant: when ``use_indirect_definition`` is set, ``rgb`` equals the
    expression evaluated against the current colors of ``depends_on_vars``
    with the adjustment options applied.
    """

    def __init__(self, name: str, graph=None):
        """
        Args:
            name: Variable name, e.g. "--link-color"
            graph: Owning DependencyGraph, None for a detached variable
        """
        self.name = name
        self.graph = graph

        self.value: Optional[str] = None
        self.base_value: Optional[str] = None
        self.rgb: Optional[Color] = None
        self.base_color: Optional[Color] = None
        self.use_indirect_definition = False
        self.expression: Optional[Expression] = None
        self.unresolved_references: List[str] = []

        # Edges, mutated only by DependencyGraph.relink
        self._depends_on: List['ColorVariable'] = []
        self._affects: List['ColorVariable'] = []

        # Contrast links where this variable is the subject / the target
        self.contrast_variables: List[Any] = []
        self.contrast_of_other_colors: List[Any] = []

        self.has_format_rgb = False
        self.suggested_value: Optional[Suggestion] = None
        self.on_change: List[Callable[['ColorVariable'], None]] = []
        self.is_changed_from_base = False

        self._save_explicit_rgb_in_output = False
        self._option_invert = False
        self._option_hue_rotate = 0.0
        self._option_saturation_factor = 1.0
        self._option_lightness_factor = 1.0

    def __repr__(self) -> str:
        kind = "indirect" if self.use_indirect_definition else "explicit"
        return f"ColorVariable({self.name}, {kind}, {rgb_to_hex_string(self.rgb) or None})"

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    @property
    def depends_on_vars(self) -> Tuple['ColorVariable', ...]:
        return tuple(self._depends_on)

    @property
    def affects_vars(self) -> Tuple['ColorVariable', ...]:
        return tuple(self._affects)

    # ------------------------------------------------------------------
    # Adjustment options
    # ------------------------------------------------------------------

    @property
    def save_explicit_rgb_in_output(self) -> bool:
        return self._save_explicit_rgb_in_output

    @save_explicit_rgb_in_output.setter
    def save_explicit_rgb_in_output(self, value: bool) -> None:
        self.set_options(save_explicit_rgb_in_output=value)

    @property
    def option_invert(self) -> bool:
        return self._option_invert

    @option_invert.setter
    def option_invert(self, value: bool) -> None:
        self.set_options(invert=value)

    @property
    def option_hue_rotate(self) -> float:
        return self._option_hue_rotate

    @option_hue_rotate.setter
    def option_hue_rotate(self, value: float) -> None:
        self.set_options(hue_rotate=value)

    @property
    def option_saturation_factor(self) -> float:
        return self._option_saturation_factor

    @option_saturation_factor.setter
    def option_saturation_factor(self, value: float) -> None:
        self.set_options(saturation_factor=value)

    @property
    def option_lightness_factor(self) -> float:
        return self._option_lightness_factor

    @option_lightness_factor.setter
    def option_lightness_factor(self, value: float) -> None:
        self.set_options(lightness_factor=value)

    @property
    def options(self) -> Dict[str, Any]:
        return {
            "save_explicit_rgb_in_output": self._save_explicit_rgb_in_output,
            "invert": self._option_invert,
            "hue_rotate": self._option_hue_rotate,
            "saturation_factor": self._option_saturation_factor,
            "lightness_factor": self._option_lightness_factor,
        }

    @property
    def has_adjustments(self) -> bool:
        """Whether any color adjustment differs from its neutral value."""
        return (
            self._option_invert
            or self._option_hue_rotate != 0
            or self._option_saturation_factor != 1
            or self._option_lightness_factor != 1
        )

    def set_options(
        self,
        save_explicit_rgb_in_output: Optional[bool] = None,
        invert: Optional[bool] = None,
        hue_rotate: Optional[float] = None,
        saturation_factor: Optional[float] = None,
        lightness_factor: Optional[float] = None
    ) -> None:
        """
        Set several adjustment options and recompute once.

        Options passed as None are left unchanged.
        """
        before = self.options
        if save_explicit_rgb_in_output is not None:
            self._save_explicit_rgb_in_output = bool(save_explicit_rgb_in_output)
        if invert is not None:
            self._option_invert = bool(invert)
        if hue_rotate is not None:
            self._option_hue_rotate = float(hue_rotate)
        if saturation_factor is not None:
            self._option_saturation_factor = float(saturation_factor)
        if lightness_factor is not None:
            self._option_lightness_factor = float(lightness_factor)

        if self.options == before:
            return
        self.refresh()
        self._update_indicator()

    def reset_options(self) -> None:
        self.set_options(**NEUTRAL_OPTIONS)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_value(self, value: Optional[str], also_set_as_base: bool = False) -> None:
        """
        Set the raw definition of this variable.

        A parseable color literal makes the variable explicit. Anything else
        is an indirect definition whose references become the dependencies.
        An indirect definition turns off ``save_explicit_rgb_in_output``, so
        the other adjustment options have no effect until it is set again.

        Args:
            value: Color literal or indirect definition
            also_set_as_base: Also use the value as base value

        Raises:
            CyclicDependencyError: If the definition would create a cycle; the
                variable is left unchanged
        """
        color = try_parse_color(value) if value and 'var' not in value else None

        if color is not None:
            self._link([])
            self.value = value
            if also_set_as_base:
                self.base_value = value
            self.expression = None
            self.unresolved_references = []
            self.use_indirect_definition = False
            self.set_color(color, also_set_as_base)
            self._update_indicator()
            return

        expression = None
        if value:
            try:
                expression = parse_expression(value)
            except ExpressionError as e:
                logger.warning(f"Cannot parse definition of {self.name}: {e}")

        names = expression.references() if expression is not None else []
        dependencies, unresolved = self._resolve_dependencies(names)
        # raises before anything was changed
        self._link(dependencies)

        self.value = value
        if also_set_as_base:
            self.base_value = value
        self.expression = expression
        self.unresolved_references = unresolved
        # adjustments stay off until set again for the new definition
        self._save_explicit_rgb_in_output = False

        if not value:
            self.use_indirect_definition = False
            self._update_indicator()
            return

        self.set_color(self.calculated_color(), also_set_as_base, use_indirect_definition=True)
        self._update_indicator()

    def set_color(
        self,
        rgb: Optional[Color],
        also_set_as_base: bool = False,
        use_indirect_definition: Optional[bool] = False
    ) -> None:
        """
        Set the resolved color and propagate it if it changed.

        Args:
            rgb: New color
            also_set_as_base: Also store the color as base color
            use_indirect_definition: False makes the variable explicit (an
                indirect variable is detached from its sources and its value
                becomes the hex literal), True marks it indirect, None keeps
                the current state
        """
        color = to_color(rgb) if rgb is not None else None

        if use_indirect_definition is False and self.use_indirect_definition:
            self._detach(color)
        elif use_indirect_definition is not None:
            self.use_indirect_definition = use_indirect_definition

        if also_set_as_base:
            self.base_color = color

        if rgb_equal(self.rgb, color):
            if also_set_as_base:
                self._update_indicator()
            return

        self.rgb = color
        self._update_indicator()
        self._propagate()

    def set_base_value(self, base_value: Optional[str]) -> None:
        """
        Set only the base value, the live color is not changed.

        An indirect base value is evaluated against the current colors of the
        referenced variables.
        """
        if self.base_value == base_value:
            return

        color = try_parse_color(base_value) if base_value and 'var' not in base_value else None
        self.base_value = base_value
        if color is not None:
            self.base_color = color
        else:
            expression = None
            if base_value:
                try:
                    expression = parse_expression(base_value)
                except ExpressionError as e:
                    logger.warning(f"Cannot parse base definition of {self.name}: {e}")
            self.base_color = self._evaluate(expression)

        self._update_indicator()

    def reset_to_base(self) -> None:
        self.set_value(self.base_value)

    def set_value_by_definition(
        self,
        definition: Optional[Suggestion] = None,
        dark: bool = False
    ) -> None:
        """
        Apply a suggested definition, by default ``suggested_value``.

        Args:
            definition: Suggestion to apply
            dark: Whether the theme is based on the dark view
        """
        definition = definition or self.suggested_value
        if definition is None:
            return

        explicit = definition.dark if dark else definition.light
        if explicit:
            try:
                self.set_color(parse_color(explicit))
            except ColorError as e:
                logger.warning(f"Invalid suggested color for {self.name}: {e}")
            return

        if not definition.indirect:
            return

        self.set_value(definition.indirect)
        self.set_options(
            save_explicit_rgb_in_output=definition.has_adjustments,
            invert=bool(definition.invert),
            hue_rotate=definition.hue_rotate if definition.hue_rotate is not None else 0,
            saturation_factor=(
                definition.saturation_factor if definition.saturation_factor is not None else 1
            ),
            lightness_factor=(
                definition.lightness_factor if definition.lightness_factor is not None else 1
            ),
        )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def calculated_color(self) -> Optional[Color]:
        """
        Evaluate the indirect definition against the current dependency colors.

        The adjustment options are only applied when the color is saved
        explicitly in the output, so that ``rgb`` matches what is exported.
        """
        return self._evaluate(self.expression)

    def refresh(self) -> bool:
        """
        Recompute an indirect variable and propagate if its color changed.

        Returns:
            Whether the color changed
        """
        if not self._recompute(force=True):
            return False
        self._propagate()
        return True

    def _evaluate(self, expression: Optional[Expression]) -> Optional[Color]:
        if expression is None:
            return None
        dark = self.graph.dark_view if self.graph is not None else False
        color = expression.evaluate(self._resolve, dark)
        if color is None or not self._save_explicit_rgb_in_output:
            return color
        if self._option_invert:
            color = inverted_color(color)
        if (self._option_hue_rotate != 0
                or self._option_saturation_factor != 1
                or self._option_lightness_factor != 1):
            color = adjust_hsl(
                color,
                self._option_hue_rotate,
                self._option_saturation_factor,
                self._option_lightness_factor
            )
        return color

    def _recompute(self, force: bool = False) -> bool:
        """Recompute ``rgb`` from the dependencies without propagating."""
        if not self.use_indirect_definition or self.expression is None:
            return False
        if not force and not self._depends_on:
            return False

        color = self.calculated_color()
        if rgb_equal(color, self.rgb):
            return False
        self.rgb = color
        self._update_indicator()
        return True

    def _resolve(self, name: str) -> Optional[Color]:
        if self.graph is None:
            return None
        return self.graph.resolve(name)

    def _resolve_dependencies(self, names: List[str]) -> Tuple[List['ColorVariable'], List[str]]:
        if self.graph is None:
            return [], list(names)

        dependencies = []
        unresolved = []
        for name in names:
            variable = self.graph.get(name)
            if variable is None:
                unresolved.append(name)
                logger.warning(f"Unknown variable {name} referenced by {self.name} is ignored")
            else:
                dependencies.append(variable)
        return dependencies, unresolved

    def _rebind(self) -> None:
        """Re-resolve references after variables were added to the graph."""
        names = self.expression.references() if self.expression is not None else []
        dependencies, self.unresolved_references = self._resolve_dependencies(names)
        self._link(dependencies)
        self.refresh()

    def _link(self, dependencies: List['ColorVariable']) -> None:
        if self.graph is not None:
            self.graph.relink(self, dependencies)

    def _detach(self, color: Optional[Color]) -> None:
        logger.info(f"{self.name} is set explicitly and detached from {self.value}")
        self._link([])
        self.value = rgb_to_hex_string(color) or None
        self.expression = None
        self.unresolved_references = []
        self.use_indirect_definition = False

    def _propagate(self) -> None:
        if self.graph is not None:
            self.graph.propagate(self)
        else:
            for hook in list(self.on_change):
                hook(self)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def value_should_go_in_output(self) -> bool:
        """
        Whether the variable differs from its base and belongs in an export.

        A variable whose color equals its base color is never exported.
        """
        return (
            (self._save_explicit_rgb_in_output
             or not self.use_indirect_definition
             or not self.value
             or self.value != self.base_value)
            and not rgb_equal(self.rgb, self.base_color)
        )

    def value_string_output(self) -> str:
        """CSS value: the indirect definition, or the hex color when saved explicitly."""
        if self.use_indirect_definition and not self._save_explicit_rgb_in_output:
            return self.value or ''
        return rgb_to_hex_string(self.rgb)

    def value_color_as_csv(self) -> str:
        return rgb_to_csv_string(self.rgb)

    def _update_indicator(self) -> None:
        self.is_changed_from_base = self.value_should_go_in_output()


__all__ = ["ColorVariable", "Suggestion", "NEUTRAL_OPTIONS"]
