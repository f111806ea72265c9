"""
Dependency graph of color variables.

The graph owns the variables, keeps the depends-on / affects edges exact
inverses of each other, rejects cycles, and pushes color changes
downstream in topological order. Visible updates are emitted through a
throttled event so rapid edits do not flood a renderer.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from theme_color_engine.core import CONFIG, Profiler
from theme_color_engine.models.color import Color, rgb_equal
from theme_color_engine.models.contrast import ContrastLink
from theme_color_engine.models.expression import VARIABLE_NAME_PATTERN
from theme_color_engine.models.variable import ColorVariable
from theme_color_engine.utils.logger import get_logger, log_exception
from theme_color_engine.utils.throttle import Throttle

logger = get_logger(__name__)


class GraphEvent(Enum):
    """Events emitted by a dependency graph."""
    VARIABLE_ADDED = auto()
    VARIABLE_UPDATED = auto()
    CONTRAST_UPDATED = auto()
    DARK_VIEW_CHANGED = auto()


class GraphError(Exception):
    """Invalid graph operation, e.g. a duplicate or malformed variable name."""
    pass


class CyclicDependencyError(GraphError):
    """An edit would make a variable depend on itself."""
    pass


@dataclass
class VariableUpdate:
    """CSS properties to write after a variable's color changed."""
    name: str
    properties: Dict[str, str] = field(default_factory=dict)


class DependencyGraph:
    """
    In-memory graph of color variables.

    All mutations are serialized by a re-entrant lock; propagation reads
    dependency colors and must not interleave with other edits.
    """

    def __init__(self, throttle_delay: Optional[float] = None):
        """
        Args:
            throttle_delay: Cooldown of visible updates per variable in seconds,
                CONFIG["throttle_delay"] if None
        """
        self._variables: Dict[str, ColorVariable] = {}
        self._event_handlers: Dict[GraphEvent, List[Callable]] = {
            event: [] for event in GraphEvent
        }
        self._throttles: Dict[str, Throttle] = {}
        self._throttle_delay = throttle_delay
        self._dark_view = False
        self._lock = threading.RLock()
        self.propagation_count = 0

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def add_variable(
        self,
        name: str,
        value: Optional[str] = None,
        also_set_as_base: bool = True
    ) -> ColorVariable:
        """
        Create and register a variable.

        Indirect variables that already referenced the name are re-resolved.

        Args:
            name: Variable name, must look like "--name"
            value: Optional initial value
            also_set_as_base: Whether the initial value is also the base value

        Returns:
            The new variable

        Raises:
            GraphError: If the name is malformed or already registered
            CyclicDependencyError: If the value refers back to the variable
                through a variable that was waiting for it; the variable stays
                registered without a value
        """
        if not name or not VARIABLE_NAME_PATTERN.match(name):
            raise GraphError(f"Invalid variable name: {name!r}")

        with self._lock:
            if name in self._variables:
                raise GraphError(f"Variable {name} already exists")

            variable = ColorVariable(name, self)
            self._variables[name] = variable
            logger.debug(f"Added variable {name}")

            waiting = [v for v in self._variables.values() if name in v.unresolved_references]
            for dependent in waiting:
                dependent._rebind()

        # registered before the value is set, a cyclic value leaves it unset
        self._trigger_event(GraphEvent.VARIABLE_ADDED, variable)

        if value is not None:
            with self._lock:
                variable.set_value(value, also_set_as_base)
        return variable

    def get(self, name: str) -> Optional[ColorVariable]:
        return self._variables.get(name)

    def __getitem__(self, name: str) -> ColorVariable:
        try:
            return self._variables[name]
        except KeyError:
            raise GraphError(f"Unknown variable {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    def __iter__(self) -> Iterator[ColorVariable]:
        return iter(list(self._variables.values()))

    def __len__(self) -> int:
        return len(self._variables)

    @property
    def names(self) -> List[str]:
        return list(self._variables)

    @property
    def variables(self) -> List[ColorVariable]:
        return list(self._variables.values())

    def resolve(self, name: str) -> Optional[Color]:
        """Current color of a variable, None if unknown or unset."""
        variable = self._variables.get(name)
        return variable.rgb if variable is not None else None

    @property
    def dark_view(self) -> bool:
        """Whether ``light-dark()`` definitions use their dark branch."""
        return self._dark_view

    @dark_view.setter
    def dark_view(self, value: bool) -> None:
        value = bool(value)
        if value == self._dark_view:
            return
        self._dark_view = value
        self.refresh_all()
        self._trigger_event(GraphEvent.DARK_VIEW_CHANGED, value)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def relink(self, variable: ColorVariable, dependencies: Sequence[ColorVariable]) -> None:
        """
        Replace the dependencies of a variable.

        The only place edges change; both directions are updated together.

        Args:
            variable: Variable whose dependencies are replaced
            dependencies: New dependencies

        Raises:
            CyclicDependencyError: If a dependency is the variable itself or
                depends on it; no edge is changed in that case
        """
        with self._lock:
            new_dependencies: List[ColorVariable] = []
            for dependency in dependencies:
                if dependency not in new_dependencies:
                    new_dependencies.append(dependency)

            for dependency in new_dependencies:
                if dependency is variable or self._reaches(variable, dependency):
                    raise CyclicDependencyError(
                        f"{variable.name} cannot depend on {dependency.name}: "
                        f"{dependency.name} already depends on {variable.name}"
                    )

            for old in variable._depends_on:
                if old not in new_dependencies:
                    old._affects.remove(variable)
            for dependency in new_dependencies:
                if variable not in dependency._affects:
                    dependency._affects.append(variable)
            variable._depends_on = new_dependencies

    def _reaches(self, start: ColorVariable, goal: ColorVariable) -> bool:
        """Whether goal is downstream of start."""
        stack = list(start._affects)
        seen = set()
        while stack:
            current = stack.pop()
            if current is goal:
                return True
            if id(current) in seen:
                continue
            seen.add(id(current))
            stack.extend(current._affects)
        return False

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def propagate(self, source: ColorVariable) -> List[ColorVariable]:
        """
        Push a color change of a variable downstream.

        Each downstream variable is recomputed at most once, after all its
        inputs, and only when one of them changed in this pass. Contrast links,
        change hooks and update events follow for every changed variable.

        Args:
            source: Variable whose color changed

        Returns:
            Changed variables, the source first

        Raises:
            CyclicDependencyError: If a cycle is found downstream
        """
        with self._lock:
            with Profiler(f"propagate {source.name}"):
                order = self._downstream_order(source)
                changed = [source]
                changed_ids = {id(source)}
                for variable in order[1:]:
                    if not any(id(d) in changed_ids for d in variable._depends_on):
                        continue
                    if variable._recompute():
                        changed.append(variable)
                        changed_ids.add(id(variable))
                self.propagation_count += 1

            for variable in changed:
                self._notify_changed(variable)

        return changed

    def refresh_all(self) -> List[ColorVariable]:
        """Recompute every indirect variable in topological order."""
        with self._lock:
            changed = [v for v in self.topological_order() if v._recompute(force=True)]
            for variable in changed:
                self._notify_changed(variable)
        return changed

    def _downstream_order(self, source: ColorVariable) -> List[ColorVariable]:
        """Topological order of source and everything it affects."""
        order: List[ColorVariable] = []
        state: Dict[int, int] = {}  # 1: on stack, 2: done

        def visit(variable: ColorVariable) -> None:
            state[id(variable)] = 1
            for child in variable._affects:
                child_state = state.get(id(child))
                if child_state == 1:
                    raise CyclicDependencyError(f"Cycle through {child.name} and {variable.name}")
                if child_state is None:
                    visit(child)
            state[id(variable)] = 2
            order.append(variable)

        visit(source)
        order.reverse()
        return order

    def topological_order(self) -> List[ColorVariable]:
        """
        All variables ordered so that dependencies come first.

        Raises:
            CyclicDependencyError: If the graph has a cycle
        """
        remaining = {id(v): len(v._depends_on) for v in self._variables.values()}
        ready = [v for v in self._variables.values() if not v._depends_on]
        order = []
        while ready:
            variable = ready.pop(0)
            order.append(variable)
            for child in variable._affects:
                remaining[id(child)] -= 1
                if remaining[id(child)] == 0:
                    ready.append(child)
        if len(order) != len(self._variables):
            raise CyclicDependencyError("Dependency graph contains a cycle")
        return order

    def _notify_changed(self, variable: ColorVariable) -> None:
        for link in variable.contrast_variables + variable.contrast_of_other_colors:
            link.update_contrast()
            self._trigger_event(GraphEvent.CONTRAST_UPDATED, link)

        for hook in list(variable.on_change):
            try:
                hook(variable)
            except Exception as e:
                log_exception(logger, e, context={"variable": variable.name, "hook": hook})

        self._emit_update(variable.name)

    # ------------------------------------------------------------------
    # Contrast
    # ------------------------------------------------------------------

    def add_contrast_requirement(
        self,
        subject: str,
        target: str,
        min_contrast: Optional[float] = None
    ) -> Optional[ContrastLink]:
        """
        Require a minimum contrast between two variables.

        Args:
            subject: Name of the variable that is checked and repaired
            target: Name of the variable the contrast is measured against
            min_contrast: Required ratio, CONFIG["default_min_contrast"] if None

        Returns:
            The link, None if either variable is unknown
        """
        subject_variable = self._variables.get(subject)
        target_variable = self._variables.get(target)
        if subject_variable is None or target_variable is None:
            missing = subject if subject_variable is None else target
            logger.warning(f"Contrast requirement {subject} / {target} ignored, unknown variable {missing}")
            return None

        with self._lock:
            link = ContrastLink(subject_variable, target_variable, min_contrast)
            subject_variable.contrast_variables.append(link)
            target_variable.contrast_of_other_colors.append(link)
            link.update_contrast()
        return link

    @property
    def contrast_links(self) -> List[ContrastLink]:
        return [link for v in self._variables.values() for link in v.contrast_variables]

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """
        Check the graph invariants.

        Returns:
            Descriptions of violations, empty when the graph is consistent
        """
        problems = []
        for variable in self._variables.values():
            for dependency in variable._depends_on:
                if variable not in dependency._affects:
                    problems.append(f"{dependency.name} does not list {variable.name} as affected")
            for affected in variable._affects:
                if variable not in affected._depends_on:
                    problems.append(f"{affected.name} does not list {variable.name} as dependency")
            if variable.use_indirect_definition and variable.expression is not None:
                if not rgb_equal(variable.rgb, variable.calculated_color()):
                    problems.append(f"{variable.name} is not up to date with its definition")

        try:
            self.topological_order()
        except CyclicDependencyError as e:
            problems.append(str(e))
        return problems

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event_handler(self, event: GraphEvent, handler: Callable) -> 'DependencyGraph':
        """
        Add an event handler, called as ``handler(graph, event, payload)``.

        Returns:
            Self for method chaining
        """
        with self._lock:
            self._event_handlers[event].append(handler)
        return self

    def remove_event_handler(self, event: GraphEvent, handler: Callable) -> 'DependencyGraph':
        with self._lock:
            if handler in self._event_handlers[event]:
                self._event_handlers[event].remove(handler)
        return self

    def variable_update(self, variable: ColorVariable) -> VariableUpdate:
        """CSS properties of a variable, including its companions."""
        # imported here, the synthesizer is only needed for filter variables
        from theme_color_engine.generation.filter_synthesizer import calculate_filter

        update = VariableUpdate(variable.name)
        if variable.rgb is None:
            return update

        update.properties[variable.name] = variable.value_string_output()
        if variable.has_format_rgb:
            update.properties[variable.name + CONFIG["rgb_suffix"]] = variable.value_color_as_csv()
        filter_property = CONFIG["filter_variables"].get(variable.name)
        if filter_property:
            update.properties[filter_property] = calculate_filter(variable.rgb).filter_string
        return update

    def flush_updates(self) -> None:
        """Emit pending trailing updates now."""
        for throttle in list(self._throttles.values()):
            throttle.flush()

    def _emit_update(self, name: str) -> None:
        throttle = self._throttles.get(name)
        if throttle is None:
            delay = CONFIG["throttle_delay"] if self._throttle_delay is None else self._throttle_delay
            throttle = Throttle(self._emit_variable_updated, delay)
            self._throttles[name] = throttle
        throttle(name)

    def _emit_variable_updated(self, name: str) -> None:
        # trailing calls run on a timer thread
        with self._lock:
            variable = self._variables.get(name)
            if variable is None:
                return
            self._trigger_event(GraphEvent.VARIABLE_UPDATED, self.variable_update(variable))

    def _trigger_event(self, event: GraphEvent, *args) -> None:
        # Copy so handlers may add or remove handlers
        handlers = self._event_handlers[event].copy()
        for handler in handlers:
            try:
                handler(self, event, *args)
            except Exception as e:
                log_exception(logger, e, context={"event": event.name})


__all__ = [
    "GraphEvent", "GraphError", "CyclicDependencyError", "VariableUpdate", "DependencyGraph",
]
