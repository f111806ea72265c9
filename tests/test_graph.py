"""
Tests for color variables and the dependency graph.
"""

import threading
import unittest

from theme_color_engine.models.graph import (
    CyclicDependencyError, DependencyGraph, GraphError, GraphEvent, VariableUpdate
)
from theme_color_engine.utils.logger import LogCapture


class TestDependencyGraph(unittest.TestCase):
    """Tests for the DependencyGraph class."""

    def setUp(self):
        """Set up a graph that emits updates synchronously."""
        self.graph = DependencyGraph(throttle_delay=0)
        self.events = []
        for event in GraphEvent:
            self.graph.add_event_handler(event, self._record)

    def _record(self, graph, event, payload):
        self.events.append((event, payload))

    def _updates(self):
        return [payload for event, payload in self.events if event == GraphEvent.VARIABLE_UPDATED]

    def test_add_variable(self):
        variable = self.graph.add_variable("--accent", "#336699")
        self.assertIn("--accent", self.graph)
        self.assertIs(self.graph["--accent"], variable)
        self.assertEqual(variable.rgb, (51, 102, 153, 1.0))
        self.assertEqual(variable.base_value, "#336699")
        self.assertFalse(variable.use_indirect_definition)
        self.assertFalse(variable.is_changed_from_base)

    def test_invalid_and_duplicate_names(self):
        self.graph.add_variable("--a")
        with self.assertRaises(GraphError):
            self.graph.add_variable("--a")
        with self.assertRaises(GraphError):
            self.graph.add_variable("accent")
        with self.assertRaises(GraphError):
            self.graph["--unknown"]

    def test_indirect_variable_follows_source(self):
        bg = self.graph.add_variable("--bg", "#202020")
        fg = self.graph.add_variable("--fg", "var(--bg)")
        fg.set_options(save_explicit_rgb_in_output=True, invert=True)
        self.assertEqual(fg.rgb, (223, 223, 223, 1.0))

        bg.set_value("#000000")
        self.assertEqual(fg.rgb, (255, 255, 255, 1.0))
        self.assertEqual(fg.value_string_output(), "#ffffff")
        self.assertEqual(self.graph.validate(), [])

    def test_hsl_options_are_applied(self):
        self.graph.add_variable("--bg", "#c83232")
        fg = self.graph.add_variable("--fg", "var(--bg)")

        fg.set_options(hue_rotate=30, saturation_factor=0.5, lightness_factor=1.5)
        self.assertEqual(fg.rgb, (200, 50, 50, 1.0))

        fg.save_explicit_rgb_in_output = True
        self.assertEqual(fg.rgb, (208, 187, 167, 1.0))
        self.assertEqual(fg.value_string_output(), "#d0bba7")
        self.assertEqual(self.graph.validate(), [])

    def test_new_definition_turns_off_explicit_output(self):
        self.graph.add_variable("--bg", "#202020")
        fg = self.graph.add_variable("--fg", "var(--bg)")
        fg.set_options(save_explicit_rgb_in_output=True, invert=True)
        self.assertEqual(fg.rgb, (223, 223, 223, 1.0))

        fg.set_value("color-mix(in srgb, var(--bg), var(--bg))")
        self.assertFalse(fg.save_explicit_rgb_in_output)
        self.assertTrue(fg.option_invert)
        self.assertEqual(fg.rgb, (32, 32, 32, 1.0))
        self.assertEqual(fg.value_string_output(), "color-mix(in srgb, var(--bg), var(--bg))")

    def test_edges_are_inverse(self):
        a = self.graph.add_variable("--a", "#ff0000")
        b = self.graph.add_variable("--b", "var(--a)")
        self.assertEqual(b.depends_on_vars, (a,))
        self.assertEqual(a.affects_vars, (b,))

        b.set_value("#00ff00")
        self.assertEqual(b.depends_on_vars, ())
        self.assertEqual(a.affects_vars, ())
        self.assertEqual(self.graph.validate(), [])

    def test_cycle_is_rejected_without_changes(self):
        a = self.graph.add_variable("--a", "#ffffff")
        b = self.graph.add_variable("--b", "var(--a)")

        with self.assertRaises(CyclicDependencyError):
            a.set_value("var(--b)")

        self.assertEqual(a.value, "#ffffff")
        self.assertFalse(a.use_indirect_definition)
        self.assertEqual(a.depends_on_vars, ())
        self.assertEqual(b.depends_on_vars, (a,))
        self.assertEqual(self.graph.validate(), [])

    def test_self_reference_is_rejected(self):
        a = self.graph.add_variable("--a", "#ffffff")
        with self.assertRaises(CyclicDependencyError):
            a.set_value("color-mix(in srgb, var(--a), #000)")
        self.assertEqual(a.rgb, (255, 255, 255, 1.0))

    def test_setting_same_color_is_a_no_op(self):
        a = self.graph.add_variable("--a", "#123456")
        self.events.clear()
        passes = self.graph.propagation_count

        a.set_color((18, 52, 86, 1.0))
        a.set_color((18, 52, 86, 1.0))
        self.assertEqual(self.events, [])
        self.assertEqual(self.graph.propagation_count, passes)

        a.set_color((18, 52, 87, 1.0))
        updates = self._updates()
        self.assertEqual(len(updates), 1)
        self.assertIsInstance(updates[0], VariableUpdate)
        self.assertEqual(updates[0].properties, {"--a": "#123457"})
        self.assertEqual(self.graph.propagation_count, passes + 1)

    def test_diamond_is_recomputed_once(self):
        a = self.graph.add_variable("--a", "#000000")
        self.graph.add_variable("--b", "var(--a)")
        self.graph.add_variable("--c", "color-mix(in srgb, var(--a), #fff)")
        d = self.graph.add_variable("--d", "color-mix(in srgb, var(--b), var(--c))")
        self.assertEqual(d.rgb, (64, 64, 64, 1.0))

        changes = []
        d.on_change.append(changes.append)
        a.set_value("#ffffff")

        self.assertEqual(changes, [d])
        self.assertEqual(d.rgb, (255, 255, 255, 1.0))
        order = [v.name for v in self.graph.topological_order()]
        self.assertEqual(order[0], "--a")
        self.assertEqual(order[-1], "--d")

    def test_unchanged_dependents_stop_propagation(self):
        a = self.graph.add_variable("--a", "#ff0000")
        self.graph.add_variable("--b", "light-dark(var(--a), #000)")
        c = self.graph.add_variable("--c", "var(--b)")
        changes = []
        c.on_change.append(changes.append)

        self.graph.dark_view = True
        self.assertEqual(c.rgb, (0, 0, 0, 1.0))
        self.assertEqual(changes, [c])

        changes.clear()
        a.set_value("#00ff00")
        self.assertEqual(changes, [])
        self.assertEqual(self.graph.validate(), [])

    def test_late_registration(self):
        with LogCapture("theme_color_engine.models.variable") as capture:
            b = self.graph.add_variable("--b", "var(--a)")
        self.assertTrue(capture.contains("Unknown variable --a"))
        self.assertIsNone(b.rgb)
        self.assertEqual(b.unresolved_references, ["--a"])

        a = self.graph.add_variable("--a", "#ff0000")
        self.assertEqual(b.depends_on_vars, (a,))
        self.assertEqual(b.unresolved_references, [])
        self.assertEqual(b.rgb, (255, 0, 0, 1.0))

    def test_late_registration_with_cyclic_value(self):
        b = self.graph.add_variable("--b", "var(--a)")
        self.events.clear()

        with self.assertRaises(CyclicDependencyError):
            self.graph.add_variable("--a", "var(--b)")

        a = self.graph["--a"]
        self.assertIsNone(a.value)
        self.assertIsNone(a.rgb)
        self.assertEqual(a.depends_on_vars, ())
        self.assertEqual(b.depends_on_vars, (a,))
        self.assertIn((GraphEvent.VARIABLE_ADDED, a), self.events)
        self.assertEqual(self.graph.validate(), [])

    def test_unparseable_definition(self):
        with LogCapture("theme_color_engine.models.variable") as capture:
            variable = self.graph.add_variable("--x", "shade(var(--y))")
        self.assertTrue(capture.contains("Cannot parse definition of --x"))
        self.assertTrue(variable.use_indirect_definition)
        self.assertIsNone(variable.rgb)

    def test_set_color_detaches_indirect_variable(self):
        a = self.graph.add_variable("--a", "#ff0000")
        b = self.graph.add_variable("--b", "var(--a)")
        b.set_color((0, 0, 255, 1.0))

        self.assertFalse(b.use_indirect_definition)
        self.assertEqual(b.value, "#0000ff")
        self.assertEqual(a.affects_vars, ())
        a.set_value("#00ff00")
        self.assertEqual(b.rgb, (0, 0, 255, 1.0))

    def test_reset_to_base(self):
        a = self.graph.add_variable("--a", "#ff0000")
        a.set_value("#00ff00")
        self.assertTrue(a.is_changed_from_base)
        a.reset_to_base()
        self.assertEqual(a.rgb, (255, 0, 0, 1.0))
        self.assertFalse(a.is_changed_from_base)

    def test_rgb_companion_in_update(self):
        a = self.graph.add_variable("--a", "#102030")
        a.has_format_rgb = True
        update = self.graph.variable_update(a)
        self.assertEqual(update.properties, {"--a": "#102030", "--a--rgb": "16,32,48"})

    def test_handler_errors_are_logged(self):
        def failing_handler(graph, event, payload):
            raise ValueError("renderer gone")

        self.graph.add_event_handler(GraphEvent.VARIABLE_UPDATED, failing_handler)
        a = self.graph.add_variable("--a", "#000000")
        with LogCapture("theme_color_engine.models.graph") as capture:
            a.set_value("#ffffff")
        self.assertTrue(capture.contains("renderer gone"))
        self.assertEqual(a.rgb, (255, 255, 255, 1.0))

        self.graph.remove_event_handler(GraphEvent.VARIABLE_UPDATED, failing_handler)
        with LogCapture("theme_color_engine.models.graph") as capture:
            a.set_value("#000000")
        self.assertFalse(capture.contains("renderer gone"))

    def test_contrast_requirement_follows_colors(self):
        self.graph.add_variable("--text", "#777777")
        bg = self.graph.add_variable("--bg", "#ffffff")
        link = self.graph.add_contrast_requirement("--text", "--bg", 4.5)
        self.assertFalse(link.sufficient)

        self.events.clear()
        bg.set_value("#000000")
        self.assertTrue(link.sufficient)
        contrast_events = [p for e, p in self.events if e == GraphEvent.CONTRAST_UPDATED]
        self.assertEqual(contrast_events, [link])
        self.assertEqual(self.graph.contrast_links, [link])

    def test_unknown_contrast_variable(self):
        self.graph.add_variable("--text", "#777777")
        self.assertIsNone(self.graph.add_contrast_requirement("--text", "--nope"))


class TestThrottledUpdates(unittest.TestCase):
    """Tests for update events with a cooldown."""

    def test_rapid_changes_keep_final_state(self):
        graph = DependencyGraph(throttle_delay=60)
        updates = []
        graph.add_event_handler(
            GraphEvent.VARIABLE_UPDATED,
            lambda g, e, update: updates.append(update.properties["--a"])
        )
        a = graph.add_variable("--a", "#000000")
        for value in ("#111111", "#222222", "#333333"):
            a.set_value(value)

        self.assertEqual(updates, ["#000000"])
        graph.flush_updates()
        self.assertEqual(updates, ["#000000", "#333333"])

    def test_trailing_update_waits_for_edits(self):
        graph = DependencyGraph(throttle_delay=0.5)
        updates = []
        delivered = threading.Event()

        def record(g, e, update):
            updates.append(update.properties["--a"])
            if len(updates) == 2:
                delivered.set()

        graph.add_event_handler(GraphEvent.VARIABLE_UPDATED, record)
        a = graph.add_variable("--a", "#000000")
        a.set_value("#ffffff")

        with graph._lock:
            # the cooldown ends while an edit holds the graph
            self.assertFalse(delivered.wait(1.0))
            a.set_value("#eeeeee")

        self.assertTrue(delivered.wait(5))
        self.assertEqual(updates[:2], ["#000000", "#eeeeee"])
        graph.flush_updates()


if __name__ == "__main__":
    unittest.main()
