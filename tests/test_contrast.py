"""
Tests for contrast requirements and lightness repair.
"""

import random
import unittest

from theme_color_engine.models.color import BLACK, WHITE, contrast_ratio, rgb_to_hex_string
from theme_color_engine.models.contrast import (
    ContrastLevel, ContrastLink, classify_contrast, fix_contrast_with_lightness
)
from theme_color_engine.models.graph import DependencyGraph
from theme_color_engine.utils.logger import LogCapture


class TestClassification(unittest.TestCase):
    """Tests for classify_contrast."""

    def test_levels(self):
        self.assertEqual(classify_contrast(4.5, 4.5), ContrastLevel.SUFFICIENT)
        self.assertEqual(classify_contrast(12, 4.5), ContrastLevel.SUFFICIENT)
        self.assertEqual(classify_contrast(4.0, 4.5), ContrastLevel.INSUFFICIENT)
        self.assertEqual(classify_contrast(2.0, 4.5), ContrastLevel.BAD)
        self.assertEqual(classify_contrast(None, 4.5), ContrastLevel.UNKNOWN)


class TestContrastLink(unittest.TestCase):
    """Tests for ContrastLink and fix_contrast_with_lightness."""

    def setUp(self):
        self.graph = DependencyGraph(throttle_delay=0)

    def test_minimum_below_one(self):
        text = self.graph.add_variable("--text", "#000000")
        bg = self.graph.add_variable("--bg", "#ffffff")
        with self.assertRaises(ValueError):
            ContrastLink(text, bg, 0.5)

    def test_default_minimum(self):
        self.graph.add_variable("--text", "#000000")
        self.graph.add_variable("--bg", "#ffffff")
        link = self.graph.add_contrast_requirement("--text", "--bg")
        self.assertEqual(link.min_contrast, 4.5)
        self.assertAlmostEqual(link.contrast, 21, places=2)
        self.assertEqual(link.to_dict()["level"], "sufficient")

    def test_translucent_colors_are_approximations(self):
        self.graph.add_variable("--text", "#00000080")
        self.graph.add_variable("--bg", "#ffffff")
        link = self.graph.add_contrast_requirement("--text", "--bg")
        self.assertTrue(link.is_approximation)
        self.assertLess(link.contrast, 21)

    def test_sufficient_contrast_is_not_changed(self):
        text = self.graph.add_variable("--text", "#383838")
        self.graph.add_variable("--bg", "#f5f5f5")
        self.graph.add_contrast_requirement("--text", "--bg")

        self.assertFalse(fix_contrast_with_lightness(text))
        self.assertEqual(text.rgb, (56, 56, 56, 1.0))

    def test_repair_converges(self):
        rng = random.Random(42)
        text = self.graph.add_variable("--text", "#000000")
        bg = self.graph.add_variable("--bg", "#ffffff")
        link = self.graph.add_contrast_requirement("--text", "--bg", 4.5)

        for _ in range(100):
            bg.set_color((rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), 1.0))
            text.set_color((rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), 1.0))
            link.fix()

            reachable = max(contrast_ratio(BLACK, bg.rgb), contrast_ratio(WHITE, bg.rgb))
            if reachable >= 4.5:
                self.assertGreaterEqual(
                    contrast_ratio(text.rgb, bg.rgb), 4.5 - 0.01,
                    f"{rgb_to_hex_string(text.rgb)} on {rgb_to_hex_string(bg.rgb)}"
                )
                self.assertTrue(link.sufficient)

    def test_repair_converges_for_any_minimum(self):
        rng = random.Random(7)
        text = self.graph.add_variable("--text", "#000000")
        bg = self.graph.add_variable("--bg", "#ffffff")
        link = self.graph.add_contrast_requirement("--text", "--bg")

        for _ in range(200):
            minimum = round(rng.uniform(1, 21), 2)
            link.min_contrast = minimum
            bg.set_color((rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), 1.0))
            text.set_color((rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), 1.0))
            link.update_contrast()
            link.fix()

            reachable = max(contrast_ratio(BLACK, bg.rgb), contrast_ratio(WHITE, bg.rgb))
            if reachable >= minimum:
                self.assertGreaterEqual(
                    contrast_ratio(text.rgb, bg.rgb), minimum - 0.01,
                    f"{rgb_to_hex_string(text.rgb)} on {rgb_to_hex_string(bg.rgb)}, min {minimum}"
                )

    def test_repair_against_several_targets(self):
        text = self.graph.add_variable("--text", "#8a8a8a")
        self.graph.add_variable("--bg", "#ffffff")
        self.graph.add_variable("--panel", "#eeeeee")
        links = [
            self.graph.add_contrast_requirement("--text", "--bg", 4.5),
            self.graph.add_contrast_requirement("--text", "--panel", 4.5),
        ]

        self.assertTrue(fix_contrast_with_lightness(text))
        self.assertTrue(all(link.sufficient for link in links))

    def test_unreachable_contrast_uses_white_on_dark(self):
        text = self.graph.add_variable("--text", "#444444")
        self.graph.add_variable("--bg", "#000000")
        self.graph.add_contrast_requirement("--text", "--bg", 22)

        self.assertTrue(fix_contrast_with_lightness(text))
        self.assertEqual(text.rgb, WHITE)

    def test_unreachable_contrast_uses_black_on_light(self):
        text = self.graph.add_variable("--text", "#808080")
        self.graph.add_variable("--dark", "#000000")
        self.graph.add_variable("--light", "#ffffff")
        self.graph.add_contrast_requirement("--text", "--dark", 4.5)
        self.graph.add_contrast_requirement("--text", "--light", 4.5)

        self.assertTrue(fix_contrast_with_lightness(text))
        self.assertEqual(text.rgb, BLACK)

    def test_repair_detaches_indirect_subject(self):
        base = self.graph.add_variable("--base", "#777777")
        text = self.graph.add_variable("--text", "var(--base)")
        self.graph.add_variable("--bg", "#808080")
        link = self.graph.add_contrast_requirement("--text", "--bg", 4.5)

        with LogCapture("theme_color_engine.models.contrast") as capture:
            self.assertTrue(link.fix())
        self.assertTrue(capture.contains("defined indirectly"))

        self.assertFalse(text.use_indirect_definition)
        self.assertEqual(text.value, rgb_to_hex_string(text.rgb))
        self.assertEqual(base.affects_vars, ())
        self.assertTrue(link.sufficient)
        self.assertEqual(self.graph.validate(), [])

    def test_nothing_to_fix_without_links(self):
        text = self.graph.add_variable("--text", "#777777")
        self.assertFalse(fix_contrast_with_lightness(text))


if __name__ == "__main__":
    unittest.main()
