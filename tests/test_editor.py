"""
Tests for the ThemeEditor session.
"""

import unittest

from theme_color_engine.editor import ThemeEditor
from theme_color_engine.generation.stylesheet import NOTHING_TO_EXPORT
from theme_color_engine.models.graph import CyclicDependencyError
from theme_color_engine.models.variable import NEUTRAL_OPTIONS
from theme_color_engine.utils.logger import LogCapture

THEME_CSS = """
:root {
    --background: #ffffff;
    --text: #202020;
    --text--rgb: 32,32,32;
    --link: color-mix(in srgb, var(--text) 50%, #0000ff);
    --text--inverted: #dfdfdf;
    font-family: sans-serif;
}
.view-dark {
    --background: #101010;
    --text: #eeeeee;
}
.theme-ocean {
    --background: #003366;
}
"""

CONTRAST = [
    ("--text", "--background", 4.5),
    {"subject": "--link", "target": "--background", "minContrast": 3},
]


class TestThemeEditor(unittest.TestCase):
    """Tests for the ThemeEditor class."""

    def setUp(self):
        """Set up an editor from a small theme."""
        self.editor = ThemeEditor.from_stylesheet(THEME_CSS, contrast_requirements=CONTRAST)
        self.graph = self.editor.graph

    def test_from_stylesheet(self):
        self.assertEqual(self.graph.names, ["--background", "--text", "--link", "--text--inverted"])
        self.assertTrue(self.graph["--text"].has_format_rgb)
        self.assertFalse(self.graph["--background"].has_format_rgb)
        self.assertEqual(self.graph["--link"].rgb, (16, 16, 144, 1.0))
        self.assertEqual(self.graph["--link"].depends_on_vars, (self.graph["--text"],))

        inverted = self.graph["--text--inverted"]
        self.assertTrue(inverted.use_indirect_definition)
        self.assertEqual(inverted.rgb, (223, 223, 223, 1.0))

        links = self.graph.contrast_links
        self.assertEqual([(l.subject.name, l.min_contrast) for l in links],
                         [("--text", 4.5), ("--link", 3.0)])
        self.assertTrue(all(link.sufficient for link in links))
        self.assertEqual(self.editor.export_styles(), NOTHING_TO_EXPORT)

    def test_dark_view(self):
        editor = ThemeEditor.from_stylesheet(THEME_CSS, dark=True)
        self.assertTrue(editor.theme_base_dark)
        self.assertTrue(editor.graph.dark_view)
        self.assertEqual(editor.graph["--background"].rgb, (16, 16, 16, 1.0))
        self.assertEqual(editor.graph["--text"].rgb, (238, 238, 238, 1.0))
        self.assertEqual(editor.graph["--link"].rgb, (119, 119, 247, 1.0))

    def test_named_theme(self):
        self.assertTrue(self.editor.apply_theme("theme-ocean"))
        self.assertEqual(self.graph["--background"].rgb, (0, 51, 102, 1.0))
        self.assertEqual(
            self.editor.export_styles(),
            ".theme-myThemeName {\n    --background: #003366;\n}\n"
        )

        with LogCapture("theme_color_engine.editor") as capture:
            self.assertFalse(self.editor.apply_theme("theme-missing"))
        self.assertTrue(capture.contains("theme-missing"))

    def test_paste_color(self):
        self.editor.hold("--text")
        self.assertTrue(self.editor.paste("--background"))
        background = self.graph["--background"]
        self.assertEqual(background.rgb, (32, 32, 32, 1.0))
        self.assertFalse(background.use_indirect_definition)

    def test_paste_reference(self):
        self.editor.hold("--text")
        self.editor.paste("--background", as_reference=True)
        background = self.graph["--background"]
        self.assertEqual(background.value, "var(--text)")

        self.editor.set_value("--text", "#ff0000")
        self.assertEqual(background.rgb, (255, 0, 0, 1.0))
        self.assertEqual(self.graph.validate(), [])

    def test_paste_relative_reference_keeps_color(self):
        self.editor.hold("--text")
        self.editor.paste("--background", as_reference=True, relative=True)
        background = self.graph["--background"]

        self.assertTrue(background.use_indirect_definition)
        self.assertTrue(background.save_explicit_rgb_in_output)
        self.assertAlmostEqual(background.option_lightness_factor, 100 / 13)
        self.assertEqual(background.rgb, (255, 255, 255, 1.0))

    def test_cyclic_paste_keeps_options(self):
        self.editor.hold("--link")
        with self.assertRaises(CyclicDependencyError):
            self.editor.paste("--text", as_reference=True, relative=True)

        text = self.graph["--text"]
        self.assertEqual(text.options, NEUTRAL_OPTIONS)
        self.assertEqual(text.value, "#202020")
        self.assertEqual(text.rgb, (32, 32, 32, 1.0))
        self.assertEqual(self.graph.validate(), [])

    def test_paste_without_held_variable(self):
        self.assertFalse(self.editor.paste("--background"))

    def test_set_value(self):
        self.assertTrue(self.editor.set_value("--text", "#123"))
        self.assertEqual(self.graph["--text"].rgb, (17, 34, 51, 1.0))

        self.assertFalse(self.editor.set_value("--text", "#zzz"))
        self.assertEqual(self.graph["--text"].rgb, (17, 34, 51, 1.0))
        self.assertFalse(self.editor.set_value("--missing", "#fff"))

    def test_set_value_rejects_cycle(self):
        with LogCapture("theme_color_engine.editor") as capture:
            self.assertFalse(self.editor.set_value("--text", "var(--link)"))
        self.assertTrue(capture.contains("CyclicDependencyError"))
        text = self.graph["--text"]
        self.assertEqual(text.rgb, (32, 32, 32, 1.0))
        self.assertEqual(text.depends_on_vars, ())
        self.assertEqual(self.graph.validate(), [])

    def test_set_component(self):
        self.assertTrue(self.editor.set_component("--text", "l", "50"))
        self.assertEqual(self.graph["--text"].rgb, (128, 128, 128, 1.0))
        self.assertTrue(self.editor.set_component("--text", "r", "300"))
        self.assertEqual(self.graph["--text"].rgb, (255, 128, 128, 1.0))
        self.assertTrue(self.editor.set_component("--text", "a", "0.5"))
        self.assertEqual(self.graph["--text"].rgb, (255, 128, 128, 0.5))

        with LogCapture("theme_color_engine.editor") as capture:
            self.assertFalse(self.editor.set_component("--text", "r", "abc"))
        self.assertTrue(capture.contains("Invalid number"))
        self.assertFalse(self.editor.set_component("--text", "q", "1"))
        self.assertEqual(self.graph["--text"].rgb, (255, 128, 128, 0.5))

    def test_edit_toggles(self):
        text = self.editor.edit("--text")
        self.assertIs(self.editor.current_variable, text)
        self.assertIsNone(self.editor.edit("--text"))
        self.assertIsNone(self.editor.current_variable)

    def test_invert_all_lightness(self):
        self.editor.invert_all_lightness()

        self.assertEqual(self.graph["--background"].rgb, (0, 0, 0, 1.0))
        self.assertEqual(self.graph["--text"].rgb, (222, 222, 222, 1.0))
        self.assertEqual(self.graph["--text--inverted"].rgb, (33, 33, 33, 1.0))
        self.assertTrue(self.editor.theme_base_dark)
        self.assertEqual(self.graph["--background"].base_value, "#101010")

    def test_fix_contrast(self):
        self.editor.set_value("--text", "#eeeeee")
        link = self.graph["--text"].contrast_variables[0]
        self.assertFalse(link.sufficient)

        self.assertTrue(self.editor.fix_contrast("--text"))
        self.assertTrue(link.sufficient)
        self.assertFalse(self.editor.fix_contrast("--text", target="--link"))

    def test_import_and_export_with_options(self):
        applied = self.editor.import_styles(
            ".theme-x {\n"
            "    --background: #000000;\n"
            "    --link: var(--background); /* {invert: 1, saveExplicitRgbInOutput: 1} */\n"
            "    --unknown: #fff;\n"
            "}\n"
        )
        self.assertEqual(applied, 2)
        self.assertEqual(self.graph["--background"].rgb, (0, 0, 0, 1.0))
        self.assertEqual(self.graph["--link"].rgb, (255, 255, 255, 1.0))

        self.editor.export_include_explicit_options = True
        text = self.editor.export_styles(".theme-x")
        self.assertIn("--background: #000000;", text)
        self.assertIn(
            "--link: var(--background); /* {saveExplicitRgbInOutput: 1, invert: 1} */", text
        )

    def test_cyclic_import_keeps_options(self):
        applied = self.editor.import_styles("--text: var(--link); /* {invert: 1, hueRotate: 40} */")
        self.assertEqual(applied, 0)

        text = self.graph["--text"]
        self.assertEqual(text.options, NEUTRAL_OPTIONS)
        self.assertEqual(text.rgb, (32, 32, 32, 1.0))
        self.assertEqual(self.graph.validate(), [])

    def test_apply_suggestions(self):
        editor = ThemeEditor.from_stylesheet(THEME_CSS, suggestions={
            "--link": {"indirect": "var(--text)", "invert": 1},
            "--background": {"light": "#eeeeee", "dark": "#111111"},
        })
        editor.apply_all_suggestions()

        link = editor.graph["--link"]
        self.assertEqual(link.value, "var(--text)")
        self.assertTrue(link.option_invert)
        self.assertEqual(link.rgb, (223, 223, 223, 1.0))
        self.assertEqual(editor.graph["--background"].rgb, (238, 238, 238, 1.0))


if __name__ == "__main__":
    unittest.main()
