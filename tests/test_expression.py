"""
Tests for parsing and evaluating indirect color definitions.
"""

import unittest

from theme_color_engine.models.color import BLACK, WHITE
from theme_color_engine.models.expression import (
    ExpressionError, FunctionCall, Literal, Mix, Reference, parse_expression,
    split_top_level
)


def resolver(colors):
    return lambda name: colors.get(name)


class TestParseExpression(unittest.TestCase):
    """Tests for parse_expression."""

    def test_literal(self):
        self.assertEqual(parse_expression(" #ff0000 "), Literal((255, 0, 0, 1.0)))
        self.assertEqual(parse_expression("rgb(1, 2, 3)"), Literal((1, 2, 3, 1.0)))

    def test_reference(self):
        expression = parse_expression("var(--text)")
        self.assertEqual(expression, Reference("--text"))
        self.assertEqual(expression.references(), ["--text"])
        self.assertEqual(expression.to_css(), "var(--text)")

    def test_reference_with_fallback(self):
        expression = parse_expression("var(--a, var(--b))")
        self.assertEqual(expression.references(), ["--a", "--b"])

        expression = parse_expression("var(--missing, #fff)")
        self.assertEqual(expression.evaluate(resolver({})), WHITE)
        self.assertEqual(expression.evaluate(resolver({"--missing": BLACK})), BLACK)

    def test_mix(self):
        expression = parse_expression("color-mix(in srgb, var(--a) 25%, var(--b))")
        self.assertIsInstance(expression, Mix)
        self.assertEqual(expression.references(), ["--a", "--b"])
        self.assertEqual(expression.weights(), [25, 75])
        self.assertEqual(
            expression.evaluate(resolver({"--a": BLACK, "--b": WHITE})),
            (191, 191, 191, 1.0)
        )
        self.assertEqual(expression.to_css(), "color-mix(in srgb, var(--a) 25%, var(--b))")

    def test_mix_leading_percentage(self):
        expression = parse_expression("color-mix(in srgb, 40% #000000, #ffffff)")
        self.assertEqual(expression.weights(), [40, 60])

    def test_mix_below_hundred_scales_alpha(self):
        expression = parse_expression("color-mix(in srgb, #000 20%, #fff 30%)")
        color = expression.evaluate(resolver({}))
        self.assertEqual(color[:3], (153, 153, 153))
        self.assertAlmostEqual(color[3], 0.5)

    def test_mix_of_unknown_colors(self):
        expression = parse_expression("color-mix(in oklch, var(--a), var(--b))")
        self.assertEqual(expression.space, "oklch")
        self.assertIsNone(expression.evaluate(resolver({})))

    def test_light_dark(self):
        expression = parse_expression("light-dark(var(--a), #fff)")
        self.assertIsInstance(expression, FunctionCall)
        self.assertEqual(expression.references(), ["--a"])
        self.assertEqual(expression.evaluate(resolver({"--a": BLACK})), BLACK)
        self.assertEqual(expression.evaluate(resolver({"--a": BLACK}), dark=True), WHITE)

    def test_invalid_definitions(self):
        for text in (
            "",
            "var(--a",
            "var(text)",
            "shade(#fff)",
            "color-mix(in srgb, #fff)",
            "color-mix(in srgb, #fff 150%, #000)",
            "light-dark(#fff)",
            "red",
        ):
            with self.assertRaises(ExpressionError, msg=text):
                parse_expression(text)


class TestSplitTopLevel(unittest.TestCase):
    """Tests for split_top_level."""

    def test_nested_parentheses(self):
        self.assertEqual(split_top_level("a(b, c), d"), ["a(b, c)", "d"])

    def test_unbalanced(self):
        with self.assertRaises(ExpressionError):
            split_top_level("a(b, c")
        with self.assertRaises(ExpressionError):
            split_top_level("a), b")


if __name__ == "__main__":
    unittest.main()
