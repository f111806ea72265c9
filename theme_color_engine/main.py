"""
Command-line interface for the theme color engine.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from theme_color_engine.core import configure
from theme_color_engine.editor import ThemeEditor
from theme_color_engine.generation.filter_synthesizer import calculate_filter
from theme_color_engine.models.color import ColorError, parse_color
from theme_color_engine.utils.io import (
    contrast_report, load_config, load_text, save_report, save_text
)
from theme_color_engine.utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


def load_editor(args: argparse.Namespace) -> ThemeEditor:
    """Build an editor from the theme file and optional requirements file."""
    requirements = load_config(args.requirements) if args.requirements else {}
    if requirements.get("config"):
        configure(requirements["config"])

    return ThemeEditor.from_stylesheet(
        load_text(args.theme_file),
        contrast_requirements=requirements.get("contrast"),
        suggestions=requirements.get("suggestions"),
        theme=args.theme,
        dark=args.dark,
    )


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        save_text(text, output)
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def cmd_export(args: argparse.Namespace) -> int:
    editor = load_editor(args)
    if args.suggestions:
        editor.apply_all_suggestions()
    editor.export_include_explicit_options = args.explicit_options
    editor.export_include_rgb_variants = not args.no_rgb
    _write_output(editor.export_styles(args.selector), args.output)
    return 0


def cmd_contrast(args: argparse.Namespace) -> int:
    editor = load_editor(args)
    report = contrast_report(editor.graph)
    if report.empty:
        logger.warning("No contrast requirements defined")
        return 0
    sys.stdout.write(report.to_string(index=False) + "\n")
    return 0 if (report['level'] == 'sufficient').all() else 2


def cmd_fix(args: argparse.Namespace) -> int:
    editor = load_editor(args)
    subjects = []
    for link in editor.graph.contrast_links:
        if not link.sufficient and link.subject.name not in subjects:
            subjects.append(link.subject.name)

    for name in subjects:
        if editor.fix_contrast(name):
            logger.info(f"Adjusted {name}")

    editor.export_include_explicit_options = args.explicit_options
    _write_output(editor.export_styles(args.selector), args.output)
    return 0


def cmd_filter(args: argparse.Namespace) -> int:
    try:
        color = parse_color(args.color)
    except ColorError as e:
        logger.error(str(e))
        return 1

    result = calculate_filter(color)
    sys.stdout.write(f"filter: {result.filter_string};\n")
    logger.info(f"Filter error {result.error:.2f} after {result.steps + 1} steps")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    editor = load_editor(args)
    report = contrast_report(editor.graph)
    path = save_report(report, args.output, args.format)

    if args.charts:
        # matplotlib is only loaded when charts are requested
        from theme_color_engine.utils.visualization import plot_contrast_report, plot_palette
        charts_dir = Path(args.charts)
        plot_palette(editor.graph.variables, charts_dir / "palette.png")
        if not report.empty:
            plot_contrast_report(report, charts_dir / "contrast.png")

    logger.info(f"Report written to {path}")
    return 0


def _add_theme_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("theme_file", help="Stylesheet with :root, .view-* and .theme-* rules")
    parser.add_argument("--requirements", "-r", help="JSON file with contrast, suggestions and config")
    parser.add_argument("--theme", "-t", help="Theme to apply on top of the base view")
    parser.add_argument("--dark", action="store_true", help="Base the theme on the dark view")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="theme-color-engine",
        description="Resolve, check and export theme color variables.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--json-logs", action="store_true", help="Write logs as JSON lines")
    parser.add_argument("--log-file", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    export = subparsers.add_parser("export", help="Export variables that differ from the base view")
    _add_theme_arguments(export)
    export.add_argument("--selector", help="Selector of the exported rule")
    export.add_argument("--explicit-options", action="store_true",
                        help="Write definitions with option comments for re-import")
    export.add_argument("--no-rgb", action="store_true", help="Omit r,g,b companions")
    export.add_argument("--suggestions", action="store_true", help="Apply all suggestions first")
    export.add_argument("--output", "-o", help="Output file, stdout if omitted")
    export.set_defaults(func=cmd_export)

    contrast = subparsers.add_parser("contrast", help="Print contrast requirements and their state")
    _add_theme_arguments(contrast)
    contrast.set_defaults(func=cmd_contrast)

    fix = subparsers.add_parser("fix", help="Repair insufficient contrasts and export the result")
    _add_theme_arguments(fix)
    fix.add_argument("--selector", help="Selector of the exported rule")
    fix.add_argument("--explicit-options", action="store_true",
                     help="Write definitions with option comments for re-import")
    fix.add_argument("--output", "-o", help="Output file, stdout if omitted")
    fix.set_defaults(func=cmd_fix)

    filter_parser = subparsers.add_parser("filter", help="CSS filter reproducing a color from black")
    filter_parser.add_argument("color", help="Color literal, e.g. #3366cc")
    filter_parser.set_defaults(func=cmd_filter)

    report = subparsers.add_parser("report", help="Write a contrast report and charts")
    _add_theme_arguments(report)
    report.add_argument("--output", "-o", default="contrast_report.csv", help="Report file")
    report.add_argument("--format", "-f", choices=["csv", "json"], default="csv", help="Report format")
    report.add_argument("--charts", help="Directory for palette and contrast charts")
    report.set_defaults(func=cmd_report)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 2 for insufficient contrast, 1 for failure)
    """
    args = build_parser().parse_args(argv)
    setup_logger(
        level="DEBUG" if args.verbose else "INFO",
        log_file=args.log_file,
        use_json=args.json_logs,
    )

    try:
        return args.func(args)
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
