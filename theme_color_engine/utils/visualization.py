"""
Charts of palettes and contrast reports.
"""
from pathlib import Path
from typing import Iterable, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from theme_color_engine.models.color import rgb_to_hex_string
from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)

LEVEL_COLORS = {
    "sufficient": "#2ca02c",
    "insufficient": "#ff7f0e",
    "bad": "#d62728",
    "unknown": "#7f7f7f",
}


def plot_palette(variables: Iterable, output_path: Union[str, Path]) -> Path:
    """
    Draw one swatch per variable with its name and hex value.

    Args:
        variables: Color variables
        output_path: PNG file to write

    Returns:
        Path that was written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(exist_ok=True, parents=True)

    swatches = [v for v in variables if v.rgb is not None]
    height = max(1, len(swatches)) * 0.4 + 0.6
    fig, ax = plt.subplots(figsize=(8, height))

    for i, variable in enumerate(swatches):
        y = len(swatches) - i - 1
        hex_color = rgb_to_hex_string(variable.rgb)
        ax.add_patch(plt.Rectangle((0, y), 1, 0.9, color=hex_color[:7], alpha=variable.rgb[3]))
        label = f"{variable.name}  {hex_color}"
        if variable.use_indirect_definition:
            label += f"  ({variable.value})"
        ax.text(1.1, y + 0.45, label, va='center', fontsize=9)

    ax.set_xlim(0, 6)
    ax.set_ylim(0, max(1, len(swatches)))
    ax.axis('off')
    ax.set_title('Palette', fontsize=12)
    plt.tight_layout()
    plt.savefig(output_path, dpi=100)
    plt.close(fig)

    logger.info(f"Palette with {len(swatches)} colors saved to {output_path}")
    return output_path


def plot_contrast_report(report: pd.DataFrame, output_path: Union[str, Path]) -> Path:
    """
    Horizontal bar chart of contrast ratios against their minimum.

    Args:
        report: DataFrame from contrast_report
        output_path: PNG file to write

    Returns:
        Path that was written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(exist_ok=True, parents=True)

    labels = [f"{s} / {t}" for s, t in zip(report['subject'], report['target'])]
    contrasts = report['contrast'].fillna(0)
    colors = [LEVEL_COLORS.get(level, LEVEL_COLORS["unknown"]) for level in report['level']]

    fig, ax = plt.subplots(figsize=(10, max(2, len(report) * 0.4 + 1)))
    positions = range(len(report))
    ax.barh(list(positions), contrasts, color=colors, alpha=0.8)
    ax.scatter(report['min_contrast'], list(positions), marker='|', s=300, color='black',
               label='minimum')

    ax.set_yticks(list(positions))
    ax.set_yticklabels(labels, fontsize=9)
    ax.invert_yaxis()
    ax.set_xlim(0, 21)
    ax.set_xlabel('Contrast ratio', fontsize=12)
    ax.set_title('Contrast requirements', fontsize=14)
    ax.grid(True, axis='x', linestyle='--', alpha=0.7)
    ax.legend()
    plt.tight_layout()
    plt.savefig(output_path, dpi=100)
    plt.close(fig)

    logger.info(f"Contrast chart saved to {output_path}")
    return output_path
