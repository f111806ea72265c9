"""
Input/output utilities for theme files, requirement files and reports.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from theme_color_engine.utils.logger import get_logger

logger = get_logger(__name__)

REPORT_COLUMNS = ["subject", "target", "contrast", "min_contrast", "level"]


def load_text(file_path: Union[str, Path]) -> str:
    """
    Load a text file, e.g. a theme stylesheet.

    Args:
        file_path: Path to the file

    Returns:
        File content
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except Exception as e:
        logger.error(f"Error loading file {file_path}: {e}")
        raise


def save_text(
    text: str,
    output_path: Union[str, Path],
    create_dirs: bool = True
) -> None:
    """
    Save text to a file.

    Args:
        text: Content to write
        output_path: Path to save the text
        create_dirs: Whether to create parent directories if they don't exist
    """
    output_path = Path(output_path)

    if create_dirs:
        output_path.parent.mkdir(exist_ok=True, parents=True)

    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info(f"Saved to: {output_path}")
    except Exception as e:
        logger.error(f"Error saving to {output_path}: {e}")
        raise


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a JSON requirements/configuration file.

    The file may contain ``contrast`` (list of requirements), ``suggestions``
    (variable name -> suggestion) and ``config`` (engine settings).

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except Exception as e:
        logger.error(f"Error loading configuration from {config_path}: {e}")
        raise

    if not isinstance(config, dict):
        raise ValueError(f"Configuration in {config_path} must be a JSON object")
    return config


def contrast_report(graph) -> pd.DataFrame:
    """
    Table of all contrast requirements of a graph.

    Args:
        graph: DependencyGraph

    Returns:
        DataFrame with subject, target, contrast, min_contrast and level
    """
    rows: List[Dict[str, Any]] = []
    for link in graph.contrast_links:
        link.update_contrast()
        rows.append(link.to_dict())
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def save_report(
    report: Union[pd.DataFrame, List[Dict[str, Any]]],
    output_path: Union[str, Path],
    format: str = 'csv'
) -> Path:
    """
    Save a contrast report.

    Args:
        report: DataFrame or list of dictionaries
        output_path: Path to save the report
        format: File format ('csv' or 'json')

    Returns:
        Path that was written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(exist_ok=True, parents=True)

    if isinstance(report, list):
        report = pd.DataFrame(report)

    if format.lower() == 'csv':
        report.to_csv(output_path, index=False)
        logger.info(f"Report saved to CSV: {output_path}")
    elif format.lower() == 'json':
        if output_path.suffix != '.json':
            output_path = output_path.with_suffix('.json')
        report.to_json(output_path, orient='records', indent=2)
        logger.info(f"Report saved to JSON: {output_path}")
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'csv' or 'json'.")
    return output_path
