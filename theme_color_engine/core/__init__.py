"""
Core module for engine-wide configuration and small performance helpers.
This module holds the tunable constants of the color engine in one place.
"""

import os
import sys
import time
import logging
import functools
from typing import Dict, Any, Callable

# Configure logging with reasonable defaults
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global configuration settings with defaults
CONFIG: Dict[str, Any] = {
    # Contrast evaluation
    "default_min_contrast": 4.5,  # WCAG 2.0 normal text
    "insufficient_contrast_factor": 0.8,

    # Contrast repair
    "luminance_tolerance": 0.005,
    "luminance_max_iterations": 20,
    "dark_target_luminance": 0.18,  # same contrast to black and white

    # Filter synthesis
    "filter_max_iterations": 40,
    "filter_max_error": 3,
    "filter_damping": 0.5,

    # Presentation
    "throttle_delay": 0.02,  # seconds

    # Naming conventions and export
    "export_selector": ".theme-myThemeName",
    "inverted_suffix": "--inverted",
    "rgb_suffix": "--rgb",
    "filter_variables": {},

    # Diagnostics
    "enable_profiling": False,
    "cache_size": 4096,
}


def memoize(func: Callable) -> Callable:
    """Memoization decorator for caching pure function results."""
    cache = {}

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        # Create a hashable key from the arguments
        key = str(args) + str(sorted(kwargs.items()))
        if key not in cache:
            cache[key] = func(*args, **kwargs)

            # Simple cache size management
            if len(cache) > CONFIG["cache_size"]:
                # Remove oldest 25% of entries when threshold is reached
                remove_count = len(cache) // 4
                for _ in range(remove_count):
                    if cache:
                        cache.pop(next(iter(cache)))

        return cache[key]

    wrapper.cache_clear = cache.clear
    return wrapper


class Profiler:
    """Simple context manager for timing a block of code."""
    def __init__(self, name: str, enabled: bool = None):
        self.name = name
        self.enabled = CONFIG["enable_profiling"] if enabled is None else enabled
        self.start_time = None
        self.duration = None

    def __enter__(self):
        if not self.enabled:
            return self

        self.start_time = time.perf_counter()
        logger.debug(f"Profiling started: {self.name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.enabled or self.start_time is None:
            return

        self.duration = time.perf_counter() - self.start_time
        logger.debug(f"Profiling completed: {self.name} - {self.duration:.6f}s")


def configure(settings: Dict[str, Any]) -> None:
    """
    Update the core module configuration with custom settings.

    Args:
        settings: Dictionary of configuration settings to update

    Raises:
        KeyError: If a setting name is unknown
    """
    unknown = [key for key in settings if key not in CONFIG]
    if unknown:
        raise KeyError(f"Unknown configuration keys: {', '.join(unknown)}")

    CONFIG.update(settings)
    logger.info(f"Core configuration updated: {', '.join(settings.keys())}")


__all__ = [
    "CONFIG",
    "configure",
    "memoize",
    "Profiler",
]

logger.debug(f"Core module initialized on Python {sys.version.split()[0]}")
