"""
Theme Color Engine - Utilities Package
======================================
Logging, throttling, file IO and charts.
"""

from theme_color_engine.utils.logger import (
    JsonFormatter, setup_logger, get_logger, LogCapture,
    log_function_call, log_exception
)
from theme_color_engine.utils.throttle import Throttle

__all__ = [
    'JsonFormatter', 'setup_logger', 'get_logger', 'LogCapture',
    'log_function_call', 'log_exception', 'Throttle'
]
