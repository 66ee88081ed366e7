# utils/__init__.py

from .datetime_utils import Clock, SystemClock, FixedClock, trailing_days, short_label
from .logger import setup_logger, configure_logging

__all__ = [
    'Clock',
    'SystemClock',
    'FixedClock',
    'trailing_days',
    'short_label',
    'setup_logger',
    'configure_logging'
]
