"""
Utility functions for the MPSSE protocol engines
"""

from .logger import (
    get_logger,
    get_category_logger,
    configure_logger,
    hex_bytes,
)

__all__ = [
    'get_logger',
    'get_category_logger',
    'configure_logger',
    'hex_bytes',
]
