"""
Utility helpers.
"""
from roastgen.utils.log_utils import configure_logging

__all__ = ["configure_logging"]
