"""
Roastgen Enumeration Module

This module defines all enumeration types used throughout the application.
"""

from roastgen.enums.error_kind import ErrorKind
from roastgen.enums.roast_style import RoastStyle, style_from_label

__all__ = [
    "ErrorKind",
    "RoastStyle",
    "style_from_label",
]
