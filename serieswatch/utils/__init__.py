"""
Utility modules.
"""

from .fallback import first_result
from .ui import Icons, UIHelper, console, ui

__all__ = [
    "console",
    "ui",
    "Icons",
    "UIHelper",
    "first_result",
]
