"""UI helper exports for the OCM CLI."""

from .components import console, render_status, spinner
from .theme import THEME, style

__all__ = [
    "console",
    "render_status",
    "spinner",
    "THEME",
    "style",
]
