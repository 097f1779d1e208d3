"""Color theme for the OCM CLI."""

THEME = {
    "accent": "cyan",
    "text_primary": "default",
    "text_muted": "grey50",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


def style(name: str) -> str:
    """Return the rich style for a theme slot, falling back to the default color."""
    return THEME.get(name, "default")
