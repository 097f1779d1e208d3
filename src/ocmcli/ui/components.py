"""Reusable Rich components for the OCM CLI.

Everything here writes to stderr: stdout is reserved for tokens and JSON
that scripts consume.
"""

from typing import Optional

from rich.console import Console
from rich.status import Status
from rich.text import Text

from .theme import style


console = Console(stderr=True)


def render_status(
    message: str,
    level: str = "info",
    footer: Optional[str] = None,
) -> Text:
    """Render a status line with semantic coloring."""
    prefixes = {
        "success": "",
        "warning": "WARNING: ",
        "error": "ERROR: ",
        "info": "",
    }
    styles = {
        "success": style("success"),
        "warning": style("warning"),
        "error": style("error"),
        "info": style("accent"),
    }

    prefix = prefixes.get(level, prefixes["info"])
    text_style = styles.get(level, styles["info"])
    status_text = Text(f"{prefix}{message}", style=text_style)
    console.print(status_text, soft_wrap=True)

    if footer:
        footer_text = Text(footer, style=style("text_muted"))
        console.print(footer_text, soft_wrap=True)

    return status_text


def spinner(message: str) -> Status:
    """Return a spinner shown while a request is in flight.

    Rich only animates it on a terminal, so redirected output stays clean.
    """
    return console.status(Text(message, style=f"bold {style('accent')}"))
