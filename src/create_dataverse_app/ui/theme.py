"""Console theme for create-dataverse-app.

Named styles used by the reporter, so messages are written as markup like
``[path]my-app[/]`` instead of raw colors.
"""

from dataclasses import dataclass
from rich.style import Style
from rich.theme import Theme


@dataclass
class Palette:
    """Color palette."""

    # Status colors
    SUCCESS = "green"
    WARNING = "yellow"
    ERROR = "red"
    INFO = "cyan"

    # Names and paths
    PATH = "green"
    COMMAND = "cyan"
    DIRECTORY = "blue"

    # Text
    TEXT_DIM = "bright_black"


THEME = Theme({
    # Status styles
    "success": Style(color=Palette.SUCCESS, bold=True),
    "warning": Style(color=Palette.WARNING),
    "error": Style(color=Palette.ERROR),
    "info": Style(color=Palette.INFO),

    # Names and paths
    "path": Style(color=Palette.PATH),
    "command": Style(color=Palette.COMMAND),
    "directory": Style(color=Palette.DIRECTORY),

    # Text styles
    "heading": Style(bold=True),
    "text.dim": Style(color=Palette.TEXT_DIM),
})


class Symbols:
    """Terminal symbols for status display."""

    COMPLETE = "✓"
    BULLET = "*"
