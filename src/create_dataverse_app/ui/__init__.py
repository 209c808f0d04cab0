"""Console output for create-dataverse-app."""

from create_dataverse_app.ui.theme import Palette, THEME, Symbols
from create_dataverse_app.ui.console import ScaffoldReporter, make_console

__all__ = [
    "Palette",
    "THEME",
    "Symbols",
    "ScaffoldReporter",
    "make_console",
]
