"""Environment diagnostics for ``--info``.

Collects what is useful in a bug report: system, binaries, browsers and
whether the tool is installed globally through npm.
"""

import os
import platform
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, Optional

from rich.console import Console
from rich.table import Table

from create_dataverse_app import __version__
from create_dataverse_app.config import ScaffoldConfig

NOT_FOUND = "Not Found"

BINARIES = {
    "Node": "node",
    "npm": "npm",
    "Yarn": "yarn",
    "pnpm": "pnpm",
    "Git": "git",
}

BROWSERS = {
    "Chrome": ("google-chrome", "google-chrome-stable", "chrome"),
    "Edge": ("microsoft-edge", "msedge"),
    "Firefox": ("firefox",),
    "Safari": ("safari",),
}


def _binary_version(executable: str) -> Optional[str]:
    path = shutil.which(executable)
    if not path:
        return None
    try:
        result = subprocess.run(
            [executable, "--version"],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    first_line = (result.stdout.strip().splitlines() or [""])[0]
    return f"{first_line} - {path}" if first_line else path


def _global_package_version(package: str) -> Optional[str]:
    try:
        result = subprocess.run(
            ["npm", "ls", "-g", package, "--depth=0"],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    for line in result.stdout.splitlines():
        marker = f"{package}@"
        if marker in line:
            return line.split(marker, 1)[1].strip()
    return None


def collect_environment_info(config: Optional[ScaffoldConfig] = None) -> Dict[str, Dict[str, str]]:
    """Collect environment details grouped by section."""
    config = config or ScaffoldConfig()

    system = {
        "OS": f"{platform.system()} {platform.release()}",
        "CPU": f"({os.cpu_count() or '?'}) {platform.machine() or 'unknown'}",
        "Python": f"{platform.python_version()} - {sys.executable}",
    }

    binaries = {
        label: _binary_version(exe) or NOT_FOUND
        for label, exe in BINARIES.items()
    }

    browsers = {}
    for label, executables in BROWSERS.items():
        found = next((shutil.which(exe) for exe in executables if shutil.which(exe)), None)
        browsers[label] = found or NOT_FOUND

    global_packages = {
        config.package_name: _global_package_version(config.package_name) or NOT_FOUND,
    }

    return {
        "System": system,
        "Binaries": binaries,
        "Browsers": browsers,
        "npmGlobalPackages": global_packages,
    }


def print_environment_info(
    console: Console,
    config: Optional[ScaffoldConfig] = None,
    info: Optional[Dict[str, Dict[str, str]]] = None,
) -> None:
    """Print environment details as tables."""
    config = config or ScaffoldConfig()
    info = info if info is not None else collect_environment_info(config)

    console.print("\n[heading]Environment Info:[/]")
    console.print(f"\n  current version of {config.package_name}: {__version__}")
    console.print(f"  running from {Path(__file__).resolve().parent}\n")

    for section, values in info.items():
        table = Table(title=section, title_justify="left", show_header=False)
        table.add_column("Name", style="command")
        table.add_column("Value")
        for name, value in values.items():
            table.add_row(name, value)
        console.print(table)
