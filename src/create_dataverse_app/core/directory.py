"""Target directory safety check.

A directory is safe to scaffold into when it only holds files that hosting
providers, IDEs or a previous failed run leave behind. Error logs from a
previous run are removed once the directory is known to be safe.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

VALID_FILES = frozenset({
    ".DS_Store",
    ".git",
    ".gitattributes",
    ".gitignore",
    ".gitlab-ci.yml",
    ".hg",
    ".hgcheck",
    ".hgignore",
    ".idea",
    ".npmignore",
    ".travis.yml",
    "docs",
    "LICENSE",
    "README.md",
    "mkdocs.yml",
    "Thumbs.db",
})

# IntelliJ writes module files before the app exists
IDE_MODULE_SUFFIX = ".iml"

ERROR_LOG_PREFIXES = (
    "npm-debug.log",
    "yarn-error.log",
    "yarn-debug.log",
)


@dataclass(frozen=True)
class DirectoryConflict:
    """An entry that blocks scaffolding."""
    name: str
    is_directory: bool = False


# =============================================================================
# Exceptions
# =============================================================================

class UnsafeDirectoryError(Exception):
    """Target directory contains files that could conflict."""

    def __init__(self, root: Path, conflicts: List[DirectoryConflict]):
        names = ", ".join(c.name for c in conflicts)
        super().__init__(f"The directory {root} contains files that could conflict: {names}")
        self.root = root
        self.conflicts = conflicts


# =============================================================================
# Checks
# =============================================================================

def is_error_log(name: str) -> bool:
    """Check if a file name is a transient package-manager error log."""
    return name.startswith(ERROR_LOG_PREFIXES)


def is_allowed_entry(name: str) -> bool:
    """Check if a directory entry can stay in the target directory."""
    return (
        name in VALID_FILES
        or name.endswith(IDE_MODULE_SUFFIX)
        or is_error_log(name)
    )


def _is_directory(path: Path) -> bool:
    try:
        return path.is_dir() and not path.is_symlink()
    except OSError:
        return False


def find_conflicts(root: Path) -> List[DirectoryConflict]:
    """List the entries of ``root`` that are not allowed to be there."""
    return [
        DirectoryConflict(name=entry.name, is_directory=_is_directory(entry))
        for entry in sorted(root.iterdir(), key=lambda p: p.name)
        if not is_allowed_entry(entry.name)
    ]


def remove_error_logs(root: Path) -> List[str]:
    """Delete error logs left by a previous run.

    Failures are logged and skipped.

    Returns:
        Names of the entries that were removed
    """
    removed = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not is_error_log(entry.name):
            continue
        try:
            if _is_directory(entry):
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed.append(entry.name)
        except OSError as e:
            logger.debug("Could not remove error log %s: %s", entry, e)
    return removed


def check_and_clean(root: Path) -> List[str]:
    """Make sure ``root`` is safe to scaffold into and purge stale logs.

    Args:
        root: Existing target directory

    Returns:
        Names of the error logs that were removed

    Raises:
        UnsafeDirectoryError: If any entry could conflict (nothing is removed)
    """
    conflicts = find_conflicts(root)
    if conflicts:
        raise UnsafeDirectoryError(root, conflicts)

    removed = remove_error_logs(root)
    if removed:
        logger.debug("Removed %d error log(s) from %s", len(removed), root)
    return removed
