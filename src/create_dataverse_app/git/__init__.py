"""Git utilities for create-dataverse-app."""

from create_dataverse_app.git.utils import (
    run_git,
    get_git_version,
    clone_command,
    clone_repository,
    GitError,
    GitNotInstalledError,
    GitTimeoutError,
    GitCommandError,
    CloneError,
)

__all__ = [
    "run_git",
    "get_git_version",
    "clone_command",
    "clone_repository",
    "GitError",
    "GitNotInstalledError",
    "GitTimeoutError",
    "GitCommandError",
    "CloneError",
]
