"""Git utilities for create-dataverse-app.

Version queries run captured; the clone runs with inherited stdio so the
user sees git's own progress and prompts.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Default timeout for short git queries (seconds)
DEFAULT_GIT_TIMEOUT = 60

# Default timeout for a clone (seconds)
DEFAULT_CLONE_TIMEOUT = 600


# =============================================================================
# Exceptions
# =============================================================================

class GitError(Exception):
    """Base exception for Git operations."""
    pass


class GitNotInstalledError(GitError):
    """Git is not installed or not in PATH."""
    pass


class GitTimeoutError(GitError):
    """Git command timed out."""

    def __init__(self, message: str, timeout: int):
        super().__init__(message)
        self.timeout = timeout


class GitCommandError(GitError):
    """Git command failed with non-zero exit code."""

    def __init__(self, message: str, returncode: int, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CloneError(GitCommandError):
    """Cloning the template failed."""

    def __init__(self, command: str, returncode: Optional[int], reason: str = ""):
        message = f"{command} has failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, returncode=returncode if returncode is not None else -1)
        self.command = command
        self.reason = reason


# =============================================================================
# Core Functions
# =============================================================================


def run_git(
    *args,
    cwd: Optional[Path] = None,
    check: bool = False,
    timeout: int = DEFAULT_GIT_TIMEOUT
) -> subprocess.CompletedProcess:
    """Run a git command with captured output.

    Args:
        *args: Git command arguments
        cwd: Working directory
        check: Raise exception on failure
        timeout: Command timeout in seconds

    Returns:
        CompletedProcess result

    Raises:
        GitNotInstalledError: If git is not installed
        GitTimeoutError: If command times out
        GitCommandError: If check=True and command fails
    """
    cmd = ["git"] + list(args)
    cmd_str = " ".join(cmd)

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd or Path.cwd(),
            capture_output=True,
            text=True,
            timeout=timeout
        )
        if check and result.returncode != 0:
            raise GitCommandError(
                f"Git command failed: {cmd_str}\n{result.stderr}",
                returncode=result.returncode,
                stderr=result.stderr
            )
        return result
    except FileNotFoundError:
        raise GitNotInstalledError(
            "Git is not installed or not in PATH. "
            "Please install git: https://git-scm.com/downloads"
        )
    except subprocess.TimeoutExpired:
        raise GitTimeoutError(
            f"Git command timed out after {timeout}s: {cmd_str}",
            timeout=timeout
        )


def get_git_version(timeout: int = DEFAULT_GIT_TIMEOUT) -> Optional[str]:
    """Get the installed git version line.

    Returns:
        ``git --version`` output, or None if git is unusable
    """
    try:
        result = run_git("--version", timeout=timeout)
    except (GitError, OSError) as e:
        logger.debug("git --version failed: %s", e)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def clone_command(repository: str, quiet: bool = True) -> List[str]:
    """Build the clone command that fills the current directory."""
    cmd = ["git", "clone"]
    if quiet:
        cmd.append("--quiet")
    return cmd + [repository, "."]


def clone_repository(
    repository: str,
    destination: Path,
    quiet: bool = True,
    timeout: Optional[int] = DEFAULT_CLONE_TIMEOUT,
) -> str:
    """Clone ``repository`` into ``destination``.

    The child inherits stdin/stdout/stderr. The working directory is scoped
    to the child process.

    Args:
        repository: Repository URL
        destination: Existing directory to clone into
        quiet: Pass --quiet to git
        timeout: Seconds to wait for the clone (None waits forever)

    Returns:
        The command line that ran

    Raises:
        CloneError: If git cannot be started, times out, or exits non-zero
    """
    cmd = clone_command(repository, quiet=quiet)
    cmd_str = " ".join(cmd)
    logger.debug("Running %s in %s", cmd_str, destination)

    try:
        result = subprocess.run(cmd, cwd=destination, timeout=timeout)
    except FileNotFoundError:
        raise CloneError(cmd_str, None, "git is not installed or not in PATH")
    except subprocess.TimeoutExpired:
        raise CloneError(cmd_str, None, f"timed out after {timeout}s")
    except OSError as e:
        raise CloneError(cmd_str, None, f"git could not be started: {e}")

    if result.returncode != 0:
        raise CloneError(cmd_str, result.returncode)
    return cmd_str
