"""Local toolchain probes.

Queries installed binaries for their versions and compares them with the
minimums in ScaffoldConfig. Probes never raise: an unusable binary is
reported as ``installed_version=None``. Deciding what is fatal is up to the
orchestrator.
"""

import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from create_dataverse_app.config import ScaffoldConfig
from create_dataverse_app.core.versions import coerce_version, is_at_least, is_below
from create_dataverse_app.git.utils import get_git_version

logger = logging.getLogger(__name__)

PACKAGE_MANAGER = "packageManager"

KNOWN_TOOLS = ("git", "npm", "yarn", "node", "pnpm")

NPM_CWD_PREFIX = "; cwd = "


# =============================================================================
# Exceptions
# =============================================================================

class ToolchainError(Exception):
    """A required binary is missing or unusable."""

    def __init__(self, tool: str, message: str = ""):
        super().__init__(message or f"{tool} is not installed")
        self.tool = tool


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class ToolchainVersionInfo:
    """Snapshot of one installed tool."""
    name: str
    installed_version: Optional[str]
    meets_minimum: bool
    minimum: Optional[str] = None

    @property
    def installed(self) -> bool:
        return self.installed_version is not None


@dataclass(frozen=True)
class YarnPnpSupport:
    """Whether the installed Yarn can run with --use-pnp."""
    yarn_version: Optional[str]
    has_min_yarn_pnp: bool
    has_max_yarn_pnp: bool


def is_using_yarn(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check if the command was launched through yarn."""
    env = os.environ if environ is None else environ
    return env.get("npm_config_user_agent", "").startswith("yarn")


# =============================================================================
# Probe
# =============================================================================

class ToolchainVersionProbe:
    """Probe installed tools against configured minimum versions."""

    def __init__(self, config: Optional[ScaffoldConfig] = None):
        self.config = config or ScaffoldConfig()

    def _minimums(self) -> dict:
        return {
            "git": self.config.min_git_version,
            "npm": self.config.min_npm_version,
            "node": self.config.min_node_version,
            "yarn": self.config.min_yarn_pnp_version,
            "pnpm": None,
        }

    def _run_version(self, tool: str) -> Optional[str]:
        """Run ``<tool> --version`` and return its trimmed output."""
        if tool == "git":
            line = get_git_version(timeout=self.config.probe_timeout_seconds)
            # "git version 2.41.0.windows.1"
            version = coerce_version(line)
            return str(version) if version else None

        try:
            result = subprocess.run(
                [tool, "--version"],
                capture_output=True,
                text=True,
                timeout=self.config.probe_timeout_seconds,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("%s --version failed: %s", tool, e)
            return None

        if result.returncode != 0:
            logger.debug("%s --version exited with %d", tool, result.returncode)
            return None
        output = result.stdout.strip()
        if not output:
            return None
        # node prints "v18.17.0"
        return output.lstrip("v")

    def probe(self, tool: str, use_yarn: bool = False) -> ToolchainVersionInfo:
        """Probe one tool.

        Args:
            tool: One of KNOWN_TOOLS, or "packageManager"
            use_yarn: Resolve "packageManager" to yarn instead of npm

        Returns:
            ToolchainVersionInfo for the tool
        """
        if tool == PACKAGE_MANAGER:
            tool = "yarn" if use_yarn else "npm"
        if tool not in KNOWN_TOOLS:
            raise ValueError(f"Unknown tool: {tool}")

        minimum = self._minimums()[tool]
        version = self._run_version(tool)
        if version is None:
            meets = False
        elif minimum is None:
            meets = True
        else:
            meets = is_at_least(version, minimum)

        logger.debug("Probed %s: version=%s minimum=%s ok=%s", tool, version, minimum, meets)
        return ToolchainVersionInfo(
            name=tool,
            installed_version=version,
            meets_minimum=meets,
            minimum=minimum,
        )

    def probe_package_manager(self, use_yarn: bool = False) -> ToolchainVersionInfo:
        """Probe npm, or yarn when the run was launched through yarn."""
        return self.probe(PACKAGE_MANAGER, use_yarn=use_yarn)

    def probe_yarn_pnp(self) -> YarnPnpSupport:
        """Check the installed Yarn against the Plug'n'Play support window."""
        yarn_version = self._run_version("yarn")
        return YarnPnpSupport(
            yarn_version=yarn_version,
            has_min_yarn_pnp=is_at_least(yarn_version, self.config.min_yarn_pnp_version),
            has_max_yarn_pnp=is_below(yarn_version, self.config.max_yarn_pnp_version),
        )

    def npm_can_read_cwd(self, cwd: Path) -> Tuple[bool, Optional[str]]:
        """Check that a fresh npm process starts in ``cwd``.

        A misconfigured terminal (Windows AutoRun) can make child npm
        processes start elsewhere. ``npm config list`` reports the directory
        npm actually sees.

        Returns:
            (ok, npm_cwd) - npm_cwd is None when it could not be determined
        """
        try:
            result = subprocess.run(
                ["npm", "config", "list"],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.config.probe_timeout_seconds,
            )
        except (OSError, subprocess.SubprocessError) as e:
            # Can't tell; a later step may still fail
            logger.debug("npm config list failed: %s", e)
            return True, None

        output = (result.stdout or "") + (result.stderr or "")
        line = next(
            (l for l in output.splitlines() if l.startswith(NPM_CWD_PREFIX)),
            None,
        )
        if line is None:
            return True, None

        npm_cwd = line[len(NPM_CWD_PREFIX):].strip()
        return npm_cwd == str(cwd), npm_cwd


def npm_cwd_hints() -> List[str]:
    """Platform hints for fixing a wrong npm working directory."""
    if sys.platform != "win32":
        return []
    return [
        'reg delete "HKCU\\Software\\Microsoft\\Command Processor" /v AutoRun /f',
        'reg delete "HKLM\\Software\\Microsoft\\Command Processor" /v AutoRun /f',
    ]
