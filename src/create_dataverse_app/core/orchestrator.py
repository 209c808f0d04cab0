"""Scaffold orchestration.

Runs the pre-flight checks in order and then clones the template:

    START -> NAME_CHECKED -> DIRECTORY_CHECKED -> VERSION_GATE_CHECKED
          -> CLONING -> DONE | ABORTED | FAILED

Every check reports through exceptions; this module is the only place they
are caught and turned into a ScaffoldOutcome. Turning the outcome into a
process exit code is left to the CLI.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from create_dataverse_app import __version__
from create_dataverse_app.config import ScaffoldConfig
from create_dataverse_app.core.directory import UnsafeDirectoryError, check_and_clean
from create_dataverse_app.core.naming import (
    InvalidPackageNameError,
    ReservedNameError,
    validate_project_name,
)
from create_dataverse_app.core.registry import RemoteVersionResolver
from create_dataverse_app.core.toolchain import (
    ToolchainError,
    ToolchainVersionProbe,
    is_using_yarn,
    npm_cwd_hints,
)
from create_dataverse_app.git.utils import CloneError, clone_repository
from create_dataverse_app.ui.console import ScaffoldReporter

logger = logging.getLogger(__name__)


class ScaffoldState(str, Enum):
    """Orchestrator states."""
    START = "start"
    NAME_CHECKED = "name_checked"
    DIRECTORY_CHECKED = "directory_checked"
    VERSION_GATE_CHECKED = "version_gate_checked"
    CLONING = "cloning"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    """Terminal result of a run."""
    SUCCESS = "success"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class ScaffoldOptions:
    """Parsed command-line input.

    ``verbose``, ``scripts_version`` and ``template`` are accepted for
    compatibility and do not change what gets cloned.
    """
    project_directory: str
    verbose: bool = False
    scripts_version: Optional[str] = None
    template: Optional[str] = None
    use_pnp: bool = False
    use_yarn: Optional[bool] = None  # None: detect from the environment
    cleanup_on_failure: Optional[bool] = None  # None: use config


@dataclass
class ScaffoldOutcome:
    """Terminal result of a scaffold run."""
    status: OutcomeStatus
    state: ScaffoldState
    root: Optional[Path] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None
    warnings: List[str] = field(default_factory=list)
    use_pnp: bool = False
    history: List[ScaffoldState] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.status == OutcomeStatus.FAILED else 0

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS


class ScaffoldOrchestrator:
    """Sequence the checks and the clone for one invocation.

    Args:
        config: Pipeline configuration
        reporter: Console sink
        resolver: Latest-version resolver (inject for tests)
        probe: Toolchain probe (inject for tests)
        current_version: Version of the running tool
        cwd: Directory relative project names resolve against
        environ: Environment used for package-manager detection
    """

    def __init__(
        self,
        config: Optional[ScaffoldConfig] = None,
        reporter: Optional[ScaffoldReporter] = None,
        resolver: Optional[RemoteVersionResolver] = None,
        probe: Optional[ToolchainVersionProbe] = None,
        current_version: str = __version__,
        cwd: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config = config or ScaffoldConfig()
        self.reporter = reporter or ScaffoldReporter(program_name=self.config.package_name)
        self.resolver = resolver or RemoteVersionResolver(self.config)
        self.probe = probe or ToolchainVersionProbe(self.config)
        self.current_version = current_version
        self.cwd = cwd
        self.environ = os.environ if environ is None else environ

    def run(self, options: ScaffoldOptions) -> ScaffoldOutcome:
        """Run the pipeline once."""
        history = [ScaffoldState.START]
        warnings: List[str] = []
        use_pnp = options.use_pnp

        def finish(status, state, root=None, reason=None, error=None):
            history.append(state)
            logger.debug("Scaffold finished in %s: %s", state.value, reason or status.value)
            return ScaffoldOutcome(
                status=status,
                state=state,
                root=root,
                reason=reason,
                error=error,
                warnings=warnings,
                use_pnp=use_pnp,
                history=history,
            )

        base = self.cwd or Path.cwd()
        root = (base / options.project_directory).resolve()
        app_name = root.name

        # Name
        try:
            result = validate_project_name(app_name, self.config.reserved_names)
        except InvalidPackageNameError as e:
            self.reporter.invalid_name(app_name, e.problems)
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "invalid name", e)
        except ReservedNameError as e:
            self.reporter.reserved_name(app_name, e.reserved)
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "reserved name", e)
        self.reporter.name_notices(result.notices)
        history.append(ScaffoldState.NAME_CHECKED)

        # Directory
        created_root = not root.exists()
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.reporter.error(f"Could not create {root}: {e}")
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "mkdir failed", e)

        try:
            check_and_clean(root)
        except UnsafeDirectoryError as e:
            self.reporter.conflicts(options.project_directory, e.conflicts)
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "unsafe directory", e)
        except OSError as e:
            self.reporter.error(f"Could not read {root}: {e}")
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "unreadable directory", e)
        history.append(ScaffoldState.DIRECTORY_CHECKED)

        # Self-version gate
        latest = self.resolver.resolve_latest()
        logger.debug("Latest %s: %s (%s)", self.config.package_name, latest.version, latest.source.value)
        if latest.is_newer_than(self.current_version):
            self.reporter.upgrade_notice(
                self.config.package_name, self.current_version, latest.version
            )
            return finish(
                OutcomeStatus.ABORTED, ScaffoldState.ABORTED, root,
                f"newer version available: {latest.version}",
            )
        history.append(ScaffoldState.VERSION_GATE_CHECKED)

        # Toolchain
        try:
            toolchain_warnings, use_pnp = self._check_toolchain(root, options)
            warnings.extend(toolchain_warnings)
        except ToolchainError as e:
            self.reporter.error(f"{e}. Please install {e.tool} and try again.")
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "toolchain", e)

        # Clone
        history.append(ScaffoldState.CLONING)
        self.reporter.creating(root)
        existing = {p.name for p in root.iterdir()}
        try:
            clone_repository(
                self.config.template_repository,
                root,
                timeout=self.config.clone_timeout_seconds,
            )
        except CloneError as e:
            self.reporter.clone_failed(e.command, e.reason)
            cleanup = options.cleanup_on_failure
            if cleanup is None:
                cleanup = self.config.cleanup_on_failure
            if cleanup:
                self._cleanup(root, existing, created_root)
            return finish(OutcomeStatus.FAILED, ScaffoldState.FAILED, root, "clone failed", e)

        self.reporter.done(app_name)
        return finish(OutcomeStatus.SUCCESS, ScaffoldState.DONE, root)

    def _check_toolchain(self, root: Path, options: ScaffoldOptions) -> Tuple[List[str], bool]:
        """Probe local tools.

        Returns:
            (warnings, use_pnp) - warnings are already reported; use_pnp is
            forced off when the installed Yarn cannot run Plug'n'Play

        Raises:
            ToolchainError: If git is missing
        """
        warnings = []
        use_pnp = options.use_pnp

        def warn(message: str) -> None:
            warnings.append(message)
            self.reporter.warning(message)

        git = self.probe.probe("git")
        if not git.installed:
            raise ToolchainError("git", "Git is not installed")
        if not git.meets_minimum:
            warn(
                f"You are using git {git.installed_version}. "
                f"Please update to git {git.minimum} or higher."
            )

        node = self.probe.probe("node")
        if node.installed and not node.meets_minimum:
            warn(
                f"You are using Node {node.installed_version} so the project may not run.\n\n"
                f"Please update to Node {node.minimum} or higher for a better, "
                "fully supported experience."
            )

        use_yarn = options.use_yarn
        if use_yarn is None:
            use_yarn = is_using_yarn(self.environ)

        if not use_yarn:
            ok, npm_cwd = self.probe.npm_can_read_cwd(root)
            if not ok:
                self.reporter.npm_cwd_mismatch(root, npm_cwd, npm_cwd_hints())
                warnings.append(f"npm starts in {npm_cwd} instead of {root}")

            npm = self.probe.probe_package_manager(use_yarn=False)
            if not npm.meets_minimum and npm.installed:
                warn(
                    f"You are using npm {npm.installed_version} so the project will be "
                    "bootstrapped with an old unsupported version of tools.\n\n"
                    f"Please update to npm {npm.minimum} or higher for a better, "
                    "fully supported experience."
                )
            elif not npm.installed:
                warn(
                    "npm was not found. You will need a package manager to install "
                    "the app's dependencies."
                )
        elif options.use_pnp:
            yarn = self.probe.probe_yarn_pnp()
            if yarn.yarn_version:
                if not yarn.has_min_yarn_pnp:
                    warn(
                        f"You are using Yarn {yarn.yarn_version} together with the --use-pnp "
                        "flag, but Plug'n'Play is only supported starting from the "
                        f"{self.config.min_yarn_pnp_version} release.\n\n"
                        f"Please update to Yarn {self.config.min_yarn_pnp_version} or higher "
                        "for a better, fully supported experience."
                    )
                if not yarn.has_max_yarn_pnp:
                    warn(
                        "The --use-pnp flag is no longer necessary with yarn 2 and will be "
                        "deprecated and removed in a future release."
                    )
                if not (yarn.has_min_yarn_pnp and yarn.has_max_yarn_pnp):
                    logger.debug("Plug'n'Play disabled for yarn %s", yarn.yarn_version)
                    use_pnp = False

        return warnings, use_pnp

    def _cleanup(self, root: Path, existing: set, created_root: bool) -> None:
        """Remove what a failed clone added, and the directory if we made it."""
        for entry in sorted(root.iterdir(), key=lambda p: p.name):
            if entry.name in existing:
                continue
            self.reporter.deleting(entry.name)
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                logger.warning("Could not delete %s: %s", entry, e)

        if created_root and not any(root.iterdir()):
            self.reporter.deleting_directory(root.name, root.parent)
            try:
                root.rmdir()
            except OSError as e:
                logger.warning("Could not delete %s: %s", root, e)
