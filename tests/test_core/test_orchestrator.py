"""Tests for create_dataverse_app.core.orchestrator module."""

from pathlib import Path

import httpx
import pytest

from create_dataverse_app.config import ScaffoldConfig
from create_dataverse_app.core.directory import UnsafeDirectoryError
from create_dataverse_app.core.naming import InvalidPackageNameError, ReservedNameError
from create_dataverse_app.core.orchestrator import (
    OutcomeStatus,
    ScaffoldOptions,
    ScaffoldOrchestrator,
    ScaffoldState,
)
from create_dataverse_app.core.registry import RemoteVersionResolver
from create_dataverse_app.core.toolchain import ToolchainError
from create_dataverse_app.git.utils import CloneError

TEMPLATE = "https://example.test/dataverse-template.git"
CLONE = ["git", "clone", "--quiet", TEMPLATE, "."]


@pytest.fixture
def config():
    return ScaffoldConfig(
        template_repository=TEMPLATE,
        registry_url="https://registry.example.test/dist-tags",
    )


@pytest.fixture
def make_orchestrator(config, reporter, registry_client, tmp_path):
    """Build an orchestrator rooted in tmp_path with a mocked registry."""

    def factory(latest="1.0.0", current_version="1.0.0", environ=None):
        if latest is None:
            def handler(request):
                raise httpx.ConnectError("offline", request=request)
        else:
            def handler(request):
                return httpx.Response(200, json={"latest": latest})

        resolver = RemoteVersionResolver(config, client=registry_client(handler))
        return ScaffoldOrchestrator(
            config,
            reporter=reporter,
            resolver=resolver,
            current_version=current_version,
            cwd=tmp_path,
            environ=environ or {},
        )

    return factory


class TestSuccessfulScaffold:
    """Tests for a run that reaches DONE."""

    def test_fresh_directory(self, make_orchestrator, mock_toolchain, output, tmp_path):
        mock_toolchain.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.state == ScaffoldState.DONE
        assert outcome.exit_code == 0
        assert outcome.root == tmp_path / "my-app"
        assert outcome.root.is_dir()
        assert outcome.history == [
            ScaffoldState.START,
            ScaffoldState.NAME_CHECKED,
            ScaffoldState.DIRECTORY_CHECKED,
            ScaffoldState.VERSION_GATE_CHECKED,
            ScaffoldState.CLONING,
            ScaffoldState.DONE,
        ]
        assert mock_toolchain.call_count(CLONE) == 1
        assert "Creating a new Dataverse app in" in output.text
        assert "Done!" in output.text
        assert "cd my-app" in output.text
        assert "pnpm install" in output.text

    def test_nested_project_path_uses_basename(self, make_orchestrator, mock_toolchain, output, tmp_path):
        mock_toolchain.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("apps/my-app"))

        assert outcome.succeeded
        assert outcome.root == tmp_path / "apps" / "my-app"
        assert "cd my-app" in output.text

    def test_existing_safe_directory(self, make_orchestrator, mock_toolchain, tmp_path):
        root = tmp_path / "my-app"
        root.mkdir()
        (root / "README.md").write_text("# My app\n")
        (root / "npm-debug.log").write_text("old\n")
        mock_toolchain.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.succeeded
        assert (root / "README.md").exists()
        assert not (root / "npm-debug.log").exists()

    def test_older_registry_version_proceeds(self, make_orchestrator, mock_toolchain):
        mock_toolchain.register(CLONE)
        outcome = make_orchestrator(latest="0.9.0").run(ScaffoldOptions("my-app"))
        assert outcome.succeeded


class TestValidationFailures:
    """Tests for runs rejected before anything is cloned."""

    def test_invalid_name(self, make_orchestrator, fp, output, tmp_path):
        outcome = make_orchestrator().run(ScaffoldOptions("MyApp"))

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.exit_code == 1
        assert isinstance(outcome.error, InvalidPackageNameError)
        assert not (tmp_path / "MyApp").exists()
        assert "npm naming restrictions" in output.text
        assert "capital letters" in output.text

    def test_reserved_name(self, make_orchestrator, fp, output, tmp_path):
        outcome = make_orchestrator().run(ScaffoldOptions("react-dom"))

        assert outcome.exit_code == 1
        assert isinstance(outcome.error, ReservedNameError)
        assert not (tmp_path / "react-dom").exists()
        assert "react-scripts" in output.text

    def test_unsafe_directory(self, make_orchestrator, fp, output, tmp_path):
        root = tmp_path / "my-app"
        (root / "src").mkdir(parents=True)
        (root / "notes.txt").write_text("keep me\n")
        (root / "yarn-error.log").write_text("old\n")

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.exit_code == 1
        assert outcome.history[-2] == ScaffoldState.NAME_CHECKED
        assert isinstance(outcome.error, UnsafeDirectoryError)
        assert sorted(p.name for p in root.iterdir()) == ["notes.txt", "src", "yarn-error.log"]
        assert "contains files that could conflict" in output.text
        assert "  src/" in output.text
        assert "  notes.txt" in output.text

    def test_unreadable_directory(self, make_orchestrator, fp, output, tmp_path, monkeypatch):
        root = tmp_path / "my-app"
        root.mkdir()
        iterdir = Path.iterdir

        def deny(self):
            if self.name == "my-app":
                raise PermissionError(13, "Permission denied", str(self))
            return iterdir(self)

        monkeypatch.setattr(Path, "iterdir", deny)
        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.exit_code == 1
        assert isinstance(outcome.error, PermissionError)
        assert ScaffoldState.DIRECTORY_CHECKED not in outcome.history
        assert "Could not read" in output.text

    def test_git_missing_is_fatal(self, make_orchestrator, register_toolchain, output):
        fp = register_toolchain(git=None)
        fp.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.exit_code == 1
        assert isinstance(outcome.error, ToolchainError)
        assert outcome.error.tool == "git"
        assert ScaffoldState.CLONING not in outcome.history
        assert fp.call_count(CLONE) == 0
        assert "Git is not installed" in output.text


class TestVersionGate:
    """Tests for the self-version gate."""

    def test_stale_version_aborts(self, make_orchestrator, mock_toolchain, output, tmp_path):
        mock_toolchain.register(CLONE)

        outcome = make_orchestrator(latest="2.0.0", current_version="1.0.0").run(
            ScaffoldOptions("my-app")
        )

        assert outcome.status == OutcomeStatus.ABORTED
        assert outcome.state == ScaffoldState.ABORTED
        assert outcome.exit_code == 0
        assert mock_toolchain.call_count(CLONE) == 0
        root = tmp_path / "my-app"
        assert root.is_dir()
        assert list(root.iterdir()) == []
        assert "behind the latest release (2.0.0)" in output.text

    def test_unknown_version_proceeds(self, make_orchestrator, mock_toolchain):
        mock_toolchain.register(CLONE)

        outcome = make_orchestrator(latest=None).run(ScaffoldOptions("my-app"))

        assert outcome.succeeded
        assert ScaffoldState.VERSION_GATE_CHECKED in outcome.history
        assert mock_toolchain.call_count(CLONE) == 1

    def test_fallback_version_gates(self, make_orchestrator, register_toolchain):
        fp = register_toolchain(npm_view="3.1.0")
        fp.register(CLONE)

        outcome = make_orchestrator(latest=None, current_version="1.0.0").run(
            ScaffoldOptions("my-app")
        )

        assert outcome.status == OutcomeStatus.ABORTED
        assert fp.call_count(CLONE) == 0


class TestToolchainWarnings:
    """Tests for non-fatal toolchain findings."""

    def test_outdated_npm_warns(self, make_orchestrator, register_toolchain, output):
        fp = register_toolchain(npm="5.6.0")
        fp.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.succeeded
        assert any("npm 5.6.0" in w for w in outcome.warnings)
        assert "Please update to npm 6.0.0 or higher" in output.text

    def test_missing_npm_warns(self, make_orchestrator, register_toolchain):
        fp = register_toolchain(npm=None)
        fp.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.succeeded
        assert any("npm was not found" in w for w in outcome.warnings)

    def test_outdated_node_warns(self, make_orchestrator, register_toolchain):
        fp = register_toolchain(node="v14.21.3")
        fp.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.succeeded
        assert any("Node 14.21.3" in w for w in outcome.warnings)

    def test_npm_cwd_mismatch_warns(self, make_orchestrator, register_toolchain, output):
        fp = register_toolchain(npm_cwd="/somewhere/else")
        fp.register(CLONE)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.succeeded
        assert "Could not start an npm process in the right directory" in output.text

    @pytest.mark.parametrize("yarn,message", [
        ("1.11.0", "only supported starting from the 1.12.0 release"),
        ("3.6.4", "no longer necessary with yarn 2"),
    ])
    def test_yarn_outside_pnp_window(self, make_orchestrator, register_toolchain, output, yarn, message):
        fp = register_toolchain(yarn=yarn)
        fp.register(CLONE)
        environ = {"npm_config_user_agent": f"yarn/{yarn} npm/? node/v20.11.0"}

        outcome = make_orchestrator(environ=environ).run(
            ScaffoldOptions("my-app", use_pnp=True)
        )

        assert outcome.succeeded
        assert outcome.use_pnp is False
        assert message in output.text

    def test_yarn_inside_pnp_window(self, make_orchestrator, register_toolchain):
        fp = register_toolchain(yarn="1.22.19")
        fp.register(CLONE)

        outcome = make_orchestrator().run(
            ScaffoldOptions("my-app", use_pnp=True, use_yarn=True)
        )

        assert outcome.use_pnp is True
        assert outcome.warnings == []


class TestCloneFailure:
    """Tests for a clone that exits non-zero."""

    def test_failed_clone(self, make_orchestrator, mock_toolchain, output, tmp_path):
        mock_toolchain.register(CLONE, returncode=1)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app"))

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.state == ScaffoldState.FAILED
        assert outcome.exit_code == 1
        assert isinstance(outcome.error, CloneError)
        assert outcome.error.command == " ".join(CLONE)
        assert outcome.error.returncode == 1
        assert f"{' '.join(CLONE)} has failed." in output.text
        # Left as-is without the cleanup policy
        assert (tmp_path / "my-app").is_dir()

    def test_cleanup_on_failure(self, make_orchestrator, mock_toolchain, output, tmp_path):
        root = tmp_path / "my-app"

        def partial_clone(process):
            (root / "package.json").write_text("{}\n")
            (root / "src").mkdir()

        mock_toolchain.register(CLONE, returncode=128, callback=partial_clone)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app", cleanup_on_failure=True))

        assert outcome.exit_code == 1
        assert not root.exists()
        assert "Deleting generated file... package.json" in output.text
        assert "Deleting my-app/" in output.text

    def test_cleanup_keeps_preexisting_entries(self, make_orchestrator, mock_toolchain, tmp_path):
        root = tmp_path / "my-app"
        root.mkdir()
        (root / "README.md").write_text("# Mine\n")

        def partial_clone(process):
            (root / "package.json").write_text("{}\n")

        mock_toolchain.register(CLONE, returncode=128, callback=partial_clone)

        outcome = make_orchestrator().run(ScaffoldOptions("my-app", cleanup_on_failure=True))

        assert outcome.exit_code == 1
        assert sorted(p.name for p in root.iterdir()) == ["README.md"]
