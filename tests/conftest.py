"""Shared test fixtures for create-dataverse-app.

Provides:
- config: ScaffoldConfig with the defaults
- reporter / output: ScaffoldReporter writing into a buffer
- registry_client: factory for httpx clients backed by a MockTransport
- register_toolchain: register tool probe commands with pytest-subprocess
- mock_toolchain: healthy toolchain registered with pytest-subprocess
- cli_runner: Click CliRunner
"""

import io
import subprocess

import httpx
import pytest
from click.testing import CliRunner

from create_dataverse_app.config import ScaffoldConfig
from create_dataverse_app.ui.console import ScaffoldReporter, make_console


class Output:
    """Captured console output."""

    def __init__(self):
        self.buffer = io.StringIO()

    @property
    def text(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture
def config():
    return ScaffoldConfig()


@pytest.fixture
def output():
    return Output()


@pytest.fixture
def reporter(output):
    """Reporter writing plain text into ``output``."""
    console = make_console(file=output.buffer, width=200, color_system=None)
    return ScaffoldReporter(console)


@pytest.fixture
def registry_client():
    """Build an httpx client whose requests are answered by ``handler``.

    Usage:
        client = registry_client(lambda request: httpx.Response(200, json={...}))
    """
    clients = []

    def factory(handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def register_toolchain(fp):
    """Register tool probe commands with pytest-subprocess.

    Pass None for a tool to make its probe fail. ``npm_view`` is the output
    of ``npm view <package> version``; None makes it fail.
    """
    fp.keep_last_process(True)

    def register(
        git="git version 2.43.0",
        node="v20.11.0",
        npm="10.2.4",
        yarn=None,
        npm_cwd=None,
        npm_view=None,
    ):
        for cmd, out in (
            (["git", "--version"], git),
            (["node", "--version"], node),
            (["npm", "--version"], npm),
            (["yarn", "--version"], yarn),
        ):
            if out is None:
                fp.register(cmd, returncode=127, stderr="command not found\n")
            else:
                fp.register(cmd, stdout=out + "\n")

        config_list = "; user config\n"
        if npm_cwd is not None:
            config_list += f"; cwd = {npm_cwd}\n"
        fp.register(["npm", "config", "list"], stdout=config_list)

        if npm_view is None:
            fp.register(["npm", "view", fp.any()], returncode=1)
        else:
            fp.register(["npm", "view", fp.any()], stdout=npm_view + "\n")
        return fp

    return register


@pytest.fixture
def mock_toolchain(register_toolchain):
    """Healthy git, node and npm; ``npm view`` fails."""
    return register_toolchain()


@pytest.fixture
def cli_runner():
    """Click CliRunner for testing CLI commands."""
    return CliRunner()


@pytest.fixture
def git_workspace(tmp_path):
    """Create a temporary workspace that is a real git repo."""
    subprocess.run(["git", "init"], cwd=tmp_path, capture_output=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=tmp_path,
        capture_output=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test User"],
        cwd=tmp_path,
        capture_output=True,
    )
    readme = tmp_path / "README.md"
    readme.write_text("# Template\n")
    subprocess.run(["git", "add", "-A"], cwd=tmp_path, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", "Initial commit"],
        cwd=tmp_path,
        capture_output=True,
    )
    return tmp_path
