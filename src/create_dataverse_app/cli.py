"""Main CLI entry point for create-dataverse-app."""

import logging
from pathlib import Path

import click
from rich.logging import RichHandler

from create_dataverse_app import __version__
from create_dataverse_app.config import PACKAGE_NAME, load_config
from create_dataverse_app.core.orchestrator import ScaffoldOptions, ScaffoldOrchestrator
from create_dataverse_app.envinfo import print_environment_info
from create_dataverse_app.ui.console import ScaffoldReporter, make_console

console = make_console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=make_console(stderr=True), show_path=False)],
        force=True,
    )


@click.command(epilog="Only PROJECT_DIRECTORY is required.")
@click.version_option(version=__version__, prog_name=PACKAGE_NAME)
@click.argument("project_directory", required=False)
@click.option("--info", is_flag=True, help="Print environment debug info")
@click.option("--verbose", is_flag=True, help="Print debug logs")
@click.option(
    "--scripts-version",
    help="Scripts version (accepted for compatibility, not used)",
)
@click.option(
    "--template",
    help="Template name (accepted for compatibility, not used)",
)
@click.option("--use-pnp", is_flag=True, help="Use Yarn Plug'n'Play when supported")
@click.option(
    "--cleanup-on-failure/--no-cleanup-on-failure",
    default=None,
    help="Remove cloned files if the clone fails",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON configuration file",
)
def main(
    project_directory: str,
    info: bool,
    verbose: bool,
    scripts_version: str,
    template: str,
    use_pnp: bool,
    cleanup_on_failure: bool,
    config_path: Path,
):
    """Create a new Dataverse app in PROJECT_DIRECTORY.

    \b
    Example:
      create-dataverse-app my-dataverse-app
    """
    _configure_logging(verbose)
    config = load_config(config_path)

    if info:
        print_environment_info(console, config)
        return

    reporter = ScaffoldReporter(console, program_name=config.package_name)

    if not project_directory:
        reporter.missing_project_directory()
        raise SystemExit(1)

    options = ScaffoldOptions(
        project_directory=project_directory,
        verbose=verbose,
        scripts_version=scripts_version,
        template=template,
        use_pnp=use_pnp,
        cleanup_on_failure=cleanup_on_failure,
    )
    outcome = ScaffoldOrchestrator(config, reporter=reporter).run(options)
    if outcome.exit_code != 0:
        raise SystemExit(outcome.exit_code)


if __name__ == "__main__":
    main()
