"""Console sink for the scaffold pipeline.

The orchestrator decides what happened; ScaffoldReporter decides how it looks.
"""

from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from create_dataverse_app.ui.theme import THEME, Symbols


def make_console(**kwargs) -> Console:
    """Create a console with the package theme.

    Long lines are not wrapped.
    """
    kwargs.setdefault("soft_wrap", True)
    return Console(theme=THEME, highlight=False, **kwargs)


class ScaffoldReporter:
    """Render scaffold progress and results."""

    def __init__(self, console: Optional[Console] = None, program_name: str = "create-dataverse-app"):
        self.console = console or make_console()
        self.program_name = program_name

    # -------------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------------

    def missing_project_directory(self) -> None:
        prog = self.program_name
        self.console.print("[error]Please specify the project directory:[/]")
        self.console.print(f"  [command]{prog}[/] [path]<project-directory>[/]")
        self.console.print()
        self.console.print("For example:")
        self.console.print(f"  [command]{prog}[/] [path]my-dataverse-app[/]")
        self.console.print()
        self.console.print(f"Run [command]{prog} --help[/] to see all options.")

    # -------------------------------------------------------------------------
    # Validation failures
    # -------------------------------------------------------------------------

    def invalid_name(self, name: str, problems: Iterable[str]) -> None:
        self.console.print(
            f'[error]Cannot create a project named [path]"{escape(name)}"[/] '
            "because of npm naming restrictions:[/]\n"
        )
        for problem in problems:
            self.console.print(f"[error]  {Symbols.BULLET} {escape(problem)}[/]")
        self.console.print("\n[error]Please choose a different project name.[/]")

    def reserved_name(self, name: str, reserved: Iterable[str]) -> None:
        self.console.print(
            f'[error]Cannot create a project named [path]"{escape(name)}"[/] '
            "because a dependency with the same name exists.\n"
            "Due to the way npm works, the following names are not allowed:[/]\n"
        )
        for dep in reserved:
            self.console.print(f"  [command]{dep}[/]")
        self.console.print("\n[error]Please choose a different project name.[/]")

    def name_notices(self, notices: Iterable[str]) -> None:
        for notice in notices:
            self.console.print(f"[text.dim]Note: {escape(notice)}[/]")

    def conflicts(self, name: str, conflicts: Iterable) -> None:
        self.console.print(
            f"The directory [path]{escape(name)}[/] contains files that could conflict:"
        )
        self.console.print()
        for conflict in conflicts:
            if conflict.is_directory:
                self.console.print(f"  [directory]{escape(conflict.name)}/[/]")
            else:
                self.console.print(f"  {escape(conflict.name)}")
        self.console.print()
        self.console.print(
            "Either try using a new directory name, or remove the files listed above."
        )

    # -------------------------------------------------------------------------
    # Version gate and toolchain
    # -------------------------------------------------------------------------

    def upgrade_notice(self, package: str, current: str, latest: str) -> None:
        self.console.print()
        self.console.print(
            f"[warning]You are running `{package}` {current}, which is behind "
            f"the latest release ({latest}).\n\n"
            f"We recommend always using the latest version of {package} if possible.[/]"
        )
        self.console.print()

    def warning(self, message: str) -> None:
        self.console.print(f"[warning]{escape(message)}[/]\n")

    def npm_cwd_mismatch(self, cwd: Path, npm_cwd: str, hints: Iterable[str]) -> None:
        self.console.print(
            "[error]Could not start an npm process in the right directory.\n\n"
            f"The current directory is: [heading]{escape(str(cwd))}[/]\n"
            f"However, a newly started npm process runs in: [heading]{escape(npm_cwd)}[/]\n\n"
            "This is probably caused by a misconfigured system terminal shell.[/]"
        )
        hints = list(hints)
        if hints:
            self.console.print("[error]On Windows, this can usually be fixed by running:[/]\n")
            for hint in hints:
                self.console.print(f"  [command]{escape(hint)}[/]")
            self.console.print("\n[error]Try to run the above two lines in the terminal.[/]")

    def error(self, message: str) -> None:
        self.console.print(f"[error]{escape(message)}[/]")

    # -------------------------------------------------------------------------
    # Clone
    # -------------------------------------------------------------------------

    def creating(self, root: Path) -> None:
        self.console.print()
        self.console.print(f"Creating a new Dataverse app in [path]{escape(str(root))}[/].")
        self.console.print()

    def clone_failed(self, command: str, reason: str = "") -> None:
        self.console.print()
        self.console.print("Aborting installation.")
        self.console.print(f"  [command]{escape(command)}[/] has failed.")
        if reason:
            self.console.print(f"  [text.dim]{escape(reason)}[/]")
        self.console.print()

    def deleting(self, name: str) -> None:
        self.console.print(f"Deleting generated file... [command]{escape(name)}[/]")

    def deleting_directory(self, app_name: str, parent: Path) -> None:
        self.console.print(
            f"Deleting [command]{escape(app_name)}/[/] from [command]{escape(str(parent))}[/]"
        )

    def done(self, app_name: str) -> None:
        self.console.print()
        self.console.print(f"[success]{Symbols.COMPLETE} Done![/]")
        self.console.print()
        self.console.print("To get started:")
        self.console.print()
        self.console.print(f"  [command]cd {escape(app_name)}[/]")
        self.console.print()
        self.console.print("  add your data models under the [path]models[/] folder")
        self.console.print()
        self.console.print("  configure your app in the [path]dataverse.config.ts[/] file")
        self.console.print()
        self.console.print("  set your private key in the [path].env[/] file, then run")
        self.console.print()
        self.console.print("  [command]pnpm install[/]")
        self.console.print()
        self.console.print("  [command]pnpm dev[/]")
