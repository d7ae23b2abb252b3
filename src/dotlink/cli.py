"""CLI commands for dotlink - a symlink-based dotfiles manager."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from . import __version__, operations
from .config import Config, init_config, load_config
from .exceptions import ConflictError, DotlinkError
from .repository import StubDirectory, find_nested_stubs, list_tracked_entries
from .sync import EntryState, SyncReport, SyncStatus
from .sync import status as entry_status
from .sync import sync as sync_profile

# Global app and console instances
app = typer.Typer(
    help="dotlink - keep dotfiles in a repository and symlink them into place",
    no_args_is_help=True,
)
console = Console()

# Set by the --config-dir option
CONFIG_DIR: Optional[Path] = None

STATE_STYLES = {
    EntryState.CORRECT: "green",
    EntryState.ABSENT: "yellow",
    EntryState.WRONG_LINK: "yellow",
    EntryState.OCCUPIED: "red",
}


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def _fail(error: Exception) -> NoReturn:
    """Print an error with its kind and stop with exit code 1."""
    kind = error.kind if isinstance(error, DotlinkError) else type(error).__name__
    typer.secho(f"Error ({kind}): {error}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _load() -> Config:
    try:
        return load_config(CONFIG_DIR)
    except DotlinkError as e:
        _fail(e)


def _finish_sync(report: SyncReport, quiet: bool) -> None:
    """Summarise a sync report and exit non-zero on conflicts or failures."""
    if not quiet:
        linked = len(report.with_status(SyncStatus.LINKED))
        correct = len(report.with_status(SyncStatus.ALREADY_CORRECT))
        backed_up = len(report.with_status(SyncStatus.BACKED_UP_AND_LINKED))
        typer.secho(
            f"{len(report.results)} entries: {linked} linked, {correct} already "
            f"correct, {backed_up} backed up, {len(report.conflicts)} conflicts, "
            f"{len(report.failures)} failed",
            fg=typer.colors.GREEN if report.ok else typer.colors.YELLOW,
        )

    for result in report.failures:
        typer.secho(
            f"  failed: {result.system_path}: {result.error}",
            fg=typer.colors.RED,
            err=True,
        )
    try:
        report.raise_for_conflicts()
    except ConflictError as e:
        for path in e.paths:
            typer.secho(f"  not synced: {path}", fg=typer.colors.YELLOW, err=True)
        _fail(e)
    if report.failures:
        raise typer.Exit(code=1)


@app.callback()
def main(
    config_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--config-dir",
            "-c",
            help="Config directory (default: ~/.config/dotlink)",
        ),
    ] = None,
) -> None:
    """Keep dotfiles in a repository and symlink them into place."""
    global CONFIG_DIR
    CONFIG_DIR = config_dir


# ============================================================================
# SETUP AND PROFILE COMMANDS
# ============================================================================


@app.command()
def init(
    repo: Annotated[Path, typer.Argument(help="Repository directory for tracked files")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing config file")
    ] = False,
) -> None:
    """Write the config file pointing at REPO, creating REPO if needed."""
    try:
        config_file = init_config(repo, CONFIG_DIR, force=force)
    except (DotlinkError, OSError) as e:
        _fail(e)
    typer.secho(f"Wrote {config_file}", fg=typer.colors.GREEN)
    typer.secho(
        "  → Run 'dotlink new-profile <name>' to create your first profile",
        fg=typer.colors.CYAN,
    )


@app.command()
def new_profile(
    name: Annotated[str, typer.Argument(help="Name of the new profile")],
) -> None:
    """Create a new, empty profile."""
    config = _load()
    try:
        operations.new_profile(config, name)
    except (DotlinkError, OSError) as e:
        _fail(e)


@app.command()
def switch_profile(
    name: Annotated[str, typer.Argument(help="Profile to activate")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Move conflicting files to the backup area"),
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """Unlink the current profile and link NAME in its place."""
    config = _load()
    try:
        report = operations.switch_profile(config, name, force=force, quiet=quiet)
    except (DotlinkError, OSError) as e:
        _fail(e)
    _finish_sync(report, quiet)


@app.command()
def profiles() -> None:
    """List profiles in the repository."""
    config = _load()
    profile_list = operations.list_profiles(config)
    if not profile_list:
        typer.secho("No profiles found.", fg=typer.colors.YELLOW)
        typer.echo("Create a profile with: dotlink new-profile <name>")
        return

    for name, active in profile_list:
        if active:
            typer.secho(f" ● {name}", fg=typer.colors.GREEN, bold=True)
        else:
            typer.secho(f"   {name}", fg=typer.colors.CYAN)


# ============================================================================
# MAIN COMMANDS
# ============================================================================


@app.command()
def add(
    paths: Annotated[
        List[Path], typer.Argument(help="Files or directories to start tracking")
    ],
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """Move files into the active profile and symlink them back."""
    config = _load()
    for path in paths:
        try:
            operations.add(config, path, quiet=quiet)
        except (DotlinkError, OSError) as e:
            _fail(e)


@app.command()
def remove(
    paths: Annotated[
        List[Path],
        typer.Argument(help="System paths or repository paths to stop tracking"),
    ],
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """Stop tracking files and restore them to their original location."""
    config = _load()
    for path in paths:
        try:
            operations.remove(config, path, quiet=quiet)
        except (DotlinkError, OSError) as e:
            _fail(e)


@app.command()
def sync(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Move conflicting files to the backup area"),
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Suppress output")
    ] = False,
) -> None:
    """Create any missing symlinks for the active profile."""
    config = _load()
    try:
        report = sync_profile(config, force=force, quiet=quiet)
    except (DotlinkError, OSError) as e:
        _fail(e)
    _finish_sync(report, quiet)


# ============================================================================
# REPORTING COMMANDS
# ============================================================================


@app.command()
def status() -> None:
    """Show the link state of every tracked entry without changing anything."""
    config = _load()
    try:
        rows = entry_status(config)
        nested = find_nested_stubs(config.profile_dir())
    except (DotlinkError, OSError) as e:
        _fail(e)

    if not rows:
        typer.secho(
            f"Profile '{config.profile}' tracks nothing yet.", fg=typer.colors.YELLOW
        )
        return

    table = Table(title=f"Profile: {config.profile}")
    table.add_column("Entry")
    table.add_column("Type")
    table.add_column("State")
    for entry, _system_path, state in rows:
        kind = "dir" if isinstance(entry, StubDirectory) else "file"
        style = STATE_STYLES[state]
        table.add_row(str(entry.relative), kind, f"[{style}]{state.value}[/{style}]")
    console.print(table)

    for path in nested:
        typer.secho(
            f"Warning: {path} is a stub directory nested inside another one "
            "and is ignored",
            fg=typer.colors.YELLOW,
            err=True,
        )

    if any(state is not EntryState.CORRECT for _, _, state in rows):
        typer.secho("  → Run 'dotlink sync' to link missing entries", fg=typer.colors.CYAN)


@app.command("list")
def list_entries() -> None:
    """List all entries tracked by the active profile."""
    config = _load()
    try:
        entries = list(list_tracked_entries(config.profile_dir()))
    except (DotlinkError, OSError) as e:
        _fail(e)

    if not entries:
        typer.secho("No files tracked by dotlink.", fg=typer.colors.YELLOW)
        return

    typer.secho("Tracked entries:", fg=typer.colors.WHITE, bold=True)
    for entry in entries:
        suffix = "/" if isinstance(entry, StubDirectory) else ""
        typer.secho(f"  {entry.relative}{suffix}", fg=typer.colors.GREEN)


@app.command()
def version() -> None:
    """Show dotlink version."""
    try:
        version_str = get_version("dotlink")
    except PackageNotFoundError:
        version_str = __version__

    typer.secho(f"dotlink version {version_str}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
