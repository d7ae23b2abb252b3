"""Add, remove and profile operations built on the sync engine."""

import os
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .config import Config, write_active_profile
from .exceptions import (
    ConfigError,
    MoveError,
    NotFoundError,
    NotTrackedError,
    PathResolutionError,
    UnexpectedStateError,
)
from .paths import absolute_path, resolve_pair, system_to_relative, to_repo_path
from .repository import (
    STUB_FILENAME,
    StubDirectory,
    TrackedEntry,
    TrackedFile,
    create_profile_dir,
    enclosing_stub,
    find_entry,
    list_entries_under,
    validate_profile_name,
)
from .repository import list_profiles as _list_profile_names
from .sync import SyncReport, SyncResult, SyncStatus, link_entry, points_to
from .sync import sync as sync_profile
from .sync import unlink_profile


# ============================================================================
# HELPERS
# ============================================================================


def _make_parents(directory: Path) -> List[Path]:
    """Create ``directory`` and missing ancestors; return what was created."""
    missing = []
    current = directory
    while not current.exists():
        missing.append(current)
        current = current.parent
    for path in reversed(missing):
        path.mkdir()
    return list(reversed(missing))


def _remove_if_empty(directories: List[Path]) -> None:
    for directory in reversed(directories):
        if directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()


def _prune_empty_parents(profile_dir: Path, relative: Path) -> None:
    """Remove repo-side directories left empty after an entry moved out."""
    for parent in relative.parents:
        if parent == Path("."):
            break
        directory = profile_dir / parent
        if not directory.is_dir() or any(directory.iterdir()):
            break
        directory.rmdir()


# ============================================================================
# ADD / REMOVE
# ============================================================================


def add(config: Config, path: Path, quiet: bool = False) -> SyncResult:
    """Move ``path`` into the active profile and link it back in place."""
    profile = config.active_profile()
    profile_dir = config.profile_dir(profile)
    if not profile_dir.is_dir():
        raise ConfigError(f"Profile '{profile}' does not exist", path=profile_dir)

    system_path = absolute_path(path, config.home)
    if not system_path.exists():
        raise NotFoundError(f"{system_path} does not exist", path=system_path)
    if system_path.name == STUB_FILENAME:
        raise UnexpectedStateError(
            f"{system_path} uses the reserved name {STUB_FILENAME}", path=system_path
        )

    relative = system_to_relative(config, system_path)
    repo_path = to_repo_path(config, profile, relative)

    protected = ((config.config_dir, "config directory"), (config.repo, "repository"))
    for inner, label in protected:
        inner = inner.resolve()
        if inner == system_path or inner.is_relative_to(system_path):
            raise PathResolutionError(
                f"{system_path} contains the dotlink {label} {inner}", path=system_path
            )

    if system_path.is_symlink():
        entry = find_entry(profile_dir, relative)
        if entry is not None and points_to(system_path, repo_path):
            if not quiet:
                typer.secho(f"{relative} is already tracked", fg=typer.colors.YELLOW)
            return SyncResult(
                entry, system_path, repo_path, SyncStatus.ALREADY_CORRECT
            )
        raise UnexpectedStateError(
            f"{system_path} is a symlink; only real files and directories can be added",
            path=system_path,
        )

    stub = enclosing_stub(profile_dir, relative)
    if stub is not None:
        raise UnexpectedStateError(
            f"{system_path} is inside {stub}, which is already tracked as a directory",
            path=system_path,
        )
    if repo_path.exists() or repo_path.is_symlink():
        raise UnexpectedStateError(
            f"{repo_path} already exists in profile '{profile}'", path=repo_path
        )

    if system_path.is_dir():
        contents = list(list_entries_under(system_path))
        if (system_path / STUB_FILENAME).exists() or any(
            isinstance(e, StubDirectory) for e in contents
        ):
            raise UnexpectedStateError(
                f"{system_path} contains a {STUB_FILENAME} sentinel", path=system_path
            )
        entry: TrackedEntry = StubDirectory(relative)
        sentinel: Optional[Path] = system_path / STUB_FILENAME
    elif system_path.is_file():
        contents = []
        entry = TrackedFile(relative)
        sentinel = None
    else:
        raise UnexpectedStateError(
            f"{system_path} is not a regular file or directory", path=system_path
        )

    created = _make_parents(repo_path.parent)
    try:
        if sentinel is not None:
            sentinel.touch(exist_ok=False)
        os.rename(system_path, repo_path)
    except OSError as e:
        if sentinel is not None and system_path.is_dir():
            sentinel.unlink(missing_ok=True)
        _remove_if_empty(created)
        raise MoveError(
            f"Could not move {system_path} to {repo_path}: {e}", path=system_path
        ) from e

    try:
        result = link_entry(config, entry, quiet=True)
    except OSError as e:
        os.rename(repo_path, system_path)
        if sentinel is not None:
            sentinel.unlink(missing_ok=True)
        _remove_if_empty(created)
        raise MoveError(
            f"Could not link {system_path} after moving it: {e}", path=system_path
        ) from e

    if not quiet:
        if isinstance(entry, StubDirectory):
            typer.secho(
                f"Added directory {relative} ({len(contents)} files)",
                fg=typer.colors.GREEN,
            )
        else:
            typer.secho(f"Added {relative}", fg=typer.colors.GREEN)
    return result


def remove(config: Config, path: Path, quiet: bool = False) -> Path:
    """Stop tracking an entry and put its content back at the system path.

    ``path`` may be the system path or the repo path of the entry.
    """
    profile = config.active_profile()
    profile_dir = config.profile_dir(profile)

    pair = resolve_pair(config, profile, absolute_path(path, config.home))
    entry = find_entry(profile_dir, pair.relative)
    if entry is None:
        raise NotTrackedError(
            f"{pair.relative} is not tracked in profile '{profile}'",
            path=pair.system_path,
        )

    system_path, repo_path = pair.system_path, pair.repo_path
    if not system_path.is_symlink() or not points_to(system_path, repo_path):
        raise UnexpectedStateError(
            f"{system_path} is not a symlink to {repo_path}; refusing to touch it",
            path=system_path,
        )

    sentinel = repo_path / STUB_FILENAME if isinstance(entry, StubDirectory) else None

    system_path.unlink()
    try:
        if sentinel is not None:
            sentinel.unlink()
        os.rename(repo_path, system_path)
    except OSError as e:
        if sentinel is not None and repo_path.is_dir():
            sentinel.touch()
        if not system_path.exists() and not system_path.is_symlink():
            system_path.symlink_to(repo_path)
        raise MoveError(
            f"Could not move {repo_path} back to {system_path}: {e}", path=repo_path
        ) from e

    _prune_empty_parents(profile_dir, pair.relative)

    if not quiet:
        typer.secho(f"Removed {pair.relative}", fg=typer.colors.GREEN)
    return system_path


# ============================================================================
# PROFILES
# ============================================================================


def new_profile(config: Config, name: str, quiet: bool = False) -> Path:
    """Create an empty profile; it becomes active if none is active yet."""
    profile_dir = create_profile_dir(config.repo_root(), name)
    if config.profile is None:
        write_active_profile(config, name)

    if not quiet:
        typer.secho(f"Created profile '{name}'", fg=typer.colors.GREEN)
        if config.profile == name:
            typer.secho(f"Profile '{name}' is now active", fg=typer.colors.GREEN)
    return profile_dir


def switch_profile(
    config: Config, name: str, force: bool = False, quiet: bool = False
) -> SyncReport:
    """Unlink the current profile, activate ``name`` and sync it."""
    validate_profile_name(name)
    if not (config.repo_root() / name).is_dir():
        raise ConfigError(f"Profile '{name}' does not exist")

    previous = config.profile
    if previous is not None and previous != name:
        if config.profile_dir(previous).is_dir():
            unlink_profile(config, previous, quiet=quiet)

    write_active_profile(config, name)
    if not quiet:
        typer.secho(f"Switched to profile '{name}'", fg=typer.colors.GREEN)

    return sync_profile(config, force=force, quiet=quiet)


def list_profiles(config: Config) -> List[Tuple[str, bool]]:
    """Profile names paired with whether each one is active."""
    return [
        (name, name == config.profile)
        for name in _list_profile_names(config.repo_root())
    ]
