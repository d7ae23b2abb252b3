"""Symlink synchronization engine.

For every tracked entry of a profile the engine looks at the system path,
decides which of four states it is in, and moves it to the single desired
state: a symlink pointing at the entry's repo path. Entries are processed
one at a time, fully, so an interrupted run can simply be repeated.
"""

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import typer

from .config import Config
from .exceptions import ConflictError, DotlinkError, UnexpectedStateError
from .paths import to_repo_path, to_system_path
from .repository import StubDirectory, TrackedEntry, list_tracked_entries


class EntryState(Enum):
    """What currently occupies the system path of an entry."""

    ABSENT = "absent"
    CORRECT = "correct"
    WRONG_LINK = "wrong-link"
    OCCUPIED = "occupied"


class SyncStatus(Enum):
    """Outcome of syncing one entry."""

    LINKED = "linked"
    ALREADY_CORRECT = "already-correct"
    CONFLICT_SKIPPED = "conflict-skipped"
    BACKED_UP_AND_LINKED = "conflict-backed-up-and-linked"
    FAILED = "failed"


@dataclass
class SyncResult:
    entry: TrackedEntry
    system_path: Path
    repo_path: Path
    status: SyncStatus
    backup_path: Optional[Path] = None
    error: Optional[Exception] = None


@dataclass
class SyncReport:
    """Per-entry results of a sync run, in processing order."""

    results: List[SyncResult] = field(default_factory=list)

    def add(self, result: SyncResult) -> None:
        self.results.append(result)

    def with_status(self, status: SyncStatus) -> List[SyncResult]:
        return [r for r in self.results if r.status is status]

    @property
    def conflicts(self) -> List[SyncResult]:
        return self.with_status(SyncStatus.CONFLICT_SKIPPED)

    @property
    def failures(self) -> List[SyncResult]:
        return self.with_status(SyncStatus.FAILED)

    @property
    def mutations(self) -> List[SyncResult]:
        return [
            r
            for r in self.results
            if r.status in (SyncStatus.LINKED, SyncStatus.BACKED_UP_AND_LINKED)
        ]

    @property
    def ok(self) -> bool:
        return not self.conflicts and not self.failures

    def raise_for_conflicts(self) -> None:
        conflicts = self.conflicts
        if conflicts:
            paths = [r.system_path for r in conflicts]
            listed = ", ".join(str(p) for p in paths)
            raise ConflictError(
                f"{len(paths)} path(s) already exist and were not synced: {listed}. "
                "Use -f to move them to the backup area.",
                paths=paths,
            )


# ============================================================================
# INSPECTION
# ============================================================================


def points_to(link: Path, target: Path) -> bool:
    """True if the symlink ``link`` targets ``target``."""
    raw = Path(os.readlink(link))
    if not raw.is_absolute():
        raw = link.parent / raw
    if Path(os.path.normpath(raw)) == target:
        return True
    try:
        return link.resolve() == target.resolve()
    except (OSError, RuntimeError):
        # symlink loop
        return False


def inspect(system_path: Path, repo_path: Path) -> EntryState:
    """Classify what is at ``system_path``."""
    if system_path.is_symlink():
        if points_to(system_path, repo_path):
            return EntryState.CORRECT
        return EntryState.WRONG_LINK
    if system_path.exists():
        return EntryState.OCCUPIED
    return EntryState.ABSENT


def status(config: Config) -> List[Tuple[TrackedEntry, Path, EntryState]]:
    """Read-only view of every entry of the active profile."""
    profile = config.active_profile()
    rows = []
    for entry in list_tracked_entries(config.profile_dir(profile)):
        system_path = to_system_path(config, entry.relative)
        repo_path = to_repo_path(config, profile, entry.relative)
        rows.append((entry, system_path, inspect(system_path, repo_path)))
    return rows


# ============================================================================
# MUTATION PRIMITIVES
# ============================================================================


class BackupArea:
    """Backup directory for one invocation, created on first use."""

    def __init__(self, base: Path) -> None:
        self.base = base
        self._root: Optional[Path] = None

    @property
    def root(self) -> Optional[Path]:
        return self._root

    def _reserve(self) -> Path:
        if self._root is not None:
            return self._root

        self.base.parent.mkdir(parents=True, exist_ok=True)
        candidate = self.base
        suffix = 0
        while True:
            try:
                candidate.mkdir()
                break
            except FileExistsError:
                suffix += 1
                candidate = self.base.with_name(f"{self.base.name}-{suffix}")
        self._root = candidate
        return candidate

    def relocate(self, system_path: Path, relative: Path) -> Path:
        """Move the content at ``system_path`` into the backup area."""
        dest = self._reserve() / relative
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(system_path), str(dest))
        return dest


def _check_parents(config: Config, system_path: Path) -> None:
    """Refuse to create links through a parent that already points into the repo."""
    for parent in system_path.parents:
        if parent == config.home or not parent.is_relative_to(config.home):
            break
        if parent.is_symlink() and parent.resolve().is_relative_to(config.repo):
            raise UnexpectedStateError(
                f"{parent} is a symlink into the repository; "
                f"cannot link {system_path} through it",
                path=parent,
            )


def make_link(system_path: Path, repo_path: Path) -> None:
    """Point ``system_path`` at ``repo_path``, replacing a stale link atomically."""
    system_path.parent.mkdir(parents=True, exist_ok=True)

    if not system_path.is_symlink():
        system_path.symlink_to(repo_path, target_is_directory=repo_path.is_dir())
        return

    tmp = system_path.with_name(f".{system_path.name}.dotlink-{os.getpid()}")
    if tmp.is_symlink():
        tmp.unlink()
    tmp.symlink_to(repo_path, target_is_directory=repo_path.is_dir())
    try:
        os.replace(tmp, system_path)
    except OSError:
        tmp.unlink()
        raise


def link_entry(
    config: Config,
    entry: TrackedEntry,
    force: bool = False,
    backup: Optional[BackupArea] = None,
    quiet: bool = False,
) -> SyncResult:
    """Bring one entry's system path into the linked state. Errors propagate."""
    profile = config.active_profile()
    system_path = to_system_path(config, entry.relative)
    repo_path = to_repo_path(config, profile, entry.relative)
    kind = "directory" if isinstance(entry, StubDirectory) else "file"

    state = inspect(system_path, repo_path)

    if state is EntryState.CORRECT:
        return SyncResult(entry, system_path, repo_path, SyncStatus.ALREADY_CORRECT)

    _check_parents(config, system_path)

    if state is EntryState.OCCUPIED:
        if not force:
            if not quiet:
                typer.secho(
                    f"Conflict: {system_path} already exists (use -f to force)",
                    fg=typer.colors.YELLOW,
                    err=True,
                )
            return SyncResult(
                entry, system_path, repo_path, SyncStatus.CONFLICT_SKIPPED
            )

        if backup is None:
            backup = BackupArea(config.backup_dir)
        backup_path = backup.relocate(system_path, entry.relative)
        make_link(system_path, repo_path)
        if not quiet:
            typer.secho(
                f"Backed up {system_path} to {backup_path}", fg=typer.colors.BLUE
            )
            typer.secho(f"Linked {kind} {entry.relative}", fg=typer.colors.GREEN)
        return SyncResult(
            entry,
            system_path,
            repo_path,
            SyncStatus.BACKED_UP_AND_LINKED,
            backup_path=backup_path,
        )

    make_link(system_path, repo_path)
    if not quiet:
        verb = "Relinked" if state is EntryState.WRONG_LINK else "Linked"
        typer.secho(f"{verb} {kind} {entry.relative}", fg=typer.colors.GREEN)
    return SyncResult(entry, system_path, repo_path, SyncStatus.LINKED)


def sync(
    config: Config,
    force: bool = False,
    entries: Optional[Iterable[TrackedEntry]] = None,
    quiet: bool = False,
) -> SyncReport:
    """Link every tracked entry of the active profile.

    A failure on one entry is recorded in the report and the walk goes on
    with the next entry.
    """
    profile = config.active_profile()
    if entries is None:
        entries = list_tracked_entries(config.profile_dir(profile))

    backup = BackupArea(config.backup_dir)
    report = SyncReport()

    for entry in entries:
        try:
            result = link_entry(config, entry, force=force, backup=backup, quiet=quiet)
        except (OSError, DotlinkError) as e:
            system_path = to_system_path(config, entry.relative)
            if not quiet:
                typer.secho(
                    f"Error: could not link {system_path}: {e}",
                    fg=typer.colors.RED,
                    err=True,
                )
            result = SyncResult(
                entry,
                system_path,
                to_repo_path(config, profile, entry.relative),
                SyncStatus.FAILED,
                error=e,
            )
        report.add(result)

    return report


def unlink_profile(
    config: Config, profile: str, quiet: bool = False
) -> Tuple[List[Path], List[Path]]:
    """Remove the system-side symlinks that point into ``profile``.

    Returns the unlinked paths and the paths left alone because they held
    something other than this profile's link.
    """
    unlinked: List[Path] = []
    skipped: List[Path] = []

    for entry in list_tracked_entries(config.profile_dir(profile)):
        system_path = to_system_path(config, entry.relative)
        repo_path = to_repo_path(config, profile, entry.relative)
        state = inspect(system_path, repo_path)

        if state is EntryState.CORRECT:
            system_path.unlink()
            unlinked.append(system_path)
            if not quiet:
                typer.secho(f"Unlinked {entry.relative}", fg=typer.colors.BLUE)
        elif state is not EntryState.ABSENT:
            skipped.append(system_path)
            if not quiet:
                typer.secho(
                    f"Warning: {system_path} is not linked to profile "
                    f"'{profile}', leaving it alone",
                    fg=typer.colors.YELLOW,
                    err=True,
                )

    return unlinked, skipped
