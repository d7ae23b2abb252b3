"""On-disk layout of the dotlink repository.

The repository root holds one directory per profile. Inside a profile the
tree mirrors the home directory: every regular file is a tracked file, and
a directory containing the stub sentinel is tracked as a whole. Nothing is
cached; every call reads the filesystem again.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

import typer

from .exceptions import ConfigError

STUB_FILENAME = ".dotlink.stub"


@dataclass(frozen=True)
class TrackedFile:
    """A single tracked file, relative to the profile root."""

    relative: Path


@dataclass(frozen=True)
class StubDirectory:
    """A directory tracked as a whole, relative to the profile root."""

    relative: Path


TrackedEntry = Union[TrackedFile, StubDirectory]


# ============================================================================
# ENUMERATION
# ============================================================================


REPO_SYMLINK_WARNING = "Warning: ignoring symlink inside repository: {path}"
ADD_SYMLINK_WARNING = "Warning: symlink {path} will be moved as-is and not tracked"


def _walk(
    root: Path, directory: Path, symlink_warning: str = REPO_SYMLINK_WARNING
) -> Iterator[TrackedEntry]:
    for path in sorted(directory.iterdir()):
        relative = path.relative_to(root)

        if path.is_symlink():
            typer.secho(
                symlink_warning.format(path=path),
                fg=typer.colors.YELLOW,
                err=True,
            )
        elif path.is_dir():
            if (path / STUB_FILENAME).is_file():
                # The walk stops here, so a stub nested deeper is never seen.
                yield StubDirectory(relative)
            else:
                yield from _walk(root, path, symlink_warning)
        elif path.is_file():
            if path.name != STUB_FILENAME:
                yield TrackedFile(relative)
        else:
            typer.secho(
                f"Warning: ignoring unsupported file type: {path}",
                fg=typer.colors.YELLOW,
                err=True,
            )


def list_tracked_entries(profile_dir: Path) -> Iterator[TrackedEntry]:
    """Yield every tracked entry of a profile, walking its tree lazily."""
    if not profile_dir.is_dir():
        raise ConfigError(
            f"Profile directory {profile_dir} does not exist", path=profile_dir
        )
    return _walk(profile_dir, profile_dir)


def list_entries_under(directory: Path) -> Iterator[TrackedEntry]:
    """Walk a directory that is about to be added, with paths relative to it."""
    return _walk(directory, directory, ADD_SYMLINK_WARNING)


def find_nested_stubs(profile_dir: Path) -> List[Path]:
    """Stub directories hidden inside another stub directory.

    The outer directory wins: the inner sentinel has no effect, but a
    layout like this is almost certainly a mistake worth reporting.
    """
    nested = []
    for entry in list_tracked_entries(profile_dir):
        if not isinstance(entry, StubDirectory):
            continue
        outer = profile_dir / entry.relative
        for sentinel in sorted(outer.rglob(STUB_FILENAME)):
            if sentinel.parent != outer:
                nested.append(sentinel.parent.relative_to(profile_dir))
    return nested


# ============================================================================
# LOOKUP
# ============================================================================


def enclosing_stub(profile_dir: Path, relative: Path) -> Optional[Path]:
    """Return the outermost stub directory strictly containing ``relative``."""
    for parent in reversed(relative.parents):
        if parent == Path("."):
            continue
        if (profile_dir / parent / STUB_FILENAME).is_file():
            return parent
    return None


def find_entry(profile_dir: Path, relative: Path) -> Optional[TrackedEntry]:
    """Return the tracked entry stored at ``relative``, or None."""
    repo_path = profile_dir / relative

    if repo_path.is_symlink() or relative.name == STUB_FILENAME:
        return None
    if enclosing_stub(profile_dir, relative) is not None:
        return None

    if repo_path.is_dir():
        if (repo_path / STUB_FILENAME).is_file():
            return StubDirectory(relative)
        return None
    if repo_path.is_file():
        return TrackedFile(relative)
    return None


# ============================================================================
# PROFILES
# ============================================================================


def validate_profile_name(name: str) -> None:
    """Profile names are a single, visible path component."""
    if (
        not name
        or name in (".", "..")
        or name.startswith(".")
        or "/" in name
        or "\\" in name
    ):
        raise ConfigError(f"Invalid profile name: '{name}'")


def list_profiles(repo: Path) -> List[str]:
    """Names of all profiles in the repository (hidden directories excluded)."""
    return sorted(
        p.name
        for p in repo.iterdir()
        if p.is_dir() and not p.is_symlink() and not p.name.startswith(".")
    )


def create_profile_dir(repo: Path, name: str) -> Path:
    validate_profile_name(name)
    profile_dir = repo / name
    if profile_dir.exists():
        raise ConfigError(f"Profile '{name}' already exists", path=profile_dir)
    profile_dir.mkdir()
    return profile_dir
