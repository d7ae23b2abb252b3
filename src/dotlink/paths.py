"""Mapping between system paths and repository paths.

A tracked entry lives at ``<repo>/<profile>/<relative>`` and is linked
from ``<home>/<relative>``. The mapping functions here are purely lexical.
"""

import os
from pathlib import Path
from typing import NamedTuple, Optional

from .config import Config, expand_home
from .exceptions import PathResolutionError


class PathPair(NamedTuple):
    system_path: Path
    repo_path: Path
    relative: Path


def _is_under(path: Path, root: Path) -> bool:
    return path == root or path.is_relative_to(root)


def absolute_path(path: Path, home: Path, cwd: Optional[Path] = None) -> Path:
    """Make a user-supplied path absolute without following its last component.

    The last component is frequently the symlink being managed, so only the
    parent directory is resolved.
    """
    path = expand_home(str(path), home)
    if not path.is_absolute():
        path = (cwd if cwd is not None else Path.cwd()) / path
    path = Path(os.path.normpath(path))
    if path.parent == path:
        return path
    return path.parent.resolve() / path.name


def to_system_path(config: Config, relative: Path) -> Path:
    return config.home / relative


def to_repo_path(config: Config, profile: str, relative: Path) -> Path:
    return config.repo / profile / relative


def system_to_relative(config: Config, system_path: Path) -> Path:
    """Relative entry path for a path on the system side."""
    if _is_under(system_path, config.repo):
        raise PathResolutionError(
            f"{system_path} is inside the repository", path=system_path
        )
    if system_path == config.home or not _is_under(system_path, config.home):
        raise PathResolutionError(
            f"{system_path} is not inside the home directory {config.home}",
            path=system_path,
        )
    return system_path.relative_to(config.home)


def repo_to_relative(config: Config, profile: str, repo_path: Path) -> Path:
    """Relative entry path for a path inside the given profile."""
    profile_dir = config.repo / profile
    if repo_path == profile_dir or not _is_under(repo_path, profile_dir):
        raise PathResolutionError(
            f"{repo_path} is not inside profile '{profile}'", path=repo_path
        )
    return repo_path.relative_to(profile_dir)


def resolve_pair(config: Config, profile: str, path: Path) -> PathPair:
    """Resolve either a system path or a repo path to both sides of an entry."""
    if _is_under(path, config.repo):
        relative = repo_to_relative(config, profile, path)
    else:
        relative = system_to_relative(config, path)

    return PathPair(
        system_path=to_system_path(config, relative),
        repo_path=to_repo_path(config, profile, relative),
        relative=relative,
    )
