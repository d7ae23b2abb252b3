"""Exception classes for dotlink - a symlink-based dotfiles manager."""

from pathlib import Path
from typing import List, Optional, Sequence


class DotlinkError(Exception):
    """Base exception for all dotlink-related errors."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path

    @property
    def kind(self) -> str:
        """Short error kind shown by the CLI."""
        return type(self).__name__


class ConfigError(DotlinkError):
    """Missing or malformed config file, active-profile marker or profile."""

    pass


class PathResolutionError(DotlinkError):
    """Raised when a path cannot be mapped between system and repository."""

    pass


class NotTrackedError(PathResolutionError):
    """Raised when a path has no tracked entry in the active profile."""

    pass


class NotFoundError(DotlinkError):
    """Raised when the path to add does not exist."""

    pass


class MoveError(DotlinkError):
    """Raised when content cannot be relocated; the source is left untouched."""

    pass


class UnexpectedStateError(DotlinkError):
    """Raised when the filesystem is not in the state an operation requires."""

    pass


class ConflictError(DotlinkError):
    """Raised when sync found occupied system paths and was not forced."""

    def __init__(self, message: str, paths: Sequence[Path] = ()) -> None:
        super().__init__(message, path=paths[0] if paths else None)
        self.paths: List[Path] = list(paths)
