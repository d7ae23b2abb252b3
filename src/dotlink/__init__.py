"""
dotlink - a symlink-based dotfiles manager for Linux.

dotlink moves configuration files into a repository directory, one
directory per profile, and replaces them with symlinks so the repository
can be version-controlled and shared between machines.
"""

__version__ = "0.1.0"
__license__ = "GPL-3.0-or-later"

from .config import Config, load_config
from .operations import add, new_profile, remove, switch_profile
from .repository import StubDirectory, TrackedFile, list_tracked_entries
from .sync import SyncReport, SyncStatus, sync

__all__ = [
    "Config",
    "load_config",
    "list_tracked_entries",
    "TrackedFile",
    "StubDirectory",
    "sync",
    "SyncReport",
    "SyncStatus",
    "add",
    "remove",
    "new_profile",
    "switch_profile",
]
