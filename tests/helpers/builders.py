"""
Test data builders for dotlink tests.

Builders create profile trees and home-directory files with generated
content, so tests only spell out the layout they care about.
"""

from pathlib import Path
from typing import Dict, Optional

from faker import Faker

from dotlink.repository import STUB_FILENAME

fake = Faker()


def create_test_files(base_dir: Path, files: Dict[str, str]) -> None:
    """Create files with the given content below ``base_dir``."""
    for rel_path, content in files.items():
        path = base_dir / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def snapshot_tree(root: Path) -> Dict[str, Optional[str]]:
    """Map every path below ``root`` to its content (None for directories).

    Symlinks are recorded by target so that a snapshot taken before and
    after an operation detects any change at all.
    """
    snapshot: Dict[str, Optional[str]] = {}
    for path in sorted(root.rglob("*")):
        key = path.relative_to(root).as_posix()
        if path.is_symlink():
            snapshot[key] = f"-> {path.readlink()}"
        elif path.is_dir():
            snapshot[key] = None
        else:
            snapshot[key] = path.read_text()
    return snapshot


class ProfileBuilder:
    """Builder for a profile tree inside the repository."""

    def __init__(self, profile_dir: Path):
        self.profile_dir = profile_dir
        self.contents: Dict[str, str] = {}

    def with_file(self, rel_path: str, content: Optional[str] = None) -> "ProfileBuilder":
        """Add a tracked file."""
        self.contents[rel_path] = content if content is not None else fake.text()
        return self

    def with_stub_dir(
        self, rel_path: str, files: Optional[Dict[str, str]] = None
    ) -> "ProfileBuilder":
        """Add a directory tracked as a whole."""
        if files is None:
            files = {fake.file_name(extension="conf"): fake.text()}
        for name, content in files.items():
            self.contents[f"{rel_path}/{name}"] = content
        self.contents[f"{rel_path}/{STUB_FILENAME}"] = ""
        return self

    def build(self) -> Path:
        self.profile_dir.mkdir(parents=True, exist_ok=True)
        create_test_files(self.profile_dir, self.contents)
        return self.profile_dir


class HomeBuilder:
    """Builder for real files in the home directory."""

    def __init__(self, home: Path):
        self.home = home
        self.contents: Dict[str, str] = {}

    def with_file(self, rel_path: str, content: Optional[str] = None) -> "HomeBuilder":
        self.contents[rel_path] = content if content is not None else fake.text()
        return self

    def with_dir(self, rel_path: str, files: Dict[str, str]) -> "HomeBuilder":
        for name, content in files.items():
            self.contents[f"{rel_path}/{name}"] = content
        return self

    def build(self) -> Path:
        create_test_files(self.home, self.contents)
        return self.home
