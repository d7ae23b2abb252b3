"""
Custom assertion helpers for dotlink tests.

This module provides specialized assertion functions that make test code
more readable and provide better error messages for common test patterns.
"""

from pathlib import Path
from typing import Union

from dotlink.repository import STUB_FILENAME


def assert_symlink_correct(
    symlink_path: Union[str, Path], target_path: Union[str, Path], message: str = ""
) -> None:
    """
    Assert that a symlink points to the correct target.

    Args:
        symlink_path: Path to the symlink
        target_path: Expected target path
        message: Optional custom error message
    """
    symlink = Path(symlink_path)
    target = Path(target_path)

    assert symlink.is_symlink(), f"Path is not a symlink: {symlink} {message}".strip()
    assert symlink.exists(), f"Symlink is dangling: {symlink} {message}".strip()

    resolved_symlink = symlink.resolve()
    resolved_target = target.resolve()

    assert resolved_symlink == resolved_target, (
        f"Symlink {symlink} points to {resolved_symlink}, "
        f"expected {resolved_target} {message}".strip()
    )


def assert_plain_file(file_path: Union[str, Path], expected_content: str) -> None:
    """Assert that a path is a real file (not a link) with the given content."""
    path = Path(file_path)
    assert not path.is_symlink(), f"Expected a real file, found a symlink: {path}"
    assert path.is_file(), f"File does not exist: {path}"
    actual = path.read_text()
    assert actual == expected_content, (
        f"File content mismatch in {path}:\n"
        f"Expected: {expected_content!r}\n"
        f"Actual: {actual!r}"
    )


def assert_plain_directory(dir_path: Union[str, Path]) -> None:
    """Assert that a path is a real directory carrying no stub sentinel."""
    path = Path(dir_path)
    assert not path.is_symlink(), f"Expected a real directory, found a symlink: {path}"
    assert path.is_dir(), f"Directory does not exist: {path}"
    assert not (path / STUB_FILENAME).exists(), f"Stub sentinel left in {path}"


def assert_not_present(path: Union[str, Path]) -> None:
    """Assert that nothing, not even a dangling symlink, exists at a path."""
    path = Path(path)
    assert not path.exists() and not path.is_symlink(), f"Path should not exist: {path}"
