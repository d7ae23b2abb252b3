"""Tests for mapping between system paths and repository paths."""

from pathlib import Path

import pytest

from dotlink.config import Config
from dotlink.exceptions import PathResolutionError
from dotlink.paths import (
    absolute_path,
    repo_to_relative,
    resolve_pair,
    system_to_relative,
    to_repo_path,
    to_system_path,
)


@pytest.fixture
def cfg() -> Config:
    return Config(
        home=Path("/home/u"),
        config_dir=Path("/home/u/.config/dotlink"),
        repo=Path("/r"),
        backup_dir=Path("/home/u/.config/dotlink/backups/1"),
        profile="p",
    )


class TestMapping:
    """Test the lexical mapping functions."""

    def test_to_system_path(self, cfg: Config):
        assert to_system_path(cfg, Path(".bashrc")) == Path("/home/u/.bashrc")

    def test_to_repo_path(self, cfg: Config):
        assert to_repo_path(cfg, "p", Path(".config/nvim")) == Path("/r/p/.config/nvim")

    def test_system_to_relative(self, cfg: Config):
        assert system_to_relative(cfg, Path("/home/u/.config/nvim")) == Path(".config/nvim")

    @pytest.mark.parametrize("path", ["/etc/hosts", "/home/u", "/home/user/.bashrc"])
    def test_system_path_outside_home(self, cfg: Config, path: str):
        with pytest.raises(PathResolutionError, match="not inside the home directory"):
            system_to_relative(cfg, Path(path))

    def test_system_path_inside_repo(self, cfg: Config):
        with pytest.raises(PathResolutionError, match="inside the repository"):
            system_to_relative(cfg, Path("/r/p/.bashrc"))

    def test_repo_under_home_is_not_a_system_path(self, cfg: Config):
        cfg.repo = Path("/home/u/dotfiles")

        with pytest.raises(PathResolutionError, match="inside the repository"):
            system_to_relative(cfg, Path("/home/u/dotfiles/p/.bashrc"))

    def test_repo_to_relative(self, cfg: Config):
        assert repo_to_relative(cfg, "p", Path("/r/p/.bashrc")) == Path(".bashrc")

    @pytest.mark.parametrize("path", ["/r/other/.bashrc", "/r/p", "/r"])
    def test_repo_path_outside_profile(self, cfg: Config, path: str):
        with pytest.raises(PathResolutionError, match="not inside profile 'p'"):
            repo_to_relative(cfg, "p", Path(path))

    @pytest.mark.parametrize("path", ["/home/u/.bashrc", "/r/p/.bashrc"])
    def test_resolve_pair_from_either_side(self, cfg: Config, path: str):
        pair = resolve_pair(cfg, "p", Path(path))

        assert pair.system_path == Path("/home/u/.bashrc")
        assert pair.repo_path == Path("/r/p/.bashrc")
        assert pair.relative == Path(".bashrc")


class TestAbsolutePath:
    """Test normalisation of user-supplied paths."""

    def test_tilde_expands_to_given_home(self, temp_home: Path):
        assert absolute_path(Path("~/.bashrc"), temp_home) == temp_home / ".bashrc"

    def test_relative_to_cwd(self, temp_home: Path):
        (temp_home / ".config").mkdir()

        result = absolute_path(Path("nvim"), temp_home, cwd=temp_home / ".config")

        assert result == temp_home / ".config" / "nvim"

    def test_dot_dot_is_normalised(self, temp_home: Path):
        (temp_home / "a").mkdir()

        assert absolute_path(temp_home / "a" / ".." / ".bashrc", temp_home) == (
            temp_home / ".bashrc"
        )

    def test_final_symlink_is_not_followed(self, temp_home: Path, temp_repo: Path):
        target = temp_repo / "file"
        target.write_text("x")
        link = temp_home / ".link"
        link.symlink_to(target)

        assert absolute_path(link, temp_home) == link

    def test_parent_symlink_is_resolved(self, temp_home: Path, temp_root: Path):
        real = temp_root / "real"
        real.mkdir()
        (temp_home / "alias").symlink_to(real)

        assert absolute_path(temp_home / "alias" / "f", temp_home) == real / "f"
