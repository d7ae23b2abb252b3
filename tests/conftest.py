"""Shared pytest fixtures and configuration."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from dotlink.config import Config, load_config, write_active_profile


@pytest.fixture
def temp_root() -> Generator[Path, None, None]:
    """Create a temporary directory holding a fake home and a repository."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def temp_home(temp_root: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory and point $HOME at it."""
    home = temp_root / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("DOTLINK_CONFIG_DIR", raising=False)
    return home


@pytest.fixture
def temp_repo(temp_root: Path) -> Path:
    """Create an empty repository directory outside the home directory."""
    repo = temp_root / "repo"
    repo.mkdir()
    return repo


@pytest.fixture
def config_dir(temp_root: Path, temp_home: Path, temp_repo: Path) -> Path:
    """Write a config.toml pointing at the temporary repository."""
    config_dir = temp_root / "config"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(f'repo = "{temp_repo}"\n')
    return config_dir


@pytest.fixture
def config(config_dir: Path, temp_repo: Path) -> Config:
    """Loaded config with an empty, active profile named 'p'."""
    (temp_repo / "p").mkdir()
    cfg = load_config(config_dir)
    write_active_profile(cfg, "p")
    return cfg


@pytest.fixture
def profile_dir(config: Config) -> Path:
    return config.profile_dir()
