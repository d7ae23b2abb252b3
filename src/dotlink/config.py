"""Configuration store for dotlink.

Everything an operation needs to know about the outside world is collected
once per invocation into a :class:`Config` and passed down explicitly:
the home directory, the config directory, the repository root, the active
profile and the backup area used by forced syncs.
"""

import os
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w

from .exceptions import ConfigError
from .repository import validate_profile_name

# Constants
CONFIG_DIR_ENV = "DOTLINK_CONFIG_DIR"
CONFIG_FILENAME = "config.toml"
ACTIVE_PROFILE_FILENAME = "profile.active.toml"
BACKUP_DIR_NAME = "backups"


# ============================================================================
# PATH MANAGEMENT
# ============================================================================


def get_home_dir() -> Path:
    """Get the home directory, respecting environment variables for testing."""
    if "HOME" in os.environ:
        return Path(os.environ["HOME"])
    return Path.home()


def expand_home(value: str, home_dir: Path) -> Path:
    """Expand a leading ``~`` against ``home_dir`` rather than the process user."""
    if value == "~":
        return home_dir
    if value.startswith("~/"):
        return home_dir / value[2:]
    return Path(value)


def get_config_dir(
    config_dir: Optional[Path] = None, home_dir: Optional[Path] = None
) -> Path:
    """Pick the config directory: explicit argument, environment, then default."""
    if home_dir is None:
        home_dir = get_home_dir()

    if config_dir is not None:
        return expand_home(str(config_dir), home_dir)
    if os.environ.get(CONFIG_DIR_ENV):
        return expand_home(os.environ[CONFIG_DIR_ENV], home_dir)
    return home_dir / ".config" / "dotlink"


def get_dotlink_paths(
    config_dir: Optional[Path] = None, home_dir: Optional[Path] = None
) -> Dict[str, Path]:
    """Get all dotlink-related paths based on home and config directory."""
    if home_dir is None:
        home_dir = get_home_dir()
    config_dir = get_config_dir(config_dir, home_dir)

    return {
        "home": home_dir,
        "config_dir": config_dir,
        "config_file": config_dir / CONFIG_FILENAME,
        "profile_file": config_dir / ACTIVE_PROFILE_FILENAME,
        "backup_root": config_dir / BACKUP_DIR_NAME,
    }


# ============================================================================
# CONFIG STRUCT
# ============================================================================


@dataclass
class Config:
    """Settings for one invocation."""

    home: Path
    config_dir: Path
    repo: Path
    backup_dir: Path
    profile: Optional[str] = None

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    @property
    def profile_file(self) -> Path:
        return self.config_dir / ACTIVE_PROFILE_FILENAME

    def repo_root(self) -> Path:
        return self.repo

    def active_profile(self) -> str:
        """Name of the active profile; ``ConfigError`` when none is set."""
        if self.profile is None:
            raise ConfigError(
                "No active profile. Create one with 'dotlink new-profile <name>' "
                "or select one with 'dotlink switch-profile <name>'.",
                path=self.profile_file,
            )
        return self.profile

    def profile_dir(self, name: Optional[str] = None) -> Path:
        return self.repo / (name if name is not None else self.active_profile())


# ============================================================================
# LOADING AND SAVING
# ============================================================================


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {path}: {e}", path=path) from e
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}", path=path) from e


def read_active_profile(profile_file: Path) -> Optional[str]:
    """Read the active-profile marker, or None if it was never written."""
    if not profile_file.exists():
        return None

    data = _read_toml(profile_file)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigError(
            f"Active profile marker {profile_file} has no 'name' entry",
            path=profile_file,
        )
    validate_profile_name(name)
    return name


def load_config(
    config_dir: Optional[Path] = None, home_dir: Optional[Path] = None
) -> Config:
    """Load config.toml and the active-profile marker into a Config."""
    paths = get_dotlink_paths(config_dir, home_dir)
    config_file = paths["config_file"]

    if not config_file.exists():
        raise ConfigError(
            f"Config file {config_file} not found. Create a repository directory "
            "and run 'dotlink init <repo>'.",
            path=config_file,
        )

    data = _read_toml(config_file)
    repo_value = data.get("repo")
    if not isinstance(repo_value, str) or not repo_value:
        raise ConfigError(
            f"Config file {config_file} must set 'repo' to a path", path=config_file
        )

    home = paths["home"].resolve()
    repo = expand_home(repo_value, home)
    if not repo.is_absolute():
        raise ConfigError(f"Repository path must be absolute: {repo_value}")
    if not repo.is_dir():
        raise ConfigError(f"Repository directory {repo} does not exist", path=repo)

    millis = int(time.time() * 1000)

    return Config(
        home=home,
        config_dir=paths["config_dir"],
        repo=repo.resolve(),
        backup_dir=paths["backup_root"] / str(millis),
        profile=read_active_profile(paths["profile_file"]),
    )


def write_active_profile(config: Config, name: str) -> None:
    """Persist ``name`` as the active profile and update ``config`` in place."""
    config.config_dir.mkdir(parents=True, exist_ok=True)
    with open(config.profile_file, "wb") as f:
        tomli_w.dump({"name": name}, f)
    config.profile = name


def init_config(
    repo: Path,
    config_dir: Optional[Path] = None,
    home_dir: Optional[Path] = None,
    force: bool = False,
) -> Path:
    """Write config.toml pointing at ``repo`` and create the repo directory."""
    paths = get_dotlink_paths(config_dir, home_dir)
    config_file = paths["config_file"]

    if config_file.exists() and not force:
        raise ConfigError(
            f"Config file {config_file} already exists (use --force to overwrite)",
            path=config_file,
        )

    repo = expand_home(str(repo), paths["home"])
    if not repo.is_absolute():
        repo = Path.cwd() / repo
    repo.mkdir(parents=True, exist_ok=True)

    paths["config_dir"].mkdir(parents=True, exist_ok=True)
    with open(config_file, "wb") as f:
        tomli_w.dump({"repo": str(repo.resolve())}, f)

    return config_file
