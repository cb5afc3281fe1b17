"""User configuration: TOML file plus environment overrides."""

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MIRROR = "https://pypi.org"
DEFAULT_THEME = "tokyo-night"
DEFAULT_LOG_LEVEL = "info"

MIRROR_ENV = "DEPMAN_PYPI_MIRROR"
MANAGER_ENV = "DEPMAN_PACKAGE_MANAGER"
LOG_LEVEL_ENV = "DEPMAN_LOG_LEVEL"
LOG_FILE_ENV = "DEPMAN_LOG_FILE"


@dataclass(frozen=True)
class Config:
    """Resolved user configuration."""

    preferred_manager: str = ""  # "uv" | "pip" | "pip3" | "" for auto-detect
    pypi_mirror: str = DEFAULT_MIRROR
    theme: str = DEFAULT_THEME
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None


def config_path() -> Path:
    """Location of config.toml, honouring XDG_CONFIG_HOME."""
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "depman" / "config.toml"


def _section(data: dict, name: str) -> dict:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _string(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration, falling back to defaults.

    A missing file yields defaults silently; an unreadable or malformed file
    is logged and also yields defaults. Environment variables override the
    file, and empty values fall back to defaults.
    """
    path = path if path is not None else config_path()
    data: dict = {}
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        pass
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("ignoring config file %s: %s", path, e)

    preferred = _string(_section(data, "package_manager").get("preferred"))
    mirror = _string(_section(data, "pypi").get("mirror")) or DEFAULT_MIRROR
    theme = _string(_section(data, "theme").get("name")) or DEFAULT_THEME
    log_level = _string(data.get("log_level")) or DEFAULT_LOG_LEVEL

    config = Config(
        preferred_manager=preferred,
        pypi_mirror=mirror,
        theme=theme,
        log_level=log_level,
    )
    return apply_environment(config)


def apply_environment(config: Config) -> Config:
    """Apply DEPMAN_* environment overrides."""
    log_file = os.getenv(LOG_FILE_ENV)
    return replace(
        config,
        pypi_mirror=os.getenv(MIRROR_ENV) or config.pypi_mirror,
        preferred_manager=os.getenv(MANAGER_ENV) or config.preferred_manager,
        log_level=os.getenv(LOG_LEVEL_ENV) or config.log_level,
        log_file=Path(log_file).expanduser() if log_file else config.log_file,
    )


def apply_overrides(
    config: Config,
    *,
    mirror: Optional[str] = None,
    manager: Optional[str] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> Config:
    """Apply command-line overrides; None leaves a value untouched."""
    return replace(
        config,
        pypi_mirror=mirror or config.pypi_mirror,
        preferred_manager=manager if manager is not None else config.preferred_manager,
        log_level=log_level or config.log_level,
        log_file=Path(log_file).expanduser() if log_file else config.log_file,
    )
