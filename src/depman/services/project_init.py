"""Creation of a new dependency file for a directory without one."""

import logging
from pathlib import Path

from depman.domain.exceptions import ProjectInitError
from depman.domain.models import FileType, Project

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.1.0"

PYPROJECT_TEMPLATE = """[project]
name = "{name}"
version = "{version}"
requires-python = ">=3.8"
dependencies = [
    # Generated by depman
]
"""

REQUIREMENTS_HEADER = "# Generated by depman, do not edit manually\n"


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error("failed to write %s: %s", path, e)
        raise ProjectInitError(f"Failed to create {path.name}: {e}") from e
    logger.info("created %s", path)


def create_pyproject(directory: Path, name: str, version: str = DEFAULT_VERSION) -> Project:
    """
    Write a minimal pyproject.toml.

    Raises:
        ProjectInitError: If the file cannot be written
    """
    path = Path(directory) / "pyproject.toml"
    _write(path, PYPROJECT_TEMPLATE.format(name=name, version=version or DEFAULT_VERSION))
    return Project(directory=Path(directory), file_path=path, file_type=FileType.PYPROJECT_TOML)


def create_requirements(directory: Path) -> Project:
    """
    Write a requirements.txt holding only a header comment.

    Raises:
        ProjectInitError: If the file cannot be written
    """
    path = Path(directory) / "requirements.txt"
    _write(path, REQUIREMENTS_HEADER)
    return Project(
        directory=Path(directory), file_path=path, file_type=FileType.REQUIREMENTS_TXT
    )
