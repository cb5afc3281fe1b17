"""Dependency file detection."""

import logging
from pathlib import Path

from depman.domain.models import FileType, Project

logger = logging.getLogger(__name__)


def detect_project(directory: str | Path) -> Project:
    """
    Scan a directory for a Python dependency file.

    Detection order: pyproject.toml, requirements.txt, then the first
    requirements/*.txt in name order.

    Args:
        directory: Directory to scan

    Returns:
        Project describing the file found, or an undetected Project for the directory
    """
    root = Path(directory).resolve()

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        logger.debug("detected %s", pyproject)
        return Project(directory=root, file_path=pyproject, file_type=FileType.PYPROJECT_TOML)

    requirements = root / "requirements.txt"
    if requirements.is_file():
        logger.debug("detected %s", requirements)
        return Project(
            directory=root, file_path=requirements, file_type=FileType.REQUIREMENTS_TXT
        )

    requirements_dir = root / "requirements"
    if requirements_dir.is_dir():
        for candidate in sorted(requirements_dir.glob("*.txt")):
            if candidate.is_file():
                logger.debug("detected %s", candidate)
                return Project(
                    directory=root, file_path=candidate, file_type=FileType.REQUIREMENTS_TXT
                )

    logger.debug("no dependency file in %s", root)
    return Project(directory=root)
