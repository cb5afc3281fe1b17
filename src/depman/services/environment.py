"""Virtualenv and package manager detection."""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from depman.domain.models import EnvType, ManagerType, PackageManager, Virtualenv

logger = logging.getLogger(__name__)


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _check_local_venv(path: Path) -> Optional[Virtualenv]:
    if not path.is_dir():
        return None
    python_bin = path / "bin" / "python"
    if _is_executable(python_bin):
        return Virtualenv(type=EnvType.VIRTUALENV, path=path, python_bin=python_bin)
    # Directory exists but the interpreter is gone
    logger.warning("virtualenv at %s has no interpreter", path)
    return Virtualenv(type=EnvType.VIRTUALENV, path=path, is_broken=True)


def detect_virtualenv(directory: str | Path) -> Virtualenv:
    """
    Resolve the Python environment packages are managed in.

    Priority: $VIRTUAL_ENV, then .venv/ and venv/ under the directory, then
    the system python3/python found on PATH.
    """
    root = Path(directory).resolve()

    active = os.getenv("VIRTUAL_ENV")
    if active:
        venv_path = Path(active)
        python_bin = venv_path / "bin" / "python"
        if _is_executable(python_bin):
            return Virtualenv(
                type=EnvType.VIRTUALENV,
                path=venv_path,
                python_bin=python_bin,
                is_active=True,
            )
        logger.warning("$VIRTUAL_ENV points at a broken environment: %s", venv_path)
        return Virtualenv(
            type=EnvType.VIRTUALENV, path=venv_path, is_active=True, is_broken=True
        )

    for name in (".venv", "venv"):
        found = _check_local_venv(root / name)
        if found is not None:
            return found

    for name in ("python3", "python"):
        located = shutil.which(name)
        if located:
            python_bin = Path(located)
            return Virtualenv(
                type=EnvType.SYSTEM, path=python_bin.parent, python_bin=python_bin
            )

    return Virtualenv(type=EnvType.NOT_FOUND)


def detect_package_manager(preferred: str = "") -> PackageManager:
    """
    Find a package manager binary.

    A preferred binary wins when it is on PATH; otherwise uv, pip and pip3
    are tried in that order.
    """
    if preferred:
        located = shutil.which(preferred)
        if located:
            manager_type = ManagerType.UV if preferred == "uv" else ManagerType.PIP
            return PackageManager(type=manager_type, bin_path=located)
        logger.warning("preferred package manager %r not found on PATH", preferred)

    candidates = (("uv", ManagerType.UV), ("pip", ManagerType.PIP), ("pip3", ManagerType.PIP))
    for binary, manager_type in candidates:
        located = shutil.which(binary)
        if located:
            return PackageManager(type=manager_type, bin_path=located)

    return PackageManager(type=ManagerType.NONE)
