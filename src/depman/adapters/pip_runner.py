"""Package manager adapter: runs pip/uv and parses their JSON listings."""

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from depman.domain.exceptions import CommandError, PackageListError
from depman.domain.models import (
    EnvType,
    ManagerType,
    Package,
    PackageManager,
    RunResult,
    Virtualenv,
)
from depman.domain.versions import compute_diff

logger = logging.getLogger(__name__)


def build_environment(venv: Optional[Virtualenv], base: Optional[dict] = None) -> dict:
    """
    Build the process environment for a package manager call.

    When the target is a virtualenv with a known path, VIRTUAL_ENV points at
    it and its bin directory is put first on PATH.
    """
    env = dict(os.environ if base is None else base)
    if venv is None or venv.type is not EnvType.VIRTUALENV or venv.path is None:
        return env

    env["VIRTUAL_ENV"] = str(venv.path)
    bin_dir = str(Path(venv.path) / "bin")
    current_path = env.get("PATH", "")
    env["PATH"] = bin_dir + os.pathsep + current_path if current_path else bin_dir
    return env


class PipRunner:
    """Executes package manager commands against one environment."""

    def __init__(self, manager: PackageManager, venv: Optional[Virtualenv] = None):
        self.manager = manager
        self.venv = venv

    def run(self, bin_path: Optional[str], args: list[str]) -> RunResult:
        """
        Run a binary with captured text output.

        Never raises: a missing binary or non-zero exit is reported through
        RunResult.error as a CommandError carrying stderr.
        """
        result = RunResult(args=list(args))
        if not bin_path:
            result.error = CommandError("No package manager found")
            return result

        logger.info("running %s %s", bin_path, " ".join(args))
        try:
            completed = subprocess.run(
                [bin_path, *args],
                capture_output=True,
                text=True,
                env=build_environment(self.venv),
            )
        except FileNotFoundError:
            result.error = CommandError(f"Package manager not found: {bin_path}")
            logger.warning("package manager binary missing: %s", bin_path)
            return result
        except OSError as e:
            result.error = CommandError(f"Failed to run {bin_path}: {e}")
            logger.warning("failed to run %s: %s", bin_path, e)
            return result

        result.stdout = completed.stdout or ""
        result.stderr = completed.stderr or ""
        if completed.returncode != 0:
            message = result.stderr.strip() or f"exit status {completed.returncode}"
            result.error = CommandError(
                message, stderr=result.stderr, returncode=completed.returncode
            )
            logger.warning(
                "command failed (exit %d): %s %s",
                completed.returncode,
                bin_path,
                " ".join(args),
            )
        return result

    def _run_manager(self, args: list[str]) -> RunResult:
        if self.manager.type is ManagerType.NONE:
            return RunResult(args=list(args), error=CommandError("No package manager found"))
        return self.run(self.manager.bin_path, args)

    def install(self, spec: str) -> RunResult:
        return self._run_manager(self.manager.install_args(spec))

    def uninstall(self, name: str) -> RunResult:
        return self._run_manager(self.manager.uninstall_args(name))

    def upgrade(self, name: str) -> RunResult:
        return self._run_manager(self.manager.upgrade_args(name))

    def list_packages(self) -> RunResult:
        return self._run_manager(self.manager.list_args())

    def list_outdated(self) -> RunResult:
        return self._run_manager(self.manager.outdated_args())


def _load_entries(output: str) -> list[dict]:
    if not output.strip():
        return []
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise PackageListError(f"Failed to parse package list: {e}")
    if not isinstance(data, list):
        raise PackageListError("Failed to parse package list: expected a JSON array")
    return [entry for entry in data if isinstance(entry, dict)]


def parse_package_list(output: str) -> list[Package]:
    """
    Parse `list --format json` output.

    Raises:
        PackageListError: If the output is not a JSON array
    """
    return [
        Package(name=entry.get("name", ""), installed_version=entry.get("version", ""))
        for entry in _load_entries(output)
    ]


def parse_outdated_list(output: str) -> list[Package]:
    """
    Parse `list --outdated --format json` output.

    Raises:
        PackageListError: If the output is not a JSON array
    """
    packages = []
    for entry in _load_entries(output):
        current = entry.get("version", "")
        latest = entry.get("latest_version", "")
        packages.append(
            Package(
                name=entry.get("name", ""),
                installed_version=current,
                latest_version=latest,
                diff_type=compute_diff(current, latest),
                is_outdated=True,
            )
        )
    return packages


def annotate_installed(installed: list[Package], outdated: list[Package]) -> list[Package]:
    """Copy latest-version information from the outdated list onto installed entries."""
    by_name = {package.name.lower(): package for package in outdated}
    annotated = []
    for package in installed:
        match = by_name.get(package.name.lower())
        if match is None:
            annotated.append(package)
            continue
        annotated.append(
            Package(
                name=package.name,
                installed_version=package.installed_version,
                latest_version=match.latest_version,
                diff_type=match.diff_type,
                is_outdated=True,
            )
        )
    return annotated
