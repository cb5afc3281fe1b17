"""Domain models for packages, environments and index metadata."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class DiffType(Enum):
    """Severity of the gap between an installed and a latest version."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Package:
    """An installed package, optionally annotated with its latest release."""

    name: str
    installed_version: str
    latest_version: Optional[str] = None
    diff_type: Optional[DiffType] = None
    is_outdated: bool = False


@dataclass(frozen=True)
class SearchResult:
    """A package found on the index."""

    name: str
    version: str
    summary: str = ""


@dataclass(frozen=True)
class PackageDetail:
    """Full package information including the selectable versions."""

    name: str
    version: str  # latest
    summary: str = ""
    author: str = ""
    license: str = ""
    home_page: str = ""
    requires_python: str = ""
    versions: tuple[str, ...] = ()  # newest first


class FileType(Enum):
    """Kind of dependency file found in a project directory."""

    NONE = "none"
    PYPROJECT_TOML = "pyproject.toml"
    REQUIREMENTS_TXT = "requirements.txt"


@dataclass(frozen=True)
class Project:
    """A detected (or missing) Python project."""

    directory: Path
    file_path: Optional[Path] = None
    file_type: FileType = FileType.NONE

    @property
    def detected(self) -> bool:
        return self.file_type is not FileType.NONE


class EnvType(Enum):
    """Kind of Python environment packages are managed in."""

    NOT_FOUND = "not_found"
    VIRTUALENV = "virtualenv"
    SYSTEM = "system"


@dataclass(frozen=True)
class Virtualenv:
    """The Python environment commands run against."""

    type: EnvType = EnvType.NOT_FOUND
    path: Optional[Path] = None
    python_bin: Optional[Path] = None
    is_active: bool = False  # came from $VIRTUAL_ENV
    is_broken: bool = False  # directory exists but the interpreter is missing

    @property
    def name(self) -> str:
        """Short display name for the status bar."""
        if self.type is EnvType.VIRTUALENV and self.path is not None:
            return self.path.name
        if self.type is EnvType.SYSTEM:
            return "system"
        return "none"


class ManagerType(Enum):
    """Package manager flavour."""

    NONE = "none"
    UV = "uv"
    PIP = "pip"


@dataclass(frozen=True)
class PackageManager:
    """The package manager binary and the argument vectors it understands."""

    type: ManagerType = ManagerType.NONE
    bin_path: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.type is ManagerType.UV:
            return "⚡ uv"
        if self.type is ManagerType.PIP:
            return "pip"
        return "none"

    def _prefix(self) -> list[str]:
        # uv exposes the pip interface as a subcommand
        return ["pip"] if self.type is ManagerType.UV else []

    def install_args(self, spec: str) -> list[str]:
        return self._prefix() + ["install", spec]

    def uninstall_args(self, name: str) -> list[str]:
        if self.type is ManagerType.UV:
            return ["pip", "uninstall", name]
        return ["uninstall", name, "-y"]

    def upgrade_args(self, name: str) -> list[str]:
        return self._prefix() + ["install", "--upgrade", name]

    def list_args(self) -> list[str]:
        return self._prefix() + ["list", "--format", "json"]

    def outdated_args(self) -> list[str]:
        return self._prefix() + ["list", "--outdated", "--format", "json"]


@dataclass
class RunResult:
    """Captured outcome of a package manager invocation."""

    stdout: str = ""
    stderr: str = ""
    error: Optional[Exception] = None
    args: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None
