"""Events fed to the controller: user input and command results."""

from dataclasses import dataclass
from typing import Optional, Union

from depman.domain.models import (
    Package,
    PackageDetail,
    PackageManager,
    Project,
    SearchResult,
    Virtualenv,
)


@dataclass(frozen=True)
class KeyPressed:
    """A key press, named the way Textual names keys ("up", "ctrl+d", "G")."""

    key: str
    character: Optional[str] = None

    @property
    def text(self) -> Optional[str]:
        """The printable character this key types, if any."""
        if self.character is not None and len(self.character) == 1 and self.character.isprintable():
            return self.character
        if len(self.key) == 1 and self.key.isprintable():
            return self.key
        return None


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class PackagesLoaded:
    installed: tuple[Package, ...] = ()
    outdated: tuple[Package, ...] = ()
    error: Optional[Exception] = None


@dataclass(frozen=True)
class PackageActionDone:
    """Outcome of install/uninstall/upgrade, or the aggregate of an update-all."""

    action: str
    package: str = ""
    error: Optional[Exception] = None
    succeeded: int = 0
    failed: tuple[str, ...] = ()

    @property
    def status(self) -> str:
        if self.error is None:
            label = f"{self.action} {self.package}" if self.package else self.action
            return f"{label} ✓"
        if self.succeeded:
            return f"{self.action}: {self.error}"
        return f"Failed: {self.error}"


@dataclass(frozen=True)
class ProjectCreated:
    project: Optional[Project] = None
    environment: Optional[Virtualenv] = None
    package_manager: Optional[PackageManager] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class SearchResultsReady:
    request_id: int
    query: str
    results: tuple[SearchResult, ...] = ()
    error: Optional[Exception] = None


@dataclass(frozen=True)
class PackageDetailReady:
    request_id: int
    name: str
    detail: Optional[PackageDetail] = None
    error: Optional[Exception] = None


Event = Union[
    KeyPressed,
    Resized,
    PackagesLoaded,
    PackageActionDone,
    ProjectCreated,
    SearchResultsReady,
    PackageDetailReady,
]
