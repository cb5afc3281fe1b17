"""Protocols (interfaces) for the command runner and the package index."""

import threading
from typing import Optional, Protocol

from depman.domain.models import PackageDetail, RunResult, SearchResult


class CommandRunner(Protocol):
    """Protocol for package manager command execution."""

    def install(self, spec: str) -> RunResult:
        """Install a requirement specifier."""
        ...

    def uninstall(self, name: str) -> RunResult:
        """Remove a package."""
        ...

    def upgrade(self, name: str) -> RunResult:
        """Upgrade a package to its latest version."""
        ...

    def list_packages(self) -> RunResult:
        """Return the JSON listing of installed packages."""
        ...

    def list_outdated(self) -> RunResult:
        """Return the JSON listing of outdated packages."""
        ...


class IndexClient(Protocol):
    """Protocol for package index lookups."""

    def get_package(
        self, name: str, cancel: Optional[threading.Event] = None
    ) -> Optional[SearchResult]:
        """Fetch a single package, None when the index does not know it."""
        ...

    def get_package_detail(
        self, name: str, cancel: Optional[threading.Event] = None
    ) -> Optional[PackageDetail]:
        """Fetch full package detail, None when the index does not know it."""
        ...

    def search(
        self, query: str, cancel: Optional[threading.Event] = None
    ) -> list[SearchResult]:
        """Search for packages matching the query."""
        ...
