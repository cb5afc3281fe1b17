"""Commands: deferred units of work whose completion re-enters the controller as an event.

Every command body runs off the UI loop, touches only the inputs captured
when it was built, and always returns an event; failures travel inside the
event instead of being raised.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from depman.adapters.pip_runner import (
    annotate_installed,
    parse_outdated_list,
    parse_package_list,
)
from depman.domain.exceptions import CommandError, DepmanError
from depman.domain.models import FileType, Project
from depman.domain.protocols import CommandRunner, IndexClient
from depman.app.events import (
    Event,
    PackageActionDone,
    PackageDetailReady,
    PackagesLoaded,
    ProjectCreated,
    SearchResultsReady,
)
from depman.services import project_init
from depman.services.environment import detect_package_manager, detect_virtualenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    """A named deferred operation."""

    name: str
    run: Callable[[], Event]
    mutating: bool = False
    on_error: Optional[Callable[[Exception], Event]] = None

    def execute(self) -> Event:
        """Run the body, turning an unexpected exception into its failure event."""
        try:
            return self.run()
        except Exception as e:
            if self.on_error is None:
                raise
            logger.exception("command %s failed unexpectedly", self.name)
            return self.on_error(e)


@dataclass
class Services:
    """Collaborators commands are built against."""

    runner: CommandRunner
    index: IndexClient


def load_packages(runner: CommandRunner) -> Command:
    """List installed and outdated packages."""

    def run() -> Event:
        listed = runner.list_packages()
        if listed.error is not None:
            return PackagesLoaded(error=listed.error)
        try:
            installed = parse_package_list(listed.stdout)
        except DepmanError as e:
            return PackagesLoaded(error=e)

        checked = runner.list_outdated()
        if checked.error is not None:
            return PackagesLoaded(error=checked.error)
        try:
            outdated = parse_outdated_list(checked.stdout)
        except DepmanError as e:
            return PackagesLoaded(error=e)

        logger.debug("packages loaded: %d installed, %d outdated", len(installed), len(outdated))
        return PackagesLoaded(
            installed=tuple(annotate_installed(installed, outdated)),
            outdated=tuple(outdated),
        )

    return Command(
        "load_packages", run, mutating=True, on_error=lambda e: PackagesLoaded(error=e)
    )


def install_package(runner: CommandRunner, spec: str, label: Optional[str] = None) -> Command:
    def run() -> Event:
        result = runner.install(spec)
        return PackageActionDone("installed", label or spec, error=result.error)

    return Command(
        "install",
        run,
        mutating=True,
        on_error=lambda e: PackageActionDone("installed", label or spec, error=e),
    )


def uninstall_package(runner: CommandRunner, name: str) -> Command:
    def run() -> Event:
        result = runner.uninstall(name)
        return PackageActionDone("uninstalled", name, error=result.error)

    return Command(
        "uninstall",
        run,
        mutating=True,
        on_error=lambda e: PackageActionDone("uninstalled", name, error=e),
    )


def upgrade_package(runner: CommandRunner, name: str) -> Command:
    def run() -> Event:
        result = runner.upgrade(name)
        return PackageActionDone("updated", name, error=result.error)

    return Command(
        "upgrade",
        run,
        mutating=True,
        on_error=lambda e: PackageActionDone("updated", name, error=e),
    )


def upgrade_all(runner: CommandRunner, names: tuple[str, ...]) -> Command:
    """
    Upgrade every package in the snapshot, one after another.

    A failure does not stop the remaining upgrades; one aggregate event is
    produced with the success count and the names that failed.
    """

    def run() -> Event:
        failed: list[str] = []
        succeeded = 0
        for name in names:
            result = runner.upgrade(name)
            if result.error is not None:
                logger.warning("upgrade of %s failed: %s", name, result.error)
                failed.append(name)
            else:
                succeeded += 1

        if failed:
            return PackageActionDone(
                f"updated {succeeded}, failed {len(failed)}",
                error=CommandError(f"packages: update failed: {', '.join(failed)}"),
                succeeded=succeeded,
                failed=tuple(failed),
            )
        return PackageActionDone(f"updated {succeeded}", succeeded=succeeded)

    return Command(
        "upgrade_all",
        run,
        mutating=True,
        on_error=lambda e: PackageActionDone("updated", error=e, failed=names),
    )


def search_index(
    index: IndexClient, query: str, request_id: int, cancel: threading.Event
) -> Command:
    def run() -> Event:
        try:
            results = index.search(query, cancel)
        except DepmanError as e:
            return SearchResultsReady(request_id, query, error=e)
        return SearchResultsReady(request_id, query, results=tuple(results))

    return Command(
        "search",
        run,
        on_error=lambda e: SearchResultsReady(request_id, query, error=e),
    )


def fetch_package_detail(
    index: IndexClient, name: str, request_id: int, cancel: threading.Event
) -> Command:
    def run() -> Event:
        try:
            detail = index.get_package_detail(name, cancel)
        except DepmanError as e:
            return PackageDetailReady(request_id, name, error=e)
        if detail is None:
            return PackageDetailReady(
                request_id, name, error=DepmanError(f"Package not found: {name}")
            )
        return PackageDetailReady(request_id, name, detail=detail)

    return Command(
        "fetch_detail",
        run,
        on_error=lambda e: PackageDetailReady(request_id, name, error=e),
    )


def create_project(
    directory: Path,
    file_type: FileType,
    name: str = "",
    version: str = project_init.DEFAULT_VERSION,
    preferred_manager: str = "",
) -> Command:
    """Write a new dependency file, then re-detect the environment and manager."""

    def run() -> Event:
        try:
            if file_type is FileType.PYPROJECT_TOML:
                project: Project = project_init.create_pyproject(directory, name, version)
            else:
                project = project_init.create_requirements(directory)
        except DepmanError as e:
            return ProjectCreated(error=e)
        return ProjectCreated(
            project=project,
            environment=detect_virtualenv(directory),
            package_manager=detect_package_manager(preferred_manager),
        )

    return Command("create_project", run, on_error=lambda e: ProjectCreated(error=e))
