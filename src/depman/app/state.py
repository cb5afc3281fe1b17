"""Application state management."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from depman.config import Config
from depman.domain.models import Package, PackageManager, Project, Virtualenv

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 24

MIN_PANEL_HEIGHT = 5
DASHBOARD_RESERVED_LINES = 4
DASHBOARD_PADDING_LINES = 4
HALF_PAGE_DIVISOR = 2


class Screen(Enum):
    """Top-level interactive mode."""

    INIT = "init"
    DASHBOARD = "dashboard"
    SEARCH = "search"
    HELP = "help"


class Panel(Enum):
    """Dashboard list that has focus."""

    INSTALLED = "installed"
    OUTDATED = "outdated"


@dataclass
class AppState:
    """Mutable root owned by the controller for the lifetime of the process."""

    screen: Screen
    project: Project
    environment: Virtualenv
    package_manager: PackageManager
    config: Config = field(default_factory=Config)
    installed: tuple[Package, ...] = ()
    outdated: tuple[Package, ...] = ()
    active_panel: Panel = Panel.INSTALLED
    status_message: str = ""
    is_loading: bool = False
    width: int = 0  # 0 until the first resize event
    height: int = 0
    pending_version_change: Optional[str] = None
    should_quit: bool = False

    @classmethod
    def initial(
        cls,
        project: Project,
        environment: Virtualenv,
        package_manager: PackageManager,
        config: Optional[Config] = None,
    ) -> "AppState":
        """Build the starting state: Dashboard when a dependency file exists, Init otherwise."""
        if project.detected:
            logger.debug("project detected: %s (%s)", project.file_path, project.file_type.value)
            screen = Screen.DASHBOARD
        else:
            logger.debug("no project detected, showing init screen")
            screen = Screen.INIT
        return cls(
            screen=screen,
            project=project,
            environment=environment,
            package_manager=package_manager,
            config=config or Config(),
        )

    @property
    def sized(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def effective_width(self) -> int:
        return self.width or DEFAULT_WIDTH

    @property
    def effective_height(self) -> int:
        return self.height or DEFAULT_HEIGHT

    def viewable_height(self) -> int:
        """Rows available to each dashboard list."""
        return max(
            MIN_PANEL_HEIGHT,
            self.effective_height - DASHBOARD_RESERVED_LINES - DASHBOARD_PADDING_LINES,
        )

    def switch_to(self, screen: Screen) -> None:
        if screen is not self.screen:
            logger.debug("screen changed: %s -> %s", self.screen.value, screen.value)
        self.screen = screen

    def take_pending_version_change(self) -> Optional[str]:
        """Return the pending version-change target and clear it."""
        target = self.pending_version_change
        self.pending_version_change = None
        return target
