"""Screen state machine: routes events to screens and owns transitions."""

import logging
from typing import Callable, Optional

from depman.app.commands import Command, Services, load_packages
from depman.app.events import (
    Event,
    KeyPressed,
    PackageActionDone,
    PackageDetailReady,
    PackagesLoaded,
    ProjectCreated,
    Resized,
    SearchResultsReady,
)
from depman.app.screens import dashboard, init, search
from depman.app.screens import help as help_screen
from depman.app.state import AppState, Screen
from depman.domain.models import PackageManager, Virtualenv
from depman.domain.protocols import CommandRunner

logger = logging.getLogger(__name__)

RunnerFactory = Callable[[PackageManager, Virtualenv], CommandRunner]


class Controller:
    """
    Owns the application state and every per-screen state.

    handle() processes one event synchronously and returns the commands the
    host must run off the UI loop. Each command's result comes back through
    handle() as another event.
    """

    def __init__(
        self,
        state: AppState,
        services: Services,
        runner_factory: Optional[RunnerFactory] = None,
    ):
        self.state = state
        self.services = services
        self.runner_factory = runner_factory
        self.dashboard = dashboard.DashboardState()
        self.search = search.SearchState()
        self.init = init.InitState.for_app(state)

    # -- lifecycle -------------------------------------------------------

    def start(self) -> list[Command]:
        """Commands to run at startup: the initial package load on the Dashboard."""
        if self.state.screen is Screen.DASHBOARD:
            return self._dispatch([load_packages(self.services.runner)])
        return []

    def _dispatch(self, commands: list[Command]) -> list[Command]:
        mutating = [command for command in commands if command.mutating]
        if mutating:
            self.state.is_loading = True
        return commands

    # -- routing -----------------------------------------------------------

    def handle(self, event: Event) -> list[Command]:
        """Apply one event and return the commands it produced."""
        if isinstance(event, KeyPressed):
            return self._dispatch(self._handle_key(event))
        if isinstance(event, Resized):
            self.state.width = event.width
            self.state.height = event.height
            dashboard.reclamp(self.dashboard, self.state)
            return []
        if isinstance(event, PackagesLoaded):
            return self._packages_loaded(event)
        if isinstance(event, PackageActionDone):
            return self._package_action_done(event)
        if isinstance(event, ProjectCreated):
            return self._dispatch(self._project_created(event))
        if isinstance(event, SearchResultsReady):
            if self.state.screen is Screen.SEARCH:
                search.apply_results(self.search, event)
            return []
        if isinstance(event, PackageDetailReady):
            if self.state.screen is Screen.SEARCH:
                search.apply_detail(self.search, event)
            return []
        logger.debug("ignoring unknown event %r", event)
        return []

    def _text_entry_active(self) -> bool:
        screen = self.state.screen
        if screen is Screen.DASHBOARD:
            return self.dashboard.captures_text
        if screen is Screen.INIT:
            return self.init.captures_text
        return screen is Screen.SEARCH

    def _handle_key(self, event: KeyPressed) -> list[Command]:
        state = self.state
        key = event.key

        if key == "ctrl+c":
            state.should_quit = True
            return []

        if not self._text_entry_active():
            if key == "q":
                state.should_quit = True
                return []
            if key == "?" and state.screen is Screen.HELP:
                state.switch_to(Screen.DASHBOARD)
                return []
            if key == "?" and state.screen is Screen.DASHBOARD:
                state.switch_to(Screen.HELP)
                return []
            if key == "escape" and state.screen is Screen.HELP:
                state.switch_to(Screen.DASHBOARD)
                return []

        commands = self._delegate(event)

        # Dashboard "enter" arms a version change; it is consumed once the Search screen is up
        if state.screen is Screen.SEARCH and state.pending_version_change is not None:
            target = state.take_pending_version_change()
            self.search, forced = search.begin_version_change(self.search, target, self.services)
            commands = commands + forced
        return commands

    def _delegate(self, event: KeyPressed) -> list[Command]:
        screen = self.state.screen
        if screen is Screen.DASHBOARD:
            return dashboard.handle(event, self.state, self.dashboard, self.services)
        if screen is Screen.SEARCH:
            self.search, commands = search.handle_key(event, self.state, self.search, self.services)
            return commands
        if screen is Screen.INIT:
            return init.handle(event, self.state, self.init)
        # Help has no keys of its own
        return []

    # -- results -------------------------------------------------------------

    def _packages_loaded(self, event: PackagesLoaded) -> list[Command]:
        state = self.state
        state.is_loading = False
        if event.error is not None:
            state.status_message = f"Failed to load packages: {event.error}"
            logger.warning("package load failed: %s", event.error)
            return []
        state.installed = event.installed
        state.outdated = event.outdated
        dashboard.reclamp(self.dashboard, state)
        return []

    def _package_action_done(self, event: PackageActionDone) -> list[Command]:
        state = self.state
        state.is_loading = False
        state.status_message = event.status
        if event.error is not None:
            logger.warning("package action %r failed: %s", event.action, event.error)
        # A partially successful update-all still changed the environment
        if event.error is None or event.succeeded > 0:
            return self._dispatch([load_packages(self.services.runner)])
        return []

    def _project_created(self, event: ProjectCreated) -> list[Command]:
        state = self.state
        if state.screen is not Screen.INIT:
            return []
        self.init.creating = False
        if event.error is not None or event.project is None:
            state.status_message = f"Failed to create project: {event.error}"
            return []

        state.project = event.project
        if event.environment is not None:
            state.environment = event.environment
        if event.package_manager is not None:
            state.package_manager = event.package_manager
        if self.runner_factory is not None:
            self.services.runner = self.runner_factory(state.package_manager, state.environment)
        logger.debug(
            "project created, switching to dashboard (manager %s, venv %s)",
            state.package_manager.display_name,
            state.environment.path,
        )
        state.status_message = ""
        state.switch_to(Screen.DASHBOARD)
        return [load_packages(self.services.runner)]

    # -- rendering -----------------------------------------------------------

    def render(self):
        """Project the active screen into a rich Text frame."""
        screen = self.state.screen
        if screen is Screen.DASHBOARD:
            return dashboard.render(self.state, self.dashboard)
        if screen is Screen.SEARCH:
            return search.render(self.state, self.search)
        if screen is Screen.INIT:
            return init.render(self.state, self.init)
        return help_screen.render(self.state)
