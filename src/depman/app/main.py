"""Main Textual TUI application."""

import logging
from functools import partial
from pathlib import Path
from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding

from depman.adapters.pip_runner import PipRunner
from depman.adapters.pypi_client import PyPIClient
from depman.app.commands import Command, Services
from depman.app.components.screen_view import ScreenView
from depman.app.controller import Controller
from depman.app.events import Event, KeyPressed, Resized
from depman.app.state import AppState
from depman.app.theme import BG, DEFAULT_TEXTUAL_THEME, FG
from depman.config import Config
from depman.services.detector import detect_project
from depman.services.environment import detect_package_manager, detect_virtualenv

logger = logging.getLogger(__name__)


def build_controller(directory: Path, config: Config) -> Controller:
    """Detect the project and environment in directory and wire the controller."""
    project = detect_project(directory)
    environment = detect_virtualenv(directory)
    manager = detect_package_manager(config.preferred_manager)
    logger.info(
        "starting in %s (env %s, manager %s)",
        project.directory,
        environment.name,
        manager.display_name,
    )

    state = AppState.initial(project, environment, manager, config)
    services = Services(
        runner=PipRunner(manager, environment),
        index=PyPIClient(config.pypi_mirror),
    )
    return Controller(state, services, runner_factory=PipRunner)


class DepmanApp(App):
    """Package manager TUI."""

    CSS = f"""
    Screen {{
        background: {BG};
    }}

    #frame {{
        width: 1fr;
        height: 1fr;
        color: {FG};
    }}
    """

    TITLE = "depman"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [Binding("ctrl+c", "quit", "Quit", show=False, priority=True)]

    def __init__(self, controller: Controller, theme_name: Optional[str] = None):
        """Initialize the app around a controller."""
        super().__init__()
        self.controller = controller
        self.theme_name = theme_name or controller.state.config.theme

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield ScreenView(self.handle_input, id="frame")

    def on_mount(self) -> None:
        """Called when app is mounted."""
        if self.theme_name in self.available_themes:
            self.theme = self.theme_name
        else:
            logger.warning("unknown theme %r, using %s", self.theme_name, DEFAULT_TEXTUAL_THEME)
            self.theme = DEFAULT_TEXTUAL_THEME

        self.query_one(ScreenView).focus()
        self.controller.handle(Resized(self.size.width, self.size.height))
        self._run_commands(self.controller.start())
        self._refresh_frame()

    def on_resize(self, event: events.Resize) -> None:
        self.feed(Resized(event.size.width, event.size.height))

    def handle_input(self, key: KeyPressed) -> None:
        self.feed(key)

    def feed(self, event: Event) -> None:
        """Hand one event to the controller, redraw, then start any commands it produced."""
        commands = self.controller.handle(event)
        if self.controller.state.should_quit:
            self.exit()
            return
        self._refresh_frame()
        self._run_commands(commands)

    def _refresh_frame(self) -> None:
        # Resize can arrive before the frame is mounted
        for view in self.query(ScreenView):
            view.show(self.controller.render())

    def _run_commands(self, commands: list[Command]) -> None:
        for command in commands:
            logger.debug("dispatching command %s", command.name)
            self.run_worker(
                partial(self._execute, command),
                name=command.name,
                group="commands",
                thread=True,
            )

    def _execute(self, command: Command) -> None:
        # Runs in a worker thread; the result is applied on the UI loop
        event = command.execute()
        try:
            self.call_from_thread(self.feed, event)
        except RuntimeError:
            logger.debug("app stopped before %s finished", command.name)
