"""Init screen: offer to create a dependency file when none was found."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rich.text import Text

from depman.app import theme
from depman.app.commands import Command, create_project
from depman.app.events import KeyPressed
from depman.app.screens.dashboard import MAX_INPUT_LENGTH
from depman.app.state import AppState
from depman.domain.models import FileType
from depman.services.project_init import DEFAULT_VERSION

MENU_OPTIONS = (
    "Create pyproject.toml        (recommended)",
    "Create requirements.txt      (simple)",
    "Exit",
)


class Step(Enum):
    NAME = "name"
    VERSION = "version"


@dataclass
class InitState:
    cursor: int = 0
    step: Optional[Step] = None  # None while the menu is shown
    project_name: str = ""
    version: str = DEFAULT_VERSION
    buffer: str = ""
    creating: bool = False  # a create command is in flight

    @classmethod
    def for_app(cls, app: AppState) -> "InitState":
        return cls(project_name=app.project.directory.name)

    @property
    def captures_text(self) -> bool:
        return self.step is not None


def handle(event: KeyPressed, app: AppState, init: InitState) -> list[Command]:
    if init.step is not None:
        return _handle_entry(event, app, init)

    key = event.key
    if key in ("j", "down"):
        init.cursor = min(init.cursor + 1, len(MENU_OPTIONS) - 1)
    elif key in ("k", "up"):
        init.cursor = max(init.cursor - 1, 0)
    elif key == "enter" and not init.creating:
        if init.cursor == 0:
            init.step = Step.NAME
            init.buffer = init.project_name
        elif init.cursor == 1:
            init.creating = True
            return [
                create_project(
                    app.project.directory,
                    FileType.REQUIREMENTS_TXT,
                    preferred_manager=app.config.preferred_manager,
                )
            ]
        else:
            app.should_quit = True
    return []


def _handle_entry(event: KeyPressed, app: AppState, init: InitState) -> list[Command]:
    key = event.key
    if key == "escape":
        init.step = None
        init.buffer = ""
        return []
    if key == "enter":
        if init.step is Step.NAME:
            if init.buffer.strip():
                init.project_name = init.buffer.strip()
            init.step = Step.VERSION
            init.buffer = init.version
            return []
        if init.buffer.strip():
            init.version = init.buffer.strip()
        init.step = None
        init.buffer = ""
        init.creating = True
        return [
            create_project(
                app.project.directory,
                FileType.PYPROJECT_TOML,
                name=init.project_name,
                version=init.version,
                preferred_manager=app.config.preferred_manager,
            )
        ]
    if key == "backspace":
        init.buffer = init.buffer[:-1]
        return []
    text = event.text
    if text is not None and len(init.buffer) < MAX_INPUT_LENGTH:
        init.buffer += text
    return []


def _render_menu(app: AppState, init: InitState) -> list[Text]:
    lines = [
        Text("No Python project found in current directory.", style=f"bold {theme.BLUE}"),
        Text(""),
        Text("Would you like to initialize one?", style=theme.FG),
        Text(""),
    ]
    for index, option in enumerate(MENU_OPTIONS):
        if index == init.cursor:
            line = Text("  ")
            line.append("▶ ", style=theme.BLUE)
            line.append(option, style=f"{theme.FG} on {theme.BG_HIGHLIGHT}")
        else:
            line = Text(f"    {option}", style=theme.FG_DIM)
        lines.append(line)
    if app.status_message:
        lines.extend([Text(""), Text(app.status_message, style=theme.RED)])
    return lines


def _render_entry(init: InitState) -> list[Text]:
    lines = [Text("Create pyproject.toml", style=f"bold {theme.BLUE}"), Text("")]
    if init.step is Step.NAME:
        prompt = Text("Project name: ", style=theme.FG)
        default = f"  (default: {init.project_name})"
    else:
        lines.append(Text(f"Project name: {init.project_name}", style=theme.FG_DIM))
        prompt = Text("Version: ", style=theme.FG)
        default = f"  (default: {DEFAULT_VERSION})"
    prompt.append(init.buffer, style=theme.CYAN)
    prompt.append("█", style=theme.ORANGE)
    lines.extend(
        [
            prompt,
            Text(default, style=theme.FG_DIM),
            Text(""),
            Text("Press Enter to confirm, Esc to cancel", style=theme.FG_DIM),
        ]
    )
    return lines


def render(app: AppState, init: InitState) -> Text:
    lines = _render_entry(init) if init.step is not None else _render_menu(app, init)
    # Two lines of top padding, four columns of left padding
    padded = [Text(""), Text("")]
    for line in lines:
        row = Text("    ")
        row.append_text(line)
        padded.append(row)
    return Text("\n").join(padded)
