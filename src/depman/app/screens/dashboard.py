"""Dashboard screen: installed and outdated package lists."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from rich.text import Text

from depman.adapters.validation import validate_package_spec
from depman.app import theme
from depman.app.commands import (
    Command,
    Services,
    install_package,
    uninstall_package,
    upgrade_all,
    upgrade_package,
)
from depman.app.events import KeyPressed
from depman.app.screens import rendering
from depman.app.state import HALF_PAGE_DIVISOR, AppState, Panel, Screen
from depman.domain.exceptions import InvalidPackageSpecError
from depman.domain.models import ManagerType, Package

logger = logging.getLogger(__name__)

MAX_INPUT_LENGTH = 100
MIN_PANEL_WIDTH = 20
# Box border, title, spacer and the two scroll indicators around each list
PANEL_CHROME_LINES = 6
ADD_KEY = "i"


class ConfirmAction(Enum):
    REMOVE = "remove"
    UPDATE = "update"
    UPDATE_ALL = "update-all"


@dataclass(frozen=True)
class Normal:
    pass


@dataclass(frozen=True)
class AwaitingChord:
    """First "g" of the go-to-top chord has been pressed."""


@dataclass(frozen=True)
class Confirming:
    action: ConfirmAction
    target: str


@dataclass(frozen=True)
class AddingPackage:
    buffer: str = ""


Mode = Union[Normal, AwaitingChord, Confirming, AddingPackage]


@dataclass
class PanelCursor:
    cursor: int = 0
    scroll: int = 0


@dataclass
class DashboardState:
    installed: PanelCursor = field(default_factory=PanelCursor)
    outdated: PanelCursor = field(default_factory=PanelCursor)
    mode: Mode = field(default_factory=Normal)

    def panel(self, which: Panel) -> PanelCursor:
        return self.installed if which is Panel.INSTALLED else self.outdated

    @property
    def captures_text(self) -> bool:
        """True while a sub-mode owns the keyboard (quit and help keys included)."""
        return isinstance(self.mode, (Confirming, AddingPackage))


# -- scrolling -------------------------------------------------------------


def ensure_visible(cursor: int, scroll: int, view_height: int) -> int:
    """Return the scroll offset that keeps cursor inside the window."""
    if cursor < scroll:
        return cursor
    if cursor >= scroll + view_height:
        return cursor - view_height + 1
    return scroll


def clamp(value: int, size: int) -> int:
    if size <= 0:
        return 0
    return max(0, min(value, size - 1))


def is_stacked(app: AppState) -> bool:
    return app.width // 2 - 1 < MIN_PANEL_WIDTH


def panel_height(app: AppState) -> int:
    """Rows each list shows; stacked panels share the viewport."""
    view_height = app.viewable_height()
    if is_stacked(app):
        return max(1, (view_height - PANEL_CHROME_LINES) // 2)
    return view_height


def sync_scroll(position: PanelCursor, size: int, view_height: int) -> None:
    position.cursor = clamp(position.cursor, size)
    scroll = ensure_visible(position.cursor, position.scroll, view_height)
    position.scroll = max(0, min(scroll, size - view_height))


def reclamp(dash: DashboardState, app: AppState) -> None:
    """Re-clamp both panels after the lists or the viewport changed."""
    view_height = panel_height(app)
    sync_scroll(dash.installed, len(app.installed), view_height)
    sync_scroll(dash.outdated, len(app.outdated), view_height)


def _items(app: AppState, which: Panel) -> tuple[Package, ...]:
    return app.installed if which is Panel.INSTALLED else app.outdated


def _selected(app: AppState, dash: DashboardState, which: Panel) -> Optional[Package]:
    items = _items(app, which)
    position = dash.panel(which)
    if not items or position.cursor >= len(items):
        return None
    return items[position.cursor]


# -- input -------------------------------------------------------------------


def handle(
    event: KeyPressed, app: AppState, dash: DashboardState, services: Services
) -> list[Command]:
    """Apply one key press to the dashboard; return commands to dispatch."""
    mode = dash.mode
    if isinstance(mode, Confirming):
        return _handle_confirm(event, mode, app, dash, services)
    if isinstance(mode, AddingPackage):
        return _handle_add(event, mode, app, dash, services)
    if isinstance(mode, AwaitingChord):
        dash.mode = Normal()
        if event.key == "g":
            position = dash.panel(app.active_panel)
            position.cursor = 0
            sync_scroll(position, len(_items(app, app.active_panel)), panel_height(app))
        return []
    return _handle_normal(event, app, dash)


def _move(app: AppState, dash: DashboardState, delta: Optional[int] = None, to: Optional[int] = None) -> None:
    which = app.active_panel
    position = dash.panel(which)
    size = len(_items(app, which))
    target = to if to is not None else position.cursor + (delta or 0)
    position.cursor = clamp(target, size)
    sync_scroll(position, size, panel_height(app))


def _handle_normal(event: KeyPressed, app: AppState, dash: DashboardState) -> list[Command]:
    key = event.key
    half = max(1, panel_height(app) // HALF_PAGE_DIVISOR)

    if key in ("j", "down"):
        _move(app, dash, delta=1)
    elif key in ("k", "up"):
        _move(app, dash, delta=-1)
    elif key == "g":
        dash.mode = AwaitingChord()
    elif key == "G":
        _move(app, dash, to=len(_items(app, app.active_panel)) - 1)
    elif key == "ctrl+d":
        _move(app, dash, delta=half)
    elif key == "ctrl+u":
        _move(app, dash, delta=-half)
    elif key == "tab":
        app.active_panel = (
            Panel.OUTDATED if app.active_panel is Panel.INSTALLED else Panel.INSTALLED
        )
    elif key in ("a", "s", "/"):
        app.switch_to(Screen.SEARCH)
    elif key == "enter":
        package = _selected(app, dash, Panel.INSTALLED) if app.active_panel is Panel.INSTALLED else None
        if package is not None:
            app.pending_version_change = package.name
            app.switch_to(Screen.SEARCH)
    elif app.is_loading:
        # Everything below starts a mutating operation
        return []
    elif key in ("d", "x"):
        package = _selected(app, dash, Panel.INSTALLED) if app.active_panel is Panel.INSTALLED else None
        if package is not None:
            dash.mode = Confirming(ConfirmAction.REMOVE, package.name)
    elif key == "u":
        if app.active_panel is Panel.OUTDATED:
            package = _selected(app, dash, Panel.OUTDATED)
            if package is not None:
                dash.mode = Confirming(ConfirmAction.UPDATE, package.name)
    elif key == "U":
        if app.outdated:
            dash.mode = Confirming(ConfirmAction.UPDATE_ALL, f"{len(app.outdated)} packages")
    elif key == ADD_KEY:
        dash.mode = AddingPackage()
    return []


def _handle_confirm(
    event: KeyPressed, mode: Confirming, app: AppState, dash: DashboardState, services: Services
) -> list[Command]:
    if event.key in ("n", "escape", "q"):
        dash.mode = Normal()
        return []
    if event.key not in ("y", "enter"):
        return []

    dash.mode = Normal()
    if app.is_loading:
        return []
    if mode.action is ConfirmAction.REMOVE:
        return [uninstall_package(services.runner, mode.target)]
    if mode.action is ConfirmAction.UPDATE:
        return [upgrade_package(services.runner, mode.target)]
    snapshot = tuple(package.name for package in app.outdated)
    return [upgrade_all(services.runner, snapshot)]


def _handle_add(
    event: KeyPressed, mode: AddingPackage, app: AppState, dash: DashboardState, services: Services
) -> list[Command]:
    key = event.key
    if key == "escape":
        dash.mode = Normal()
        return []
    if key == "enter":
        if not mode.buffer.strip():
            return []
        try:
            spec = validate_package_spec(mode.buffer)
        except InvalidPackageSpecError as e:
            app.status_message = e.message
            return []
        if app.is_loading:
            app.status_message = "Busy, try again when loading finishes"
            return []
        dash.mode = Normal()
        return [install_package(services.runner, spec)]
    if key == "backspace":
        dash.mode = AddingPackage(mode.buffer[:-1])
        return []
    text = event.text
    if text is not None and len(mode.buffer) < MAX_INPUT_LENGTH:
        dash.mode = AddingPackage(mode.buffer + text)
    return []


# -- rendering ---------------------------------------------------------------


def _installed_row(package: Package) -> Text:
    row = Text()
    row.append(package.name, style=theme.PURPLE)
    row.append(" ")
    row.append(package.installed_version, style=theme.CYAN)
    return row


def _outdated_row(package: Package) -> Text:
    color = theme.diff_color(package.diff_type)
    row = Text()
    row.append(package.name, style=theme.PURPLE)
    row.append(" ")
    row.append(package.installed_version, style=theme.CYAN)
    row.append(" → ")
    row.append(package.latest_version or "", style=color)
    row.append(" (")
    row.append(theme.diff_label(package.diff_type), style=color)
    row.append(")")
    return row


def _panel_lines(
    title: str,
    packages: tuple[Package, ...],
    position: PanelCursor,
    focused: bool,
    view_height: int,
    empty_text: str,
    row_builder,
) -> list[Text]:
    lines = [Text(title, style=f"bold {theme.FG}"), Text("")]

    start = position.scroll
    end = min(start + view_height, len(packages))
    lines.append(Text("  ↑ more", style=theme.FG_DIM) if start > 0 else Text(""))
    for index in range(start, end):
        row = row_builder(packages[index])
        if focused and index == position.cursor:
            line = Text("▶ ", style=theme.BLUE)
            line.append_text(row)
            line.stylize(f"on {theme.BG_HIGHLIGHT}")
        else:
            line = Text("  ")
            line.append_text(row)
        lines.append(line)
    if not packages:
        lines.append(Text(f"  {empty_text}", style=theme.FG_DIM))
    # Pad so both panels keep the same height
    while len(lines) < view_height + 3:
        lines.append(Text(""))
    lines.append(Text("  ↓ more", style=theme.FG_DIM) if end < len(packages) else Text(""))
    return lines


def render_status_bar(app: AppState) -> Text:
    bar = Text(" depman │ ")
    bar.append(app.environment.name, style=theme.GREEN)
    bar.append(" │ ")
    manager_style = theme.PURPLE if app.package_manager.type is ManagerType.UV else theme.FG_DIM
    bar.append(app.package_manager.display_name, style=manager_style)
    bar.append(f" │ {len(app.installed)} pkgs │ ")
    bar.append(
        f"{len(app.outdated)} outdated",
        style=theme.RED if app.outdated else theme.FG_DIM,
    )
    bar.append(" │ ")
    bar.append("? help", style=theme.FG_DIM)
    if app.status_message:
        bar.append(" │ ")
        bar.append(app.status_message, style=theme.ORANGE)
    bar.truncate(app.effective_width, overflow="ellipsis", pad=True)
    bar.stylize(f"{theme.FG} on {theme.BG_ELEVATED}")
    return bar


def _overlay(dash: DashboardState) -> Optional[Text]:
    mode = dash.mode
    if isinstance(mode, Confirming):
        return Text(f"  {mode.action.value} {mode.target}? [y/N] ", style=theme.YELLOW)
    if isinstance(mode, AddingPackage):
        line = Text(f"  Add package: {mode.buffer}", style=theme.BLUE)
        line.append("█", style=theme.ORANGE)
        return line
    return None


def render(app: AppState, dash: DashboardState) -> Text:
    """Project the dashboard state into a text frame."""
    if not app.sized:
        return Text("Initializing...")

    width, height = app.width, app.height
    if app.is_loading:
        return rendering.centered("Loading packages...", width, height, style=theme.FG_DIM)

    view_height = panel_height(app)
    panel_width = width // 2 - 1
    stacked = is_stacked(app)
    if stacked:
        panel_width = max(MIN_PANEL_WIDTH, width - 2)

    installed_focused = app.active_panel is Panel.INSTALLED
    installed_box = rendering.box(
        _panel_lines(
            f"Installed ({len(app.installed)})",
            app.installed,
            dash.installed,
            installed_focused,
            view_height,
            "No packages installed",
            _installed_row,
        ),
        panel_width,
        theme.BLUE if installed_focused else theme.BORDER,
    )
    outdated_box = rendering.box(
        _panel_lines(
            f"Outdated ({len(app.outdated)})",
            app.outdated,
            dash.outdated,
            not installed_focused,
            view_height,
            "All packages up to date",
            _outdated_row,
        ),
        panel_width,
        theme.BORDER if installed_focused else theme.BLUE,
    )

    if stacked:
        lines = installed_box + outdated_box
    else:
        lines = rendering.side_by_side(installed_box, outdated_box)

    overlay = _overlay(dash)
    if overlay is not None:
        lines.append(overlay)
    lines.append(render_status_bar(app))
    return Text("\n").join(lines)
