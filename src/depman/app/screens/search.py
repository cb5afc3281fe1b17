"""Search screen: query entry, result browsing and version selection."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from rich.text import Text

from depman.app import theme
from depman.app.commands import Command, Services, fetch_package_detail, install_package, search_index
from depman.app.events import KeyPressed, PackageDetailReady, SearchResultsReady
from depman.app.screens.dashboard import MAX_INPUT_LENGTH, ensure_visible
from depman.app.screens.rendering import KEY_COLUMN_WIDTH, truncate
from depman.app.state import AppState, Screen
from depman.domain.models import PackageDetail, SearchResult

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 1
VIEWPORT_HEADER_LINES = 8
MIN_VISIBLE_RESULTS = 3
VERSION_RESERVED_LINES = 16
MIN_DESCRIPTION_LENGTH = 20
MIN_DETAIL_DESCRIPTION_WIDTH = 30


class Phase(Enum):
    INPUT = "input"
    RESULTS = "results"
    DETAIL = "detail"


@dataclass
class SearchState:
    phase: Phase = Phase.INPUT
    query: str = ""
    results: tuple[SearchResult, ...] = ()
    cursor: int = 0
    loading: bool = False
    detail_loading: bool = False
    error: Optional[str] = None
    searched: bool = False  # a search finished for the current query
    detail: Optional[PackageDetail] = None
    version_cursor: int = 0
    request_id: int = 0
    cancel: threading.Event = field(default_factory=threading.Event)

    def next_request(self) -> int:
        self.request_id += 1
        return self.request_id


def reset(search: SearchState) -> SearchState:
    """Discard the screen: in-flight index requests are cancelled and ignored."""
    search.cancel.set()
    return SearchState(request_id=search.request_id + 1)


def begin_version_change(search: SearchState, name: str, services: Services) -> tuple[SearchState, list[Command]]:
    """Forced entry: jump straight to fetching the detail of one package."""
    logger.debug("version change requested for %s", name)
    fresh = reset(search)
    fresh.query = name
    fresh.detail_loading = True
    request_id = fresh.next_request()
    return fresh, [fetch_package_detail(services.index, name, request_id, fresh.cancel)]


def handle_key(
    event: KeyPressed, app: AppState, search: SearchState, services: Services
) -> tuple[SearchState, list[Command]]:
    if search.phase is Phase.INPUT:
        return _handle_input(event, app, search, services)
    if search.phase is Phase.RESULTS:
        return _handle_results(event, search, services)
    return _handle_detail(event, app, search, services)


def _handle_input(
    event: KeyPressed, app: AppState, search: SearchState, services: Services
) -> tuple[SearchState, list[Command]]:
    key = event.key
    if key == "escape":
        app.switch_to(Screen.DASHBOARD)
        return reset(search), []
    if key == "enter":
        query = search.query.strip()
        if len(query) < MIN_SEARCH_LENGTH or search.loading or search.detail_loading:
            return search, []
        search.loading = True
        search.error = None
        search.searched = False
        request_id = search.next_request()
        return search, [search_index(services.index, query, request_id, search.cancel)]
    if key == "backspace":
        search.query = search.query[:-1]
        search.searched = False
        return search, []
    text = event.text
    if text is not None and len(search.query) < MAX_INPUT_LENGTH:
        search.query += text
        search.searched = False
    return search, []


def _handle_results(
    event: KeyPressed, search: SearchState, services: Services
) -> tuple[SearchState, list[Command]]:
    key = event.key
    if key == "escape":
        search.phase = Phase.INPUT
        search.detail_loading = False
        search.request_id += 1  # drop a detail fetch still in flight
    elif key in ("j", "down"):
        if search.cursor < len(search.results) - 1:
            search.cursor += 1
    elif key in ("k", "up"):
        if search.cursor > 0:
            search.cursor -= 1
    elif key == "enter":
        if search.results and not search.detail_loading:
            name = search.results[search.cursor].name
            search.detail_loading = True
            search.error = None
            request_id = search.next_request()
            return search, [fetch_package_detail(services.index, name, request_id, search.cancel)]
    return search, []


def _handle_detail(
    event: KeyPressed, app: AppState, search: SearchState, services: Services
) -> tuple[SearchState, list[Command]]:
    key = event.key
    versions = search.detail.versions if search.detail else ()
    if key == "escape":
        search.phase = Phase.RESULTS
        search.detail = None
        search.version_cursor = 0
    elif key in ("j", "down"):
        if search.version_cursor < len(versions) - 1:
            search.version_cursor += 1
    elif key in ("k", "up"):
        if search.version_cursor > 0:
            search.version_cursor -= 1
    elif key == "enter" and search.detail is not None and versions:
        if app.is_loading:
            app.status_message = "Busy, try again when loading finishes"
            return search, []
        name = search.detail.name
        version = versions[search.version_cursor]
        app.switch_to(Screen.DASHBOARD)
        return reset(search), [
            install_package(services.runner, f"{name}=={version}", label=f"{name}@{version}")
        ]
    return search, []


def apply_results(search: SearchState, event: SearchResultsReady) -> None:
    if event.request_id != search.request_id:
        logger.debug("dropping stale search results for %r", event.query)
        return
    search.loading = False
    search.searched = True
    search.cursor = 0
    if event.error is not None:
        search.results = ()
        search.error = str(event.error)
        return
    search.error = None
    search.results = event.results
    if event.results:
        search.phase = Phase.RESULTS


def apply_detail(search: SearchState, event: PackageDetailReady) -> None:
    if event.request_id != search.request_id:
        logger.debug("dropping stale detail for %s", event.name)
        return
    search.detail_loading = False
    if event.error is not None or event.detail is None:
        search.error = str(event.error) if event.error is not None else f"Package not found: {event.name}"
        return
    search.error = None
    search.detail = event.detail
    search.version_cursor = 0
    search.phase = Phase.DETAIL


# -- rendering ---------------------------------------------------------------


def _footer(message: str) -> Text:
    return Text(f"  {message}", style=theme.FG_DIM)


def _render_input(search: SearchState) -> list[Text]:
    prompt = Text("  Package name: ")
    prompt.append(search.query, style=theme.CYAN)
    prompt.append("█", style=theme.ORANGE)
    lines = [Text("🔍 Search PyPI", style=f"bold {theme.BLUE}"), Text(""), prompt, Text("")]

    if search.loading:
        lines.append(Text("  Searching...", style=theme.FG_DIM))
    elif search.detail_loading:
        lines.append(Text("  Loading package details...", style=theme.FG_DIM))
    elif search.error:
        lines.append(Text(f"  Error: {search.error}", style=theme.RED))
    elif search.searched and not search.results:
        lines.append(Text(f"  No packages found for \"{search.query}\"", style=theme.FG_DIM))
    else:
        lines.append(Text("  Type a package name and press Enter to search", style=theme.FG_DIM))

    lines.extend([Text(""), _footer("Enter to search  │  Esc to cancel")])
    return lines


def _render_results(search: SearchState, width: int, height: int) -> list[Text]:
    title = Text(f"🔍 Results for \"{search.query}\"", style=f"bold {theme.BLUE}")
    title.append(f"  ({len(search.results)} found)", style=theme.FG_DIM)
    lines = [title, Text("")]

    if search.detail_loading:
        lines.append(Text("  Loading package details...", style=theme.FG_DIM))
    elif search.error:
        lines.append(Text(f"  Error: {search.error}", style=theme.RED))

    max_visible = max(MIN_VISIBLE_RESULTS, (height - VIEWPORT_HEADER_LINES) // 2)
    start = ensure_visible(search.cursor, 0, max_visible)
    end = min(len(search.results), start + max_visible)
    description_width = max(MIN_DESCRIPTION_LENGTH, width - 10)

    for index in range(start, end):
        result = search.results[index]
        header = Text()
        header.append(result.name, style=f"bold {theme.PURPLE}")
        header.append("  ")
        header.append(f"v{result.version}", style=theme.CYAN)
        if index == search.cursor:
            line = Text("  ")
            marked = Text("▶ ", style=theme.BLUE)
            marked.append_text(header)
            marked.stylize(f"on {theme.BG_HIGHLIGHT}")
            line.append_text(marked)
        else:
            line = Text("    ")
            line.append_text(header)
        lines.append(line)
        lines.append(Text(f"      {truncate(result.summary, description_width)}", style=theme.FG_DIM))

    lines.extend([Text(""), _footer("Enter to view details  │  j/k navigate  │  Esc to go back")])
    return lines


def _info_row(label: str, value: str, style: str = theme.FG) -> Text:
    row = Text(label.ljust(KEY_COLUMN_WIDTH), style=theme.FG_DIM)
    row.append(value, style=style)
    return row


def _render_detail(search: SearchState, width: int, height: int) -> list[Text]:
    detail = search.detail
    if detail is None:
        return []

    header = Text(detail.name, style=f"bold {theme.PURPLE}")
    header.append("  ")
    header.append(f"v{detail.version}", style=theme.CYAN)
    lines = [header, Text("")]

    if detail.summary:
        description_width = max(MIN_DETAIL_DESCRIPTION_WIDTH, width - 20)
        lines.append(_info_row("Description", truncate(detail.summary, description_width)))
    if detail.author:
        lines.append(_info_row("Author", detail.author))
    if detail.license:
        lines.append(_info_row("License", detail.license))
    if detail.requires_python:
        lines.append(_info_row("Requires", f"Python {detail.requires_python}"))
    if detail.home_page:
        lines.append(_info_row("Homepage", detail.home_page, style=theme.FG_DIM))

    lines.extend([Text(""), Text("Select Version", style=f"bold {theme.YELLOW}"), Text("")])

    versions = detail.versions
    max_visible = max(MIN_VISIBLE_RESULTS, height - VERSION_RESERVED_LINES)
    start = ensure_visible(search.version_cursor, 0, max_visible)
    end = min(len(versions), start + max_visible)
    for index in range(start, end):
        version_text = Text(versions[index], style=theme.CYAN)
        if index == 0:
            version_text.append(" (latest)", style=theme.FG_DIM)
        if index == search.version_cursor:
            marked = Text("▶ ", style=theme.BLUE)
            marked.append_text(version_text)
            marked.stylize(f"on {theme.BG_HIGHLIGHT}")
            line = Text("  ")
            line.append_text(marked)
        else:
            line = Text("    ")
            line.append_text(version_text)
        lines.append(line)

    hidden = len(versions) - (end - start)
    if hidden > 0:
        lines.append(Text(f"    ... and {hidden} more versions", style=theme.FG_DIM))

    lines.extend([Text(""), _footer("Enter to install  │  j/k select version  │  Esc to go back")])
    return lines


def render(app: AppState, search: SearchState) -> Text:
    width, height = app.effective_width, app.effective_height
    if search.phase is Phase.RESULTS:
        lines = _render_results(search, width, height)
    elif search.phase is Phase.DETAIL:
        lines = _render_detail(search, width, height)
    else:
        lines = _render_input(search)
    # One blank line of top padding, two columns of left padding
    padded = [Text("")]
    for line in lines:
        row = Text("  ")
        row.append_text(line)
        padded.append(row)
    return Text("\n").join(padded)
