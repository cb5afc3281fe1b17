"""Help screen: keyboard reference."""

from rich.text import Text

from depman.app import theme
from depman.app.screens.rendering import KEY_COLUMN_WIDTH
from depman.app.state import AppState

SECTIONS = (
    (
        "Navigation",
        (
            ("j / ↓", "Move down"),
            ("k / ↑", "Move up"),
            ("gg", "Jump to top"),
            ("G", "Jump to bottom"),
            ("Ctrl+d", "Half-page down"),
            ("Ctrl+u", "Half-page up"),
            ("Tab", "Switch panel"),
        ),
    ),
    (
        "Package Actions",
        (
            ("i", "Add package by name"),
            ("a / s / /", "Search PyPI"),
            ("Enter", "Change version of selected package"),
            ("d / x", "Remove selected package"),
            ("u", "Update selected package"),
            ("U", "Update all outdated"),
            ("y / n", "Confirm / cancel action"),
            ("Esc", "Cancel / go back"),
        ),
    ),
    (
        "General",
        (
            ("?", "Toggle help"),
            ("q", "Quit"),
            ("Ctrl+c", "Force quit"),
        ),
    ),
)


def render(app: AppState) -> Text:
    lines = [Text("depman: Keyboard Reference", style=f"bold {theme.BLUE}"), Text("")]
    for header, bindings in SECTIONS:
        lines.append(Text(header, style=f"bold {theme.YELLOW}"))
        for key, description in bindings:
            row = Text(key.ljust(KEY_COLUMN_WIDTH), style=theme.CYAN)
            row.append(description, style=theme.FG)
            lines.append(row)
        lines.append(Text(""))
    lines.append(Text("Press ? or Esc to close", style=theme.FG_DIM))

    padded = [Text("")]
    for line in lines:
        row = Text("  ")
        row.append_text(line)
        padded.append(row)
    return Text("\n").join(padded)
