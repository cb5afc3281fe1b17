"""Tokyo Night palette and diff-type styling."""

from typing import Optional

from depman.domain.models import DiffType

BG = "#1a1b26"
BG_ELEVATED = "#24283b"
BG_HIGHLIGHT = "#2e3250"
BORDER = "#414868"
FG = "#c0caf5"
FG_DIM = "#565f89"
BLUE = "#7aa2f7"
GREEN = "#9ece6a"
TEAL = "#2ac3de"
YELLOW = "#e0af68"
RED = "#f7768e"
PURPLE = "#bb9af7"
CYAN = "#7dcfff"
ORANGE = "#ff9e64"

DEFAULT_TEXTUAL_THEME = "tokyo-night"


def diff_color(diff: Optional[DiffType]) -> str:
    """Colour for an outdated version: patch teal, minor yellow, major red."""
    if diff is DiffType.PATCH:
        return TEAL
    if diff is DiffType.MINOR:
        return YELLOW
    if diff is DiffType.MAJOR:
        return RED
    return FG_DIM


def diff_label(diff: Optional[DiffType]) -> str:
    if diff is DiffType.PATCH:
        return "patch"
    if diff is DiffType.MINOR:
        return "minor"
    if diff is DiffType.MAJOR:
        return "major"
    if diff is DiffType.UNKNOWN:
        return "unknown"
    return "up to date"
