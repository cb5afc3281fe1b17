"""UI components for the TUI application."""

from depman.app.components.screen_view import ScreenView, translate_key

__all__ = [
    "ScreenView",
    "translate_key",
]
