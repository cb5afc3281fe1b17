"""Frame component: shows the rendered screen and captures the keyboard."""

from typing import Callable

from rich.text import Text
from textual import events
from textual.widgets import Static

from depman.app.events import KeyPressed


def translate_key(event: events.Key) -> KeyPressed:
    """Convert a Textual key event; printable characters are keyed by the character itself."""
    character = event.character
    if character is not None and len(character) == 1 and character.isprintable():
        return KeyPressed(key=character, character=character)
    return KeyPressed(key=event.key, character=None)


class ScreenView(Static, can_focus=True):
    """Static widget holding the whole frame."""

    def __init__(self, on_input: Callable[[KeyPressed], None], **kwargs):
        """Initialize with the callback that receives translated key presses."""
        super().__init__("", **kwargs)
        self._on_input = on_input
        self._frame: Text = Text("")

    @property
    def frame(self) -> Text:
        return self._frame

    def show(self, frame: Text) -> None:
        """Replace the displayed frame."""
        self._frame = frame
        self.update(frame)

    def on_key(self, event: events.Key) -> None:
        # Every key belongs to the controller, not to Textual's default bindings
        event.stop()
        event.prevent_default()
        self._on_input(translate_key(event))
