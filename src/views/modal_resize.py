from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Resize
from textual.screen import ModalScreen
from textual.widgets import Label


class ResizeScreenPromptModal(ModalScreen[None]):
    """
    Covers the app until the terminal is at least min_width x min_height,
    showing the current size while the user resizes.
    """

    def __init__(self, min_width: int = 80, min_height: int = 24) -> None:
        super().__init__()
        self.min_width = min_width
        self.min_height = min_height

    def compose(self) -> ComposeResult:
        with Container(id="div-resize"):
            yield Label("Terminal too small", id="prompt")
            yield Label("", id="prompt-size")

    def on_mount(self) -> None:
        self._show_size(self.app.size.width, self.app.size.height)

    def _fits(self, width: int, height: int) -> bool:
        return width >= self.min_width and height >= self.min_height

    def _show_size(self, width: int, height: int) -> None:
        self.query_one("#prompt-size", Label).update(
            f"Current {width}x{height}, need at least {self.min_width}x{self.min_height}"
        )

    def on_resize(self, event: Resize) -> None:
        if self._fits(event.size.width, event.size.height):
            self.dismiss()
        else:
            self._show_size(event.size.width, event.size.height)
