from typing import Dict, Literal, Optional, Tuple, override

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
ButtonVariant = Literal["primary", "default", "success", "warning", "error"]

# tone -> (confirm button, cancel button)
TONE_VARIANTS: Dict[Tone, Tuple[ButtonVariant, ButtonVariant]] = {
    "default": ("primary", "default"),
    "positive": ("success", "default"),
    "warning": ("warning", "default"),
    "error": ("error", "primary"),
}


class DialogModal(ModalScreen[bool]):
    """
    Message box with an optional title and up to two buttons.

    Dismissed with True from the confirm button, False from the cancel
    button or escape.
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Tone = "default",
        title: Optional[str] = None,
    ):
        super().__init__()
        self.caption = caption
        self.title_text = title
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        confirm_variant, cancel_variant = TONE_VARIANTS[self.tone]
        with Container(id="div-dialog", classes=f"tone-{self.tone}"):
            if self.title_text:
                yield Label(self.title_text, id="dialog-title")
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text, variant=cancel_variant, id="btn-secondary"
                    )
                yield Button(self.primary_text, variant=confirm_variant, id="btn-primary")

    def on_mount(self):
        # destructive dialogs focus the safe choice
        if self.secondary_text and self.tone == "error":
            self.query_one("#btn-secondary").focus()
        else:
            self.query_one("#btn-primary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id == "btn-primary")

    def action_cancel(self) -> None:
        self.dismiss(False)


class SimpleDialogModal(DialogModal):
    """single OK button"""

    def __init__(self, caption: str, tone: Tone = "default", title: Optional[str] = None):
        super().__init__(caption, tone=tone, title=title)


class ConfirmDialogModal(DialogModal):
    """Yes/No question, the usual guard in front of a cart, account or catalog change"""

    def __init__(
        self,
        caption: str,
        tone: Tone = "warning",
        title: Optional[str] = None,
        confirm_text: str = "Yes",
        cancel_text: str = "No",
    ):
        super().__init__(caption, confirm_text, cancel_text, tone, title)


class QuitDialogModal(ConfirmDialogModal):
    def __init__(self):
        super().__init__(
            "Are you sure you want to quit?", tone="error", title="Quit ITEMKU"
        )

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)
