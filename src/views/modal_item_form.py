from typing import Any, Dict, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, Select

from db.models import Item
from utils.catalog import CATEGORIES, ITEM_TYPES


def _choices(labels):
    return [(label, key) for key, label in labels.items() if key != "all"]


class ItemFormModal(ModalScreen[Optional[Dict[str, Any]]]):
    """
    Create or edit an item.
    Returns the field values, or None when cancelled.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self, item: Optional[Item] = None) -> None:
        super().__init__()
        self._item = item

    def compose(self) -> ComposeResult:
        item = self._item
        with VerticalScroll(id="div-item-form"):
            yield Label("Edit Item" if item else "Add New Item", classes="section-title")
            yield Label("Name")
            yield Input(item.name if item else "", id="input-item-name")
            yield Label("Description")
            yield Input(
                (item.description or "") if item else "", id="input-item-description"
            )
            yield Label("Price (Rp)")
            yield Input(
                str(item.price) if item else "",
                id="input-item-price",
                type="integer",
                validators=[Number(minimum=0)],
            )
            yield Label("Game")
            yield Select(
                _choices(CATEGORIES),
                value=item.category if item else "skyrim",
                allow_blank=False,
                id="select-item-category",
            )
            yield Label("Type")
            yield Select(
                _choices(ITEM_TYPES),
                value=item.type if item else "weapon",
                allow_blank=False,
                id="select-item-type",
            )
            yield Label("Image URL")
            yield Input(item.image if item else "", id="input-item-image")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button(
                    "Save" if item else "Add Item", id="btn-submit", variant="primary"
                )

    def on_mount(self):
        self.query_one("#input-item-name").focus()

    def action_close(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    def handle_submit(self):
        name_input = self.query_one("#input-item-name", Input)
        price_input = self.query_one("#input-item-price", Input)

        if not name_input.value.strip():
            name_input.focus()
            name_input.add_class("-invalid")
            self.notify("Item name is required.", severity="error")
            return
        if not price_input.value or not price_input.is_valid:
            price_input.focus()
            price_input.add_class("-invalid")
            self.notify("Price must be a non-negative number.", severity="error")
            return

        self.dismiss(
            {
                "name": name_input.value.strip(),
                "description": self.query_one("#input-item-description", Input).value.strip()
                or None,
                "price": int(price_input.value),
                "category": self.query_one("#select-item-category", Select).value,
                "type": self.query_one("#select-item-type", Select).value,
                "image": self.query_one("#input-item-image", Input).value.strip(),
            }
        )

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
