from datetime import date, timedelta
from typing import Any, Dict, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, Select, Switch

from db.models import Promotion
from utils.catalog import CATEGORIES, ITEM_TYPES


def _targets(labels, everything: str):
    return [(everything if key == "all" else label, key) for key, label in labels.items()]


class PromotionFormModal(ModalScreen[Optional[Dict[str, Any]]]):
    """
    Create or edit a promotion.
    Returns the field values, or None when cancelled.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self, promotion: Optional[Promotion] = None) -> None:
        super().__init__()
        self._promotion = promotion

    def compose(self) -> ComposeResult:
        p = self._promotion
        start = p.start_date if p else date.today()
        end = p.end_date if p else date.today() + timedelta(days=30)
        with VerticalScroll(id="div-promotion-form"):
            yield Label(
                "Edit Promotion" if p else "Add New Promotion", classes="section-title"
            )
            yield Label("Title")
            yield Input(p.title if p else "", id="input-promo-title")
            yield Label("Description")
            yield Input(p.description if p else "", id="input-promo-description")
            yield Label("Discount (%)")
            yield Input(
                str(p.discount) if p else "0",
                id="input-promo-discount",
                type="integer",
                validators=[Number(minimum=0, maximum=100)],
            )
            with Horizontal():
                yield Label("Start (YYYY-MM-DD)")
                yield Input(start.isoformat(), id="input-promo-start")
                yield Label("End (YYYY-MM-DD)")
                yield Input(end.isoformat(), id="input-promo-end")
            yield Label("Applies to game")
            yield Select(
                _targets(CATEGORIES, "Every game"),
                value=(p.target_category if p and p.target_category else "all"),
                allow_blank=False,
                id="select-promo-category",
            )
            yield Label("Applies to type")
            yield Select(
                _targets(ITEM_TYPES, "Every type"),
                value=(p.target_type if p and p.target_type else "all"),
                allow_blank=False,
                id="select-promo-type",
            )
            with Horizontal(classes="setting-row"):
                yield Switch(value=p.is_active if p else True, id="switch-promo-active")
                yield Label("Active")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button(
                    "Save" if p else "Add Promotion", id="btn-submit", variant="primary"
                )

    def on_mount(self):
        self.query_one("#input-promo-title").focus()

    def action_close(self) -> None:
        self.dismiss(None)

    def _parse_date(self, input_id: str) -> Optional[date]:
        field = self.query_one(input_id, Input)
        try:
            return date.fromisoformat(field.value.strip())
        except ValueError:
            field.focus()
            field.add_class("-invalid")
            self.notify("Dates must look like 2025-01-31.", severity="error")
            return None

    @on(Button.Pressed, "#btn-submit")
    def handle_submit(self):
        title_input = self.query_one("#input-promo-title", Input)
        discount_input = self.query_one("#input-promo-discount", Input)

        if not title_input.value.strip():
            title_input.focus()
            title_input.add_class("-invalid")
            self.notify("Promotion title is required.", severity="error")
            return
        if not discount_input.value or not discount_input.is_valid:
            discount_input.focus()
            discount_input.add_class("-invalid")
            self.notify("Discount must be between 0 and 100.", severity="error")
            return

        start = self._parse_date("#input-promo-start")
        end = self._parse_date("#input-promo-end") if start else None
        if start is None or end is None:
            return
        if end < start:
            self.notify("Promotion cannot end before it starts.", severity="error")
            return

        category = self.query_one("#select-promo-category", Select).value
        item_type = self.query_one("#select-promo-type", Select).value
        self.dismiss(
            {
                "title": title_input.value.strip(),
                "description": self.query_one("#input-promo-description", Input).value.strip(),
                "discount": int(discount_input.value),
                "start_date": start,
                "end_date": end,
                "is_active": self.query_one("#switch-promo-active", Switch).value,
                "target_category": None if category == "all" else category,
                "target_type": None if item_type == "all" else item_type,
            }
        )

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
