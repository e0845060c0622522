from __future__ import annotations

from datetime import date
from typing import List, Optional

import aiosqlite
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

import db.crud as crud
from db.models import Promotion
from utils.catalog import CATEGORIES, ITEM_TYPES
from utils.logger import get_logger
from utils.messages import CatalogChangedMessage
from utils.pure import format_date
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.modal_promotion_form import PromotionFormModal

_logger = get_logger(__name__)


def _target(p: Promotion) -> str:
    parts = [
        CATEGORIES.get(p.target_category, p.target_category) if p.target_category else "",
        ITEM_TYPES.get(p.target_type, p.target_type) if p.target_type else "",
    ]
    return " / ".join(x for x in parts if x) or "Everything"


class AdminPromotionsScreen(BaseScreen):
    """
    Back-office promotion management.
    """

    def __init__(self) -> None:
        super().__init__()
        self._promotions: List[Promotion] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-promo-cnt")
            yield DataTable(id="table-promotions")
            with Horizontal(id="hort-buttons"):
                yield Button("Add Promotion", id="btn-add", variant="success")
                yield Button("Edit", id="btn-edit", variant="primary")
                yield Button("Activate / Deactivate", id="btn-toggle", variant="warning")
                yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Title", "Discount", "Applies to", "Period", "Status")

    @on(ScreenResume)
    @on(CatalogChangedMessage)
    @work(exclusive=True, group="admin-promotions")
    async def handle_reload(self):
        self._promotions = await crud.list_promotions()
        today = date.today()

        table = self.query_one(DataTable)
        table.clear()
        for p in self._promotions:
            if p.is_running(today):
                status = "[green]Running[/]"
            elif p.is_active:
                status = "Scheduled" if p.start_date > today else "Ended"
            else:
                status = "[dim]Inactive[/]"
            table.add_row(
                p.id,
                p.title,
                f"{p.discount}%",
                _target(p),
                f"{format_date(p.start_date)} - {format_date(p.end_date)}",
                status,
                key=str(p.id),
            )
        running = sum(1 for p in self._promotions if p.is_running(today))
        self.query_one("#label-promo-cnt", Label).update(
            f"{len(self._promotions)} promotions, {running} running"
        )

    def selected_promotion(self) -> Optional[Promotion]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((p for p in self._promotions if str(p.id) == row_key.value), None)

    def _promotions_changed(self):
        self.app.state.cache.invalidate(("promotions",))
        self.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-add")
    @work()
    async def handle_add(self):
        fields = await self.app.push_screen_wait(PromotionFormModal())
        if not fields:
            return
        try:
            promotion = await crud.create_promotion(**fields)
        except (ValueError, aiosqlite.Error) as e:
            _logger.error(f"Error creating promotion: {e}")
            self.notify(str(e), title="Promotion Not Added", severity="error")
            return
        self.notify(f"{promotion.title} has been added.", title="Promotion Added")
        self._promotions_changed()

    @on(Button.Pressed, "#btn-edit")
    @on(DataTable.RowSelected, "#table-promotions")
    @work()
    async def handle_edit(self):
        promotion = self.selected_promotion()
        if promotion is None:
            self.notify("Select a promotion first.", severity="warning")
            return
        fields = await self.app.push_screen_wait(PromotionFormModal(promotion))
        if not fields:
            return
        try:
            await crud.update_promotion(promotion.id, **fields)
        except (ValueError, aiosqlite.Error) as e:
            _logger.error(f"Error updating promotion {promotion.id}: {e}")
            self.notify(str(e), title="Promotion Not Updated", severity="error")
            return
        self.notify(f"{fields['title']} has been updated.", title="Promotion Updated")
        self._promotions_changed()

    @on(Button.Pressed, "#btn-toggle")
    async def handle_toggle(self):
        promotion = self.selected_promotion()
        if promotion is None:
            self.notify("Select a promotion first.", severity="warning")
            return
        try:
            await crud.update_promotion(promotion.id, is_active=not promotion.is_active)
        except aiosqlite.Error as e:
            _logger.error(f"Error toggling promotion {promotion.id}: {e}")
            self.notify(str(e), title="Promotion Not Updated", severity="error")
            return
        self.notify(
            f"{promotion.title} is now {'inactive' if promotion.is_active else 'active'}."
        )
        self._promotions_changed()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self):
        promotion = self.selected_promotion()
        if promotion is None:
            self.notify("Select a promotion first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f"Delete {promotion.title}? This cannot be undone.",
                tone="error",
                title="Delete Promotion",
                confirm_text="Delete",
                cancel_text="Cancel",
            )
        ):
            return
        try:
            await crud.delete_promotion(promotion.id)
        except aiosqlite.Error as e:
            _logger.error(f"Error deleting promotion {promotion.id}: {e}")
            self.notify(str(e), title="Promotion Not Deleted", severity="error")
            return
        self.notify(f"{promotion.title} has been deleted.", title="Promotion Deleted")
        self._promotions_changed()
