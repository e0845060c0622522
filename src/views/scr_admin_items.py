from __future__ import annotations

from typing import List, Optional

import aiosqlite
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label

import db.crud as crud
from db.models import Item
from utils.catalog import CATEGORIES, ITEM_TYPES, admin_search
from utils.logger import get_logger
from utils.messages import CatalogChangedMessage
from utils.pure import format_rupiah
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.modal_item_form import ItemFormModal

_logger = get_logger(__name__)


class AdminItemsScreen(BaseScreen):
    """
    Back-office item management: search, add, edit and delete items.
    """

    def __init__(self) -> None:
        super().__init__()
        self._items: List[Item] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search by name, game or type...")
            yield Label("", id="label-item-cnt")
            yield DataTable(id="table-items")
            with Horizontal(id="hort-buttons"):
                yield Button("Add Item", id="btn-add", variant="success")
                yield Button("Edit", id="btn-edit", variant="primary")
                yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Game", "Type", "Price")
        self.query_one("#input-search", Input).focus()

    @on(ScreenResume)
    @on(CatalogChangedMessage)
    @work(exclusive=True, group="admin-items")
    async def handle_reload(self):
        self._items = await self.app.state.cache.fetch(("items",), crud.list_items)
        self.render_table()

    @on(Input.Changed, "#input-search")
    def render_table(self):
        results = admin_search(
            self._items, self.query_one("#input-search", Input).value
        )
        table = self.query_one(DataTable)
        table.clear()
        for item in results:
            table.add_row(
                item.id,
                item.name,
                CATEGORIES.get(item.category, item.category),
                ITEM_TYPES.get(item.type, item.type),
                format_rupiah(item.price),
                key=str(item.id),
            )
        self.query_one("#label-item-cnt", Label).update(
            f"{len(results)} of {len(self._items)} items"
        )

    def selected_item(self) -> Optional[Item]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((i for i in self._items if str(i.id) == row_key.value), None)

    def _catalog_changed(self):
        self.app.state.cache.invalidate(("items",))
        self.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-add")
    @work()
    async def handle_add(self):
        fields = await self.app.push_screen_wait(ItemFormModal())
        if not fields:
            return
        try:
            item = await crud.create_item(**fields)
        except (ValueError, aiosqlite.Error) as e:
            _logger.error(f"Error creating item: {e}")
            self.notify(str(e), title="Item Not Added", severity="error")
            return
        self.notify(f"{item.name} has been added.", title="Item Added")
        self._catalog_changed()

    @on(Button.Pressed, "#btn-edit")
    @on(DataTable.RowSelected, "#table-items")
    @work()
    async def handle_edit(self):
        item = self.selected_item()
        if item is None:
            self.notify("Select an item first.", severity="warning")
            return
        fields = await self.app.push_screen_wait(ItemFormModal(item))
        if not fields:
            return
        try:
            await crud.update_item(item.id, **fields)
        except (ValueError, aiosqlite.Error) as e:
            _logger.error(f"Error updating item {item.id}: {e}")
            self.notify(str(e), title="Item Not Updated", severity="error")
            return
        self.notify(f"{fields['name']} has been updated.", title="Item Updated")
        self._catalog_changed()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self):
        item = self.selected_item()
        if item is None:
            self.notify("Select an item first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f"Delete {item.name}? This cannot be undone.",
                tone="error",
                title="Delete Item",
                confirm_text="Delete",
                cancel_text="Cancel",
            )
        ):
            return
        try:
            deleted = await crud.delete_item(item.id)
        except aiosqlite.Error as e:
            _logger.error(f"Error deleting item {item.id}: {e}")
            self.notify(str(e), title="Item Not Deleted", severity="error")
            return
        if deleted:
            self.notify(f"{item.name} has been deleted.", title="Item Deleted")
        else:
            self.notify("Item no longer exists.", severity="warning")
        self._catalog_changed()
