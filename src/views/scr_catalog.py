from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select

import db.crud as crud
from db.models import Item, Promotion
from utils import catalog
from utils.messages import CartChangedMessage, CatalogChangedMessage, ModeSwitchedMessage
from utils.pricing import best_discount
from utils.pure import format_rupiah
from views.base_screen import BaseScreen
from views.modal_item_detail import ItemDetailModal


def _options(labels):
    return [(label, key) for key, label in labels.items()]


class CatalogScreen(BaseScreen):
    """
    item browsing with search, filters, sorting and pagination
    """

    # bindings here are only displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Item", show=True, key_display="⏎"),
        Binding("escape", "noop", "Close Item", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._items: List[Item] = []
        self._promotions: List[Promotion] = []
        self._page = 1
        self._page_cnt = 1

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-promotions")
        yield Input(id="input-search", placeholder="Search items...")
        with Horizontal(id="hort-filters"):
            yield Select(
                _options(catalog.CATEGORIES),
                value="all",
                allow_blank=False,
                id="select-category",
            )
            yield Select(
                _options(catalog.ITEM_TYPES),
                value="all",
                allow_blank=False,
                id="select-type",
            )
            yield Select(
                _options(catalog.PRICE_RANGE_LABELS),
                value="all",
                allow_blank=False,
                id="select-price",
            )
            yield Select(
                _options(catalog.SORT_OPTIONS),
                value="name-asc",
                allow_blank=False,
                id="select-sort",
            )
        yield Label("", id="label-result-cnt")
        yield DataTable(id="table-catalog")
        with Horizontal(id="hort-table-control"):
            yield Button("<", id="btn-prev")
            yield Horizontal(id="hort-page-window")
            yield Button(">", id="btn-next")
            yield Label(" / 1", id="label-total-page-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Game", "Type", "Price", "Promo")

        self.query_one("#input-search").focus()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @on(CatalogChangedMessage)
    @work(exclusive=True, group="catalog")
    async def handle_reload(self):
        cache = self.app.state.cache
        self._items = await cache.fetch(("items",), crud.list_items)
        self._promotions = await cache.fetch(
            ("promotions", "active"), crud.list_active_promotions
        )

        running = [p for p in self._promotions if p.discount > 0]
        self.query_one("#label-promotions", Label).update(
            "  ".join(f"[b]{p.title}[/b] {p.discount}% off" for p in running)
            or "No promotions running right now."
        )
        await self.render_page()

    def current_query(self) -> catalog.CatalogQuery:
        return catalog.CatalogQuery(
            search=self.query_one("#input-search", Input).value,
            category=self.query_one("#select-category", Select).value,
            item_type=self.query_one("#select-type", Select).value,
            price_range=self.query_one("#select-price", Select).value,
            sort_by=self.query_one("#select-sort", Select).value,
        )

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    async def handle_query_changed(self):
        self._page = 1
        await self.render_page()

    @on(Button.Pressed, "#btn-prev")
    async def handle_prev(self):
        if self._page > 1:
            self._page -= 1
            await self.render_page()

    @on(Button.Pressed, "#btn-next")
    async def handle_next(self):
        if self._page < self._page_cnt:
            self._page += 1
            await self.render_page()

    @on(Button.Pressed, ".btn-page")
    async def handle_page_pressed(self, event: Button.Pressed):
        self._page = int(event.button.name)
        await self.render_page()

    async def render_page(self):
        results = catalog.filter_and_sort(self._items, self.current_query())
        page_items, self._page, self._page_cnt = catalog.paginate(results, self._page)

        table = self.query_one(DataTable)
        table.clear()
        for item in page_items:
            discount = best_discount(item, self._promotions)
            table.add_row(
                item.id,
                item.name,
                catalog.CATEGORIES.get(item.category, item.category),
                catalog.ITEM_TYPES.get(item.type, item.type),
                format_rupiah(item.price),
                f"-{discount}%" if discount else "",
                key=str(item.id),
            )

        self.query_one("#label-result-cnt", Label).update(
            f"Showing {len(page_items)} of {len(results)} items"
        )
        self.query_one("#label-total-page-cnt", Label).update(f" / {self._page_cnt}")
        self.query_one("#btn-prev", Button).disabled = self._page <= 1
        self.query_one("#btn-next", Button).disabled = self._page >= self._page_cnt

        window = self.query_one("#hort-page-window")
        await window.remove_children()
        await window.mount_all(
            [
                Button(
                    str(n),
                    name=str(n),
                    variant="primary" if n == self._page else "default",
                    classes="btn-page",
                )
                for n in catalog.page_window(self._page, self._page_cnt)
            ]
        )

    @on(DataTable.RowSelected, "#table-catalog")
    @work()
    async def handle_item_selected(self, event: DataTable.RowSelected):
        item_id = int(event.row_key.value)
        item = next((i for i in self._items if i.id == item_id), None)
        if item is None:
            return
        discount = best_discount(item, self._promotions)
        if await self.app.push_screen_wait(ItemDetailModal(item, discount)):
            self.post_message(CartChangedMessage())
