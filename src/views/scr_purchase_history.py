from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from db.models import Purchase
from utils import config
from utils.messages import ModeSwitchedMessage, NewPurchaseMessage
from utils.pure import format_datetime, format_rupiah, generate_markdown_table
from views.base_screen import BaseScreen

STATUS_LABELS = {
    "pending": "Pending",
    "processing": "Processing",
    "shipped": "Shipped",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}


class PurchaseHistoryScreen(BaseScreen):
    """
    Customers can browse their purchases and view details.

    Layout:
    - Markdown detail view at the top, showing the highlighted purchase.
    - Purchases table below, most recent first.

    The first visit completes delivery of pending purchases.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Purchase Detail", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._purchases: List[Purchase] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-purchase-detail", show_table_of_contents=False)
            yield DataTable(id="table-purchases")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Label("", id="label-purchase-cnt")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Date", "Items", "Total", "Payment", "Status")

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewPurchaseMessage)
    @work(exclusive=True, group="purchases")
    async def handle_refresh(self):
        purchases = self.app.state.purchases
        if await purchases.complete_pending():
            self.notify("Your items have been delivered to your game inventory.")

        self._purchases = await purchases.purchases()
        table = self.query_one(DataTable)
        table.clear()
        for p in self._purchases:
            table.add_row(
                p.id[:8].upper(),
                format_datetime(p.order_date),
                sum(i.quantity for i in p.items),
                format_rupiah(p.total),
                config.PAYMENT_METHODS.get(p.payment_method, p.payment_method),
                STATUS_LABELS.get(p.status, p.status),
                key=p.id,
            )
        self.query_one("#label-purchase-cnt", Label).update(
            f" {len(self._purchases)} purchase(s)"
        )

        if self._purchases:
            table.cursor_coordinate = (0, 0)
            self._render_detail(self._purchases[0])
        else:
            self._render_detail(None)

    @on(DataTable.RowHighlighted, "#table-purchases")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None:
            return
        purchase = next((p for p in self._purchases if p.id == event.row_key.value), None)
        self._render_detail(purchase)

    def _render_detail(self, purchase: Optional[Purchase]) -> None:
        viewer = self.query_one("#md-purchase-detail", MarkdownViewer)
        if purchase is None:
            viewer.document.update(
                "### No purchases yet.\n\nItems you buy will show up here."
            )
            return

        header = (
            f"### Order #{purchase.id[:8].upper()}\n"
            f"Ordered: {format_datetime(purchase.order_date)}  \n"
            f"Status: {STATUS_LABELS.get(purchase.status, purchase.status)}  \n"
        )
        if purchase.delivery_date:
            header += f"Delivered: {format_datetime(purchase.delivery_date)}  \n"
        header += (
            "Payment: "
            f"{config.PAYMENT_METHODS.get(purchase.payment_method, purchase.payment_method)}\n\n"
        )

        rows = [
            [i.name, i.quantity, format_rupiah(i.price), format_rupiah(i.price * i.quantity)]
            for i in purchase.items
        ]
        md = header + generate_markdown_table(
            ["Item", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
        )
        md += f"\n\n**Total paid:** {format_rupiah(purchase.total)}"
        viewer.document.update(md)
