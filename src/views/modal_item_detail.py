from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from db.models import Item
from utils.catalog import CATEGORIES, ITEM_TYPES
from utils.pure import format_date, format_rupiah, generate_markdown_table


class ItemDetailModal(ModalScreen[bool]):
    """
    item detail, plus adding it to the cart
    Will return true if cart changed, false if not
    """

    BINDINGS = [("escape", "close", "Close")]

    order_qty = reactive(1)

    def __init__(self, item: Item, discount: int = 0) -> None:
        super().__init__()

        self._item = item
        self._discount = discount

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-item-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("", id="label-in-cart")
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(
                        value="1",
                        id="input-order-qty",
                        type="integer",
                        validators=[Number(minimum=1)],
                    )
                    yield Button("+", id="btn-add-qty")
                yield Label("", id="label-line-total")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        item = self._item
        table_headers = ["Attribute", "Value"]
        table_align = ["l", "l"]
        table_rows = [
            ["Game", CATEGORIES.get(item.category, item.category)],
            ["Type", ITEM_TYPES.get(item.type, item.type)],
            ["Price", format_rupiah(item.price)],
        ]
        if self._discount:
            table_rows.append(["Promotion", f"{self._discount}% promotion running"])
        if item.created_at:
            table_rows.append(["Listed", format_date(item.created_at)])
        md = f"### {item.name}\n\n"
        md += generate_markdown_table(table_headers, table_rows, table_align)
        md += f"\n\n{item.description or 'No description available.'}\n"
        await self.query_one(MarkdownViewer).document.update(md)

        existing = self.app.state.cart.get(item.id)
        if existing:
            self.query_one("#label-in-cart", Label).update(
                f"Already in cart: {existing.quantity}"
            )

        self.watch_order_qty(self.order_qty)
        self.query_one("#input-order-qty").focus()

    def action_close(self) -> None:
        self.dismiss(False)

    def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def watch_order_qty(self, qty: int):
        if not self.is_mounted:
            return
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        input_order_qty = self.query_one("#input-order-qty", Input)
        if input_order_qty.value != str(qty):
            input_order_qty.value = str(qty)
        self.query_one("#label-line-total", Label).update(
            f"Subtotal: {format_rupiah(self._item.price * qty)}"
        )

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        if self.order_qty > 1:
            self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self):
        self.app.state.cart.add_to_cart(self._item, self.order_qty)
        self.app.notify(
            f"{self.order_qty}x {self._item.name} has been added to your cart.",
            title="Added to Cart",
        )
        self.dismiss(True)
