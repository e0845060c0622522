from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.models import CartItem
from utils.catalog import CATEGORIES
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import format_rupiah
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import ConfirmDialogModal


class CartLineActionMessage(Message):
    bubble = True

    def __init__(self, action: str) -> None:
        super().__init__()
        self.action = action


class CartLineActionLabel(Label):
    def action_increase(self):
        self.post_message(CartLineActionMessage("increase"))

    def action_decrease(self):
        self.post_message(CartLineActionMessage("decrease"))

    def action_remove(self):
        self.post_message(CartLineActionMessage("remove"))


class CartLineWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.name, id="label-item-name")
                yield Label(
                    CATEGORIES.get(self.item.category, self.item.category),
                    id="label-item-game",
                )
                yield Label(
                    f"{self.item.quantity} x {format_rupiah(self.item.price)}",
                    id="label-item-qty",
                )
                yield Label(format_rupiah(self.item.line_total), id="label-item-price")
            with Container(id="div-actions"):
                yield CartLineActionLabel(
                    "[@click=decrease()] - [/]", id="link-item-decrease"
                )
                yield CartLineActionLabel(
                    "[@click=increase()] + [/]", id="link-item-increase"
                )
                yield CartLineActionLabel(
                    "[@click=remove()]Remove[/]", id="link-item-remove"
                )

    @on(CartLineActionMessage)
    @work()
    async def handle_line_action(self, message: CartLineActionMessage):
        message.stop()
        cart = self.app.state.cart
        if message.action == "increase":
            cart.update_quantity(self.item.id, self.item.quantity + 1)
        elif message.action == "decrease" and self.item.quantity > 1:
            cart.update_quantity(self.item.id, self.item.quantity - 1)
        else:
            remove_confirmed = await self.app.push_screen_wait(
                ConfirmDialogModal(
                    f"Remove {self.item.name} from cart?",
                    tone="warning",
                )
            )
            if not remove_confirmed:
                return
            cart.remove_from_cart(self.item.id)
            self.notify(
                f"{self.item.name} has been removed from your cart.",
                title="Item Removed",
            )
        self.post_message(CartChangedMessage())


class CartScreen(BaseScreen):
    """
    cart lines with quantity controls, total and checkout
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: Rp 0", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Continue Shopping", id="btn-shop")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # must exclusive, else might race cond and gen duplicate
    async def handle_cart_change(self):
        cart = self.app.state.cart
        content = self.query_one("#vertscroll-content")

        await content.remove_children()
        await content.mount_all([CartLineWidget(item) for item in cart.items])

        if not cart.items:
            content.add_class("no-items")
        else:
            content.remove_class("no-items")

        self.query_one("#label-cart-total", Label).update(
            f"Total ({cart.get_total_items()} items): {format_rupiah(cart.get_total_price())}"
        )
        self.query_one("#btn-checkout", Button).disabled = not cart.items
        await self.refresh_badges()

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            ConfirmDialogModal(
                "Do you really want to remove all items from cart?",
                tone="error",
                title="Clear Cart",
            )
        )
        if remove_confirmed:
            self.app.state.cart.clear_cart()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-shop")
    async def handle_continue_shopping(self) -> None:
        self.post_message(ModeSwitchedMessage(self.app.current_mode, "catalog"))
        await self.app.switch_mode("catalog")

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(CheckoutModal()):
            self.post_message(CartChangedMessage())
