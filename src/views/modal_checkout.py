from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer, RadioButton, RadioSet

from db.errors import BackendError
from utils import config
from utils.logger import get_logger
from utils.messages import NewPurchaseMessage, NotificationsChangedMessage
from utils.pricing import compute_totals
from utils.pure import format_rupiah, generate_markdown_table
from views.modal_dialog import ConfirmDialogModal

_logger = get_logger(__name__)


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary with tax, and a choice of payment method.
    Return True once the order is placed, False otherwise.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Payment Method")
            with RadioSet(id="radio-payment"):
                for i, (key, label) in enumerate(config.PAYMENT_METHODS.items()):
                    yield RadioButton(label, value=i == 0, name=key)
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart_items = self.app.state.cart.items
        totals = compute_totals(cart_items)

        headers = ["Item", "Unit Price", "Quantity", "Total Price"]
        rows = []
        for item in cart_items:
            rows.append(
                [
                    item.name,
                    format_rupiah(item.price),
                    item.quantity,
                    format_rupiah(item.line_total),
                ]
            )
        aligns = ["l", "r", "c", "r"]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(headers, rows, aligns)
        md += (
            f"\n\n**Subtotal:** {format_rupiah(totals.subtotal)}  \n"
            f"**Discount:** -{format_rupiah(totals.discount)}  \n"
            f"**Tax ({config.TAX_RATE:.0%}):** {format_rupiah(totals.tax)}  \n"
            f"**Total:** {format_rupiah(totals.total)}"
        )
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#radio-payment").focus()

    def action_close(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        pressed = self.query_one("#radio-payment", RadioSet).pressed_button
        if pressed is None:
            self.notify("Please choose a payment method.", severity="error")
            return
        payment_method = pressed.name

        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f"Pay with {config.PAYMENT_METHODS[payment_method]}? This cannot be undone.",
                tone="positive",
                title="Confirm Payment",
            )
        ):
            return

        try:
            purchase = await self.app.state.place_order(payment_method)
        except (BackendError, ValueError) as e:
            _logger.error(f"Checkout failed: {e}")
            self.notify(str(e), title="Checkout Failed", severity="error")
            return

        self.notify(
            f"Your purchase has been completed. Total: {format_rupiah(purchase.total)}",
            title="Purchase Successful",
        )
        self.app.post_message(NewPurchaseMessage())
        self.app.post_message(NotificationsChangedMessage())
        self.app.schedule_delivery_notice()
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
