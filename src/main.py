from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils import config
from utils.logger import close_log, get_logger
from utils.messages import (
    CartChangedMessage,
    ModeSwitchedMessage,
    NotificationsChangedMessage,
    QuitRequestedMessage,
    ThemeChangedMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.base_screen import BaseScreen
from views.scr_admin_database import AdminDatabaseScreen
from views.scr_admin_items import AdminItemsScreen
from views.scr_admin_promotions import AdminPromotionsScreen
from views.scr_admin_users import AdminUsersScreen
from views.scr_auth import AuthScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_notifications import NotificationsScreen
from views.scr_profile import ProfileScreen
from views.scr_purchase_history import PurchaseHistoryScreen
from views.scr_settings import SettingsScreen

_logger = get_logger(__name__)


class ItemkuApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "purchases": PurchaseHistoryScreen,
        "notifications": NotificationsScreen,
        "profile": ProfileScreen,
        "settings": SettingsScreen,
        "admin_items": AdminItemsScreen,
        "admin_promotions": AdminPromotionsScreen,
        "admin_users": AdminUsersScreen,
        "admin_database": AdminDatabaseScreen,
    }

    CUSTOMER_MODES = {
        "catalog": "Browse Items",
        "cart": "Cart",
        "purchases": "Purchase History",
        "notifications": "Notifications",
        "profile": "Profile",
        "settings": "Settings",
    }
    ADMIN_MODES = {
        "admin_items": "Items",
        "admin_promotions": "Promotions",
        "admin_users": "Users",
        "admin_database": "Database",
        "settings": "Settings",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/auth.tcss",
        "styles/catalog.tcss",
        "styles/cart.tcss",
        "styles/purchases.tcss",
        "styles/account.tcss",
        "styles/admin.tcss",
    ]

    state: GlobalState

    def __init__(self, state: GlobalState = None):
        super().__init__()
        self.state = state or GlobalState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.title = config.APP_TITLE
        self.sub_title = config.APP_SUB_TITLE
        self.theme = self.state.preferences.toolkit_theme()
        self.main_flow()

    def action_switch_light(self):
        theme = "light" if self.theme == "textual-dark" else "dark"
        self.theme = self.state.preferences.set_theme(theme)
        self.notify(f"Theme changed to {theme}")

    @on(ThemeChangedMessage)
    def handle_theme_changed(self, message: ThemeChangedMessage):
        self.theme = message.theme

    @on(CartChangedMessage)
    @on(NotificationsChangedMessage)
    async def handle_badges_changed(self):
        if isinstance(self.screen, BaseScreen):
            await self.screen.refresh_badges()

    def schedule_delivery_notice(self):
        """
        in-game delivery is simulated: a notice follows every purchase
        after a short delay
        """
        self.set_timer(config.DELIVERY_NOTICE_DELAY, self.announce_delivery)

    @work()
    async def announce_delivery(self):
        if await self.state.announce_delivery():
            self.notify(
                "Your purchased items have been successfully added to your game inventory!",
                title="Items Added to Game",
            )
            self.post_message(NotificationsChangedMessage())

    @on(UserLogoutMessage)
    def handle_user_logout(self):
        self.state.end_session()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        if not await self.state.auth.restore():
            await self.push_screen_wait(AuthScreen())
        else:
            self.state.start_session()
            _logger.info(f"Restored session of {self.state.uid}")

        new_mode = "admin_items" if self.state.is_admin else "catalog"
        self.post_message(ModeSwitchedMessage(self.current_mode, new_mode))
        await self.switch_mode(new_mode)


def run():
    try:
        ItemkuApp().run()
    finally:
        close_log()


if __name__ == "__main__":
    run()
