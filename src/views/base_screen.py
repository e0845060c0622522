import asyncio

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils import config
from utils.messages import ModeSwitchedMessage, UserLoginMessage, UserLogoutMessage
from utils.pure import format_date, generate_markdown_table
from views.modal_dialog import ConfirmDialogModal, QuitDialogModal
from views.modal_resize import ResizeScreenPromptModal


class Sidebar(Container):
    init_mode = ""

    def __init__(self):
        super().__init__()
        # mount and screen resume both rebuild the menu
        self._refresh_lock = asyncio.Lock()

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Label("", id="label-cart-count")
        yield Label("", id="label-unread-count")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.refresh_user_info()

    async def refresh_user_info(self):
        """
        rebuild user table and menu, the signed in user may have changed
        since this screen was created
        """
        async with self._refresh_lock:
            await self._render_user_info()

    async def _render_user_info(self):
        user = self.app.state.auth.user
        if user is None:
            return

        table_align = ["l", "l"]
        if user.is_admin:
            table_rows = [
                ["Name", user.display_name],
                ["Email", user.email],
                ["Role", "Administrator"],
            ]
            modes = self.app.ADMIN_MODES
        else:
            table_rows = [
                ["Name", user.display_name],
                ["Email", user.email],
                ["Joined", format_date(user.created_at)],
            ]
            modes = self.app.CUSTOMER_MODES
        md_table_str = generate_markdown_table(None, table_rows, table_align)
        await self.query_one(Markdown).update(md_table_str)

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in modes.items()]
        )
        self.highlight_item(self.init_mode)
        await self.refresh_counts()

    async def refresh_counts(self):
        state = self.app.state
        cart_label = self.query_one("#label-cart-count", Label)
        unread_label = self.query_one("#label-unread-count", Label)
        if state.is_admin or not state.auth.is_authenticated:
            cart_label.display = False
            unread_label.display = False
            return

        cart_label.display = True
        unread_label.display = True
        cart_label.update(f"Cart: {state.cart.get_total_items()} item(s)")
        unread = await state.notifications.get_unread_count()
        unread_label.update(f"Notifications: {unread} unread")

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                "Are you sure you want to log out?",
                tone="warning",
                title="Log Out",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Base Screen",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        :return:
        """

        # auto gen titles and subtitles
        self.app.title = config.APP_TITLE
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                if k in self.app.ADMIN_MODES:
                    self.sub_title = self.app.ADMIN_MODES[k]
                elif k in self.app.CUSTOMER_MODES:
                    self.sub_title = self.app.CUSTOMER_MODES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        min_width = 80
        min_height = 24
        if isinstance(self.app.screen, ResizeScreenPromptModal):
            return
        if event.size.width < min_width or event.size.height < min_height:
            self.app.push_screen(ResizeScreenPromptModal(min_width, min_height))

    @on(ScreenResume)
    @on(UserLoginMessage)
    async def handle_sidebar_refresh(self):
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_user_info()

    async def refresh_badges(self):
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_counts()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())

    def action_noop(self):
        """footer hint bindings point here, the widgets handle the key"""
