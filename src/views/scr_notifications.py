from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

from db.models import Notification
from utils.messages import ModeSwitchedMessage, NotificationsChangedMessage
from utils.pure import format_datetime
from views.base_screen import BaseScreen

TYPE_ICONS = {"success": "✔", "error": "✖", "info": "ℹ"}


class NotificationsScreen(BaseScreen):
    """
    notifications of the signed in user, newest first
    """

    BINDINGS = [
        Binding("enter", "noop", "Mark as Read", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._notifications: List[Notification] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-unread")
        yield DataTable(id="table-notifications")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Mark all as read", id="btn-read-all", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "Title", "Message", "Time")

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NotificationsChangedMessage)
    @work(exclusive=True, group="notifications")
    async def handle_refresh(self):
        self._notifications = await self.app.state.notifications.notifications()
        unread = sum(1 for n in self._notifications if not n.read)

        table = self.query_one(DataTable)
        table.clear()
        for n in self._notifications:
            icon = TYPE_ICONS.get(n.type, "")
            table.add_row(
                icon if n.read else f"[b]{icon} •[/b]",
                n.title if n.read else f"[b]{n.title}[/b]",
                n.message,
                format_datetime(n.timestamp),
                key=n.id,
            )

        if not self._notifications:
            self.query_one("#label-unread", Label).update("You have no notifications.")
        else:
            self.query_one("#label-unread", Label).update(f"{unread} unread")
        self.query_one("#btn-read-all", Button).disabled = unread == 0
        await self.refresh_badges()

    @on(DataTable.RowSelected, "#table-notifications")
    async def handle_row_selected(self, event: DataTable.RowSelected):
        notification = next(
            (n for n in self._notifications if n.id == event.row_key.value), None
        )
        if notification is None or notification.read:
            return
        await self.app.state.notifications.mark_as_read(notification.id)
        self.post_message(NotificationsChangedMessage())

    @on(Button.Pressed, "#btn-read-all")
    async def handle_read_all(self):
        changed = await self.app.state.notifications.mark_all_as_read()
        if changed:
            self.notify(f"Marked {changed} notification(s) as read.")
        self.post_message(NotificationsChangedMessage())
