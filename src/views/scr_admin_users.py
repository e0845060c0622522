from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Label

import db.crud as crud
from db.models import Profile
from utils.pure import format_date
from views.base_screen import BaseScreen


class AdminUsersScreen(BaseScreen):
    """
    Registered customers, searchable by name, phone or address.
    """

    def __init__(self) -> None:
        super().__init__()
        self._profiles: List[Profile] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search users...")
            yield Label("", id="label-user-cnt")
            yield DataTable(id="table-users")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Phone", "Address", "Joined", "Updated")

    @on(ScreenResume)
    @work(exclusive=True, group="admin-users")
    async def handle_reload(self):
        self._profiles = await crud.list_profiles()
        self.render_table()

    @on(Input.Changed, "#input-search")
    def render_table(self):
        term = self.query_one("#input-search", Input).value.strip().lower()
        results = [
            p
            for p in self._profiles
            if not term
            or any(term in (v or "").lower() for v in (p.full_name, p.phone, p.address))
        ]

        table = self.query_one(DataTable)
        table.clear()
        for p in results:
            table.add_row(
                p.full_name or "-",
                p.phone or "-",
                p.address or "-",
                format_date(p.created_at),
                format_date(p.updated_at),
                key=p.id,
            )
        self.query_one("#label-user-cnt", Label).update(
            f"{len(results)} of {len(self._profiles)} users"
        )
