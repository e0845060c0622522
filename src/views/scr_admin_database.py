from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

import db.crud as crud
from db import database
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen

TABLE_INFO = {
    "items": "Game items and products",
    "profiles": "User profiles and information",
    "notifications": "User notifications",
    "purchase_history": "Purchase transactions",
}


def _size(n_bytes: int) -> str:
    for unit in ("B", "KB", "MB"):
        if n_bytes < 1024:
            return f"{n_bytes:.0f} {unit}"
        n_bytes /= 1024
    return f"{n_bytes:.1f} GB"


class AdminDatabaseScreen(BaseScreen):
    """
    Database overview: row count of every table and the health of the file.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-db", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    @on(Button.Pressed, "#btn-refresh")
    @on(CatalogChangedMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        info = await database.status()
        counts = await crud.table_counts() if info["online"] else {}

        rows = [
            [f"`{table}`", description, f"{counts.get(table, 0):,}", "Active" if info["online"] else "-"]
            for table, description in TABLE_INFO.items()
        ]
        md = "### Database Overview\n\n"
        md += generate_markdown_table(
            ["Table Name", "Description", "Records", "Status"], rows, ["l", "l", "r", "c"]
        )
        md += "\n\n### Database Status\n\n"
        if info["online"]:
            md += "**Database Online**, all systems operational and responsive.\n\n"
        else:
            md += f"**Database Offline**: {info['error']}\n\n"
        md += generate_markdown_table(
            ["Property", "Value"],
            [
                ["File", f"`{info['path']}`"],
                ["Size", _size(info["size"])],
                ["Schema version", info["schema_version"] if info["schema_version"] is not None else "-"],
                ["Total records", f"{sum(counts.values()):,}"],
            ],
            ["l", "l"],
        )
        self.query_one("#md-db", MarkdownViewer).document.update(md)
