from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Input, Label, Rule

import db.crud as crud
from db.errors import AuthError, BackendError
from utils.logger import get_logger
from utils.messages import UserLogoutMessage
from utils.pure import format_date
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal

_logger = get_logger(__name__)


class ProfileScreen(BaseScreen):
    """
    Personal details and password of the signed in customer.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="div-profile"):
            yield Label("Personal Information", classes="section-title")
            yield Label("Email")
            yield Input(id="input-profile-email", disabled=True)
            yield Label("", id="label-joined")
            yield Label("Full name")
            yield Input(placeholder="Jane Doe", id="input-profile-name")
            yield Label("Phone")
            yield Input(placeholder="+62 812 3456 7890", id="input-profile-phone")
            yield Label("Address")
            yield Input(placeholder="Jl. Sudirman No. 1, Jakarta", id="input-profile-address")
            yield Button("Save Changes", id="btn-save-profile", variant="primary")
            yield Rule(line_style="dashed")
            yield Label("Change Password", classes="section-title")
            with Vertical(id="div-password"):
                yield Label("New password")
                yield Input(placeholder="*********", password=True, id="input-new-pwd")
                yield Label("Confirm new password")
                yield Input(placeholder="*********", password=True, id="input-confirm-pwd")
            with Horizontal(id="hort-buttons"):
                yield Button("Change Password", id="btn-change-pwd", variant="warning")
                yield Button("Log out", id="btn-profile-logout", variant="error")

    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self):
        user = self.app.state.auth.user
        if user is None:
            return
        profile = await crud.get_profile(user.id)

        self.query_one("#input-profile-email", Input).value = user.email
        self.query_one("#label-joined", Label).update(
            f"Member since {format_date(profile.created_at if profile else user.created_at)}"
        )
        self.query_one("#input-profile-name", Input).value = (
            (profile.full_name if profile else None) or user.full_name or ""
        )
        self.query_one("#input-profile-phone", Input).value = (
            profile.phone if profile and profile.phone else ""
        )
        self.query_one("#input-profile-address", Input).value = (
            profile.address if profile and profile.address else ""
        )

    @on(Button.Pressed, "#btn-save-profile")
    @work(exclusive=True)
    async def handle_save_profile(self):
        user = self.app.state.auth.require_user()
        full_name = self.query_one("#input-profile-name", Input).value.strip()
        phone = self.query_one("#input-profile-phone", Input).value.strip()
        address = self.query_one("#input-profile-address", Input).value.strip()

        try:
            await crud.upsert_profile(
                user.id, full_name or None, phone or None, address or None
            )
        except BackendError as e:
            _logger.error(f"Error updating profile: {e}")
            self.notify(f"Failed to update profile: {e}", severity="error")
            return

        self.app.state.auth.refresh_user(full_name or None)
        self.notify("Your profile has been updated.", title="Profile Updated")
        await self.handle_sidebar_refresh()

    @on(Button.Pressed, "#btn-change-pwd")
    @work(exclusive=True)
    async def handle_change_password(self):
        new_pwd = self.query_one("#input-new-pwd", Input)
        confirm_pwd = self.query_one("#input-confirm-pwd", Input)

        try:
            await self.app.state.auth.change_password(new_pwd.value, confirm_pwd.value)
        except AuthError as e:
            self.notify(str(e), title="Password Not Changed", severity="error")
            new_pwd.focus()
            return

        new_pwd.value = ""
        confirm_pwd.value = ""
        self.notify("Your password has been changed.", title="Password Updated")

    @on(Button.Pressed, "#btn-profile-logout")
    @work()
    async def handle_logout(self):
        if await self.app.push_screen_wait(
            ConfirmDialogModal(
                "Are you sure you want to log out?",
                tone="warning",
                title="Log Out",
            )
        ):
            self.post_message(UserLogoutMessage())
