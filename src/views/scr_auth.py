from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import (
    Button,
    Checkbox,
    Input,
    Label,
    ListItem,
    ListView,
    TabbedContent,
    TabPane,
)

from db.errors import AuthError
from utils import config
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal, SimpleDialogModal


class AuthScreen(BaseScreen):
    """
    Sign in, sign up and password recovery.
    Dismissed once a user (or the administrator) is signed in.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Welcome", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-authscr"):
            with TabPane("Login", id="tab-login"):
                with Horizontal(id="hort-login"):
                    with Vertical(id="div-login"):
                        yield Label("Email")
                        yield Input(placeholder="user@example.com", id="input-login-email")
                        yield Label("Password")
                        yield Input(
                            placeholder="*********", password=True, id="input-login-pwd"
                        )
                        yield Checkbox("Remember this account", id="chk-remember")
                        with Horizontal(id="div-login-btns"):
                            yield Button("Quit", id="btn-quit")
                            yield Button("Login", id="btn-login", variant="primary")
                    with Vertical(id="div-saved-accounts"):
                        yield Label("Saved accounts")
                        yield ListView(id="list-saved-accounts")
                        yield Button("Remove", id="btn-remove-saved", variant="error")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Full name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    yield Label("Confirm password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-confirm"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

            with TabPane("Forgot password", id="tab-forgot"):
                with Vertical(id="div-forgot"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-forgot-email")
                    yield Button("Send reset code", id="btn-forgot-request")
                    yield Label("Reset code")
                    yield Input(id="input-forgot-token")
                    yield Label("New password")
                    yield Input(
                        placeholder="*********", password=True, id="input-forgot-pwd"
                    )
                    yield Label("Confirm new password")
                    yield Input(
                        placeholder="*********", password=True, id="input-forgot-confirm"
                    )
                    yield Button(
                        "Set new password", id="btn-forgot-reset", variant="primary"
                    )

    async def on_mount(self):
        await self.render_saved_accounts()
        self.query_one("#input-login-email").focus()

    async def render_saved_accounts(self):
        accounts = self.app.state.auth.saved_accounts
        list_view = self.query_one("#list-saved-accounts", ListView)
        await list_view.clear()
        await list_view.extend(
            [
                ListItem(Label(f"{a.name or a.email}\n{a.email}"), name=a.email)
                for a in accounts
            ]
        )
        self.query_one("#div-saved-accounts").display = bool(accounts)

    @on(ListView.Selected, "#list-saved-accounts")
    def handle_saved_account_selected(self, event: ListView.Selected):
        self.query_one("#input-login-email", Input).value = event.item.name or ""
        self.query_one("#input-login-pwd", Input).focus()

    @on(Button.Pressed, "#btn-remove-saved")
    async def handle_remove_saved(self):
        list_view = self.query_one("#list-saved-accounts", ListView)
        item = list_view.highlighted_child
        if item is None:
            self.notify("Select a saved account first.", severity="warning")
            return
        self.app.state.auth.remove_saved_account(item.name)
        await self.render_saved_accounts()

    @on(Input.Submitted, "#input-login-pwd")
    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self):
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        try:
            user = await self.app.state.auth.login(
                email, pwd, save_account=self.query_one("#chk-remember", Checkbox).value
            )
        except AuthError as e:
            self.notify(str(e), title="Login Failed", severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        self.app.state.start_session()
        self.notify(f"Welcome back, {user.display_name}!", title="Login Successful")
        self.app.post_message(UserLoginMessage())
        self.dismiss()

    @on(Input.Submitted, "#input-reg-confirm")
    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self):
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value
        confirm = self.query_one("#input-reg-confirm", Input).value

        if not name or not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        try:
            user = await self.app.state.auth.register(name, email, pwd, confirm)
        except AuthError as e:
            self.notify(str(e), title="Registration Failed", severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(
                f"Registration successful. Welcome to {config.APP_TITLE}, {user.display_name}!",
                tone="positive",
                title="Registration Successful",
            )
        )

        for input_id in ("#input-reg-name", "#input-reg-email", "#input-reg-pwd", "#input-reg-confirm"):
            self.query_one(input_id, Input).value = ""
        await self.render_saved_accounts()

        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = user.email
        self.query_one("#input-login-pwd", Input).focus()

    @on(Button.Pressed, "#btn-forgot-request")
    @work(exclusive=True)
    async def handle_forgot_request(self):
        email = self.query_one("#input-forgot-email", Input).value.strip()
        if not email:
            self.notify("Please enter your email.", severity="error")
            return

        try:
            token = await self.app.state.auth.reset_password(email)
        except AuthError as e:
            self.notify(str(e), title="Reset Failed", severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(
                f"Password reset requested for {email}.\nYour reset code is: {token}",
                title="Check Your Email",
            )
        )
        self.query_one("#input-forgot-token", Input).value = token
        self.query_one("#input-forgot-pwd", Input).focus()

    @on(Button.Pressed, "#btn-forgot-reset")
    @work(exclusive=True)
    async def handle_forgot_reset(self):
        token = self.query_one("#input-forgot-token", Input).value.strip()
        pwd = self.query_one("#input-forgot-pwd", Input).value
        confirm = self.query_one("#input-forgot-confirm", Input).value

        if not token:
            self.notify("Request a reset code first.", severity="error")
            return
        if pwd != confirm:
            self.notify("New passwords do not match!", severity="error")
            return

        try:
            user = await self.app.state.auth.complete_password_reset(token, pwd)
        except AuthError as e:
            self.notify(str(e), title="Reset Failed", severity="error")
            return

        self.notify("Password updated, you can sign in now.", title="Password Reset")
        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = user.email
        self.query_one("#input-login-pwd", Input).focus()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
