from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Label, RadioButton, RadioSet, Switch

from contexts.preferences import THEME_CHOICES
from utils.messages import ThemeChangedMessage
from views.base_screen import BaseScreen

SETTING_LABELS = {
    "email_notifications": ("Email Notifications", "Receive order updates by email"),
    "push_notifications": ("Push Notifications", "Get notified about purchases in the app"),
    "marketing_emails": ("Marketing Emails", "Promotions and new items"),
    "public_profile": ("Public Profile", "Other players can see your profile"),
    "share_data": ("Share Usage Data", "Help us improve the marketplace"),
}


class SettingsScreen(BaseScreen):
    """
    theme, notification and privacy preferences
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="div-settings"):
            yield Label("Appearance", classes="section-title")
            with RadioSet(id="radio-theme"):
                for choice in THEME_CHOICES:
                    yield RadioButton(choice.capitalize(), name=choice)
            yield Label("Notifications", classes="section-title")
            for key in ("email_notifications", "push_notifications", "marketing_emails"):
                yield from self._setting_row(key)
            yield Label("Privacy", classes="section-title")
            for key in ("public_profile", "share_data"):
                yield from self._setting_row(key)
            yield Button("Save Settings", id="btn-save-settings", variant="primary")

    def _setting_row(self, key: str) -> ComposeResult:
        title, hint = SETTING_LABELS[key]
        with Horizontal(classes="setting-row"):
            yield Switch(id=f"switch-{key}")
            yield Label(f"[b]{title}[/b]\n{hint}")

    @on(ScreenResume)
    def handle_reload(self):
        prefs = self.app.state.preferences
        for button in self.query_one("#radio-theme", RadioSet).query(RadioButton):
            button.value = button.name == prefs.theme
        for key in SETTING_LABELS:
            switch = self.query_one(f"#switch-{key}", Switch)
            with switch.prevent(Switch.Changed):
                switch.value = getattr(prefs.settings, key)

    @on(RadioSet.Changed, "#radio-theme")
    def handle_theme_changed(self, event: RadioSet.Changed):
        choice = event.pressed.name
        if choice == self.app.state.preferences.theme:
            return
        theme = self.app.state.preferences.set_theme(choice)
        self.post_message(ThemeChangedMessage(theme))

    @on(Switch.Changed)
    def handle_switch_changed(self, event: Switch.Changed):
        key = event.switch.id.removeprefix("switch-")
        self.app.state.preferences.update(**{key: event.value})

    @on(Button.Pressed, "#btn-save-settings")
    def handle_save(self):
        self.app.state.preferences.save()
        self.notify("Your settings have been saved.", title="Settings Saved")
