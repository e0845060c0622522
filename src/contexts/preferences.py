from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Literal, get_args

from utils import config
from utils.logger import get_logger
from utils.storage import KeyValueStore

_logger = get_logger(__name__)

ThemeChoice = Literal["light", "dark", "system"]
THEME_CHOICES = get_args(ThemeChoice)

THEME_KEY = "itemku_theme"
SETTINGS_KEY = "itemku_settings"

TOOLKIT_THEMES = {"light": "textual-light", "dark": "textual-dark"}


@dataclass(frozen=True)
class Settings:
    email_notifications: bool = True
    push_notifications: bool = True
    marketing_emails: bool = False
    public_profile: bool = True
    share_data: bool = False


class PreferencesContext:
    """Theme choice and account settings, persisted in the key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self.theme: ThemeChoice = "system"
        self.settings = Settings()
        self.load()

    def load(self) -> None:
        theme = self._store.get(THEME_KEY, "system")
        if theme not in THEME_CHOICES:
            _logger.warning(f"Unknown theme {theme!r} in store, using system")
            theme = "system"
        self.theme = theme

        raw = self._store.get(SETTINGS_KEY, {})
        known = {f.name for f in fields(Settings)}
        if not isinstance(raw, dict):
            raw = {}
        self.settings = Settings(
            **{k: bool(v) for k, v in raw.items() if k in known}
        )

    def set_theme(self, theme: str) -> str:
        """Store the choice and return the Textual theme it resolves to."""
        if theme not in THEME_CHOICES:
            raise ValueError(f"Unknown theme: {theme}")
        self.theme = theme
        self._store.set(THEME_KEY, theme)
        return self.toolkit_theme()

    def resolved_theme(self) -> str:
        if self.theme == "system":
            return config.SYSTEM_THEME if config.SYSTEM_THEME in TOOLKIT_THEMES else "dark"
        return self.theme

    def toolkit_theme(self) -> str:
        return TOOLKIT_THEMES[self.resolved_theme()]

    def update(self, **changes: bool) -> Settings:
        self.settings = replace(self.settings, **changes)
        return self.settings

    def save(self) -> None:
        self._store.set(SETTINGS_KEY, asdict(self.settings))
        _logger.info("Settings saved")
