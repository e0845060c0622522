from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import db.crud as crud
from db.errors import AuthError, NotAuthenticatedError
from db.models import SavedAccount, User
from utils import config
from utils.logger import get_logger
from utils.storage import KeyValueStore

_logger = get_logger(__name__)

SAVED_ACCOUNTS_KEY = "itemku_saved_accounts"
ADMIN_SESSION_KEY = "itemku_admin_session"
USER_SESSION_KEY = "itemku_session"

# raw backend error codes -> what the user gets to read
FRIENDLY_MESSAGES = {
    "login": {
        "invalid_credentials": "The email or password you entered is incorrect. Please check again.",
    },
    "register": {
        "user_exists": "This email is already registered. Please use another email or login.",
        "weak_password": f"Password must have at least {config.MIN_PASSWORD_LENGTH} characters.",
        "invalid_email": "Invalid email format. Please check again.",
    },
    "reset": {
        "invalid_email": "Invalid email format. Please check again.",
        "user_not_found": "Email not found. Please check again or register a new account.",
        "invalid_token": "This reset code is invalid or has already been used.",
        "weak_password": f"New password must be at least {config.MIN_PASSWORD_LENGTH} characters long!",
    },
}


def _friendly(action: str, err: AuthError) -> AuthError:
    message = FRIENDLY_MESSAGES.get(action, {}).get(err.code, str(err))
    return AuthError(message, code=err.code)


def admin_user() -> User:
    return User(
        id=config.ADMIN_ID,
        email=config.ADMIN_EMAIL,
        full_name=config.ADMIN_NAME,
        created_at=datetime.now(),
        is_admin=True,
    )


class AuthContext:
    """
    Who is signed in, plus the list of accounts remembered on this machine.

    Sessions and saved accounts live in the local key-value store so a
    restart lands the user back where they were.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self.user: Optional[User] = None
        self.saved_accounts: List[SavedAccount] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    def require_user(self) -> User:
        if self.user is None:
            raise NotAuthenticatedError()
        return self.user

    async def restore(self) -> Optional[User]:
        """Reload saved accounts and any persisted session."""
        self.saved_accounts = []
        for entry in self._store.get(SAVED_ACCOUNTS_KEY, []):
            try:
                self.saved_accounts.append(SavedAccount(**entry))
            except TypeError as e:
                _logger.error(f"Error loading saved accounts: {e}")
                self._store.remove(SAVED_ACCOUNTS_KEY)
                self.saved_accounts = []
                break

        admin_session = self._store.get(ADMIN_SESSION_KEY)
        if admin_session:
            if isinstance(admin_session, dict) and admin_session.get("email") == config.ADMIN_EMAIL:
                self.user = admin_user()
                return self.user
            _logger.error("Error loading admin session, discarding it")
            self._store.remove(ADMIN_SESSION_KEY)

        user_id = self._store.get(USER_SESSION_KEY)
        if user_id:
            self.user = await crud.get_user(user_id)
            if self.user is None:
                _logger.warning(f"Stored session for unknown user {user_id}, discarding it")
                self._store.remove(USER_SESSION_KEY)
        return self.user

    def _save_account(self, email: str, name: Optional[str]) -> None:
        accounts = [a for a in self.saved_accounts if a.email != email]
        accounts.insert(0, SavedAccount(email=email, name=name))
        self.saved_accounts = accounts[: config.MAX_SAVED_ACCOUNTS]
        self._store.set(
            SAVED_ACCOUNTS_KEY,
            [{"email": a.email, "name": a.name} for a in self.saved_accounts],
        )

    def remove_saved_account(self, email: str) -> None:
        self.saved_accounts = [a for a in self.saved_accounts if a.email != email]
        self._store.set(
            SAVED_ACCOUNTS_KEY,
            [{"email": a.email, "name": a.name} for a in self.saved_accounts],
        )

    async def login(self, email: str, password: str, save_account: bool = False) -> User:
        email = (email or "").strip()
        if email == config.ADMIN_EMAIL and password == config.ADMIN_PASSWORD:
            self._store.set(
                ADMIN_SESSION_KEY,
                {
                    "email": config.ADMIN_EMAIL,
                    "name": config.ADMIN_NAME,
                    "timestamp": datetime.now().timestamp(),
                },
            )
            self.user = admin_user()
            _logger.info("Admin signed in")
            return self.user

        try:
            user = await crud.sign_in(email, password)
        except AuthError as e:
            _logger.error(f"Login error for {email}: {e}")
            raise _friendly("login", e) from e

        self.user = user
        self._store.set(USER_SESSION_KEY, user.id)
        if save_account:
            self._save_account(email, user.full_name)
        _logger.info(f"User {user.id} signed in")
        return user

    async def register(self, name: str, email: str, password: str, confirm: Optional[str] = None) -> User:
        """
        Create an account and remember it; the user still has to sign in.
        """
        if not (name or "").strip():
            raise AuthError("Full name is required", code="missing_name")
        if confirm is not None and password != confirm:
            raise AuthError("Passwords do not match", code="password_mismatch")
        try:
            user = await crud.sign_up(name.strip(), email, password)
        except AuthError as e:
            _logger.error(f"Registration error for {email}: {e}")
            raise _friendly("register", e) from e
        self._save_account(user.email, user.full_name)
        return user

    def logout(self) -> None:
        if self.user is not None:
            _logger.info(f"User {self.user.id} signed out")
        self._store.remove(ADMIN_SESSION_KEY)
        self._store.remove(USER_SESSION_KEY)
        self.user = None

    def switch_account(self) -> None:
        self.logout()

    async def reset_password(self, email: str) -> str:
        """Request a reset code for email; returns the issued code."""
        try:
            return await crud.request_password_reset(email)
        except AuthError as e:
            _logger.error(f"Reset password error for {email}: {e}")
            raise _friendly("reset", e) from e

    async def complete_password_reset(self, token: str, new_password: str) -> User:
        try:
            return await crud.reset_password(token, new_password)
        except AuthError as e:
            _logger.error(f"Reset password error: {e}")
            raise _friendly("reset", e) from e

    async def change_password(self, new_password: str, confirm: str) -> None:
        user = self.require_user()
        if new_password != confirm:
            raise AuthError("New passwords do not match!", code="password_mismatch")
        if len(new_password or "") < config.MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"New password must be at least {config.MIN_PASSWORD_LENGTH} characters long!",
                code="weak_password",
            )
        if user.is_admin:
            raise AuthError(
                "The administrator password is set through configuration.",
                code="admin_password",
            )
        await crud.update_password(user.id, new_password)

    def refresh_user(self, full_name: Optional[str]) -> None:
        """Keep the in-memory user in sync after a profile edit."""
        if self.user is not None and not self.user.is_admin:
            self.user = User(
                id=self.user.id,
                email=self.user.email,
                full_name=full_name,
                created_at=self.user.created_at,
            )
