from __future__ import annotations

from typing import List

import db.crud as crud
from contexts.auth import AuthContext
from db.models import Notification, NotificationType
from utils.logger import get_logger
from utils.query_cache import QueryCache

_logger = get_logger(__name__)


class NotificationContext:
    """Notifications of the signed-in user, cached under ("notifications", uid)."""

    def __init__(self, auth: AuthContext, cache: QueryCache) -> None:
        self._auth = auth
        self._cache = cache

    async def notifications(self) -> List[Notification]:
        if self._auth.user is None:
            return []
        uid = self._auth.user.id
        return await self._cache.fetch(
            ("notifications", uid), lambda: crud.list_notifications(uid)
        )

    async def add_notification(
        self, type: NotificationType, title: str, message: str
    ) -> Notification:
        user = self._auth.require_user()
        notification = await crud.add_notification(user.id, type, title, message)
        self._cache.invalidate(("notifications",))
        return notification

    async def mark_as_read(self, notification_id: str) -> bool:
        changed = await crud.mark_notification_read(notification_id)
        self._cache.invalidate(("notifications",))
        return changed

    async def mark_all_as_read(self) -> int:
        user = self._auth.require_user()
        changed = await crud.mark_all_notifications_read(user.id)
        _logger.debug(f"Marked {changed} notifications read for {user.id}")
        self._cache.invalidate(("notifications",))
        return changed

    async def get_unread_count(self) -> int:
        return sum(1 for n in await self.notifications() if not n.read)
