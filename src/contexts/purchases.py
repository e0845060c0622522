from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

import db.crud as crud
from contexts.auth import AuthContext
from db.models import Purchase, PurchaseItem, PurchaseStatus
from utils.logger import get_logger
from utils.query_cache import QueryCache

_logger = get_logger(__name__)


class PurchaseHistoryContext:
    """Purchases of the signed-in user, cached under ("purchases", uid)."""

    def __init__(self, auth: AuthContext, cache: QueryCache) -> None:
        self._auth = auth
        self._cache = cache
        self._completed_for: Optional[str] = None

    async def purchases(self) -> List[Purchase]:
        if self._auth.user is None:
            return []
        uid = self._auth.user.id
        return await self._cache.fetch(
            ("purchases", uid), lambda: crud.list_purchases(uid)
        )

    async def add_purchase(
        self,
        items: Sequence[PurchaseItem],
        total: int,
        payment_method: str,
        status: PurchaseStatus = "pending",
        order_date: Optional[datetime] = None,
        delivery_date: Optional[datetime] = None,
    ) -> Purchase:
        user = self._auth.require_user()
        try:
            purchase = await crud.add_purchase(
                user.id,
                items,
                total,
                payment_method,
                status=status,
                order_date=order_date,
                delivery_date=delivery_date,
            )
        except Exception as e:
            _logger.error(f"Error adding purchase: {e}")
            raise
        self._cache.invalidate(("purchases",))
        return purchase

    async def update_purchase_status(self, purchase_id: str, status: PurchaseStatus) -> bool:
        try:
            changed = await crud.update_purchase_status(purchase_id, status)
        except Exception as e:
            _logger.error(f"Error updating purchase status: {e}")
            raise
        self._cache.invalidate(("purchases",))
        return changed

    async def complete_pending(self) -> int:
        """
        Mark every purchase that is not delivered yet as delivered.
        Runs once per signed-in user, on the first visit of the history page.
        """
        user = self._auth.user
        if user is None or self._completed_for == user.id:
            return 0
        pending = [p for p in await self.purchases() if p.status != "delivered"]
        if not pending:
            return 0
        self._completed_for = user.id
        for p in pending:
            await crud.update_purchase_status(p.id, "delivered")
        self._cache.invalidate(("purchases",))
        return len(pending)

    def reset(self) -> None:
        self._completed_for = None
