from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from contexts.auth import AuthContext
from contexts.cart import CartContext
from contexts.notifications import NotificationContext
from contexts.preferences import PreferencesContext
from contexts.purchases import PurchaseHistoryContext
from db.models import Notification, Purchase, PurchaseItem
from utils import config
from utils.logger import get_logger
from utils.pricing import compute_totals
from utils.pure import format_rupiah
from utils.query_cache import QueryCache
from utils.storage import KeyValueStore

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - store: the local key-value store (sessions, carts, preferences)
      - cache: fetched backend results, invalidated by mutations
      - auth, cart, notifications, purchases, preferences: the contexts
    """

    store: KeyValueStore = field(default_factory=KeyValueStore)
    cache: QueryCache = field(default_factory=QueryCache)

    auth: AuthContext = field(init=False)
    cart: CartContext = field(init=False)
    notifications: NotificationContext = field(init=False)
    purchases: PurchaseHistoryContext = field(init=False)
    preferences: PreferencesContext = field(init=False)

    def __post_init__(self) -> None:
        self.auth = AuthContext(self.store)
        self.cart = CartContext(self.store)
        self.notifications = NotificationContext(self.auth, self.cache)
        self.purchases = PurchaseHistoryContext(self.auth, self.cache)
        self.preferences = PreferencesContext(self.store)

    @property
    def uid(self) -> Optional[str]:
        return self.auth.user.id if self.auth.user else None

    @property
    def is_admin(self) -> bool:
        return self.auth.is_admin

    def start_session(self) -> None:
        """Bind per-user state to whoever just signed in."""
        self.cache.clear()
        self.purchases.reset()
        self.cart.bind(self.uid)

    def end_session(self) -> None:
        """
        Sign out and drop everything cached for the user.
        This is only called upon logging out
        """
        self.auth.logout()
        self.cart.unbind()
        self.purchases.reset()
        self.cache.clear()

    async def place_order(self, payment_method: str, when: Optional[datetime] = None) -> Purchase:
        """
        Turn the cart into a pending purchase.

        Totals are the line items plus tax. The cart is cleared
        and a success notification added once the purchase is recorded.
        """
        self.auth.require_user()
        if payment_method not in config.PAYMENT_METHODS:
            raise ValueError(f"Unknown payment method: {payment_method}")
        lines = list(self.cart.items)
        if not lines:
            raise ValueError("Your cart is empty.")

        when = when or datetime.now()
        totals = compute_totals(lines)

        purchase = await self.purchases.add_purchase(
            [
                PurchaseItem(
                    id=str(line.id),
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                    image=line.image,
                )
                for line in lines
            ],
            totals.total,
            payment_method,
            status="pending",
            order_date=when,
        )
        self.cart.clear_cart()
        await self.notifications.add_notification(
            "success",
            "Purchase Successful",
            "Your purchase has been completed. Processing game items... "
            f"Total: {format_rupiah(totals.total)}",
        )
        return purchase

    async def announce_delivery(self) -> Optional[Notification]:
        if self.auth.user is None:
            # signed out before the notice fired
            return None
        return await self.notifications.add_notification(
            "info",
            "Items Added to Game",
            "Your purchased items have been successfully added to your game inventory!",
        )
