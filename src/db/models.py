# dataclass records mirrored from the backend tables

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal, Optional, Tuple

PurchaseStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
NotificationType = Literal["success", "error", "info"]

PURCHASE_STATUSES: Tuple[str, ...] = (
    "pending",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
)
NOTIFICATION_TYPES: Tuple[str, ...] = ("success", "error", "info")


@dataclass(frozen=True)
class User:
    id: str
    email: str
    full_name: Optional[str]
    created_at: datetime
    is_admin: bool = False

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


@dataclass(frozen=True)
class Item:
    id: int
    name: str
    price: int  # rupiah
    category: str
    type: str
    image: str
    description: Optional[str]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CartItem:
    id: int  # item id
    name: str
    price: int
    image: str
    category: str
    type: str
    quantity: int

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class PurchaseItem:
    """Snapshot of a cart line at purchase time."""

    id: str
    name: str
    price: int
    quantity: int
    image: str


@dataclass(frozen=True)
class Purchase:
    id: str
    user_id: str
    items: Tuple[PurchaseItem, ...]
    total: int
    status: PurchaseStatus
    order_date: datetime
    payment_method: str
    delivery_date: Optional[datetime] = None


@dataclass(frozen=True)
class Notification:
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    timestamp: datetime
    read: bool


@dataclass(frozen=True)
class Profile:
    id: str
    full_name: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Promotion:
    id: int
    title: str
    description: str
    discount: int  # percent
    start_date: date
    end_date: date
    is_active: bool
    target_category: Optional[str] = None  # None targets every category
    target_type: Optional[str] = None

    def is_running(self, as_of: date) -> bool:
        return self.is_active and self.start_date <= as_of <= self.end_date

    def applies_to(self, category: str, item_type: str) -> bool:
        return (self.target_category in (None, category)) and (
            self.target_type in (None, item_type)
        )


@dataclass(frozen=True)
class SavedAccount:
    email: str
    name: Optional[str] = None


@dataclass(frozen=True)
class OrderTotals:
    subtotal: int
    discount: int
    tax: int
    total: int
