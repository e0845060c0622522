from __future__ import annotations

import dataclasses
from typing import List, Optional

from db.models import CartItem, Item
from utils.logger import get_logger
from utils.storage import KeyValueStore

_logger = get_logger(__name__)


def cart_key(owner_id: Optional[str]) -> str:
    return f"cart:{owner_id or 'guest'}"


class CartContext:
    """
    The shopping cart, kept in memory and mirrored to the key-value store.

    Lines are unique per item id and always hold quantity >= 1; setting a
    quantity below 1 removes the line.
    """

    def __init__(self, store: KeyValueStore, owner_id: Optional[str] = None) -> None:
        self._store = store
        self.owner_id = owner_id
        self.items: List[CartItem] = self._load()

    def _load(self) -> List[CartItem]:
        items = []
        for entry in self._store.get(cart_key(self.owner_id), []):
            try:
                item = CartItem(**entry)
            except TypeError as e:
                _logger.error(f"Dropping unreadable cart line {entry!r}: {e}")
                continue
            if item.quantity >= 1:
                items.append(item)
        return items

    def _save(self) -> None:
        self._store.set(
            cart_key(self.owner_id), [dataclasses.asdict(i) for i in self.items]
        )

    def bind(self, owner_id: Optional[str]) -> None:
        """Switch to the persisted cart of owner_id."""
        self.owner_id = owner_id
        self.items = self._load()

    def unbind(self) -> None:
        self.bind(None)

    def get(self, item_id: int) -> Optional[CartItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def add_to_cart(self, item: Item, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        existing = self.get(item.id)
        if existing:
            line = dataclasses.replace(existing, quantity=existing.quantity + quantity)
            self.items = [line if i.id == item.id else i for i in self.items]
        else:
            line = CartItem(
                id=item.id,
                name=item.name,
                price=item.price,
                image=item.image,
                category=item.category,
                type=item.type,
                quantity=quantity,
            )
            self.items = [*self.items, line]
        self._save()
        return line

    def update_quantity(self, item_id: int, quantity: int) -> None:
        if quantity < 1:
            self.remove_from_cart(item_id)
            return
        self.items = [
            dataclasses.replace(i, quantity=quantity) if i.id == item_id else i
            for i in self.items
        ]
        self._save()

    def remove_from_cart(self, item_id: int) -> None:
        self.items = [i for i in self.items if i.id != item_id]
        self._save()

    def clear_cart(self) -> None:
        self.items = []
        self._save()

    def get_total_price(self) -> int:
        return sum(i.line_total for i in self.items)

    def get_total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    def __len__(self) -> int:
        return len(self.items)
