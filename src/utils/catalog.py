# client side catalog state: filtering, sorting and pagination of items
from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from db.models import Item
from utils import config

CATEGORIES: Dict[str, str] = {
    "all": "All Games",
    "skyrim": "The Elder Scrolls V: Skyrim",
    "halo": "Halo Series",
    "minecraft": "Minecraft",
    "counter-strike": "Counter-Strike",
    "valorant": "Valorant",
}

ITEM_TYPES: Dict[str, str] = {
    "all": "All Items",
    "weapon": "Weapons",
    "armor": "Armor",
    "potion": "Potions",
    "tool": "Tools",
    "food": "Food",
}

# inclusive bounds, None means unbounded
PRICE_RANGES: Dict[str, Tuple[Optional[int], Optional[int]]] = {
    "all": (None, None),
    "0-500000": (0, 500_000),
    "500000-2000000": (500_000, 2_000_000),
    "2000000-5000000": (2_000_000, 5_000_000),
    "5000000+": (5_000_000, None),
}

PRICE_RANGE_LABELS: Dict[str, str] = {
    "all": "All Prices",
    "0-500000": "Rp 0 - Rp 500.000",
    "500000-2000000": "Rp 500.000 - Rp 2.000.000",
    "2000000-5000000": "Rp 2.000.000 - Rp 5.000.000",
    "5000000+": "Rp 5.000.000+",
}

SORT_OPTIONS: Dict[str, str] = {
    "name-asc": "Name A-Z",
    "name-desc": "Name Z-A",
    "price-asc": "Price Low to High",
    "price-desc": "Price High to Low",
    "newest": "Newest First",
}


@dataclass(frozen=True)
class CatalogQuery:
    search: str = ""
    category: str = "all"
    item_type: str = "all"
    price_range: str = "all"
    sort_by: str = "name-asc"


def matches(item: Item, query: CatalogQuery) -> bool:
    if query.search and query.search.strip().lower() not in item.name.lower():
        return False
    if query.category != "all" and item.category != query.category:
        return False
    if query.item_type != "all" and item.type != query.item_type:
        return False
    low, high = PRICE_RANGES.get(query.price_range, (None, None))
    if low is not None and item.price < low:
        return False
    if high is not None and item.price > high:
        return False
    return True


def sort_items(items: Iterable[Item], sort_by: str) -> List[Item]:
    items = list(items)
    if sort_by == "name-asc":
        return sorted(items, key=lambda i: i.name.casefold())
    if sort_by == "name-desc":
        return sorted(items, key=lambda i: i.name.casefold(), reverse=True)
    if sort_by == "price-asc":
        return sorted(items, key=lambda i: i.price)
    if sort_by == "price-desc":
        return sorted(items, key=lambda i: i.price, reverse=True)
    if sort_by == "newest":
        return sorted(items, key=lambda i: i.id, reverse=True)
    return items


def filter_and_sort(items: Iterable[Item], query: CatalogQuery) -> List[Item]:
    return sort_items((i for i in items if matches(i, query)), query.sort_by)


def paginate(
    items: Sequence[Item], page: int, per_page: int = config.ITEMS_PER_PAGE
) -> Tuple[List[Item], int, int]:
    """
    Slice one page out of items.

    Returns (page_items, page, total_pages); page is clamped into
    1..total_pages and there is always at least one page.
    """
    if per_page < 1:
        raise ValueError("per_page must be positive.")
    total_pages = max(ceil(len(items) / per_page), 1)
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return list(items[start : start + per_page]), page, total_pages


def page_window(current: int, total: int, span: int = 5) -> List[int]:
    """Page numbers offered around current, at most span of them."""
    if total <= span:
        return list(range(1, total + 1))
    half = span // 2
    if current <= half + 1:
        first = 1
    elif current >= total - half:
        first = total - span + 1
    else:
        first = current - half
    return list(range(first, first + span))


def admin_search(items: Iterable[Item], term: str) -> List[Item]:
    term = (term or "").strip().lower()
    if not term:
        return list(items)
    return [
        i
        for i in items
        if term in i.name.lower()
        or term in i.category.lower()
        or term in i.type.lower()
    ]
