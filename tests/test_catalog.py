import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.models import Item  # noqa: E402
from utils import catalog  # noqa: E402
from utils.catalog import CatalogQuery  # noqa: E402


def make_item(id, name, price, category="skyrim", type="weapon"):
    return Item(
        id=id,
        name=name,
        price=price,
        category=category,
        type=type,
        image="",
        description=None,
    )


ITEMS = [
    make_item(1, "Daedric Sword", 2_500_000),
    make_item(2, "dragonbone armor", 5_500_000, type="armor"),
    make_item(3, "Healing Potion", 150_000, type="potion"),
    make_item(4, "Energy Sword", 3_200_000, category="halo"),
    make_item(5, "Overshield", 500_000, category="halo", type="potion"),
    make_item(6, "Diamond Sword", 2_000_000, category="minecraft"),
    make_item(7, "AWP | Dragon Lore", 95_000_000, category="counter-strike"),
]


class CatalogFilterTestCase(unittest.TestCase):
    def ids(self, items):
        return [i.id for i in items]

    def test_search_is_case_insensitive_on_name(self):
        result = catalog.filter_and_sort(ITEMS, CatalogQuery(search="  SWORD "))
        self.assertEqual(self.ids(result), [1, 6, 4])

    def test_category_and_type_filters(self):
        self.assertEqual(
            self.ids(catalog.filter_and_sort(ITEMS, CatalogQuery(category="halo"))),
            [4, 5],
        )
        self.assertEqual(
            self.ids(
                catalog.filter_and_sort(
                    ITEMS, CatalogQuery(category="halo", item_type="potion")
                )
            ),
            [5],
        )
        self.assertEqual(
            catalog.filter_and_sort(ITEMS, CatalogQuery(category="valorant")), []
        )

    def test_price_ranges_have_inclusive_bounds(self):
        low = catalog.filter_and_sort(ITEMS, CatalogQuery(price_range="0-500000"))
        self.assertEqual(self.ids(low), [3, 5])

        mid = catalog.filter_and_sort(
            ITEMS, CatalogQuery(price_range="500000-2000000")
        )
        self.assertEqual(self.ids(mid), [6, 5])

        top = catalog.filter_and_sort(ITEMS, CatalogQuery(price_range="5000000+"))
        self.assertEqual(self.ids(top), [7, 2])

    def test_unknown_price_range_matches_everything(self):
        result = catalog.filter_and_sort(ITEMS, CatalogQuery(price_range="cheap"))
        self.assertEqual(len(result), len(ITEMS))

    def test_sorting(self):
        by_name = catalog.sort_items(ITEMS, "name-asc")
        self.assertEqual(by_name[0].name, "AWP | Dragon Lore")
        # names compare without case
        self.assertEqual(self.ids(by_name)[:4], [7, 1, 6, 2])
        self.assertEqual(
            self.ids(catalog.sort_items(ITEMS, "name-desc")), self.ids(by_name)[::-1]
        )

        by_price = catalog.sort_items(ITEMS, "price-asc")
        self.assertEqual(self.ids(by_price), [3, 5, 6, 1, 4, 2, 7])
        self.assertEqual(
            self.ids(catalog.sort_items(ITEMS, "price-desc")), [7, 2, 4, 1, 6, 5, 3]
        )

        self.assertEqual(
            self.ids(catalog.sort_items(ITEMS, "newest")), [7, 6, 5, 4, 3, 2, 1]
        )
        # unknown sort keeps the input order
        self.assertEqual(self.ids(catalog.sort_items(ITEMS, "random")), self.ids(ITEMS))

    def test_admin_search(self):
        self.assertEqual(self.ids(catalog.admin_search(ITEMS, "HALO")), [4, 5])
        self.assertEqual(self.ids(catalog.admin_search(ITEMS, "potion")), [3, 5])
        self.assertEqual(self.ids(catalog.admin_search(ITEMS, "lore")), [7])
        self.assertEqual(len(catalog.admin_search(ITEMS, "   ")), len(ITEMS))


class PaginationTestCase(unittest.TestCase):
    def setUp(self):
        self.items = [make_item(i, f"Item {i:02d}", i * 1000) for i in range(1, 22)]

    def test_paginate(self):
        page_items, page, total = catalog.paginate(self.items, 1)
        self.assertEqual((len(page_items), page, total), (12, 1, 2))
        self.assertEqual(page_items[0].id, 1)

        page_items, page, total = catalog.paginate(self.items, 2)
        self.assertEqual((len(page_items), page, total), (9, 2, 2))
        self.assertEqual(page_items[-1].id, 21)

    def test_paginate_clamps_page(self):
        _, page, _ = catalog.paginate(self.items, 99)
        self.assertEqual(page, 2)
        _, page, _ = catalog.paginate(self.items, -3)
        self.assertEqual(page, 1)

    def test_paginate_empty(self):
        self.assertEqual(catalog.paginate([], 4), ([], 1, 1))

    def test_paginate_rejects_bad_page_size(self):
        with self.assertRaises(ValueError):
            catalog.paginate(self.items, 1, per_page=0)

    def test_page_window(self):
        self.assertEqual(catalog.page_window(1, 3), [1, 2, 3])
        self.assertEqual(catalog.page_window(1, 10), [1, 2, 3, 4, 5])
        self.assertEqual(catalog.page_window(3, 10), [1, 2, 3, 4, 5])
        self.assertEqual(catalog.page_window(5, 10), [3, 4, 5, 6, 7])
        self.assertEqual(catalog.page_window(8, 10), [6, 7, 8, 9, 10])
        self.assertEqual(catalog.page_window(10, 10), [6, 7, 8, 9, 10])
        self.assertEqual(catalog.page_window(1, 1), [1])


if __name__ == "__main__":
    unittest.main()
