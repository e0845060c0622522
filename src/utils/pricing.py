from typing import Iterable, Sequence

from db.models import CartItem, OrderTotals, Promotion
from utils import config


def best_discount(item: CartItem, promotions: Iterable[Promotion]) -> int:
    """Highest discount percent among the promotions targeting item."""
    return max(
        (p.discount for p in promotions if p.applies_to(item.category, item.type)),
        default=0,
    )


def compute_totals(
    items: Sequence[CartItem],
    tax_rate: float = config.TAX_RATE,
) -> OrderTotals:
    """
    Subtotal, tax and grand total of a cart.

    Promotions are advertised in the catalog only; checkout applies no
    discount, so total == subtotal + tax.
    """
    subtotal = sum(i.line_total for i in items)
    tax = round(subtotal * tax_rate)
    return OrderTotals(subtotal=subtotal, discount=0, tax=tax, total=subtotal + tax)
