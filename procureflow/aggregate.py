"""
Cost derivation for the request aggregate.

The estimated total is computed once, when the request is created, from the
catalog prices at that moment. It is stored as a snapshot and never
recomputed from the current catalog.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping

from .models import _money, _to_decimal


def _pair(line: Any) -> tuple[int, int]:
    if isinstance(line, (tuple, list)):
        item_id, quantity = line[0], line[1]
    elif isinstance(line, Mapping):
        item_id, quantity = line["item_id"], line["quantity"]
    else:
        item_id, quantity = line.item_id, line.quantity
    return int(item_id), int(quantity)


def compute_estimated_total(line_items: Iterable[Any], price_lookup: Mapping[int, Any]) -> Decimal | None:
    """
    Sum of price × quantity across `line_items`.

    `line_items` holds (item_id, quantity) pairs, dicts or objects with those
    attributes. Returns None (not zero, not a partial sum) as soon as one
    referenced item has no known price.
    """
    total = Decimal("0.00")
    for line in line_items:
        item_id, quantity = _pair(line)
        price = _to_decimal(price_lookup.get(item_id))
        if price is None:
            return None
        total += price * quantity
    return _money(total)
