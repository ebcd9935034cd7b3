"""
Shopping-list generation: query → aggregate → replace.
"""
from __future__ import annotations

import logging
from datetime import date

from core.aggregation import aggregate_shopping_list
from core.models.dish import Dish
from core.models.shopping import ShoppingListItem
from services.storage import Storage

_LOG = logging.getLogger(__name__)


async def generate_shopping_list(
    storage: Storage,
    start_date: date,
    end_date: date,
) -> list[ShoppingListItem]:
    """
    Rebuild the whole shopping list from the meal events overlapping
    [start_date, end_date] and return the stored items.

    Items that existed before the call are gone afterwards, including ones
    added by hand.
    """
    events = await storage.list_meal_events_in_range(start_date, end_date)

    # each distinct dish is fetched once; lookups are read-only
    dishes: dict[str, Dish] = {}
    for dish_id in dict.fromkeys(e.dish_id for e in events):
        dish = await storage.get_dish(dish_id)
        if dish is not None:
            dishes[dish_id] = dish

    drafts = aggregate_shopping_list(start_date, end_date, events, dishes.get)
    items = await storage.replace_shopping_list(drafts)

    _LOG.info(
        "shopping list %s..%s: %d events, %d dishes, %d items",
        start_date, end_date, len(events), len(dishes), len(items),
    )
    return items
