"""
core/aggregation.py
────────────────────────────────────────────────────────────────────────
Shopping-list aggregation.

`aggregate_shopping_list()` turns the meal events of a date window into
flat shopping-list drafts:

1.   drop events that do not overlap the window (inclusive on both ends)
2.   resolve each event's dish; dangling ids and empty dishes are skipped
3.   merge ingredients per dish on exact (name, unit), once per event
4.   stamp every item with the dish name and its earliest start date

The function is pure: it never touches storage and keeps nothing
between calls.  Persisting the result (clear + insert) is the caller's
job, see `services.shopping`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation, localcontext
from typing import Callable, Iterable

from core.models.dish import Dish, Ingredient
from core.models.meal_event import MealEvent
from core.models.shopping import ShoppingListItemCreate

_LOG = logging.getLogger(__name__)

DishResolver = Callable[[str], Dish | None]

# kitchen quantities never need more than this many digits either side of the point
_MAX_EXPONENT = 15


# ──────────────────────────────────────────────────────────────────────
#  Quantity helpers
# ──────────────────────────────────────────────────────────────────────
def parse_quantity(raw: str) -> Decimal | None:
    """Decimal value of `raw`, or None when it is not a finite, sane number."""
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    if abs(value.adjusted()) > _MAX_EXPONENT:
        return None
    return value


def format_quantity(value: Decimal) -> str:
    # plain notation, no exponent, no trailing zeros: 600, 0.3, 2.5
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def add_quantities(left: str, right: str, *, name: str = "", unit: str = "") -> str:
    """
    Sum two quantity strings.

    An unparsable operand counts as 0 and the other one is kept as-is.
    """
    a, b = parse_quantity(left), parse_quantity(right)
    if a is None or b is None:
        bad = left if a is None else right
        _LOG.warning(
            "unparsable quantity %r for ingredient %r (%s), counted as 0",
            bad, name, unit,
        )
        if a is None and b is None:
            return left
        if a is None:
            return right
        return left
    try:
        with localcontext() as ctx:
            ctx.prec = 2 * _MAX_EXPONENT + 2
            total = a + b
    except ArithmeticError:
        _LOG.warning("quantity overflow for ingredient %r (%s), kept %r", name, unit, left)
        return left
    return format_quantity(total)


# ──────────────────────────────────────────────────────────────────────
#  Per-dish accumulator
# ──────────────────────────────────────────────────────────────────────
@dataclass
class _DishTally:
    dish_name: str
    earliest_date: date
    ingredients: list[Ingredient] = field(default_factory=list)

    def add(self, ingredient: Ingredient) -> None:
        for existing in self.ingredients:
            if existing.name == ingredient.name and existing.unit == ingredient.unit:
                existing.quantity = add_quantities(
                    existing.quantity,
                    ingredient.quantity,
                    name=ingredient.name,
                    unit=ingredient.unit,
                )
                return
        self.ingredients.append(ingredient.model_copy())


# ──────────────────────────────────────────────────────────────────────
#  Public entrypoint
# ──────────────────────────────────────────────────────────────────────
def aggregate_shopping_list(
    start_date: date,
    end_date: date,
    events: Iterable[MealEvent],
    resolve_dish: DishResolver,
) -> list[ShoppingListItemCreate]:
    tallies: dict[str, _DishTally] = {}

    for event in events:
        if not event.overlaps(start_date, end_date):
            continue

        dish = resolve_dish(event.dish_id)
        if dish is None:
            _LOG.debug("event %s points at missing dish %s, skipped", event.id, event.dish_id)
            continue
        if not dish.ingredients:
            continue

        tally = tallies.get(dish.id)
        if tally is None:
            tally = tallies[dish.id] = _DishTally(dish.name, event.start_date)
        elif event.start_date < tally.earliest_date:
            tally.earliest_date = event.start_date

        for ingredient in dish.ingredients:
            tally.add(ingredient)

    return [
        ShoppingListItemCreate(
            name=ing.name,
            quantity=ing.quantity,
            unit=ing.unit,
            is_completed=False,
            dish_name=tally.dish_name,
            planned_date=tally.earliest_date,
        )
        for tally in tallies.values()
        for ing in tally.ingredients
    ]
