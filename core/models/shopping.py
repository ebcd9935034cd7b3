from __future__ import annotations
from datetime import date, datetime

from pydantic import BaseModel


class ShoppingListItemCreate(BaseModel):
    name: str
    quantity: str
    unit: str
    is_completed: bool = False
    dish_name: str | None = None       # provenance label
    planned_date: date | None = None   # earliest date the owning dish is scheduled


class ShoppingListItem(ShoppingListItemCreate):
    id: str
    created_at: datetime | None = None
