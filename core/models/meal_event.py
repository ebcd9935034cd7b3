from __future__ import annotations
from datetime import date, datetime

from pydantic import BaseModel

from core.models.dish import MealType


class MealEventCreate(BaseModel):
    dish_id: str           # not enforced, may point at a deleted dish
    start_date: date
    end_date: date         # inclusive
    meal_type: MealType


class MealEvent(MealEventCreate):
    id: str
    created_at: datetime | None = None

    def overlaps(self, start: date, end: date) -> bool:
        """Inclusive interval overlap with [start, end]."""
        return self.start_date <= end and self.end_date >= start
