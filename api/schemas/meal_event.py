from __future__ import annotations

from datetime import date, datetime

from api.schemas.base import CamelModel, NonEmpty, PatchModel
from core.models.dish import MealType

DishId = NonEmpty


class MealEventIn(CamelModel):
    dish_id: DishId
    start_date: date
    end_date: date
    meal_type: MealType


class MealEventPatch(PatchModel):
    dish_id: DishId | None = None
    start_date: date | None = None
    end_date: date | None = None
    meal_type: MealType | None = None


class MealEventOut(CamelModel):
    id: str
    dish_id: str
    start_date: date
    end_date: date
    meal_type: MealType
    created_at: datetime | None = None
