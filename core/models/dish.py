from __future__ import annotations
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

MealType = Literal["breakfast", "lunch", "dinner"]


class Ingredient(BaseModel):
    name: str
    quantity: str          # decimal-parseable, kept as text end-to-end
    unit: str


class DishCreate(BaseModel):
    name: str
    description: str | None = None
    meal_type: MealType
    ingredients: list[Ingredient] = Field(default_factory=list)


class Dish(DishCreate):
    id: str
    created_at: datetime | None = None
