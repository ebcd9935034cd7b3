from __future__ import annotations
from datetime import datetime
from typing import ClassVar

from pydantic import Field, field_validator

from api.schemas.base import CamelModel, NonEmpty, PatchModel, number_to_text
from core.models.dish import MealType



class IngredientIn(CamelModel):
    name: NonEmpty
    quantity: NonEmpty = Field(..., examples=["300", "0.5"])
    unit: NonEmpty = Field(..., examples=["g", "pcs"])

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, v):
        return number_to_text(v)


class Ingredient(CamelModel):
    name: str
    quantity: str
    unit: str


class DishIn(CamelModel):
    name: NonEmpty
    description: str | None = None
    meal_type: MealType
    ingredients: list[IngredientIn] = []


class DishPatch(PatchModel):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description"})

    name: NonEmpty | None = None
    description: str | None = None
    meal_type: MealType | None = None
    ingredients: list[IngredientIn] | None = None


class DishOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    meal_type: MealType
    ingredients: list[Ingredient]
    created_at: datetime | None = None
