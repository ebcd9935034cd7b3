from __future__ import annotations
from datetime import date, datetime
from typing import ClassVar

from pydantic import Field, field_validator, model_validator

from api.schemas.base import CamelModel, NonEmpty, PatchModel, number_to_text



class ShoppingItemIn(CamelModel):
    name: NonEmpty
    quantity: NonEmpty
    unit: NonEmpty
    # "true"/"false" strings from older clients coerce to bool
    is_completed: bool = False
    dish_name: str | None = None
    planned_date: date | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, v):
        return number_to_text(v)


class ShoppingItemPatch(PatchModel):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"dish_name", "planned_date"})

    name: NonEmpty | None = None
    quantity: NonEmpty | None = None
    unit: NonEmpty | None = None
    is_completed: bool | None = None
    dish_name: str | None = None
    planned_date: date | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, v):
        return number_to_text(v)


class ShoppingItemOut(CamelModel):
    id: str
    name: str
    quantity: str
    unit: str
    is_completed: bool
    dish_name: str | None = None
    planned_date: date | None = None
    created_at: datetime | None = None


class GenerateRequest(CamelModel):
    start_date: date = Field(..., examples=["2024-01-01"])
    end_date: date = Field(..., examples=["2024-01-07"])

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self
