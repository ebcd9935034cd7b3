"""Re-export individual schema modules for easy imports."""

from .dish import DishIn, DishOut, DishPatch, IngredientIn
from .meal_event import MealEventIn, MealEventOut, MealEventPatch
from .shopping import GenerateRequest, ShoppingItemIn, ShoppingItemOut, ShoppingItemPatch

__all__ = [
    "DishIn",
    "DishOut",
    "DishPatch",
    "IngredientIn",
    "MealEventIn",
    "MealEventOut",
    "MealEventPatch",
    "GenerateRequest",
    "ShoppingItemIn",
    "ShoppingItemOut",
    "ShoppingItemPatch",
]
