# api/router.py
from fastapi import APIRouter

from . import dishes, meal_events, shopping_list

api_router = APIRouter()

api_router.include_router(dishes.router, prefix="/dishes", tags=["Dishes"])
api_router.include_router(meal_events.router, prefix="/meal-events", tags=["Meal events"])
api_router.include_router(shopping_list.router, prefix="/shopping-list", tags=["Shopping list"])
