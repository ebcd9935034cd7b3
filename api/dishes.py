# api/dishes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.deps import get_storage
from api.schemas import DishIn, DishOut, DishPatch
from core.models.dish import DishCreate
from services.storage import Storage

router = APIRouter()

_NOT_FOUND = "Dish not found"


# ───────────────────────── list / fetch ─────────────────────
@router.get("", response_model=list[DishOut], summary="List all dishes")
async def list_dishes(store: Storage = Depends(get_storage)) -> list[DishOut]:
    return [DishOut.model_validate(d) for d in await store.list_dishes()]


@router.get("/{dish_id}", response_model=DishOut)
async def fetch_dish(dish_id: str, store: Storage = Depends(get_storage)) -> DishOut:
    dish = await store.get_dish(dish_id)
    if dish is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return DishOut.model_validate(dish)


# ───────────────────────── create ──────────────────────────
@router.post("", response_model=DishOut, status_code=status.HTTP_201_CREATED)
async def create_dish(body: DishIn, store: Storage = Depends(get_storage)) -> DishOut:
    dish = await store.create_dish(DishCreate(**body.model_dump()))
    return DishOut.model_validate(dish)


# ───────────────────────── update ──────────────────────────
@router.patch("/{dish_id}", response_model=DishOut)
async def update_dish(
    dish_id: str,
    body: DishPatch,
    store: Storage = Depends(get_storage),
) -> DishOut:
    dish = await store.update_dish(dish_id, body.changes())
    if dish is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return DishOut.model_validate(dish)


# ───────────────────────── delete ──────────────────────────
@router.delete("/{dish_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dish(dish_id: str, store: Storage = Depends(get_storage)) -> Response:
    """Meal events pointing at this dish are kept; they just stop contributing."""
    if not await store.delete_dish(dish_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
